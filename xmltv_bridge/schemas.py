from pydantic import BaseModel, Field, field_validator


class GuideQuery(BaseModel):
    """Guide request query parameters"""
    m3u: str | None = Field(None, description="Playlist URL overriding the configured default")

    @field_validator('m3u')
    @classmethod
    def validate_playlist_url(cls, v: str | None) -> str | None:
        """Blank overrides fall back to the configured playlist"""
        if v is None or not v.strip():
            return None
        return v.strip()


class HealthResponse(BaseModel):
    """Health check payload"""
    status: str
    guide_cached: bool
    guide_rebuilding: bool
    warm_scheduler_running: bool
    next_warm_up: str | None = None
