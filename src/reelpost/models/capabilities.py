"""Input/output models of the five capability kinds."""

from pydantic import BaseModel, Field, model_validator


class ScriptResult(BaseModel):
    text: str = Field(..., min_length=1)
    hashtags: list[str] = Field(default_factory=list)


class SpeechResult(BaseModel):
    audio_path: str
    duration_secs: float = Field(default=0.0, ge=0)


class RenderRequest(BaseModel):
    """Inputs for a render; at least one of clip or audio is required."""

    clip_path: str | None = None
    audio_path: str | None = None
    script_text: str | None = None

    @model_validator(mode="after")
    def require_media(self) -> "RenderRequest":
        if not self.clip_path and not self.audio_path:
            raise ValueError("Need at least a clip or audio file to render")
        return self


class RenderResult(BaseModel):
    """Result of a rendering operation."""

    video_path: str = Field(..., description="Path to rendered output file")
    duration_secs: float = Field(default=0.0, ge=0, description="Output duration in seconds")


class UploadResult(BaseModel):
    url: str
    expires_at: str | None = None


class ContainerRequest(BaseModel):
    video_url: str
    caption: str = ""


class ContainerResult(BaseModel):
    container_id: str


class PublishResult(BaseModel):
    media_id: str
    container_id: str | None = None
