"""Abstract capability interfaces, one per capability kind."""

from abc import ABC, abstractmethod
from pathlib import Path

from reelpost.config import ConfigResolver
from reelpost.models.capabilities import (
    ContainerRequest,
    ContainerResult,
    PublishResult,
    RenderRequest,
    RenderResult,
    ScriptResult,
    SpeechResult,
    UploadResult,
)


class BaseProvider(ABC):
    """Common base: every provider is constructed from the config resolver."""

    kind: str = ""

    def __init__(self, config: ConfigResolver):
        self.config = config


class ScriptProvider(BaseProvider):
    kind = "script"

    @abstractmethod
    def generate(self, clip_path: str | None = None) -> ScriptResult:
        """Write a short voice-over script for the clip."""
        ...


class TtsProvider(BaseProvider):
    kind = "tts"

    @abstractmethod
    def synthesize(self, text: str, output_dir: Path) -> SpeechResult:
        """Speak ``text`` into an audio file under ``output_dir``."""
        ...


class RendererProvider(BaseProvider):
    kind = "renderer"

    @abstractmethod
    def render(self, request: RenderRequest, output_dir: Path) -> RenderResult:
        """Produce the final video under ``output_dir``."""
        ...


class StorageProvider(BaseProvider):
    kind = "storage"

    @abstractmethod
    def upload(self, file_path: Path) -> UploadResult:
        """Make ``file_path`` reachable at a public URL."""
        ...


class PublisherProvider(BaseProvider):
    """Two-phase publisher: create a media container, then publish it.

    ``publish_container`` must wait for the platform to finish processing and
    give up with a ``StageFailure`` after a bounded time.
    """

    kind = "publisher"

    @abstractmethod
    def create_container(self, request: ContainerRequest) -> ContainerResult: ...

    @abstractmethod
    def publish_container(self, container_id: str) -> PublishResult: ...
