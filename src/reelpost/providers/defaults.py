"""Default provider registration."""

from reelpost.pipeline.registry import CapabilityRegistry
from reelpost.providers.instagram import InstagramGraphPublisher
from reelpost.providers.mock import (
    MockPublisherProvider,
    MockRendererProvider,
    MockScriptProvider,
    MockStorageProvider,
    MockTtsProvider,
)
from reelpost.providers.speech import OpenAISpeechProvider
from reelpost.rendering.engine import FFmpegRenderer
from reelpost.scripting.writer import OpenAIScriptProvider
from reelpost.storage.object_storage import R2ObjectStorage
from reelpost.storage.public_media import LocalMediaStorage


def register_default_providers(registry: CapabilityRegistry) -> CapabilityRegistry:
    """Register every shipped provider; mocks are always available."""
    registry.register("script", "mock", MockScriptProvider)
    registry.register("tts", "mock", MockTtsProvider)
    registry.register("renderer", "mock", MockRendererProvider)
    registry.register("storage", "mock", MockStorageProvider)
    registry.register("publisher", "mock", MockPublisherProvider)

    registry.register("script", "openai", OpenAIScriptProvider)
    registry.register("tts", "openai", OpenAISpeechProvider)
    registry.register("renderer", "ffmpeg", FFmpegRenderer)
    registry.register("storage", "local", LocalMediaStorage)
    registry.register("storage", "r2", R2ObjectStorage)
    registry.register("publisher", "instagram", InstagramGraphPublisher)
    return registry
