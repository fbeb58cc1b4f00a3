"""Vendor-neutral adapters for generation, speech and avatar video."""
from .avatar import AvatarRequest
from .base import Artifact, BackendError, ProviderAdapter
from .content_store import ContentStore
from .factory import ProviderSuite, build_providers
from .generation import GenerationRequest
from .speech import RecognitionRequest, SynthesisRequest

__all__ = [
    "Artifact",
    "AvatarRequest",
    "BackendError",
    "ContentStore",
    "GenerationRequest",
    "ProviderAdapter",
    "ProviderSuite",
    "RecognitionRequest",
    "SynthesisRequest",
    "build_providers",
]
