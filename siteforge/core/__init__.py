"""
Core data model, configuration and error taxonomy for SiteForge
"""

from .config import Config, AttemptPolicy
from .artifact import (
    ProjectArtifact,
    Provenance,
    Chunk,
    ChunkKind,
    ChunkResult,
    ChunkProgress,
    RequestType,
    ConversationContext,
    ChatMessage,
)
from .errors import FailureKind, BackendCallError, ConfigurationError, SiteForgeError

__all__ = [
    "Config",
    "AttemptPolicy",
    "ProjectArtifact",
    "Provenance",
    "Chunk",
    "ChunkKind",
    "ChunkResult",
    "ChunkProgress",
    "RequestType",
    "ConversationContext",
    "ChatMessage",
    "FailureKind",
    "BackendCallError",
    "ConfigurationError",
    "SiteForgeError",
]
