"""
Data model for SiteForge generation
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from .errors import FailureKind

DEFAULT_DOCUMENT_PATH = "index.html"


class Provenance(Enum):
    """Where an artifact came from"""
    DIRECT = "direct"
    CHUNKED = "chunked"
    FALLBACK = "fallback"


class ChunkKind(Enum):
    """Kinds of decomposed generation units"""
    COMPLETE = "complete"
    ARCHITECTURE = "architecture"
    PAGE = "page"
    FEATURE_SET = "feature-set"


class RequestType(Enum):
    """Classification of a user message within a conversation"""
    NEW_PROJECT = "new_project"
    MODIFICATION = "modification"
    ADDITION = "addition"


def unique_names(names: Iterable[str]) -> List[str]:
    """Deduplicate names case-insensitively, keeping the first spelling and order"""
    seen = set()
    result = []
    for name in names or []:
        if not isinstance(name, str):
            continue
        name = name.strip()
        key = name.lower()
        if not name or key in seen:
            continue
        seen.add(key)
        result.append(name)
    return result


@dataclass(frozen=True)
class ProjectArtifact:
    """Generated project: path -> content plus page/feature metadata"""
    files: Dict[str, str] = field(default_factory=dict)
    description: str = ""
    pages: List[str] = field(default_factory=list)
    features: List[str] = field(default_factory=list)
    provenance: Provenance = Provenance.DIRECT
    change_type: Optional[str] = None
    modified_files: List[str] = field(default_factory=list)

    def __post_init__(self):
        object.__setattr__(self, "files", dict(self.files or {}))
        object.__setattr__(self, "pages", unique_names(self.pages))
        object.__setattr__(self, "features", unique_names(self.features))
        object.__setattr__(self, "modified_files", list(self.modified_files or []))

    @property
    def is_multi_file(self) -> bool:
        return len(self.files) > 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "files": dict(self.files),
            "description": self.description,
            "pages": list(self.pages),
            "features": list(self.features),
            "provenance": self.provenance.value,
            "change_type": self.change_type,
            "modified_files": list(self.modified_files),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProjectArtifact":
        return cls(
            files=data.get("files") or {},
            description=data.get("description") or "",
            pages=data.get("pages") or [],
            features=data.get("features") or [],
            provenance=Provenance(data.get("provenance", Provenance.DIRECT.value)),
            change_type=data.get("change_type"),
            modified_files=data.get("modified_files") or [],
        )


@dataclass(frozen=True)
class Chunk:
    """One unit of a decomposed generation task"""
    id: int
    kind: ChunkKind
    prompt_text: str
    human_description: str
    estimated_tokens: int
    pages: List[str] = field(default_factory=list)
    features: List[str] = field(default_factory=list)


@dataclass
class ChunkResult:
    """Outcome of a single chunk"""
    chunk_id: int
    kind: ChunkKind
    succeeded: bool
    fragment: Optional[ProjectArtifact] = None
    error: Optional[str] = None
    failure_kind: Optional[FailureKind] = None


@dataclass(frozen=True)
class ChunkProgress:
    """Progress event emitted by the chunk pipeline"""
    current_chunk: int
    total_chunks: int
    description: str
    status: str  # 'processing', 'completed', 'error'
    error: Optional[str] = None


@dataclass
class PipelineResult:
    """Result of running a chunk list"""
    success: bool
    artifact: Optional[ProjectArtifact]
    chunk_results: List[ChunkResult] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def failed_chunks(self) -> List[ChunkResult]:
        return [r for r in self.chunk_results if not r.succeeded]


@dataclass(frozen=True)
class GenerationAttempt:
    """Record of one backend client call"""
    attempt_number: int
    model_tier: str
    model: str
    timeout_seconds: float
    max_tokens: int
    prompt_variant: str
    prompt_tokens: int = 0


@dataclass
class GenerationResult:
    """Result of a backend client generation (never an exception)"""
    success: bool
    artifact: Optional[ProjectArtifact] = None
    error: Optional[str] = None
    failure_kind: Optional[FailureKind] = None
    attempts: List[GenerationAttempt] = field(default_factory=list)
    parse_level: Optional[str] = None

    @property
    def is_fallback(self) -> bool:
        return self.artifact is not None and self.artifact.provenance == Provenance.FALLBACK


@dataclass(frozen=True)
class ChatMessage:
    """One entry of the conversation history"""
    role: str  # 'user' or 'assistant'
    content: str
    artifact: Optional[ProjectArtifact] = None
    timestamp: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "role": self.role,
            "content": self.content,
            "artifact": self.artifact.to_dict() if self.artifact else None,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChatMessage":
        artifact = data.get("artifact")
        return cls(
            role=data.get("role", "user"),
            content=data.get("content", ""),
            artifact=ProjectArtifact.from_dict(artifact) if artifact else None,
            timestamp=data.get("timestamp"),
        )


@dataclass(frozen=True)
class ProjectContext:
    name: str
    pages: List[str]
    features: List[str]
    is_multi_file: bool
    last_modified: Optional[str] = None


@dataclass(frozen=True)
class ConversationSummary:
    original_request: str
    recent_requests: List[str]
    completed_pages: List[str]
    implemented_features: List[str]
    iteration_count: int


@dataclass(frozen=True)
class ConversationContext:
    """Snapshot of a conversation, rebuilt from history on every message"""
    is_first_message: bool
    total_messages: int
    generation_count: int
    previous_requests: List[str] = field(default_factory=list)
    project_context: Optional[ProjectContext] = None
    current_project_state: Optional[ProjectArtifact] = None
    conversation_summary: Optional[ConversationSummary] = None


@dataclass(frozen=True)
class GenerationRequest:
    description: str
    context: Optional[ConversationContext] = None
