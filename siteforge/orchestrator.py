"""
Generation orchestrator: one user turn from message to merged artifact
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .conversation.context_builder import (
    build_conversation_context,
    classify_request_type,
    create_context_aware_prompt,
)
from .conversation.merge import merge_with_summary
from .core.artifact import (
    ChatMessage,
    ChunkProgress,
    ChunkResult,
    ConversationContext,
    GenerationRequest,
    ProjectArtifact,
    Provenance,
    RequestType,
)
from .core.config import Config
from .core.errors import FailureKind
from .generation.backend_client import BackendClient
from .generation.chunk_pipeline import ChunkPipeline, ProgressCallback
from .generation.complexity import analyze_complexity
from .generation.planner import create_project_chunks
from .generation.prompts import COMPACT_SYSTEM_PROMPT, INITIAL_SYSTEM_PROMPT
from .storage.project_store import ProjectStore

logger = logging.getLogger(__name__)


@dataclass
class TurnOutcome:
    """Everything the display and persistence collaborators need for one turn"""
    success: bool
    request_type: Optional[RequestType] = None
    artifact: Optional[ProjectArtifact] = None
    change_summary: Optional[str] = None
    chunk_results: List[ChunkResult] = field(default_factory=list)
    error: Optional[str] = None
    failure_kind: Optional[FailureKind] = None
    request: Optional[GenerationRequest] = None

    @property
    def context(self) -> Optional[ConversationContext]:
        return self.request.context if self.request else None

    @property
    def provenance(self) -> Optional[Provenance]:
        return self.artifact.provenance if self.artifact else None


class GenerationOrchestrator:
    """Context builder -> planner/client -> merge engine -> collaborators"""

    def __init__(self, config: Config, client: Optional[BackendClient] = None,
                 store: Optional[ProjectStore] = None):
        self.config = config
        self.client = client or BackendClient(config)
        self.pipeline = ChunkPipeline(self.client, config)
        self.store = store

    async def handle_message(
        self,
        message: str,
        history: Optional[Sequence[ChatMessage]] = None,
        project_name: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
        project_id: Optional[str] = None,
    ) -> TurnOutcome:
        if not message or not message.strip():
            return TurnOutcome(success=False, error="Please describe what you want to build.")

        if history is None and self.store is not None and project_id:
            history = self.store.load_history(project_id)
            project_name = project_name or self.store.read_project(project_id).get("name")

        context = build_conversation_context(history, project_name)
        request = GenerationRequest(description=message, context=context)
        request_type = classify_request_type(message, context, self.config.classification)
        logger.info(f"💬 Turn classified as {request_type.value} "
                    f"(first message: {context.is_first_message}, generations: {context.generation_count})")

        chunk_results: List[ChunkResult] = []
        if context.is_first_message or request_type == RequestType.NEW_PROJECT:
            success, artifact, error, kind, chunk_results = await self._generate_fresh(request, on_progress)
        else:
            success, artifact, error, kind = await self._generate_follow_up(request, on_progress)

        if not success:
            outcome = TurnOutcome(success=False, request_type=request_type, chunk_results=chunk_results,
                                  error=error, failure_kind=kind, request=request,
                                  artifact=context.current_project_state)
            self._persist(project_id, message, outcome)
            return outcome

        existing = context.current_project_state
        if artifact.provenance == Provenance.FALLBACK and existing is not None and request_type != RequestType.NEW_PROJECT:
            # A demo template is never merged into a real project
            logger.warning("📦 Follow-up fell back to a template; keeping the existing project unchanged")
            outcome = TurnOutcome(success=False, request_type=request_type, artifact=existing,
                                  chunk_results=chunk_results, error=error, failure_kind=kind, request=request)
            self._persist(project_id, message, outcome)
            return outcome

        merged = merge_with_summary(existing, artifact, request_type)
        outcome = TurnOutcome(
            success=True,
            request_type=request_type,
            artifact=merged.artifact,
            change_summary=merged.change_summary,
            chunk_results=chunk_results,
            error=error,
            failure_kind=kind,
            request=request,
        )

        self._persist(project_id, message, outcome)

        logger.info(f"🎉 {merged.change_summary} [{merged.artifact.provenance.value}]")
        return outcome

    async def _generate_fresh(self, request: GenerationRequest, on_progress: Optional[ProgressCallback]):
        message = request.description
        analysis = analyze_complexity(message, self.config.classification)
        if analysis.needs_chunking:
            chunks = create_project_chunks(message, self.config.classification, analysis)
            result = await self.pipeline.run(chunks, message, on_progress)
            kind = None
            if not result.success:
                kind = next((r.failure_kind for r in result.chunk_results if r.failure_kind), FailureKind.CHUNK_FAILURE)
            return result.success, result.artifact, result.error, kind, result.chunk_results

        result = await self._single_call(
            INITIAL_SYSTEM_PROMPT, message, message, on_progress, compact_system_prompt=COMPACT_SYSTEM_PROMPT
        )
        return result.success, result.artifact, result.error, result.failure_kind, []

    async def _generate_follow_up(self, request: GenerationRequest, on_progress: Optional[ProgressCallback]):
        enriched = create_context_aware_prompt(request.description, request.context, self.config)
        result = await self._single_call(
            enriched.system_prompt, enriched.user_prompt, request.description, on_progress
        )
        return result.success, result.artifact, result.error, result.failure_kind

    async def _single_call(self, system_prompt: str, user_prompt: str, request_text: str,
                           on_progress: Optional[ProgressCallback], compact_system_prompt: Optional[str] = None):
        description = "Complete project generation"
        if on_progress is not None:
            on_progress(ChunkProgress(1, 1, description, "processing"))
        result = await self.client.generate(
            system_prompt, user_prompt, request_text=request_text, compact_system_prompt=compact_system_prompt
        )
        if on_progress is not None:
            status = "completed" if result.success else "error"
            on_progress(ChunkProgress(1, 1, description, status, None if result.success else result.error))
        return result

    def _persist(self, project_id: Optional[str], message: str, outcome: TurnOutcome):
        """Chat log and version history; failed turns only add chat messages"""
        if self.store is None or not project_id:
            return

        self.store.append_chat_message(project_id, ChatMessage(role="user", content=message))
        if not outcome.success:
            self.store.append_chat_message(project_id, ChatMessage(role="assistant", content=outcome.error or "Generation failed"))
            return

        self.store.append_chat_message(
            project_id,
            ChatMessage(role="assistant", content=outcome.change_summary, artifact=outcome.artifact),
        )
        self.store.append_project_version(project_id, outcome.artifact, outcome.change_summary)
