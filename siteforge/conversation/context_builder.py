"""
Conversation context reconstruction and request classification

The context is rebuilt from the full message history on every turn; no
state is carried between calls.
"""

import json
import re
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from ..core.artifact import (
    ChatMessage,
    ConversationContext,
    ConversationSummary,
    ProjectArtifact,
    ProjectContext,
    RequestType,
    unique_names,
)
from ..core.config import ClassificationConfig, Config
from ..generation.prompts import INITIAL_SYSTEM_PROMPT, contextual_system_prompt

logger = logging.getLogger(__name__)

DEFAULT_PROJECT_NAME = "Untitled Project"
RECENT_REQUEST_COUNT = 3


@dataclass(frozen=True)
class EnrichedPrompt:
    system_prompt: str
    user_prompt: str
    is_context_aware: bool


def build_conversation_context(history: Optional[Sequence[ChatMessage]],
                               project_name: Optional[str] = None) -> ConversationContext:
    """Rebuild the conversation snapshot from the message history"""
    history = list(history or [])
    generated = [m for m in history if m.artifact is not None]
    assistant_generated = [m for m in generated if m.role == "assistant"]

    if not assistant_generated:
        return ConversationContext(
            is_first_message=True,
            total_messages=len(history),
            generation_count=0,
            previous_requests=[m.content for m in history if m.role == "user"],
        )

    user_requests = [m.content for m in history if m.role == "user"]
    current_state = generated[-1].artifact

    pages: List[str] = []
    features: List[str] = []
    for message in assistant_generated:
        pages.extend(message.artifact.pages)
        features.extend(message.artifact.features)
    pages = unique_names(pages)
    features = unique_names(features)

    summary = ConversationSummary(
        original_request=user_requests[0] if user_requests else "No initial request",
        recent_requests=user_requests[-RECENT_REQUEST_COUNT:],
        completed_pages=pages,
        implemented_features=features,
        iteration_count=len(user_requests),
    )

    return ConversationContext(
        is_first_message=False,
        total_messages=len(history),
        generation_count=len(generated),
        previous_requests=user_requests,
        project_context=ProjectContext(
            name=project_name or DEFAULT_PROJECT_NAME,
            pages=pages,
            features=features,
            is_multi_file=current_state.is_multi_file,
            last_modified=history[-1].timestamp,
        ),
        current_project_state=current_state,
        conversation_summary=summary,
    )


def _keyword_pattern(keyword: str) -> str:
    """Word-bounded pattern that also accepts inflected forms (adds, added, adding, including)"""
    keyword = keyword.lower()
    if keyword.endswith("e"):
        return rf"\b{re.escape(keyword[:-1])}(?:e|es|ed|ing)\b"
    return rf"\b{re.escape(keyword)}(?:s|es|ed|ing)?\b"


def _contains_keyword(message: str, keywords: Sequence[str]) -> bool:
    return any(re.search(_keyword_pattern(k), message) for k in keywords)


def classify_request_type(message: str, context: ConversationContext,
                          config: Optional[ClassificationConfig] = None) -> RequestType:
    """Keyword-rule classification in priority order: new project, modification, addition"""
    if context.is_first_message:
        return RequestType.NEW_PROJECT

    config = config or ClassificationConfig()
    lowered = (message or "").lower()

    if _contains_keyword(lowered, config.new_project_keywords):
        return RequestType.NEW_PROJECT
    if _contains_keyword(lowered, config.modification_keywords):
        return RequestType.MODIFICATION
    if _contains_keyword(lowered, config.addition_keywords):
        return RequestType.ADDITION

    # Follow-up messages default to modification
    return RequestType.MODIFICATION


def serialize_project_state(artifact: Optional[ProjectArtifact], max_file_chars: int = 4000) -> str:
    """JSON snapshot of a project with file bodies capped at max_file_chars"""
    if artifact is None:
        return json.dumps({"description": "No existing project state"}, indent=2)

    snapshot = artifact.to_dict()
    snapshot.pop("provenance", None)
    files = {}
    for path, content in artifact.files.items():
        if max_file_chars and len(content) > max_file_chars:
            omitted = len(content) - max_file_chars
            content = f"{content[:max_file_chars]}\n... [{omitted} characters truncated]"
        files[path] = content
    snapshot["files"] = files
    return json.dumps(snapshot, indent=2)


def create_context_aware_prompt(message: str, context: ConversationContext,
                                config: Optional[Config] = None) -> EnrichedPrompt:
    """System and user prompts for a message, enriched with project state after the first turn"""
    if context.is_first_message:
        return EnrichedPrompt(INITIAL_SYSTEM_PROMPT, message, False)

    config = config or Config()
    snapshot = serialize_project_state(
        context.current_project_state, config.generation.snapshot_max_file_chars
    )
    user_prompt = f"""CURRENT PROJECT STATE:
{snapshot}

USER REQUEST: {message}

CONTEXT: This is iteration #{context.total_messages} of an existing project. The user is asking for modifications/additions to the project above. Build on the existing work and return only the changed or new files."""

    return EnrichedPrompt(contextual_system_prompt(context), user_prompt, True)
