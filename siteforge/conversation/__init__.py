"""
Conversation context and artifact merging
"""

from .context_builder import (
    EnrichedPrompt,
    build_conversation_context,
    classify_request_type,
    create_context_aware_prompt,
)
from .merge import MergeResult, extract_change_summary, merge_project_changes, merge_with_summary

__all__ = [
    "EnrichedPrompt",
    "build_conversation_context",
    "classify_request_type",
    "create_context_aware_prompt",
    "MergeResult",
    "extract_change_summary",
    "merge_project_changes",
    "merge_with_summary",
]
