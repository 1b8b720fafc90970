"""
Generation components: classification, planning, backend calls, chunk execution
"""

from .complexity import ComplexityAnalysis, analyze_complexity
from .planner import create_project_chunks, estimate_project_cost, extract_project_structure
from .fallback_templates import FallbackTemplateStore
from .backend_client import BackendClient, CompletionBackend, OpenAICompletionBackend
from .chunk_pipeline import ChunkPipeline

__all__ = [
    "ComplexityAnalysis",
    "analyze_complexity",
    "create_project_chunks",
    "estimate_project_cost",
    "extract_project_structure",
    "FallbackTemplateStore",
    "BackendClient",
    "CompletionBackend",
    "OpenAICompletionBackend",
    "ChunkPipeline",
]
