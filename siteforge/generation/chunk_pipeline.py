"""
Sequential chunk execution with partial-failure tolerance
"""

import asyncio
import logging
from typing import Callable, Dict, List, Optional

from ..core.artifact import (
    Chunk,
    ChunkProgress,
    ChunkResult,
    PipelineResult,
    ProjectArtifact,
    Provenance,
    unique_names,
)
from ..core.config import Config
from ..core.errors import FailureKind
from .backend_client import BackendClient
from .prompts import system_prompt_for_chunk

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ChunkProgress], None]


class ChunkPipeline:
    """Runs a chunk list in order through the backend client and assembles the result"""

    def __init__(self, client: BackendClient, config: Config):
        self.client = client
        self.config = config

    async def run(self, chunks: List[Chunk], request_text: str,
                  on_progress: Optional[ProgressCallback] = None) -> PipelineResult:
        files: Dict[str, str] = {}
        pages: List[str] = []
        features: List[str] = []
        descriptions: List[str] = []
        results: List[ChunkResult] = []
        fallback: Optional[ProjectArtifact] = None
        fallback_error: Optional[str] = None
        total = len(chunks)

        def emit(index: int, chunk: Chunk, status: str, error: Optional[str] = None):
            if on_progress is not None:
                on_progress(ChunkProgress(index + 1, total, chunk.human_description, status, error))

        for index, chunk in enumerate(chunks):
            if fallback is not None:
                # Backend degraded to a template; remaining chunks are not sent
                results.append(ChunkResult(chunk.id, chunk.kind, False,
                                           error="Skipped: backend unavailable",
                                           failure_kind=FailureKind.CHUNK_FAILURE))
                emit(index, chunk, "error", "Skipped: backend unavailable")
                continue

            emit(index, chunk, "processing")
            logger.info(f"🧩 Chunk {index + 1}/{total}: {chunk.human_description}")

            result = await self.client.generate(
                system_prompt_for_chunk(chunk),
                chunk.prompt_text,
                request_text=request_text,
                provenance=Provenance.CHUNKED,
            )

            if result.success and not result.is_fallback:
                fragment = result.artifact
                files.update(fragment.files)
                pages = unique_names(pages + fragment.pages)
                features = unique_names(features + fragment.features)
                if fragment.description:
                    descriptions.append(fragment.description)
                results.append(ChunkResult(chunk.id, chunk.kind, True, fragment=fragment))
                emit(index, chunk, "completed")
            else:
                if result.is_fallback:
                    fallback = result.artifact
                    error = fallback_error = result.error or "Backend unavailable"
                else:
                    error = result.error or "Chunk generation failed"
                results.append(ChunkResult(chunk.id, chunk.kind, False, error=error,
                                           failure_kind=result.failure_kind or FailureKind.CHUNK_FAILURE))
                emit(index, chunk, "error", error)
                logger.error(f"❌ Chunk {chunk.id} failed: {error}")

            if index < total - 1 and fallback is None:
                await asyncio.sleep(self.config.generation.inter_chunk_delay)

        succeeded = [r for r in results if r.succeeded]
        if succeeded:
            artifact = ProjectArtifact(
                files=files,
                description=" | ".join(descriptions),
                pages=pages,
                features=features,
                provenance=Provenance.CHUNKED,
            )
            logger.info(f"✅ Pipeline assembled {len(files)} files from {len(succeeded)}/{total} chunks")
            return PipelineResult(True, artifact, results)

        if fallback is not None:
            logger.warning("📦 No chunk produced content, returning fallback template")
            return PipelineResult(True, fallback, results, error=fallback_error)

        errors = "; ".join(sorted({r.error for r in results if r.error}))
        logger.error(f"❌ All {total} chunks failed")
        return PipelineResult(False, None, results, error=errors or "All chunks failed")
