"""
Structure extraction and chunk planning

Derives page and feature hints from a request and turns a complex request
into an ordered list of sub-tasks that the chunk pipeline can execute one
at a time.
"""

import re
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from ..core.artifact import Chunk, ChunkKind, unique_names
from ..core.config import ClassificationConfig
from .complexity import ComplexityAnalysis, analyze_complexity

logger = logging.getLogger(__name__)

# Weights used for progress and cost estimates only
CHUNK_TOKEN_ESTIMATES = {
    ChunkKind.COMPLETE: 3000,
    ChunkKind.ARCHITECTURE: 3000,
    ChunkKind.PAGE: 2500,
    ChunkKind.FEATURE_SET: 2000,
}

COST_PER_1K_TOKENS = 0.06
SECONDS_PER_CHUNK = 15


@dataclass(frozen=True)
class ProjectStructure:
    pages: List[str] = field(default_factory=list)
    features: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class CostEstimate:
    total_tokens: int
    estimated_cost: float
    total_chunks: int
    estimated_seconds: int


def _match_names(text: str, patterns: dict) -> List[str]:
    names = []
    for name, pattern in patterns.items():
        if re.search(pattern, text, re.IGNORECASE):
            names.append(name)
    return unique_names(names)


def extract_project_structure(text: str, config: Optional[ClassificationConfig] = None) -> ProjectStructure:
    """Match the configured page and feature tables against the request"""
    config = config or ClassificationConfig()
    text = text or ""

    pages = _match_names(text, config.page_patterns)
    if not pages:
        pages = list(config.default_pages)

    features = _match_names(text, config.feature_patterns)

    logger.debug(f"Extracted pages={pages} features={features}")
    return ProjectStructure(pages=pages, features=features)


def _architecture_prompt(request: str, pages: List[str]) -> str:
    return f"""Create the main React project architecture for: {request}. Focus on:
- Project structure and file organization
- Main App.js with routing setup
- Header and Footer components
- Navigation structure
- Global styles and theme
- Package.json with dependencies
Pages needed: {', '.join(pages)}"""


def _page_prompt(request: str, page: str) -> str:
    return f"""Create a detailed {page} page component for: {request}.
- Make it fully functional and responsive
- Include relevant content and sections for {page}
- Use modern React patterns and TailwindCSS
- Add realistic content and placeholder images
- Integrate with the overall project theme"""


def _features_prompt(features: List[str]) -> str:
    return f"""Add these features to the React project: {', '.join(features)}
- Integrate features seamlessly with existing components
- Add necessary state management and hooks
- Include any additional utility functions
- Ensure all features work together properly"""


def create_project_chunks(
    text: str,
    config: Optional[ClassificationConfig] = None,
    analysis: Optional[ComplexityAnalysis] = None,
) -> List[Chunk]:
    """Build the ordered chunk list for a request"""
    config = config or ClassificationConfig()
    analysis = analysis or analyze_complexity(text, config)

    if not analysis.needs_chunking:
        return [Chunk(
            id=1,
            kind=ChunkKind.COMPLETE,
            prompt_text=text,
            human_description="Complete project generation",
            estimated_tokens=CHUNK_TOKEN_ESTIMATES[ChunkKind.COMPLETE],
        )]

    structure = extract_project_structure(text, config)
    chunks = [Chunk(
        id=1,
        kind=ChunkKind.ARCHITECTURE,
        prompt_text=_architecture_prompt(text, structure.pages),
        human_description="Project architecture and navigation",
        estimated_tokens=CHUNK_TOKEN_ESTIMATES[ChunkKind.ARCHITECTURE],
        pages=["App", "Header", "Footer"],
    )]

    for page in structure.pages:
        chunks.append(Chunk(
            id=len(chunks) + 1,
            kind=ChunkKind.PAGE,
            prompt_text=_page_prompt(text, page),
            human_description=f"{page} page component",
            estimated_tokens=CHUNK_TOKEN_ESTIMATES[ChunkKind.PAGE],
            pages=[page],
        ))

    if structure.features:
        chunks.append(Chunk(
            id=len(chunks) + 1,
            kind=ChunkKind.FEATURE_SET,
            prompt_text=_features_prompt(structure.features),
            human_description="Features and integrations",
            estimated_tokens=CHUNK_TOKEN_ESTIMATES[ChunkKind.FEATURE_SET],
            features=list(structure.features),
        ))

    logger.info(f"📋 Planned {len(chunks)} chunks ({len(structure.pages)} pages, {len(structure.features)} features)")
    return chunks


def estimate_project_cost(chunks: List[Chunk]) -> CostEstimate:
    """Rough token, cost and duration estimate for a chunk plan"""
    total_tokens = sum(chunk.estimated_tokens or CHUNK_TOKEN_ESTIMATES[ChunkKind.COMPLETE] for chunk in chunks)
    return CostEstimate(
        total_tokens=total_tokens,
        estimated_cost=round(total_tokens / 1000 * COST_PER_1K_TOKENS, 3),
        total_chunks=len(chunks),
        estimated_seconds=len(chunks) * SECONDS_PER_CHUNK,
    )
