"""
Complexity classification: decides whether a request must be decomposed
"""

from dataclasses import dataclass
from typing import Optional

from ..core.config import ClassificationConfig


@dataclass(frozen=True)
class ComplexityAnalysis:
    needs_chunking: bool
    estimated_complexity: str  # 'high' or 'medium'
    word_count: int
    has_complex_feature_keyword: bool


def analyze_complexity(text: str, config: Optional[ClassificationConfig] = None) -> ComplexityAnalysis:
    """Classify a request; pure function of the text and the keyword configuration"""
    config = config or ClassificationConfig()
    words = (text or "").split()

    if not words:
        return ComplexityAnalysis(False, "medium", 0, False)

    lowered = text.lower()
    has_keyword = any(keyword.lower() in lowered for keyword in config.complexity_keywords)
    mentions_several_pages = lowered.count("page") > 1

    needs_chunking = (
        len(words) > config.chunking_word_threshold
        or has_keyword
        or mentions_several_pages
    )

    return ComplexityAnalysis(
        needs_chunking=needs_chunking,
        estimated_complexity="high" if needs_chunking else "medium",
        word_count=len(words),
        has_complex_feature_keyword=has_keyword,
    )
