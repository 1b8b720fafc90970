"""
Token counting for prompt accounting
"""

import logging

import tiktoken

logger = logging.getLogger(__name__)

DEFAULT_ENCODING = "cl100k_base"


def _encoding_for(model_name: str) -> str:
    if model_name.startswith(("gpt-4o", "o1", "o3", "o4")):
        return "o200k_base"
    return DEFAULT_ENCODING


def count_tokens(text: str, model_name: str = "gpt-4") -> int:
    """
    Count tokens for OpenAI models using tiktoken.

    Falls back to the ~4 characters per token approximation when the
    encoding cannot be loaded (tiktoken downloads its BPE tables lazily).
    """
    if not text:
        return 0

    try:
        encoding = tiktoken.get_encoding(_encoding_for(model_name or ""))
        return len(encoding.encode(text))
    except Exception as e:
        logger.debug(f"tiktoken encoding failed for {model_name}: {e}, using approximation")

    return len(text) // 4
