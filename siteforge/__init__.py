"""
SiteForge: turns a free-text description into a generated project artifact

This package provides the generation orchestration pipeline: complexity
classification, task chunking, resilient backend calls with fallback
templates, conversation-context reconstruction and artifact merging.
"""

__version__ = "0.1.0"
__author__ = "SiteForge Team"

from .core import *

__all__ = [
    "__version__",
    "__author__",
]
