"""
Project persistence
"""

from .project_store import JsonProjectStore, ProjectStore

__all__ = ["JsonProjectStore", "ProjectStore"]
