"""
Fallback template store

Pre-built projects returned when the completion backend is unreachable or
exhausted. Templates live in a YAML data asset keyed by category.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

import yaml

from ..core.artifact import Provenance, ProjectArtifact
from ..core.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATES_PATH = Path(__file__).resolve().parent.parent / "data" / "fallback_templates.yaml"
GENERIC_CATEGORY = "generic"
DEMO_PREFIX = "[Demo template]"


class FallbackTemplateStore:
    """Keyword-selected library of fallback artifacts"""

    def __init__(self, templates: Dict[str, Tuple[List[str], ProjectArtifact]]):
        if GENERIC_CATEGORY not in templates:
            raise ConfigurationError(f"Fallback templates must define a '{GENERIC_CATEGORY}' category")
        self._templates = templates

    @classmethod
    def from_yaml(cls, path: Optional[Union[str, Path]] = None) -> "FallbackTemplateStore":
        """Load templates from a YAML asset (packaged asset by default)"""
        path = Path(path) if path else DEFAULT_TEMPLATES_PATH
        if not path.exists():
            raise FileNotFoundError(f"Fallback template file not found: {path}")

        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}

        templates = {}
        for category, entry in (data.get("templates") or {}).items():
            if not entry.get("files"):
                raise ConfigurationError(f"Fallback template '{category}' has no files")
            artifact = ProjectArtifact(
                files=entry["files"],
                description=f"{DEMO_PREFIX} {entry.get('description', category)}",
                pages=entry.get("pages") or [],
                features=entry.get("features") or [],
                provenance=Provenance.FALLBACK,
            )
            keywords = [k.lower() for k in entry.get("keywords") or []]
            templates[category] = (keywords, artifact)

        logger.debug(f"📦 Loaded {len(templates)} fallback templates from {path}")
        return cls(templates)

    @property
    def categories(self) -> List[str]:
        return list(self._templates)

    def get(self, category: str) -> ProjectArtifact:
        return self._templates[category][1]

    def category_for(self, request_text: str) -> str:
        lowered = (request_text or "").lower()
        for category, (keywords, _) in self._templates.items():
            if category == GENERIC_CATEGORY:
                continue
            if any(keyword in lowered for keyword in keywords):
                return category
        return GENERIC_CATEGORY

    def select(self, request_text: str) -> ProjectArtifact:
        """Pick the template whose keywords occur in the request, else the generic one"""
        category = self.category_for(request_text)
        logger.info(f"📦 Serving '{category}' fallback template")
        return self.get(category)
