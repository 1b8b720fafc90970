"""
Project persistence

The orchestrator only needs read-after-write consistency for the current
session, so any store implementing ProjectStore will do. JsonProjectStore
keeps one JSON document per project on local disk.
"""

import json
import logging
import os
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..core.artifact import ChatMessage, ProjectArtifact
from ..core.errors import ProjectNotFoundError

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ProjectStore(ABC):
    """Persistence collaborator contract"""

    @abstractmethod
    def create_project(self, name: str) -> str:
        """Create a project and return its id"""

    @abstractmethod
    def read_project(self, project_id: str) -> Dict[str, Any]:
        """Return the project document"""

    @abstractmethod
    def update_project(self, project_id: str, **fields) -> Dict[str, Any]:
        """Update top-level fields and return the document"""

    @abstractmethod
    def append_chat_message(self, project_id: str, message: ChatMessage) -> None:
        """Append a message to the project's chat log"""

    @abstractmethod
    def append_project_version(self, project_id: str, artifact: ProjectArtifact,
                               change_summary: str) -> Dict[str, Any]:
        """Record a new project version and return it"""

    def load_history(self, project_id: str) -> List[ChatMessage]:
        document = self.read_project(project_id)
        return [ChatMessage.from_dict(m) for m in document.get("messages", [])]

    def current_artifact(self, project_id: str) -> Optional[ProjectArtifact]:
        versions = self.read_project(project_id).get("versions", [])
        if not versions:
            return None
        return ProjectArtifact.from_dict(versions[-1]["artifact"])


class JsonProjectStore(ProjectStore):
    """One JSON file per project under root_dir"""

    PROTECTED_FIELDS = {"id", "messages", "versions", "created_at"}

    def __init__(self, root_dir: str):
        self.root_dir = Path(root_dir)
        self.root_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, project_id: str) -> Path:
        return self.root_dir / f"{project_id}.json"

    def _write(self, document: Dict[str, Any]):
        path = self._path(document["id"])
        tmp_path = path.with_suffix(".json.tmp")
        with open(tmp_path, 'w', encoding='utf-8') as f:
            json.dump(document, f, indent=2)
        os.replace(tmp_path, path)

    def create_project(self, name: str) -> str:
        project_id = uuid.uuid4().hex[:12]
        timestamp = _now()
        self._write({
            "id": project_id,
            "name": name,
            "created_at": timestamp,
            "updated_at": timestamp,
            "messages": [],
            "versions": [],
        })
        logger.info(f"💾 Created project '{name}' ({project_id})")
        return project_id

    def read_project(self, project_id: str) -> Dict[str, Any]:
        path = self._path(project_id)
        if not path.exists():
            raise ProjectNotFoundError(project_id)
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)

    def update_project(self, project_id: str, **fields) -> Dict[str, Any]:
        protected = self.PROTECTED_FIELDS.intersection(fields)
        if protected:
            raise ValueError(f"Cannot update protected fields: {', '.join(sorted(protected))}")
        document = self.read_project(project_id)
        # None values are dropped rather than stored
        document.update({k: v for k, v in fields.items() if v is not None})
        document["updated_at"] = _now()
        self._write(document)
        return document

    def append_chat_message(self, project_id: str, message: ChatMessage) -> None:
        document = self.read_project(project_id)
        data = message.to_dict()
        data["timestamp"] = data.get("timestamp") or _now()
        document["messages"].append(data)
        document["updated_at"] = _now()
        self._write(document)

    def append_project_version(self, project_id: str, artifact: ProjectArtifact,
                               change_summary: str) -> Dict[str, Any]:
        document = self.read_project(project_id)
        version = {
            "id": len(document["versions"]) + 1,
            "timestamp": _now(),
            "change_summary": change_summary,
            "artifact": artifact.to_dict(),
        }
        document["versions"].append(version)
        document["updated_at"] = version["timestamp"]
        self._write(document)
        logger.info(f"💾 Saved version {version['id']} of project {project_id}")
        return version

    def list_projects(self) -> List[Dict[str, Any]]:
        projects = []
        for path in sorted(self.root_dir.glob("*.json")):
            with open(path, 'r', encoding='utf-8') as f:
                document = json.load(f)
            projects.append({
                "id": document["id"],
                "name": document.get("name"),
                "updated_at": document.get("updated_at"),
                "versions": len(document.get("versions", [])),
            })
        return projects
