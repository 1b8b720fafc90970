"""
Merge engine: combines a new artifact with the previous project state
"""

from dataclasses import dataclass
from typing import Optional, Union

from ..core.artifact import ProjectArtifact, RequestType, unique_names


@dataclass(frozen=True)
class MergeResult:
    artifact: ProjectArtifact
    change_summary: str


def _type_value(change_type: Union[RequestType, str, None]) -> Optional[str]:
    if isinstance(change_type, RequestType):
        return change_type.value
    return change_type


def merge_project_changes(existing: Optional[ProjectArtifact], new: ProjectArtifact,
                          request_type: RequestType) -> ProjectArtifact:
    """Merge ``new`` into ``existing``; pure and deterministic.

    ``new_project`` (or no existing state) replaces the state with ``new``.
    Otherwise colliding paths take the new content, new paths are added,
    and pages/features become the case-insensitive union, existing first.
    """
    if existing is None or request_type == RequestType.NEW_PROJECT:
        return new

    files = dict(existing.files)
    files.update(new.files)

    return ProjectArtifact(
        files=files,
        description=new.description or existing.description,
        pages=unique_names(existing.pages + new.pages),
        features=unique_names(existing.features + new.features),
        provenance=new.provenance,
        change_type=request_type.value,
        modified_files=list(new.modified_files) or sorted(new.files),
    )


def extract_change_summary(changes: Optional[ProjectArtifact],
                           change_type: Union[RequestType, str, None]) -> str:
    """Human-readable summary of what a fragment changed"""
    if changes is None:
        return "No changes detected"

    modified = len(changes.modified_files or changes.files)
    pages = len(changes.pages)
    features = len(changes.features)
    kind = _type_value(change_type)

    if kind == "addition":
        return f"Added {modified} files, {pages} pages, {features} features"
    if kind == "modification":
        return f"Modified {modified} files, updated existing functionality"
    if kind == "enhancement":
        return f"Enhanced project with improved {modified} components"
    if kind == "new_project":
        return f"Created new project with {pages} pages and {features} features"
    return f"Updated project with {modified} changes"


def merge_with_summary(existing: Optional[ProjectArtifact], new: ProjectArtifact,
                       request_type: RequestType) -> MergeResult:
    """Merge and summarise; the backend's own change type wins for the summary"""
    merged = merge_project_changes(existing, new, request_type)
    summary_type = request_type.value
    if request_type != RequestType.NEW_PROJECT and new.change_type:
        summary_type = new.change_type
    return MergeResult(merged, extract_change_summary(new, summary_type))
