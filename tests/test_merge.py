"""
Tests for the merge engine and change summaries
"""

import pytest

from siteforge.conversation.merge import extract_change_summary, merge_project_changes, merge_with_summary
from siteforge.core.artifact import ProjectArtifact, Provenance, RequestType

EXISTING = ProjectArtifact(
    files={"index.html": "<h1>Home</h1>", "about.html": "<h1>About</h1>"},
    description="Studio site",
    pages=["Home", "About"],
    features=["Responsive Design"],
)
CONTACT = ProjectArtifact(
    files={"contact.html": "<form></form>", "index.html": "<h1>Home v2</h1>"},
    description="",
    pages=["Contact", "home"],
    features=["Contact Form"],
)


def test_addition_scenario():
    merged = merge_project_changes(EXISTING, CONTACT, RequestType.ADDITION)

    assert merged.pages == ["Home", "About", "Contact"]
    assert merged.features == ["Responsive Design", "Contact Form"]
    assert merged.files == {
        "index.html": "<h1>Home v2</h1>",
        "about.html": "<h1>About</h1>",
        "contact.html": "<form></form>",
    }
    assert merged.description == "Studio site"
    assert merged.change_type == "addition"
    assert merged.modified_files == ["contact.html", "index.html"]


def test_merge_is_idempotent():
    once = merge_project_changes(EXISTING, CONTACT, RequestType.MODIFICATION)
    twice = merge_project_changes(once, CONTACT, RequestType.MODIFICATION)
    assert twice == once


def test_new_project_replaces_state():
    assert merge_project_changes(EXISTING, CONTACT, RequestType.NEW_PROJECT) is CONTACT


def test_no_existing_state():
    assert merge_project_changes(None, CONTACT, RequestType.MODIFICATION) is CONTACT


def test_inputs_are_not_mutated():
    merge_project_changes(EXISTING, CONTACT, RequestType.ADDITION)
    assert set(EXISTING.files) == {"index.html", "about.html"}
    assert EXISTING.pages == ["Home", "About"]


def test_provenance_and_modified_files_come_from_new():
    new = ProjectArtifact(files={"a.js": "1"}, provenance=Provenance.CHUNKED, modified_files=["a.js", "b.js"])
    merged = merge_project_changes(EXISTING, new, RequestType.MODIFICATION)
    assert merged.provenance == Provenance.CHUNKED
    assert merged.modified_files == ["a.js", "b.js"]


@pytest.mark.parametrize("change_type, expected", [
    (RequestType.ADDITION, "Added 2 files, 2 pages, 1 features"),
    ("modification", "Modified 2 files, updated existing functionality"),
    ("enhancement", "Enhanced project with improved 2 components"),
    (RequestType.NEW_PROJECT, "Created new project with 2 pages and 1 features"),
    ("something-else", "Updated project with 2 changes"),
])
def test_change_summary(change_type, expected):
    assert extract_change_summary(CONTACT, change_type) == expected


def test_change_summary_without_changes():
    assert extract_change_summary(None, RequestType.ADDITION) == "No changes detected"


def test_backend_change_type_wins_for_summary():
    new = ProjectArtifact(files={"x.html": "x"}, pages=["X"], change_type="addition")
    result = merge_with_summary(EXISTING, new, RequestType.MODIFICATION)
    assert result.change_summary == "Added 1 files, 1 pages, 0 features"
    assert result.artifact.change_type == "modification"


def test_new_project_summary_ignores_backend_change_type():
    new = ProjectArtifact(files={"x.html": "x"}, pages=["X"], change_type="modification")
    result = merge_with_summary(None, new, RequestType.NEW_PROJECT)
    assert result.change_summary == "Created new project with 1 pages and 0 features"
