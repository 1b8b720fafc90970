import pytest

from siteforge.core.artifact import ChatMessage, ProjectArtifact, Provenance
from siteforge.core.errors import ProjectNotFoundError
from siteforge.storage.project_store import JsonProjectStore

ARTIFACT = ProjectArtifact(files={"index.html": "<p>hi</p>"}, pages=["Home"], provenance=Provenance.CHUNKED)


@pytest.fixture
def store(tmp_path):
    return JsonProjectStore(tmp_path / "projects")


def test_create_and_read(store):
    project_id = store.create_project("Bakery")
    document = store.read_project(project_id)
    assert document["name"] == "Bakery"
    assert document["messages"] == []
    assert document["versions"] == []
    assert store.current_artifact(project_id) is None


def test_missing_project(store):
    with pytest.raises(ProjectNotFoundError):
        store.read_project("does-not-exist")


def test_update_project(store):
    project_id = store.create_project("Bakery")
    document = store.update_project(project_id, name="Corner Bakery", description=None)
    assert document["name"] == "Corner Bakery"
    assert "description" not in document
    with pytest.raises(ValueError):
        store.update_project(project_id, versions=[])


def test_chat_history_round_trip(store):
    project_id = store.create_project("Bakery")
    store.append_chat_message(project_id, ChatMessage("user", "make it pink"))
    store.append_chat_message(project_id, ChatMessage("assistant", "done", artifact=ARTIFACT))

    history = store.load_history(project_id)
    assert [m.role for m in history] == ["user", "assistant"]
    assert history[0].timestamp is not None
    assert history[1].artifact == ARTIFACT


def test_versions(store):
    project_id = store.create_project("Bakery")
    store.append_project_version(project_id, ARTIFACT, "Created new project with 1 pages and 0 features")
    version = store.append_project_version(project_id, ARTIFACT, "Modified 1 files, updated existing functionality")

    assert version["id"] == 2
    assert store.current_artifact(project_id) == ARTIFACT
    assert not list(store.root_dir.glob("*.tmp"))


def test_list_projects(store):
    first = store.create_project("One")
    store.create_project("Two")
    store.append_project_version(first, ARTIFACT, "v1")

    projects = {p["id"]: p for p in store.list_projects()}
    assert len(projects) == 2
    assert projects[first]["versions"] == 1
