"""
Tests for sequential chunk execution and result assembly
"""

import pytest

from siteforge.core.artifact import Chunk, ChunkKind, Provenance
from siteforge.core.errors import BackendCallError, FailureKind
from siteforge.generation.chunk_pipeline import ChunkPipeline

from .conftest import HANG, fragment_json


def make_chunks():
    return [
        Chunk(1, ChunkKind.ARCHITECTURE, "architecture prompt", "Project architecture and navigation", 3000,
              pages=["App", "Header", "Footer"]),
        Chunk(2, ChunkKind.PAGE, "home prompt", "Home page component", 2500, pages=["Home"]),
        Chunk(3, ChunkKind.PAGE, "about prompt", "About page component", 2500, pages=["About"]),
    ]


ARCHITECTURE = fragment_json(
    {"src/App.js": "app v1", "src/components/Header.js": "header"},
    description="Architecture", pages=["App"],
)
HOME = fragment_json({"src/pages/Home.js": "home", "src/App.js": "app v2"}, description="Home", pages=["Home"])
ABOUT = fragment_json({"src/pages/About.js": "about"}, description="About", pages=["about", "Home"],
                      features=["Responsive Design"])


@pytest.mark.asyncio
async def test_all_chunks_succeed(config, make_client):
    client, backend = make_client([ARCHITECTURE, HOME, ABOUT])
    events = []
    result = await ChunkPipeline(client, config).run(make_chunks(), "bakery site", events.append)

    assert result.success
    artifact = result.artifact
    assert artifact.provenance == Provenance.CHUNKED
    assert artifact.files["src/App.js"] == "app v2"
    assert set(artifact.files) == {"src/App.js", "src/components/Header.js", "src/pages/Home.js",
                                   "src/pages/About.js"}
    assert artifact.pages == ["App", "Home", "about"]
    assert artifact.features == ["Responsive Design"]
    assert artifact.description == "Architecture | Home | About"
    assert [call["messages"][1]["content"] for call in backend.calls] == [
        "architecture prompt", "home prompt", "about prompt"
    ]
    assert [(e.current_chunk, e.total_chunks, e.status) for e in events] == [
        (1, 3, "processing"), (1, 3, "completed"),
        (2, 3, "processing"), (2, 3, "completed"),
        (3, 3, "processing"), (3, 3, "completed"),
    ]


@pytest.mark.asyncio
async def test_partial_failure_keeps_other_chunks(config, make_client):
    client, backend = make_client([ARCHITECTURE, BackendCallError(429, "Rate limit reached"), ABOUT])
    events = []
    result = await ChunkPipeline(client, config).run(make_chunks(), "bakery site", events.append)

    assert result.success
    assert len(backend.calls) == 3
    assert "src/pages/About.js" in result.artifact.files
    assert "src/pages/Home.js" not in result.artifact.files
    failed = result.failed_chunks
    assert [r.chunk_id for r in failed] == [2]
    assert failed[0].failure_kind == FailureKind.RATE_LIMITED
    assert "Rate limit" in failed[0].error
    assert events[3].status == "error"
    assert events[3].error == failed[0].error


@pytest.mark.asyncio
async def test_all_chunks_fail(config, make_client):
    client, _ = make_client([BackendCallError(403, "Forbidden")] * 3)
    result = await ChunkPipeline(client, config).run(make_chunks(), "bakery site")

    assert not result.success
    assert result.artifact is None
    assert len(result.chunk_results) == 3
    assert all(r.failure_kind == FailureKind.INVALID_CREDENTIALS for r in result.chunk_results)
    assert "API key" in result.error


@pytest.mark.asyncio
async def test_fallback_stops_remaining_chunks(config, make_client):
    client, backend = make_client([HANG, HANG, HOME, ABOUT])
    events = []
    result = await ChunkPipeline(client, config).run(make_chunks(), "a photographer portfolio", events.append)

    assert len(backend.calls) == 2
    assert result.success
    assert result.artifact.provenance == Provenance.FALLBACK
    assert "demo template" in result.error
    assert [r.succeeded for r in result.chunk_results] == [False, False, False]
    assert result.chunk_results[0].failure_kind == FailureKind.TIMEOUT
    assert result.chunk_results[2].error == "Skipped: backend unavailable"
    assert [e.status for e in events] == ["processing", "error", "error", "error"]


@pytest.mark.asyncio
async def test_fallback_after_success_keeps_generated_chunks(config, make_client):
    client, backend = make_client([ARCHITECTURE, HANG, HANG])
    result = await ChunkPipeline(client, config).run(make_chunks(), "bakery site")

    assert result.success
    assert result.artifact.provenance == Provenance.CHUNKED
    assert set(result.artifact.files) == {"src/App.js", "src/components/Header.js"}
    assert len(backend.calls) == 3
    assert [r.succeeded for r in result.chunk_results] == [True, False, False]


@pytest.mark.asyncio
async def test_inter_chunk_delay_between_chunks_only(config, make_client, monkeypatch):
    config.generation.inter_chunk_delay = 0.5
    delays = []

    async def fake_sleep(seconds):
        delays.append(seconds)

    monkeypatch.setattr("siteforge.generation.chunk_pipeline.asyncio.sleep", fake_sleep)
    client, _ = make_client([ARCHITECTURE, HOME, ABOUT])
    await ChunkPipeline(client, config).run(make_chunks(), "bakery site")

    assert delays == [0.5, 0.5]
