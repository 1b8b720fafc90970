import asyncio
import json

import pytest

from siteforge.core.config import AttemptPolicy, Config
from siteforge.core.errors import BackendCallError
from siteforge.generation.backend_client import BackendClient, CompletionBackend
from siteforge.generation.fallback_templates import FallbackTemplateStore

HANG = object()


class ScriptedBackend(CompletionBackend):
    """Plays back a list of responses: text, a BackendCallError to raise, or HANG"""

    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    async def complete(self, model, messages, temperature, max_tokens, timeout=None):
        self.calls.append({"model": model, "messages": messages, "max_tokens": max_tokens, "timeout": timeout})
        if not self.responses:
            raise BackendCallError(500, "no scripted response left")
        response = self.responses.pop(0)
        if response is HANG:
            await asyncio.sleep(10)
            return ""
        if isinstance(response, Exception):
            raise response
        return response


def fragment_json(files, description="", pages=(), features=(), **extra):
    payload = {
        "projectStructure": files,
        "description": description,
        "pages": list(pages),
        "features": list(features),
    }
    payload.update(extra)
    return json.dumps(payload)


@pytest.fixture(autouse=True)
def no_tiktoken(monkeypatch):
    """Keep prompt token accounting offline"""
    monkeypatch.setattr("siteforge.generation.backend_client.count_tokens", lambda text, model=None: len(text) // 4)


@pytest.fixture
def config():
    config = Config()
    config.api.openai_api_key = "sk-test-0123456789"
    config.generation.base_delay = 0.0
    config.generation.max_delay = 0.0
    config.generation.inter_chunk_delay = 0.0
    config.generation.attempt_policies = [
        AttemptPolicy("fast", "model-small", 0.05, 1000, "full"),
        AttemptPolicy("standard", "model-medium", 0.05, 2000, "full"),
        AttemptPolicy("capable", "model-large", 0.05, 3000, "compact"),
    ]
    return config


@pytest.fixture
def templates():
    return FallbackTemplateStore.from_yaml()


@pytest.fixture
def make_client(config, templates):
    def _make(responses):
        backend = ScriptedBackend(responses)
        return BackendClient(config, backend=backend, templates=templates), backend
    return _make
