import pytest

from siteforge.utils import token_counter
from siteforge.utils.rate_limiter import RateLimiter


def test_count_tokens_falls_back_to_approximation(monkeypatch):
    def broken_encoding(name):
        raise ValueError(f"cannot load {name}")

    monkeypatch.setattr(token_counter.tiktoken, "get_encoding", broken_encoding)
    assert token_counter.count_tokens("x" * 40, "gpt-4o") == 10
    assert token_counter.count_tokens("", "gpt-4o") == 0


def test_encoding_selection():
    assert token_counter._encoding_for("gpt-4o-mini") == "o200k_base"
    assert token_counter._encoding_for("gpt-4-turbo") == "cl100k_base"


@pytest.mark.asyncio
async def test_rate_limiter_releases_slot_on_error():
    limiter = RateLimiter(max_requests_per_minute=10, max_concurrent_requests=1)

    with pytest.raises(RuntimeError):
        async with limiter.acquire():
            raise RuntimeError("call failed")

    async with limiter.acquire():
        assert len(limiter.request_timestamps) == 2
