"""
Backend client for the completion service

Issues completion calls with a bounded timeout, classifies outcomes, and
owns the retry/backoff and model/prompt downgrade policy. Callers always
receive a GenerationResult: a parsed artifact, a fallback artifact, or a
classified error message.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import httpx
import openai

from ..core.artifact import GenerationAttempt, GenerationResult, Provenance
from ..core.config import APIConfig, AttemptPolicy, Config
from ..core.errors import BackendCallError, ConfigurationError, FailureKind, is_retryable, user_message
from ..utils.llm_parsing import ResponseParser
from ..utils.rate_limiter import RateLimiter
from ..utils.token_counter import count_tokens
from .fallback_templates import FallbackTemplateStore

logger = logging.getLogger(__name__)

PLACEHOLDER_KEY_MARKERS = ("your_", "your-", "placeholder", "here", "xxx", "changeme")


class CallState(Enum):
    """States of a single backend call"""
    IDLE = "idle"
    SENT = "sent"
    SUCCEEDED = "succeeded"
    RETRYABLE = "retryable"
    NON_RETRYABLE = "non_retryable"
    TIMED_OUT = "timed_out"


class CompletionBackend(ABC):
    """Contract of the external completion service"""

    @abstractmethod
    async def complete(self, model: str, messages: List[Dict[str, str]], temperature: float,
                       max_tokens: int, timeout: Optional[float] = None) -> str:
        """Return the completion text or raise BackendCallError"""


class OpenAICompletionBackend(CompletionBackend):
    """Chat completions through the openai SDK"""

    def __init__(self, api_config: APIConfig):
        client_kwargs: Dict[str, Any] = {}

        if api_config.openai_api_key:
            client_kwargs["api_key"] = api_config.openai_api_key
        if api_config.openai_base_url:
            client_kwargs["base_url"] = api_config.openai_base_url.rstrip("/")
        if api_config.openai_timeout:
            client_kwargs["timeout"] = api_config.openai_timeout
        # Retries are owned by BackendClient
        client_kwargs["max_retries"] = 0

        self._http_client: Optional[httpx.AsyncClient] = None
        if api_config.disable_proxy:
            self._http_client = httpx.AsyncClient(trust_env=False)
            client_kwargs["http_client"] = self._http_client
            logger.info("🚫 Proxy usage disabled for the OpenAI client")

        self.client = openai.AsyncOpenAI(**client_kwargs)
        if api_config.openai_base_url:
            logger.info(f"🔗 OpenAI base URL configured: {api_config.openai_base_url}")

    async def complete(self, model: str, messages: List[Dict[str, str]], temperature: float,
                       max_tokens: int, timeout: Optional[float] = None) -> str:
        request_kwargs: Dict[str, Any] = {}
        if timeout:
            request_kwargs["timeout"] = timeout

        try:
            response = await self.client.chat.completions.create(
                model=model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
                **request_kwargs
            )
        except openai.APITimeoutError as e:
            raise BackendCallError(408, f"Request timed out: {e}") from e
        except openai.APIStatusError as e:
            raise BackendCallError(e.status_code, str(e.message)) from e
        except openai.APIConnectionError as e:
            raise BackendCallError(None, f"Connection error: {e}") from e

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

    async def aclose(self):
        await self.client.close()
        if self._http_client is not None:
            await self._http_client.aclose()


def credential_problem(api_key: Optional[str], prefix: str = "sk-") -> Optional[str]:
    """Describe why an API key is unusable, or None if it looks valid"""
    if not api_key:
        return "API key not configured"
    lowered = api_key.lower()
    if any(marker in lowered for marker in PLACEHOLDER_KEY_MARKERS):
        return "API key is a placeholder value"
    if prefix and not api_key.startswith(prefix):
        return f"API key should start with '{prefix}'"
    return None


class BackendClient:
    """Resilient completion client with attempt policy, backoff and fallback"""

    def __init__(
        self,
        config: Config,
        backend: Optional[CompletionBackend] = None,
        templates: Optional[FallbackTemplateStore] = None,
        rate_limiter: Optional[RateLimiter] = None,
        parser: Optional[ResponseParser] = None,
    ):
        if config.generation.max_attempts < 1 or not config.generation.attempt_policies:
            raise ConfigurationError(
                "generation.max_attempts must be at least 1 and attempt_policies must not be empty"
            )
        self.config = config
        self._backend = backend
        self.templates = templates or FallbackTemplateStore.from_yaml(config.data.templates_path)
        self.rate_limiter = rate_limiter or RateLimiter(
            config.api.max_requests_per_minute, config.api.max_concurrent_requests
        )
        self.parser = parser or ResponseParser()

    @property
    def backend(self) -> CompletionBackend:
        # Created on first call; offline and bad-credential paths never need it
        if self._backend is None:
            self._backend = OpenAICompletionBackend(self.config.api)
        return self._backend

    async def aclose(self):
        if isinstance(self._backend, OpenAICompletionBackend):
            await self._backend.aclose()

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        request_text: Optional[str] = None,
        compact_system_prompt: Optional[str] = None,
        provenance: Provenance = Provenance.DIRECT,
    ) -> GenerationResult:
        """Generate an artifact; never raises for backend failures"""
        request_text = request_text or user_prompt
        gen = self.config.generation

        if self.config.api.offline_mode:
            logger.info("📴 Offline mode, skipping backend call")
            return self._fallback_result(request_text, [], None, "offline mode")

        problem = credential_problem(self.config.api.openai_api_key, self.config.api.api_key_prefix)
        if problem:
            logger.error(f"🚨 Invalid credentials: {problem}")
            return GenerationResult(
                success=False,
                error=user_message(FailureKind.INVALID_CREDENTIALS, problem),
                failure_kind=FailureKind.INVALID_CREDENTIALS,
            )

        attempts: List[GenerationAttempt] = []
        consecutive_timeouts = 0
        last_kind: Optional[FailureKind] = None
        last_detail: Optional[str] = None

        for attempt_number in range(1, gen.max_attempts + 1):
            policy = gen.policy_for(attempt_number)
            prompt = system_prompt
            if policy.prompt_variant == "compact" and compact_system_prompt:
                prompt = compact_system_prompt

            attempt = GenerationAttempt(
                attempt_number=attempt_number,
                model_tier=policy.model_tier,
                model=policy.model,
                timeout_seconds=policy.timeout_seconds,
                max_tokens=policy.max_tokens,
                prompt_variant=policy.prompt_variant,
                prompt_tokens=count_tokens(prompt + user_prompt, policy.model),
            )
            attempts.append(attempt)

            state, content, kind, detail = await self._attempt(attempt, policy, prompt, user_prompt)

            if state == CallState.SUCCEEDED:
                parsed = self.parser.parse(content, request_text, provenance)
                if parsed is not None:
                    logger.info(f"✅ Attempt {attempt_number} succeeded ({parsed.level.value} parse, "
                                f"{len(parsed.artifact.files)} files)")
                    return GenerationResult(
                        success=True,
                        artifact=parsed.artifact,
                        attempts=attempts,
                        parse_level=parsed.level.value,
                    )
                state, kind, detail = CallState.RETRYABLE, FailureKind.MALFORMED_RESPONSE, "empty response"
                self._log_transition(attempt, state, detail)

            last_kind, last_detail = kind, detail

            if state == CallState.NON_RETRYABLE:
                return GenerationResult(
                    success=False,
                    error=user_message(kind, detail),
                    failure_kind=kind,
                    attempts=attempts,
                )

            if state == CallState.TIMED_OUT:
                consecutive_timeouts += 1
                if consecutive_timeouts >= gen.consecutive_timeout_limit:
                    logger.warning(f"⏰ {consecutive_timeouts} consecutive timeouts, short-circuiting to fallback")
                    return self._fallback_result(request_text, attempts, kind, "repeated timeouts")
            else:
                consecutive_timeouts = 0

            if attempt_number < gen.max_attempts:
                delay = min(gen.base_delay * (2 ** (attempt_number - 1)), gen.max_delay)
                logger.info(f"🔁 Retrying in {delay:.1f}s after {kind.value} (attempt {attempt_number}/{gen.max_attempts})")
                await asyncio.sleep(delay)

        logger.warning(f"❌ All {gen.max_attempts} attempts failed ({last_kind.value}), serving fallback")
        return self._fallback_result(request_text, attempts, last_kind, last_detail or "retries exhausted")

    async def _attempt(
        self, attempt: GenerationAttempt, policy: AttemptPolicy, system_prompt: str, user_prompt: str
    ) -> Tuple[CallState, Optional[str], Optional[FailureKind], Optional[str]]:
        """Run one call: IDLE -> SENT -> terminal state"""
        self._log_transition(attempt, CallState.IDLE)
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]

        try:
            async with self.rate_limiter.acquire():
                self._log_transition(attempt, CallState.SENT)
                content = await asyncio.wait_for(
                    self.backend.complete(
                        model=policy.model,
                        messages=messages,
                        temperature=self.config.generation.temperature,
                        max_tokens=policy.max_tokens,
                        timeout=policy.timeout_seconds,
                    ),
                    timeout=policy.timeout_seconds,
                )
        except asyncio.TimeoutError:
            detail = f"no response within {policy.timeout_seconds:.0f}s"
            self._log_transition(attempt, CallState.TIMED_OUT, detail)
            return CallState.TIMED_OUT, None, FailureKind.TIMEOUT, detail
        except BackendCallError as e:
            kind = e.kind
            if kind == FailureKind.TIMEOUT:
                state = CallState.TIMED_OUT
            elif is_retryable(kind):
                state = CallState.RETRYABLE
            else:
                state = CallState.NON_RETRYABLE
            self._log_transition(attempt, state, e.message)
            return state, None, kind, e.message

        if not content or not content.strip():
            self._log_transition(attempt, CallState.RETRYABLE, "empty response")
            return CallState.RETRYABLE, None, FailureKind.MALFORMED_RESPONSE, "empty response"

        self._log_transition(attempt, CallState.SUCCEEDED, f"{len(content)} chars")
        return CallState.SUCCEEDED, content, None, None

    def _fallback_result(self, request_text: str, attempts: List[GenerationAttempt],
                         kind: Optional[FailureKind], reason: str) -> GenerationResult:
        artifact = self.templates.select(request_text)
        return GenerationResult(
            success=True,
            artifact=artifact,
            error=f"Backend unavailable ({reason}); showing a demo template",
            failure_kind=kind,
            attempts=attempts,
        )

    @staticmethod
    def _log_transition(attempt: GenerationAttempt, state: CallState, detail: Optional[str] = None):
        suffix = f" ({detail})" if detail else ""
        message = (f"Attempt {attempt.attempt_number} [{attempt.model_tier}/{attempt.model}, "
                   f"{attempt.timeout_seconds:.0f}s] -> {state.value}{suffix}")
        if state in (CallState.IDLE, CallState.SENT, CallState.SUCCEEDED):
            logger.debug(message)
        else:
            logger.warning(message)
