import asyncio
import inspect
import logging
import random
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar, Union

from openai import OpenAI
from langchain_google_vertexai import VertexAI

from reconstructor.errors import RemoteCallError
from reconstructor.settings import (
    BACKOFF_BASE_SECONDS,
    BACKOFF_JITTER_SECONDS,
    MAX_ATTEMPTS,
    PROJECT_ID,
    REGION,
    GenerationSettings,
)

logger = logging.getLogger("evoki_reconstructor")

T = TypeVar("T")

RETRYABLE_MARKERS = ("500", "UNKNOWN", "UNAVAILABLE")


def is_retryable_error(e: BaseException) -> bool:
    """Internal server errors and UNKNOWN/UNAVAILABLE conditions are worth another attempt."""
    msg = str(e)
    return any(marker in msg for marker in RETRYABLE_MARKERS)


def exponential_backoff(
    attempt: int,
    *,
    base: float = BACKOFF_BASE_SECONDS,
    jitter: float = BACKOFF_JITTER_SECONDS,
) -> float:
    """Seconds to wait after the 0-indexed `attempt` failed: base * 2^attempt plus up to `jitter` of noise."""
    return base * (2 ** attempt) + random.uniform(0, jitter)


async def call_with_retries(
    fn: Callable[[], Union[T, Awaitable[T]]],
    *,
    max_attempts: int = MAX_ATTEMPTS,
    is_retryable: Callable[[BaseException], bool] = is_retryable_error,
    backoff: Callable[[int], float] = exponential_backoff,
    log: Callable[[str], None] | None = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> T:
    """
    Run `fn` up to `max_attempts` times.

    Only failures accepted by `is_retryable` are retried; anything else, and the
    failure of the last attempt, is re-raised unchanged. Sync callables run in a
    worker thread so the event loop stays free, and the backoff is an awaited sleep.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    for attempt in range(max_attempts):
        try:
            if inspect.iscoroutinefunction(fn):
                return await fn()
            result = await asyncio.to_thread(fn)
            if inspect.isawaitable(result):
                result = await result
            return result
        except Exception as e:
            if attempt + 1 >= max_attempts or not is_retryable(e):
                raise

            delay = backoff(attempt)
            if log:
                log(
                    f"Versuch {attempt + 1}/{max_attempts} fehlgeschlagen ({e}). "
                    f"Neuer Versuch in {int(round(delay * 1000))} ms."
                )
            await sleep(delay)


def is_openai_model(model_name) -> bool:
    prefixes = ("gpt-", "gpt4", "gpt-4", "gpt-5")
    return any(model_name.startswith(p) for p in prefixes)


class BaseLlmClient:
    """
    Usage accounting shared by both providers.
    """

    last_usage: Optional[Dict[str, int]]

    def _merge_usage(self, resp: Any) -> None:
        if resp is None:
            return
        usage = getattr(resp, "usage", None)
        if usage is None:
            return
        inc = {
            "prompt_token_count": getattr(usage, "input_tokens", 0) or 0,
            "candidates_token_count": getattr(usage, "output_tokens", 0) or 0,
            "total_token_count": getattr(usage, "total_tokens", 0) or 0,
        }
        self._accumulate(inc)

    def _merge_vertex_usage(self, usage_metadata: Any) -> None:
        if not usage_metadata:
            return

        def get(k: str) -> int:
            if isinstance(usage_metadata, dict):
                return int(usage_metadata.get(k, 0) or 0)
            return int(getattr(usage_metadata, k, 0) or 0)

        self._accumulate({
            "prompt_token_count": get("prompt_token_count"),
            "candidates_token_count": get("candidates_token_count"),
            "total_token_count": get("total_token_count"),
        })

    def _accumulate(self, inc: Dict[str, int]) -> None:
        if self.last_usage is None:
            self.last_usage = dict(inc)
            return
        for k, v in inc.items():
            self.last_usage[k] = (self.last_usage.get(k, 0) or 0) + (v or 0)

    def reset_usage(self) -> None:
        self.last_usage = None


class LlmClient(BaseLlmClient):
    """
    Completion-style wrapper around the generation endpoint:

        text = await llm.ainvoke(prompt)

    Under the hood:
    - Vertex (Gemini): VertexAI.invoke(prompt) with a JSON response mime type
    - OpenAI: Responses API (client.responses.create) with json_object output
    """

    def __init__(
        self,
        settings: GenerationSettings,
        *,
        vertex_project: str = PROJECT_ID,
        vertex_region: str = REGION,
    ):
        self.settings = settings
        self.model_name = settings.model
        self.provider = "openai" if is_openai_model(settings.model) else "vertex"
        self.last_usage: Optional[Dict[str, int]] = None

        if self.provider == "vertex":
            self._vertex = VertexAI(
                project=vertex_project,
                location=vertex_region,
                model_name=settings.model,
                temperature=settings.temperature,
                top_k=settings.top_k,
                top_p=settings.top_p,
                max_output_tokens=settings.max_output_tokens,
                response_mime_type=settings.response_mime_type,
                timeout=settings.timeout,
            )
            self._client = None
        else:
            self._vertex = None
            client_kwargs: Dict[str, Any] = {"max_retries": 0}
            if settings.timeout is not None:
                client_kwargs["timeout"] = settings.timeout
            self._client = OpenAI(**client_kwargs)

    def _invoke_once(self, prompt: str) -> str:
        """
        Single HTTP call without retries/backoff.
        """
        if self.provider == "vertex":
            resp = self._vertex.invoke(prompt)

            usage_md = getattr(resp, "usage_metadata", None)
            if usage_md is None:
                rm = getattr(resp, "response_metadata", None)
                if isinstance(rm, dict):
                    usage_md = rm.get("usage_metadata")
            self._merge_vertex_usage(usage_md)

            if isinstance(resp, str):
                return resp
            return getattr(resp, "content", str(resp))

        resp = self._client.responses.create(
            model=self.model_name,
            input=prompt,
            temperature=self.settings.temperature,
            top_p=self.settings.top_p,
            max_output_tokens=self.settings.max_output_tokens,
            text={"format": {"type": "json_object"}},
        )
        self._merge_usage(resp)

        text = getattr(resp, "output_text", "") or ""
        return text.strip()

    async def ainvoke(self, prompt: str, *, log: Callable[[str], None] | None = None) -> str:
        """
        Call with the bounded retry policy. Any final failure is reported as RemoteCallError.
        """
        self.reset_usage()
        try:
            text = await call_with_retries(lambda: self._invoke_once(prompt), log=log)
        except Exception as e:
            raise RemoteCallError(str(e) or e.__class__.__name__) from e

        if self.last_usage:
            logger.info("LLM usage (%s): %s", self.model_name, self.last_usage)
        return text
