"""
Tests for the retry combinator and the LLM client wrapper
"""

import asyncio
from unittest import mock

import pytest

from reconstructor.errors import RemoteCallError
from reconstructor.llm_client import (
    LlmClient,
    call_with_retries,
    exponential_backoff,
    is_openai_model,
    is_retryable_error,
)


def _run(coro):
    return asyncio.run(coro)


class TestRetryClassifier:

    @pytest.mark.parametrize("message", [
        "500 Internal error encountered.",
        "Request failed: UNKNOWN",
        "503 UNAVAILABLE: backend overloaded",
    ])
    def test_retryable(self, message):
        assert is_retryable_error(RuntimeError(message))

    @pytest.mark.parametrize("message", [
        "400 INVALID_ARGUMENT",
        "429 RESOURCE_EXHAUSTED",
        "403 PERMISSION_DENIED",
    ])
    def test_not_retryable(self, message):
        assert not is_retryable_error(RuntimeError(message))


class TestBackoff:

    def test_exponential_with_jitter(self):
        with mock.patch("reconstructor.llm_client.random.uniform", return_value=0.1) as uniform:
            assert exponential_backoff(0) == pytest.approx(1.1)
            assert exponential_backoff(1) == pytest.approx(2.1)
            assert exponential_backoff(2) == pytest.approx(4.1)
        uniform.assert_called_with(0, 0.2)

    def test_bounds(self):
        for attempt in range(3):
            delay = exponential_backoff(attempt)
            assert 2 ** attempt <= delay <= 2 ** attempt + 0.2


class TestCallWithRetries:

    def test_two_retryable_failures_then_success(self):
        calls = []
        warnings = []
        sleeps = []

        def flaky():
            calls.append(1)
            if len(calls) < 3:
                raise RuntimeError("503 UNAVAILABLE")
            return "ok"

        async def fake_sleep(delay):
            # the warning is logged before the delay starts
            assert len(warnings) == len(sleeps) + 1
            sleeps.append(delay)

        result = _run(call_with_retries(flaky, log=warnings.append, sleep=fake_sleep))

        assert result == "ok"
        assert len(calls) == 3
        assert len(warnings) == 2
        assert 1.0 <= sleeps[0] <= 1.2
        assert 2.0 <= sleeps[1] <= 2.2
        assert "ms" in warnings[0]

    def test_non_retryable_raises_immediately(self):
        calls = []
        sleeps = []

        def broken():
            calls.append(1)
            raise ValueError("400 INVALID_ARGUMENT")

        async def fake_sleep(delay):
            sleeps.append(delay)

        with pytest.raises(ValueError, match="INVALID_ARGUMENT"):
            _run(call_with_retries(broken, sleep=fake_sleep))
        assert len(calls) == 1
        assert sleeps == []

    def test_exhausted_reraises_last_error(self):
        calls = []

        def always_500():
            calls.append(1)
            raise RuntimeError(f"500 attempt {len(calls)}")

        async def fake_sleep(delay):
            pass

        with pytest.raises(RuntimeError, match="attempt 3"):
            _run(call_with_retries(always_500, sleep=fake_sleep))
        assert len(calls) == 3

    def test_coroutine_functions_are_awaited(self):
        async def answer():
            return 42

        assert _run(call_with_retries(answer)) == 42

    def test_custom_policy(self):
        calls = []

        def flaky():
            calls.append(1)
            raise KeyError("anything")

        async def fake_sleep(delay):
            pass

        with pytest.raises(KeyError):
            _run(call_with_retries(
                flaky,
                max_attempts=5,
                is_retryable=lambda e: True,
                backoff=lambda attempt: 0.0,
                sleep=fake_sleep,
            ))
        assert len(calls) == 5


def _bare_client() -> LlmClient:
    # skip provider construction, which needs credentials
    client = LlmClient.__new__(LlmClient)
    client.model_name = "gemini-test"
    client.provider = "vertex"
    client.last_usage = None
    return client


class TestLlmClient:

    def test_openai_model_detection(self):
        assert is_openai_model("gpt-5.1")
        assert not is_openai_model("gemini-2.5-pro")

    def test_ainvoke_success(self):
        client = _bare_client()
        client._invoke_once = mock.Mock(return_value='{"versions": {}}')
        assert _run(client.ainvoke("prompt")) == '{"versions": {}}'
        client._invoke_once.assert_called_once_with("prompt")

    def test_ainvoke_wraps_failure(self):
        client = _bare_client()
        client._invoke_once = mock.Mock(side_effect=ValueError("403 PERMISSION_DENIED"))
        with pytest.raises(RemoteCallError) as excinfo:
            _run(client.ainvoke("prompt"))
        assert "PERMISSION_DENIED" in str(excinfo.value)
        assert isinstance(excinfo.value.__cause__, ValueError)
        assert client._invoke_once.call_count == 1

    def test_vertex_usage_accumulates(self):
        client = _bare_client()
        client._merge_vertex_usage({"prompt_token_count": 10, "candidates_token_count": 5, "total_token_count": 15})
        client._merge_vertex_usage({"prompt_token_count": 1, "candidates_token_count": 1, "total_token_count": 2})
        assert client.last_usage == {"prompt_token_count": 11, "candidates_token_count": 6, "total_token_count": 17}
