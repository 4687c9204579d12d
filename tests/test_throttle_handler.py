"""
Tests for devassist.utils.throttle_handler: retry of rate-limited requests.
"""

from unittest.mock import AsyncMock, patch

import pytest

from devassist.utils.custom_exceptions import QuotaExhaustedError
from devassist.utils.throttle_handler import call_with_backoff, handle_with_backoff, is_retryable_error


class StatusError(Exception):
    def __init__(self, message, code):
        super().__init__(message)
        self.code = code


class TestClassification:

    @pytest.mark.parametrize("error", [
        StatusError("slow down", 429),
        QuotaExhaustedError(),
        RuntimeError("429 RESOURCE_EXHAUSTED. You exceeded your current quota"),
        RuntimeError("Too many requests"),
    ])
    def test_retryable(self, error):
        assert is_retryable_error(error)

    @pytest.mark.parametrize("error", [
        StatusError("bad request", 400),
        StatusError("API key not valid", 401),
        RuntimeError("connection reset"),
        ValueError("boom"),
    ])
    def test_terminal(self, error):
        assert not is_retryable_error(error)


class TestCallWithBackoff:

    async def test_quota_twice_then_success(self):
        op = AsyncMock(side_effect=[QuotaExhaustedError(), QuotaExhaustedError(), "done"])
        with patch("devassist.utils.throttle_handler.asyncio.sleep", new=AsyncMock()) as sleep:
            result = await call_with_backoff(op, "arg", initial_delay=1.0)

        assert result == "done"
        assert op.await_count == 3
        op.assert_awaited_with("arg")
        assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0]

    async def test_terminal_error_fails_after_one_attempt(self):
        error = ValueError("invalid argument")
        op = AsyncMock(side_effect=error)

        with pytest.raises(ValueError) as exc_info:
            await call_with_backoff(op, initial_delay=0)
        assert exc_info.value is error
        assert op.await_count == 1

    async def test_exhausted_retries_reraise_last_error(self):
        errors = [QuotaExhaustedError(f"quota {i}") for i in range(4)]
        op = AsyncMock(side_effect=errors)

        with patch("devassist.utils.throttle_handler.asyncio.sleep", new=AsyncMock()) as sleep:
            with pytest.raises(QuotaExhaustedError) as exc_info:
                await call_with_backoff(op, initial_delay=0.5)

        assert exc_info.value is errors[-1]
        assert op.await_count == 4
        assert [c.args[0] for c in sleep.await_args_list] == [0.5, 1.0, 2.0]


class TestHandleWithBackoff:

    async def test_retries_before_first_chunk(self):
        attempts = []

        async def stream():
            attempts.append(1)
            if len(attempts) < 3:
                raise QuotaExhaustedError()
            yield "a"
            yield "b"

        chunks = [c async for c in handle_with_backoff(stream, initial_delay=0)]
        assert chunks == ["a", "b"]
        assert len(attempts) == 3

    async def test_no_retry_after_text_was_yielded(self):
        attempts = []

        async def stream():
            attempts.append(1)
            yield "partial"
            raise QuotaExhaustedError()

        received = []
        with pytest.raises(QuotaExhaustedError):
            async for chunk in handle_with_backoff(stream, initial_delay=0):
                received.append(chunk)

        assert received == ["partial"]
        assert len(attempts) == 1

    async def test_terminal_stream_error_propagates(self):
        attempts = []

        async def stream():
            attempts.append(1)
            raise PermissionError("API key not valid")
            yield

        with pytest.raises(PermissionError):
            async for _ in handle_with_backoff(stream, initial_delay=0):
                pass
        assert len(attempts) == 1
