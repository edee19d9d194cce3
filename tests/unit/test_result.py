"""
Unit tests for the Result railway used between pipeline stages.
"""

from __future__ import annotations

import asyncio

import pytest

from rp_trust_store.result import ErrorCode, Failure, FailureDescription, Result, Success


def _fail(message: str = "boom") -> Result[int]:
    return Result.failure(ErrorCode.PARSE_ERROR, message)


class TestConstruction:
    def test_success_rejects_none(self) -> None:
        with pytest.raises(TypeError):
            Success(None)

    def test_value_of_failure_raises(self) -> None:
        with pytest.raises(ValueError, match="boom"):
            _fail().value()

    def test_error_of_success_raises(self) -> None:
        with pytest.raises(ValueError):
            Result.success(1).error()

    def test_failure_equality_ignores_exception_and_timestamp(self) -> None:
        first = Result.failure(ErrorCode.STORAGE_ERROR, "disk", OSError("a"))
        second = Result.failure(ErrorCode.STORAGE_ERROR, "disk", OSError("b"))
        assert first == second

    def test_failure_description_str_includes_cause(self) -> None:
        desc = FailureDescription(ErrorCode.TRANSPORT_ERROR, "download failed", TimeoutError("slow"))
        assert str(desc) == "TRANSPORT_ERROR: download failed (slow)"


class TestTransformations:
    def test_map_and_flat_map_on_success(self) -> None:
        result = Result.success(2).map(lambda x: x * 3).flat_map(lambda x: Result.success(x + 1))
        assert result.value() == 7

    def test_failure_short_circuits(self) -> None:
        called: list[int] = []
        result = _fail().map(lambda x: called.append(x)).flat_map(lambda x: Result.success(x))
        assert result.is_failure()
        assert called == []

    def test_ensure(self) -> None:
        assert Result.success("pem").ensure(bool, ErrorCode.TRANSPORT_ERROR, "blank").is_success()
        blank = Result.success("").ensure(bool, ErrorCode.TRANSPORT_ERROR, "blank")
        assert blank.error().code is ErrorCode.TRANSPORT_ERROR

    def test_peek_failure_runs_only_on_failure(self) -> None:
        seen: list[FailureDescription] = []
        Result.success(1).peek_failure(seen.append)
        _fail("logged").peek_failure(seen.append)
        assert [d.message for d in seen] == ["logged"]

    def test_either_and_get_or_else(self) -> None:
        assert Result.success(1).either(lambda v: v + 1, lambda e: -1) == 2
        assert _fail().either(lambda v: v + 1, lambda e: -1) == -1
        assert _fail().get_or_else(0) == 0


class TestFromComputation:
    def test_captures_exception(self) -> None:
        def _raise() -> int:
            raise OSError("no space")

        result = Result.from_computation(_raise, ErrorCode.STORAGE_ERROR, "write failed")
        assert isinstance(result, Failure)
        assert isinstance(result.error().exception, OSError)

    def test_from_awaitable_success_and_failure(self) -> None:
        async def _ok() -> str:
            return "pem"

        async def _bad() -> str:
            raise ConnectionResetError("reset")

        ok = asyncio.run(Result.from_awaitable(_ok(), ErrorCode.TRANSPORT_ERROR, "x"))
        bad = asyncio.run(Result.from_awaitable(_bad(), ErrorCode.TRANSPORT_ERROR, "x"))
        assert ok.value() == "pem"
        assert bad.error().code is ErrorCode.TRANSPORT_ERROR
