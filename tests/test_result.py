"""Tests for the Result success/failure value."""

from __future__ import annotations

import pytest

from app.common.result import Result
from app.schemas.erros import ErrorEnvelope, falha


def test_ok_expoe_valor() -> None:
    result: Result[dict[str, int], str] = Result.ok({"id": 1})

    assert result.is_ok
    assert not result.is_err
    assert result.value == {"id": 1}
    with pytest.raises(ValueError, match="Called error on Result.ok"):
        _ = result.error


def test_ok_aceita_none_como_valor() -> None:
    result: Result[None, str] = Result.ok(None)

    assert result.is_ok
    assert result.value is None


def test_err_expoe_falha() -> None:
    f = falha("ENDPOINT_NOT_FOUND", "Endpoint não encontrado", "O endpoint /x não está disponível", 404)
    result: Result[str, object] = Result.err(f)

    assert result.is_err
    assert result.error is f
    with pytest.raises(ValueError, match="Called value on Result.err"):
        _ = result.value


def test_envelope_omite_details_ausente() -> None:
    body = ErrorEnvelope(code="X", title="t", message="m").as_body()

    assert set(body["error"]) == {"code", "title", "message", "timestamp"}
    assert body["error"]["timestamp"].endswith("Z")


def test_envelope_mantem_details_falsy() -> None:
    body = ErrorEnvelope(code="X", title="t", message="m", details={}).as_body()

    assert body["error"]["details"] == {}
