from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field


def agora_iso() -> str:
    """Timestamp ISO-8601 em UTC com sufixo Z (mesmo formato do Date.toISOString)."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class ErrorEnvelope(BaseModel):
    code: str = Field(..., description="Código curto, legível por máquina (ex.: PRINTFUL_API_ERROR)")
    title: str = Field(..., description="Resumo legível")
    message: str = Field(..., description="Detalhe do erro")
    timestamp: str = Field(default_factory=agora_iso)
    details: Any | None = Field(default=None, description="Corpo de erro da Printful, repassado sem alteração")

    def as_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "code": self.code,
            "title": self.title,
            "message": self.message,
            "timestamp": self.timestamp,
        }
        if self.details is not None:
            body["details"] = self.details
        return {"error": body}


@dataclass(frozen=True)
class Falha:
    """Erro terminal de uma etapa (roteamento/encaminhamento) + status HTTP de saída."""

    status: int
    envelope: ErrorEnvelope
    headers: dict[str, str] = field(default_factory=dict)


def falha(
    code: str,
    title: str,
    message: str,
    status: int,
    *,
    details: Any | None = None,
    headers: dict[str, str] | None = None,
) -> Falha:
    return Falha(
        status=status,
        envelope=ErrorEnvelope(code=code, title=title, message=message, details=details),
        headers=dict(headers or {}),
    )
