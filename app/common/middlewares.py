# app/common/middlewares.py
from __future__ import annotations

import time
import uuid
from collections.abc import Awaitable, Callable, Mapping, Sequence
from types import MappingProxyType

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from app.common.logging_setup import get_correlation_id, set_correlation_id

CORS_ALLOW_METHODS = "GET, POST, PUT, DELETE, PATCH, OPTIONS"
CORS_ALLOW_HEADERS = "Content-Type, Authorization, X-Store-Id, X-PF-Language, X-Request-Id"
CORS_MAX_AGE = "86400"


def montar_cors_headers(origins: Sequence[str]) -> Mapping[str, str]:
    """Conjunto CORS fixo do processo (imutável; nunca alterado por request)."""
    return MappingProxyType(
        {
            "Access-Control-Allow-Origin": "*" if "*" in origins else origins[0],
            "Access-Control-Allow-Methods": CORS_ALLOW_METHODS,
            "Access-Control-Allow-Headers": CORS_ALLOW_HEADERS,
            "Access-Control-Max-Age": CORS_MAX_AGE,
        }
    )


def cors_headers_para(base: Mapping[str, str], origins: Sequence[str], origin: str | None) -> dict[str, str]:
    """Cópia do conjunto base; com lista restrita, ecoa o Origin quando permitido."""
    headers = dict(base)
    if "*" not in origins:
        headers["Vary"] = "Origin"
        if origin and origin in origins:
            headers["Access-Control-Allow-Origin"] = origin
    return headers


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        # Reaproveita X-Request-Id se cliente enviar, senão gera UUID novo
        cid = request.headers.get("X-Request-Id") or str(uuid.uuid4())
        set_correlation_id(cid)

        response = await call_next(request)

        response.headers["X-Request-Id"] = get_correlation_id()
        return response


class CorsMiddleware(BaseHTTPMiddleware):
    """
    Responde preflight (OPTIONS em qualquer path) com 200 e corpo vazio antes de
    roteamento/autenticação, e aplica os headers CORS em todas as respostas.
    """

    def __init__(self, app: ASGIApp, *, origins: Sequence[str]) -> None:
        super().__init__(app)
        self.origins = tuple(origins) or ("*",)
        self.base_headers = montar_cors_headers(self.origins)

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        headers = cors_headers_para(self.base_headers, self.origins, request.headers.get("Origin"))
        if request.method == "OPTIONS":
            return Response(status_code=200, headers=headers)

        response = await call_next(request)
        response.headers.update(headers)
        return response


class ResponseMetaMiddleware(BaseHTTPMiddleware):
    """Acrescenta X-Response-Time e X-Gateway-Version depois do processamento."""

    def __init__(self, app: ASGIApp, *, version: str) -> None:
        super().__init__(app)
        self.version = version

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        inicio = time.perf_counter()
        request.state.inicio = inicio  # usado pelo handler de exceções, que roda fora daqui
        response = await call_next(request)
        response.headers["X-Response-Time"] = tempo_decorrido(inicio)
        response.headers["X-Gateway-Version"] = self.version
        return response


def tempo_decorrido(inicio: float) -> str:
    return f"{round((time.perf_counter() - inicio) * 1000)}ms"
