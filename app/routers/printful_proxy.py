# routers/printful_proxy.py
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from app.common.logging_setup import get_logger
from app.common.settings import Settings
from app.schemas.erros import Falha, agora_iso, falha
from app.schemas.printful import METODOS_COM_CORPO, Categoria
from app.services.printful_client import encaminhar, falha_configuracao
from app.services.rate_limit import RateLimiter, classe_da_rota, falha_rate_limit
from app.services.roteador import resolver_rota

logger = get_logger(__name__)

router = APIRouter(tags=["Printful"])

# OPTIONS nunca chega aqui: o CorsMiddleware responde o preflight antes
_METODOS = ["GET", "POST", "PUT", "DELETE", "PATCH", "HEAD"]

ENDPOINTS_DOCUMENTADOS = [
    "GET /api/health - Health check",
    "GET /api - Informações da API",
    "GET /api/products - Listar produtos",
    "GET /api/products/{id} - Obter produto específico",
    "GET /api/orders - Listar pedidos",
    "POST /api/orders - Criar pedido",
    "GET /api/orders/{id} - Obter pedido específico",
    "PUT /api/orders/{id} - Atualizar pedido",
    "DELETE /api/orders/{id} - Cancelar pedido",
    "POST /api/orders/{id}/confirm - Confirmar pedido",
    "GET /api/stores - Listar lojas",
    "GET /api/stores/{id} - Obter loja específica",
    "GET /api/files - Listar arquivos",
    "POST /api/files - Adicionar arquivo à biblioteca",
    "GET /api/files/{id} - Obter arquivo específico",
    "GET /api/webhooks - Consultar configuração de webhooks",
    "POST /api/webhooks - Configurar webhooks",
    "DELETE /api/webhooks - Desativar webhooks",
]


def resposta_erro(f: Falha) -> JSONResponse:
    return JSONResponse(content=f.envelope.as_body(), status_code=f.status, headers=f.headers or None)


def health_payload(settings: Settings) -> tuple[dict[str, Any], int]:
    ok = settings.api_configurada
    payload = {
        "status": "healthy" if ok else "unhealthy",
        "timestamp": agora_iso(),
        "version": settings.APP_VERSION,
        "printful_api": "configured" if ok else "not_configured",
        "environment": settings.APP_ENV,
    }
    return payload, 200 if ok else 503


def info_payload(settings: Settings) -> dict[str, Any]:
    return {
        "name": "Printful API Gateway",
        "version": settings.APP_VERSION,
        "description": "Proxy para a API da Printful com autenticação e erros padronizados",
        "endpoints": ENDPOINTS_DOCUMENTADOS,
        "documentation": "https://developers.printful.com/docs/",
        "timestamp": agora_iso(),
    }


def _identidade_cliente(request: Request, settings: Settings) -> str:
    # X-Forwarded-For vem do cliente: só vale quando um proxy confiável o reescreve
    if settings.RATE_LIMIT_TRUST_FORWARDED:
        encaminhado = request.headers.get("X-Forwarded-For", "")
        if encaminhado.strip():
            return encaminhado.split(",")[0].strip()
    return request.client.host if request.client else "anon"


async def _processar(request: Request, settings: Settings) -> Response:
    # única validação de configuração: avaliada antes do roteamento
    if not settings.api_configurada:
        return resposta_erro(falha_configuracao())

    method = request.method.upper()
    limiter: RateLimiter | None = getattr(request.app.state, "rate_limiter", None)
    if limiter is not None:
        cliente, classe = _identidade_cliente(request, settings), classe_da_rota(method)
        espera = limiter.tentar_consumir(cliente, classe)
        if espera > 0:
            return resposta_erro(falha_rate_limit(cliente, classe, espera))

    body = await request.body() if method in METODOS_COM_CORPO else None
    rota = resolver_rota(
        method,
        request.url.path,
        dict(request.query_params),
        body,
        products_scope=settings.PRODUCTS_SCOPE,
    )
    if rota.is_err:
        return resposta_erro(rota.error)

    match = rota.value
    if match.categoria is Categoria.HEALTH:
        payload, status = health_payload(settings)
        return JSONResponse(content=payload, status_code=status)
    if match.categoria is Categoria.INFO:
        return JSONResponse(content=info_payload(settings))

    chamada = match.chamada
    if match.local or chamada is None:
        raise RuntimeError(f"rota local sem handler: {match.categoria.value}")
    # requests é bloqueante: roda fora do event loop
    resultado = await run_in_threadpool(encaminhar, chamada, settings)
    if resultado.is_err:
        return resposta_erro(resultado.error)

    resp = resultado.value
    return JSONResponse(content=resp.corpo, status_code=200, headers={"X-Printful-Status": str(resp.status)})


@router.api_route("/{full_path:path}", methods=_METODOS, include_in_schema=False)
async def proxy_printful(request: Request, full_path: str) -> Response:
    settings: Settings = request.app.state.settings
    try:
        return await _processar(request, settings)
    except Exception as e:
        logger.exception("Erro não controlado processando %s %s", request.method, request.url.path)
        return resposta_erro(
            falha(
                "INTERNAL_SERVER_ERROR",
                "Erro interno do servidor",
                str(e) or "Ocorreu um erro inesperado",
                500,
            )
        )
