# app/main.py
from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

# Logging unificado (JSON/UTC, mask de segredos, correlation id)
from app.common.logging_setup import get_logger, setup_logging

# Middlewares: correlação (X-Request-Id), tempo/versão, CORS + preflight
from app.common.middlewares import (
    CorrelationIdMiddleware,
    CorsMiddleware,
    ResponseMetaMiddleware,
    cors_headers_para,
    montar_cors_headers,
    tempo_decorrido,
)
from app.common.settings import Settings, get_settings

# Routers
from app.routers.printful_proxy import resposta_erro
from app.routers.printful_proxy import router as printful_router
from app.schemas.erros import falha
from app.services.rate_limit import RateLimiter


# -----------------------------------------------------------------------------
# Inicialização de logging
# -----------------------------------------------------------------------------
def _init_logging(settings: Settings) -> None:
    # Lê envs: LOG_LEVEL, LOG_JSON, LOG_FILE, LOG_MASK_SECRETS, APP_NAME, APP_VERSION, APP_ENV
    setup_logging()

    logger = get_logger(__name__)
    logger.info(
        "app_startup",
        extra={
            "app": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "printful_api": "configured" if settings.api_configurada else "not_configured",
            "products_scope": settings.PRODUCTS_SCOPE,
            "rate_limit": settings.RATE_LIMIT_ENABLED,
        },
    )


# -----------------------------------------------------------------------------
# Criação do app
# -----------------------------------------------------------------------------
def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    _init_logging(settings)

    # sem /docs: todo path responde JSON do gateway
    app = FastAPI(
        title="Printful API Gateway",
        version=settings.APP_VERSION,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.settings = settings
    app.state.rate_limiter = RateLimiter.from_settings(settings) if settings.RATE_LIMIT_ENABLED else None

    # add_middleware empilha: o último adicionado é o mais externo
    app.add_middleware(CorsMiddleware, origins=settings.cors_origins)
    app.add_middleware(ResponseMetaMiddleware, version=settings.APP_VERSION)
    app.add_middleware(CorrelationIdMiddleware)

    base_cors = montar_cors_headers(settings.cors_origins)

    @app.exception_handler(Exception)
    async def erro_nao_tratado(request: Request, exc: Exception) -> JSONResponse:
        # chega aqui por fora dos middlewares: reaplica CORS e versão
        get_logger(__name__).exception("Erro não controlado", extra={"path": request.url.path})
        response = resposta_erro(
            falha("INTERNAL_SERVER_ERROR", "Erro interno do servidor", str(exc) or "Ocorreu um erro inesperado", 500)
        )
        response.headers.update(cors_headers_para(base_cors, settings.cors_origins, request.headers.get("Origin")))
        response.headers["X-Gateway-Version"] = settings.APP_VERSION
        inicio = getattr(request.state, "inicio", None)
        if inicio is not None:
            response.headers["X-Response-Time"] = tempo_decorrido(inicio)
        return response

    app.include_router(printful_router)

    return app


# Instância utilizada pelo servidor (uvicorn/gunicorn)
app = create_app()
