# app/services/printful_client.py
from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

import requests

from app.common.http_client import enviar
from app.common.logging_setup import get_logger
from app.common.result import Result
from app.common.settings import Settings, get_settings
from app.schemas.erros import Falha, falha
from app.schemas.printful import METODOS_COM_CORPO, ChamadaUpstream, RespostaUpstream

logger = get_logger(__name__)

PRINTFUL_BASE_URL = "https://api.printful.com"
MENSAGEM_ERRO_PADRAO = "Erro desconhecido da Printful"


def _http_printful_headers(settings: Settings) -> dict[str, str]:
    headers = {
        "Authorization": f"Bearer {settings.PRINTFUL_API_KEY}",
        "Content-Type": "application/json",
        "User-Agent": f"{settings.APP_NAME}/{settings.APP_VERSION}",
    }
    if settings.PRINTFUL_LANGUAGE:
        headers["X-PF-Language"] = settings.PRINTFUL_LANGUAGE
    if settings.PRINTFUL_STORE_ID:
        headers["X-PF-Store-Id"] = settings.PRINTFUL_STORE_ID
    return headers


def falha_configuracao() -> Falha:
    return falha(
        "CONFIGURATION_ERROR",
        "API key não configurada",
        "Configure PRINTFUL_API_KEY nas variáveis de ambiente do gateway",
        500,
    )


def _rejeitar_constante(nome: str) -> Any:
    # NaN/Infinity não são JSON válido e quebrariam a serialização da resposta
    raise ValueError(f"constante JSON inválida: {nome}")


def ler_resposta(res: requests.Response) -> RespostaUpstream:
    """Lê o corpo inteiro; se não for JSON, mantém o texto em vez de falhar."""
    texto = res.text or ""
    corpo: Any
    try:
        corpo = json.loads(texto, parse_constant=_rejeitar_constante)
    except ValueError:
        corpo = texto
    return RespostaUpstream(status=res.status_code, texto=texto, corpo=corpo)


def extrair_mensagem_erro(corpo: Mapping[str, Any]) -> str:
    """`error` tem precedência sobre `message`; sem nenhum dos dois, mensagem fixa."""
    erro = corpo.get("error")
    if isinstance(erro, Mapping):
        # formato v1 da Printful: {"error": {"reason": ..., "message": ...}}
        erro = erro.get("message")
    for candidato in (erro, corpo.get("message")):
        if isinstance(candidato, str) and candidato.strip():
            return candidato
    return MENSAGEM_ERRO_PADRAO


def _falha_api(resp: RespostaUpstream) -> Falha:
    detalhes: dict[str, Any] = dict(resp.corpo) if isinstance(resp.corpo, Mapping) else {"message": resp.texto}
    return falha(
        "PRINTFUL_API_ERROR",
        f"Erro na API da Printful ({resp.status})",
        extrair_mensagem_erro(detalhes),
        resp.status,
        details=detalhes,
    )


def encaminhar(
    chamada: ChamadaUpstream,
    settings: Settings | None = None,
    *,
    session: requests.Session | None = None,
) -> Result[RespostaUpstream, Falha]:
    """
    Executa UMA chamada na Printful e traduz o resultado.

    - sem API key: CONFIGURATION_ERROR (500), nenhuma chamada de rede;
    - erro de transporte: PRINTFUL_CONNECTION_ERROR (502);
    - status fora de 2xx: PRINTFUL_API_ERROR com o mesmo status da Printful;
    - sucesso: corpo parseado, sem alteração.
    """
    settings = settings or get_settings()
    if not settings.api_configurada:
        return Result.err(falha_configuracao())

    url = f"{PRINTFUL_BASE_URL}{chamada.path}"
    kwargs: dict[str, Any] = {"headers": _http_printful_headers(settings), "session": session}
    if chamada.body is not None and chamada.method in METODOS_COM_CORPO:
        kwargs["data"] = chamada.body
    if settings.PRINTFUL_TIMEOUT is not None:
        kwargs["timeout"] = settings.PRINTFUL_TIMEOUT

    try:
        res = enviar(chamada.method, url, **kwargs)
    except requests.RequestException as e:
        logger.error("Erro conectando com a Printful", extra={"url": url, "erro": str(e)})
        return Result.err(
            falha(
                "PRINTFUL_CONNECTION_ERROR",
                "Erro de conexão com a Printful",
                f"Não foi possível conectar com a API da Printful: {e}",
                502,
            )
        )

    resp = ler_resposta(res)
    if not resp.sucesso:
        logger.warning("Printful respondeu com erro", extra={"url": url, "status": resp.status})
        return Result.err(_falha_api(resp))
    return Result.ok(resp)
