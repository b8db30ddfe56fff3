# app/services/roteador.py
from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from urllib.parse import urlencode

from app.common.logging_setup import get_logger
from app.common.result import Result
from app.schemas.erros import Falha, agora_iso, falha
from app.schemas.printful import METODOS_COM_CORPO, Categoria, ChamadaUpstream, RouteMatch

logger = get_logger(__name__)

_ID_NUMERICO = re.compile(r"[0-9]+")

_GET = frozenset({"GET"})


@dataclass(frozen=True)
class _Recurso:
    categoria: Categoria
    rotulo: str  # usado nas mensagens de erro
    colecao: frozenset[str]  # métodos aceitos em /api/<recurso>
    item: frozenset[str] = frozenset()  # métodos aceitos em /api/<recurso>/{id}
    acoes: Mapping[str, frozenset[str]] = field(default_factory=dict)  # /api/<recurso>/{id}/<acao>


_RECURSOS: dict[str, _Recurso] = {
    "products": _Recurso(Categoria.PRODUCTS, "produtos", colecao=_GET, item=_GET),
    "orders": _Recurso(
        Categoria.ORDERS,
        "pedidos",
        colecao=frozenset({"GET", "POST"}),
        item=frozenset({"GET", "PUT", "DELETE"}),
        acoes={"confirm": frozenset({"POST"})},
    ),
    "stores": _Recurso(Categoria.STORES, "lojas", colecao=_GET, item=_GET),
    "files": _Recurso(Categoria.FILES, "arquivos", colecao=frozenset({"GET", "POST"}), item=_GET),
    "webhooks": _Recurso(Categoria.WEBHOOKS, "webhooks", colecao=frozenset({"GET", "POST", "DELETE"})),
}

# escopo do catálogo: global (/products) ou da loja (/store/products)
_PRODUCTS_BASE = {"catalog": "/products", "store": "/store/products"}


def _nao_encontrado(path: str) -> Falha:
    return falha(
        "ENDPOINT_NOT_FOUND",
        "Endpoint não encontrado",
        f"O endpoint {path} não está disponível",
        404,
    )


def _rota_invalida(recurso: _Recurso, path: str, method: str) -> Falha:
    return falha(
        f"{recurso.categoria.name}_INVALID_ROUTE",
        f"Rota de {recurso.rotulo} inválida",
        f"Não foi possível processar {path} com o método {method}",
        404,
    )


def _metodo_nao_permitido(prefixo: str, path: str, method: str, permitidos: frozenset[str]) -> Falha:
    ordenados = sorted(permitidos)
    return falha(
        f"{prefixo}_METHOD_NOT_ALLOWED",
        "Método não permitido",
        f"O método {method} não é suportado em {path}",
        405,
        details={"allowed_methods": ordenados},
        headers={"Allow": ", ".join(ordenados)},
    )


def _com_query(path: str, query: Mapping[str, str]) -> str:
    if not query:
        return path
    return f"{path}?{urlencode(list(query.items()))}"


def resolver_rota(
    method: str,
    path: str,
    query: Mapping[str, str] | None = None,
    body: bytes | None = None,
    *,
    products_scope: str = "catalog",
) -> Result[RouteMatch, Falha]:
    """
    Traduz (método, path, query) do gateway na chamada equivalente da Printful.

    Retorna ``Result.ok(RouteMatch)`` (com ``chamada=None`` para health/info,
    respondidos localmente) ou ``Result.err(Falha)`` com 404/405.
    O corpo é repassado sem alteração nos métodos que o aceitam.
    """
    method = method.upper()
    query = query or {}
    logger.info("%s %s - %s", method, path, agora_iso())

    normalizado = path
    if normalizado not in ("/", "/api/") and normalizado.endswith("/"):
        normalizado = normalizado[:-1]

    if normalizado == "/api/health":
        if method != "GET":
            return Result.err(_metodo_nao_permitido("HEALTH", path, method, _GET))
        return Result.ok(RouteMatch(Categoria.HEALTH))

    if normalizado in ("/api", "/api/"):
        if method != "GET":
            return Result.err(_metodo_nao_permitido("INFO", path, method, _GET))
        return Result.ok(RouteMatch(Categoria.INFO))

    partes = normalizado.split("/")
    if len(partes) < 3 or partes[0] != "" or partes[1] != "api" or partes[2] not in _RECURSOS:
        return Result.err(_nao_encontrado(path))

    nome = partes[2]
    recurso = _RECURSOS[nome]
    base = _PRODUCTS_BASE.get(products_scope, "/products") if recurso.categoria is Categoria.PRODUCTS else f"/{nome}"
    resto = partes[3:]

    resource_id: str | None = None
    acao: str | None = None
    if not resto:
        permitidos = recurso.colecao
        destino = base
    elif len(resto) <= 2 and _ID_NUMERICO.fullmatch(resto[0]) and recurso.item:
        resource_id = resto[0]
        destino = f"{base}/{resource_id}"
        if len(resto) == 1:
            permitidos = recurso.item
        elif resto[1] in recurso.acoes:
            acao = resto[1]
            permitidos = recurso.acoes[acao]
            destino = f"{destino}/{acao}"
        else:
            return Result.err(_rota_invalida(recurso, path, method))
    else:
        return Result.err(_rota_invalida(recurso, path, method))

    if method not in permitidos:
        return Result.err(_metodo_nao_permitido(recurso.categoria.name, path, method, permitidos))

    # ações (ex.: confirm) não levam corpo
    corpo = body if method in METODOS_COM_CORPO and acao is None else None
    chamada = ChamadaUpstream(method=method, path=_com_query(destino, query), body=corpo)
    return Result.ok(RouteMatch(recurso.categoria, resource_id=resource_id, chamada=chamada))
