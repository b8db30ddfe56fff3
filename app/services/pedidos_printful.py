# app/services/pedidos_printful.py
from __future__ import annotations

import json
import random
import string
import time
from collections.abc import Iterable, Sequence
from typing import Any

import requests

from app.common.result import Result
from app.common.settings import Settings
from app.schemas.erros import Falha
from app.schemas.pedidos_printful import Cliente, DesignArquivo, ProdutoPedido
from app.schemas.printful import ChamadaUpstream, RespostaUpstream
from app.services.printful_client import encaminhar

SHIPPING_PADRAO = "STANDARD"
_BASE36 = string.digits + string.ascii_lowercase


def _epoch_ms() -> int:
    return int(time.time() * 1000)


def gerar_external_id(prefixo: str = "pedido") -> str:
    """
    `<prefixo>_<epoch ms>_<9 chars base36>`.
    Só serve de dica de idempotência para a Printful; colisão não é checada aqui.
    """
    sufixo = "".join(random.choices(_BASE36, k=9))
    return f"{prefixo}_{_epoch_ms()}_{sufixo}"


def _recipient(cliente: Cliente) -> dict[str, Any]:
    return {
        "name": cliente.nome,
        "address1": cliente.endereco,
        "city": cliente.cidade,
        "state_code": cliente.estado,
        "country_code": cliente.pais,
        "zip": cliente.cep,
        "phone": cliente.telefone,
        "email": cliente.email,
    }


def _arquivos(produto: ProdutoPedido) -> list[dict[str, str]]:
    designs: list[DesignArquivo] = list(produto.designs)
    if not designs and produto.url_design:
        designs = [DesignArquivo(url=produto.url_design)]
    return [{"url": d.url, "type": d.tipo} for d in designs]


def montar_pedido_simples(cliente: Cliente, produto: ProdutoPedido, quantidade: int = 1) -> dict[str, Any]:
    return {
        "external_id": gerar_external_id("pedido"),
        "recipient": _recipient(cliente),
        "items": [
            {
                "variant_id": produto.variant_id,
                "quantity": quantidade,
                "retail_price": str(produto.preco),
                "files": _arquivos(produto),
            }
        ],
        "shipping": SHIPPING_PADRAO,
    }


def montar_pedido_multiplo(
    cliente: Cliente,
    produtos: Sequence[ProdutoPedido],
    *,
    nome_loja: str = "Minha Loja",
) -> dict[str, Any]:
    if not produtos:
        raise ValueError("pedido múltiplo precisa de ao menos um produto")
    ms = _epoch_ms()
    return {
        "external_id": gerar_external_id("pedido_multi"),
        "recipient": _recipient(cliente),
        "items": [
            {
                "variant_id": p.variant_id,
                "quantity": p.quantidade,
                "retail_price": str(p.preco),
                "files": _arquivos(p),
                "options": list(p.opcoes),
            }
            for p in produtos
        ],
        "shipping": SHIPPING_PADRAO,
        "packing_slip": {
            "email": cliente.email_loja or cliente.email,
            "message": f"Pedido #{ms}",
            "store_name": nome_loja,
        },
    }


def montar_arquivo(url: str, nome: str | None = None) -> dict[str, Any]:
    return {
        "url": url,
        "type": "default",
        "filename": nome or f"design_{_epoch_ms()}.png",
        "visible": True,
    }


def montar_webhook(url: str, tipos: Iterable[str]) -> dict[str, Any]:
    # tipos: ["order_created", "order_fulfilled", "package_shipped", ...]
    return {"url": url, "types": list(tipos)}


# -----------------------------------------------------------------------------
# Envio (delegam ao cliente Printful)
# -----------------------------------------------------------------------------
def _post_json(
    path: str,
    payload: dict[str, Any],
    settings: Settings | None,
    session: requests.Session | None,
) -> Result[RespostaUpstream, Falha]:
    corpo = json.dumps(payload, ensure_ascii=False).encode("utf-8")
    return encaminhar(ChamadaUpstream("POST", path, corpo), settings, session=session)


def criar_pedido(
    payload: dict[str, Any],
    *,
    confirmar: bool = False,
    settings: Settings | None = None,
    session: requests.Session | None = None,
) -> Result[RespostaUpstream, Falha]:
    """POST /orders; com `confirmar=True` a Printful já envia o pedido para produção."""
    path = f"/orders?confirm={'true' if confirmar else 'false'}"
    return _post_json(path, payload, settings, session)


def subir_arquivo(
    url: str,
    nome: str | None = None,
    *,
    settings: Settings | None = None,
    session: requests.Session | None = None,
) -> Result[RespostaUpstream, Falha]:
    return _post_json("/files", montar_arquivo(url, nome), settings, session)


def configurar_webhook(
    url: str,
    tipos: Iterable[str],
    *,
    settings: Settings | None = None,
    session: requests.Session | None = None,
) -> Result[RespostaUpstream, Falha]:
    return _post_json("/webhooks", montar_webhook(url, tipos), settings, session)
