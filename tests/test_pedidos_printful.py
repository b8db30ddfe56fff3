from __future__ import annotations

import json
import re
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from app.common.settings import Settings
from app.schemas.pedidos_printful import Cliente, DesignArquivo, ProdutoPedido
from app.services.pedidos_printful import (
    configurar_webhook,
    criar_pedido,
    gerar_external_id,
    montar_arquivo,
    montar_pedido_multiplo,
    montar_pedido_simples,
    montar_webhook,
    subir_arquivo,
)
from tests.conftest import montar_resposta, ultima_chamada


@pytest.fixture
def cliente() -> Cliente:
    return Cliente(
        nome="Ana Souza",
        endereco="Rua das Flores, 120",
        cidade="Los Angeles",
        estado="CA",
        pais="US",
        cep="90001",
        telefone="+1 555 0100",
        email="ana@example.com",
        email_loja="loja@example.com",
    )


def test_external_id_formato() -> None:
    eid = gerar_external_id("pedido")

    assert re.fullmatch(r"pedido_\d{13}_[0-9a-z]{9}", eid)
    assert gerar_external_id("pedido") != eid


def test_pedido_simples(cliente: Cliente) -> None:
    produto = ProdutoPedido(variant_id=4012, preco=Decimal("19.99"), url_design="https://cdn/arte.png")

    pedido = montar_pedido_simples(cliente, produto, quantidade=3)

    assert pedido["external_id"].startswith("pedido_")
    assert pedido["shipping"] == "STANDARD"
    assert pedido["recipient"] == {
        "name": "Ana Souza",
        "address1": "Rua das Flores, 120",
        "city": "Los Angeles",
        "state_code": "CA",
        "country_code": "US",
        "zip": "90001",
        "phone": "+1 555 0100",
        "email": "ana@example.com",
    }
    assert pedido["items"] == [
        {
            "variant_id": 4012,
            "quantity": 3,
            "retail_price": "19.99",
            "files": [{"url": "https://cdn/arte.png", "type": "default"}],
        }
    ]


def test_pedido_multiplo(cliente: Cliente) -> None:
    produtos = [
        ProdutoPedido(
            variant_id=1,
            preco=Decimal("10.00"),
            quantidade=2,
            designs=[
                DesignArquivo(url="https://cdn/frente.png"),
                DesignArquivo(url="https://cdn/costas.png", tipo="back"),
            ],
            opcoes=[{"id": "stitch_color", "value": "white"}],
        ),
        ProdutoPedido(variant_id=2, preco=Decimal("25"), url_design="https://cdn/caneca.png"),
    ]

    pedido = montar_pedido_multiplo(cliente, produtos, nome_loja="Loja Teste")

    assert pedido["external_id"].startswith("pedido_multi_")
    assert [i["variant_id"] for i in pedido["items"]] == [1, 2]
    assert pedido["items"][0]["quantity"] == 2
    assert pedido["items"][0]["files"] == [
        {"url": "https://cdn/frente.png", "type": "default"},
        {"url": "https://cdn/costas.png", "type": "back"},
    ]
    assert pedido["items"][0]["options"] == [{"id": "stitch_color", "value": "white"}]
    assert pedido["items"][1]["retail_price"] == "25"
    assert pedido["packing_slip"]["email"] == "loja@example.com"
    assert pedido["packing_slip"]["store_name"] == "Loja Teste"
    assert pedido["packing_slip"]["message"].startswith("Pedido #")


def test_pedido_multiplo_sem_produtos(cliente: Cliente) -> None:
    with pytest.raises(ValueError):
        montar_pedido_multiplo(cliente, [])


def test_arquivo_e_webhook() -> None:
    assert montar_arquivo("https://cdn/a.png", "logo.png") == {
        "url": "https://cdn/a.png",
        "type": "default",
        "filename": "logo.png",
        "visible": True,
    }
    assert montar_arquivo("https://cdn/a.png")["filename"].startswith("design_")
    assert montar_webhook("https://hooks/x", ("order_created", "package_shipped")) == {
        "url": "https://hooks/x",
        "types": ["order_created", "package_shipped"],
    }


def test_criar_pedido_delega_ao_cliente_printful(cliente: Cliente, sessao: MagicMock, settings: Settings) -> None:
    sessao.request.return_value = montar_resposta(200, '{"code":200,"result":{"id":555,"status":"pending"}}')
    pedido = montar_pedido_simples(cliente, ProdutoPedido(variant_id=7, preco=Decimal("9.5")))

    resultado = criar_pedido(pedido, confirmar=True, settings=settings)

    assert resultado.is_ok
    assert resultado.value.corpo["result"]["id"] == 555
    method, url, kwargs = ultima_chamada(sessao)
    assert (method, url) == ("POST", "https://api.printful.com/orders?confirm=true")
    assert json.loads(kwargs["data"]) == pedido


def test_subir_arquivo_e_configurar_webhook(sessao: MagicMock, settings: Settings) -> None:
    subir_arquivo("https://cdn/a.png", "a.png", settings=settings)
    _, url_files, kwargs_files = ultima_chamada(sessao)
    configurar_webhook("https://hooks/x", ["order_created"], settings=settings)
    _, url_hooks, kwargs_hooks = ultima_chamada(sessao)

    assert url_files == "https://api.printful.com/files"
    assert json.loads(kwargs_files["data"])["filename"] == "a.png"
    assert url_hooks == "https://api.printful.com/webhooks"
    assert json.loads(kwargs_hooks["data"]) == {"url": "https://hooks/x", "types": ["order_created"]}


def test_erro_da_printful_volta_como_falha(sessao: MagicMock, settings: Settings) -> None:
    sessao.request.return_value = montar_resposta(400, '{"code":400,"error":"Invalid variant_id"}')

    resultado = criar_pedido({"items": []}, settings=settings)

    assert resultado.is_err
    assert resultado.error.envelope.code == "PRINTFUL_API_ERROR"
    _, url, _ = ultima_chamada(sessao)
    assert url.endswith("/orders?confirm=false")
