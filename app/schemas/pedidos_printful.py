from __future__ import annotations

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field


class Cliente(BaseModel):
    nome: str
    endereco: str = Field(..., description="Linha 1 do endereço (address1)")
    cidade: str
    estado: str | None = Field(None, description="state_code (ex.: 'CA', 'SP')")
    pais: str = Field(..., description="country_code ISO-3166 alfa-2")
    cep: str = Field(..., description="zip / código postal")
    telefone: str | None = None
    email: str | None = None
    email_loja: str | None = Field(None, description="Remetente do packing slip (pedidos múltiplos)")


class DesignArquivo(BaseModel):
    url: str
    tipo: str = Field("default", description="placement do arquivo na Printful (default, back, ...)")


class ProdutoPedido(BaseModel):
    variant_id: int
    preco: Decimal = Field(..., description="retail_price; enviado como string")
    quantidade: int = Field(1, ge=1)
    url_design: str | None = Field(None, description="Atalho para um único arquivo 'default'")
    designs: list[DesignArquivo] = Field(default_factory=list)
    opcoes: list[dict[str, Any]] = Field(default_factory=list)
