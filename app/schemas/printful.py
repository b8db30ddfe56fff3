from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class Categoria(str, Enum):
    HEALTH = "health"
    INFO = "info"
    PRODUCTS = "products"
    ORDERS = "orders"
    STORES = "stores"
    FILES = "files"
    WEBHOOKS = "webhooks"


METODOS_COM_CORPO = frozenset({"POST", "PUT", "PATCH"})


@dataclass(frozen=True)
class ChamadaUpstream:
    """Chamada a ser feita na Printful. `path` já inclui a query string."""

    method: str
    path: str
    body: bytes | None = None


@dataclass(frozen=True)
class RouteMatch:
    categoria: Categoria
    resource_id: str | None = None
    chamada: ChamadaUpstream | None = None  # None => resposta local (health/info)

    @property
    def local(self) -> bool:
        return self.chamada is None


@dataclass(frozen=True)
class RespostaUpstream:
    status: int
    texto: str
    corpo: Any  # JSON parseado, ou o próprio texto se não for JSON

    @property
    def sucesso(self) -> bool:
        return 200 <= self.status < 300
