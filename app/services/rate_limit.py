# app/services/rate_limit.py
from __future__ import annotations

import math
import time
from collections.abc import Callable
from dataclasses import dataclass
from threading import Lock

from app.common.logging_setup import get_logger
from app.common.settings import Settings
from app.schemas.erros import Falha, falha

logger = get_logger(__name__)

CLASSE_LEITURA = "leitura"
CLASSE_ESCRITA = "escrita"
_METODOS_LEITURA = frozenset({"GET", "HEAD"})


def classe_da_rota(method: str) -> str:
    return CLASSE_LEITURA if method.upper() in _METODOS_LEITURA else CLASSE_ESCRITA


@dataclass
class _Balde:
    tokens: float
    ultimo: float


class RateLimiter:
    """
    Token bucket por (cliente, classe da rota).

    Não bloqueia: `tentar_consumir` devolve 0.0 quando liberado, ou quantos
    segundos faltam para o próximo token.

    Baldes parados tempo suficiente para encher são descartados na limpeza
    periódica (equivalem a um balde novo); acima de `max_baldes`, sai o
    menos usado recentemente.
    """

    def __init__(
        self,
        qps_por_classe: dict[str, float],
        burst: int,
        relogio: Callable[[], float] = time.monotonic,
        *,
        max_baldes: int = 10_000,
        intervalo_limpeza: float = 60.0,
    ) -> None:
        self.qps_por_classe = {k: max(0.1, float(v)) for k, v in qps_por_classe.items()}
        self.burst = max(1, int(burst))
        self.max_baldes = max(1, int(max_baldes))
        self.intervalo_limpeza = max(0.0, float(intervalo_limpeza))
        self._relogio = relogio
        self._lock = Lock()
        self._baldes: dict[tuple[str, str], _Balde] = {}
        self._proxima_limpeza = relogio() + self.intervalo_limpeza

    @classmethod
    def from_settings(cls, settings: Settings) -> RateLimiter:
        return cls(
            {CLASSE_LEITURA: settings.RATE_LIMIT_READ_QPS, CLASSE_ESCRITA: settings.RATE_LIMIT_WRITE_QPS},
            burst=settings.RATE_LIMIT_BURST,
        )

    def _qps(self, classe: str) -> float:
        return self.qps_por_classe.get(classe, self.qps_por_classe.get(CLASSE_ESCRITA, 1.0))

    def _limpar(self, agora: float) -> None:
        cheios = [
            chave
            for chave, balde in self._baldes.items()
            if balde.tokens + (agora - balde.ultimo) * self._qps(chave[1]) >= self.burst
        ]
        for chave in cheios:
            del self._baldes[chave]
        if cheios:
            logger.debug("rate_limit_limpeza", extra={"removidos": len(cheios), "restantes": len(self._baldes)})

    def tentar_consumir(self, cliente: str, classe: str) -> float:
        qps = self._qps(classe)
        chave = (cliente, classe)
        with self._lock:
            agora = self._relogio()
            if agora >= self._proxima_limpeza:
                self._limpar(agora)
                self._proxima_limpeza = agora + self.intervalo_limpeza

            # pop + reinserção mantém o dict em ordem de uso (LRU)
            balde = self._baldes.pop(chave, None)
            if balde is None:
                balde = _Balde(tokens=float(self.burst), ultimo=agora)
                while len(self._baldes) >= self.max_baldes:
                    del self._baldes[next(iter(self._baldes))]
            self._baldes[chave] = balde

            # recarrega tokens proporcional ao tempo
            balde.tokens = min(float(self.burst), balde.tokens + (agora - balde.ultimo) * qps)
            balde.ultimo = agora
            if balde.tokens >= 1.0:
                balde.tokens -= 1.0
                return 0.0
            return (1.0 - balde.tokens) / qps


def falha_rate_limit(cliente: str, classe: str, espera: float) -> Falha:
    retry_after = max(1, math.ceil(espera))
    logger.warning("rate_limit_excedido", extra={"cliente": cliente, "classe": classe, "retry_after": retry_after})
    return falha(
        "RATE_LIMIT_EXCEEDED",
        "Limite de requisições excedido",
        f"Muitas requisições de {classe}; tente novamente em {retry_after}s",
        429,
        details={"retry_after": retry_after, "class": classe},
        headers={"Retry-After": str(retry_after)},
    )
