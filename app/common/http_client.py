from __future__ import annotations

from functools import lru_cache
from typing import Any

import requests
from requests.adapters import HTTPAdapter

from .logging_setup import get_correlation_id, get_logger

logger = get_logger("http")


def _build_session() -> requests.Session:
    s = requests.Session()
    s.headers.update(
        {
            "User-Agent": "printful-gateway/HTTPClient",
            "Accept": "application/json, */*;q=0.1",
        }
    )
    # sem retry: cada request do gateway gera no máximo uma chamada upstream
    adapter = HTTPAdapter(max_retries=0, pool_connections=20, pool_maxsize=20)
    s.mount("https://", adapter)
    s.mount("http://", adapter)
    return s


@lru_cache(maxsize=1)
def _get_cached_session() -> requests.Session:
    return _build_session()


def get_session(session: requests.Session | None = None) -> requests.Session:
    return session or _get_cached_session()


def enviar(method: str, url: str, **kwargs: Any) -> requests.Response:
    """
    Executa uma única chamada HTTP pela sessão compartilhada.

    Erros de transporte (`requests.RequestException`) sobem para quem chamou;
    status HTTP de erro NÃO viram exceção, a resposta é devolvida como veio.
    """
    session: requests.Session = kwargs.pop("session", None) or get_session()

    headers = kwargs.pop("headers", {}) or {}
    headers = {**session.headers, **headers}
    headers.setdefault("X-Correlation-ID", get_correlation_id())
    kwargs["headers"] = headers

    logger.info("→ %s %s", method, url, extra={"cid": get_correlation_id()})
    try:
        res = session.request(method, url, **kwargs)
    except requests.RequestException:
        logger.error("HTTP %s request exception", method, extra={"url": url, "cid": get_correlation_id()})
        raise
    logger.info("← %s %s %s", res.status_code, method, url, extra={"status": res.status_code})
    return res
