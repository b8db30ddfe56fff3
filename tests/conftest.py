"""
Fixtures compartilhadas: settings isolados do ambiente, sessão HTTP falsa
e TestClient do gateway.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any
from unittest.mock import MagicMock

import pytest
import requests
from fastapi.testclient import TestClient

from app.common.settings import Settings
from app.main import create_app

API_KEY = "pk_test_1234567890"


def montar_resposta(status: int, corpo: bytes | str = b"") -> requests.Response:
    """Response real do requests, sem rede."""
    res = requests.Response()
    res.status_code = status
    res._content = corpo.encode("utf-8") if isinstance(corpo, str) else corpo
    res.encoding = "utf-8"
    return res


def montar_settings(**overrides: Any) -> Settings:
    valores: dict[str, Any] = {
        "PRINTFUL_API_KEY": API_KEY,
        "PRINTFUL_LANGUAGE": "",
        "PRINTFUL_STORE_ID": "",
        "PRODUCTS_SCOPE": "catalog",
        "CORS_ORIGINS": "*",
        "APP_VERSION": "2.0.0",
        "RATE_LIMIT_ENABLED": False,
    }
    valores.update(overrides)
    return Settings(_env_file=None, **valores)


@pytest.fixture
def settings() -> Settings:
    return montar_settings()


@pytest.fixture
def sessao(monkeypatch: pytest.MonkeyPatch) -> MagicMock:
    """Substitui a sessão compartilhada; por padrão a Printful responde 200 {"code":200,"result":[]}."""
    fake = MagicMock(spec=requests.Session)
    fake.headers = {"User-Agent": "printful-gateway/HTTPClient"}
    fake.request.return_value = montar_resposta(200, '{"code":200,"result":[]}')
    monkeypatch.setattr("app.common.http_client._get_cached_session", lambda: fake)
    return fake


@pytest.fixture
def client(settings: Settings, sessao: MagicMock) -> Iterator[TestClient]:
    with TestClient(create_app(settings)) as c:
        yield c


def ultima_chamada(sessao: MagicMock) -> tuple[str, str, dict[str, Any]]:
    args, kwargs = sessao.request.call_args
    method, url = args
    return method, url, kwargs
