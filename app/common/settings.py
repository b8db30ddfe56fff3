# common/settings.py
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent.parent  # sobe até a pasta do main.py


class Settings(BaseSettings):
    PRINTFUL_API_KEY: str = ""  # obrigatório em runtime; vazio => CONFIGURATION_ERROR
    PRINTFUL_LANGUAGE: str = ""  # vira X-PF-Language quando preenchido
    PRINTFUL_STORE_ID: str = ""  # vira X-PF-Store-Id quando preenchido
    PRINTFUL_TIMEOUT: float | None = None  # None = default do requests
    PRODUCTS_SCOPE: Literal["catalog", "store"] = "catalog"

    APP_NAME: str = "printful-gateway"
    APP_VERSION: str = "2.0.0"
    APP_ENV: str = "dev"
    CORS_ORIGINS: str = Field(default="*", validation_alias=AliasChoices("CORS_ORIGINS", "ALLOWED_ORIGINS"))

    RATE_LIMIT_ENABLED: bool = False
    RATE_LIMIT_READ_QPS: float = 5.0  # GET/HEAD
    RATE_LIMIT_WRITE_QPS: float = 1.0  # POST/PUT/PATCH/DELETE
    RATE_LIMIT_BURST: int = 10
    RATE_LIMIT_TRUST_FORWARDED: bool = False  # só atrás de proxy que sobrescreve X-Forwarded-For

    model_config = SettingsConfigDict(
        env_file=str(BASE_DIR.parent / ".env"),  # busca o .env na raiz do projeto
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def api_configurada(self) -> bool:
        return bool(self.PRINTFUL_API_KEY.strip())

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()] or ["*"]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
