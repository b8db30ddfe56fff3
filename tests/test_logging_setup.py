from __future__ import annotations

import logging

from app.common.logging_setup import (
    ContextFilter,
    get_correlation_id,
    mask_secrets,
    set_correlation_id,
)


def test_mask_secrets() -> None:
    assert mask_secrets("Authorization: Bearer pk_live_abcdef123") == "Authorization: Bearer ***"
    assert mask_secrets("api_key=abcdef123456") == "api_key=***"
    assert mask_secrets("GET /orders 200") == "GET /orders 200"


def test_context_filter_mascara_args_e_injeta_campos() -> None:
    set_correlation_id("cid-42")
    record = logging.LogRecord("t", logging.INFO, __file__, 1, "headers=%s", ("Bearer supersecret99",), None)

    ContextFilter(service="printful-gateway", version="2.0.0").filter(record)

    assert record.getMessage() == "headers=Bearer ***"
    assert record.correlation_id == "cid-42"
    assert record.service == "printful-gateway"


def test_set_correlation_id_gera_uuid() -> None:
    cid = set_correlation_id()

    assert len(cid) == 36
    assert get_correlation_id() == cid
