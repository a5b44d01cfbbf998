# -*- coding: utf-8 -*-
"""
backend/tests/routes/test_health_routes.py

Tests de health checks, ruta raíz y endpoint /metrics.

Autor: EventShot Payments
Fecha: 2025-11-27
"""

from unittest.mock import AsyncMock

import pytest


@pytest.mark.asyncio
async def test_health_ok(async_client):
    resp = await async_client.get("/health")

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    assert body["environment"] == "test"
    assert body["database"] == {"reachable": True}
    assert body["scheduler"] == {"running": False}
    assert body["service"]["name"]


@pytest.mark.asyncio
async def test_health_degraded_when_database_unreachable(async_client, monkeypatch):
    monkeypatch.setattr("app.routes.health_routes.check_database_health", AsyncMock(return_value=False))

    resp = await async_client.get("/health")

    assert resp.status_code == 200
    assert resp.json()["status"] == "degraded"
    assert resp.json()["database"]["reachable"] is False


@pytest.mark.asyncio
async def test_liveness(async_client):
    resp = await async_client.get("/health/live")

    assert resp.json() == {"live": True}


@pytest.mark.asyncio
async def test_root(async_client):
    resp = await async_client.get("/")

    assert resp.status_code == 200
    assert resp.json()["status"] == "active"


@pytest.mark.asyncio
async def test_metrics_exposes_payments_counters(async_client):
    await async_client.get("/")

    resp = await async_client.get("/metrics")

    assert resp.status_code == 200
    assert "http_requests_total" in resp.text
    assert "payments_checkout_sessions_total" in resp.text
    assert "payments_webhook_events_total" in resp.text

# Fin del archivo backend/tests/routes/test_health_routes.py
