# tests/test_dispatch.py

from unittest.mock import AsyncMock, patch

import httpx

from conftest import integration_headers
from services.integration.crud.webhook_dispatch_crud import dispatch_event
from services.integration.models.integration_model import WebhookConfig

DISPATCH_CRUD = "services.integration.crud.webhook_dispatch_crud"


async def seed_webhooks(db):
    db.add_all([
        WebhookConfig(trigger_event="order.paid", target_url="https://n8n.example.com/a", is_active=True),
        WebhookConfig(trigger_event="order.paid", target_url="https://n8n.example.com/b", is_active=True),
        WebhookConfig(trigger_event="order.paid", target_url="https://n8n.example.com/off", is_active=False),
        WebhookConfig(trigger_event="order.created", target_url="https://n8n.example.com/c", is_active=True),
    ])
    await db.commit()


async def test_event_goes_to_active_webhooks_of_that_event(db):
    await seed_webhooks(db)
    post_mock = AsyncMock(side_effect=[
        httpx.Response(200),
        httpx.ConnectError("connection refused"),
    ])

    with patch(f"{DISPATCH_CRUD}.post_json", post_mock):
        result = await dispatch_event(db, "order.paid", {"id": 10, "total_price": 57.5})

    assert result == {"dispatched": 2, "delivered": 1}
    urls = [c.args[0] for c in post_mock.await_args_list]
    assert urls == ["https://n8n.example.com/a", "https://n8n.example.com/b"]
    body = post_mock.await_args_list[0].kwargs["json"]
    assert body["event"] == "order.paid"
    assert body["data"] == {"id": 10, "total_price": 57.5}
    assert "timestamp" in body


async def test_event_without_webhooks_sends_nothing(db):
    with patch(f"{DISPATCH_CRUD}.post_json", AsyncMock()) as post_mock:
        result = await dispatch_event(db, "order.cancelled", {"id": 1})

    assert result == {"dispatched": 0, "delivered": 0}
    post_mock.assert_not_awaited()


async def test_dispatch_endpoint(client, db):
    await seed_webhooks(db)

    with patch(f"{DISPATCH_CRUD}.post_json", AsyncMock(return_value=httpx.Response(204))):
        response = await client.post(
            "/api/integrations/dispatch",
            json={"event_type": "order.created", "payload": {"id": 3}},
            headers=integration_headers(),
        )

    assert response.status_code == 200
    assert response.json() == {"success": True, "dispatched": 1, "delivered": 1}


async def test_dispatch_endpoint_validation_and_auth(client):
    missing_event = await client.post(
        "/api/integrations/dispatch", json={"payload": {}}, headers=integration_headers()
    )
    unauthorized = await client.post("/api/integrations/dispatch", json={"event_type": "order.created"})

    assert missing_event.status_code == 400
    assert unauthorized.status_code == 401
