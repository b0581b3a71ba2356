# tests/test_spoke_webhook.py

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from conftest import add_order, fetch_order
from services.delivery.crud.spoke_webhook_crud import map_spoke_event, parse_order_id

# ------------------------------ Mapping ------------------------------

@pytest.mark.parametrize("external_id, expected", [
    ("ORDER-42", 42),
    ("ORDER-007", 7),
    ("ORDER-", None),
    ("ORDER-12abc", None),
    ("ORDER-\u00b2", None),
    ("ORDER-" + "9" * 30, None),
    ("ORDER-9223372036854775807", 9223372036854775807),
    ("PEDIDO-42", None),
    ("42", None),
    (None, None),
    (42, None),
])
def test_parse_order_id(external_id, expected):
    assert parse_order_id(external_id) == expected


@pytest.mark.parametrize("event_type, data, expected", [
    ("stop.allocated", {}, {
        "delivery_status": "Aguardando Coleta",
        "delivery_info": "Motorista designado para a entrega.",
    }),
    ("stop.out_for_delivery", {}, {
        "delivery_status": "Despachado",
        "delivery_info": "O motorista iniciou o trajeto até você.",
    }),
    ("stop.completed", {}, {
        "delivery_status": "Entregue",
        "delivery_info": "Pedido entregue com sucesso!",
        "status": "Finalizada",
    }),
    ("stop.attempted_delivery", {}, {
        "delivery_status": "Tentativa de Entrega",
        "delivery_info": "O motorista tentou entregar, mas houve um imprevisto.",
    }),
    ("stop.updated", {"last_update_message": "Cliente ausente"}, {
        "delivery_status": "Pendente",
        "delivery_info": "Cliente ausente",
    }),
    ("stop.updated", {}, {"delivery_status": "Pendente", "delivery_info": ""}),
])
def test_spoke_event_mapping(event_type, data, expected):
    assert map_spoke_event(event_type, data) == expected


def test_completed_status_in_data_counts_as_delivered():
    values = map_spoke_event("stop.updated", {"status": "completed"})
    assert values["delivery_status"] == "Entregue"
    assert values["status"] == "Finalizada"


def test_allocated_takes_precedence_over_completed_status():
    values = map_spoke_event("stop.allocated", {"status": "completed"})
    assert values["delivery_status"] == "Aguardando Coleta"
    assert "status" not in values


def test_only_completion_changes_order_status():
    for event_type in ("stop.allocated", "stop.out_for_delivery", "stop.attempted_delivery", "other"):
        assert "status" not in map_spoke_event(event_type, {})

# ------------------------------ Endpoint ------------------------------

async def test_allocated_event_updates_delivery_projection(client, db, session_factory, dispatched_events):
    await add_order(db, id=42, status="Pago")

    response = await client.post("/api/webhooks/spoke", json={
        "event_type": "stop.allocated",
        "data": {"external_id": "ORDER-42"},
    })

    assert response.status_code == 200
    assert response.json() == {"success": True}
    order = await fetch_order(session_factory, 42)
    assert order.delivery_status == "Aguardando Coleta"
    assert order.delivery_info == "Motorista designado para a entrega."
    assert order.status == "Pago"
    dispatched_events.assert_called_once()
    assert dispatched_events.call_args.args[0] == "order.delivery_updated"


async def test_completed_event_finalizes_order(client, db, session_factory):
    await add_order(db, id=7, status="Pago")

    response = await client.post("/api/webhooks/spoke", json={
        "event_type": "stop.completed",
        "data": {"external_id": "ORDER-7"},
    })

    assert response.status_code == 200
    order = await fetch_order(session_factory, 7)
    assert order.delivery_status == "Entregue"
    assert order.status == "Finalizada"


async def test_replayed_event_leaves_same_state(client, db, session_factory):
    await add_order(db, id=8, status="Pago")
    event = {"event_type": "stop.out_for_delivery", "data": {"external_id": "ORDER-8"}}

    first = await client.post("/api/webhooks/spoke", json=event)
    state_after_first = (await fetch_order(session_factory, 8)).delivery_status
    second = await client.post("/api/webhooks/spoke", json=event)

    assert first.status_code == second.status_code == 200
    assert (await fetch_order(session_factory, 8)).delivery_status == state_after_first == "Despachado"


@pytest.mark.parametrize("body", [
    {"event_type": "stop.allocated", "data": {"external_id": "SHOP-42"}},
    {"event_type": "stop.allocated", "data": {"external_id": "ORDER-abc"}},
    {"event_type": "stop.allocated", "data": {"external_id": "ORDER-\u00b2"}},
    {"event_type": "stop.allocated", "data": {"external_id": "ORDER-" + "9" * 30}},
    {"event_type": "stop.allocated", "data": {}},
    {"event_type": "stop.allocated"},
    ["not", "an", "object"],
])
async def test_foreign_or_invalid_events_are_ignored(client, db, session_factory, dispatched_events, body):
    await add_order(db, id=42, status="Pago")

    with patch("services.delivery.routers.spoke_router.apply_delivery_update", AsyncMock()) as apply_mock:
        response = await client.post("/api/webhooks/spoke", json=body)

    assert response.status_code == 200
    assert response.json() == {"message": "Ignorado"}
    apply_mock.assert_not_awaited()
    assert (await fetch_order(session_factory, 42)).delivery_status == "Pendente"
    dispatched_events.assert_not_called()


async def test_malformed_json_is_ignored(client):
    response = await client.post(
        "/api/webhooks/spoke",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 200
    assert response.json() == {"message": "Ignorado"}


async def test_unknown_order_still_acknowledged(client):
    response = await client.post("/api/webhooks/spoke", json={
        "event_type": "stop.allocated",
        "data": {"external_id": "ORDER-999"},
    })

    assert response.status_code == 200
    assert response.json() == {"success": True}


async def test_database_failure_returns_500(client):
    with patch(
        "services.delivery.routers.spoke_router.apply_delivery_update",
        AsyncMock(side_effect=RuntimeError("connection lost")),
    ):
        response = await client.post("/api/webhooks/spoke", json={
            "event_type": "stop.allocated",
            "data": {"external_id": "ORDER-42"},
        })

    assert response.status_code == 500
    assert "Erro no processamento do Webhook" in response.json()["detail"]


async def test_configured_secret_is_enforced(client, db):
    await add_order(db, id=42, status="Pago")
    event = {"event_type": "stop.allocated", "data": {"external_id": "ORDER-42"}}

    with patch(
        "services.delivery.routers.spoke_router.get_settings",
        MagicMock(return_value=MagicMock(spoke_webhook_secret="spoke-secret")),
    ):
        denied = await client.post("/api/webhooks/spoke", json=event)
        allowed = await client.post(
            "/api/webhooks/spoke", json=event, headers={"Authorization": "Bearer spoke-secret"}
        )

    assert denied.status_code == 401
    assert allowed.status_code == 200
