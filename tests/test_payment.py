# tests/test_payment.py

from unittest.mock import AsyncMock, patch

import httpx
import pytest
import pytest_asyncio

from conftest import ADMIN_ID, CUSTOMER_ID, add_order, bearer, fetch_order
from services.integration.models.integration_model import AppSetting
from services.payment.crud.mercadopago_crud import extract_order_id

MP_CRUD = "services.payment.crud.mercadopago_crud"
PS_CRUD = "services.payment.crud.pagseguro_crud"


async def stored_setting(session_factory, key):
    async with session_factory() as session:
        setting = await session.get(AppSetting, key)
        return setting.value if setting is not None else None


@pytest_asyncio.fixture(name="mp_token")
async def mp_token_fixture(db):
    db.add(AppSetting(key="mercadopago_access_token", value="APP_USR-123"))
    await db.commit()

# -------------------------- Mercado Pago token --------------------------

async def test_valid_mercadopago_token_is_stored(client, session_factory, profiles):
    with patch(f"{MP_CRUD}.get_json", AsyncMock(return_value=httpx.Response(200, json={"id": 1}))) as get_mock:
        response = await client.post(
            "/api/payments/mercadopago/token",
            json={"token": "TEST-abc", "type": "test"},
            headers=bearer(ADMIN_ID),
        )

    assert response.status_code == 200
    assert response.json() == {"message": "Conexão com Mercado Pago estabelecida com sucesso!"}
    assert get_mock.await_args.args[0] == "https://api.mercadopago.com/users/me"
    assert get_mock.await_args.kwargs["headers"] == {"Authorization": "Bearer TEST-abc"}
    assert await stored_setting(session_factory, "mercadopago_test_access_token") == "TEST-abc"


async def test_invalid_mercadopago_token_is_rejected(client, session_factory, profiles):
    with patch(f"{MP_CRUD}.get_json", AsyncMock(return_value=httpx.Response(401, json={}))):
        response = await client.post(
            "/api/payments/mercadopago/token",
            json={"token": "bad", "type": "production"},
            headers=bearer(ADMIN_ID),
        )

    assert response.status_code == 400
    assert await stored_setting(session_factory, "mercadopago_access_token") is None


async def test_token_type_must_be_production_or_test(client, profiles):
    response = await client.post(
        "/api/payments/mercadopago/token",
        json={"token": "abc", "type": "staging"},
        headers=bearer(ADMIN_ID),
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "O tipo de token ('production' ou 'test') é obrigatório."


async def test_token_update_requires_admin(client, profiles):
    response = await client.post(
        "/api/payments/mercadopago/token",
        json={"token": "abc", "type": "test"},
        headers=bearer(CUSTOMER_ID),
    )

    assert response.status_code == 403


async def test_mercadopago_status(client, profiles, mp_token):
    disconnected = await client.post(
        "/api/payments/mercadopago/status", json={"type": "test"}, headers=bearer(ADMIN_ID)
    )
    with patch(f"{MP_CRUD}.get_json", AsyncMock(return_value=httpx.Response(200, json={}))):
        connected = await client.post(
            "/api/payments/mercadopago/status", json={"type": "production"}, headers=bearer(ADMIN_ID)
        )

    assert disconnected.json() == {"connected": False}
    assert connected.json() == {"connected": True}

# ------------------------------ PIX ------------------------------

async def test_create_pix_for_own_order(client, db, profiles, mp_token):
    order = await add_order(db, total_price=100, shipping_cost=10)
    mp_response = httpx.Response(201, json={
        "id": 987654,
        "status": "pending",
        "point_of_interaction": {"transaction_data": {"qr_code": "00020126", "qr_code_base64": "aGVsbG8="}},
    })

    with patch(f"{MP_CRUD}.post_json", AsyncMock(return_value=mp_response)) as post_mock:
        response = await client.post(
            "/api/payments/mercadopago/pix", json={"orderId": order.id}, headers=bearer(CUSTOMER_ID)
        )

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "qr_code": "00020126",
        "qr_code_base64": "aGVsbG8=",
        "payment_id": 987654,
    }

    call = post_mock.await_args
    assert call.args[0] == "https://api.mercadopago.com/v1/payments"
    body = call.kwargs["json"]
    assert body["transaction_amount"] == 110.0
    assert body["payment_method_id"] == "pix"
    assert body["external_reference"] == str(order.id)
    assert body["description"] == f"Pedido #{order.id} - Tabacaria"
    assert body["payer"]["email"] == "ana@example.com"
    assert body["payer"]["identification"] == {"type": "CPF", "number": "12345678900"}
    assert body["notification_url"].endswith("/api/payments/mercadopago/webhook")
    assert call.kwargs["headers"]["Authorization"] == "Bearer APP_USR-123"
    assert call.kwargs["headers"]["X-Idempotency-Key"].startswith(f"order-{order.id}-")


async def test_pix_for_someone_elses_order_is_forbidden(client, db, profiles, mp_token):
    order = await add_order(db, user_id=ADMIN_ID)

    with patch(f"{MP_CRUD}.post_json", AsyncMock()) as post_mock:
        response = await client.post(
            "/api/payments/mercadopago/pix", json={"orderId": order.id}, headers=bearer(CUSTOMER_ID)
        )

    assert response.status_code == 403
    post_mock.assert_not_awaited()


async def test_pix_for_unknown_order_is_404(client, profiles, mp_token):
    response = await client.post(
        "/api/payments/mercadopago/pix", json={"orderId": 404}, headers=bearer(CUSTOMER_ID)
    )

    assert response.status_code == 404


async def test_pix_gateway_error_is_500(client, db, profiles, mp_token):
    order = await add_order(db)

    with patch(
        f"{MP_CRUD}.post_json",
        AsyncMock(return_value=httpx.Response(400, json={"message": "payer.email invalid"})),
    ):
        response = await client.post(
            "/api/payments/mercadopago/pix", json={"orderId": order.id}, headers=bearer(CUSTOMER_ID)
        )

    assert response.status_code == 500
    assert response.json()["detail"] == "payer.email invalid"

# ------------------------------ Webhook ------------------------------

def test_extract_order_id():
    assert extract_order_id("123") == 123
    assert extract_order_id("order-123") == 123
    assert extract_order_id("pedido") is None
    assert extract_order_id(None) is None


async def test_webhook_ignores_other_topics(client):
    with patch(f"{MP_CRUD}.get_json", AsyncMock()) as get_mock:
        response = await client.post("/api/payments/mercadopago/webhook?topic=merchant_order&id=1")

    assert response.status_code == 200
    assert response.json() == {"message": "Topic ignored"}
    get_mock.assert_not_awaited()


async def test_approved_payment_marks_order_paid(client, db, session_factory, mp_token, dispatched_events):
    order = await add_order(db)
    payment = httpx.Response(200, json={"id": 55, "status": "approved", "external_reference": str(order.id)})

    with patch(f"{MP_CRUD}.get_json", AsyncMock(return_value=payment)) as get_mock:
        response = await client.post("/api/payments/mercadopago/webhook?topic=payment&id=55")

    assert response.status_code == 200
    assert response.json() == {"success": True}
    assert get_mock.await_args.args[0] == "https://api.mercadopago.com/v1/payments/55"
    stored = await fetch_order(session_factory, order.id)
    assert stored.status == "Pago"
    assert stored.payment_method == "Pix (Mercado Pago)"
    assert stored.delivery_status == "Pendente"
    assert dispatched_events.call_args.args[0] == "order.paid"


async def test_payment_id_can_come_from_body(client, db, session_factory, mp_token):
    order = await add_order(db)
    payment = httpx.Response(200, json={"status": "approved", "external_reference": f"order-{order.id}"})

    with patch(f"{MP_CRUD}.get_json", AsyncMock(return_value=payment)):
        response = await client.post("/api/payments/mercadopago/webhook?type=payment", json={"data": {"id": "77"}})

    assert response.json() == {"success": True}
    assert (await fetch_order(session_factory, order.id)).status == "Pago"


async def test_pending_payment_leaves_order_untouched(client, db, session_factory, mp_token, dispatched_events):
    order = await add_order(db)
    payment = httpx.Response(200, json={"status": "pending", "external_reference": str(order.id)})

    with patch(f"{MP_CRUD}.get_json", AsyncMock(return_value=payment)):
        response = await client.post("/api/payments/mercadopago/webhook?topic=payment&id=55")

    assert response.status_code == 200
    assert (await fetch_order(session_factory, order.id)).status == "Aguardando Pagamento"
    dispatched_events.assert_not_called()


async def test_webhook_failures_still_answer_200(client, mp_token):
    with patch(f"{MP_CRUD}.get_json", AsyncMock(return_value=httpx.Response(500, json={}))):
        response = await client.post("/api/payments/mercadopago/webhook?topic=payment&id=55")

    assert response.status_code == 200
    assert response.json() == {"error": "Erro ao consultar MP: 500"}


async def test_webhook_without_configured_token_answers_200(client):
    response = await client.post("/api/payments/mercadopago/webhook?topic=payment&id=55")

    assert response.status_code == 200
    assert response.json() == {"error": "Configuração ausente"}

# ------------------------------ PagSeguro ------------------------------

async def test_pagseguro_credentials_are_validated_and_stored(client, session_factory, profiles):
    with patch(f"{PS_CRUD}.post_json", AsyncMock(return_value=httpx.Response(200, text="<session/>"))) as post_mock:
        response = await client.post(
            "/api/payments/pagseguro/token",
            json={"email": "loja@example.com", "token": "PS-TOKEN", "type": "test"},
            headers=bearer(ADMIN_ID),
        )

    assert response.status_code == 200
    assert response.json() == {"message": "Conexão com PagSeguro estabelecida com sucesso!"}
    call = post_mock.await_args
    assert call.args[0] == "https://ws.sandbox.pagseguro.uol.com.br/v2/sessions"
    assert call.kwargs["params"] == {"email": "loja@example.com", "token": "PS-TOKEN"}
    assert call.kwargs["headers"] == {"Content-Type": "application/xml;charset=ISO-8859-1"}
    assert await stored_setting(session_factory, "pagseguro_test_email") == "loja@example.com"
    assert await stored_setting(session_factory, "pagseguro_test_token") == "PS-TOKEN"


async def test_invalid_pagseguro_credentials_are_rejected(client, session_factory, profiles):
    with patch(f"{PS_CRUD}.post_json", AsyncMock(return_value=httpx.Response(401, text="Unauthorized"))):
        response = await client.post(
            "/api/payments/pagseguro/token",
            json={"email": "loja@example.com", "token": "bad", "type": "production"},
            headers=bearer(ADMIN_ID),
        )

    assert response.status_code == 400
    assert await stored_setting(session_factory, "pagseguro_token") is None


async def test_pagseguro_status_without_credentials(client, profiles):
    with patch(f"{PS_CRUD}.post_json", AsyncMock()) as post_mock:
        response = await client.post(
            "/api/payments/pagseguro/status", json={"type": "production"}, headers=bearer(ADMIN_ID)
        )

    assert response.json() == {"connected": False}
    post_mock.assert_not_awaited()
