# tests/test_e2e.py
"""
End-to-end tests
Tests: full order lifecycle from registration to pickup, with live websocket updates
"""

from fastapi import status

from kartly.core.config import settings
from tests.factories import order_payload, signed, webhook_body

API = settings.API_V1_STR


def _join(ws, event, data):
    ws.send_json({"event": event, "data": data})
    return ws.receive_json()


def _post_webhook(client, body):
    return client.post(
        f"{API}/public/webhook/payments",
        content=body,
        headers={"X-Razorpay-Signature": signed(body), "Content-Type": "application/json"},
    )


class TestOrderLifecycle:
    """Registration, menu, QR, order, payment, kitchen workflow"""

    def test_complete_order_flow(self, client, registered_vendor):
        vendor_id = registered_vendor["id"]
        headers = registered_vendor["headers"]

        # Menu and QR
        category = client.post(f"{API}/vendor/categories", json={"name": "Chaat"}, headers=headers).json()
        client.post(f"{API}/vendor/menu-items", json={
            "categoryId": category["id"],
            "name": "Pani Puri",
            "price": "50.00",
        }, headers=headers)
        assert client.get(f"{API}/vendor/qr", headers=headers).json()["qrPath"] == f"/q/{vendor_id}"

        with client.websocket_connect(f"{API}/ws") as dashboard:
            assert dashboard.receive_json()["event"] == "connected"
            joined = _join(dashboard, "join_room", {"vendorId": vendor_id, "token": registered_vendor["token"]})
            assert joined == {
                "event": "joined",
                "data": {"channel": f"vendor_{vendor_id}"},
                "timestamp": joined["timestamp"],
            }

            # Customer orders one item at 100.00 twice, with 10.00 tax
            created = client.post(
                f"{API}/public/{vendor_id}/order",
                json=order_payload(quantity=2, unit_price="100.00", tax="10.00"),
            ).json()
            assert created["tokenNumber"] == 1
            assert created["amountMinorUnits"] == 21000

            # Gateway confirms payment; the dashboard hears about it
            body = webhook_body("payment.captured", created["gatewayOrderId"])
            response = _post_webhook(client, body)
            assert response.status_code == status.HTTP_200_OK
            assert response.json()["outcome"] == "processed"

            new_order = dashboard.receive_json()
            assert new_order["event"] == "new_order"
            assert new_order["data"]["id"] == created["orderId"]
            assert new_order["data"]["tokenNumber"] == 1
            assert new_order["data"]["paymentStatus"] == "SUCCESS"

            # A replayed webhook is acknowledged without a second announcement
            assert _post_webhook(client, body).json()["outcome"] == "duplicate"

            # Customer follows the order from the receipt page
            receipt = client.get(f"{API}/public/orders/{created['orderId']}").json()
            assert receipt["order"]["paymentStatus"] == "SUCCESS"
            assert receipt["order"]["subtotal"] == 200.0
            assert receipt["order"]["taxAmount"] == 10.0
            assert receipt["order"]["totalAmount"] == 210.0
            assert receipt["order"]["items"][0]["quantity"] == 2

            with client.websocket_connect(f"{API}/ws") as tracker:
                assert tracker.receive_json()["event"] == "connected"
                joined = _join(tracker, "join_order_room", {
                    "orderId": created["orderId"],
                    "token": receipt["trackingToken"],
                })
                assert joined["event"] == "joined"

                # Kitchen moves the order along
                response = client.put(
                    f"{API}/vendor/orders/{created['orderId']}/status",
                    json={"status": "Ready"},
                    headers=headers,
                )
                assert response.status_code == status.HTTP_200_OK

                update = tracker.receive_json()
                assert update["event"] == "order_status_update"
                assert update["data"] == {"orderId": created["orderId"], "orderStatus": "Ready"}

            # The next dashboard message is the refresh nudge, not a duplicate new_order
            assert dashboard.receive_json()["event"] == "vendor_orders_refresh"

        # Next order of the day gets the next token
        second = client.post(f"{API}/public/{vendor_id}/order", json=order_payload()).json()
        assert second["tokenNumber"] == 2


class TestWebsocketAuthorization:
    """Channel joins require the matching credential"""

    def test_join_room_rejects_other_vendors_token(self, client, registered_vendor):
        with client.websocket_connect(f"{API}/ws") as ws:
            ws.receive_json()
            reply = _join(ws, "join_room", {"vendorId": "someone-else", "token": registered_vendor["token"]})
            assert reply["event"] == "error"

    def test_join_room_rejects_missing_token(self, client, registered_vendor):
        with client.websocket_connect(f"{API}/ws") as ws:
            ws.receive_json()
            reply = _join(ws, "join_room", {"vendorId": registered_vendor["id"]})
            assert reply["event"] == "error"

    def test_tracking_token_is_bound_to_its_order(self, client, registered_vendor):
        vendor_id = registered_vendor["id"]
        first = client.post(f"{API}/public/{vendor_id}/order", json=order_payload()).json()
        second = client.post(f"{API}/public/{vendor_id}/order", json=order_payload()).json()

        with client.websocket_connect(f"{API}/ws") as ws:
            ws.receive_json()
            reply = _join(ws, "join_order_room", {
                "orderId": second["orderId"],
                "token": first["trackingToken"],
            })
            assert reply["event"] == "error"

    def test_access_token_cannot_join_order_room(self, client, registered_vendor):
        created = client.post(f"{API}/public/{registered_vendor['id']}/order", json=order_payload()).json()

        with client.websocket_connect(f"{API}/ws") as ws:
            ws.receive_json()
            reply = _join(ws, "join_order_room", {
                "orderId": created["orderId"],
                "token": registered_vendor["token"],
            })
            assert reply["event"] == "error"

    def test_ping(self, client):
        with client.websocket_connect(f"{API}/ws") as ws:
            ws.receive_json()
            ws.send_json({"event": "ping"})
            assert ws.receive_json()["event"] == "pong"

    def test_garbage_message(self, client):
        with client.websocket_connect(f"{API}/ws") as ws:
            ws.receive_json()
            ws.send_text("{{{")
            assert ws.receive_json()["event"] == "error"
