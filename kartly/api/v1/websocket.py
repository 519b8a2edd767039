# kartly/api/v1/websocket.py
"""
Realtime order updates.

A single endpoint; clients choose channels after connecting:

  {"event": "join_room", "data": {"vendorId": "...", "token": "<access token>"}}
  {"event": "join_order_room", "data": {"orderId": "...", "token": "<trackingToken>"}}
  {"event": "ping"}
"""
import json
from typing import Any, Dict

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from kartly.core.constants import order_channel, vendor_channel
from kartly.core.logging import logger
from kartly.core.security import vendor_id_from_access_token, verify_channel_token
from kartly.services.realtime import ConnectionManager, EventType, RealtimeMessage

router = APIRouter()


async def _send_error(manager: ConnectionManager, websocket: WebSocket, message: str):
    await manager.send_personal(websocket, RealtimeMessage(
        event=EventType.ERROR,
        data={"message": message},
    ))


async def handle_message(manager: ConnectionManager, websocket: WebSocket, message: Dict[str, Any]):
    event = message.get("event")
    data = message.get("data")
    if not isinstance(data, dict):
        data = {}

    if event == EventType.PING.value:
        await manager.send_personal(websocket, RealtimeMessage(event=EventType.PONG))
        return

    if event == EventType.JOIN_ROOM.value:
        vendor_id = data.get("vendorId")
        if not vendor_id or vendor_id_from_access_token(data.get("token")) != vendor_id:
            await _send_error(manager, websocket, "Not authorized for this vendor")
            return
        channel = vendor_channel(vendor_id)

    elif event == EventType.JOIN_ORDER_ROOM.value:
        order_id = data.get("orderId")
        if not order_id or not verify_channel_token(data.get("token"), order_channel(order_id)):
            await _send_error(manager, websocket, "Not authorized for this order")
            return
        channel = order_channel(order_id)

    else:
        await _send_error(manager, websocket, f"Unknown event: {event}")
        return

    await manager.join(websocket, channel)
    await manager.send_personal(websocket, RealtimeMessage(
        event=EventType.JOINED,
        data={"channel": channel},
    ))


@router.websocket("/ws")
async def realtime_websocket(websocket: WebSocket):
    manager: ConnectionManager = websocket.app.state.connection_manager
    await manager.connect(websocket)

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                message = json.loads(raw)
            except json.JSONDecodeError:
                await _send_error(manager, websocket, "Invalid JSON")
                continue
            if not isinstance(message, dict):
                await _send_error(manager, websocket, "Invalid message")
                continue
            await handle_message(manager, websocket, message)
    except WebSocketDisconnect:
        pass
    finally:
        await manager.disconnect(websocket)
        logger.debug("WebSocket disconnected")
