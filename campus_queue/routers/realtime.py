import uuid

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from campus_queue.core.change_feed import FEED_TABLES, Subscription, change_feed

router = APIRouter(prefix="/realtime", tags=["realtime"])


def _parse_subscription(table: str | None, row_id: str | None) -> Subscription | None:
    if table not in FEED_TABLES:
        return None
    if row_id:
        try:
            row_id = str(uuid.UUID(row_id))
        except ValueError:
            return None
    return Subscription(table=table, row_id=row_id or None)


@router.websocket("/ws")
async def change_feed_ws(websocket: WebSocket) -> None:
    subscription = _parse_subscription(
        websocket.query_params.get("table"),
        websocket.query_params.get("row_id"),
    )
    if subscription is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await change_feed.connect(websocket, subscription)
    try:
        await websocket.send_json(
            {"type": "subscribed", "table": subscription.table, "row_id": subscription.row_id}
        )
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        await change_feed.disconnect(websocket)
