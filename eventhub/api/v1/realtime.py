from __future__ import annotations

import asyncio
import contextlib

import structlog
from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from eventhub.realtime.broadcaster import Broadcaster

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["realtime"])


def offer(queue: asyncio.Queue, message: dict, client: str | None = None) -> bool:
    """Queue ``message`` for one connection, dropping it when the client lags behind.

    Delivery is at-most-once, so a full queue loses the message instead of
    growing without bound or stalling the publisher.
    """
    try:
        queue.put_nowait(message)
    except asyncio.QueueFull:
        logger.warning(
            "realtime_message_dropped",
            client=client,
            type=message.get("type"),
            pending=queue.qsize(),
        )
        return False
    return True


async def _forward(websocket: WebSocket, queue: asyncio.Queue) -> None:
    while True:
        message = await queue.get()
        await websocket.send_json(message)


async def _drain_until_closed(websocket: WebSocket) -> None:
    # Client frames are ignored; reading is how the close is noticed.
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return


@router.websocket("/ws")
async def events_socket(websocket: WebSocket):
    broadcaster: Broadcaster = websocket.app.state.broadcaster
    settings = websocket.app.state.settings
    client = f"{websocket.client.host}:{websocket.client.port}" if websocket.client else None

    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue(maxsize=settings.realtime_queue_size)

    def deliver(message: dict) -> None:
        # publish() runs on threadpool workers; hop onto this connection's loop.
        # call_soon_threadsafe is FIFO, which keeps per-publisher order.
        loop.call_soon_threadsafe(offer, queue, message, client)

    # Subscribed before the handshake completes, so nothing published after
    # the client sees the connection open is missed.
    subscription = broadcaster.subscribe(deliver, label=client)
    tasks: list[asyncio.Task] = []
    try:
        await websocket.accept()
        tasks = [
            asyncio.create_task(_forward(websocket, queue)),
            asyncio.create_task(_drain_until_closed(websocket)),
        ]
        done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in done:
            exc = task.exception()
            if exc is not None and not isinstance(exc, WebSocketDisconnect):
                logger.warning("realtime_socket_error", client=client, error=repr(exc))
    finally:
        broadcaster.unsubscribe(subscription)
        for task in tasks:
            if task.done():
                continue
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
