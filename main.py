"""Echo bot runner.

In ``polling`` mode the bot long-polls ``getUpdates`` through a
:class:`~botapi.PollingLoop`; in ``webhook`` mode it serves the webhook
router with uvicorn.  Either way every text message is echoed back to the
chat it came from.  Ctrl+C stops polling cleanly: the queue is closed and
the consumer drains what is left before exiting.
"""

from __future__ import annotations

import asyncio
import logging
import signal
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from botapi import BotClient, MessageConfig, UpdateConfig, UpdateQueue, WebhookConfig
from botapi.models import Update
from config import (
    API_ENDPOINT,
    BOT_TOKEN,
    LOG_LEVEL,
    POLL_LIMIT,
    POLL_TIMEOUT,
    UPDATE_BUFFER,
    UPDATE_MODE,
    WEBHOOK_HOST,
    WEBHOOK_PATH,
    WEBHOOK_PORT,
    WEBHOOK_URL,
)
from core.logger import BotLogger

logger = BotLogger.get_logger()


async def echo(client: BotClient, update: Update) -> None:
    """Reply to a text message with the same text."""
    message = update.message
    if message is None or not message.text:
        logger.debug("Update has no text message, skipping", extra={"update_id": update.update_id, "kind": update.kind.value})
        return
    config = MessageConfig(chat_id=message.chat.id, text=message.text, reply_to_message_id=message.message_id)
    try:
        await asyncio.to_thread(client.send, config)
    except Exception as exc:
        logger.error(
            "Failed to echo message",
            extra={"update_id": update.update_id, "chat_id": message.chat.id, "error": str(exc)},
        )


async def consume(client: BotClient, queue: UpdateQueue) -> None:
    """Handle updates until *queue* is closed."""
    async for update in queue:
        await echo(client, update)
    logger.info("Update queue closed, consumer finished")


def build_client() -> BotClient:
    if not BOT_TOKEN:
        raise EnvironmentError("BOT_TOKEN environment variable is not set or is empty.")
    return BotClient(BOT_TOKEN, api_endpoint=API_ENDPOINT, buffer=UPDATE_BUFFER)


# ── Polling mode ─────────────────────────────────────────────────────────────


async def run_polling() -> None:
    client = build_client()
    await asyncio.to_thread(client.connect)

    loop = client.start_polling(UpdateConfig(timeout=POLL_TIMEOUT, limit=POLL_LIMIT, buffer=UPDATE_BUFFER))

    event_loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            event_loop.add_signal_handler(sig, loop.stop)
        except NotImplementedError:
            # Windows: KeyboardInterrupt still ends the process.
            pass

    await consume(client, loop.queue)
    await loop.wait_closed()


# ── Webhook mode ─────────────────────────────────────────────────────────────


def create_app(client: BotClient) -> FastAPI:
    """Build the FastAPI app serving the webhook and running the consumer."""
    router, queue = client.listen_for_webhook(WEBHOOK_PATH)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        if WEBHOOK_URL:
            await asyncio.to_thread(client.set_webhook, WebhookConfig(url=WEBHOOK_URL))
            logger.info("Webhook registered", extra={"webhook_url": WEBHOOK_URL})
        consumer = asyncio.create_task(consume(client, queue), name="botapi-consumer")
        yield
        queue.close()
        await consumer

    app = FastAPI(title="botapi echo bot", lifespan=lifespan)
    app.include_router(router)
    return app


def run_webhook() -> None:
    import uvicorn

    client = build_client()
    logger.info("Serving webhook", extra={"host": WEBHOOK_HOST, "port": WEBHOOK_PORT, "webhook_path": WEBHOOK_PATH})
    uvicorn.run(create_app(client), host=WEBHOOK_HOST, port=WEBHOOK_PORT, log_config=None)


def main() -> None:
    BotLogger.set_level(getattr(logging, LOG_LEVEL, logging.INFO))
    try:
        if UPDATE_MODE == "webhook":
            run_webhook()
        else:
            asyncio.run(run_polling())
    finally:
        BotLogger().cleanup()


if __name__ == "__main__":
    main()
