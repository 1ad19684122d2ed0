"""Bot API SDK -- Pydantic models, typed request builders, service client and
update delivery.

The :class:`BotClient` wraps the remote API with synchronous methods.  Updates
reach the application through an :class:`UpdateQueue`, fed either by a
:class:`PollingLoop` or by a webhook router.

Usage::

    from botapi import BotClient, MessageConfig, UpdateConfig

    client = BotClient(token)
    loop = client.start_polling(UpdateConfig(timeout=30))
    async for update in loop.queue:
        if update.message:
            await asyncio.to_thread(
                client.send, MessageConfig(chat_id=update.message.chat.id, text="hi"),
            )
"""

from botapi.client import API_ENDPOINT, BotClient
from botapi.exceptions import (
    APIException,
    BadFileTypeError,
    BotAPIError,
    DecodeError,
    MethodError,
    QueueClosedError,
)
from botapi.methods import (
    DEFAULT_BUFFER,
    FileBytes,
    FileReader,
    FileURL,
    MessageConfig,
    UpdateConfig,
    WebhookConfig,
)
from botapi.models import Update, UpdateKind
from botapi.updates import RETRY_DELAY, LoopState, PollingLoop, UpdateQueue
from botapi.webhook import WebhookIngestor, create_webhook_router, decode_update

__all__ = [
    "API_ENDPOINT",
    "BotClient",
    "APIException",
    "BadFileTypeError",
    "BotAPIError",
    "DecodeError",
    "MethodError",
    "QueueClosedError",
    "DEFAULT_BUFFER",
    "FileBytes",
    "FileReader",
    "FileURL",
    "MessageConfig",
    "UpdateConfig",
    "WebhookConfig",
    "Update",
    "UpdateKind",
    "RETRY_DELAY",
    "LoopState",
    "PollingLoop",
    "UpdateQueue",
    "WebhookIngestor",
    "create_webhook_router",
    "decode_update",
]
