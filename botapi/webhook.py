"""Webhook ingestion -- push deliveries into the same queue contract as polling.

:class:`WebhookIngestor` is framework-agnostic: it takes the raw body and
the HTTP method of one delivery.  :func:`create_webhook_router` mounts it on
a FastAPI :class:`~fastapi.APIRouter`.

Unlike polling there is no offset tracking here: the upstream delivers each
update once, in order, and retries on its own when a delivery fails.
"""

from __future__ import annotations

from typing import Union

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from botapi.exceptions import DecodeError, MethodError, QueueClosedError
from botapi.models import Update
from botapi.updates import UpdateQueue
from core.logger import BotLogger

logger = BotLogger.get_logger()

# Methods the router accepts so that a wrong verb reaches the ingestor and is
# answered with a MethodError instead of the framework's generic 405.
_ROUTED_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE"]


def decode_update(body: Union[bytes, str]) -> Update:
    """Parse one webhook body into an :class:`Update`.

    Raises:
        DecodeError: If the body is not JSON or not a well-formed update.
    """
    try:
        return Update.model_validate_json(body)
    except ValidationError as exc:
        raise DecodeError(f"malformed update: {exc.error_count()} validation error(s)") from exc


class WebhookIngestor:
    """Turn push deliveries into updates on an :class:`UpdateQueue`.

    Many deliveries may be ingested concurrently; they all publish into the
    same queue.
    """

    def __init__(self, queue: UpdateQueue) -> None:
        self._queue = queue

    @property
    def queue(self) -> UpdateQueue:
        return self._queue

    async def ingest(self, body: Union[bytes, str], http_method: str) -> Update:
        """Decode one delivery and publish it.

        Waits for room when the queue is full.

        Raises:
            MethodError: If *http_method* is not ``POST``.
            DecodeError: If *body* is not a well-formed update.
        """
        if http_method.upper() != "POST":
            raise MethodError(http_method)

        update = decode_update(body)
        await self._queue.put(update)
        logger.debug(
            "Webhook update queued",
            extra={"update_id": update.update_id, "kind": update.kind.value},
        )
        return update


def create_webhook_router(ingestor: WebhookIngestor, path: str = "/webhook") -> APIRouter:
    """Return a router that feeds every delivery on *path* to *ingestor*.

    Responses: ``200 {"ok": true}`` on success, ``400`` for a malformed
    body, ``405`` for any method other than POST, ``503`` once the queue
    has been closed (the upstream retries the delivery); errors carry
    ``{"error": "<reason>"}``.
    """
    router = APIRouter()

    @router.api_route(path, methods=_ROUTED_METHODS)
    async def receive_update(request: Request) -> JSONResponse:
        body = await request.body()
        try:
            await ingestor.ingest(body, request.method)
        except MethodError as exc:
            logger.warning("Webhook delivery rejected", extra={"http_method": request.method, "error": str(exc)})
            return JSONResponse(status_code=405, content={"error": str(exc)}, headers={"Allow": "POST"})
        except DecodeError as exc:
            logger.warning("Webhook delivery not decodable", extra={"error": str(exc)})
            return JSONResponse(status_code=400, content={"error": str(exc)})
        except QueueClosedError as exc:
            # Shutting down; the upstream redelivers on a 5xx.
            logger.warning("Webhook delivery refused, update queue closed", extra={"error": str(exc)})
            return JSONResponse(status_code=503, content={"error": str(exc)})
        return JSONResponse(content={"ok": True})

    return router
