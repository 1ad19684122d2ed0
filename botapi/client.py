"""BotClient -- service layer for the Bot API.

Requests are form-encoded POSTs (multipart when a file is uploaded) sent
through an injected :class:`requests.Session`; every answer is unwrapped
from its ``{ok, result}`` envelope and validated against a Pydantic model.

The client is also the production :class:`~botapi.updates.Fetcher`:
:meth:`BotClient.start_polling` runs a :class:`~botapi.updates.PollingLoop`
against it, and :meth:`BotClient.listen_for_webhook` builds the
push-delivery counterpart.

All methods are blocking; async callers offload them with
:func:`asyncio.to_thread`, as the polling loop does.
"""

from __future__ import annotations

import asyncio
import os
from typing import Any, Dict, List, Optional, Tuple, Type, TypeVar

import requests
from fastapi import APIRouter
from pydantic import TypeAdapter, ValidationError

from botapi.exceptions import APIException, BadFileTypeError, DecodeError
from botapi.methods import (
    DEFAULT_BUFFER,
    APIMethod,
    ChatAdministratorsConfig,
    ChatConfig,
    ChatID,
    ChatInviteLinkConfig,
    ChatMemberConfig,
    ChatMembersCountConfig,
    DeleteWebhookConfig,
    FileBytes,
    FileConfig,
    FileMethod,
    FileReader,
    FileURL,
    GetGameHighScoresConfig,
    GetStickerSetConfig,
    InputFile,
    UpdateConfig,
    UserProfilePhotosConfig,
    WebhookConfig,
)
from botapi.models import (
    APIResponse,
    Chat,
    ChatMember,
    File,
    GameHighScore,
    Message,
    StickerSet,
    Update,
    User,
    UserProfilePhotos,
    WebhookInfo,
)
from botapi.updates import PollingLoop, UpdateQueue
from botapi.webhook import WebhookIngestor, create_webhook_router
from core.logger import BotLogger

logger = BotLogger.get_logger()

API_ENDPOINT = "https://api.telegram.org/bot{token}/{method}"

T = TypeVar("T")


class BotClient:
    """Client for one bot identity on one upstream endpoint.

    Args:
        token: Bot token issued by the platform.
        api_endpoint: URL template with ``{token}`` and ``{method}``
            placeholders, for self-hosted API servers.
        session: HTTP client to send requests with; a new
            :class:`requests.Session` when omitted.
        timeout: Request timeout in seconds.  ``getUpdates`` adds its
            long-poll timeout on top.
        buffer: Default capacity of update queues created by this client.
    """

    _DEFAULT_TIMEOUT: int = 10

    def __init__(
        self,
        token: str,
        api_endpoint: str = API_ENDPOINT,
        session: Optional[requests.Session] = None,
        timeout: int = _DEFAULT_TIMEOUT,
        buffer: int = DEFAULT_BUFFER,
    ) -> None:
        self._token = token
        self._api_endpoint = api_endpoint
        self._session = session if session is not None else requests.Session()
        self._timeout = timeout
        self._buffer = buffer
        self.self_user: Optional[User] = None

    @property
    def token(self) -> str:
        return self._token

    def set_api_endpoint(self, api_endpoint: str) -> None:
        self._api_endpoint = api_endpoint

    # ------------------------------------------------------------------
    #  Internal helpers
    # ------------------------------------------------------------------

    def _url(self, method: str) -> str:
        return self._api_endpoint.format(token=self._token, method=method)

    def _decode_response(self, method: str, response: requests.Response) -> APIResponse:
        """Unwrap the response envelope.

        Raises:
            DecodeError: If the body is not a JSON envelope.
            APIException: If the envelope says ``ok: false``.
        """
        try:
            body = response.json()
        except ValueError as exc:
            logger.error("Response is not JSON", extra={"api_endpoint": method, "status_code": response.status_code})
            raise DecodeError(f"{method}: response is not JSON (status {response.status_code})") from exc

        try:
            api_response = APIResponse.model_validate(body)
        except ValidationError as exc:
            raise DecodeError(f"{method}: malformed response envelope") from exc

        if not api_response.ok:
            logger.warning(
                "API returned an error",
                extra={
                    "api_endpoint": method,
                    "error_code": api_response.error_code,
                    "description": api_response.description,
                },
            )
            raise APIException(response.status_code, body)
        return api_response

    @staticmethod
    def _result(api_response: APIResponse, model: Type[T]) -> T:
        """Validate ``result`` as *model* (a class or a ``List[...]`` type)."""
        try:
            return TypeAdapter(model).validate_python(api_response.result)
        except ValidationError as exc:
            raise DecodeError(f"unexpected result shape for {model}: {exc.error_count()} error(s)") from exc

    # ------------------------------------------------------------------
    #  Transport
    # ------------------------------------------------------------------

    def make_request(
        self,
        method: str,
        params: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> APIResponse:
        """POST *params* form-encoded to *method* and return the envelope.

        Raises:
            APIException: If the API answers ``ok: false``.
            DecodeError: If the answer is not a JSON envelope.
            requests.RequestException: On transport-level failures.
        """
        logger.debug("Calling API", extra={"api_endpoint": method})
        response = self._session.post(
            self._url(method),
            data=params or {},
            timeout=timeout if timeout is not None else self._timeout,
        )
        return self._decode_response(method, response)

    def upload_file(
        self,
        method: str,
        params: Dict[str, str],
        field_name: str,
        file: InputFile,
    ) -> APIResponse:
        """POST *params* plus *file* as ``multipart/form-data``.

        *file* is a local path, :class:`FileBytes`, :class:`FileReader`
        or :class:`FileURL`; a URL is sent as a plain field.

        Raises:
            BadFileTypeError: If *file* is none of the above.
            APIException: If the API answers ``ok: false``.
            DecodeError: If the answer is not a JSON envelope.
            requests.RequestException: On transport-level failures.
        """
        fields = dict(params)
        url = self._url(method)
        logger.debug("Uploading file", extra={"api_endpoint": method, "field_name": field_name})

        if isinstance(file, str):
            with open(file, "rb") as handle:
                response = self._session.post(
                    url,
                    data=fields,
                    files={field_name: (os.path.basename(file), handle)},
                    timeout=self._timeout,
                )
        elif isinstance(file, FileBytes):
            response = self._session.post(
                url, data=fields, files={field_name: (file.name, file.data)}, timeout=self._timeout,
            )
        elif isinstance(file, FileReader):
            content: Any = file.reader.read() if file.size == -1 else file.reader
            response = self._session.post(
                url, data=fields, files={field_name: (file.name, content)}, timeout=self._timeout,
            )
        elif isinstance(file, FileURL):
            fields[field_name] = file.url
            response = self._session.post(url, data=fields, timeout=self._timeout)
        else:
            raise BadFileTypeError(f"bad file type: {type(file).__name__}")

        return self._decode_response(method, response)

    # ------------------------------------------------------------------
    #  Identity
    # ------------------------------------------------------------------

    def get_me(self) -> User:
        """Fetch the bot's own user; also validates the token."""
        return self._result(self.make_request("getMe"), User)

    def connect(self) -> User:
        """Call :meth:`get_me` and remember the result as :attr:`self_user`."""
        self.self_user = self.get_me()
        logger.info("Authorized on account", extra={"bot_username": self.self_user.username})
        return self.self_user

    def is_message_to_me(self, message: Message) -> bool:
        """Return True if *message* mentions this bot by ``@username``."""
        if self.self_user is None:
            self.connect()
        assert self.self_user is not None
        # A bot without a username cannot be mentioned.
        if not self.self_user.username:
            return False
        return f"@{self.self_user.username}" in (message.text or "")

    # ------------------------------------------------------------------
    #  Sending
    # ------------------------------------------------------------------

    def request(self, config: APIMethod) -> APIResponse:
        """Send any builder and return the raw envelope.

        File builders upload their file unless they reuse a ``file_id``.
        """
        if isinstance(config, FileMethod) and not config.use_existing_file():
            assert config.file is not None
            return self.upload_file(config.method, config.params(), config.field_name, config.file)
        return self.make_request(config.method, config.values())

    def send(self, config: APIMethod) -> Message:
        """Send a chat post and return the resulting :class:`Message`."""
        message = self._result(self.request(config), Message)
        logger.info("Message sent", extra={"api_endpoint": config.method, "chat_id": message.chat.id})
        return message

    # ------------------------------------------------------------------
    #  Updates and webhooks
    # ------------------------------------------------------------------

    def get_updates(self, config: UpdateConfig) -> List[Update]:
        """Fetch one batch of updates (the polling loop's fetcher).

        Returns nothing while a webhook is set.
        """
        response = self.make_request(
            config.method, config.values(), timeout=self._timeout + config.timeout,
        )
        return self._result(response, List[Update])

    def set_webhook(self, config: WebhookConfig) -> APIResponse:
        """Register a webhook; :meth:`get_updates` stops returning data."""
        if config.certificate is None:
            return self.make_request(config.method, config.values())
        return self.upload_file(config.method, config.values(), config.field_name, config.certificate)

    def remove_webhook(self) -> APIResponse:
        return self.make_request(DeleteWebhookConfig.method)

    def get_webhook_info(self) -> WebhookInfo:
        return self._result(self.make_request("getWebhookInfo"), WebhookInfo)

    def start_polling(
        self,
        config: Optional[UpdateConfig] = None,
        stop_event: Optional[asyncio.Event] = None,
    ) -> PollingLoop:
        """Start a :class:`PollingLoop` on this client and return it.

        Must be called from a running event loop; read updates from
        ``loop.queue`` and end the session with ``loop.stop()``.
        """
        loop = PollingLoop(self, config or UpdateConfig(buffer=self._buffer), stop_event=stop_event)
        loop.start()
        return loop

    def listen_for_webhook(self, path: str = "/webhook") -> Tuple[APIRouter, UpdateQueue]:
        """Return a router serving *path* and the queue it publishes into."""
        queue = UpdateQueue(self._buffer)
        router = create_webhook_router(WebhookIngestor(queue), path)
        return router, queue

    # ------------------------------------------------------------------
    #  Files and users
    # ------------------------------------------------------------------

    def get_file(self, file_id: str) -> File:
        return self._result(self.request(FileConfig(file_id=file_id)), File)

    def get_file_direct_url(self, file_id: str) -> str:
        """Resolve *file_id* to a download URL valid for about an hour."""
        return self.get_file(file_id).link(self._token)

    def get_user_profile_photos(self, config: UserProfilePhotosConfig) -> UserProfilePhotos:
        return self._result(self.request(config), UserProfilePhotos)

    # ------------------------------------------------------------------
    #  Chats
    # ------------------------------------------------------------------

    def get_chat(self, chat_id: ChatID) -> Chat:
        return self._result(self.request(ChatConfig(chat_id=chat_id)), Chat)

    def get_chat_administrators(self, chat_id: ChatID) -> List[ChatMember]:
        """List the chat's administrators; bots are never included."""
        return self._result(self.request(ChatAdministratorsConfig(chat_id=chat_id)), List[ChatMember])

    def get_chat_members_count(self, chat_id: ChatID) -> int:
        return self._result(self.request(ChatMembersCountConfig(chat_id=chat_id)), int)

    def get_chat_member(self, chat_id: ChatID, user_id: int) -> ChatMember:
        return self._result(self.request(ChatMemberConfig(chat_id=chat_id, user_id=user_id)), ChatMember)

    def get_invite_link(self, chat_id: ChatID) -> str:
        return self._result(self.request(ChatInviteLinkConfig(chat_id=chat_id)), str)

    # ------------------------------------------------------------------
    #  Stickers and games
    # ------------------------------------------------------------------

    def get_sticker_set(self, name: str) -> StickerSet:
        return self._result(self.request(GetStickerSetConfig(name=name)), StickerSet)

    def get_game_high_scores(self, config: GetGameHighScoresConfig) -> List[GameHighScore]:
        return self._result(self.request(config), List[GameHighScore])
