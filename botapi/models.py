"""Pydantic data models for the Bot API.

Every class mirrors an object of the upstream JSON schema.  The client
validates every ``result`` it receives against one of these models, and
:class:`Update` is the record handed to application code by both the
polling loop and the webhook ingestor.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

FILE_ENDPOINT = "https://api.telegram.org/file/bot{token}/{path}"


# ── Envelope ─────────────────────────────────────────────────────────────────


class ResponseParameters(BaseModel):
    """Contains information about why a request was unsuccessful."""

    migrate_to_chat_id: Optional[int] = None
    retry_after: Optional[int] = None

    model_config = {"populate_by_name": True}


class APIResponse(BaseModel):
    """The ``{ok, result, …}`` envelope wrapped around every API answer."""

    ok: bool
    result: Any = None
    error_code: Optional[int] = None
    description: Optional[str] = None
    parameters: Optional[ResponseParameters] = None

    model_config = {"populate_by_name": True}


# ── Users and chats ──────────────────────────────────────────────────────────


class User(BaseModel):
    """A user or bot."""

    id: int
    is_bot: bool
    first_name: str
    last_name: Optional[str] = None
    username: Optional[str] = None
    language_code: Optional[str] = None
    can_join_groups: Optional[bool] = None
    can_read_all_group_messages: Optional[bool] = None
    supports_inline_queries: Optional[bool] = None

    model_config = {"populate_by_name": True}

    def __str__(self) -> str:
        if self.username:
            return self.username
        return " ".join(part for part in (self.first_name, self.last_name) if part)


class ChatPhoto(BaseModel):
    """A chat photo."""

    small_file_id: str
    big_file_id: str
    small_file_unique_id: Optional[str] = None
    big_file_unique_id: Optional[str] = None

    model_config = {"populate_by_name": True}


class Chat(BaseModel):
    """A private chat, group, supergroup or channel."""

    id: int
    type: str
    title: Optional[str] = None
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    photo: Optional[ChatPhoto] = None
    description: Optional[str] = None
    invite_link: Optional[str] = None
    pinned_message: Optional["Message"] = None

    model_config = {"populate_by_name": True}

    def is_private(self) -> bool:
        return self.type == "private"

    def is_group(self) -> bool:
        return self.type == "group"

    def is_supergroup(self) -> bool:
        return self.type == "supergroup"

    def is_channel(self) -> bool:
        return self.type == "channel"


class ChatMember(BaseModel):
    """Information about one member of a chat."""

    user: User
    status: str
    custom_title: Optional[str] = None
    until_date: Optional[int] = None
    can_be_edited: Optional[bool] = None
    can_change_info: Optional[bool] = None
    can_post_messages: Optional[bool] = None
    can_edit_messages: Optional[bool] = None
    can_delete_messages: Optional[bool] = None
    can_invite_users: Optional[bool] = None
    can_restrict_members: Optional[bool] = None
    can_pin_messages: Optional[bool] = None
    can_promote_members: Optional[bool] = None
    can_send_messages: Optional[bool] = None
    can_send_media_messages: Optional[bool] = None
    can_send_other_messages: Optional[bool] = None
    can_add_web_page_previews: Optional[bool] = None

    model_config = {"populate_by_name": True}

    def is_administrator(self) -> bool:
        return self.status in ("creator", "administrator")


# ── Message contents ─────────────────────────────────────────────────────────


class MessageEntity(BaseModel):
    """One special entity in a text message (hashtag, command, URL, …)."""

    type: str
    offset: int
    length: int
    url: Optional[str] = None
    user: Optional[User] = None
    language: Optional[str] = None

    model_config = {"populate_by_name": True}


class PhotoSize(BaseModel):
    """One size of a photo or a file / sticker thumbnail."""

    file_id: str
    width: int
    height: int
    file_unique_id: Optional[str] = None
    file_size: Optional[int] = None

    model_config = {"populate_by_name": True}


class Audio(BaseModel):
    file_id: str
    duration: int
    file_unique_id: Optional[str] = None
    performer: Optional[str] = None
    title: Optional[str] = None
    mime_type: Optional[str] = None
    file_size: Optional[int] = None

    model_config = {"populate_by_name": True}


class Document(BaseModel):
    file_id: str
    file_unique_id: Optional[str] = None
    thumb: Optional[PhotoSize] = None
    file_name: Optional[str] = None
    mime_type: Optional[str] = None
    file_size: Optional[int] = None

    model_config = {"populate_by_name": True}


class Video(BaseModel):
    file_id: str
    width: int
    height: int
    duration: int
    file_unique_id: Optional[str] = None
    thumb: Optional[PhotoSize] = None
    mime_type: Optional[str] = None
    file_size: Optional[int] = None

    model_config = {"populate_by_name": True}


class Voice(BaseModel):
    file_id: str
    duration: int
    file_unique_id: Optional[str] = None
    mime_type: Optional[str] = None
    file_size: Optional[int] = None

    model_config = {"populate_by_name": True}


class Contact(BaseModel):
    phone_number: str
    first_name: str
    last_name: Optional[str] = None
    user_id: Optional[int] = None
    vcard: Optional[str] = None

    model_config = {"populate_by_name": True}


class Location(BaseModel):
    """A point on the map."""

    longitude: float
    latitude: float

    model_config = {"populate_by_name": True}


class Venue(BaseModel):
    location: Location
    title: str
    address: str
    foursquare_id: Optional[str] = None

    model_config = {"populate_by_name": True}


class PollOption(BaseModel):
    text: str
    voter_count: int

    model_config = {"populate_by_name": True}


class Poll(BaseModel):
    """A native poll."""

    id: str
    question: str
    options: List[PollOption]
    is_closed: bool
    total_voter_count: Optional[int] = None
    is_anonymous: Optional[bool] = None
    type: Optional[str] = None
    allows_multiple_answers: Optional[bool] = None

    model_config = {"populate_by_name": True}


class PollAnswer(BaseModel):
    """An answer of a user in a non-anonymous poll."""

    poll_id: str
    user: User
    option_ids: List[int]

    model_config = {"populate_by_name": True}


class MaskPosition(BaseModel):
    point: str
    x_shift: float
    y_shift: float
    scale: float

    model_config = {"populate_by_name": True}


class Sticker(BaseModel):
    file_id: str
    width: int
    height: int
    file_unique_id: Optional[str] = None
    is_animated: Optional[bool] = None
    thumb: Optional[PhotoSize] = None
    emoji: Optional[str] = None
    set_name: Optional[str] = None
    mask_position: Optional[MaskPosition] = None
    file_size: Optional[int] = None

    model_config = {"populate_by_name": True}


class StickerSet(BaseModel):
    name: str
    title: str
    contains_masks: bool
    stickers: List[Sticker]
    is_animated: Optional[bool] = None

    model_config = {"populate_by_name": True}


class Game(BaseModel):
    title: str
    description: str
    photo: List[PhotoSize]
    text: Optional[str] = None
    text_entities: Optional[List[MessageEntity]] = None

    model_config = {"populate_by_name": True}


class GameHighScore(BaseModel):
    """One row of the high scores table for a game."""

    position: int
    user: User
    score: int

    model_config = {"populate_by_name": True}


class InlineKeyboardButton(BaseModel):
    text: str
    url: Optional[str] = None
    callback_data: Optional[str] = None
    switch_inline_query: Optional[str] = None
    switch_inline_query_current_chat: Optional[str] = None
    pay: Optional[bool] = None

    model_config = {"populate_by_name": True}


class InlineKeyboardMarkup(BaseModel):
    inline_keyboard: List[List[InlineKeyboardButton]]

    model_config = {"populate_by_name": True}


class Message(BaseModel):
    """A message."""

    message_id: int
    date: int
    chat: Chat
    from_field: Optional[User] = Field(None, alias="from")
    sender_chat: Optional[Chat] = None
    forward_from: Optional[User] = None
    forward_from_chat: Optional[Chat] = None
    forward_date: Optional[int] = None
    reply_to_message: Optional["Message"] = None
    edit_date: Optional[int] = None
    media_group_id: Optional[str] = None
    author_signature: Optional[str] = None
    text: Optional[str] = None
    entities: Optional[List[MessageEntity]] = None
    caption: Optional[str] = None
    caption_entities: Optional[List[MessageEntity]] = None
    audio: Optional[Audio] = None
    document: Optional[Document] = None
    game: Optional[Game] = None
    photo: Optional[List[PhotoSize]] = None
    sticker: Optional[Sticker] = None
    video: Optional[Video] = None
    voice: Optional[Voice] = None
    contact: Optional[Contact] = None
    location: Optional[Location] = None
    venue: Optional[Venue] = None
    poll: Optional[Poll] = None
    new_chat_members: Optional[List[User]] = None
    left_chat_member: Optional[User] = None
    new_chat_title: Optional[str] = None
    delete_chat_photo: Optional[bool] = None
    migrate_to_chat_id: Optional[int] = None
    migrate_from_chat_id: Optional[int] = None
    pinned_message: Optional["Message"] = None
    reply_markup: Optional[InlineKeyboardMarkup] = None

    model_config = {"populate_by_name": True}

    def is_command(self) -> bool:
        """Return True when the message starts with a ``bot_command`` entity."""
        if not self.entities or not self.text:
            return False
        first = self.entities[0]
        return first.offset == 0 and first.type == "bot_command"

    def command_with_at(self) -> str:
        """Return the command including any ``@botname`` suffix, without the slash."""
        if not self.is_command():
            return ""
        assert self.entities is not None and self.text is not None
        return self.text[1:self.entities[0].length]

    def command(self) -> str:
        """Return the command without the slash and without ``@botname``."""
        return self.command_with_at().split("@", 1)[0]

    def command_arguments(self) -> str:
        """Return everything after the command, stripped of leading spaces."""
        if not self.is_command():
            return ""
        assert self.entities is not None and self.text is not None
        return self.text[self.entities[0].length:].lstrip()


# ── Inbound query types ──────────────────────────────────────────────────────


class CallbackQuery(BaseModel):
    """A callback query from a button of an inline keyboard."""

    id: str
    from_field: User = Field(..., alias="from")
    chat_instance: str
    message: Optional[Message] = None
    inline_message_id: Optional[str] = None
    data: Optional[str] = None
    game_short_name: Optional[str] = None

    model_config = {"populate_by_name": True}


class InlineQuery(BaseModel):
    id: str
    from_field: User = Field(..., alias="from")
    query: str
    offset: str
    location: Optional[Location] = None

    model_config = {"populate_by_name": True}


class ChosenInlineResult(BaseModel):
    result_id: str
    from_field: User = Field(..., alias="from")
    query: str
    location: Optional[Location] = None
    inline_message_id: Optional[str] = None

    model_config = {"populate_by_name": True}


class LabeledPrice(BaseModel):
    label: str
    amount: int

    model_config = {"populate_by_name": True}


class ShippingOption(BaseModel):
    id: str
    title: str
    prices: List[LabeledPrice]

    model_config = {"populate_by_name": True}


class ShippingAddress(BaseModel):
    country_code: str
    state: str
    city: str
    street_line1: str
    street_line2: str
    post_code: str

    model_config = {"populate_by_name": True}


class OrderInfo(BaseModel):
    name: Optional[str] = None
    phone_number: Optional[str] = None
    email: Optional[str] = None
    shipping_address: Optional[ShippingAddress] = None

    model_config = {"populate_by_name": True}


class ShippingQuery(BaseModel):
    id: str
    from_field: User = Field(..., alias="from")
    invoice_payload: str
    shipping_address: ShippingAddress

    model_config = {"populate_by_name": True}


class PreCheckoutQuery(BaseModel):
    id: str
    from_field: User = Field(..., alias="from")
    currency: str
    total_amount: int
    invoice_payload: str
    shipping_option_id: Optional[str] = None
    order_info: Optional[OrderInfo] = None

    model_config = {"populate_by_name": True}


# ── Files and webhook status ─────────────────────────────────────────────────


class File(BaseModel):
    """A file ready to be downloaded from the file endpoint."""

    file_id: str
    file_unique_id: Optional[str] = None
    file_size: Optional[int] = None
    file_path: Optional[str] = None

    model_config = {"populate_by_name": True}

    def link(self, token: str) -> str:
        """Return the direct download URL for this file."""
        return FILE_ENDPOINT.format(token=token, path=self.file_path or "")


class UserProfilePhotos(BaseModel):
    total_count: int
    photos: List[List[PhotoSize]]

    model_config = {"populate_by_name": True}


class WebhookInfo(BaseModel):
    """Current status of a webhook."""

    url: str
    has_custom_certificate: bool
    pending_update_count: int
    ip_address: Optional[str] = None
    last_error_date: Optional[int] = None
    last_error_message: Optional[str] = None
    max_connections: Optional[int] = None
    allowed_updates: Optional[List[str]] = None

    model_config = {"populate_by_name": True}

    def is_set(self) -> bool:
        return self.url != ""


# ── Update ───────────────────────────────────────────────────────────────────


class UpdateKind(str, Enum):
    """Discriminator of :class:`Update` payloads; values are the wire keys."""

    MESSAGE = "message"
    EDITED_MESSAGE = "edited_message"
    CHANNEL_POST = "channel_post"
    EDITED_CHANNEL_POST = "edited_channel_post"
    INLINE_QUERY = "inline_query"
    CHOSEN_INLINE_RESULT = "chosen_inline_result"
    CALLBACK_QUERY = "callback_query"
    SHIPPING_QUERY = "shipping_query"
    PRE_CHECKOUT_QUERY = "pre_checkout_query"
    POLL = "poll"
    POLL_ANSWER = "poll_answer"
    UNKNOWN = "unknown"


_PAYLOAD_MODELS: Dict[UpdateKind, type[BaseModel]] = {
    UpdateKind.MESSAGE: Message,
    UpdateKind.EDITED_MESSAGE: Message,
    UpdateKind.CHANNEL_POST: Message,
    UpdateKind.EDITED_CHANNEL_POST: Message,
    UpdateKind.INLINE_QUERY: InlineQuery,
    UpdateKind.CHOSEN_INLINE_RESULT: ChosenInlineResult,
    UpdateKind.CALLBACK_QUERY: CallbackQuery,
    UpdateKind.SHIPPING_QUERY: ShippingQuery,
    UpdateKind.PRE_CHECKOUT_QUERY: PreCheckoutQuery,
    UpdateKind.POLL: Poll,
    UpdateKind.POLL_ANSWER: PollAnswer,
}

UpdatePayload = Union[
    Message,
    InlineQuery,
    ChosenInlineResult,
    CallbackQuery,
    ShippingQuery,
    PreCheckoutQuery,
    Poll,
    PollAnswer,
    Dict[str, Any],
]


class Update(BaseModel):
    """One inbound event.

    The wire object carries ``update_id`` plus exactly one event key
    (``message``, ``callback_query``, …).  On validation that key becomes
    :attr:`kind` and its decoded object becomes :attr:`payload`, so there
    is never any doubt about which variant is populated.  A body with none
    of the known keys is kept as ``UpdateKind.UNKNOWN`` with the remaining
    raw fields as a dict; a body with two or more known keys is rejected.

    Instances are immutable.
    """

    update_id: int
    kind: UpdateKind
    payload: Any = None

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="before")
    @classmethod
    def _select_payload(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        # Decoded form, e.g. Update(update_id=..., kind=..., payload=...).
        # The payload is still validated against the model of its kind.
        if "kind" in data and "payload" in data and not any(kind.value in data for kind in _PAYLOAD_MODELS):
            kind = UpdateKind(data["kind"])
            payload = data["payload"]
            if kind is UpdateKind.UNKNOWN:
                if not isinstance(payload, dict):
                    raise ValueError("payload of an unknown update must be a dict")
            else:
                payload = _PAYLOAD_MODELS[kind].model_validate(payload)
            return {"update_id": data.get("update_id"), "kind": kind.value, "payload": payload}

        present = [
            kind for kind in _PAYLOAD_MODELS
            if data.get(kind.value) is not None
        ]
        if len(present) > 1:
            keys = ", ".join(kind.value for kind in present)
            raise ValueError(f"update carries more than one event: {keys}")

        if not present:
            extra = {key: value for key, value in data.items() if key != "update_id"}
            return {"update_id": data.get("update_id"), "kind": UpdateKind.UNKNOWN.value, "payload": extra}

        kind = present[0]
        payload = _PAYLOAD_MODELS[kind].model_validate(data[kind.value])
        return {"update_id": data.get("update_id"), "kind": kind.value, "payload": payload}

    def to_wire(self) -> Dict[str, Any]:
        """Serialise back to the upstream JSON shape."""
        if self.kind is UpdateKind.UNKNOWN:
            return {"update_id": self.update_id, **(self.payload or {})}
        return {
            "update_id": self.update_id,
            self.kind.value: self.payload.model_dump(by_alias=True, exclude_none=True),
        }

    def _payload_if(self, kind: UpdateKind) -> Any:
        return self.payload if self.kind is kind else None

    @property
    def message(self) -> Optional[Message]:
        return self._payload_if(UpdateKind.MESSAGE)

    @property
    def edited_message(self) -> Optional[Message]:
        return self._payload_if(UpdateKind.EDITED_MESSAGE)

    @property
    def channel_post(self) -> Optional[Message]:
        return self._payload_if(UpdateKind.CHANNEL_POST)

    @property
    def edited_channel_post(self) -> Optional[Message]:
        return self._payload_if(UpdateKind.EDITED_CHANNEL_POST)

    @property
    def inline_query(self) -> Optional[InlineQuery]:
        return self._payload_if(UpdateKind.INLINE_QUERY)

    @property
    def chosen_inline_result(self) -> Optional[ChosenInlineResult]:
        return self._payload_if(UpdateKind.CHOSEN_INLINE_RESULT)

    @property
    def callback_query(self) -> Optional[CallbackQuery]:
        return self._payload_if(UpdateKind.CALLBACK_QUERY)

    @property
    def shipping_query(self) -> Optional[ShippingQuery]:
        return self._payload_if(UpdateKind.SHIPPING_QUERY)

    @property
    def pre_checkout_query(self) -> Optional[PreCheckoutQuery]:
        return self._payload_if(UpdateKind.PRE_CHECKOUT_QUERY)

    @property
    def poll(self) -> Optional[Poll]:
        return self._payload_if(UpdateKind.POLL)

    @property
    def poll_answer(self) -> Optional[PollAnswer]:
        return self._payload_if(UpdateKind.POLL_ANSWER)

    @property
    def effective_message(self) -> Optional[Message]:
        """Return the message of any message-shaped kind, or ``None``."""
        if isinstance(self.payload, Message):
            return self.payload
        return None


Chat.model_rebuild()
Message.model_rebuild()
