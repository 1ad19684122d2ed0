"""Typed request builders -- one frozen dataclass per remote operation.

Each builder names its endpoint in :attr:`APIMethod.method` and renders its
form fields with :meth:`APIMethod.values`.  Builders that carry a file
(:class:`FileMethod`) additionally expose the multipart field name and the
file itself; :class:`~botapi.client.BotClient` decides between a plain
form POST and a multipart upload.

Usage::

    from botapi.methods import MessageConfig, PhotoConfig, FileBytes

    client.send(MessageConfig(chat_id=42, text="hello"))
    client.send(PhotoConfig(chat_id=42, file=FileBytes("cat.jpg", data)))
"""

from __future__ import annotations

import dataclasses
import json
from typing import IO, Any, ClassVar, Dict, List, Optional, Union

from pydantic import BaseModel

DEFAULT_BUFFER = 100

ChatID = Union[int, str]


# ── File descriptors ─────────────────────────────────────────────────────────


@dataclasses.dataclass(frozen=True, slots=True)
class FileBytes:
    """In-memory file content to upload under *name*."""

    name: str
    data: bytes


@dataclasses.dataclass(frozen=True, slots=True)
class FileReader:
    """A readable stream to upload under *name*.

    A *size* of ``-1`` means unknown; the stream is then read into memory
    before the upload.
    """

    name: str
    reader: IO[bytes]
    size: int = -1


@dataclasses.dataclass(frozen=True, slots=True)
class FileURL:
    """A remote URL the upstream fetches itself; sent as a plain field."""

    url: str


# A local path (``str``) or one of the descriptors above.
InputFile = Union[str, FileBytes, FileReader, FileURL]


# ── Encoding helpers ─────────────────────────────────────────────────────────


def _bool(value: bool) -> str:
    return "true" if value else "false"


def _json(value: Any) -> str:
    """Encode markup / result lists the way the upstream expects them."""
    if isinstance(value, BaseModel):
        return value.model_dump_json(by_alias=True, exclude_none=True)
    if isinstance(value, list):
        return json.dumps([
            item.model_dump(by_alias=True, exclude_none=True) if isinstance(item, BaseModel) else item
            for item in value
        ])
    return json.dumps(value)


def _put_optional(values: Dict[str, str], key: str, value: Any) -> None:
    """Add *value* under *key* unless it is ``None``."""
    if value is None:
        return
    if isinstance(value, bool):
        values[key] = _bool(value)
    elif isinstance(value, (dict, list, BaseModel)):
        values[key] = _json(value)
    else:
        values[key] = str(value)


# ── Base builders ────────────────────────────────────────────────────────────


@dataclasses.dataclass(frozen=True, kw_only=True)
class APIMethod:
    """Shared capability of every builder: produce the request body."""

    method: ClassVar[str] = ""

    def values(self) -> Dict[str, str]:
        """Return the form fields of this request."""
        return {}


@dataclasses.dataclass(frozen=True, kw_only=True)
class BaseChat(APIMethod):
    """Fields shared by everything that posts into a chat."""

    chat_id: ChatID
    reply_to_message_id: Optional[int] = None
    reply_markup: Any = None
    disable_notification: Optional[bool] = None

    def values(self) -> Dict[str, str]:
        values = {"chat_id": str(self.chat_id)}
        _put_optional(values, "reply_to_message_id", self.reply_to_message_id)
        _put_optional(values, "reply_markup", self.reply_markup)
        _put_optional(values, "disable_notification", self.disable_notification)
        return values


@dataclasses.dataclass(frozen=True, kw_only=True)
class FileMethod(BaseChat):
    """A chat post carrying a file.

    Either *file* (a new upload) or *file_id* (a file already stored
    upstream) must be given.
    """

    field_name: ClassVar[str] = ""

    file: Optional[InputFile] = None
    file_id: Optional[str] = None
    caption: Optional[str] = None
    parse_mode: Optional[str] = None

    def __post_init__(self) -> None:
        if (self.file is None) == (self.file_id is None):
            raise ValueError(f"{type(self).__name__} needs exactly one of file or file_id")

    def use_existing_file(self) -> bool:
        return self.file_id is not None

    def params(self) -> Dict[str, str]:
        """Return the non-file fields of a multipart upload."""
        values = super().values()
        _put_optional(values, "caption", self.caption)
        _put_optional(values, "parse_mode", self.parse_mode)
        return values

    def values(self) -> Dict[str, str]:
        values = self.params()
        if self.file_id is not None:
            values[self.field_name] = self.file_id
        return values


# ── Messages ─────────────────────────────────────────────────────────────────


@dataclasses.dataclass(frozen=True, kw_only=True)
class MessageConfig(BaseChat):
    method: ClassVar[str] = "sendMessage"

    text: str
    parse_mode: Optional[str] = None
    disable_web_page_preview: Optional[bool] = None

    def values(self) -> Dict[str, str]:
        values = super().values()
        values["text"] = self.text
        _put_optional(values, "parse_mode", self.parse_mode)
        _put_optional(values, "disable_web_page_preview", self.disable_web_page_preview)
        return values


@dataclasses.dataclass(frozen=True, kw_only=True)
class ForwardConfig(BaseChat):
    method: ClassVar[str] = "forwardMessage"

    from_chat_id: ChatID
    message_id: int

    def values(self) -> Dict[str, str]:
        values = super().values()
        values["from_chat_id"] = str(self.from_chat_id)
        values["message_id"] = str(self.message_id)
        return values


@dataclasses.dataclass(frozen=True, kw_only=True)
class PhotoConfig(FileMethod):
    method: ClassVar[str] = "sendPhoto"
    field_name: ClassVar[str] = "photo"


@dataclasses.dataclass(frozen=True, kw_only=True)
class DocumentConfig(FileMethod):
    method: ClassVar[str] = "sendDocument"
    field_name: ClassVar[str] = "document"


@dataclasses.dataclass(frozen=True, kw_only=True)
class AudioConfig(FileMethod):
    method: ClassVar[str] = "sendAudio"
    field_name: ClassVar[str] = "audio"

    duration: Optional[int] = None
    performer: Optional[str] = None
    title: Optional[str] = None

    def params(self) -> Dict[str, str]:
        values = super().params()
        _put_optional(values, "duration", self.duration)
        _put_optional(values, "performer", self.performer)
        _put_optional(values, "title", self.title)
        return values


@dataclasses.dataclass(frozen=True, kw_only=True)
class VideoConfig(FileMethod):
    method: ClassVar[str] = "sendVideo"
    field_name: ClassVar[str] = "video"

    duration: Optional[int] = None

    def params(self) -> Dict[str, str]:
        values = super().params()
        _put_optional(values, "duration", self.duration)
        return values


@dataclasses.dataclass(frozen=True, kw_only=True)
class VoiceConfig(FileMethod):
    method: ClassVar[str] = "sendVoice"
    field_name: ClassVar[str] = "voice"

    duration: Optional[int] = None

    def params(self) -> Dict[str, str]:
        values = super().params()
        _put_optional(values, "duration", self.duration)
        return values


@dataclasses.dataclass(frozen=True, kw_only=True)
class StickerConfig(FileMethod):
    method: ClassVar[str] = "sendSticker"
    field_name: ClassVar[str] = "sticker"


@dataclasses.dataclass(frozen=True, kw_only=True)
class LocationConfig(BaseChat):
    method: ClassVar[str] = "sendLocation"

    latitude: float
    longitude: float

    def values(self) -> Dict[str, str]:
        values = super().values()
        values["latitude"] = repr(self.latitude)
        values["longitude"] = repr(self.longitude)
        return values


@dataclasses.dataclass(frozen=True, kw_only=True)
class ContactConfig(BaseChat):
    method: ClassVar[str] = "sendContact"

    phone_number: str
    first_name: str
    last_name: Optional[str] = None

    def values(self) -> Dict[str, str]:
        values = super().values()
        values["phone_number"] = self.phone_number
        values["first_name"] = self.first_name
        _put_optional(values, "last_name", self.last_name)
        return values


@dataclasses.dataclass(frozen=True, kw_only=True)
class ChatActionConfig(BaseChat):
    """``typing``, ``upload_photo`` and the other chat actions."""

    method: ClassVar[str] = "sendChatAction"

    action: str

    def values(self) -> Dict[str, str]:
        return {"chat_id": str(self.chat_id), "action": self.action}


@dataclasses.dataclass(frozen=True, kw_only=True)
class EditMessageTextConfig(APIMethod):
    method: ClassVar[str] = "editMessageText"

    text: str
    chat_id: Optional[ChatID] = None
    message_id: Optional[int] = None
    inline_message_id: Optional[str] = None
    parse_mode: Optional[str] = None
    reply_markup: Any = None

    def values(self) -> Dict[str, str]:
        values = {"text": self.text}
        _put_optional(values, "chat_id", self.chat_id)
        _put_optional(values, "message_id", self.message_id)
        _put_optional(values, "inline_message_id", self.inline_message_id)
        _put_optional(values, "parse_mode", self.parse_mode)
        _put_optional(values, "reply_markup", self.reply_markup)
        return values


@dataclasses.dataclass(frozen=True, kw_only=True)
class DeleteMessageConfig(APIMethod):
    method: ClassVar[str] = "deleteMessage"

    chat_id: ChatID
    message_id: int

    def values(self) -> Dict[str, str]:
        return {"chat_id": str(self.chat_id), "message_id": str(self.message_id)}


# ── Updates and webhooks ─────────────────────────────────────────────────────


@dataclasses.dataclass(frozen=True, kw_only=True)
class UpdateConfig(APIMethod):
    """Parameters of one ``getUpdates`` call plus the polling queue size.

    *offset* ``0`` lets the upstream pick, *limit* ``0`` means the server
    default, *timeout* ``0`` returns immediately (no long-poll).  *buffer*
    is the capacity of the queue a polling loop publishes into and is never
    sent upstream.
    """

    method: ClassVar[str] = "getUpdates"

    offset: int = 0
    limit: int = 0
    timeout: int = 0
    buffer: int = DEFAULT_BUFFER

    def values(self) -> Dict[str, str]:
        values: Dict[str, str] = {}
        if self.offset != 0:
            values["offset"] = str(self.offset)
        if self.limit > 0:
            values["limit"] = str(self.limit)
        if self.timeout > 0:
            values["timeout"] = str(self.timeout)
        return values


@dataclasses.dataclass(frozen=True, kw_only=True)
class WebhookConfig(APIMethod):
    """``setWebhook``; a *certificate* switches the call to a multipart upload."""

    method: ClassVar[str] = "setWebhook"
    field_name: ClassVar[str] = "certificate"

    url: str
    certificate: Optional[InputFile] = None
    max_connections: int = 0
    allowed_updates: Optional[List[str]] = None

    def values(self) -> Dict[str, str]:
        values = {"url": self.url}
        if self.max_connections != 0:
            values["max_connections"] = str(self.max_connections)
        _put_optional(values, "allowed_updates", self.allowed_updates)
        return values


@dataclasses.dataclass(frozen=True, kw_only=True)
class DeleteWebhookConfig(APIMethod):
    method: ClassVar[str] = "deleteWebhook"


# ── Users, files and chats ───────────────────────────────────────────────────


@dataclasses.dataclass(frozen=True, kw_only=True)
class UserProfilePhotosConfig(APIMethod):
    method: ClassVar[str] = "getUserProfilePhotos"

    user_id: int
    offset: int = 0
    limit: int = 0

    def values(self) -> Dict[str, str]:
        values = {"user_id": str(self.user_id)}
        if self.offset != 0:
            values["offset"] = str(self.offset)
        if self.limit != 0:
            values["limit"] = str(self.limit)
        return values


@dataclasses.dataclass(frozen=True, kw_only=True)
class FileConfig(APIMethod):
    method: ClassVar[str] = "getFile"

    file_id: str

    def values(self) -> Dict[str, str]:
        return {"file_id": self.file_id}


@dataclasses.dataclass(frozen=True, kw_only=True)
class ChatConfig(APIMethod):
    """A request addressed by chat id or ``@channelusername`` only."""

    method: ClassVar[str] = "getChat"

    chat_id: ChatID

    def values(self) -> Dict[str, str]:
        return {"chat_id": str(self.chat_id)}


@dataclasses.dataclass(frozen=True, kw_only=True)
class LeaveChatConfig(ChatConfig):
    method: ClassVar[str] = "leaveChat"


@dataclasses.dataclass(frozen=True, kw_only=True)
class ChatAdministratorsConfig(ChatConfig):
    method: ClassVar[str] = "getChatAdministrators"


@dataclasses.dataclass(frozen=True, kw_only=True)
class ChatMembersCountConfig(ChatConfig):
    method: ClassVar[str] = "getChatMembersCount"


@dataclasses.dataclass(frozen=True, kw_only=True)
class ChatInviteLinkConfig(ChatConfig):
    method: ClassVar[str] = "exportChatInviteLink"


@dataclasses.dataclass(frozen=True, kw_only=True)
class DeleteChatPhotoConfig(ChatConfig):
    method: ClassVar[str] = "deleteChatPhoto"


@dataclasses.dataclass(frozen=True, kw_only=True)
class UnpinChatMessageConfig(ChatConfig):
    method: ClassVar[str] = "unpinChatMessage"


@dataclasses.dataclass(frozen=True, kw_only=True)
class PinChatMessageConfig(ChatConfig):
    method: ClassVar[str] = "pinChatMessage"

    message_id: int
    disable_notification: bool = False

    def values(self) -> Dict[str, str]:
        values = super().values()
        values["message_id"] = str(self.message_id)
        values["disable_notification"] = _bool(self.disable_notification)
        return values


@dataclasses.dataclass(frozen=True, kw_only=True)
class SetChatTitleConfig(ChatConfig):
    method: ClassVar[str] = "setChatTitle"

    title: str

    def values(self) -> Dict[str, str]:
        values = super().values()
        values["title"] = self.title
        return values


@dataclasses.dataclass(frozen=True, kw_only=True)
class SetChatDescriptionConfig(ChatConfig):
    method: ClassVar[str] = "setChatDescription"

    description: str

    def values(self) -> Dict[str, str]:
        values = super().values()
        values["description"] = self.description
        return values


@dataclasses.dataclass(frozen=True, kw_only=True)
class SetChatPhotoConfig(FileMethod):
    method: ClassVar[str] = "setChatPhoto"
    field_name: ClassVar[str] = "photo"

    def params(self) -> Dict[str, str]:
        return {"chat_id": str(self.chat_id)}


@dataclasses.dataclass(frozen=True, kw_only=True)
class ChatMemberConfig(APIMethod):
    method: ClassVar[str] = "getChatMember"

    chat_id: ChatID
    user_id: int

    def values(self) -> Dict[str, str]:
        return {"chat_id": str(self.chat_id), "user_id": str(self.user_id)}


@dataclasses.dataclass(frozen=True, kw_only=True)
class KickChatMemberConfig(ChatMemberConfig):
    method: ClassVar[str] = "kickChatMember"

    until_date: int = 0

    def values(self) -> Dict[str, str]:
        values = super().values()
        if self.until_date != 0:
            values["until_date"] = str(self.until_date)
        return values


@dataclasses.dataclass(frozen=True, kw_only=True)
class UnbanChatMemberConfig(ChatMemberConfig):
    method: ClassVar[str] = "unbanChatMember"


@dataclasses.dataclass(frozen=True, kw_only=True)
class RestrictChatMemberConfig(ChatMemberConfig):
    """Pass ``True`` for every permission to lift all restrictions."""

    method: ClassVar[str] = "restrictChatMember"

    until_date: int = 0
    can_send_messages: Optional[bool] = None
    can_send_media_messages: Optional[bool] = None
    can_send_other_messages: Optional[bool] = None
    can_add_web_page_previews: Optional[bool] = None

    def values(self) -> Dict[str, str]:
        values = super().values()
        _put_optional(values, "can_send_messages", self.can_send_messages)
        _put_optional(values, "can_send_media_messages", self.can_send_media_messages)
        _put_optional(values, "can_send_other_messages", self.can_send_other_messages)
        _put_optional(values, "can_add_web_page_previews", self.can_add_web_page_previews)
        if self.until_date != 0:
            values["until_date"] = str(self.until_date)
        return values


@dataclasses.dataclass(frozen=True, kw_only=True)
class PromoteChatMemberConfig(ChatMemberConfig):
    method: ClassVar[str] = "promoteChatMember"

    can_change_info: Optional[bool] = None
    can_post_messages: Optional[bool] = None
    can_edit_messages: Optional[bool] = None
    can_delete_messages: Optional[bool] = None
    can_invite_users: Optional[bool] = None
    can_restrict_members: Optional[bool] = None
    can_pin_messages: Optional[bool] = None
    can_promote_members: Optional[bool] = None

    def values(self) -> Dict[str, str]:
        values = super().values()
        for field in dataclasses.fields(self):
            if field.name.startswith("can_"):
                _put_optional(values, field.name, getattr(self, field.name))
        return values


# ── Answers to inbound queries ───────────────────────────────────────────────


@dataclasses.dataclass(frozen=True, kw_only=True)
class CallbackConfig(APIMethod):
    method: ClassVar[str] = "answerCallbackQuery"

    callback_query_id: str
    text: str = ""
    show_alert: bool = False
    url: str = ""
    cache_time: int = 0

    def values(self) -> Dict[str, str]:
        values = {"callback_query_id": self.callback_query_id}
        if self.text:
            values["text"] = self.text
        values["show_alert"] = _bool(self.show_alert)
        if self.url:
            values["url"] = self.url
        values["cache_time"] = str(self.cache_time)
        return values


@dataclasses.dataclass(frozen=True, kw_only=True)
class InlineConfig(APIMethod):
    """Answer to an inline query; must be sent within 30 seconds."""

    method: ClassVar[str] = "answerInlineQuery"

    inline_query_id: str
    results: List[Any] = dataclasses.field(default_factory=list)
    cache_time: int = 0
    is_personal: bool = False
    next_offset: str = ""
    switch_pm_text: str = ""
    switch_pm_parameter: str = ""

    def values(self) -> Dict[str, str]:
        return {
            "inline_query_id": self.inline_query_id,
            "cache_time": str(self.cache_time),
            "is_personal": _bool(self.is_personal),
            "next_offset": self.next_offset,
            "results": _json(self.results),
            "switch_pm_text": self.switch_pm_text,
            "switch_pm_parameter": self.switch_pm_parameter,
        }


@dataclasses.dataclass(frozen=True, kw_only=True)
class ShippingConfig(APIMethod):
    method: ClassVar[str] = "answerShippingQuery"

    shipping_query_id: str
    ok: bool
    shipping_options: List[Any] = dataclasses.field(default_factory=list)
    error_message: str = ""

    def values(self) -> Dict[str, str]:
        values = {"shipping_query_id": self.shipping_query_id, "ok": _bool(self.ok)}
        if self.ok:
            values["shipping_options"] = _json(self.shipping_options)
        else:
            values["error_message"] = self.error_message
        return values


@dataclasses.dataclass(frozen=True, kw_only=True)
class PreCheckoutConfig(APIMethod):
    method: ClassVar[str] = "answerPreCheckoutQuery"

    pre_checkout_query_id: str
    ok: bool
    error_message: str = ""

    def values(self) -> Dict[str, str]:
        values = {"pre_checkout_query_id": self.pre_checkout_query_id, "ok": _bool(self.ok)}
        if not self.ok:
            values["error_message"] = self.error_message
        return values


# ── Stickers and games ───────────────────────────────────────────────────────


@dataclasses.dataclass(frozen=True, kw_only=True)
class GetStickerSetConfig(APIMethod):
    method: ClassVar[str] = "getStickerSet"

    name: str

    def values(self) -> Dict[str, str]:
        return {"name": self.name}


@dataclasses.dataclass(frozen=True, kw_only=True)
class GetGameHighScoresConfig(APIMethod):
    method: ClassVar[str] = "getGameHighScores"

    user_id: int
    chat_id: Optional[ChatID] = None
    message_id: Optional[int] = None
    inline_message_id: Optional[str] = None

    def values(self) -> Dict[str, str]:
        values = {"user_id": str(self.user_id)}
        if self.inline_message_id:
            values["inline_message_id"] = self.inline_message_id
        else:
            _put_optional(values, "chat_id", self.chat_id)
            _put_optional(values, "message_id", self.message_id)
        return values
