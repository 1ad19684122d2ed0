"""Tests for the Pydantic data models, chiefly the Update tagged union."""

import json
import sys
import os
import pytest

# Ensure the project root is importable.
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from botapi.models import (
    APIResponse,
    CallbackQuery,
    Chat,
    ChatMember,
    File,
    Message,
    Update,
    UpdateKind,
    User,
    WebhookInfo,
)
from pydantic import ValidationError


def _message(text: str = "hello", **extra) -> dict:
    body = {
        "message_id": 10,
        "date": 1700000000,
        "chat": {"id": 42, "type": "private"},
        "from": {"id": 7, "is_bot": False, "first_name": "Ada"},
        "text": text,
    }
    body.update(extra)
    return body


# ── Envelope ─────────────────────────────────────────────────────────────────


class TestAPIResponse:
    """Validate the {ok, result} envelope."""

    def test_success(self) -> None:
        resp = APIResponse.model_validate({"ok": True, "result": [1, 2]})
        assert resp.ok is True
        assert resp.result == [1, 2]
        assert resp.error_code is None

    def test_error_with_parameters(self) -> None:
        resp = APIResponse.model_validate({
            "ok": False,
            "error_code": 429,
            "description": "Too Many Requests",
            "parameters": {"retry_after": 5},
        })
        assert resp.ok is False
        assert resp.parameters is not None
        assert resp.parameters.retry_after == 5

    def test_missing_ok_raises(self) -> None:
        with pytest.raises(ValidationError):
            APIResponse.model_validate({"result": []})


# ── Users and chats ──────────────────────────────────────────────────────────


class TestUserAndChat:
    """Validate helper methods on users, chats and members."""

    def test_user_str_prefers_username(self) -> None:
        assert str(User(id=1, is_bot=False, first_name="Ada", username="ada")) == "ada"

    def test_user_str_full_name(self) -> None:
        assert str(User(id=1, is_bot=False, first_name="Ada", last_name="Lovelace")) == "Ada Lovelace"

    def test_chat_type_helpers(self) -> None:
        chat = Chat(id=-100, type="supergroup")
        assert chat.is_supergroup()
        assert not chat.is_private()
        assert not chat.is_group()
        assert not chat.is_channel()

    def test_member_is_administrator(self) -> None:
        user = {"id": 1, "is_bot": False, "first_name": "Ada"}
        assert ChatMember.model_validate({"user": user, "status": "creator"}).is_administrator()
        assert not ChatMember.model_validate({"user": user, "status": "member"}).is_administrator()


# ── Message ──────────────────────────────────────────────────────────────────


class TestMessage:
    """Validate Message parsing and command helpers."""

    def test_from_alias(self) -> None:
        msg = Message.model_validate(_message())
        assert msg.from_field is not None
        assert msg.from_field.first_name == "Ada"
        assert msg.chat.is_private()

    def test_command_helpers(self) -> None:
        msg = Message.model_validate(_message(
            "/start@my_bot  payload",
            entities=[{"type": "bot_command", "offset": 0, "length": 13}],
        ))
        assert msg.is_command()
        assert msg.command_with_at() == "start@my_bot"
        assert msg.command() == "start"
        assert msg.command_arguments() == "payload"

    def test_plain_text_is_not_command(self) -> None:
        msg = Message.model_validate(_message("just text"))
        assert not msg.is_command()
        assert msg.command() == ""
        assert msg.command_arguments() == ""

    def test_missing_chat_raises(self) -> None:
        body = _message()
        del body["chat"]
        with pytest.raises(ValidationError):
            Message.model_validate(body)


# ── Files and webhook status ─────────────────────────────────────────────────


class TestFileAndWebhookInfo:
    def test_file_link(self) -> None:
        f = File(file_id="abc", file_path="photos/file_1.jpg")
        assert f.link("123:TOKEN") == "https://api.telegram.org/file/bot123:TOKEN/photos/file_1.jpg"

    def test_webhook_is_set(self) -> None:
        info = WebhookInfo(url="", has_custom_certificate=False, pending_update_count=0)
        assert not info.is_set()
        info = WebhookInfo(url="https://example.com/hook", has_custom_certificate=False, pending_update_count=3)
        assert info.is_set()


# ── Update ───────────────────────────────────────────────────────────────────


class TestUpdate:
    """Validate that exactly one event kind is populated per update."""

    def test_message_kind(self) -> None:
        update = Update.model_validate({"update_id": 5, "message": _message()})
        assert update.update_id == 5
        assert update.kind is UpdateKind.MESSAGE
        assert isinstance(update.payload, Message)
        assert update.message is update.payload
        assert update.edited_message is None
        assert update.callback_query is None

    def test_edited_channel_post_kind(self) -> None:
        update = Update.model_validate({"update_id": 6, "edited_channel_post": _message()})
        assert update.kind is UpdateKind.EDITED_CHANNEL_POST
        assert update.message is None
        assert update.edited_channel_post is not None
        assert update.effective_message is update.edited_channel_post

    def test_callback_query_kind(self) -> None:
        update = Update.model_validate({
            "update_id": 7,
            "callback_query": {
                "id": "cb1",
                "from": {"id": 7, "is_bot": False, "first_name": "Ada"},
                "chat_instance": "ci",
                "data": "/help",
            },
        })
        assert update.kind is UpdateKind.CALLBACK_QUERY
        assert isinstance(update.callback_query, CallbackQuery)
        assert update.callback_query.data == "/help"
        assert update.effective_message is None

    def test_null_keys_are_ignored(self) -> None:
        update = Update.model_validate({"update_id": 8, "message": _message(), "edited_message": None})
        assert update.kind is UpdateKind.MESSAGE

    def test_two_kinds_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Update.model_validate({"update_id": 9, "message": _message(), "edited_message": _message()})

    def test_unknown_kind_kept_raw(self) -> None:
        update = Update.model_validate({"update_id": 10, "chat_join_request": {"chat": {"id": 1}}})
        assert update.kind is UpdateKind.UNKNOWN
        assert update.payload == {"chat_join_request": {"chat": {"id": 1}}}
        assert update.message is None
        assert update.effective_message is None

    def test_missing_update_id_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Update.model_validate({"message": _message()})

    def test_malformed_payload_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Update.model_validate({"update_id": 11, "message": {"text": "no chat"}})

    def test_kind_key_on_the_wire_does_not_bypass_validation(self) -> None:
        with pytest.raises(ValidationError):
            Update.model_validate({"update_id": 12, "kind": "message", "payload": {"text": "x"}, "message": {}})

    def test_from_json(self) -> None:
        body = json.dumps({"update_id": 13, "message": _message("hi")})
        update = Update.model_validate_json(body)
        assert update.message is not None
        assert update.message.text == "hi"

    def test_immutable(self) -> None:
        update = Update.model_validate({"update_id": 14, "message": _message()})
        with pytest.raises(ValidationError):
            update.update_id = 15

    def test_to_wire(self) -> None:
        update = Update.model_validate({"update_id": 16, "message": _message("hi")})
        wire = update.to_wire()
        assert wire["update_id"] == 16
        assert wire["message"]["text"] == "hi"
        assert wire["message"]["from"]["first_name"] == "Ada"
        assert Update.model_validate(wire) == update

    def test_to_wire_unknown(self) -> None:
        update = Update.model_validate({"update_id": 17, "something_new": {"a": 1}})
        assert update.to_wire() == {"update_id": 17, "something_new": {"a": 1}}

    def test_built_in_python(self) -> None:
        msg = Message.model_validate(_message())
        update = Update(update_id=18, kind=UpdateKind.MESSAGE, payload=msg)
        assert update.message is msg

    def test_rebuilt_unknown_keeps_raw_payload(self) -> None:
        original = Update.model_validate({"update_id": 19, "my_chat_member": {"chat": {"id": 1}}})
        rebuilt = Update(update_id=original.update_id, kind=original.kind, payload=original.payload)
        assert rebuilt.payload == {"my_chat_member": {"chat": {"id": 1}}}
        assert rebuilt == original
        assert rebuilt.to_wire() == {"update_id": 19, "my_chat_member": {"chat": {"id": 1}}}

    def test_decoded_form_payload_is_validated(self) -> None:
        update = Update.model_validate({"update_id": 20, "kind": "message", "payload": _message("hi")})
        assert isinstance(update.message, Message)
        assert update.message.text == "hi"
        with pytest.raises(ValidationError):
            Update.model_validate({"update_id": 21, "kind": "message", "payload": {"text": "no chat"}})
        with pytest.raises(ValidationError):
            Update(update_id=22, kind=UpdateKind.UNKNOWN, payload="raw")
