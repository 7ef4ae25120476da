from __future__ import annotations

from datetime import datetime, timezone
from urllib.parse import parse_qs

import httpx
import pytest

from option_sync.config import NotifierConfig
from option_sync.engine import TelegramNotifier
from option_sync.engine.notifier import MAX_MESSAGE_LENGTH
from option_sync.errors import NotificationError


def make_notifier(handler, **overrides) -> TelegramNotifier:
    base = {"bot_token": "123:abc", "chat_id": "-100200"}
    base.update(overrides)
    return TelegramNotifier(NotifierConfig(**base), transport=httpx.MockTransport(handler))


def test_notify_posts_form_encoded_message() -> None:
    captured: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["method"] = request.method
        captured["content_type"] = request.headers["content-type"]
        captured["body"] = parse_qs(request.content.decode("utf-8"))
        return httpx.Response(200, json={"ok": True})

    notifier = make_notifier(handler)
    assert notifier.notify("Options table updated at now.")

    assert captured["url"] == "https://api.telegram.org/bot123:abc/sendMessage"
    assert captured["method"] == "POST"
    assert captured["content_type"] == "application/x-www-form-urlencoded"
    assert captured["body"] == {"chat_id": ["-100200"], "text": ["Options table updated at now."]}


def test_notify_without_credentials_makes_no_call() -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200)

    notifier = make_notifier(handler, bot_token=None)
    assert not notifier.enabled
    assert notifier.notify("hello") is False
    assert calls == []


def test_notify_failure_is_swallowed_and_not_retried() -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(400, json={"ok": False, "description": "chat not found"})

    assert make_notifier(handler).notify("hello") is False
    assert len(calls) == 1


def test_notify_network_error_returns_false() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    assert make_notifier(handler).notify("hello") is False


def test_long_messages_are_truncated() -> None:
    bodies: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(parse_qs(request.content.decode("utf-8")))
        return httpx.Response(200)

    make_notifier(handler).notify("x" * (MAX_MESSAGE_LENGTH + 50))
    assert len(bodies[0]["text"][0]) == MAX_MESSAGE_LENGTH


def test_render_uses_template_and_timestamp() -> None:
    notifier = TelegramNotifier(
        NotifierConfig(message_template="Updated at {timestamp}: +{inserted} -{deleted}")
    )
    moment = datetime(2024, 5, 20, 12, 0, tzinfo=timezone.utc)
    assert notifier.render(now=moment, inserted=2, deleted=1) == "Updated at 2024-05-20T12:00:00+00:00: +2 -1"
    assert TelegramNotifier(NotifierConfig()).render(now=moment) == (
        "Options table updated at 2024-05-20T12:00:00+00:00."
    )


def test_render_with_unknown_placeholder_raises_notification_error() -> None:
    config = NotifierConfig(bot_token="123:abc", chat_id="1")
    config.message_template = "Changed {count} options at {timestamp}"
    with pytest.raises(NotificationError):
        TelegramNotifier(config).render()


def test_notify_change_logs_broken_template_without_calling_telegram() -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200)

    notifier = make_notifier(handler)
    notifier.config.message_template = "Updated at {timestamp"

    assert notifier.notify_change(inserted=1, updated=0, deleted=0) is False
    assert calls == []


def test_notify_change_sends_rendered_text() -> None:
    bodies: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(parse_qs(request.content.decode("utf-8")))
        return httpx.Response(200)

    notifier = make_notifier(handler, message_template="+{inserted} ~{updated} -{deleted} at {timestamp}")
    moment = datetime(2024, 5, 20, 12, 0, tzinfo=timezone.utc)

    assert notifier.notify_change(now=moment, inserted=2, updated=0, deleted=1) is True
    assert bodies[0]["text"] == ["+2 ~0 -1 at 2024-05-20T12:00:00+00:00"]
