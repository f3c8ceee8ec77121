from __future__ import annotations

import asyncio

import pytest

from adapters.telegram_bot_notifier import TelegramBotApiNotifier
from adapters.telegram_notifier import TelegramChatNotifier
from core.models import Channel


class FakeTelethonClient:
    def __init__(self) -> None:
        self.calls: list[tuple] = []

    async def send_message(self, entity, message, **kwargs) -> None:
        self.calls.append((entity, message, kwargs))


def test_telethon_adapter_sends_html_to_channel_chat() -> None:
    client = FakeTelethonClient()
    notifier = TelegramChatNotifier(client, {Channel.INTERNAL: -100, Channel.PUBLIC: "@public"})

    asyncio.run(notifier.send("<b>hello</b>", Channel.PUBLIC))

    assert client.calls == [("@public", "<b>hello</b>", {"parse_mode": "html", "link_preview": False})]


def test_telethon_adapter_requires_configured_chat() -> None:
    notifier = TelegramChatNotifier(FakeTelethonClient(), {Channel.INTERNAL: -100})

    with pytest.raises(RuntimeError, match="public"):
        asyncio.run(notifier.send("hello", Channel.PUBLIC))


def test_bot_api_payload() -> None:
    notifier = TelegramBotApiNotifier("123:abc", {Channel.INTERNAL: -100})

    assert notifier.build_payload("<b>hello</b>", Channel.INTERNAL) == {
        "chat_id": -100,
        "text": "<b>hello</b>",
        "parse_mode": "HTML",
        "disable_web_page_preview": True,
    }


def test_bot_api_payload_requires_configured_chat() -> None:
    notifier = TelegramBotApiNotifier("123:abc", {Channel.INTERNAL: -100})

    with pytest.raises(RuntimeError):
        notifier.build_payload("hello", Channel.PUBLIC)


def test_bot_api_send_posts_payload(monkeypatch) -> None:
    notifier = TelegramBotApiNotifier("123:abc", {Channel.PUBLIC: "@public"})
    posted: list[dict] = []
    monkeypatch.setattr(notifier, "_post", posted.append)

    asyncio.run(notifier.send("hello", Channel.PUBLIC))

    assert posted == [
        {"chat_id": "@public", "text": "hello", "parse_mode": "HTML", "disable_web_page_preview": True}
    ]
