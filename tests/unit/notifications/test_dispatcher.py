"""Unit tests for the event dispatcher and the logging mailer."""

from unittest.mock import MagicMock

import pytest

from domain.entities.events import InviteCreated
from infrastructure.notifications import mailer as mailer_module
from infrastructure.notifications.dispatcher import EventDispatcher
from infrastructure.notifications.mailer import LoggingInviteMailer, invite_link


def _event(**overrides) -> InviteCreated:
    fields = dict(
        inviter_email="owner@example.com",
        inviter_name="Olive Owner",
        invitee_email="new@example.com",
        resource_type="team",
        resource_name="Acme",
        token="tok.en.value",
        ttl_days=7,
    )
    fields.update(overrides)
    return InviteCreated(**fields)


class TestEventDispatcher:
    @pytest.mark.asyncio
    async def test_sync_and_async_handlers(self):
        seen: list[str] = []

        async def async_handler(event):
            seen.append(f"async:{event.invitee_email}")

        dispatcher = EventDispatcher()
        dispatcher.subscribe(InviteCreated.type, lambda e: seen.append(f"sync:{e.invitee_email}"))
        dispatcher.subscribe(InviteCreated.type, async_handler)

        await dispatcher.dispatch([_event()])

        assert seen == ["sync:new@example.com", "async:new@example.com"]

    @pytest.mark.asyncio
    async def test_ignores_unsubscribed_types(self):
        handler = MagicMock()
        dispatcher = EventDispatcher()
        dispatcher.subscribe("something.else", handler)

        await dispatcher.dispatch([_event()])

        handler.assert_not_called()

    @pytest.mark.asyncio
    async def test_failing_handler_does_not_stop_others(self):
        def broken(event):
            raise RuntimeError("smtp down")

        survivor = MagicMock()
        dispatcher = EventDispatcher()
        dispatcher.subscribe(InviteCreated.type, broken)
        dispatcher.subscribe(InviteCreated.type, survivor)

        await dispatcher.dispatch([_event(), _event(invitee_email="second@example.com")])

        assert survivor.call_count == 2


class TestInviteLink:
    def test_appends_token(self):
        assert invite_link("abc", "https://app.example.com/invite/") == (
            "https://app.example.com/invite/abc"
        )

    def test_defaults_to_configured_base(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr(mailer_module.settings, "invite_base_url", "https://x.test/inv")

        assert invite_link("t") == "https://x.test/inv/t"


class TestLoggingInviteMailer:
    @pytest.mark.asyncio
    async def test_logs_link(self, monkeypatch: pytest.MonkeyPatch):
        fake_logger = MagicMock()
        monkeypatch.setattr(mailer_module, "logger", fake_logger)

        await LoggingInviteMailer(base_url="https://app.test/join")(_event())

        fake_logger.info.assert_called_once()
        args, kwargs = fake_logger.info.call_args
        assert args == ("invite_email",)
        assert kwargs["to"] == "new@example.com"
        assert kwargs["link"] == "https://app.test/join/tok.en.value"
        assert kwargs["expires_in_days"] == 7
