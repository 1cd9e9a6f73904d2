"""Tests for the detail-fetch and mass-send batch jobs."""

from __future__ import annotations

import threading

import pytest

from clientcast.client.errors import ProtocolError
from clientcast.parallel.jobs import (
    build_message_items,
    fetch_client_details,
    mass_send,
    send_test_message,
)
from clientcast.types import ClientDetail, ClientSummary, Session


class RecordingClient:
    """Stand-in for DirectoryClient that records calls from worker threads."""

    def __init__(self, failing_ids: set[int] | None = None, failing_recipients: set[str] | None = None) -> None:
        self.failing_ids = failing_ids or set()
        self.failing_recipients = failing_recipients or set()
        self.detail_calls: list[int] = []
        self.sent: list[tuple[str, str, str]] = []
        self.sessions: set[Session] = set()
        self._lock = threading.Lock()

    def get_client_detail(self, session: Session, client_id: int) -> ClientDetail:
        with self._lock:
            self.detail_calls.append(client_id)
            self.sessions.add(session)
        if client_id in self.failing_ids:
            raise ProtocolError(404, "no such client")
        return ClientDetail(id=client_id, telegram_id=f"tg{client_id}", user_name=f"user{client_id}")

    def send_message(self, session: Session, recipient: str, text: str, bot_id: str) -> None:
        with self._lock:
            self.sent.append((recipient, text, bot_id))
            self.sessions.add(session)
        if recipient in self.failing_recipients:
            raise ProtocolError(403, "bot was blocked by the user")


SESSION = Session(token="tok", authenticated=True)


def details(n: int) -> list[ClientDetail]:
    return [ClientDetail(id=i, telegram_id=f"tg{i}") for i in range(n)]


class TestFetchClientDetails:
    """Tests for fetch_client_details."""

    def test_fetches_one_detail_per_client(self) -> None:
        client = RecordingClient()
        summaries = [ClientSummary(id=i, is_telegram=True) for i in range(8)]

        result = fetch_client_details(client, SESSION, summaries, workers=3, pace_seconds=0)

        assert sorted(client.detail_calls) == list(range(8))
        assert sorted(d.id for d in result.values) == list(range(8))
        assert client.sessions == {SESSION}

    def test_failures_tagged_with_client_id(self) -> None:
        client = RecordingClient(failing_ids={2})
        summaries = [ClientSummary(id=i) for i in (1, 2, 3)]

        result = fetch_client_details(client, SESSION, summaries, workers=3, pace_seconds=0)

        assert sorted(d.id for d in result.values) == [1, 3]
        assert [f.item_id for f in result.failures] == ["2"]
        assert result.failures[0].error_type == "ProtocolError"

    def test_no_clients(self) -> None:
        client = RecordingClient()
        result = fetch_client_details(client, SESSION, [], workers=5, pace_seconds=0)
        assert result.success_count == 0
        assert client.detail_calls == []


class TestBuildMessageItems:
    """Tests for the start offset slicing."""

    def test_offset_slices_input(self) -> None:
        items = build_message_items(details(5), "hello", start_index=2)
        assert [i.detail.id for i in items] == [2, 3, 4]
        assert all(i.text == "hello" for i in items)

    def test_offset_past_end(self) -> None:
        assert build_message_items(details(3), "hi", start_index=10) == []

    def test_negative_offset_rejected(self) -> None:
        with pytest.raises(ValueError):
            build_message_items(details(3), "hi", start_index=-1)


class TestMassSend:
    """Tests for mass_send."""

    def test_start_offset_sends_remaining(self) -> None:
        client = RecordingClient()

        result = mass_send(
            client, SESSION, details(10), "news", "bot-1",
            workers=4, start_index=3, pace_seconds=0,
        )

        assert len(client.sent) == 7
        assert sorted(r for r, _, _ in client.sent) == sorted(f"tg{i}" for i in range(3, 10))
        assert result.success_count == 7
        assert result.total_items == 7

    def test_sends_text_and_bot_id(self) -> None:
        client = RecordingClient()
        mass_send(client, SESSION, details(2), "<b>hi</b>", "bot-9", workers=2, pace_seconds=0)
        assert {(text, bot) for _, text, bot in client.sent} == {("<b>hi</b>", "bot-9")}

    def test_failed_recipients_reported(self) -> None:
        client = RecordingClient(failing_recipients={"tg1", "tg4"})

        result = mass_send(client, SESSION, details(6), "x", "bot", workers=2, pace_seconds=0)

        assert result.success_count == 4
        assert result.failure_count == 2
        assert sorted(item.recipient for item in result.failed_items) == ["tg1", "tg4"]
        assert result.values == [None] * 4


class TestSendTestMessage:
    """Tests for send_test_message."""

    def test_sends_once(self) -> None:
        client = RecordingClient()
        send_test_message(client, SESSION, "tg-test", "hello", "bot")
        assert client.sent == [("tg-test", "hello", "bot")]

    def test_errors_propagate(self) -> None:
        client = RecordingClient(failing_recipients={"tg-test"})
        with pytest.raises(ProtocolError):
            send_test_message(client, SESSION, "tg-test", "hello", "bot")
