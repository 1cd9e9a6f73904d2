import json

import pytest

from clientcast.client.errors import DecodeError
from clientcast.parallel.runner import BatchResult, RequestResult
from clientcast.storage import (
    load_client_details,
    save_client_details,
    save_clients,
    save_send_failures,
)
from clientcast.types import ClientDetail, ClientSummary, MessageItem


def test_save_clients_pretty_prints_wire_keys(tmp_path):
    path = tmp_path / "out" / "all_clients.json"
    clients = [ClientSummary(id=1, user_name="Анна", is_telegram=True, message_count="12")]

    output = save_clients(clients, path)

    text = output.read_text(encoding="utf-8")
    assert text.startswith("[\n    {")
    assert "Анна" in text
    rows = json.loads(text)
    assert rows[0]["userName"] == "Анна"
    assert rows[0]["isTelegram"] is True
    assert rows[0]["messageCount"] == "12"


def test_save_overwrites_previous_run(tmp_path):
    path = tmp_path / "client_info.json"
    save_client_details([ClientDetail(1, "a"), ClientDetail(2, "b")], path)
    save_client_details([ClientDetail(3, "c")], path)

    rows = json.loads(path.read_text(encoding="utf-8"))
    assert rows == [{"id": 3, "telegramId": "c", "userName": ""}]


def test_details_dump_reloads(tmp_path):
    path = tmp_path / "client_info.json"
    details = [ClientDetail(5, "tg5", "five"), ClientDetail(6, "tg6")]
    save_client_details(details, path)

    assert load_client_details(path) == details


def test_save_send_failures(tmp_path):
    ok = RequestResult("1:tg1", MessageItem(ClientDetail(1, "tg1"), "hi"), None, None, 3.0, True)
    bad = RequestResult(
        "2:tg2",
        MessageItem(ClientDetail(2, "tg2"), "hi"),
        None,
        "API error: status 403",
        4.0,
        False,
        "ProtocolError",
    )
    result = BatchResult(successes=[ok], failures=[bad], total_items=2)

    output = save_send_failures(result, tmp_path / "send_failures.json")

    data = json.loads(output.read_text(encoding="utf-8"))
    assert data["total"] == 2
    assert data["sent"] == 1
    assert data["failures"] == [
        {
            "id": 2,
            "telegramId": "tg2",
            "error": "API error: status 403",
            "errorType": "ProtocolError",
        }
    ]


@pytest.mark.parametrize(
    "content",
    ["{not json", '[{"telegramId": "tg1"}]', '{"id": 1}', "[1, 2]"],
    ids=["invalid-json", "missing-id", "not-a-list", "not-objects"],
)
def test_load_rejects_malformed_dump(tmp_path, content):
    path = tmp_path / "client_info.json"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(DecodeError):
        load_client_details(path)

