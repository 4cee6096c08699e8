from unittest.mock import MagicMock

import pytest
import requests

from backends.http import HttpCatalogBackend
from core.errors import BackendError
from core.models import Item


def _resp(status=200, body=None, url="http://catalog/api/x"):
    r = MagicMock()
    r.status_code = status
    r.ok = status < 400
    r.url = url
    if body is None:
        r.json.side_effect = ValueError("no json")
    else:
        r.json.return_value = body
    return r


@pytest.fixture
def session() -> MagicMock:
    return MagicMock()


@pytest.fixture
def backend(session) -> HttpCatalogBackend:
    return HttpCatalogBackend("http://catalog/api/", token="t0k", session=session)


@pytest.fixture
def no_sleep(monkeypatch):
    monkeypatch.setattr(HttpCatalogBackend._get_once.retry, "sleep", lambda seconds: None)


def test_session_headers(session, backend):
    headers = {}
    for call in session.headers.update.call_args_list:
        headers.update(call.args[0])
    assert headers["Authorization"] == "Bearer t0k"
    assert headers["Accept"] == "application/json"


@pytest.mark.asyncio
async def test_list_items_normalizes_records(session, backend):
    session.get.return_value = _resp(body=[
        {"id": "A1", "name": "Blue", "price": "9.5", "imageUrl": "https://img/a"},
        {"product_id": "B2", "name": "Red", "image_url": "https://img/b"},
        "garbage",
    ])

    items = await backend.list_items()

    assert items == [
        Item(item_id="A1", name="Blue", price=9.5, image_url="https://img/a"),
        Item(item_id="B2", name="Red", price=0.0, image_url="https://img/b"),
    ]
    session.get.assert_called_once_with("http://catalog/api/items", timeout=30)


def test_list_items_accepts_wrapped_payload(session, backend):
    session.get.return_value = _resp(body={"items": [{"id": "A1", "name": "Blue"}]})
    assert [it.item_id for it in backend._list_items()] == ["A1"]


def test_client_error_uses_server_message(session, backend):
    session.get.return_value = _resp(404, {"message": "No such item"})
    with pytest.raises(BackendError) as exc_info:
        backend._fetch_detail("zz")
    assert exc_info.value.message == "No such item"
    assert session.get.call_count == 1


def test_detail_payload_is_returned_raw(session, backend):
    session.get.return_value = _resp(body={"decription": "typo"})
    assert backend._fetch_detail("A1") == {"decription": "typo"}
    session.get.assert_called_once_with("http://catalog/api/items/A1", timeout=30)


def test_server_errors_are_retried(session, backend, no_sleep):
    session.get.side_effect = [
        _resp(503, {"message": "busy"}),
        requests.ConnectionError("reset"),
        _resp(body=[{"id": "A1", "name": "Blue"}]),
    ]
    assert [it.name for it in backend._list_items()] == ["Blue"]
    assert session.get.call_count == 3


def test_gives_up_after_repeated_failures(session, backend, no_sleep):
    session.get.return_value = _resp(500, {"message": "database offline"})
    with pytest.raises(BackendError) as exc_info:
        backend._list_items()
    assert "database offline" in exc_info.value.message


@pytest.mark.asyncio
async def test_submit_import_posts_once(session, backend):
    session.post.return_value = _resp(201, {})
    items = [Item(item_id="A1", name="Blue", price=1.0, image_url="u")]

    await backend.submit_import(items)

    session.post.assert_called_once_with(
        "http://catalog/api/imports",
        json={"items": [{"id": "A1", "name": "Blue", "price": 1.0, "imageUrl": "u"}]},
        timeout=30,
    )


def test_submit_import_failure_is_not_retried(session, backend):
    session.post.return_value = _resp(500, {"message": "rejected"})
    with pytest.raises(BackendError, match="rejected"):
        backend._submit_import([Item(item_id="A1", name="Blue")])
    assert session.post.call_count == 1


def test_submit_import_connection_error(session, backend):
    session.post.side_effect = requests.ConnectionError("refused")
    with pytest.raises(BackendError, match="refused"):
        backend._submit_import([])
