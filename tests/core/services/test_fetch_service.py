import pytest
import requests

from conftest import BASE_URL, FakeHttp

from shelf_browse.core.exceptions import TransportError
from shelf_browse.core.services import FetchService


def _immediate(work, done):
    done(work())


def test_relative_paths_resolve_against_base_url():
    http = FakeHttp()
    http.add(BASE_URL + "/shelf_browse", text="<div>ok</div>")
    service = FetchService(BASE_URL, session=http, timeout=5)
    assert service.get_text("/shelf_browse") == "<div>ok</div>"
    assert http.calls == [("GET", BASE_URL + "/shelf_browse", {"params": None})]


def test_user_agent_from_transport_config():
    http = FakeHttp()
    service = FetchService.from_config(BASE_URL, {"timeout_seconds": 3, "user_agent": "Shelf-Browse"}, session=http)
    assert service.timeout == 3.0
    assert http.headers["User-Agent"] == "Shelf-Browse"


def test_error_status_carries_payload():
    http = FakeHttp()
    http.add(BASE_URL + "/missing", text="<p>Sorry</p>", status=500)
    service = FetchService(BASE_URL, session=http)
    with pytest.raises(TransportError) as info:
        service.get_text("/missing")
    assert info.value.status_code == 500
    assert info.value.payload == "<p>Sorry</p>"
    assert info.value.url == BASE_URL + "/missing"


@pytest.mark.parametrize("error, message", [
    (requests.exceptions.Timeout("slow"), "timeout"),
    (requests.exceptions.ConnectionError("down"), "Connection error"),
    (requests.exceptions.TooManyRedirects("loop"), "Request failed"),
])
def test_requests_failures_become_transport_errors(error, message):
    http = FakeHttp()
    http.add(BASE_URL + "/x", error=error)
    service = FetchService(BASE_URL, session=http)
    with pytest.raises(TransportError, match=message) as info:
        service.get_text("/x")
    assert info.value.cause is error


def test_invalid_json_is_a_transport_error():
    http = FakeHttp()
    http.add(BASE_URL + "/tree.json", text="<html>")
    service = FetchService(BASE_URL, session=http)
    with pytest.raises(TransportError, match="Invalid JSON"):
        service.get_json("/tree.json")


def test_submit_form_uses_form_method():
    http = FakeHttp()
    http.add(BASE_URL + "/requests", text="done")
    service = FetchService(BASE_URL, session=http)
    fields = [("id", "4"), ("popup", "true")]

    assert service.submit_form("/requests", "post", fields) == "done"
    assert service.submit_form("/requests", "get", fields) == "done"
    assert http.calls[0] == ("POST", BASE_URL + "/requests", {"data": fields})
    assert http.calls[1] == ("GET", BASE_URL + "/requests", {"params": fields})


def test_fetch_async_delivers_success_or_error():
    http = FakeHttp()
    http.add(BASE_URL + "/ok", text="fine")
    service = FetchService(BASE_URL, session=http)
    results, errors = [], []

    service.fetch_async(_immediate, lambda: service.get_text("/ok"), results.append, errors.append)
    service.fetch_async(_immediate, lambda: service.get_text("/gone"), results.append, errors.append)

    assert results == ["fine"]
    assert len(errors) == 1 and errors[0].status_code == 404


def test_cancelled_fetch_delivers_nothing():
    http = FakeHttp()
    http.add(BASE_URL + "/ok", text="fine")
    service = FetchService(BASE_URL, session=http)
    queued = []
    results = []

    handle = service.fetch_async(lambda work, done: queued.append((work, done)),
                                 lambda: service.get_text("/ok"), results.append, results.append,
                                 url="/ok")
    handle.cancel()
    work, done = queued[0]
    done(work())

    assert handle.cancelled
    assert handle.url == "/ok"
    assert results == []
