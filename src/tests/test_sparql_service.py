import httpx
import pytest
from urllib.parse import parse_qs

from sparqlvis.errors import SparqlRelayError
from sparqlvis.services.sparql_service import SparqlRelay

ENDPOINT = "https://sparql.example.org/sparql"
QUERY = "SELECT ?s WHERE { ?s ?p ?o } LIMIT 1"


async def test_post_is_tried_first(sample_payload):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=sample_payload)

    relay = SparqlRelay(transport=httpx.MockTransport(handler))
    try:
        result = await relay.execute(ENDPOINT, QUERY)
    finally:
        await relay.close()

    assert result == sample_payload
    assert [r.method for r in seen] == ["POST"]
    request = seen[0]
    assert request.headers["content-type"] == "application/x-www-form-urlencoded"
    assert parse_qs(request.content.decode()) == {"query": [QUERY]}
    assert "application/sparql-results+json" in request.headers["accept"]


async def test_get_fallback_when_post_fails(relay, failing_post_transport, sample_payload):
    result = await relay.execute(ENDPOINT, QUERY)

    assert result == sample_payload
    methods = [r.method for r in failing_post_transport.calls]
    assert methods == ["POST", "GET"]
    get_request = failing_post_transport.calls[1]
    assert get_request.url.params["query"] == QUERY


async def test_get_fallback_when_post_returns_invalid_json(sample_payload):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            return httpx.Response(200, text="<html>not json</html>")
        return httpx.Response(200, json=sample_payload)

    relay = SparqlRelay(transport=httpx.MockTransport(handler))
    try:
        assert await relay.execute(ENDPOINT, QUERY) == sample_payload
    finally:
        await relay.close()


async def test_both_verbs_fail():
    def handler(request: httpx.Request) -> httpx.Response:
        status = 405 if request.method == "POST" else 500
        return httpx.Response(status, text=f"{request.method} rejected")

    relay = SparqlRelay(transport=httpx.MockTransport(handler))
    with pytest.raises(SparqlRelayError) as exc_info:
        await relay.execute(ENDPOINT, QUERY)
    await relay.close()

    error = exc_info.value
    assert error.endpoint == ENDPOINT
    assert "POST 405" in error.post_error
    assert "GET 500" in error.get_error
    assert "GET rejected" in error.get_error


async def test_connection_errors_are_reported():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    relay = SparqlRelay(transport=httpx.MockTransport(handler))
    with pytest.raises(SparqlRelayError) as exc_info:
        await relay.execute(ENDPOINT, QUERY)
    await relay.close()

    assert "connection refused" in exc_info.value.post_error


async def test_client_is_reused_and_closed(relay):
    first = await relay._get_http_client()
    second = await relay._get_http_client()

    assert first is second
    await relay.close()
    assert relay._http_client is None
