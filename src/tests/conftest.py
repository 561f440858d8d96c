# src/tests/conftest.py
import pytest
import httpx
import logging
from httpx import AsyncClient, ASGITransport
from typing import AsyncGenerator

from sparqlvis.data.result_model import ResultSet
from sparqlvis.data.sample_data import get_sample_data
from sparqlvis.services.sparql_service import SparqlRelay
from sparqlvis.services.visualizer_service import VisualizerController

# Set up logging
logging.basicConfig(level=logging.DEBUG)
logger = logging.getLogger(__name__)


def make_payload(variables: list[str], rows: list[dict]) -> dict:
    """
    Build a SPARQL JSON document from plain rows.

    Strings starting with http are encoded as uri cells, everything else as literals.
    """
    bindings = []
    for row in rows:
        binding = {}
        for var, value in row.items():
            if value is None:
                continue
            value = str(value)
            cell_type = "uri" if value.startswith("http") else "literal"
            binding[var] = {"type": cell_type, "value": value}
        bindings.append(binding)
    return {"head": {"vars": variables}, "results": {"bindings": bindings}}


@pytest.fixture
def sample_payload() -> dict:
    return get_sample_data()


@pytest.fixture
def sample_result_set(sample_payload) -> ResultSet:
    return ResultSet.from_sparql_json(sample_payload)


@pytest.fixture
def failing_post_transport(sample_payload) -> httpx.MockTransport:
    """Endpoint that rejects POST and answers GET."""
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if request.method == "POST":
            return httpx.Response(405, text="POST not allowed")
        return httpx.Response(200, json=sample_payload)

    transport = httpx.MockTransport(handler)
    transport.calls = calls
    return transport


@pytest.fixture
async def relay(failing_post_transport) -> AsyncGenerator[SparqlRelay, None]:
    client = SparqlRelay(transport=failing_post_transport)
    yield client
    await client.close()


@pytest.fixture
def controller(relay) -> VisualizerController:
    return VisualizerController(relay=relay)


@pytest.fixture
async def async_client(controller, relay) -> AsyncGenerator[AsyncClient, None]:
    from sparqlvis.main import app
    from sparqlvis.api.router import get_visualizer_controller
    from sparqlvis.services.sparql_service import get_sparql_relay

    app.dependency_overrides[get_visualizer_controller] = lambda: controller
    app.dependency_overrides[get_sparql_relay] = lambda: relay

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://testserver",
        follow_redirects=True,
        timeout=30.0
    ) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def payload_factory():
    return make_payload
