"""
SPARQL relay: forwards a query to a remote endpoint.
Tries POST first and falls back to GET when POST fails.
"""
import logging
from typing import Any, Optional

import httpx
from opentelemetry import trace

from sparqlvis.config import settings
from sparqlvis.errors import SparqlRelayError

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

ACCEPT_HEADER = "application/sparql-results+json, application/json"


class SparqlRelay:
    def __init__(self, timeout: Optional[float] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout = timeout or settings.SPARQL_PROXY_TIMEOUT
        self._transport = transport
        self._http_client: Optional[httpx.AsyncClient] = None

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create reusable HTTP client."""
        if not self._http_client:
            self._http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout, connect=10.0),
                follow_redirects=True,
                transport=self._transport,
                headers={"User-Agent": settings.SPARQL_PROXY_USER_AGENT},
            )
        return self._http_client

    async def close(self):
        """Close the HTTP client connection."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def _request(self, method: str, endpoint: str, query: str) -> dict[str, Any]:
        client = await self._get_http_client()
        headers = {"Accept": ACCEPT_HEADER}

        logger.info(f"[Proxy] Trying {method} to: {endpoint}")
        if method == "POST":
            response = await client.post(endpoint, data={"query": query}, headers=headers)
        else:
            response = await client.get(endpoint, params={"query": query}, headers=headers)

        if response.is_error:
            body = response.text[:200]
            logger.error(f"[Proxy] Endpoint error ({method} {response.status_code}): {body}")
            raise httpx.HTTPStatusError(
                f"Endpoint error ({method} {response.status_code}): "
                f"{response.reason_phrase}. Body: {body}",
                request=response.request,
                response=response,
            )

        result = response.json()
        logger.info(f"[Proxy] {method} succeeded for {endpoint}")
        return result

    async def execute(self, endpoint: str, query: str) -> dict[str, Any]:
        """
        Execute a query against an endpoint, POST then GET.

        Raises:
            SparqlRelayError: when both verbs fail
        """
        with tracer.start_as_current_span("sparql_relay_execute") as span:
            span.set_attribute("endpoint", endpoint)

            try:
                result = await self._request("POST", endpoint, query)
                span.set_attribute("method", "POST")
                return result
            except (httpx.HTTPError, ValueError) as post_error:
                logger.warning(f"[Proxy] POST failed ({post_error}), retrying with GET")
                try:
                    result = await self._request("GET", endpoint, query)
                    span.set_attribute("method", "GET")
                    return result
                except (httpx.HTTPError, ValueError) as get_error:
                    logger.error(
                        f"[Proxy] Final failure for {endpoint}. "
                        f"POST error: {post_error}, GET error: {get_error}"
                    )
                    span.set_attribute("error", str(get_error))
                    raise SparqlRelayError(endpoint, str(post_error), str(get_error)) from get_error


_relay: Optional[SparqlRelay] = None


def get_sparql_relay() -> SparqlRelay:
    global _relay
    if _relay is None:
        _relay = SparqlRelay()
    return _relay


async def cleanup_sparql_relay():
    global _relay
    if _relay is not None:
        await _relay.close()
        _relay = None
