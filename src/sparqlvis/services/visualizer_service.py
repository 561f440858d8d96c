"""
Visualizer controller: owns one visualization's state.
Load -> transform -> replace slots runs under a lock so overlapping loads
never interleave.
"""
import asyncio
import logging
from typing import Any, Optional

from opentelemetry import trace

from sparqlvis.data.result_model import ResultSet
from sparqlvis.services.sparql_service import SparqlRelay, get_sparql_relay
from sparqlvis.util.encoding_engine import (
    EncodingOverrides,
    EncodingResult,
    EncodingState,
    MarkType,
    parse_encoding,
)
from sparqlvis.util.graph_util import Graph, GraphConfig, build_graph
from sparqlvis.util.sparql_result_processor import FlatRow, flatten
from sparqlvis.util.vega_util import VegaUtil

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class VisualizerController:
    def __init__(self, relay: Optional[SparqlRelay] = None,
                 mark: MarkType = MarkType.BAR,
                 graph_config: Optional[GraphConfig] = None):
        self._relay = relay
        self._lock = asyncio.Lock()
        self.graph_config = graph_config or GraphConfig()
        self.result_set: Optional[ResultSet] = None
        self.rows: list[FlatRow] = []
        self.graph: Graph = Graph()
        self.encoding = EncodingState()
        self.encoding.mark = MarkType.parse(mark)

    @property
    def relay(self) -> SparqlRelay:
        return self._relay or get_sparql_relay()

    @property
    def has_data(self) -> bool:
        return self.result_set is not None

    async def load(self, payload: Any, mark: Optional[str] = None) -> EncodingResult:
        """
        Parse a SPARQL JSON payload and regenerate rows, graph and encodings.

        Raises:
            InvalidResultSetError: when the payload is malformed; state is left untouched
        """
        result_set = ResultSet.from_sparql_json(payload)

        async with self._lock:
            return self._replace_state(result_set, mark)

    async def load_from_endpoint(self, endpoint: str, query: str,
                                 mark: Optional[str] = None) -> EncodingResult:
        """
        Fetch a result through the relay and load it.

        The lock is held across the fetch, so loads issued later wait for it.
        """
        async with self._lock:
            payload = await self.relay.execute(endpoint, query)
            return self._replace_state(ResultSet.from_sparql_json(payload), mark)

    def _replace_state(self, result_set: ResultSet, mark: Optional[str]) -> EncodingResult:
        with tracer.start_as_current_span("visualizer_load") as span:
            span.set_attribute("binding_count", len(result_set.bindings))

            rows = flatten(result_set)
            graph = build_graph(result_set, self.graph_config)

            self.result_set = result_set
            self.rows = rows
            self.graph = graph
            encoding = self.encoding.load(rows, result_set.variables, mark)

            logger.info(
                f"Loaded {len(rows)} rows over {len(result_set.variables)} variables "
                f"({self.encoding.mark.value})"
            )
            return encoding

    async def apply(self, overrides: Optional[EncodingOverrides] = None,
                    mark: Optional[str] = None) -> EncodingResult:
        async with self._lock:
            return self.encoding.apply(overrides, mark)

    async def set_encoding(self, raw: Optional[dict[str, Any]]) -> EncodingResult:
        """
        Replace the current encoding with a user document; None resets to adaptive.

        Raises:
            InvalidEncodingError: when the document references unknown fields
        """
        async with self._lock:
            if raw is None:
                logger.info("Encoding reset to adaptive")
                return self.encoding.reset()
            spec = parse_encoding(raw, self.encoding.fields)
            return self.encoding.override(spec)

    async def reset(self) -> EncodingResult:
        async with self._lock:
            return self.encoding.reset()

    async def restore_base(self) -> Optional[EncodingResult]:
        async with self._lock:
            return self.encoding.restore_base()

    def render(self) -> Optional[dict[str, Any]]:
        if self.encoding.current is None:
            return None
        return VegaUtil.render(self.encoding.current, self.rows)

    def snapshot(self) -> dict[str, Any]:
        current = self.encoding.current
        base = self.encoding.base
        return {
            "has_data": self.has_data,
            "fields": list(self.encoding.fields),
            "mark": self.encoding.mark.value,
            "row_count": len(self.rows),
            "current": current.to_dict() if current else None,
            "base": base.to_dict() if base else None,
        }
