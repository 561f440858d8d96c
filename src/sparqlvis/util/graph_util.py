"""
Graph util to convert SPARQL results into deduplicated nodes and edges.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from opentelemetry import trace

from sparqlvis.data.result_model import ResultSet
from sparqlvis.util.field_roles import FieldResolution, FieldRole, resolve_graph_fields
from sparqlvis.util.sparql_result_processor import FlatRow, normalize

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

EdgeKey = tuple[str, str]


@dataclass(frozen=True)
class GraphConfig:
    source_field: Optional[str] = None
    target_field: Optional[str] = None
    label_field: Optional[str] = None
    weight_field: Optional[str] = None


@dataclass(frozen=True)
class GraphNode:
    id: str
    label: str

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "label": self.label}


@dataclass(frozen=True)
class GraphEdge:
    source: str
    target: str

    @property
    def key(self) -> EdgeKey:
        return (self.source, self.target)

    def to_dict(self) -> dict[str, str]:
        return {"source": self.source, "target": self.target}


@dataclass
class Graph:
    nodes: list[GraphNode] = field(default_factory=list)
    edges: list[GraphEdge] = field(default_factory=list)
    fields: dict[FieldRole, FieldResolution] = field(default_factory=dict)

    def field_for(self, role: FieldRole) -> Optional[str]:
        resolution = self.fields.get(role)
        return resolution.field if resolution else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
            "fields": {role.value: res.field for role, res in self.fields.items()},
        }


class GraphAccumulator:
    """Insertion-ordered node and edge sets; the first label seen for an id wins."""

    def __init__(self):
        self._nodes: dict[str, GraphNode] = {}
        self._edges: dict[EdgeKey, GraphEdge] = {}

    def add_node(self, node_id: str, label: Optional[str] = None) -> None:
        if node_id not in self._nodes:
            self._nodes[node_id] = GraphNode(id=node_id, label=label if label is not None else node_id)

    def add_edge(self, source: str, target: str) -> None:
        # Tuple key: "a-b"+"c" and "a"+"b-c" stay distinct
        key = (source, target)
        if key not in self._edges:
            self._edges[key] = GraphEdge(source=source, target=target)

    def build(self, fields: Optional[dict[FieldRole, FieldResolution]] = None) -> Graph:
        return Graph(
            nodes=list(self._nodes.values()),
            edges=list(self._edges.values()),
            fields=fields or {}
        )


def build_graph(result_set: ResultSet, config: Optional[GraphConfig] = None) -> Graph:
    """
    Convert a ResultSet into a node/edge graph.

    Bindings without a source value are skipped. Source nodes take their label
    from the label variable when bound; target nodes are labelled by their id.

    Args:
        result_set: Parsed SPARQL results
        config: Optional explicit field names; unknown names fall back to heuristics

    Returns:
        Graph with nodes and edges in first-seen order
    """
    config = config or GraphConfig()

    with tracer.start_as_current_span("build_graph") as span:
        span.set_attribute("binding_count", len(result_set.bindings))

        if not result_set.variables or not result_set.bindings:
            logger.info("Empty result set, returning empty graph")
            return Graph()

        fields = resolve_graph_fields(
            result_set.variables,
            source_field=config.source_field,
            target_field=config.target_field,
            label_field=config.label_field,
            weight_field=config.weight_field,
        )
        source_var = fields[FieldRole.SOURCE].field
        target_var = fields[FieldRole.TARGET].field
        label_var = fields[FieldRole.LABEL].field

        graph = GraphAccumulator()
        skipped = 0

        for binding in result_set.bindings:
            source_cell = binding.get(source_var)
            if source_cell is None:
                skipped += 1
                continue

            source_id = str(normalize(source_cell))
            label_cell = binding.get(label_var) if label_var else None
            source_label = str(normalize(label_cell)) if label_cell is not None else source_id
            graph.add_node(source_id, source_label)

            target_cell = binding.get(target_var) if target_var else None
            if target_cell is None:
                continue

            target_id = str(normalize(target_cell))
            graph.add_node(target_id)
            graph.add_edge(source_id, target_id)

        result = graph.build(fields)
        if skipped:
            logger.debug(f"Skipped {skipped} bindings with unbound source '{source_var}'")

        span.set_attribute("node_count", len(result.nodes))
        span.set_attribute("edge_count", len(result.edges))
        logger.info(f"Built graph: {len(result.nodes)} nodes, {len(result.edges)} edges")
        return result


def build_graph_from_rows(rows: Sequence[FlatRow], source_field: str,
                          target_field: Optional[str] = None) -> Graph:
    """
    Same reshaping as build_graph, over already flattened rows.

    Empty cells are treated as unbound.
    """
    graph = GraphAccumulator()

    for row in rows:
        source = row.get(source_field)
        if source is None or source == "":
            continue

        source_id = str(source)
        graph.add_node(source_id)

        target = row.get(target_field) if target_field else None
        if target is None or target == "":
            continue

        target_id = str(target)
        graph.add_node(target_id)
        graph.add_edge(source_id, target_id)

    fields = {
        FieldRole.SOURCE: FieldResolution(role=FieldRole.SOURCE, field=source_field),
        FieldRole.TARGET: FieldResolution(role=FieldRole.TARGET, field=target_field),
    }
    return graph.build(fields)
