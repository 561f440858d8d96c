"""
Vega util to render encodings as Vega-Lite / Vega documents.
"""
import logging
import re
from typing import Any, Optional, Sequence

from opentelemetry import trace

from sparqlvis.config import settings
from sparqlvis.util.domain_calculator import get_domain
from sparqlvis.util.encoding_engine import (
    Aggregate,
    ChannelSpec,
    EncodingResult,
    FieldType,
    GraphSpec,
    MarkType,
)
from sparqlvis.util.sparql_result_processor import FlatRow

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

VEGA_LITE_SCHEMA = "https://vega.github.io/schema/vega-lite/v5.json"
VEGA_SCHEMA = "https://vega.github.io/schema/vega/v5.json"


class VegaUtil:
    """Util to convert encodings to vega format."""

    aggregate_titles = {
        Aggregate.COUNT: "Count of",
        Aggregate.SUM: "Sum of",
        Aggregate.MEAN: "Average of",
        Aggregate.MEDIAN: "Median of",
        Aggregate.MIN: "Minimum of",
        Aggregate.MAX: "Maximum of",
    }

    @staticmethod
    def _format_column_name(column_name: str) -> str:
        """
        Convert camelCase/variable names to human-readable format.

        Examples:
            metabolite -> Metabolite
            xrefCount -> Xref Count
        """
        spaced = re.sub(r'([A-Z])', r' \1', column_name.replace('_', ' '))
        words = spaced.split()

        if not words:
            return column_name

        return ' '.join(word.capitalize() for word in words).strip()

    @staticmethod
    def _mark_definition(mark: MarkType, point_markers: bool) -> Any:
        if mark == MarkType.BAR:
            return {"type": "bar", "tooltip": True, "cornerRadius": 3}
        if mark == MarkType.PIE:
            return {"type": "arc", "tooltip": True}
        if mark == MarkType.SCATTER:
            return {"type": "point", "tooltip": True, "filled": True, "opacity": 0.7}
        if mark == MarkType.LINE:
            return {"type": "line", "tooltip": True, "point": point_markers}
        if mark == MarkType.AREA:
            return {"type": "area", "tooltip": True, "line": True, "point": True}
        if mark == MarkType.HEATMAP:
            return {"type": "rect", "tooltip": True}
        return {"type": "bar", "tooltip": True}

    @staticmethod
    def _channel_title(channel: dict[str, Any]) -> str:
        field = channel.get("field")
        aggregate = channel.get("aggregate")
        name = VegaUtil._format_column_name(field) if field else "Records"
        if aggregate:
            prefix = VegaUtil.aggregate_titles.get(Aggregate(aggregate), aggregate)
            return f"{prefix} {name}"
        return name

    @staticmethod
    def _title(spec: ChannelSpec) -> str:
        fields = spec.fields()
        if not fields:
            return f"{spec.mark.value.capitalize()} chart"
        if len(fields) == 1:
            return f"{spec.mark.value.capitalize()} - {fields[0]}"
        return f"{spec.mark.value.capitalize()} - {fields[0]} vs {fields[1]}"

    @staticmethod
    def to_vega_lite(spec: ChannelSpec, data: Sequence[FlatRow],
                     height: Optional[int] = None) -> dict[str, Any]:
        """
        Wrap a channel spec and its rows into a complete Vega-Lite document.

        Args:
            spec: Channel encoding from the encoding engine
            data: Flat rows the encoding refers to
            height: Chart height, defaults to the configured value

        Returns:
            Vega-Lite v5 specification
        """
        with tracer.start_as_current_span("to_vega_lite") as span:
            span.set_attribute("mark", spec.mark.value)
            height = height or settings.VEGA_CHART_HEIGHT

            doc: dict[str, Any] = {
                "$schema": VEGA_LITE_SCHEMA,
                "data": {"values": list(data)},
                "width": "container",
                "height": height,
                "title": VegaUtil._title(spec),
                "background": "#fff",
                "mark": VegaUtil._mark_definition(spec.mark, spec.point_markers),
            }

            encoding = {}
            for name, channel_def in spec.channels.items():
                channel = channel_def.to_dict()
                channel["title"] = VegaUtil._channel_title(channel)
                encoding[name] = channel

            x = encoding.get("x")
            if x and x["type"] == FieldType.NOMINAL.value:
                x["axis"] = {"labelAngle": -45}

            color = encoding.get("color")
            if spec.mark == MarkType.PIE and color and color.get("field"):
                domain = get_domain(data, color["field"], (color.get("scale") or {}).get("domain"))
                color["scale"] = {**(color.get("scale") or {}), "domain": domain}
                color["legend"] = {"title": color["title"]}
                doc["width"] = height
            elif color and color["type"] == FieldType.NOMINAL.value:
                color["legend"] = {"title": color["title"]}

            doc["encoding"] = encoding
            return doc

    @staticmethod
    def to_vega_network(spec: GraphSpec, width: int = 800, height: int = 600) -> dict[str, Any]:
        """Force-directed Vega document for a node/edge graph."""
        nodes = [n.to_dict() for n in spec.graph.nodes]
        links = [e.to_dict() for e in spec.graph.edges]
        node_domain = get_domain(nodes, "id") if nodes else []

        return {
            "$schema": VEGA_SCHEMA,
            "width": width,
            "height": height,
            "padding": 0,
            "autosize": "none",
            "data": [
                {"name": "node-data", "values": nodes},
                {"name": "link-data", "values": links},
            ],
            "scales": [
                {
                    "name": "color",
                    "type": "ordinal",
                    "domain": node_domain,
                    "range": {"scheme": "category20"},
                }
            ],
            "marks": [
                {
                    "name": "nodes",
                    "type": "symbol",
                    "zindex": 1,
                    "from": {"data": "node-data"},
                    "encode": {
                        "enter": {
                            "fill": {"scale": "color", "field": "id"},
                            "stroke": {"value": "white"},
                            "strokeWidth": {"value": 1},
                            "size": {"value": 300},
                            "tooltip": {"field": "label"},
                        }
                    },
                    "transform": [
                        {
                            "type": "force",
                            "iterations": 300,
                            "static": False,
                            "forces": [
                                {"force": "center", "x": {"signal": "width / 2"}, "y": {"signal": "height / 2"}},
                                {"force": "collide", "radius": 20},
                                {"force": "nbody", "strength": -30},
                                {"force": "link", "links": "link-data", "id": "datum.id", "distance": 100},
                            ],
                        }
                    ],
                },
                {
                    "name": "links",
                    "type": "path",
                    "from": {"data": "link-data"},
                    "encode": {
                        "update": {
                            "stroke": {"value": "#ccc"},
                            "strokeWidth": {"value": 0.5},
                        }
                    },
                    "transform": [
                        {
                            "type": "linkpath",
                            "shape": "line",
                            "sourceX": {"field": "source.x"},
                            "sourceY": {"field": "source.y"},
                            "targetX": {"field": "target.x"},
                            "targetY": {"field": "target.y"},
                        }
                    ],
                },
                {
                    "name": "node-labels",
                    "type": "text",
                    "from": {"data": "nodes"},
                    "encode": {
                        "enter": {
                            "text": {"field": "datum.label"},
                            "fontSize": {"value": 10},
                            "fill": {"value": "black"},
                            "align": {"value": "center"},
                            "baseline": {"value": "middle"},
                            "dy": {"value": 15},
                        }
                    },
                },
            ],
        }

    @staticmethod
    def render(result: EncodingResult, data: Sequence[FlatRow]) -> dict[str, Any]:
        """Render either side of the encoding union."""
        if isinstance(result, GraphSpec):
            return VegaUtil.to_vega_network(result)
        return VegaUtil.to_vega_lite(result, data)
