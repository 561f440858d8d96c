"""
Adaptive encoding: maps flattened SPARQL rows onto chart channels.

The result is a tagged union: a ChannelSpec for channel-based marks, or a
GraphSpec for the network mark which reshapes rows into nodes and edges.
"""
import copy
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal, Optional, Sequence, Union

from opentelemetry import trace

from sparqlvis.errors import InvalidEncodingError
from sparqlvis.util.graph_util import Graph, build_graph_from_rows
from sparqlvis.util.sparql_result_processor import FlatRow, parse_number

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

HEATMAP_COLOR_SCALE = {"type": "linear", "scheme": "blues"}


class MarkType(str, Enum):
    BAR = "bar"
    LINE = "line"
    AREA = "area"
    SCATTER = "scatter"
    PIE = "pie"
    HEATMAP = "heatmap"
    NETWORK = "network"

    @classmethod
    def parse(cls, value: Union[str, "MarkType", None]) -> "MarkType":
        """Accept chart family names and their Vega-Lite primitive aliases."""
        if isinstance(value, MarkType):
            return value
        if not value:
            return cls.BAR
        aliases = {"point": cls.SCATTER, "arc": cls.PIE, "rect": cls.HEATMAP}
        key = str(value).strip().lower()
        if key in aliases:
            return aliases[key]
        try:
            return cls(key)
        except ValueError:
            raise InvalidEncodingError(f"Unknown mark type '{value}'")

    @property
    def vega_mark(self) -> str:
        return {
            MarkType.SCATTER: "point",
            MarkType.PIE: "arc",
            MarkType.HEATMAP: "rect",
        }.get(self, self.value)


class FieldType(str, Enum):
    NOMINAL = "nominal"
    QUANTITATIVE = "quantitative"


class Aggregate(str, Enum):
    COUNT = "count"
    SUM = "sum"
    MEAN = "mean"
    MEDIAN = "median"
    MIN = "min"
    MAX = "max"

    @classmethod
    def parse(cls, value: Union[str, "Aggregate", None]) -> Optional["Aggregate"]:
        if isinstance(value, Aggregate) or value is None:
            return value
        key = str(value).strip().lower()
        if not key or key == "none":
            return None
        if key in ("average", "avg"):
            return cls.MEAN
        try:
            return cls(key)
        except ValueError:
            raise InvalidEncodingError(f"Unknown aggregate '{value}'")


@dataclass
class ChannelDef:
    """One encoding channel bound to a field (or to a fieldless count)."""
    field: Optional[str] = None
    type: FieldType = FieldType.NOMINAL
    aggregate: Optional[Aggregate] = None
    scale: Optional[dict[str, Any]] = None
    preserve_order: bool = False

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"type": self.type.value}
        if self.field:
            out["field"] = self.field
        if self.aggregate:
            out["aggregate"] = self.aggregate.value
        if self.scale:
            out["scale"] = dict(self.scale)
        if self.preserve_order:
            out["sort"] = None
        return out

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "ChannelDef":
        if not isinstance(raw, dict):
            raise InvalidEncodingError("Channel definition must be an object")
        try:
            field_type = FieldType(raw.get("type", FieldType.NOMINAL.value))
        except ValueError:
            raise InvalidEncodingError(f"Unknown field type '{raw.get('type')}'")
        return cls(
            field=raw.get("field"),
            type=field_type,
            aggregate=Aggregate.parse(raw.get("aggregate")),
            scale=raw.get("scale"),
            preserve_order="sort" in raw and raw["sort"] is None,
        )


@dataclass
class EncodingOverrides:
    x_field: Optional[str] = None
    y_field: Optional[str] = None
    color_field: Optional[str] = None
    aggregate: Optional[str] = None


@dataclass
class ChannelSpec:
    mark: MarkType
    channels: dict[str, ChannelDef] = field(default_factory=dict)
    point_markers: bool = False
    fallbacks: dict[str, str] = field(default_factory=dict)
    kind: Literal["encoding"] = "encoding"

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "mark": self.mark.value,
            "point": self.point_markers,
            "encoding": {name: ch.to_dict() for name, ch in self.channels.items()},
            "fallbacks": dict(self.fallbacks),
        }

    def fields(self) -> list[str]:
        return [ch.field for ch in self.channels.values() if ch.field]


@dataclass
class GraphSpec:
    graph: Graph
    source_field: Optional[str] = None
    target_field: Optional[str] = None
    fallbacks: dict[str, str] = field(default_factory=dict)
    mark: MarkType = MarkType.NETWORK
    kind: Literal["network"] = "network"

    def to_dict(self) -> dict[str, Any]:
        data = self.graph.to_dict()
        return {
            "kind": self.kind,
            "mark": self.mark.value,
            "source": self.source_field,
            "target": self.target_field,
            "nodes": data["nodes"],
            "edges": data["edges"],
            "fallbacks": dict(self.fallbacks),
        }


EncodingResult = Union[ChannelSpec, GraphSpec]


def infer_field_type(data: Sequence[FlatRow], field_name: str) -> FieldType:
    """
    Quantitative if at least one non-null value in the column is a finite decimal.

    A single numeric-looking value flips the whole column.
    """
    for row in data:
        value = row.get(field_name)
        if value is None or isinstance(value, bool):
            continue
        if isinstance(value, (int, float)):
            if value == value and value not in (float("inf"), float("-inf")):
                return FieldType.QUANTITATIVE
            continue
        if parse_number(str(value)) is not None:
            return FieldType.QUANTITATIVE
    return FieldType.NOMINAL


def _resolve_override(name: Optional[str], fields: Sequence[str], channel: str,
                      fallbacks: dict[str, str]) -> Optional[str]:
    if not name:
        return None
    if name in fields:
        return name
    logger.warning(f"Override {channel}='{name}' not in fields {list(fields)}; using default")
    fallbacks[channel] = name
    return None


def _base_channels(data: Sequence[FlatRow], fields: Sequence[str],
                   overrides: EncodingOverrides,
                   fallbacks: dict[str, str]) -> dict[str, ChannelDef]:
    x_field = _resolve_override(overrides.x_field, fields, "x", fallbacks)
    y_field = _resolve_override(overrides.y_field, fields, "y", fallbacks)
    color_field = _resolve_override(overrides.color_field, fields, "color", fallbacks)
    aggregate = Aggregate.parse(overrides.aggregate)

    if x_field:
        x = ChannelDef(field=x_field, type=infer_field_type(data, x_field))
    else:
        x = ChannelDef(field=fields[0], type=FieldType.NOMINAL)

    if y_field and aggregate != Aggregate.COUNT:
        y = ChannelDef(field=y_field, type=infer_field_type(data, y_field), aggregate=aggregate)
        if aggregate:
            y.type = FieldType.QUANTITATIVE
    else:
        if aggregate and aggregate != Aggregate.COUNT:
            logger.warning(f"Aggregate '{aggregate.value}' needs a y field; using count")
        y = ChannelDef(type=FieldType.QUANTITATIVE, aggregate=Aggregate.COUNT)

    channels = {"x": x, "y": y}
    if color_field:
        channels["color"] = ChannelDef(field=color_field, type=infer_field_type(data, color_field))
    return channels


def _shape_for_mark(spec: ChannelSpec) -> ChannelSpec:
    channels = spec.channels
    x = channels.get("x")
    y = channels.get("y")

    if spec.mark == MarkType.PIE:
        channels["theta"] = channels.pop("y")
        channels["color"] = ChannelDef(field=x.field, type=FieldType.NOMINAL)
        del channels["x"]

    elif spec.mark == MarkType.HEATMAP:
        channels["color"] = ChannelDef(
            field=y.field,
            type=FieldType.QUANTITATIVE,
            aggregate=y.aggregate,
            scale=dict(HEATMAP_COLOR_SCALE),
        )
        del channels["y"]

    elif spec.mark in (MarkType.LINE, MarkType.AREA):
        if x.type == FieldType.QUANTITATIVE:
            x.scale = {"zero": False}
        else:
            x.preserve_order = True
        spec.point_markers = spec.mark == MarkType.LINE

    return spec


def _network_spec(data: Sequence[FlatRow], fields: Sequence[str],
                  overrides: EncodingOverrides) -> GraphSpec:
    fallbacks: dict[str, str] = {}
    source = _resolve_override(overrides.x_field, fields, "x", fallbacks) or fields[0]
    target = _resolve_override(overrides.y_field, fields, "y", fallbacks)
    if target is None and len(fields) > 1:
        target = fields[1]

    graph = build_graph_from_rows(data, source, target)
    return GraphSpec(graph=graph, source_field=source, target_field=target, fallbacks=fallbacks)


def infer_encoding(data: Sequence[FlatRow], fields: Sequence[str],
                   mark: Union[MarkType, str, None] = MarkType.BAR,
                   overrides: Optional[EncodingOverrides] = None) -> EncodingResult:
    """
    Build an encoding for the given rows and mark.

    Without overrides: x is the first field (nominal) and y counts rows.
    Override names that are not fields fall back to those defaults and are
    reported in the result's fallbacks.
    """
    mark = MarkType.parse(mark)
    overrides = overrides or EncodingOverrides()

    with tracer.start_as_current_span("infer_encoding") as span:
        span.set_attribute("mark", mark.value)
        span.set_attribute("row_count", len(data))

        if not fields:
            logger.info("No fields available, returning empty encoding")
            if mark == MarkType.NETWORK:
                return GraphSpec(graph=Graph())
            return ChannelSpec(mark=mark)

        if mark == MarkType.NETWORK:
            return _network_spec(data, fields, overrides)

        fallbacks: dict[str, str] = {}
        channels = _base_channels(data, fields, overrides, fallbacks)
        spec = _shape_for_mark(ChannelSpec(mark=mark, channels=channels, fallbacks=fallbacks))
        logger.debug(f"Inferred {mark.value} encoding: {spec.to_dict()['encoding']}")
        return spec


def parse_encoding(raw: dict[str, Any], fields: Sequence[str]) -> ChannelSpec:
    """
    Parse a user-supplied `{mark, encoding}` document.

    Raises:
        InvalidEncodingError: on unknown marks, channels or fields
    """
    if not isinstance(raw, dict):
        raise InvalidEncodingError("Encoding must be an object")

    mark = MarkType.parse(raw.get("mark"))
    if mark == MarkType.NETWORK:
        raise InvalidEncodingError("Network encodings are derived from x/y fields, not set directly")

    encoding = raw.get("encoding") or {}
    if not isinstance(encoding, dict):
        raise InvalidEncodingError("'encoding' must be an object")

    channels = {}
    problems = []
    for name, raw_channel in encoding.items():
        if name not in ("x", "y", "color", "theta", "size"):
            problems.append(f"unknown channel '{name}'")
            continue
        channel = ChannelDef.from_dict(raw_channel)
        if channel.field and channel.field not in fields:
            problems.append(
                f"field '{channel.field}' for {name} does not exist. Available: {', '.join(fields)}"
            )
        channels[name] = channel

    if problems:
        raise InvalidEncodingError("; ".join(problems))

    return ChannelSpec(mark=mark, channels=channels, point_markers=bool(raw.get("point", False)))


class EncodingState:
    """
    The current encoding plus the base (first adaptive) encoding of a data load.

    The two slots are independent: editing current never touches base.
    """

    def __init__(self):
        self.data: list[FlatRow] = []
        self.fields: list[str] = []
        self.mark: MarkType = MarkType.BAR
        self.current: Optional[EncodingResult] = None
        self.base: Optional[EncodingResult] = None

    def load(self, data: Sequence[FlatRow], fields: Sequence[str],
             mark: Union[MarkType, str, None] = None) -> EncodingResult:
        """Replace the data and regenerate both slots from an adaptive encoding."""
        self.data = list(data)
        self.fields = list(fields)
        if mark is not None:
            self.mark = MarkType.parse(mark)

        self.base = infer_encoding(self.data, self.fields, self.mark)
        self.current = copy.deepcopy(self.base)
        return self.current

    def apply(self, overrides: Optional[EncodingOverrides] = None,
              mark: Union[MarkType, str, None] = None) -> EncodingResult:
        if mark is not None:
            self.mark = MarkType.parse(mark)
        self.current = infer_encoding(self.data, self.fields, self.mark, overrides)
        return self.current

    def override(self, spec: EncodingResult) -> EncodingResult:
        self.current = copy.deepcopy(spec)
        self.mark = spec.mark
        return self.current

    def reset(self) -> EncodingResult:
        """Discard the current encoding and regenerate an adaptive one."""
        self.current = infer_encoding(self.data, self.fields, self.mark)
        return self.current

    def restore_base(self) -> Optional[EncodingResult]:
        self.current = copy.deepcopy(self.base)
        if self.current is not None:
            self.mark = self.current.mark
        return self.current
