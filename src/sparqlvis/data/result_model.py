"""
Typed model of a SPARQL JSON result set.

Parsing happens once at the boundary: everything downstream (normalizer,
flattener, graph builder) assumes a structurally valid ResultSet.
"""
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from sparqlvis.errors import InvalidResultSetError

logger = logging.getLogger(__name__)

_URI_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*:")


class CellType(str, Enum):
    URI = "uri"
    LITERAL = "literal"
    BNODE = "bnode"
    TYPED_LITERAL = "typed-literal"


@dataclass(frozen=True)
class Cell:
    """One variable's value within one solution row."""
    type: CellType
    value: str
    datatype: Optional[str] = None

    @classmethod
    def from_json(cls, raw: Any, path: str = "") -> "Cell":
        if not isinstance(raw, dict):
            raise InvalidResultSetError("binding cell must be an object", path)

        raw_type = raw.get("type")
        raw_value = raw.get("value")
        if not isinstance(raw_value, str):
            raise InvalidResultSetError("binding cell is missing a string 'value'", path)

        try:
            cell_type = CellType(raw_type)
        except ValueError:
            raise InvalidResultSetError(f"unknown binding type '{raw_type}'", path)

        if cell_type == CellType.URI and not _URI_SCHEME_RE.match(raw_value):
            raise InvalidResultSetError(f"uri '{raw_value}' is not absolute", path)

        datatype = raw.get("datatype")
        if datatype is not None and not isinstance(datatype, str):
            raise InvalidResultSetError("'datatype' must be a string", path)

        # Some endpoints tag typed literals as plain 'literal' with a datatype
        if cell_type == CellType.LITERAL and datatype:
            cell_type = CellType.TYPED_LITERAL

        return cls(type=cell_type, value=raw_value, datatype=datatype)

    def to_json(self) -> dict[str, str]:
        out = {"type": self.type.value, "value": self.value}
        if self.datatype:
            out["datatype"] = self.datatype
        return out


Row = dict[str, Cell]


@dataclass(frozen=True)
class ResultSet:
    """Variables (order-significant) and their row bindings."""
    variables: tuple[str, ...] = ()
    bindings: tuple[Row, ...] = field(default_factory=tuple)

    @classmethod
    def from_sparql_json(cls, payload: Any) -> "ResultSet":
        """
        Parse a `{head: {vars}, results: {bindings}}` document.

        Raises:
            InvalidResultSetError: if the document does not have that shape
        """
        if not isinstance(payload, dict):
            raise InvalidResultSetError("result set must be a JSON object")

        head = payload.get("head")
        if not isinstance(head, dict) or not isinstance(head.get("vars"), list):
            raise InvalidResultSetError("missing 'head.vars' list", "head")

        variables = head["vars"]
        for idx, var in enumerate(variables):
            if not isinstance(var, str):
                raise InvalidResultSetError("variable names must be strings", f"head.vars[{idx}]")

        results = payload.get("results")
        if not isinstance(results, dict) or not isinstance(results.get("bindings"), list):
            raise InvalidResultSetError("missing 'results.bindings' list", "results")

        known = set(variables)
        rows = []
        for idx, raw_row in enumerate(results["bindings"]):
            row_path = f"results.bindings[{idx}]"
            if not isinstance(raw_row, dict):
                raise InvalidResultSetError("binding row must be an object", row_path)

            row = {}
            for var_name, raw_cell in raw_row.items():
                if var_name not in known:
                    raise InvalidResultSetError(
                        f"variable '{var_name}' is not declared in head.vars", row_path
                    )
                row[var_name] = Cell.from_json(raw_cell, f"{row_path}.{var_name}")
            rows.append(row)

        logger.debug(f"Parsed result set: {len(variables)} variables, {len(rows)} bindings")
        return cls(variables=tuple(variables), bindings=tuple(rows))

    def to_sparql_json(self) -> dict[str, Any]:
        return {
            "head": {"vars": list(self.variables)},
            "results": {
                "bindings": [
                    {var: cell.to_json() for var, cell in row.items()}
                    for row in self.bindings
                ]
            }
        }

    @property
    def is_empty(self) -> bool:
        return not self.bindings
