"""
SPARQL Results to flat rows.
Shortens URIs to their local name and coerces numeric literals.
"""
import logging
import math
import re
from typing import Optional, Union

from sparqlvis.config import settings
from sparqlvis.data.result_model import Cell, CellType, ResultSet

logger = logging.getLogger(__name__)

Scalar = Union[str, int, float]
FlatRow = dict[str, Scalar]

_DECIMAL_RE = re.compile(r'^[+-]?(?:\d+\.?\d*|\.\d+)$')
_URI_DELIMITERS = ('/', '#')


def shorten_uri(uri: str) -> str:
    """
    Return the segment after the last '/' or '#' of a URI.

    Examples:
        https://rdf.metanetx.org/chem/MNXM12406 -> MNXM12406
        http://www.w3.org/2000/01/rdf-schema#label -> label
    """
    cut = max(uri.rfind(d) for d in _URI_DELIMITERS)
    if cut == -1:
        return uri

    segment = uri[cut + 1:]
    # Trailing delimiter: keep the whole URI rather than an empty id
    return segment if segment else uri


def parse_number(value: Optional[str]) -> Optional[Union[int, float]]:
    """
    Parse a base-10 decimal with optional sign and decimal point.

    Returns:
        int for integral text, float when a decimal point is present,
        None when the text is not a finite decimal number
    """
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not _DECIMAL_RE.match(text):
        return None

    if '.' not in text:
        try:
            return int(text)
        except ValueError:
            # past the interpreter's int string conversion limit
            return None

    number = float(text)
    return number if math.isfinite(number) else None


def normalize(cell: Optional[Cell], default: Optional[Scalar] = None) -> Scalar:
    """
    Extract the scalar value of a single binding cell.

    Never raises: absent cells give the default, malformed numbers stay strings.
    """
    if cell is None:
        return settings.EMPTY_CELL_VALUE if default is None else default

    if cell.type == CellType.URI:
        return shorten_uri(cell.value)

    number = parse_number(cell.value)
    if number is not None:
        return number

    return cell.value


def flatten(result_set: ResultSet) -> list[FlatRow]:
    """
    Convert a ResultSet into one flat record per binding.

    Rows keep binding order and columns keep variable order; nothing is
    sorted or filtered.
    """
    rows = []
    for binding in result_set.bindings:
        rows.append({var: normalize(binding.get(var)) for var in result_set.variables})

    logger.debug(f"Flattened {len(rows)} bindings over {len(result_set.variables)} variables")
    return rows
