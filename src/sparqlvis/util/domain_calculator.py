"""
Scale domain calculation for visual encodings.

Given data and an optional user-supplied domain, returns the domain a scale
should use: generated from the data, corrected, completed, or kept as is.
"""
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

logger = logging.getLogger(__name__)

ORDINAL_SCALES = ('ordinal', 'nominal', 'point', 'band')


@dataclass
class DomainReport:
    """How a user domain compares to the values present in the data."""
    matching: list = field(default_factory=list)
    unknown: list = field(default_factory=list)
    missing: list = field(default_factory=list)

    @property
    def is_invalid(self) -> bool:
        return not self.matching

    @property
    def is_incomplete(self) -> bool:
        return bool(self.missing)


def _to_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def values_equal(a: Any, b: Any) -> bool:
    """Equal directly, as strings, or as numbers ("1" == 1)."""
    if a == b or str(a) == str(b):
        return True
    num_a, num_b = _to_number(a), _to_number(b)
    return num_a is not None and num_b is not None and num_a == num_b


def _natural_key(value: Any) -> list:
    parts = re.split(r'(\d+)', str(value).lower())
    return [(0, int(p), '') if p.isdigit() else (1, 0, p) for p in parts if p]


def sort_domain_values(values: Sequence[Any], scale_type: str = 'ordinal') -> list:
    """Natural sort for ordinal scales, numeric sort (non-numbers last) otherwise."""
    if scale_type in ORDINAL_SCALES:
        return sorted(values, key=_natural_key)

    def numeric_key(value):
        number = _to_number(value)
        return (number is None, number if number is not None else 0.0, str(value))

    return sorted(values, key=numeric_key)


def distinct_values(data: Sequence[dict], field_name: str) -> list:
    """Distinct non-empty values of a field, in first-seen order."""
    seen = []
    for item in data:
        value = item.get(field_name)
        if value is None or value == '':
            continue
        if value not in seen:
            seen.append(value)
    return seen


def analyze_domain(user_domain: Sequence[Any], data_values: Sequence[Any]) -> DomainReport:
    report = DomainReport()
    for value in user_domain:
        if any(values_equal(value, d) for d in data_values):
            report.matching.append(value)
        else:
            report.unknown.append(value)
    for value in data_values:
        if not any(values_equal(value, u) for u in user_domain):
            report.missing.append(value)
    return report


def get_domain(data: Sequence[dict], field_name: str,
               user_domain: Optional[Sequence[Any]] = None,
               scale_type: str = 'ordinal') -> list:
    """
    Compute the domain of a scale bound to a field.

    Cases:
        no user domain          -> sorted distinct data values
        no user value matches   -> replaced by the data domain
        data values missing     -> user order kept, missing values appended sorted
        otherwise               -> user domain unchanged
    """
    if not data:
        logger.warning(f"No data available for field '{field_name}'")
        return []

    values = distinct_values(data, field_name)
    if not values:
        logger.warning(f"No values found in data for field '{field_name}'")
        return []

    if not user_domain:
        return sort_domain_values(values, scale_type)

    report = analyze_domain(user_domain, values)
    if report.is_invalid:
        logger.warning(
            f"Domain for '{field_name}' matches no data values {report.unknown}; "
            f"replaced with data domain"
        )
        return sort_domain_values(values, scale_type)

    if report.is_incomplete:
        logger.warning(f"Domain for '{field_name}' missing {len(report.missing)} values; completed")
        return list(user_domain) + sort_domain_values(report.missing, scale_type)

    return list(user_domain)
