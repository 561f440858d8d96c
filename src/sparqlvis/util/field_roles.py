"""
Field role inference for SPARQL variables.

Roles (source, target, label, weight) are picked by an ordered list of
rules; the first rule whose predicate accepts a variable wins.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Sequence

logger = logging.getLogger(__name__)


class FieldRole(str, Enum):
    SOURCE = "source"
    TARGET = "target"
    LABEL = "label"
    WEIGHT = "weight"


# Variable-name fragments, matched case-sensitively as substrings
LABEL_HINTS = ("name", "label", "title")
WEIGHT_HINTS = ("score", "value", "weight")


@dataclass(frozen=True)
class FieldRule:
    """Accepts a variable for a role given its name, position and excluded names."""
    role: FieldRole
    description: str
    predicate: Callable[[str, int, frozenset], bool]


def _name_contains(hints: Sequence[str]) -> Callable[[str, int, frozenset], bool]:
    def predicate(name: str, index: int, excluded: frozenset) -> bool:
        return name not in excluded and any(hint in name for hint in hints)
    return predicate


FIELD_RULES: tuple[FieldRule, ...] = (
    FieldRule(FieldRole.SOURCE, "first variable", lambda name, index, excluded: index == 0),
    FieldRule(FieldRole.TARGET, "second variable", lambda name, index, excluded: index == 1),
    FieldRule(FieldRole.LABEL, "name contains name/label/title", _name_contains(LABEL_HINTS)),
    FieldRule(FieldRole.WEIGHT, "name contains score/value/weight", _name_contains(WEIGHT_HINTS)),
)


@dataclass(frozen=True)
class FieldResolution:
    """Outcome of resolving one role: the chosen field and whether a fallback happened."""
    role: FieldRole
    field: Optional[str]
    fell_back: bool = False
    requested: Optional[str] = None


def infer_field(role: FieldRole, variables: Sequence[str],
                exclude: Sequence[str] = (),
                rules: Sequence[FieldRule] = FIELD_RULES) -> Optional[str]:
    """Return the first variable accepted by the rules registered for a role."""
    excluded = frozenset(f for f in exclude if f)
    for rule in rules:
        if rule.role != role:
            continue
        for index, name in enumerate(variables):
            if rule.predicate(name, index, excluded):
                return name
    return None


def resolve_field(role: FieldRole, requested: Optional[str], variables: Sequence[str],
                  exclude: Sequence[str] = ()) -> FieldResolution:
    """
    Use the requested field when it is a known variable, otherwise infer one.

    An unknown requested name is not an error: it is logged and the heuristic
    default is returned with fell_back=True.
    """
    if requested and requested in variables:
        return FieldResolution(role=role, field=requested, requested=requested)

    inferred = infer_field(role, variables, exclude)
    if requested:
        logger.warning(
            f"Field '{requested}' for role {role.value} not in variables {list(variables)}; "
            f"using '{inferred}'"
        )
        return FieldResolution(role=role, field=inferred, fell_back=True, requested=requested)

    return FieldResolution(role=role, field=inferred)


def resolve_graph_fields(variables: Sequence[str],
                         source_field: Optional[str] = None,
                         target_field: Optional[str] = None,
                         label_field: Optional[str] = None,
                         weight_field: Optional[str] = None) -> dict[FieldRole, FieldResolution]:
    """Resolve all four graph roles; the label role never reuses source or target."""
    source = resolve_field(FieldRole.SOURCE, source_field, variables)
    target = resolve_field(FieldRole.TARGET, target_field, variables)
    label = resolve_field(FieldRole.LABEL, label_field, variables,
                          exclude=(source.field, target.field))
    weight = resolve_field(FieldRole.WEIGHT, weight_field, variables)

    return {
        FieldRole.SOURCE: source,
        FieldRole.TARGET: target,
        FieldRole.LABEL: label,
        FieldRole.WEIGHT: weight,
    }
