from sparqlvis.util.field_roles import (
    FIELD_RULES,
    FieldRole,
    infer_field,
    resolve_field,
    resolve_graph_fields,
)


def test_rules_are_ordered_source_target_label_weight():
    roles = [rule.role for rule in FIELD_RULES]
    assert roles == [FieldRole.SOURCE, FieldRole.TARGET, FieldRole.LABEL, FieldRole.WEIGHT]


def test_positional_defaults():
    variables = ["gene", "protein", "geneName"]

    assert infer_field(FieldRole.SOURCE, variables) == "gene"
    assert infer_field(FieldRole.TARGET, variables) == "protein"


def test_single_variable_has_no_target():
    assert infer_field(FieldRole.TARGET, ["only"]) is None


def test_label_hint_excludes_source_and_target():
    variables = ["name", "friend", "friendlabel"]

    assert infer_field(FieldRole.LABEL, variables, exclude=("name", "friend")) == "friendlabel"


def test_label_hint_is_case_sensitive():
    assert infer_field(FieldRole.LABEL, ["s", "o", "Label"]) is None
    assert infer_field(FieldRole.LABEL, ["s", "o", "bookTitle"]) is None
    assert infer_field(FieldRole.LABEL, ["s", "o", "title"]) == "title"


def test_weight_hint_first_match_wins():
    assert infer_field(FieldRole.WEIGHT, ["s", "o", "weightKg", "score"]) == "weightKg"


def test_explicit_field_is_used():
    resolution = resolve_field(FieldRole.SOURCE, "b", ["a", "b"])

    assert resolution.field == "b"
    assert not resolution.fell_back


def test_unknown_field_falls_back_and_is_flagged(caplog):
    resolution = resolve_field(FieldRole.SOURCE, "missing", ["a", "b"])

    assert resolution.field == "a"
    assert resolution.fell_back
    assert resolution.requested == "missing"
    assert "missing" in caplog.text


def test_resolve_graph_fields():
    fields = resolve_graph_fields(["metabolite", "xref", "label", "score"])

    assert fields[FieldRole.SOURCE].field == "metabolite"
    assert fields[FieldRole.TARGET].field == "xref"
    assert fields[FieldRole.LABEL].field == "label"
    assert fields[FieldRole.WEIGHT].field == "score"
