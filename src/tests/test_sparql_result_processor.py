import pytest

from sparqlvis.data.result_model import Cell, CellType, ResultSet
from sparqlvis.util.sparql_result_processor import flatten, normalize, parse_number, shorten_uri

XSD_INTEGER = "http://www.w3.org/2001/XMLSchema#integer"


def test_uri_is_shortened_to_last_segment():
    cell = Cell(type=CellType.URI, value="https://x.org/chem/MNXM12406")
    assert normalize(cell) == "MNXM12406"


def test_uri_hash_fragment():
    cell = Cell(type=CellType.URI, value="http://www.w3.org/2000/01/rdf-schema#label")
    assert normalize(cell) == "label"


def test_uri_without_delimiter_is_unchanged():
    assert shorten_uri("urn:isbn:0451450523") == "urn:isbn:0451450523"


def test_uri_keeps_colons_of_compact_ids():
    assert shorten_uri("https://identifiers.org/CHEBI:82565") == "CHEBI:82565"


def test_uri_with_trailing_delimiter_keeps_whole_value():
    assert shorten_uri("http://example.org/things/") == "http://example.org/things/"


def test_numeric_literal_becomes_number():
    value = normalize(Cell(type=CellType.LITERAL, value="45"))
    assert value == 45
    assert isinstance(value, int)


@pytest.mark.parametrize("raw,expected", [
    ("-3.5", -3.5),
    ("+2", 2),
    (".5", 0.5),
    ("7.", 7.0),
])
def test_signed_and_decimal_literals(raw, expected):
    assert normalize(Cell(type=CellType.LITERAL, value=raw)) == expected


@pytest.mark.parametrize("raw", ["abc", "1e3", "NaN", "inf", "", "12 apples", "1.2.3"])
def test_non_decimal_literals_stay_strings(raw):
    assert normalize(Cell(type=CellType.LITERAL, value=raw)) == raw


def test_typed_literal_is_coerced():
    cell = Cell(type=CellType.TYPED_LITERAL, value="12", datatype=XSD_INTEGER)
    assert normalize(cell) == 12


def test_absent_cell_gives_empty_string_or_default():
    assert normalize(None) == ""
    assert normalize(None, default="n/a") == "n/a"


def test_parse_number_rejects_non_strings():
    assert parse_number(None) is None


def test_parse_number_rejects_overflow():
    assert parse_number("9" * 400 + ".0") is None


def test_flatten_keeps_order_and_cardinality(sample_result_set):
    rows = flatten(sample_result_set)

    assert len(rows) == len(sample_result_set.bindings)
    assert rows[0] == {"metabolite": "MNXM12406", "xref": "CHEBI:82565"}
    assert rows[-1] == {"metabolite": "MNXM54455", "xref": "hmdb:HMDB00056"}
    assert list(rows[0].keys()) == ["metabolite", "xref"]


def test_flatten_is_pure(sample_result_set):
    assert flatten(sample_result_set) == flatten(sample_result_set)


def test_flatten_unbound_variable_is_empty(payload_factory):
    result_set = ResultSet.from_sparql_json(payload_factory(
        ["item", "count"],
        [{"item": "http://ex.org/a", "count": "3"}, {"item": "http://ex.org/b"}],
    ))

    assert flatten(result_set) == [{"item": "a", "count": 3}, {"item": "b", "count": ""}]


def test_flatten_without_variables_gives_empty_records():
    result_set = ResultSet(variables=(), bindings=({}, {}))
    assert flatten(result_set) == [{}, {}]


def test_flatten_empty_result_set():
    assert flatten(ResultSet()) == []


def test_parse_number_rejects_huge_integers():
    assert parse_number("9" * 5000) is None


def test_huge_integer_literal_stays_a_string():
    cell = Cell(type=CellType.LITERAL, value="1" * 5000)

    assert normalize(cell) == "1" * 5000
