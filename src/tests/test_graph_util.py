from sparqlvis.data.result_model import ResultSet
from sparqlvis.util.field_roles import FieldRole
from sparqlvis.util.graph_util import GraphConfig, build_graph, build_graph_from_rows
from sparqlvis.util.sparql_result_processor import flatten


def _result(payload_factory, variables, rows):
    return ResultSet.from_sparql_json(payload_factory(variables, rows))


def test_metabolite_scenario(sample_result_set):
    graph = build_graph(sample_result_set)
    ids = [n.id for n in graph.nodes]

    metabolites = [i for i in ids if i.startswith("MNXM")]
    assert metabolites == ["MNXM12406", "MNXM54455"]
    assert len(ids) == 10
    assert len(graph.edges) == 8
    assert graph.edges[0].to_dict() == {"source": "MNXM12406", "target": "CHEBI:82565"}


def test_four_and_four_scenario(payload_factory):
    rows = []
    for m in ("M1", "M2"):
        for x in range(4):
            rows.append({"metabolite": f"https://x.org/chem/{m}", "xref": f"https://id.org/{m}-x{x}"})
    graph = build_graph(_result(payload_factory, ["metabolite", "xref"], rows))

    assert len(graph.nodes) == 10
    assert len(graph.edges) == 8


def test_node_ids_are_unique(sample_payload, sample_result_set):
    doubled = ResultSet(
        variables=sample_result_set.variables,
        bindings=sample_result_set.bindings + sample_result_set.bindings,
    )
    graph = build_graph(doubled)
    ids = [n.id for n in graph.nodes]

    assert len(ids) == len(set(ids))
    assert len(graph.edges) == 8


def test_edges_are_deduplicated(payload_factory):
    graph = build_graph(_result(payload_factory, ["s", "o"], [
        {"s": "http://ex.org/a", "o": "http://ex.org/b"},
        {"s": "http://ex.org/a", "o": "http://ex.org/b"},
        {"s": "http://ex.org/b", "o": "http://ex.org/a"},
    ]))

    pairs = [(e.source, e.target) for e in graph.edges]
    assert pairs == [("a", "b"), ("b", "a")]


def test_hyphenated_ids_do_not_collide(payload_factory):
    graph = build_graph(_result(payload_factory, ["s", "o"], [
        {"s": "a-b", "o": "c"},
        {"s": "a", "o": "b-c"},
    ]))

    assert len(graph.edges) == 2


def test_label_variable_and_first_seen_wins(payload_factory):
    graph = build_graph(_result(payload_factory, ["gene", "protein", "name"], [
        {"gene": "http://ex.org/g1", "protein": "http://ex.org/p1", "name": "BRCA1"},
        {"gene": "http://ex.org/g1", "protein": "http://ex.org/p2", "name": "other"},
    ]))
    nodes = {n.id: n.label for n in graph.nodes}

    assert nodes["g1"] == "BRCA1"
    # target labels are their ids, never looked up through the label variable
    assert nodes["p1"] == "p1"
    assert graph.field_for(FieldRole.LABEL) == "name"


def test_label_falls_back_to_id(sample_result_set):
    graph = build_graph(sample_result_set)

    assert all(n.label == n.id for n in graph.nodes)


def test_unbound_source_is_skipped(payload_factory):
    graph = build_graph(_result(payload_factory, ["s", "o"], [
        {"o": "http://ex.org/orphan"},
        {"s": "http://ex.org/a", "o": "http://ex.org/b"},
    ]))

    assert [n.id for n in graph.nodes] == ["a", "b"]


def test_unbound_target_adds_source_only(payload_factory):
    graph = build_graph(_result(payload_factory, ["s", "o"], [{"s": "http://ex.org/a"}]))

    assert [n.id for n in graph.nodes] == ["a"]
    assert graph.edges == []


def test_single_variable_gives_nodes_only(payload_factory):
    graph = build_graph(_result(payload_factory, ["s"], [{"s": "x"}, {"s": "y"}]))

    assert [n.id for n in graph.nodes] == ["x", "y"]
    assert graph.edges == []


def test_empty_inputs():
    assert build_graph(ResultSet()).to_dict() == {"nodes": [], "edges": [], "fields": {}}
    empty_bindings = ResultSet(variables=("s", "o"), bindings=())
    assert build_graph(empty_bindings).nodes == []


def test_weight_is_detected_not_used(payload_factory):
    graph = build_graph(_result(payload_factory, ["s", "o", "score"], [
        {"s": "a", "o": "b", "score": "0.9"},
        {"s": "a", "o": "b", "score": "0.1"},
    ]))

    assert graph.field_for(FieldRole.WEIGHT) == "score"
    assert [e.to_dict() for e in graph.edges] == [{"source": "a", "target": "b"}]


def test_explicit_config(payload_factory):
    graph = build_graph(
        _result(payload_factory, ["s", "o", "p"], [{"s": "a", "o": "b", "p": "c"}]),
        GraphConfig(source_field="p", target_field="s"),
    )

    assert [e.to_dict() for e in graph.edges] == [{"source": "c", "target": "a"}]


def test_unknown_config_falls_back(payload_factory):
    graph = build_graph(
        _result(payload_factory, ["s", "o"], [{"s": "a", "o": "b"}]),
        GraphConfig(source_field="nope"),
    )

    assert graph.fields[FieldRole.SOURCE].fell_back
    assert graph.field_for(FieldRole.SOURCE) == "s"
    assert len(graph.edges) == 1


def test_build_graph_from_rows_matches_build_graph(sample_result_set):
    from_rows = build_graph_from_rows(flatten(sample_result_set), "metabolite", "xref")
    from_cells = build_graph(sample_result_set)

    assert from_rows.nodes == from_cells.nodes
    assert from_rows.edges == from_cells.edges


def test_build_graph_from_rows_skips_empty_cells():
    graph = build_graph_from_rows([{"s": "", "o": "x"}, {"s": "a", "o": ""}], "s", "o")

    assert [n.id for n in graph.nodes] == ["a"]
    assert graph.edges == []
