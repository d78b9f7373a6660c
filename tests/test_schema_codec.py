import logging
import random

import pytest

from healthsutra.codec import LpgSchemaCodec
from healthsutra.errors import ImportFormatError
from healthsutra.graph.model import Graph, Link, Node


def test_export_types_without_links() -> None:
    graph = Graph.of([Node("a", "Patient"), Node("b", "Patient")])

    data = LpgSchemaCodec().export_graph(graph)

    assert data == {"entity_types": {"Patient": []}, "predicates": {}}


def test_export_single_predicate_collapses_types() -> None:
    graph = Graph.of([Node("a", "Patient"), Node("b", "Doctor")], [Link("l1", "a", "b", "sees")])

    data = LpgSchemaCodec().export_graph(graph)

    assert data["predicates"]["sees"] == {"subject_type": "Patient", "object_type": "Doctor", "attributes": []}


def test_export_merges_and_sorts(clinic_graph: Graph) -> None:
    graph = Graph.of(
        list(clinic_graph.nodes) + [Node("n1", "Nurse", {"shift": ""})],
        list(clinic_graph.links) + [Link("l4", "n1", "d1", "sees", {"room": ""})],
    )

    data = LpgSchemaCodec().export_graph(graph)

    assert data["entity_types"]["Patient"] == ["age", "name"]
    assert data["predicates"]["sees"] == {
        "subject_type": ["Nurse", "Patient"],
        "object_type": "Doctor",
        "attributes": ["room", "since"],
    }


def test_export_warns_on_unresolvable_link(caplog: pytest.LogCaptureFixture) -> None:
    graph = Graph.of([Node("a", "Patient")], [Link("l1", "a", "ghost", "sees")])

    with caplog.at_level(logging.WARNING, logger="healthsutra.codec.schema"):
        data = LpgSchemaCodec().export_graph(graph)

    assert data["predicates"] == {}
    assert 'Skipping link "sees"' in caplog.text


def test_import_builds_exemplars() -> None:
    payload = {
        "entity_types": {"Patient": ["name"], "Doctor": []},
        "predicates": {
            "sees": {"subject_type": "Patient", "object_type": ["Doctor", "Patient"], "attributes": ["since"]},
            "unknown": {"subject_type": "Robot", "object_type": "Doctor", "attributes": []},
        },
    }

    graph = LpgSchemaCodec(rng=random.Random(0)).import_graph(payload, timestamp_ms=5)

    assert [(n.id, n.label) for n in graph.nodes] == [("Patient_0", "Patient"), ("Doctor_1", "Doctor")]
    assert graph.get_node("Patient_0").attributes == {"name": ""}
    assert [(link.source_id, link.target_id, link.label) for link in graph.links] == [
        ("Patient_0", "Doctor_1", "sees"),
        ("Patient_0", "Patient_0", "sees"),
    ]
    assert graph.links[0].id.startswith("Patient_0_sees_Doctor_1_5_")
    assert graph.links[0].attributes == {"since": ""}


def test_import_node_ids_follow_type_and_position() -> None:
    payload = {"entity_types": {"A": [], "A_1": [], "A_0": []}, "predicates": {}}

    graph = LpgSchemaCodec().import_graph(payload)

    assert [n.id for n in graph.nodes] == ["A_0", "A_1_1", "A_0_2"]


def test_schema_round_trip(clinic_graph: Graph) -> None:
    codec = LpgSchemaCodec()
    schema = codec.export_graph(clinic_graph)

    assert codec.export_graph(codec.import_graph(schema)) == schema


def test_loads_requires_schema_keys() -> None:
    with pytest.raises(ImportFormatError, match="Invalid schema format: missing entity_types or predicates"):
        LpgSchemaCodec().loads('{"entity_types": {}}')
