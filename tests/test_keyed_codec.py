import json

import pytest

from healthsutra.codec import KeyedEntityCodec
from healthsutra.errors import ImportFormatError
from healthsutra.graph.model import Graph, Link, Node

MEMORY = {
    "entities": {
        "patient_1": {"type": "Patient", "attributes": {"name": "Asha"}},
        "doctor_1": {"type": "Doctor", "specialty": "cardiology"},
        "broken": {"name": "no type"},
    },
    "predicates": {
        "p1": {"type": "sees", "subject": "patient_1", "object": "doctor_1", "attributes": {"on": "Monday"}},
        "p2": {"type": "sees", "subject": "patient_1"},
    },
}


def test_import_keyed_map() -> None:
    graph = KeyedEntityCodec().import_graph(MEMORY)

    assert [n.id for n in graph.nodes] == ["patient_1", "doctor_1", "broken"]
    assert graph.get_node("patient_1").attributes == {"name": "Asha"}
    assert graph.get_node("doctor_1").attributes == {"specialty": "cardiology"}
    (link,) = graph.links
    assert (link.id, link.source_id, link.target_id, link.label) == ("link_p1", "patient_1", "doctor_1", "sees")
    assert link.attributes == {"on": "Monday"}


def test_import_accepts_json_text() -> None:
    graph = KeyedEntityCodec().import_graph(json.dumps(MEMORY))

    assert len(graph.nodes) == 3


def test_import_text_requires_predicates() -> None:
    with pytest.raises(ImportFormatError, match="missing entities or predicates"):
        KeyedEntityCodec().import_graph(json.dumps({"entities": {}}))


def test_export_uses_keyed_shape() -> None:
    codec = KeyedEntityCodec()
    graph = codec.import_graph(MEMORY)

    data = codec.export_graph(graph)

    assert data["entities"]["doctor_1"] == {"type": "Doctor", "attributes": {"specialty": "cardiology"}}
    assert data["predicates"] == {
        "p1": {"type": "sees", "subject": "patient_1", "object": "doctor_1", "attributes": {"on": "Monday"}}
    }


def test_import_keeps_untyped_entities_unlabelled() -> None:
    graph = KeyedEntityCodec().import_graph(
        {
            "entities": {"a": {"type": "Patient"}, "b": {"name": "Ravi"}},
            "predicates": {"0": {"type": "knows", "subject": "a", "object": "b"}},
        }
    )

    untyped = graph.get_node("b")
    assert untyped.label == ""
    assert untyped.attributes == {"name": "Ravi"}
    assert graph.get_link("link_0").target_id == "b"


def test_export_keeps_links_whose_keys_would_clash() -> None:
    a, b = Node("a", "Patient"), Node("b", "Doctor")
    graph = Graph.of([a, b], [Link("link_x", "a", "b", "r1"), Link("x", "b", "a", "r2")])

    predicates = KeyedEntityCodec().export_graph(graph)["predicates"]

    assert predicates == {
        "link_x": {"type": "r1", "subject": "a", "object": "b", "attributes": {}},
        "x": {"type": "r2", "subject": "b", "object": "a", "attributes": {}},
    }
