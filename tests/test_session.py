import json
from pathlib import Path

import pytest

from healthsutra.config import Settings
from healthsutra.errors import CollaboratorError, CollaboratorUnavailable, GraphValidationError
from healthsutra.graph.model import Graph, Link, Node
from healthsutra.session import GraphSession
from healthsutra.tools import KNOWLEDGE_GRAPH, SCHEMA_EDITOR, VIEWER, get_profile


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


class FakeStore:
    """Stands in for GraphStoreClient; ``fail`` is raised from every call."""

    def __init__(self, graph: Graph | None = None, fail: Exception | None = None) -> None:
        self.graph = graph or Graph()
        self.fail = fail
        self.saved: list[Graph] = []
        self.cleared = 0

    def load(self) -> Graph:
        if self.fail:
            raise self.fail
        return self.graph

    def save(self, graph: Graph) -> None:
        if self.fail:
            raise self.fail
        self.saved.append(graph)

    def clear(self) -> None:
        if self.fail:
            raise self.fail
        self.cleared += 1


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


def test_load_from_store(clinic_graph: Graph, clock: FakeClock) -> None:
    session = GraphSession(store=FakeStore(clinic_graph), clock=clock)

    assert session.load() is True
    assert session.graph is clinic_graph
    assert not session.offline


def test_load_503_enters_local_mode(clock: FakeClock) -> None:
    session = GraphSession(store=FakeStore(fail=CollaboratorUnavailable()), clock=clock)
    session.engine.add_node(Node("x", "Stale"))

    assert session.load() is False

    assert session.graph.is_empty
    assert session.offline
    assert session.status.get("load") == "Database connection unavailable - working in local mode only"
    clock.now += 5.1
    assert session.status.get("load") is None


def test_load_failure_enters_local_mode(clock: FakeClock) -> None:
    session = GraphSession(store=FakeStore(fail=CollaboratorError("boom", status=500)), clock=clock)

    session.load()

    assert session.offline
    assert session.status.get("load") == "Working in local mode - changes won't be saved to database"


def test_save_success_message_expires_after_short_interval(clinic_graph: Graph, clock: FakeClock) -> None:
    store = FakeStore()
    session = GraphSession(store=store, clock=clock)
    session.engine.replace(clinic_graph)

    assert session.save() is True

    assert store.saved == [clinic_graph]
    assert session.status.get("save") == "Saved successfully!"
    clock.now += 3.1
    assert session.status.get("save") is None


def test_save_503_keeps_graph(clinic_graph: Graph, clock: FakeClock) -> None:
    session = GraphSession(store=FakeStore(fail=CollaboratorUnavailable()), clock=clock)
    session.engine.replace(clinic_graph)

    assert session.save() is False

    assert session.graph is clinic_graph
    assert session.status.get("save") == "Database unavailable - working in local mode"
    assert session.offline


def test_save_error_is_reported(clinic_graph: Graph, clock: FakeClock) -> None:
    session = GraphSession(store=FakeStore(fail=CollaboratorError("disk full", status=500)), clock=clock)
    session.engine.replace(clinic_graph)

    session.save()

    assert session.graph is clinic_graph
    assert session.status.get("save") == "Error: disk full"
    assert session.status.active()["save"].is_error


def test_save_ignored_while_in_flight(clock: FakeClock) -> None:
    store = FakeStore()
    session = GraphSession(store=store, clock=clock)
    session.is_saving = True

    assert session.save() is False
    assert store.saved == []


def test_schema_editor_does_not_persist(clock: FakeClock) -> None:
    store = FakeStore()
    session = GraphSession(SCHEMA_EDITOR, store=store, clock=clock)

    assert session.save() is False
    assert store.saved == []
    assert session.status.get("save") == "Database operations not available in Schema Editor"

    session.engine.add_node(Node("a", "Patient"))
    assert session.clear() is True
    assert session.graph.is_empty
    assert store.cleared == 0
    assert session.status.get("clear") == "Schema cleared successfully!"


def test_clear_succeeds(clinic_graph: Graph, clock: FakeClock) -> None:
    store = FakeStore()
    session = GraphSession(store=store, clock=clock)
    session.engine.replace(clinic_graph)

    assert session.clear() is True

    assert store.cleared == 1
    assert session.graph.is_empty
    assert session.status.get("clear") == "Graph cleared successfully!"


@pytest.mark.parametrize(
    ("fail", "message"),
    [
        (CollaboratorUnavailable(), "Database unavailable - cleared UI only"),
        (CollaboratorError("nope", status=500), "UI cleared. Server error: nope"),
    ],
)
def test_clear_always_clears_locally(clinic_graph: Graph, clock: FakeClock, fail: Exception, message: str) -> None:
    session = GraphSession(store=FakeStore(fail=fail), clock=clock)
    session.engine.replace(clinic_graph)
    session.engine.select_node("p1")

    session.clear()

    assert session.graph.is_empty
    assert session.engine.selection.node_id is None
    assert session.status.get("clear") == message


def test_clear_declined_keeps_graph(clinic_graph: Graph, clock: FakeClock) -> None:
    session = GraphSession(store=FakeStore(), clock=clock)
    session.engine.replace(clinic_graph)

    assert session.clear(confirm=lambda: False) is False
    assert session.graph is clinic_graph


def test_clear_ignored_while_saving(clinic_graph: Graph, clock: FakeClock) -> None:
    session = GraphSession(store=FakeStore(), clock=clock)
    session.engine.replace(clinic_graph)
    session.is_saving = True

    assert session.clear() is False
    assert session.graph is clinic_graph


def _write(path: Path, payload) -> Path:
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_import_into_empty_graph(tmp_path: Path, clock: FakeClock) -> None:
    path = _write(tmp_path / "in.json", {"entities": [{"id": "a", "type": "Patient"}], "relationships": []})
    session = GraphSession(clock=clock)
    asked = []

    assert session.import_file(path, confirm=lambda: asked.append(1) or True) is True

    assert asked == []
    assert [n.id for n in session.graph.nodes] == ["a"]
    assert session.status.get("import") == "JSON imported successfully!"


def test_import_cancelled_keeps_graph(tmp_path: Path, clinic_graph: Graph, clock: FakeClock) -> None:
    path = _write(tmp_path / "in.json", {"entities": [], "relationships": []})
    session = GraphSession(clock=clock)
    session.engine.replace(clinic_graph)

    assert session.import_file(path, confirm=lambda: False) is False

    assert session.graph is clinic_graph
    assert session.status.get("import") == "Import cancelled"


def test_import_error_keeps_graph(tmp_path: Path, clinic_graph: Graph, clock: FakeClock) -> None:
    path = _write(tmp_path / "in.json", {"nodes": []})
    session = GraphSession(clock=clock)
    session.engine.replace(clinic_graph)

    assert session.import_file(path) is False

    assert session.graph is clinic_graph
    assert session.status.get("import") == "Error: Invalid format: missing entities or relationships"
    clock.now += 4.0
    assert session.status.get("import") is not None


def test_schema_editor_imports_schema(clock: FakeClock) -> None:
    session = GraphSession(SCHEMA_EDITOR, clock=clock)

    session.import_text(json.dumps({"entity_types": {"Patient": ["name"]}, "predicates": {}}))

    assert [(n.id, n.label) for n in session.graph.nodes] == [("Patient_0", "Patient")]


def test_export_file_defaults_to_export_dir(tmp_path: Path, clinic_graph: Graph, clock: FakeClock) -> None:
    session = GraphSession(settings=Settings(export_dir=tmp_path), clock=clock)
    session.engine.replace(clinic_graph)

    out = session.export_file()

    assert out == tmp_path / "graph-lpg-schema.json"
    assert len(json.loads(out.read_text(encoding="utf-8"))["entities"]) == 4


def test_viewer_loads_keyed_memory_and_requires_ids(clock: FakeClock) -> None:
    session = GraphSession(VIEWER, clock=clock)
    memory = json.dumps(
        {
            "entities": {"a": {"type": "Patient"}, "b": {"type": "Doctor"}},
            "predicates": {"1": {"type": "sees", "subject": "a", "object": "b"}},
        }
    )

    assert session.load_source(memory) is True
    assert session.graph.get_link("link_1").label == "sees"

    with pytest.raises(GraphValidationError, match="Node ID is required"):
        session.submit_node("Nurse")
    node = session.submit_node("Nurse", node_id="n1")
    assert node.id == "n1"


def test_viewer_load_failure_reports(clock: FakeClock) -> None:
    session = GraphSession(VIEWER, clock=clock)

    assert session.load_source("{oops") is False
    assert session.graph.is_empty
    assert session.status.get("load").startswith("Failed to load graph data: Error parsing JSON file")


def test_submit_node_edit_keeps_id(clinic_graph: Graph, clock: FakeClock) -> None:
    session = GraphSession(clock=clock)
    session.engine.replace(clinic_graph)

    node = session.submit_node("Inpatient", ["ward"], editing="p1")

    assert node.id == "p1"
    assert session.graph.get_node("p1").attributes == {"ward": ""}


def test_viewer_edit_keeps_loaded_values(clock: FakeClock) -> None:
    session = GraphSession(VIEWER, clock=clock)
    session.load_source(
        {"entities": {"p1": {"type": "Patient", "attributes": {"name": "Asha", "age": "42"}}}, "predicates": {}}
    )

    node = session.submit_node("Person", ["name", "age", "ward"], editing="p1")

    assert node.label == "Person"
    assert session.graph.get_node("p1").attributes == {"name": "Asha", "age": "42", "ward": ""}


def test_submit_node_accepts_values(clinic_graph: Graph, clock: FakeClock) -> None:
    session = GraphSession(clock=clock)
    session.engine.replace(clinic_graph)

    session.submit_node("Patient", {"name": "Ravi", "ward": "3B"}, editing="p1")

    assert session.graph.get_node("p1").attributes == {"name": "Ravi", "ward": "3B"}


def test_keyboard_shortcuts(clinic_graph: Graph, clock: FakeClock) -> None:
    session = GraphSession(clock=clock)
    session.engine.replace(clinic_graph)

    session.engine.select_link("l3")
    assert session.handle_key("Delete") is True
    assert session.graph.get_link("l3") is None

    session.edges.open_create()
    session.edges.start_selecting("source")
    session.engine.select_node("p1")
    assert session.handle_key("Escape") is True
    assert not session.edges.is_open
    assert session.edges.selecting_for is None
    assert session.engine.selection.node_id is None
    assert session.handle_key("a") is False


def test_get_profile() -> None:
    assert get_profile("knowledge-graph") is KNOWLEDGE_GRAPH
    assert get_profile("viewer").source_codec == "keyed"
    with pytest.raises(ValueError):
        get_profile("nope")


def test_save_normalises_inline_endpoints(clock: FakeClock) -> None:
    a, b = Node("a", "Patient"), Node("b", "Doctor")
    store = FakeStore()
    session = GraphSession(store=store, clock=clock)
    session.engine.replace(Graph.of([a, b], [Link("l1", a, b, "sees")]))

    session.save()

    assert store.saved[0].to_dict()["links"][0]["source"] == "a"
