"""Unit tests for InMemoryTaskStore."""

import pytest
import yaml

from taskgraph.models import DependencyEdge, Task
from taskgraph.store import InMemoryTaskStore, TaskStore, dependency_adjacency, parent_adjacency


@pytest.fixture
def store():
    store = InMemoryTaskStore()
    for task_id in ("a", "b", "c"):
        store.add_task(Task(id=task_id, title=task_id))
    return store


class TestTaskRecords:
    """Test task record primitives."""

    def test_satisfies_protocol(self, store):
        assert isinstance(store, TaskStore)

    def test_get_task_returns_copy(self, store):
        """Test callers cannot mutate stored records."""
        task = store.get_task("a")
        task.parent_id = "b"

        assert store.get_task("a").parent_id is None

    def test_get_missing_task(self, store):
        assert store.get_task("missing") is None

    def test_empty_id_rejected(self, store):
        with pytest.raises(ValueError, match="empty"):
            store.add_task(Task(id="", title="Nameless"))

    def test_subtask_ids_are_derived(self, store):
        """Test child lists follow parent pointers."""
        store.set_parent("b", "a")
        store.set_parent("c", "a")

        assert store.get_task("a").subtask_ids == ["b", "c"]
        assert store.get_children("a") == ["b", "c"]
        assert store.get_parent("b") == "a"

    def test_set_parent_unknown_task(self, store):
        with pytest.raises(KeyError):
            store.set_parent("missing", "a")

    def test_remove_task_drops_edges(self, store):
        """Test removing a record also drops its edges."""
        store.add_dependency_edge("a", "b")
        store.add_dependency_edge("b", "c")

        store.remove_task("b")

        assert store.get_task("b") is None
        assert store.dependency_edges() == []
        assert store.edges_from("a") == []
        assert store.edges_to("c") == []


class TestDependencyEdges:
    """Test dependency edge primitives."""

    def test_edges_both_directions(self, store):
        store.add_dependency_edge("a", "b")
        store.add_dependency_edge("a", "c")

        assert store.edges_from("a") == ["b", "c"]
        assert store.edges_to("b") == ["a"]
        assert store.has_dependency_edge("a", "b")
        assert not store.has_dependency_edge("b", "a")

    def test_adding_twice_keeps_one_edge(self, store):
        store.add_dependency_edge("a", "b")
        store.add_dependency_edge("a", "b")

        assert store.dependency_edges() == [DependencyEdge("a", "b")]

    def test_remove_edge(self, store):
        store.add_dependency_edge("a", "b")
        store.remove_dependency_edge("a", "b")

        assert not store.has_dependency_edge("a", "b")
        assert store.edges_to("b") == []

    def test_adjacency_snapshots(self, store):
        store.add_dependency_edge("a", "b")
        store.set_parent("c", "a")

        assert dependency_adjacency(store) == {"a": {"b"}}
        assert parent_adjacency(store) == {"c": {"a"}}


class TestSnapshots:
    """Test snapshot loading and dumping."""

    def test_from_snapshot(self):
        """Test both dependency entry forms are accepted."""
        store = InMemoryTaskStore.from_snapshot(
            {
                "tasks": [
                    {"id": "epic", "title": "Epic"},
                    {"id": "s1", "title": "Story 1", "parent_id": "epic"},
                    {"id": "s2", "title": "Story 2", "parent_id": "epic", "status": "completed"},
                ],
                "dependencies": [
                    {"dependent": "s1", "dependency": "s2"},
                    ["epic", "s1"],
                ],
            },
        )

        assert store.get_task("epic").subtask_ids == ["s1", "s2"]
        assert store.edges_from("s1") == ["s2"]
        assert store.edges_from("epic") == ["s1"]

    def test_from_snapshot_keeps_malformed_relations(self):
        """Test raw loading does not run the guards."""
        store = InMemoryTaskStore.from_snapshot(
            {
                "tasks": [{"id": "a"}, {"id": "b"}],
                "dependencies": [["a", "b"], ["b", "a"], ["a", "ghost"]],
            },
        )

        assert len(store.dependency_edges()) == 3

    def test_from_snapshot_rejects_non_mapping(self):
        with pytest.raises(ValueError, match="mapping"):
            InMemoryTaskStore.from_snapshot(["a", "b"])

    def test_numeric_ids_are_normalized(self):
        """Test ids, parent ids and edge endpoints all load as strings."""
        store = InMemoryTaskStore.from_snapshot(
            {
                "tasks": [{"id": 1}, {"id": 2, "parent_id": 1}, {"id": 0, "parent_id": 2}],
                "dependencies": [[2, 1]],
            },
        )

        assert store.get_task("2").parent_id == "1"
        assert store.get_children("1") == ["2"]
        assert store.get_children("2") == ["0"]
        assert store.parent_links() == {"2": "1", "0": "2"}
        assert store.edges_from("2") == ["1"]

    @pytest.mark.parametrize("entry", ["foo", 3, ["a", "b"], None])
    def test_from_snapshot_rejects_non_mapping_task(self, entry):
        with pytest.raises(ValueError, match="Invalid task entry"):
            InMemoryTaskStore.from_snapshot({"tasks": [{"id": "a"}, entry]})

    @pytest.mark.parametrize(
        "entry",
        [["a"], ["a", "b", "c"], "a->b", {"dependent": "a"}],
    )
    def test_from_snapshot_rejects_bad_dependency(self, entry):
        with pytest.raises(ValueError):
            InMemoryTaskStore.from_snapshot({"tasks": [{"id": "a"}], "dependencies": [entry]})

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "tasks.yaml"
        path.write_text(
            yaml.dump(
                {
                    "tasks": [{"id": "a", "title": "A"}, {"id": "b", "title": "B"}],
                    "dependencies": [{"dependent": "b", "dependency": "a"}],
                },
            ),
        )

        store = InMemoryTaskStore.from_yaml(path)

        assert store.get_task("a").title == "A"
        assert store.has_dependency_edge("b", "a")

    def test_from_yaml_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            InMemoryTaskStore.from_yaml(tmp_path / "missing.yaml")

    def test_from_yaml_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")

        with pytest.raises(ValueError, match="empty"):
            InMemoryTaskStore.from_yaml(path)

    def test_from_yaml_invalid(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("tasks: [")

        with pytest.raises(ValueError, match="Invalid YAML"):
            InMemoryTaskStore.from_yaml(path)

    def test_to_snapshot_round_trip(self, store):
        """Test a dumped snapshot loads back into an equivalent store."""
        store.add_dependency_edge("a", "b")
        store.set_parent("c", "a")

        restored = InMemoryTaskStore.from_snapshot(store.to_snapshot())

        assert restored.dependency_edges() == [DependencyEdge("a", "b")]
        assert restored.parent_links() == {"c": "a"}
