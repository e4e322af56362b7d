"""Tests for GraphModel mutations, atomicity and invariants."""

import random

import pytest

from blockgraph.adapters.pipeline_export import build_pipeline_blocks
from blockgraph.editor.factory import NodeInstanceFactory
from blockgraph.editor.graph_model import GraphModel
from blockgraph.editor.invariants import check_invariants
from blockgraph.errors import (
    ConstraintViolation,
    DuplicateEdgeId,
    DuplicateNodeId,
    EdgeNotFound,
    GraphError,
    Invariant,
    MalformedDefinition,
    NodeNotFound,
    ProtectedNodeDeletion,
    SelfLoopRejected,
    UnknownNodeType,
)
from blockgraph.models.actions import AddEdge, MoveNode, RemoveNode, UpdateNodePayload
from blockgraph.models.block_type import DEFAULT_INPUT, DEFAULT_OUTPUT, FAILED_OUTPUT, SUCCESS_OUTPUT
from blockgraph.models.graph import Graph, NodeInstance, Position
from blockgraph.registry import build_default_registry
from blockgraph.utils.identifiers import CounterIdGenerator


def _make_model():
    registry = build_default_registry()
    factory = NodeInstanceFactory(registry, CounterIdGenerator(prefix="n"), CounterIdGenerator(prefix="e"))
    model = GraphModel(registry)
    model.add_node(factory.create_instance("start", (100, 100), id="s1"))
    return model, factory


class TestEditingScenarios:
    """End-to-end editing flows on a fresh pipeline."""

    def setup_method(self):
        self.model, self.factory = _make_model()

    def test_connect_start_to_step(self):
        """Start node s1 plus an os_package n1; s1 -> n1 is accepted."""
        n1 = self.factory.create_instance("os_package", (100, 100))
        assert n1.id == "n1"
        self.model.add_node(n1)
        edge = self.model.add_edge(self.factory.create_edge("s1", DEFAULT_OUTPUT, "n1", DEFAULT_INPUT))
        assert self.model.edge_count == 1
        assert self.model.get_edge(edge.id) == edge
        assert self.model.get_edges_to("n1") == [edge]

    def test_second_success_edge_rejected(self):
        """A second edge from a fanout-limited success-output is refused, graph unchanged."""
        for node_id in ("a", "b", "c"):
            self.model.add_node(self.factory.create_instance("os_package", (0, 0), id=node_id))
        self.model.add_edge(self.factory.create_edge("a", SUCCESS_OUTPUT, "b", DEFAULT_INPUT, id="e-ab"))
        before = self.model.snapshot()

        with pytest.raises(ConstraintViolation):
            self.model.add_edge(self.factory.create_edge("a", SUCCESS_OUTPUT, "c", DEFAULT_INPUT, id="e-ac"))
        assert self.model.snapshot() == before
        assert self.model.get_edge("e-ac") is None

    def test_remove_node_cascades_edges(self):
        """Removing a node with one incoming and one outgoing edge removes both."""
        for node_id in ("a", "b"):
            self.model.add_node(self.factory.create_instance("os_package", (0, 0), id=node_id))
        self.model.add_edge(self.factory.create_edge("s1", DEFAULT_OUTPUT, "a", DEFAULT_INPUT, id="e1"))
        self.model.add_edge(self.factory.create_edge("a", SUCCESS_OUTPUT, "b", DEFAULT_INPUT, id="e2"))

        removed = self.model.remove_node("a")
        assert sorted(edge.id for edge in removed) == ["e1", "e2"]
        assert self.model.get_node("a") is None
        assert self.model.edge_count == 0
        assert self.model.node_count == 2

    def test_self_loop_rejected(self):
        self.model.add_node(self.factory.create_instance("os_package", (0, 0), id="a"))
        with pytest.raises(SelfLoopRejected):
            self.model.add_edge(self.factory.create_edge("a", SUCCESS_OUTPUT, "a", DEFAULT_INPUT))
        assert self.model.edge_count == 0


class TestNodeMutations:
    def setup_method(self):
        self.model, self.factory = _make_model()

    def test_duplicate_node_id(self):
        self.model.add_node(self.factory.create_instance("os_package", (0, 0), id="a"))
        with pytest.raises(DuplicateNodeId):
            self.model.add_node(self.factory.create_instance("test_jest", (0, 0), id="a"))
        assert self.model.get_node("a").type_id == "os_package"

    def test_unknown_type(self):
        node = NodeInstance(id="x", type_id="deploy_k8s", position=Position(x=0, y=0))
        with pytest.raises(UnknownNodeType):
            self.model.add_node(node)

    def test_second_start_node(self):
        with pytest.raises(ConstraintViolation):
            self.model.add_node(self.factory.create_instance("start", (0, 0), id="s2"))
        assert self.model.start_node.id == "s1"

    def test_deletable_flag_must_match_type(self):
        node = self.factory.create_instance("os_package", (0, 0), id="a")
        node.deletable = False
        with pytest.raises(ConstraintViolation):
            self.model.add_node(node)

    def test_invalid_payload(self):
        node = self.factory.create_instance("os_package", (0, 0), id="a")
        node.payload["packageManager"] = "chocolatey"
        with pytest.raises(ConstraintViolation) as exc_info:
            self.model.add_node(node)
        assert exc_info.value.context["errors"]

    def test_remove_missing_node(self):
        with pytest.raises(NodeNotFound):
            self.model.remove_node("ghost")

    def test_start_node_is_protected(self):
        with pytest.raises(ProtectedNodeDeletion):
            self.model.remove_node("s1")
        assert self.model.start_node is not None

    def test_move_node(self):
        self.model.move_node("s1", (250, 40))
        assert self.model.get_node("s1").position == Position(x=250, y=40)

    def test_move_missing_node(self):
        with pytest.raises(NodeNotFound):
            self.model.move_node("ghost", (0, 0))

    def test_update_payload_merges(self):
        self.model.add_node(self.factory.create_instance("os_package", (0, 0), id="a"))
        node = self.model.update_node_payload("a", {"installPackages": ["curl", "git"]})
        assert node.payload["installPackages"] == ["curl", "git"]
        assert node.payload["packageManager"] == "apt"

    def test_update_payload_rejects_invalid(self):
        """A failing patch leaves the payload untouched."""
        self.model.add_node(self.factory.create_instance("os_package", (0, 0), id="a"))
        before = dict(self.model.get_node("a").payload)
        with pytest.raises(ConstraintViolation):
            self.model.update_node_payload("a", {"unknownKey": 1})
        with pytest.raises(ConstraintViolation):
            self.model.update_node_payload("a", {"blockType": "test_jest"})
        assert self.model.get_node("a").payload == before

    def test_update_payload_stores_coerced_values(self):
        """Loosely typed input is stored the way the schema reads it."""
        self.model.add_node(self.factory.create_instance("os_package", (0, 0), id="a"))
        node = self.model.update_node_payload("a", {"timeout": "5", "updatePackageList": "yes"})
        assert node.payload["timeout"] == 5
        assert node.payload["updatePackageList"] is True

        block = build_pipeline_blocks(self.model.snapshot(), self.model.registry)[0]
        assert block["timeout"] == 5
        assert block["updatePackageList"] is True

    def test_add_node_stores_coerced_values(self):
        node = self.factory.create_instance("os_package", (0, 0), id="a")
        node.payload["retryCount"] = "2"
        self.model.add_node(node)
        assert self.model.get_node("a").payload["retryCount"] == 2

    def test_reads_return_copies(self):
        """Editing a node handed out by a read does not reach the stored graph."""
        start = self.model.get_node("s1")
        start.deletable = True
        start.position = Position(x=0, y=0)
        with pytest.raises(ProtectedNodeDeletion):
            self.model.remove_node("s1")
        assert self.model.get_node("s1").position == Position(x=100, y=100)

        self.model.start_node.payload["label"] = "renamed"
        for node in self.model.nodes():
            node.deletable = True
        assert self.model.get_node("s1").payload["label"] != "renamed"
        assert self.model.get_node("s1").deletable is False

    def test_add_node_keeps_its_own_copy(self):
        """The caller's instance stays detached after insertion."""
        node = self.factory.create_instance("os_package", (0, 0), id="a")
        self.model.add_node(node)
        node.type_id = "start"
        node.payload["packageManager"] = "chocolatey"
        stored = self.model.get_node("a")
        assert stored.type_id == "os_package"
        assert stored.payload["packageManager"] == "apt"

    def test_mutations_return_copies(self):
        self.model.add_node(self.factory.create_instance("os_package", (0, 0), id="a"))
        moved = self.model.move_node("a", (5, 5))
        moved.position = Position(x=9, y=9)
        updated = self.model.update_node_payload("a", {"installPackages": ["git"]})
        updated.payload["installPackages"].append("curl")
        stored = self.model.get_node("a")
        assert stored.position == Position(x=5, y=5)
        assert stored.payload["installPackages"] == ["git"]


class TestEdgeMutations:
    def setup_method(self):
        self.model, self.factory = _make_model()
        for node_id in ("a", "b"):
            self.model.add_node(self.factory.create_instance("os_package", (0, 0), id=node_id))

    def test_missing_endpoint(self):
        with pytest.raises(NodeNotFound):
            self.model.add_edge(self.factory.create_edge("a", SUCCESS_OUTPUT, "ghost", DEFAULT_INPUT))

    def test_duplicate_edge_id(self):
        self.model.add_edge(self.factory.create_edge("a", SUCCESS_OUTPUT, "b", DEFAULT_INPUT, id="e"))
        with pytest.raises(DuplicateEdgeId):
            self.model.add_edge(self.factory.create_edge("s1", DEFAULT_OUTPUT, "a", DEFAULT_INPUT, id="e"))

    def test_remove_edge(self):
        edge = self.model.add_edge(self.factory.create_edge("a", SUCCESS_OUTPUT, "b", DEFAULT_INPUT))
        assert self.model.remove_edge(edge.id) == edge
        assert self.model.edge_count == 0
        # the handle is free again
        self.model.add_edge(self.factory.create_edge("a", SUCCESS_OUTPUT, "b", DEFAULT_INPUT))

    def test_remove_missing_edge(self):
        with pytest.raises(EdgeNotFound):
            self.model.remove_edge("ghost")

    def test_edges_from_by_handle(self):
        ok = self.model.add_edge(self.factory.create_edge("a", SUCCESS_OUTPUT, "b", DEFAULT_INPUT))
        failed = self.model.add_edge(self.factory.create_edge("a", FAILED_OUTPUT, "b", DEFAULT_INPUT))
        assert self.model.get_edges_from("a") == [ok, failed]
        assert self.model.get_edges_from("a", FAILED_OUTPUT) == [failed]

    def test_add_edge_keeps_its_own_copy(self):
        edge = self.factory.create_edge("a", SUCCESS_OUTPUT, "b", DEFAULT_INPUT, id="e")
        self.model.add_edge(edge)
        edge.source_handle_id = "bogus"
        self.model.get_edge("e").target_node_id = "ghost"
        stored = self.model.get_edge("e")
        assert stored.source_handle_id == SUCCESS_OUTPUT
        assert stored.target_node_id == "b"


class TestModelState:
    def test_snapshot_is_independent(self):
        model, factory = _make_model()
        snapshot = model.snapshot()
        model.add_node(factory.create_instance("os_package", (0, 0)))
        model.move_node("s1", (0, 0))
        assert snapshot.node_count == 1
        assert snapshot.nodes["s1"].position == Position(x=100, y=100)

    def test_with_start_node(self):
        registry = build_default_registry()
        factory = NodeInstanceFactory(registry, CounterIdGenerator(prefix="n"))
        model = GraphModel.with_start_node(registry, factory)
        assert model.start_node.id == "n1"
        assert model.start_node.position == Position(x=100, y=100)
        assert model.start_node.deletable is False

    def test_rejects_malformed_graph(self):
        registry = build_default_registry()
        factory = NodeInstanceFactory(registry)
        graph = Graph()
        for node_id in ("s1", "s2"):
            graph.nodes[node_id] = factory.create_instance("start", (0, 0), id=node_id)
        with pytest.raises(MalformedDefinition) as exc_info:
            GraphModel(registry, graph)
        assert exc_info.value.invariant == Invariant.single_start_node

    def test_apply_dispatches_actions(self):
        model, factory = _make_model()
        node = factory.create_instance("os_package", (0, 0), id="a")
        model.add_node(node)
        model.apply(AddEdge(edge=factory.create_edge("s1", DEFAULT_OUTPUT, "a", DEFAULT_INPUT, id="e1")))
        model.apply(MoveNode(node_id="a", position=Position(x=5, y=6)))
        model.apply(UpdateNodePayload(node_id="a", changes={"updatePackageList": False}))
        assert model.get_node("a").payload["updatePackageList"] is False
        removed = model.apply(RemoveNode(node_id="a"))
        assert [edge.id for edge in removed] == ["e1"]


class TestRandomEditSequences:
    """Invariants hold after arbitrary sequences of accepted and rejected edits."""

    TYPES = ["os_package", "test_jest", "notification_slack", "condition_branch", "parallel_execution"]
    HANDLES = [DEFAULT_OUTPUT, SUCCESS_OUTPUT, FAILED_OUTPUT, "branch-output", "join-output"]

    @pytest.mark.parametrize("seed", range(20))
    def test_invariants_hold(self, seed):
        rng = random.Random(seed)
        model, factory = _make_model()

        for _ in range(150):
            node_ids = [node.id for node in model.nodes()]
            op = rng.random()
            before = model.snapshot()
            try:
                if op < 0.3 or len(node_ids) < 3:
                    model.add_node(factory.create_instance(rng.choice(self.TYPES), (0, 0)))
                elif op < 0.8:
                    model.add_edge(
                        factory.create_edge(
                            rng.choice(node_ids),
                            rng.choice(self.HANDLES),
                            rng.choice(node_ids),
                            DEFAULT_INPUT,
                        )
                    )
                elif op < 0.9:
                    model.remove_node(rng.choice(node_ids))
                else:
                    edges = model.edges()
                    model.remove_edge(rng.choice(edges).id if edges else "none")
            except GraphError:
                # rejected operations leave no trace
                assert model.snapshot() == before

            assert check_invariants(model.snapshot(), model.registry) == []
            assert model.start_node is not None
