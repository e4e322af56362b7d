"""Tests for flow definition serialization."""

import json

import pytest

from blockgraph.adapters.serializer import GraphSerializer
from blockgraph.editor.factory import NodeInstanceFactory
from blockgraph.editor.graph_model import GraphModel
from blockgraph.errors import Invariant, MalformedDefinition
from blockgraph.models.block_type import DEFAULT_INPUT, DEFAULT_OUTPUT, FAILED_OUTPUT, SUCCESS_OUTPUT
from blockgraph.registry import build_default_registry
from blockgraph.utils.identifiers import CounterIdGenerator


def _node(node_id, type_id, x=0, y=0, **data):
    registry = build_default_registry()
    payload = registry.lookup(type_id).default_payload
    payload.update(data)
    return {"id": node_id, "type": type_id, "position": {"x": x, "y": y}, "data": payload}


def _edge(edge_id, source, source_handle, target, target_handle=DEFAULT_INPUT):
    return {
        "id": edge_id,
        "source": source,
        "sourceHandle": source_handle,
        "target": target,
        "targetHandle": target_handle,
    }


class TestSerialize:
    def setup_method(self):
        self.registry = build_default_registry()
        self.factory = NodeInstanceFactory(
            self.registry, CounterIdGenerator(prefix="n"), CounterIdGenerator(prefix="e")
        )
        self.serializer = GraphSerializer(self.registry)
        self.model = GraphModel.with_start_node(self.registry, self.factory)
        self.model.add_node(self.factory.create_instance("os_package", (300, 100)))
        self.model.add_node(self.factory.create_instance("test_jest", (500, 100)))
        self.model.add_edge(self.factory.create_edge("n1", DEFAULT_OUTPUT, "n2", DEFAULT_INPUT))
        self.model.add_edge(self.factory.create_edge("n2", SUCCESS_OUTPUT, "n3", DEFAULT_INPUT))

    def test_persisted_shape(self):
        """Nodes are {id, type, position, data}; edges use camelCase handle keys."""
        definition = self.serializer.serialize(self.model.snapshot())
        assert [n["id"] for n in definition["nodes"]] == ["n1", "n2", "n3"]
        node = definition["nodes"][1]
        assert set(node) == {"id", "type", "position", "data"}
        assert node["type"] == "os_package"
        assert node["position"] == {"x": 300.0, "y": 100.0}
        assert node["data"]["blockType"] == "os_package"

        edge = definition["edges"][1]
        assert edge == {
            "id": "e2",
            "source": "n2",
            "sourceHandle": SUCCESS_OUTPUT,
            "target": "n3",
            "targetHandle": DEFAULT_INPUT,
            "data": {"styleTag": "success"},
        }

    def test_definition_is_json_compatible(self):
        text = self.serializer.to_json(self.model.snapshot())
        assert json.loads(text) == self.serializer.serialize(self.model.snapshot())

    def test_round_trip(self):
        """deserialize(serialize(g)) == g."""
        graph = self.model.snapshot()
        assert self.serializer.deserialize(self.serializer.serialize(graph)) == graph
        assert self.serializer.from_json(self.serializer.to_json(graph)) == graph

    def test_round_trip_restores_protection(self):
        graph = self.serializer.deserialize(self.serializer.serialize(self.model.snapshot()))
        assert graph.nodes["n1"].deletable is False
        assert graph.nodes["n1"].selectable is False
        assert graph.nodes["n2"].deletable is True

    def test_missing_style_tag_is_derived(self):
        definition = {
            "nodes": [_node("s", "start"), _node("a", "os_package"), _node("b", "os_package")],
            "edges": [_edge("e1", "a", FAILED_OUTPUT, "b")],
        }
        graph = self.serializer.deserialize(definition)
        assert graph.edges["e1"].style_tag.value == "failed"


class TestDeserializeRejects:
    """Each broken invariant is reported by name, never repaired."""

    def setup_method(self):
        self.serializer = GraphSerializer(build_default_registry())

    def _invariant(self, definition) -> Invariant:
        with pytest.raises(MalformedDefinition) as exc_info:
            self.serializer.deserialize(definition)
        return exc_info.value.invariant

    def test_schema(self):
        assert self._invariant({"nodes": [{"id": "a"}], "edges": []}) == Invariant.schema

    def test_invalid_json(self):
        with pytest.raises(MalformedDefinition) as exc_info:
            self.serializer.from_json("{not json")
        assert exc_info.value.invariant == Invariant.schema

    def test_json_must_be_object(self):
        with pytest.raises(MalformedDefinition):
            self.serializer.from_json("[]")

    def test_no_start_node(self):
        definition = {"nodes": [_node("a", "os_package")], "edges": []}
        assert self._invariant(definition) == Invariant.single_start_node

    def test_two_start_nodes(self):
        definition = {"nodes": [_node("s1", "start"), _node("s2", "start")], "edges": []}
        assert self._invariant(definition) == Invariant.single_start_node

    def test_duplicate_node_ids(self):
        definition = {"nodes": [_node("s", "start"), _node("a", "os_package"), _node("a", "test_jest")], "edges": []}
        assert self._invariant(definition) == Invariant.unique_ids

    def test_node_and_edge_may_share_an_id(self):
        definition = {
            "nodes": [_node("s", "start"), _node("a", "os_package")],
            "edges": [_edge("a", "s", DEFAULT_OUTPUT, "a")],
        }
        assert self.serializer.deserialize(definition).edge_count == 1

    def test_dangling_edge(self):
        definition = {"nodes": [_node("s", "start")], "edges": [_edge("e1", "s", DEFAULT_OUTPUT, "ghost")]}
        assert self._invariant(definition) == Invariant.edge_endpoints

    def test_fanout_exceeded(self):
        definition = {
            "nodes": [_node("s", "start"), _node("a", "os_package"), _node("b", "os_package"), _node("c", "os_package")],
            "edges": [
                _edge("e1", "a", SUCCESS_OUTPUT, "b"),
                _edge("e2", "a", SUCCESS_OUTPUT, "c"),
            ],
        }
        assert self._invariant(definition) == Invariant.fanout_limit

    def test_unknown_type(self):
        definition = {
            "nodes": [_node("s", "start"), {"id": "x", "type": "deploy_k8s", "position": {"x": 0, "y": 0}, "data": {}}],
            "edges": [],
        }
        assert self._invariant(definition) == Invariant.registered_type

    def test_undeclared_handle(self):
        definition = {
            "nodes": [_node("s", "start"), _node("a", "os_package")],
            "edges": [_edge("e1", "s", SUCCESS_OUTPUT, "a")],
        }
        assert self._invariant(definition) == Invariant.declared_handles

    def test_edge_into_start(self):
        """An edge into the start block breaks the start-node rule, not the handle rule."""
        definition = {
            "nodes": [_node("s", "start"), _node("a", "os_package")],
            "edges": [_edge("e1", "a", SUCCESS_OUTPUT, "s")],
        }
        assert self._invariant(definition) == Invariant.single_start_node

    def test_self_loop(self):
        definition = {
            "nodes": [_node("s", "start"), _node("a", "os_package")],
            "edges": [_edge("e1", "a", SUCCESS_OUTPUT, "a")],
        }
        assert self._invariant(definition) == Invariant.no_self_loops

    def test_bad_payload(self):
        definition = {"nodes": [_node("s", "start"), _node("a", "os_package", packageManager="chocolatey")], "edges": []}
        assert self._invariant(definition) == Invariant.payload_shape

    def test_unknown_style_tag(self):
        edge = _edge("e1", "s", DEFAULT_OUTPUT, "a")
        edge["data"] = {"styleTag": "sparkly"}
        definition = {"nodes": [_node("s", "start"), _node("a", "os_package")], "edges": [edge]}
        assert self._invariant(definition) == Invariant.schema

    def test_all_violations_reported(self):
        definition = {
            "nodes": [_node("a", "os_package", packageManager="chocolatey")],
            "edges": [_edge("e1", "a", SUCCESS_OUTPUT, "a")],
        }
        with pytest.raises(MalformedDefinition) as exc_info:
            self.serializer.deserialize(definition)
        assert len(exc_info.value.violations) == 3
