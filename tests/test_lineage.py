"""
Test Suite for lineage chains and the lineage builder

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

import pytest

from conftest import make_metric, make_span
from observatory.enums import EdgeType, LineageEdgeType, NodeType, SpanStatus
from observatory.lineage.builder import LineageBuilder, node_from_span
from observatory.lineage.chain import LineageChain, LineageEdge


@pytest.mark.asyncio
async def test_parent_then_child_builds_chain():
    builder = LineageBuilder()
    await builder.process_span(make_span("s1", op="llm.generate", start=0, end=100))
    await builder.process_span(make_span("s2", parent="s1", op="tool.call", start=10, end=60))

    chain = await builder.get_chain("t1")
    assert chain is not None
    assert chain.node_ids() == {"s1", "s2"}
    assert chain.edge_keys() == {("s1", "s2", LineageEdgeType.parent_child)}
    assert chain.roots == ["s1"]
    assert chain.total_duration_ms() == 100
    assert [n.id for n in chain.get_children("s1")] == ["s2"]
    assert [n.id for n in chain.get_parents("s2")] == ["s1"]


@pytest.mark.asyncio
async def test_arrival_order_does_not_change_chain():
    forward = LineageBuilder()
    await forward.process_span(make_span("p"))
    await forward.process_span(make_span("c", parent="p"))

    backward = LineageBuilder()
    await backward.process_span(make_span("c", parent="p"))
    await backward.process_span(make_span("p"))

    a = await forward.get_chain("t1")
    b = await backward.get_chain("t1")
    assert a.node_ids() == b.node_ids()
    assert a.edge_keys() == b.edge_keys()
    assert a.roots == b.roots == ["p"]


@pytest.mark.asyncio
async def test_child_before_parent_leaves_dangling_edge_until_parent_arrives():
    builder = LineageBuilder()
    assert await builder.process_span(make_span("c", parent="p"))
    chain = await builder.get_chain("t1")
    assert [e.from_id for e in chain.dangling_edges()] == ["p"]
    assert chain.get_parents("c") == []

    await builder.process_span(make_span("p"))
    chain = await builder.get_chain("t1")
    assert chain.dangling_edges() == []
    assert [n.id for n in chain.get_parents("c")] == ["p"]


@pytest.mark.asyncio
async def test_root_and_edges_recorded_once_on_reingest():
    builder = LineageBuilder()
    for _ in range(2):
        await builder.process_span(make_span("s1"))
        await builder.process_span(make_span("s2", parent="s1"))

    chain = await builder.get_chain("t1")
    assert chain.roots == ["s1"]
    assert len(chain.nodes) == 2
    assert len(chain.edges) == 1


@pytest.mark.asyncio
async def test_reingest_replaces_node_but_keeps_graph_id():
    builder = LineageBuilder()
    await builder.process_span(make_span("s1", end=50), graph_node_id="g-1")
    await builder.process_span(make_span("s1", end=80))
    chain = await builder.get_chain("t1")
    node = chain.find_node("s1")
    assert node.duration_ms == 80
    assert node.mapped_graph_node_id == "g-1"


@pytest.mark.asyncio
async def test_traces_are_kept_apart_and_non_spans_ignored():
    builder = LineageBuilder()
    await builder.process_span(make_span("a", trace_id="t1"))
    await builder.process_span(make_span("b", trace_id="t2"))
    assert not await builder.process_span(make_metric("cpu", 1.0))

    assert await builder.chain_count() == 2
    assert {c.trace_id for c in await builder.get_all_chains()} == {"t1", "t2"}
    assert await builder.get_chain("missing") is None

    removed = await builder.remove_chain("t1")
    assert removed.trace_id == "t1"
    await builder.clear()
    assert await builder.chain_count() == 0


@pytest.mark.asyncio
async def test_get_chain_returns_a_snapshot():
    builder = LineageBuilder()
    await builder.process_span(make_span("s1"))
    snapshot = await builder.get_chain("t1")
    snapshot.nodes.clear()
    await builder.process_span(make_span("s2", parent="s1"))
    assert len(snapshot.nodes) == 0
    assert len((await builder.get_chain("t1")).nodes) == 2


@pytest.mark.asyncio
async def test_add_edge_and_attach_graph_ids():
    builder = LineageBuilder()
    await builder.process_span(make_span("s1"))
    await builder.process_span(make_span("s2"))
    assert await builder.add_edge("t1", LineageEdge("s1", "s2", LineageEdgeType.follows))
    assert not await builder.add_edge("t1", LineageEdge("s1", "s2", LineageEdgeType.follows))

    assert await builder.attach_graph_ids("t1", {"s1": "g1", "zz": "g9"}) == 1
    assert await builder.attach_graph_ids("missing", {"s1": "g1"}) == 0
    chain = await builder.get_chain("t1")
    assert chain.find_node("s1").mapped_graph_node_id == "g1"
    assert [n.id for n in chain.get_children("s1", LineageEdgeType.follows)] == ["s2"]
    assert chain.get_children("s1") == []


def test_walk_terminates_on_cycles():
    chain = LineageChain(trace_id="t1")
    for sid in ("a", "b", "c"):
        chain.add_node(node_from_span(make_span(sid)))
    chain.add_root("a")
    chain.add_edge(LineageEdge("a", "b"))
    chain.add_edge(LineageEdge("b", "c"))
    chain.add_edge(LineageEdge("c", "a"))
    assert [n.id for n in chain.walk()] == ["a", "b", "c"]
    assert [n.id for n in chain.walk("b")] == ["b", "c", "a"]


def test_indexes_survive_copy_and_construction():
    chain = LineageChain(trace_id="t1")
    chain.add_node(node_from_span(make_span("a")))
    chain.add_root("a")
    chain.add_edge(LineageEdge("a", "b"))

    clone = chain.copy()
    assert not clone.add_root("a")
    assert not clone.add_edge(LineageEdge("a", "b"))
    clone.add_node(node_from_span(make_span("a", end=300)))
    assert len(clone.nodes) == 1
    assert clone.find_node("a").duration_ms == 300
    assert chain.find_node("a").duration_ms == 100

    built = LineageChain(trace_id="t1", nodes=list(chain.nodes), edges=list(chain.edges), roots=["a"])
    assert not built.add_root("a")
    assert built.find_node("a") is chain.nodes[0]
    assert built.find_node("missing") is None


def test_large_chain_upserts_stay_consistent():
    chain = LineageChain(trace_id="t1")
    n = 20000
    for i in range(n):
        chain.add_node(node_from_span(make_span(f"s{i}")))
        if i:
            chain.add_edge(LineageEdge(f"s{i - 1}", f"s{i}"))
    for i in range(0, n, 1000):
        chain.add_node(node_from_span(make_span(f"s{i}", end=7)))
        assert not chain.add_edge(LineageEdge(f"s{i}", f"s{i + 1}"))
    assert len(chain.nodes) == n
    assert len(chain.edges) == n - 1
    assert chain.find_node("s5000").duration_ms == 7
    assert chain.find_node("s5001").duration_ms == 100


def test_chain_summaries():
    chain = LineageChain(trace_id="t1")
    assert chain.total_duration_ms() == 0
    ok = node_from_span(make_span("a"))
    ok.status = SpanStatus.ok
    chain.add_node(ok)
    chain.add_node(node_from_span(make_span("b")))
    assert chain.count_by_status() == {SpanStatus.ok: 1, SpanStatus.unset: 1}
    out = chain.to_dict()
    assert out["trace_id"] == "t1"
    assert [n["id"] for n in out["nodes"]] == ["a", "b"]


def test_node_from_negative_span_clamps_duration():
    node = node_from_span(make_span("s1", start=50, end=10))
    assert node.duration_ms == 0


@pytest.mark.parametrize("operation,expected", [
    ("llm.generate", NodeType.prompt),
    ("user.prompt", NodeType.prompt),
    ("llm.completion", NodeType.response),
    ("tool.search", NodeType.tool),
    ("function.call", NodeType.tool),
    ("db.query", NodeType.context),
])
def test_infer_node_type(operation, expected):
    assert LineageBuilder.infer_node_type(operation) is expected


def test_map_edge_type():
    assert LineageBuilder.map_edge_type(LineageEdgeType.parent_child) is EdgeType.parent_child
    assert LineageBuilder.map_edge_type(LineageEdgeType.follows) is EdgeType.follows
    assert LineageBuilder.map_edge_type(LineageEdgeType.caused_by) is EdgeType.references
    assert LineageBuilder.map_edge_type(LineageEdgeType.data_flow) is EdgeType.contains
