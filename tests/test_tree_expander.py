"""
Tests for resolving inventory queries into node lists.
"""

import pytest

from fleetreach.errors import DataShapeError, TransportError
from fleetreach.inventory import (
    GroupNode,
    Literal,
    Resolved,
    TreeExpander,
    Unresolved,
    expand,
    expand_document,
    parse_group,
)

from fakes import FakeQueryService


def three_level_tree():
    return parse_group({
        "name": "top",
        "query": "q-top",
        "groups": [
            {
                "name": "middle",
                "query": "q-middle",
                "groups": [{"name": "bottom", "query": "q-bottom"}],
            },
            {"name": "sibling", "query": "q-sibling"},
        ],
    })


@pytest.mark.asyncio
async def test_every_level_is_resolved():
    service = FakeQueryService({
        "q-top": ["t1"],
        "q-middle": ["m1", "m2"],
        "q-bottom": ["b1"],
        "q-sibling": [],
    })

    result = await expand(three_level_tree(), service)

    sources = {g.name: g.source for g in result.walk()}
    assert sources["top"] == Resolved(query="q-top", nodes=("t1",))
    assert sources["middle"] == Resolved(query="q-middle", nodes=("m1", "m2"))
    assert sources["bottom"] == Resolved(query="q-bottom", nodes=("b1",))
    assert sources["sibling"] == Resolved(query="q-sibling", nodes=())
    assert result.resolved is True


@pytest.mark.asyncio
async def test_queries_run_in_pre_order():
    service = FakeQueryService()

    await expand(three_level_tree(), service)

    assert service.calls == ["q-top", "q-middle", "q-bottom", "q-sibling"]


@pytest.mark.asyncio
async def test_input_tree_is_not_modified():
    tree = three_level_tree()

    await expand(tree, FakeQueryService())

    assert all(isinstance(g.source, Unresolved) for g in tree.walk())


@pytest.mark.asyncio
async def test_literal_groups_pass_through():
    tree = parse_group({"nodes": ["a", "b"], "groups": [{"name": "empty"}]})
    service = FakeQueryService()

    result = await expand(tree, service)

    assert result == tree
    assert result.source == Literal(nodes=("a", "b"))
    assert service.calls == []


@pytest.mark.asyncio
async def test_expanding_a_resolved_tree_makes_no_queries():
    service = FakeQueryService({"q-top": ["t1"], "q-middle": ["m1"], "q-bottom": ["b1"]})
    expander = TreeExpander(service)
    once = await expander.expand(three_level_tree())
    calls_after_first = list(service.calls)

    twice = await expander.expand(once)

    assert twice == once
    assert service.calls == calls_after_first
    assert expander.queries_run == 4


@pytest.mark.asyncio
async def test_failure_stops_before_later_siblings():
    tree = parse_group({
        "groups": [
            {"name": "first", "query": "q1"},
            {"name": "broken", "query": "q2", "groups": [{"name": "child", "query": "q3"}]},
            {"name": "last", "query": "q4"},
        ]
    })
    service = FakeQueryService(
        {"q1": ["a"]},
        failures={"q2": DataShapeError("Query results did not contain a 'certname' field: got name")},
    )

    with pytest.raises(DataShapeError):
        await expand(tree, service)

    assert service.calls == ["q1", "q2"]


@pytest.mark.asyncio
async def test_transport_error_propagates():
    tree = parse_group({"query": "q"})
    service = FakeQueryService(failures={"q": TransportError("Failed to query PuppetDB: boom", status=500, body="boom")})

    with pytest.raises(TransportError) as excinfo:
        await expand(tree, service)

    assert excinfo.value.body == "boom"


@pytest.mark.asyncio
async def test_expand_document():
    document = {
        "config": {"transport": "ssh"},
        "groups": [
            {"name": "web", "query": "inventory[certname] { facts.role = 'web' }"},
            {"name": "static", "nodes": ["lb1"]},
        ],
    }
    service = FakeQueryService({"inventory[certname] { facts.role = 'web' }": ["web1", "web2"]})

    resolved = await expand_document(document, service)

    assert resolved == {
        "config": {"transport": "ssh"},
        "groups": [
            {
                "name": "web",
                "nodes": ["web1", "web2"],
                "query": "inventory[certname] { facts.role = 'web' }",
            },
            {"name": "static", "nodes": ["lb1"]},
        ],
    }
    assert document["groups"][0] == {"name": "web", "query": "inventory[certname] { facts.role = 'web' }"}


@pytest.mark.asyncio
async def test_group_built_in_code():
    tree = GroupNode(
        source=Literal(),
        children=(GroupNode(source=Unresolved(query=["from", "nodes"]), extra={"name": "ast"}),),
    )

    class ListQueryService(FakeQueryService):
        async def query_certnames(self, query):
            self.calls.append(query)
            return ["n1"]

    service = ListQueryService()
    result = await expand(tree, service)

    assert result.children[0].source == Resolved(query=["from", "nodes"], nodes=("n1",))
    assert service.calls == [["from", "nodes"]]


@pytest.mark.asyncio
async def test_deeply_nested_queries():
    depth = 3000
    document = {"name": "level-0", "query": "q-0"}
    current = document
    for level in range(1, depth):
        child = {"name": f"level-{level}", "query": f"q-{level}"}
        current["groups"] = [child]
        current = child
    service = FakeQueryService({f"q-{level}": [f"n{level}"] for level in range(depth)})

    result = await expand_document(document, service)

    assert len(service.calls) == depth
    assert service.calls[:3] == ["q-0", "q-1", "q-2"]
    assert result["nodes"] == ["n0"]
    while "groups" in result:
        result = result["groups"][0]
    assert result == {"name": f"level-{depth - 1}", "nodes": [f"n{depth - 1}"], "query": f"q-{depth - 1}"}
