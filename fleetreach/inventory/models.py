"""
Inventory group tree.

A group's node source is a closed set of states:

- ``Literal``: explicit nodes from the document (already resolved).
- ``Unresolved``: a query that still has to be run against PuppetDB.
- ``Resolved``: a query together with the nodes it produced.

Groups are frozen; expansion builds a new tree instead of editing one in
place. ``parse_group`` turns a raw inventory mapping into a tree and
``dump_group`` turns a tree back into a mapping.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Mapping, Optional, Set, Tuple, Union

from fleetreach.errors import ConfigurationError

NODES_KEY = "nodes"
QUERY_KEY = "query"
GROUPS_KEY = "groups"


@dataclass(frozen=True)
class Literal:
    """Explicit nodes. ``nodes`` is None when the group declares no nodes at all."""
    nodes: Optional[Tuple[Any, ...]] = None


@dataclass(frozen=True)
class Unresolved:
    query: Any


@dataclass(frozen=True)
class Resolved:
    query: Any
    nodes: Tuple[str, ...] = ()


NodeSource = Union[Literal, Unresolved, Resolved]


@dataclass(frozen=True)
class GroupNode:
    """One group of the inventory tree and its child groups."""

    source: NodeSource = field(default_factory=Literal)
    children: Tuple["GroupNode", ...] = ()
    extra: Mapping[str, Any] = field(default_factory=dict)

    @property
    def name(self) -> Optional[str]:
        return self.extra.get("name")

    @property
    def resolved(self) -> bool:
        """True when neither this group nor any descendant holds a pending query."""
        return all(not isinstance(group.source, Unresolved) for group in self.walk())

    def walk(self) -> Iterator["GroupNode"]:
        """Yield this group and its descendants in pre-order."""
        stack = [self]
        while stack:
            group = stack.pop()
            yield group
            stack.extend(reversed(group.children))

    def with_source(self, source: NodeSource) -> "GroupNode":
        return GroupNode(source=source, children=self.children, extra=self.extra)


@dataclass
class GroupFrame:
    """
    A group whose children are not built yet.

    Trees are walked with an explicit stack so nesting depth is not limited
    by the interpreter's recursion limit. Frames are collected in pre-order
    and ``assemble`` builds the frozen tree from the leaves up.
    """
    source: NodeSource
    extra: Mapping[str, Any]
    children: List[int] = field(default_factory=list)


def assemble(frames: List[GroupFrame]) -> GroupNode:
    """Build the tree described by pre-order ``frames``; ``frames[0]`` is the root."""
    built: List[Optional[GroupNode]] = [None] * len(frames)
    for index in range(len(frames) - 1, -1, -1):
        frame = frames[index]
        built[index] = GroupNode(
            source=frame.source,
            children=tuple(built[child] for child in frame.children),
            extra=frame.extra,
        )
    return built[0]


def _describe(path: List[str]) -> str:
    return "/".join(path) or "<root>"


def parse_group(data: Mapping[str, Any]) -> GroupNode:
    """
    Build a group tree from an inventory mapping.

    Raises:
        ConfigurationError: If a group is not a mapping, declares both nodes
            and a query, has a malformed ``groups`` entry, or contains itself.
    """
    frames: List[GroupFrame] = []
    open_ids: Set[int] = set()
    # (leaving, data, path, parent frame index)
    stack: List[Tuple[bool, Any, List[str], Optional[int]]] = [(False, data, [], None)]
    while stack:
        leaving, item, path, parent = stack.pop()
        if leaving:
            open_ids.discard(id(item))
            continue

        frame, children_data = _read_group(item, path, open_ids)
        index = len(frames)
        frames.append(frame)
        if parent is not None:
            frames[parent].children.append(index)

        open_ids.add(id(item))
        stack.append((True, item, [], None))
        for position in range(len(children_data) - 1, -1, -1):
            child = children_data[position]
            label = child.get("name") if isinstance(child, Mapping) else None
            stack.append((False, child, path + [str(label or position)], index))
    return assemble(frames)


def _read_group(data: Any, path: List[str], open_ids: Set[int]) -> Tuple[GroupFrame, List[Any]]:
    where = _describe(path)
    if not isinstance(data, Mapping):
        raise ConfigurationError(f"Group {where} must be a mapping, got {type(data).__name__}")
    if id(data) in open_ids:
        raise ConfigurationError(f"Group {where} contains itself")

    has_nodes = data.get(NODES_KEY) is not None
    has_query = data.get(QUERY_KEY) is not None
    if has_nodes and has_query:
        raise ConfigurationError(f"Group {where} declares both '{NODES_KEY}' and '{QUERY_KEY}'")

    if has_query:
        source: NodeSource = Unresolved(query=data[QUERY_KEY])
    elif has_nodes:
        nodes = data[NODES_KEY]
        if not isinstance(nodes, list):
            raise ConfigurationError(f"'{NODES_KEY}' of group {where} must be a list")
        source = Literal(nodes=tuple(nodes))
    else:
        source = Literal()

    children_data = data.get(GROUPS_KEY)
    if children_data is None:
        children_data = []
    if not isinstance(children_data, list):
        raise ConfigurationError(f"'{GROUPS_KEY}' of group {where} must be a list")

    extra = {k: v for k, v in data.items() if k not in (NODES_KEY, QUERY_KEY, GROUPS_KEY)}
    return GroupFrame(source=source, extra=extra), children_data


def dump_group(group: GroupNode) -> Dict[str, Any]:
    """
    Serialize a group tree back into an inventory mapping.

    Other keys come first in their original order, then ``nodes``, ``query``
    and ``groups``. Resolved groups keep their query next to the nodes it
    produced.
    """
    root = _dump_one(group)
    stack = [(group, root)]
    while stack:
        node, data = stack.pop()
        if node.children:
            children = [_dump_one(child) for child in node.children]
            data[GROUPS_KEY] = children
            stack.extend(zip(node.children, children))
    return root


def _dump_one(group: GroupNode) -> Dict[str, Any]:
    data: Dict[str, Any] = dict(group.extra)
    source = group.source
    if isinstance(source, Literal):
        if source.nodes is not None:
            data[NODES_KEY] = list(source.nodes)
    elif isinstance(source, Resolved):
        data[NODES_KEY] = list(source.nodes)
        data[QUERY_KEY] = source.query
    else:
        data[QUERY_KEY] = source.query
    return data
