"""
Inventory tree expansion.

Replaces every pending query in a group tree with the nodes PuppetDB returns
for it. The walk is pre-order and sequential, one query in flight at a time.
The first failing query aborts the whole expansion: its exception propagates,
no partial tree is returned and later groups are never queried.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

from fleetreach.inventory.models import (
    GroupFrame,
    GroupNode,
    NodeSource,
    Resolved,
    Unresolved,
    assemble,
    dump_group,
    parse_group,
)
from fleetreach.puppetdb.client import QueryService

logger = logging.getLogger(__name__)


class TreeExpander:
    """Resolves group queries through an injected QueryService."""

    def __init__(self, service: QueryService):
        self.service = service
        self.queries_run = 0

    async def expand(self, root: GroupNode) -> GroupNode:
        """
        Return a copy of ``root`` with every Unresolved group resolved.

        Groups that are already Literal or Resolved are left alone, so
        expanding a fully resolved tree makes no queries.
        """
        frames: List[GroupFrame] = []
        stack: List[Tuple[GroupNode, str, Optional[int]]] = [(root, "<root>", None)]
        while stack:
            group, path, parent = stack.pop()
            index = len(frames)
            frames.append(GroupFrame(source=await self._resolve(group, path), extra=group.extra))
            if parent is not None:
                frames[parent].children.append(index)
            for position in range(len(group.children) - 1, -1, -1):
                child = group.children[position]
                stack.append((child, f"{path}/{child.name or position}", index))
        return assemble(frames)

    async def _resolve(self, group: GroupNode, path: str) -> NodeSource:
        if not isinstance(group.source, Unresolved):
            return group.source
        query = group.source.query
        logger.debug("Resolving group %s", path)
        nodes = await self.service.query_certnames(query)
        self.queries_run += 1
        logger.info("Group %s resolved to %d node(s)", path, len(nodes))
        return Resolved(query=query, nodes=tuple(nodes))


async def expand(root: GroupNode, service: QueryService) -> GroupNode:
    return await TreeExpander(service).expand(root)


async def expand_document(document: Mapping[str, Any], service: QueryService) -> Dict[str, Any]:
    """Parse an inventory document, resolve its queries and serialize it back."""
    tree = parse_group(document)
    return dump_group(await expand(tree, service))
