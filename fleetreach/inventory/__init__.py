"""
Inventory group trees and their resolution against PuppetDB.

Groups either list their nodes or carry a query; expansion turns every query
into the node list it matches.
"""

from .expand import TreeExpander, expand, expand_document
from .models import (
    GroupNode,
    Literal,
    Resolved,
    Unresolved,
    dump_group,
    parse_group,
)

__all__ = [
    "GroupNode",
    "Literal",
    "Resolved",
    "TreeExpander",
    "Unresolved",
    "dump_group",
    "expand",
    "expand_document",
    "parse_group",
]
