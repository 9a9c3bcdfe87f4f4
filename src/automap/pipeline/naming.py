"""
Pipeline step: field tree -> fully-qualified column names

Each leaf's column name is the underscore-joined chain of its ancestors'
fixed names followed by its own fixed name. The root contributes nothing.

Runs BEFORE retention and typing.
"""

from typing import List, Tuple

from automap.canonical.event_type import EventType
from automap.canonical.field import FieldNode
from automap.utils.naming import fix_naming


def child_prefix(parent_prefix: str, parent_name: str) -> str:
    prefix = parent_prefix + fix_naming(parent_name)
    if prefix:
        prefix += "_"
    return prefix


def resolve_names(event_type: EventType) -> List[Tuple[FieldNode, str]]:
    """
    Assign the scratch `father` prefix on every node and return
    (leaf, resolved column name) pairs in depth-first document order.
    """
    event_type.father = ""
    leaves: List[Tuple[FieldNode, str]] = []

    # (node, prefix inherited from its ancestors)
    stack = [
        (node, child_prefix("", event_type.field_name))
        for node in reversed(event_type.fields)
    ]
    while stack:
        node, prefix = stack.pop()
        node.father = prefix

        if node.is_leaf:
            leaves.append((node, prefix + fix_naming(node.field_name)))
            continue

        inherited = child_prefix(prefix, node.field_name)
        stack.extend((child, inherited) for child in reversed(node.children))

    return leaves

