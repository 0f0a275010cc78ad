"""Utilities for rendering graph items in the CLI."""

from __future__ import annotations

from hyperlog.models import GraphItem, Item, ItemState, is_container


def _label(name: str, node: GraphItem) -> str:
    if isinstance(node, Item):
        mark = "x" if node.state is ItemState.DONE else " "
        return f"[{mark}] {node.title}"
    return name


def render_tree(name: str, node: GraphItem) -> str:
    """Render *node* (labelled *name*) and its children as an ASCII tree.

    Sections and users print their key, items print a checkbox and their
    title.  Children are listed in sorted order::

        alice
        ├── inbox
        │   └── [ ] buy milk
        └── [x] call bob
    """
    lines = [_label(name, node)]

    def _render_children(parent: GraphItem, prefix: str) -> None:
        if not is_container(parent):
            return
        children = sorted(parent.children.items())  # type: ignore[union-attr]
        count = len(children)
        for i, (child_name, child) in enumerate(children):
            is_last = i == count - 1
            connector = "└── " if is_last else "├── "
            lines.append(f"{prefix}{connector}{_label(child_name, child)}")
            _render_children(child, prefix + ("    " if is_last else "│   "))

    _render_children(node, "")
    return "\n".join(lines)
