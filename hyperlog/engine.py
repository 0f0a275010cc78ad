"""Path-addressed operations over a single in-memory graph.

The engine is synchronous and not thread-safe; share it between callers
through :class:`hyperlog.shared_engine.SharedEngine`.
"""

from __future__ import annotations

import json
from typing import Optional, Sequence

from hyperlog.errors import (
    AlreadyExistsError,
    InvalidOperationError,
    NotFoundError,
    ParseError,
)
from hyperlog.models import (
    Graph,
    GraphItem,
    Item,
    User,
    dumps,
    format_path,
    graph_from_dict,
    graph_to_dict,
    is_container,
    validate_path,
    validate_segment,
)

Path = Sequence[str]


def sanitize_title(title: str) -> str:
    """Turn an item title into a path segment (``.`` and spaces become ``-``)."""
    return title.replace(".", "-").replace(" ", "-")


def _resolve(node: GraphItem, path: Path) -> Optional[GraphItem]:
    current = node
    for segment in path:
        if not is_container(current):
            return None
        child = current.children.get(segment)  # type: ignore[union-attr]
        if child is None:
            return None
        current = child
    return current


class Engine:
    def __init__(self, graph: Optional[Graph] = None) -> None:
        self.graph: Graph = graph if graph is not None else {}

    # ------------------------------------------------------------------
    # Serialisation
    # ------------------------------------------------------------------
    @classmethod
    def from_str(cls, text: str) -> Engine:
        """Parse a snapshot produced by :meth:`to_str`.

        Raises:
            ParseError: If *text* is not valid JSON or not a valid graph.
        """
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ParseError(f"snapshot is not valid JSON: {exc}") from exc
        except RecursionError as exc:
            raise ParseError("snapshot is nested too deeply") from exc
        return cls(graph_from_dict(data))

    def to_str(self) -> str:
        return dumps(graph_to_dict(self.graph))

    def __str__(self) -> str:
        return self.to_str()

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def create_root(self, root: str) -> None:
        if not root:
            raise InvalidOperationError("root cannot be empty")
        if root in self.graph:
            raise AlreadyExistsError(f"root {root!r} already exists")
        self.graph[root] = User()

    def create(self, root: str, path: Path, item: GraphItem) -> None:
        """Insert *item* at *path*, overwriting any node already there."""
        if not path:
            raise InvalidOperationError("path cannot be empty, must contain at least one item")
        validate_path(path)

        current = self.graph.get(root)
        if current is None:
            raise NotFoundError(f"root {root!r} was not found")

        *parents, last = path
        for segment in parents:
            if not is_container(current):
                raise InvalidOperationError(f"path: {segment} is below an item")
            child = current.children.get(segment)  # type: ignore[union-attr]
            if child is None:
                raise NotFoundError(f"path: {segment} section was not found")
            current = child

        if not is_container(current):
            raise InvalidOperationError("cannot insert an item into an item")
        current.children[last] = item  # type: ignore[union-attr]

    def take(self, root: str, path: Path) -> Optional[GraphItem]:
        """Detach and return the node at *path*, or ``None`` if unresolved."""
        if not path:
            return None
        node = self.graph.get(root)
        if node is None:
            return None
        parent = _resolve(node, path[:-1])
        if parent is None or not is_container(parent):
            return None
        return parent.children.pop(path[-1], None)  # type: ignore[union-attr]

    def section_move(self, root: str, src: Path, dest: Path) -> None:
        """Move the node at *src* under *dest*, keeping its name.

        The source is detached before the destination is checked.  If the
        destination is missing, is an item, or already holds the name, the
        source is not restored.
        """
        node = self.take(root, src)
        if node is None:
            raise NotFoundError("failed to find source path")

        target = self.get_mut(root, dest)
        if target is None:
            raise NotFoundError("failed to find destination")
        if not is_container(target):
            raise InvalidOperationError(
                "failed to insert src at item, item doesn't support arbitrary items"
            )

        name = src[-1]
        if name in target.children:  # type: ignore[union-attr]
            raise AlreadyExistsError(f"key was already found, aborting: {name}")
        target.children[name] = node  # type: ignore[union-attr]

    def toggle_item(self, root: str, path: Path) -> None:
        node = self.get_mut(root, path)
        if node is None:
            return
        if not isinstance(node, Item):
            raise InvalidOperationError(f"{root}.{format_path(path)} is not an item")
        node.state = node.state.toggled()

    def update_item(self, root: str, path: Path, item: GraphItem) -> None:
        """Replace the content of the item at *path* and re-key it by title."""
        if not path:
            return
        parent = self.get_mut(root, path[:-1])
        if parent is None:
            return
        if not is_container(parent):
            raise InvalidOperationError("cannot rename when item is placed in an item")

        children = parent.children  # type: ignore[union-attr]
        existing = children.get(path[-1])
        if existing is None:
            return
        if not isinstance(existing, Item) or not isinstance(item, Item):
            raise InvalidOperationError(
                f"path: {root}.{format_path(path)} found is not an item"
            )

        name = sanitize_title(item.title)
        validate_segment(name)

        del children[path[-1]]
        existing.title = item.title
        existing.description = item.description
        existing.state = item.state
        children[name] = existing

    def delete(self, root: str, path: Path) -> None:
        if self.take(root, path) is None:
            raise NotFoundError("item was not found")

    def archive(self, root: str, path: Path) -> None:
        # No archived marker is retained; the subtree is removed.
        self.delete(root, path)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def get(self, root: str, path: Path) -> Optional[GraphItem]:
        """Return the node at *path* (the root itself for an empty path).

        The returned node is live; callers outside the engine should go
        through :class:`~hyperlog.shared_engine.SharedEngine`, which copies.
        """
        node = self.graph.get(root)
        if node is None:
            return None
        return _resolve(node, path)

    def get_mut(self, root: str, path: Path) -> Optional[GraphItem]:
        """Return the node at *path* for in-place mutation by engine methods."""
        return self.get(root, path)

    def get_roots(self) -> Optional[list[str]]:
        roots = sorted(self.graph)
        return roots or None
