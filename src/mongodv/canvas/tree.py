"""Document tree rendering.

Walks an arbitrary JSON-like value and produces a nested structure of rows,
collapsible sections and leaves. Every node carries its dotted path from the
root of the owning document, so a leaf's path never depends on where the
document sits on the canvas or on how many documents are placed.

Only open sections materialise their children. A collapsed section has no
mounted leaves, which is how collapsed identifier fields drop out of the
reference registry.
"""

from __future__ import annotations

from collections.abc import Collection, Iterator
from dataclasses import dataclass, field

from mongodv.canvas.classify import Kind, classify, display_text, is_composite, type_label
from mongodv.canvas.registry import Role, role_for_path


def join_path(path: str, key: object) -> str:
    return f"{path}.{key}" if path else str(key)


@dataclass
class Leaf:
    path: str
    label: str | None
    value: object
    kind: Kind
    owner_doc_id: str
    is_id_field: bool = False

    @property
    def text(self) -> str:
        return display_text(self.value)

    @property
    def role(self) -> Role | None:
        """Registry role for identifier leaves, None for every other kind."""
        if self.kind is not Kind.IDENTIFIER_STRING:
            return None
        return role_for_path(self.path)

    @property
    def stable_id(self) -> str:
        return f"date-{self.owner_doc_id}-{self.path}"


@dataclass
class EmptyMarker:
    path: str
    label: str | None
    text: str


@dataclass
class Section:
    path: str
    label: str
    type_label: str
    is_open: bool
    child: Container | None = None
    is_id_field: bool = False


@dataclass
class Container:
    path: str
    rows: list[Leaf | EmptyMarker | Section] = field(default_factory=list)


VisualNode = Container | Section | Leaf | EmptyMarker


def _row(
    key: str,
    value: object,
    path: str,
    owner_doc_id: str,
    expanded: Collection[str],
) -> Leaf | EmptyMarker | Section:
    child_path = join_path(path, key)
    if is_composite(value):
        is_open = child_path in expanded
        child = None
        if is_open:
            rendered = render(value, child_path, owner_doc_id, expanded)
            child = rendered if isinstance(rendered, Container) else Container(child_path, [rendered])
        return Section(
            path=child_path,
            label=key,
            type_label=type_label(value),
            is_open=is_open,
            child=child,
            is_id_field=key == "_id",
        )
    return Leaf(
        path=child_path,
        label=key,
        value=value,
        kind=classify(value),
        owner_doc_id=owner_doc_id,
        is_id_field=key == "_id",
    )


def render(
    value: object,
    path: str = "",
    owner_doc_id: str = "unknown",
    expanded: Collection[str] = frozenset(),
) -> VisualNode:
    """Render ``value`` rooted at ``path`` within document ``owner_doc_id``.

    Args:
        value: Any JSON-like value (dict, list, scalar).
        path: Dotted path of ``value`` inside its owning document.
        owner_doc_id: Id of the placed document; threaded unchanged.
        expanded: Paths of sections that are open. Everything else is collapsed.
    """
    if isinstance(value, (list, tuple)):
        if not value:
            return EmptyMarker(path=path, label=None, text="[]")
        return Container(
            path=path,
            rows=[
                _row(str(i), item, path, owner_doc_id, expanded)
                for i, item in enumerate(value)
            ],
        )
    if isinstance(value, dict):
        if not value:
            return EmptyMarker(path=path, label=None, text="{}")
        # dicts keep insertion order; never sort
        return Container(
            path=path,
            rows=[
                _row(str(k), v, path, owner_doc_id, expanded)
                for k, v in value.items()
            ],
        )
    label = path.rsplit(".", 1)[-1] if path else None
    return Leaf(
        path=path,
        label=label,
        value=value,
        kind=classify(value),
        owner_doc_id=owner_doc_id,
        is_id_field=label == "_id",
    )


def iter_rows(node: VisualNode, depth: int = 0) -> Iterator[tuple[int, Leaf | EmptyMarker | Section]]:
    """Yield ``(depth, row)`` for every visible line in render order."""
    if isinstance(node, Container):
        for row in node.rows:
            yield depth, row
            if isinstance(row, Section) and row.is_open and row.child is not None:
                yield from iter_rows(row.child, depth + 1)
    else:
        yield depth, node


def iter_leaves(node: VisualNode) -> Iterator[Leaf]:
    for _, row in iter_rows(node):
        if isinstance(row, Leaf):
            yield row


def all_section_paths(value: object, prefix: str = "") -> list[str]:
    """Paths of every collapsible section in ``value``, parents before children."""
    paths: list[str] = []
    if isinstance(value, (list, tuple)):
        items = ((str(i), item) for i, item in enumerate(value))
    elif isinstance(value, dict):
        items = ((str(k), v) for k, v in value.items())
    else:
        return paths
    for key, item in items:
        if is_composite(item):
            current = join_path(prefix, key)
            paths.append(current)
            paths.extend(all_section_paths(item, current))
    return paths


def leaf_paths(value: object, prefix: str = "") -> list[str]:
    """Paths of every scalar leaf in ``value`` regardless of collapse state."""
    if isinstance(value, (list, tuple)):
        items = [(str(i), item) for i, item in enumerate(value)]
    elif isinstance(value, dict):
        items = [(str(k), v) for k, v in value.items()]
    else:
        return [prefix]
    paths: list[str] = []
    for key, item in items:
        current = join_path(prefix, key)
        if is_composite(item):
            paths.extend(leaf_paths(item, current))
        else:
            paths.append(current)
    return paths
