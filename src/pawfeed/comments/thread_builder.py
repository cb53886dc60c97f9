"""Rebuild a post's reply forest from its flat comment documents.

The build is iterative throughout (lookup-by-parent map, explicit stacks) so
arbitrarily deep reply chains never grow the call stack. Replies whose parent
is absent from the input are promoted to top level. Parent cycles, which a
well-formed store never produces, are broken by promoting the earliest member.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from pydantic import ValidationError as ModelValidationError

from pawfeed.models.comment import CommentDocument

logger = logging.getLogger(__name__)


@dataclass
class CommentNode:
    id: str
    parent_id: str | None
    author_id: str
    text: str
    timestamp: datetime
    author_name: str | None = None
    updated_at: datetime | None = None
    liked_by: frozenset[str] = frozenset()
    children: list[CommentNode] = field(default_factory=list)
    total_descendant_count: int = 0

    @classmethod
    def from_document(cls, doc: CommentDocument) -> CommentNode:
        return cls(
            id=doc.id,
            parent_id=doc.parent_id,
            author_id=doc.author_id,
            author_name=doc.author_name,
            text=doc.text,
            timestamp=doc.timestamp,
            updated_at=doc.updated_at,
            liked_by=frozenset(doc.liked_by),
        )

    @property
    def like_count(self) -> int:
        return len(self.liked_by)

    @property
    def is_edited(self) -> bool:
        return self.updated_at is not None

    def is_liked_by(self, principal_id: str) -> bool:
        return principal_id in self.liked_by

    def walk(self) -> Iterable[CommentNode]:
        """Pre-order traversal of this node and every descendant."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def to_dict(self, principal_id: str | None = None) -> dict[str, Any]:
        """Nested JSON-ready form, built without recursion."""

        def _shell(node: CommentNode) -> dict[str, Any]:
            return {
                "id": node.id,
                "parent_id": node.parent_id,
                "author_id": node.author_id,
                "author_name": node.author_name,
                "text": node.text,
                "timestamp": node.timestamp.isoformat(),
                "updated_at": node.updated_at.isoformat() if node.updated_at else None,
                "edited": node.is_edited,
                "like_count": node.like_count,
                "liked": node.is_liked_by(principal_id) if principal_id else False,
                "total_descendant_count": node.total_descendant_count,
                "children": [],
            }

        root = _shell(self)
        stack = [(self, root)]
        while stack:
            node, out = stack.pop()
            for child in node.children:
                child_out = _shell(child)
                out["children"].append(child_out)
                stack.append((child, child_out))
        return root


def _sort_key(node: CommentNode) -> tuple[datetime, str]:
    return (node.timestamp, node.id)


def build_comment_forest(docs: Iterable[CommentDocument | dict]) -> list[CommentNode]:
    """Return top-level nodes oldest first, each with children and descendant counts filled in.

    Accepts validated ``CommentDocument`` instances or raw store documents.
    Null fields are coerced to empty values; a document that still cannot be
    read (no id) is skipped with a warning. Duplicate ids keep the first
    occurrence.
    """
    nodes: dict[str, CommentNode] = {}
    for doc in docs:
        if not isinstance(doc, CommentDocument):
            try:
                doc = CommentDocument.model_validate(doc)
            except ModelValidationError as exc:
                doc_id = doc.get("id") if isinstance(doc, dict) else None
                logger.warning("Skipping unreadable comment %r: %s", doc_id, exc.errors()[:1])
                continue
        if doc.id not in nodes:
            nodes[doc.id] = CommentNode.from_document(doc)

    by_parent: dict[str | None, list[CommentNode]] = defaultdict(list)
    for node in nodes.values():
        if node.parent_id is None or node.parent_id not in nodes or node.parent_id == node.id:
            by_parent[None].append(node)
        else:
            by_parent[node.parent_id].append(node)
    for siblings in by_parent.values():
        siblings.sort(key=_sort_key)

    roots = list(by_parent[None])
    visited: set[str] = set()
    order: list[CommentNode] = []

    def _attach(start: CommentNode) -> None:
        stack = [start]
        while stack:
            node = stack.pop()
            if node.id in visited:
                continue
            visited.add(node.id)
            order.append(node)
            node.children = [c for c in by_parent.get(node.id, []) if c.id not in visited]
            stack.extend(reversed(node.children))

    for root in roots:
        _attach(root)

    # Anything left is trapped in a parent cycle
    while len(visited) < len(nodes):
        stranded = min((n for n in nodes.values() if n.id not in visited), key=_sort_key)
        stranded.parent_id = None
        roots.append(stranded)
        _attach(stranded)
    roots.sort(key=_sort_key)

    # Parents precede children in ``order``, so a reverse pass is bottom-up
    for node in reversed(order):
        node.total_descendant_count = sum(1 + c.total_descendant_count for c in node.children)
    return roots


def count_nodes(forest: Iterable[CommentNode]) -> int:
    return sum(1 for root in forest for _ in root.walk())
