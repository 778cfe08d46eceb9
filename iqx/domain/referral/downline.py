"""
Downline tree view state.

The server returns the referral tree fully materialized; nothing here
builds or aggregates it. The view renders the root's children as top-level
rows, opens the first two levels by default and lets the user collapse or
expand any node that has children.
"""

from dataclasses import dataclass
from typing import Iterable, Iterator, Optional

from iqx.domain.formatting import format_currency, format_date
from iqx.domain.referral.entities import DownlineNode

AUTO_EXPAND_DEPTH = 2
EMPTY_MESSAGE = "Chưa có thành viên cấp dưới"


@dataclass(frozen=True)
class TreeRow:
    """One rendered line of the tree."""

    id: str
    depth: int
    label: str
    email: str
    level_badge: str
    children_count: int
    total_referrals: int
    commission: str
    joined: str
    has_children: bool
    expanded: bool


class DownlineTreeView:
    """Expand/collapse state over a server-supplied downline tree.

    Args:
        root: Tree root (the current user) or None when the user has no tree.
        expanded: Node ids the user explicitly opened.
        collapsed: Node ids the user explicitly closed. Wins over expanded.
    """

    def __init__(
        self,
        root: Optional[DownlineNode],
        expanded: Iterable[str] = (),
        collapsed: Iterable[str] = (),
    ) -> None:
        self._root = root
        self._depths: dict[str, int] = {}
        for node, depth in self._walk(self.roots, 0):
            self._depths.setdefault(node.id, depth)
        self._overrides: dict[str, bool] = {node_id: True for node_id in expanded}
        self._overrides.update({node_id: False for node_id in collapsed})

    @property
    def roots(self) -> list[DownlineNode]:
        return list(self._root.children) if self._root else []

    @property
    def is_empty(self) -> bool:
        return not self.roots

    @property
    def empty_message(self) -> Optional[str]:
        return EMPTY_MESSAGE if self.is_empty else None

    @staticmethod
    def _walk(
        nodes: list[DownlineNode], depth: int
    ) -> Iterator[tuple[DownlineNode, int]]:
        for node in nodes:
            yield node, depth
            yield from DownlineTreeView._walk(node.children, depth + 1)

    def is_expanded(self, node_id: str) -> bool:
        """Whether a node's children are shown. Unknown ids read as closed."""
        if node_id in self._overrides:
            return self._overrides[node_id]
        depth = self._depths.get(node_id)
        return depth is not None and depth < AUTO_EXPAND_DEPTH

    def toggle(self, node_id: str) -> bool:
        """Flip a node open/closed and return its new state.

        Raises:
            KeyError: If the id is not in the tree.
        """
        if node_id not in self._depths:
            raise KeyError(node_id)
        state = not self.is_expanded(node_id)
        self._overrides[node_id] = state
        return state

    @property
    def expanded_ids(self) -> list[str]:
        return [node_id for node_id, state in self._overrides.items() if state]

    @property
    def collapsed_ids(self) -> list[str]:
        return [node_id for node_id, state in self._overrides.items() if not state]

    def visible_rows(self) -> list[TreeRow]:
        """Flatten the tree into the rows currently on screen, in order."""
        rows: list[TreeRow] = []
        self._collect(self.roots, 0, rows)
        return rows

    def _collect(self, nodes: list[DownlineNode], depth: int, rows: list[TreeRow]) -> None:
        for node in nodes:
            has_children = bool(node.children)
            expanded = has_children and self.is_expanded(node.id)
            rows.append(
                TreeRow(
                    id=node.id,
                    depth=depth,
                    label=node.display_name or node.email,
                    email=node.email,
                    level_badge=f"cấp {node.level + 1}",
                    children_count=node.children_count,
                    total_referrals=node.total_referrals,
                    commission=format_currency(node.total_commission),
                    joined=format_date(node.created_at),
                    has_children=has_children,
                    expanded=expanded,
                )
            )
            if expanded:
                self._collect(node.children, depth + 1, rows)
