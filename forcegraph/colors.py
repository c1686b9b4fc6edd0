"""Stable colors for node categories."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional, Sequence

from .types import Node

logger = logging.getLogger(__name__)

DEFAULT_PALETTE: Sequence[str] = (
    "#1f77b4",
    "#ff7f0e",
    "#2ca02c",
    "#d62728",
    "#9467bd",
    "#8c564b",
    "#e377c2",
    "#7f7f7f",
    "#bcbd22",
    "#17becf",
)


def assign_type_colors(nodes: Iterable[Node], palette: Sequence[str] = DEFAULT_PALETTE) -> Dict[str, str]:
    """Map each distinct node type to a palette slot in first-seen order."""

    if not palette:
        raise ValueError("palette must contain at least one color")
    mapping: Dict[str, str] = {}
    for node in nodes:
        if node.type not in mapping:
            mapping[node.type] = palette[len(mapping) % len(palette)]
    return mapping


class TypeColorMap:
    """Holds the current type -> color mapping for the live node set."""

    def __init__(self, palette: Sequence[str] = DEFAULT_PALETTE) -> None:
        if not palette:
            raise ValueError("palette must contain at least one color")
        self.palette = tuple(palette)
        self._mapping: Dict[str, str] = {}

    def update(self, nodes: Iterable[Node]) -> Dict[str, str]:
        self._mapping = assign_type_colors(nodes, self.palette)
        if len(self._mapping) > len(self.palette):
            logger.debug(
                "%d node types share a palette of %d colors", len(self._mapping), len(self.palette)
            )
        return dict(self._mapping)

    def color_for(self, node_type: Optional[str]) -> str:
        if node_type is None:
            return self.palette[0]
        return self._mapping.get(node_type, self.palette[0])

    @property
    def mapping(self) -> Dict[str, str]:
        return dict(self._mapping)

    def __len__(self) -> int:
        return len(self._mapping)


__all__ = ["DEFAULT_PALETTE", "TypeColorMap", "assign_type_colors"]
