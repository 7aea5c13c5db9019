"""Hierarchy construction.

Assembles the flat concept list into a rooted forest where every child
sits exactly one level below its parent.

Rules:
    - Roots are the level-0 concepts. When none exists, the most important
      concept (earliest on ties) is promoted to level 0.
    - Candidates for a node are the concepts one level deeper, ordered by
      importance descending, then position in the text.
    - A node takes at most MAX_CHILDREN candidates; each concept gets at
      most one parent. Concepts left without a slot are reported as
      unplaced rather than attached out of level.
"""

from __future__ import annotations

from collections import deque
from typing import Dict, List

from conceptforge.core.logging import get_logger
from conceptforge.core.models import Concept, HierarchyNode, HierarchyTree

logger = get_logger(__name__)

# JPL Rule #2: Fixed upper bounds
MAX_CHILDREN = 4
MAX_DEPTH = 10


def _rank_key(concept: Concept) -> tuple:
    return (-(concept.importance or 0.0), concept.position)


class HierarchyBuilder:
    """Build a HierarchyTree from concepts."""

    def __init__(self, max_children: int = MAX_CHILDREN) -> None:
        self.max_children = max(1, min(max_children, MAX_CHILDREN))

    def build(self, concepts: List[Concept]) -> HierarchyTree:
        """Build the tree.

        Args:
            concepts: Concepts with levels assigned. The top concept may be
                promoted to level 0 in place.

        Returns:
            HierarchyTree with roots and unplaced concept ids
        """
        if not concepts:
            return HierarchyTree()

        self.ensure_root(concepts)

        by_level: Dict[int, List[Concept]] = {}
        for concept in sorted(concepts, key=_rank_key):
            by_level.setdefault(concept.level, []).append(concept)

        roots = [self._node(c) for c in by_level.get(0, [])]
        placed = {node.concept_id for node in roots}

        queue = deque(roots)
        while queue:
            node = queue.popleft()
            if node.level >= MAX_DEPTH:
                continue
            for candidate in by_level.get(node.level + 1, []):
                if len(node.children) >= self.max_children:
                    break
                if candidate.id in placed:
                    continue
                child = self._node(candidate)
                node.children.append(child)
                placed.add(candidate.id)
                queue.append(child)

        unplaced = [c.id for c in concepts if c.id not in placed]
        if unplaced:
            logger.debug("Concepts left outside the hierarchy", unplaced=len(unplaced))

        return HierarchyTree(roots=roots, unplaced=unplaced)

    @staticmethod
    def ensure_root(concepts: List[Concept]) -> None:
        """Promote the most important concept when no level-0 concept exists."""
        if any(c.level == 0 for c in concepts):
            return
        top = min(concepts, key=_rank_key)
        logger.debug("Promoting concept to root", concept=top.name, level=top.level)
        top.level = 0

    @staticmethod
    def _node(concept: Concept) -> HierarchyNode:
        return HierarchyNode(
            concept_id=concept.id,
            name=concept.name,
            level=concept.level,
            importance=concept.importance or 0.0,
        )


def build_hierarchy(concepts: List[Concept]) -> HierarchyTree:
    """Convenience wrapper around HierarchyBuilder.build."""
    return HierarchyBuilder().build(concepts)
