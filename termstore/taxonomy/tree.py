"""Ordered tree reconstruction for term sets.

The service only lists the direct children of a node. Ordering is carried
out-of-band: each term may hold a custom sort order per containing set,
listing its children's ids in display order. Building the full tree means
walking every node depth-first and reordering each level by its parent's
entry for the set being rendered.

This costs one round trip per node in the tree. Callers should cache the
result.

Terms form a hierarchy without cycles, so no cycle detection is done.
"""

import logging
from typing import Any, Callable, List, Optional

from termstore.core.errors import OrderingInconsistencyError
from termstore.taxonomy.models import OrderedTermInfo, TermInfo, TermSortOrderInfo

logger = logging.getLogger(__name__)

CHILD_FIELDS = ("*", "customSortOrder")


def apply_sort_order(
    children: List[Optional[OrderedTermInfo]],
    entry: TermSortOrderInfo,
    strict: bool = False,
) -> List[Optional[OrderedTermInfo]]:
    """Rebuild ``children`` to follow ``entry.order`` exactly.

    Children not named by the order are dropped. An id with no matching
    child leaves a None slot, or raises in strict mode.

    Raises:
        OrderingInconsistencyError: In strict mode, when ids are missing
    """
    by_id = {}
    for child in children:
        if child is not None and child.id not in by_id:
            by_id[child.id] = child

    missing = [term_id for term_id in entry.order if term_id not in by_id]
    if missing:
        message = (
            f"Custom sort order for set {entry.set_id} references "
            f"{len(missing)} unknown term(s): {', '.join(missing)}"
        )
        if strict:
            raise OrderingInconsistencyError(message, set_id=entry.set_id, missing_ids=missing)
        logger.warning(f"OrderingInconsistencyError (tolerated): {message}")

    return [by_id.get(term_id) for term_id in entry.order]


def to_term_info(value: Any) -> TermInfo:
    if isinstance(value, TermInfo):
        return value
    return TermInfo.model_validate(value)


async def visit(
    source: Any,
    out: List[Optional[OrderedTermInfo]],
    set_id: str,
    child_as_node: Callable[[TermInfo], Any],
    strict: bool = False,
) -> None:
    """Append the ordered subtree below ``source`` to ``out``.

    Args:
        source: Anything exposing a ``children`` queryable
        out: List receiving the ordered children of ``source``
        set_id: Set whose custom sort orders apply
        child_as_node: Maps a fetched child to a node exposing ``children``
        strict: Raise instead of tolerating unknown ids in sort orders
    """
    children = await source.children.select(*CHILD_FIELDS)()

    for raw in children or []:
        child = to_term_info(raw)
        ordered = OrderedTermInfo.model_validate({**child.model_dump(by_alias=True), "children": []})

        grandchildren: List[Optional[OrderedTermInfo]] = []
        await visit(child_as_node(child), grandchildren, set_id, child_as_node, strict)

        entry = child.sort_order_for(set_id)
        ordered.children = apply_sort_order(grandchildren, entry, strict) if entry else grandchildren

        out.append(ordered)


async def build_ordered_tree(
    root: Any,
    set_id: str,
    child_as_node: Callable[[TermInfo], Any],
    root_order: Optional[TermSortOrderInfo] = None,
    strict: bool = False,
) -> List[Optional[OrderedTermInfo]]:
    """Materialize the ordered tree below ``root``.

    Args:
        root: Node exposing a ``children`` queryable (typically a term set)
        set_id: Id of the set whose custom sort orders apply
        child_as_node: Maps a fetched term to a node exposing ``children``
        root_order: Sort order for the top level, when the root carries one
        strict: Raise OrderingInconsistencyError on unknown ids

    Returns:
        Top-level ordered terms; every level ordered by its parent's entry
        for ``set_id`` when present, otherwise in service order
    """
    tree: List[Optional[OrderedTermInfo]] = []
    await visit(root, tree, set_id, child_as_node, strict)

    if root_order is not None:
        tree = apply_sort_order(tree, root_order, strict)

    logger.debug(f"Built ordered tree for set {set_id} with {len(tree)} top-level term(s)")
    return tree
