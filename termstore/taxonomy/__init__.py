"""Term store (taxonomy) endpoints and models."""

from termstore.taxonomy.models import (
    OrderedTermInfo,
    RelationInfo,
    TaxonomyProperty,
    TaxonomyUserInfo,
    TermGroupInfo,
    TermInfo,
    TermSetInfo,
    TermSortOrderInfo,
    TermStoreInfo,
)

from termstore.taxonomy.queryables import (
    Children,
    Relation,
    Relations,
    Term,
    TermGroup,
    TermGroups,
    Terms,
    TermSet,
    TermSets,
    TermStore,
    create_term_store,
)

from termstore.taxonomy.tree import apply_sort_order, build_ordered_tree

__all__ = [
    "OrderedTermInfo",
    "RelationInfo",
    "TaxonomyProperty",
    "TaxonomyUserInfo",
    "TermGroupInfo",
    "TermInfo",
    "TermSetInfo",
    "TermSortOrderInfo",
    "TermStoreInfo",
    "Children",
    "Relation",
    "Relations",
    "Term",
    "TermGroup",
    "TermGroups",
    "Terms",
    "TermSet",
    "TermSets",
    "TermStore",
    "create_term_store",
    "apply_sort_order",
    "build_ordered_tree",
]
