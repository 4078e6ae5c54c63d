"""Term store endpoints.

Hierarchy:
    TermStore -> TermGroups -> TermGroup -> TermSets -> TermSet
    TermSet -> Terms / Children / Relations
    Term -> Children / Relations / parent / set

Every property returns a new queryable sharing its parent's pipeline;
nothing is fetched until a queryable is awaited.
"""

import logging
from typing import List, Optional

import httpx

from termstore.core.behaviors import Defaults
from termstore.core.config import TermStoreConfig, get_config
from termstore.core.errors import PathResolutionError
from termstore.core.queryable import QueryableCollection, QueryableInstance, join_segments
from termstore.taxonomy.models import (
    OrderedTermInfo,
    RelationInfo,
    TermGroupInfo,
    TermInfo,
    TermSetInfo,
    TermStoreInfo,
)
from termstore.taxonomy.tree import build_ordered_tree

logger = logging.getLogger(__name__)


class TermStore(QueryableInstance):
    """The tenant term store."""

    default_path = "_api/v2.1/termstore"
    response_model = TermStoreInfo

    @property
    def groups(self) -> "TermGroups":
        """Term groups of this term store."""
        return TermGroups(self)


class TermGroups(QueryableCollection):
    default_path = "groups"
    response_model = List[TermGroupInfo]

    def get_by_id(self, group_id: str) -> "TermGroup":
        """Gets a term group by id."""
        return TermGroup(self, group_id)


class TermGroup(QueryableInstance):
    response_model = TermGroupInfo

    @property
    def sets(self) -> "TermSets":
        """Term sets of this group."""
        return TermSets(self, "sets")


class TermSets(QueryableCollection):
    default_path = "sets"
    response_model = List[TermSetInfo]

    def get_by_id(self, set_id: str) -> "TermSet":
        """Gets a term set by id."""
        return TermSet(self, set_id)


class TermSet(QueryableInstance):
    response_model = TermSetInfo

    @property
    def terms(self) -> "Terms":
        """All terms of this set, flat."""
        return Terms(self)

    @property
    def parent_group(self) -> TermGroup:
        return TermGroup(self, "parentGroup")

    @property
    def children(self) -> "Children":
        """Top-level terms of this set."""
        return Children(self)

    @property
    def relations(self) -> "Relations":
        return Relations(self)

    def get_term_by_id(self, term_id: str) -> "Term":
        return self.clone(Term, join_segments("terms", term_id))

    async def get_all_children_as_ordered_tree(self, strict: bool = False) -> List[Optional[OrderedTermInfo]]:
        """Gets all terms of this set as a tree using the set's custom sort orders.

        This makes one request per term in the set. Cache the result.

        Args:
            strict: Raise OrderingInconsistencyError when a sort order names
                    a term that was not returned, instead of leaving a None slot
        """
        info = await self()
        if not isinstance(info, TermSetInfo):
            info = TermSetInfo.model_validate(info)

        root_order = None
        for entry in info.custom_sort_order:
            if entry.set_id == info.id:
                root_order = entry
                break

        logger.info(f"Building ordered term tree for set {info.id}")
        return await build_ordered_tree(
            self,
            info.id,
            lambda term: self.get_term_by_id(term.id),
            root_order=root_order,
            strict=strict,
        )


class Children(QueryableCollection):
    default_path = "children"
    response_model = List[TermInfo]


class Terms(QueryableCollection):
    default_path = "terms"
    response_model = List[TermInfo]

    def get_by_id(self, term_id: str) -> "Term":
        """Gets a term by id."""
        return Term(self, term_id)


class Term(QueryableInstance):
    response_model = TermInfo

    @property
    def parent(self) -> "Term":
        return Term(self, "parent")

    @property
    def children(self) -> Children:
        return Children(self)

    @property
    def relations(self) -> "Relations":
        return Relations(self)

    @property
    def set(self) -> TermSet:
        return TermSet(self, "set")


class Relations(QueryableCollection):
    default_path = "relations"
    response_model = List[RelationInfo]

    def get_by_id(self, relation_id: str) -> "Relation":
        """Gets a relation by id."""
        return Relation(self, relation_id)


class Relation(QueryableInstance):
    response_model = RelationInfo

    @property
    def from_term(self) -> Term:
        return Term(self, "fromTerm")

    @property
    def to_term(self) -> Term:
        return Term(self, "toTerm")

    @property
    def set(self) -> TermSet:
        return TermSet(self, "set")


def create_term_store(
    base_url: Optional[str] = None,
    config: Optional[TermStoreConfig] = None,
    client: Optional[httpx.AsyncClient] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> TermStore:
    """Build a term store root with the default behaviors applied.

    Args:
        base_url: Site URL; defaults to the configured base_url
        config: Configuration; defaults to get_config()
        client: Shared httpx client for the send moment
        transport: httpx transport for per-request clients

    Raises:
        PathResolutionError: If no base URL is given or configured
    """
    config = config or get_config()
    base_url = base_url or config.base_url
    if not base_url:
        raise PathResolutionError(
            "No base URL given. Pass base_url or set TERMSTORE_BASE_URL."
        )

    store = TermStore(base_url, config.termstore_path)
    return store.using(Defaults(config=config, client=client, transport=transport))
