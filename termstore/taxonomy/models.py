"""Data models for term store entities.

Field names are snake_case in Python and camelCase on the wire. Unknown
fields returned by the service are kept on the model.
"""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class TaxonomyModel(BaseModel):
    """Base for all term store models."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )


class TaxonomyProperty(TaxonomyModel):
    key: str
    value: str


class TaxonomyUser(TaxonomyModel):
    display_name: Optional[str] = None
    email: Optional[str] = None
    id: Optional[str] = None


class TaxonomyUserInfo(TaxonomyModel):
    user: TaxonomyUser


class LocalizedName(TaxonomyModel):
    name: str
    language_tag: str


class TermLabel(TaxonomyModel):
    name: str
    is_default: bool = False
    language_tag: str


class TermDescription(TaxonomyModel):
    description: str
    language_tag: str


class TermAvailability(TaxonomyModel):
    set_id: str
    is_available: bool


class TermSortOrderInfo(TaxonomyModel):
    """Custom child ordering of a term, scoped to one containing set."""
    set_id: str
    order: List[str] = Field(default_factory=list)


class TermStoreInfo(TaxonomyModel):
    id: str
    name: Optional[str] = None
    default_language_tag: Optional[str] = None
    language_tags: List[str] = Field(default_factory=list)
    administrators: Optional[TaxonomyUserInfo] = None


class TermGroupInfo(TaxonomyModel):
    id: str
    description: Optional[str] = None
    name: Optional[str] = None
    display_name: Optional[str] = None
    created_date_time: Optional[str] = None
    last_modified_date_time: Optional[str] = None
    type: Optional[str] = None
    scope: Optional[Literal["global", "system", "siteCollection"]] = None


class TermSetInfo(TaxonomyModel):
    id: str
    localized_names: List[LocalizedName] = Field(default_factory=list)
    description: Optional[str] = None
    created_date_time: Optional[str] = None
    properties: List[TaxonomyProperty] = Field(default_factory=list)
    children_count: Optional[int] = None
    group_id: Optional[str] = None
    is_open: Optional[bool] = None
    is_available_for_tagging: Optional[bool] = None
    contact: Optional[str] = None
    custom_sort_order: List[TermSortOrderInfo] = Field(default_factory=list)


class TermInfo(TaxonomyModel):
    id: str
    children_count: Optional[int] = None
    labels: List[TermLabel] = Field(default_factory=list)
    created_date_time: Optional[str] = None
    custom_sort_order: List[TermSortOrderInfo] = Field(default_factory=list)
    last_modified_date_time: Optional[str] = None
    descriptions: List[TermDescription] = Field(default_factory=list)
    properties: List[TaxonomyProperty] = Field(default_factory=list)
    local_properties: List[TaxonomyProperty] = Field(default_factory=list)
    is_deprecated: Optional[bool] = None
    is_available_for_tagging: List[TermAvailability] = Field(default_factory=list)
    topic_requested: Optional[bool] = None

    def sort_order_for(self, set_id: str) -> Optional[TermSortOrderInfo]:
        """Custom sort order entry for ``set_id``, if any."""
        for entry in self.custom_sort_order:
            if entry.set_id == set_id:
                return entry
        return None

    @property
    def default_label(self) -> Optional[str]:
        for label in self.labels:
            if label.is_default:
                return label.name
        return self.labels[0].name if self.labels else None


class OrderedTermInfo(TermInfo):
    """A term with its materialized, ordered children.

    A child slot is None when a custom sort order names an id that was not
    returned by the service.
    """
    children: List[Optional[OrderedTermInfo]] = Field(default_factory=list)


class RelationInfo(TaxonomyModel):
    id: str
    relation_type: Optional[str] = None


OrderedTermInfo.model_rebuild()
