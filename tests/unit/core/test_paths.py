"""Tests for deferred resource paths."""

import dataclasses

import pytest

from termstore.core.errors import InvalidPathError, PathResolutionError
from termstore.core.paths import ResourcePath, combine, is_absolute_url


class TestCombine:
    """Separator normalization."""

    def test_single_slash_between_parts(self):
        assert combine("https://contoso.com/sites/dev/", "/_api/", "web") == (
            "https://contoso.com/sites/dev/_api/web"
        )

    def test_empty_parts_are_skipped(self):
        assert combine("https://contoso.com", "", "/", "lists") == "https://contoso.com/lists"

    def test_scheme_is_preserved(self):
        assert combine("https://contoso.com") == "https://contoso.com"

    def test_is_absolute_url(self):
        assert is_absolute_url("https://contoso.com")
        assert is_absolute_url("HTTP://contoso.com")
        assert not is_absolute_url("/sites/dev")
        assert not is_absolute_url("contoso.com")


class TestResourcePath:
    """Path composition and resolution."""

    def test_root_resolves_to_itself(self):
        root = ResourcePath.root("https://contoso.com/sites/dev")
        assert root.is_root
        assert root.resolve() == "https://contoso.com/sites/dev"

    def test_chain_of_children_resolves_root_to_leaf(self):
        """Each derivation appends one segment."""
        root = ResourcePath.root("https://contoso.com/sites/dev")
        path = root
        for segment in ["_api", "v2.1", "termstore", "groups", "g1"]:
            path = path.child(segment)

        assert path.resolve() == "https://contoso.com/sites/dev/_api/v2.1/termstore/groups/g1"

    def test_children_created_at_different_times_share_parent(self):
        root = ResourcePath.root("https://contoso.com")
        first = root.child("a")
        second = root.child("b")
        nested = first.child("c")

        assert first.resolve() == "https://contoso.com/a"
        assert second.resolve() == "https://contoso.com/b"
        assert nested.resolve() == "https://contoso.com/a/c"

    def test_slashes_in_segments_are_normalized(self):
        path = ResourcePath.root("https://contoso.com/").child("/terms/").child("t1/")
        assert path.resolve() == "https://contoso.com/terms/t1"

    def test_multi_segment_child(self):
        path = ResourcePath.root("https://contoso.com").child("terms/t1")
        assert path.resolve() == "https://contoso.com/terms/t1"
        assert path.segments() == ["https://contoso.com", "terms/t1"]

    def test_root_requires_absolute_url(self):
        with pytest.raises(PathResolutionError):
            ResourcePath.root("sites/dev")

    def test_relative_chain_fails_to_resolve(self):
        path = ResourcePath("sites/dev").child("lists")
        with pytest.raises(PathResolutionError):
            path.resolve()

    def test_cycle_is_detected(self):
        root = ResourcePath("https://contoso.com")
        child = root.child("a")
        # Frozen dataclasses can only be looped through object.__setattr__
        object.__setattr__(root, "parent", child)

        with pytest.raises(PathResolutionError, match="Cycle"):
            child.resolve()

    def test_paths_are_immutable(self):
        path = ResourcePath.root("https://contoso.com")
        with pytest.raises(dataclasses.FrozenInstanceError):
            path.segment = "https://other.com"

    def test_invalid_path_error_alias(self):
        assert InvalidPathError is PathResolutionError

    def test_str_resolves(self):
        path = ResourcePath.root("https://contoso.com").child("web")
        assert str(path) == "https://contoso.com/web"
