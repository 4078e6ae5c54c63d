"""Deferred resource paths.

A ResourcePath is a segment plus a reference to its parent path. Nothing is
concatenated until resolve() is called, so a chain of child paths can be
built cheaply and resolved once, when a request is actually made.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from termstore.core.errors import PathResolutionError


def is_absolute_url(value: str) -> bool:
    """Return True for http(s) URLs."""
    lowered = value.lower()
    return lowered.startswith("http://") or lowered.startswith("https://")


def combine(*parts: str) -> str:
    """Join URL parts with exactly one slash between each.

    The first part keeps its leading characters (scheme and host); empty
    parts are skipped.

    Example:
        >>> combine("https://contoso.com/sites/dev/", "/_api/", "web")
        'https://contoso.com/sites/dev/_api/web'
    """
    cleaned: List[str] = []
    for index, part in enumerate(parts):
        if part is None:
            continue
        text = str(part)
        text = text.rstrip("/") if index == 0 else text.strip("/")
        if text:
            cleaned.append(text)
    return "/".join(cleaned)


@dataclass(frozen=True)
class ResourcePath:
    """Immutable resource locator.

    Attributes:
        segment: Path segment (an absolute URL for a root)
        parent: Parent path, None for a root
    """
    segment: str
    parent: Optional[ResourcePath] = None

    @classmethod
    def root(cls, url: str) -> ResourcePath:
        """Create a root path, validating that the URL is absolute."""
        if not is_absolute_url(url):
            raise PathResolutionError(f"Root path must be an absolute URL: {url!r}")
        return cls(segment=url)

    @property
    def is_root(self) -> bool:
        return self.parent is None

    def child(self, segment: str) -> ResourcePath:
        """Return a new path one segment below this one."""
        return ResourcePath(segment=segment, parent=self)

    def segments(self) -> List[str]:
        """Collect segments from the root down to this node.

        Raises:
            PathResolutionError: If the parent chain loops back on itself
        """
        chain: List[str] = []
        seen = set()
        node: Optional[ResourcePath] = self

        while node is not None:
            if id(node) in seen:
                raise PathResolutionError(
                    f"Cycle detected while resolving path at segment {node.segment!r}"
                )
            seen.add(id(node))
            chain.append(node.segment)
            node = node.parent

        chain.reverse()
        return chain

    def resolve(self) -> str:
        """Resolve the absolute URL for this path.

        Raises:
            PathResolutionError: If the chain is cyclic or its root is not absolute
        """
        chain = self.segments()
        if not is_absolute_url(chain[0]):
            raise PathResolutionError(
                f"Path chain does not start at an absolute URL: {chain[0]!r}"
            )
        return combine(*chain)

    def __str__(self) -> str:
        return self.resolve()
