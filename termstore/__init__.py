"""termstore - fluent async client for term store (taxonomy) REST APIs."""

__version__ = "0.1.0"

from termstore.core import *  # noqa: F401,F403
from termstore.core import __all__ as _core_all
from termstore.taxonomy import *  # noqa: F401,F403
from termstore.taxonomy import __all__ as _taxonomy_all

__all__ = ["__version__", *_core_all, *_taxonomy_all]
