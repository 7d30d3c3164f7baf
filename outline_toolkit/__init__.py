"""Top-level package for Outline Toolkit.

Indentation-based outlines: structure inference, and merging finished
entries into an archive outline while keeping their group hierarchy.
Front-ends (editor hosts, scripts) should only depend on the public API
exposed here rather than importing internal modules directly.
"""

from .core.merge import merge_items_into_content  # re-export for convenience
from .core.models import InsertItem, MergeConfig
from .core.services import ArchiveResult, ArchiveService

__version__ = "1.0.0"

__all__: list[str] = [
    "ArchiveResult",
    "ArchiveService",
    "InsertItem",
    "MergeConfig",
    "merge_items_into_content",
]
