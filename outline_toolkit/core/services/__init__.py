from __future__ import annotations

"""High-level orchestration services built on the merge engine."""

from .archive_service import ArchiveResult, ArchiveService, resolve_archive_path  # noqa: F401

__all__: list[str] = [
    "ArchiveResult",
    "ArchiveService",
    "resolve_archive_path",
]
