"""Artifacts package - persistence for build outputs and published sites."""
from sitepub.core.artifacts.store import ArtifactStore, mint_preview_token

__all__ = [
    "ArtifactStore",
    "mint_preview_token",
]
