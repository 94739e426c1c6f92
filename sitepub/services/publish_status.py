"""Publish status for embedded preview banners.

Callers are anonymous: they hold the preview token minted for one build and
nothing else. A token only works against the build it was minted for, so a
preview left over from an older build cannot read status for a newer one.
"""
import hmac
from dataclasses import dataclass
from typing import Any, Dict, Optional

from sitepub.core.artifacts.store import ArtifactStore
from sitepub.core.exceptions import InvalidToken
from sitepub.services.recovery import BuildRecoveryResolver


@dataclass
class PublishStatus:
    published: bool
    is_stale: bool = False
    url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        if not self.published:
            return {"published": False}
        return {"published": True, "isStale": self.is_stale, "url": self.url}


class PublishStatusTracker:
    """Answers "is this project published, and is the live copy current?"."""

    def __init__(self, store: ArtifactStore) -> None:
        self.store = store
        self.resolver = BuildRecoveryResolver(store)

    async def get_status(self, project_id: str, token: str) -> PublishStatus:
        """Status for the build identified by ``token``.

        Raises:
            InvalidToken: No usable build, or the token belongs to another build
        """
        build = await self.resolver.resolve(project_id)
        if build is None or not build.preview_token:
            raise InvalidToken()
        if not hmac.compare_digest(build.preview_token.encode(), token.encode()):
            raise InvalidToken()

        site = await self.store.find_published_site(project_id)
        if site is None or not site.is_live:
            return PublishStatus(published=False)

        return PublishStatus(
            published=True,
            is_stale=site.build_output_id != build.id,
            url=site.url,
        )
