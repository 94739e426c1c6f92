"""Public slug helpers: normalization, validation and availability."""
import re
from dataclasses import dataclass
from typing import Optional

from sitepub.core.artifacts.store import ArtifactStore
from sitepub.core.exceptions import ValidationError

SLUG_RE = re.compile(r"^[a-z0-9](?:[a-z0-9-]{1,46}[a-z0-9])?$")
MAX_SLUG_LENGTH = 48

INVALID_SLUG_REASON = "Invalid format. Use 3-48 lowercase letters, numbers, and hyphens."
TAKEN_SLUG_REASON = "This address is already taken."

_NON_ALNUM_RUN = re.compile(r"[^a-z0-9]+")


def slugify(name: str) -> str:
    """Lower-case ``name`` and collapse non-alphanumeric runs into single hyphens."""
    slug = _NON_ALNUM_RUN.sub("-", name.lower())
    return slug.strip("-")


def is_valid_slug(slug: str) -> bool:
    return bool(SLUG_RE.match(slug))


@dataclass
class SlugCheck:
    """Result of an availability check."""
    available: bool
    reason: Optional[str] = None


class SlugResolver:
    """Validates candidate slugs and enforces global uniqueness."""

    def __init__(self, store: ArtifactStore) -> None:
        self.store = store

    async def is_available(self, slug: str, project_id: str) -> bool:
        """A slug is available unless another project's site row holds it.

        Tombstoned rows still hold their slug, so a deleted site's address
        can only be reclaimed by the project it belonged to.
        """
        taken = await self.store.find_site_by_slug(slug, exclude_project_id=project_id)
        return taken is None

    async def check(self, candidate: Optional[str], project_id: str) -> SlugCheck:
        slug = (candidate or "").strip().lower()
        if not slug or not is_valid_slug(slug):
            return SlugCheck(available=False, reason=INVALID_SLUG_REASON)
        if not await self.is_available(slug, project_id):
            return SlugCheck(available=False, reason=TAKEN_SLUG_REASON)
        return SlugCheck(available=True)

    async def unique_slug(self, name: str, project_id: str) -> str:
        """Pick a slug for a first publish.

        Reuses the project's existing slug, otherwise tries the name-derived
        base, then suffixes with a growing prefix of the project id. Bases too
        short to be valid on their own go straight to the suffixed forms.

        Raises:
            ValidationError: Every candidate is taken
        """
        existing = await self.store.find_published_site(project_id)
        if existing is not None:
            return existing.slug

        base = slugify(name)[:MAX_SLUG_LENGTH].strip("-") or "project"
        short_id = project_id.replace("-", "")
        candidates = [base] + [self._suffixed(base, short_id[:n]) for n in (6, 12, len(short_id))]

        for candidate in candidates:
            if is_valid_slug(candidate) and await self.is_available(candidate, project_id):
                return candidate

        raise ValidationError(TAKEN_SLUG_REASON)

    @staticmethod
    def _suffixed(base: str, suffix: str) -> str:
        head = base[: MAX_SLUG_LENGTH - len(suffix) - 1].rstrip("-")
        return f"{head}-{suffix}"
