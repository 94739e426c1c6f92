"""Packaging of build files into a downloadable ZIP archive."""
import io
import zipfile
from dataclasses import dataclass
from typing import Any, Dict, Sequence

from sitepub.services.slug import slugify

ZIP_MEDIA_TYPE = "application/zip"

# Fixed entry timestamp so identical input yields identical bytes
_ENTRY_DATE_TIME = (1980, 1, 1, 0, 0, 0)


@dataclass
class Package:
    """An in-memory archive ready to be streamed to the client."""
    content: bytes
    filename: str
    file_count: int


def archive_name(project_name: str) -> str:
    """Filesystem-safe archive name derived from the project's display name."""
    return f"{slugify(project_name)}-project.zip"


def package_files(files: Sequence[Dict[str, Any]], project_name: str) -> Package:
    """Serialize ``files`` into a ZIP archive.

    Each entry is written at its declared relative path. Callers must pass a
    non-empty sequence; the recovery resolver never yields an empty build.
    """
    if not files:
        raise ValueError("Cannot package an empty file set")

    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, mode="w", compression=zipfile.ZIP_DEFLATED) as archive:
        for entry in files:
            info = zipfile.ZipInfo(entry["path"].lstrip("/"), date_time=_ENTRY_DATE_TIME)
            info.compress_type = zipfile.ZIP_DEFLATED
            info.external_attr = 0o644 << 16
            archive.writestr(info, entry["content"].encode("utf-8"))

    return Package(
        content=buffer.getvalue(),
        filename=archive_name(project_name),
        file_count=len(files),
    )
