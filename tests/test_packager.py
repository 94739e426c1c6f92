"""Tests for ZIP packaging."""
import io
import zipfile

import pytest

from sitepub.services.packager import archive_name, package_files
from sitepub.services.slug import slugify


def test_archive_name_is_slugified() -> None:
    assert archive_name("Acme Landing") == "acme-landing-project.zip"
    assert archive_name("  My   App!! 2.0 ") == "my-app-2-0-project.zip"
    assert archive_name("--Hello__World--") == "hello-world-project.zip"


def test_slugify_collapses_runs() -> None:
    assert slugify("Foo & Bar / Baz") == "foo-bar-baz"
    assert slugify("!!!") == ""


def test_package_contains_every_file_at_its_path() -> None:
    files = [
        {"path": "index.html", "content": "<h1>Hi</h1>"},
        {"path": "src/app/page.tsx", "content": "export default function Page() {}"},
        {"path": "styles/é.css", "content": "body { content: 'ü'; }"},
    ]

    package = package_files(files, "Acme Landing")

    assert package.filename == "acme-landing-project.zip"
    assert package.file_count == 3
    with zipfile.ZipFile(io.BytesIO(package.content)) as archive:
        assert archive.namelist() == ["index.html", "src/app/page.tsx", "styles/é.css"]
        assert archive.read("src/app/page.tsx").decode() == files[1]["content"]
        assert archive.read("styles/é.css").decode("utf-8") == files[2]["content"]


def test_packaging_is_deterministic() -> None:
    files = [{"path": "index.html", "content": "<h1>Hi</h1>"}]
    assert package_files(files, "A").content == package_files(files, "A").content


def test_empty_input_is_refused() -> None:
    with pytest.raises(ValueError):
        package_files([], "Acme")
