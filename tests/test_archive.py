"""
Tests for extracting project files from an uploaded ZIP archive.
"""

import io
import zipfile

import pytest

from devassist.services.archive import extract_project_files, truncation_marker
from devassist.utils.custom_exceptions import ArchiveError


def build_zip(entries):
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        for name, content in entries.items():
            zf.writestr(name, content)
    return buffer.getvalue()


def paths(files):
    return sorted(f.path for f in files)


def test_keeps_source_files():
    data = build_zip({
        "app/Models/User.php": "<?php class User {}",
        "resources/views/home.blade.php": "<h1>Home</h1>",
        "composer.json": "{}",
    })
    files = extract_project_files(data)
    assert paths(files) == ["app/Models/User.php", "composer.json", "resources/views/home.blade.php"]
    by_path = {f.path: f.content for f in files}
    assert by_path["app/Models/User.php"] == "<?php class User {}"


def test_skips_ignored_directories():
    data = build_zip({
        "vendor/laravel/framework/src/App.php": "<?php",
        "shop/node_modules/lib/index.js": "x",
        "app/Http/Kernel.php": "<?php",
    })
    assert paths(extract_project_files(data)) == ["app/Http/Kernel.php"]


def test_skips_unknown_extensions_and_directories():
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        zf.writestr("public/logo.png", b"\x89PNG")
        zf.writestr("app/", "")
        zf.writestr("routes/web.php", "<?php")
    assert paths(extract_project_files(buffer.getvalue())) == ["routes/web.php"]


def test_large_file_replaced_by_marker():
    content = "a" * 50
    data = build_zip({"app/Big.php": content})

    files = extract_project_files(data, max_file_size=10)

    assert files[0].content == truncation_marker("app/Big.php", 50)
    assert "[TRUNCATED]" in files[0].content


def test_file_cap():
    data = build_zip({f"app/F{i}.php": "<?php" for i in range(5)})
    assert len(extract_project_files(data, max_files=3)) == 3


def test_undecodable_file_skipped():
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        zf.writestr("app/Latin.php", "caf\xe9".encode("latin-1"))
        zf.writestr("app/Ok.php", "<?php")
    assert paths(extract_project_files(buffer.getvalue())) == ["app/Ok.php"]


def test_not_a_zip():
    with pytest.raises(ArchiveError):
        extract_project_files(b"plain text")


def _set_compression_method(data, method):
    """Rewrite the first entry's compression method in both ZIP headers."""
    data = bytearray(data)
    local = data.find(b"PK\x03\x04")
    central = data.find(b"PK\x01\x02")
    data[local + 8:local + 10] = method.to_bytes(2, "little")
    data[central + 10:central + 12] = method.to_bytes(2, "little")
    return bytes(data)


def test_unsupported_compression_skipped():
    data = build_zip({"app/Odd.php": "<?php", "app/Ok.php": "<?php"})
    files = extract_project_files(_set_compression_method(data, 99))
    assert paths(files) == ["app/Ok.php"]
