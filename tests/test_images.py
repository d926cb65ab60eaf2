# =============================================================================
# tests/test_images.py - Image Archive Correlation Tests
# =============================================================================
# Tests for supplier code derivation, archive scanning and concurrent
# upload with per-file failure isolation.
# =============================================================================

import asyncio
import threading

import pytest

from lib.images import (
    ArchiveReadError,
    build_storage_path,
    correlate_images,
    derive_supplier_code,
    is_image_filename,
    iter_archive_images,
    list_archive_codes,
)


class TestDeriveSupplierCode:
    """Filename -> supplier code."""

    @pytest.mark.parametrize("filename,expected", [
        ("F001-img1.jpg", "F001"),
        ("F002.png", "F002"),
        ("fotos/F003-a-b.webp", "F003"),
        ("F004.final.jpeg", "F004"),
        ("-x.png", None),
        (".png", None),
    ])
    def test_derivation(self, filename, expected):
        assert derive_supplier_code(filename) == expected

    def test_case_is_preserved(self):
        assert derive_supplier_code("f001-a.jpg") == "f001"


class TestIsImageFilename:

    def test_extensions(self):
        assert is_image_filename("a.JPG")
        assert is_image_filename("a.webp")
        assert not is_image_filename("a.txt")
        assert not is_image_filename("noext")


class TestArchiveScanning:
    """Reading archives without uploading."""

    def test_skips_directories_and_non_images(self, make_zip):
        archive = make_zip({
            "F001-1.jpg": b"1",
            "F001-2.png": b"2",
            "docs/readme.txt": b"x",
            "fotos/F002.gif": b"3",
            "-bad.jpg": b"4",
        })

        images = iter_archive_images(archive)

        assert [(i.supplier_code, i.extension) for i in images] == [
            ("F001", "jpg"),
            ("F001", "png"),
            ("F002", "gif"),
        ]
        assert list_archive_codes(archive) == {"F001", "F002"}

    def test_invalid_zip(self):
        with pytest.raises(ArchiveReadError):
            iter_archive_images(b"not a zip")

    def test_storage_path_is_unique(self):
        first = build_storage_path("F001", "jpg")
        second = build_storage_path("F001", "jpg")

        assert first.startswith("F001/") and first.endswith(".jpg")
        assert first != second


class TestCorrelateImages:
    """Upload + correlation."""

    def test_builds_image_map_in_archive_order(self, make_zip):
        archive = make_zip({"F001-1.jpg": b"a", "F002.png": b"b", "F001-2.jpg": b"c"})
        uploaded = []
        lock = threading.Lock()

        def uploader(path, content, content_type):
            with lock:
                uploaded.append((path, content_type))
            return f"https://cdn.test/{content.decode()}"

        correlation = asyncio.run(correlate_images(archive, uploader))

        assert correlation.image_map == {
            "F001": ["https://cdn.test/a", "https://cdn.test/c"],
            "F002": ["https://cdn.test/b"],
        }
        assert correlation.uploaded == 3
        assert correlation.failed == 0
        assert {content_type for _, content_type in uploaded} == {"image/jpeg", "image/png"}

    def test_failed_upload_is_skipped(self, make_zip):
        archive = make_zip({"F001-1.jpg": b"ok", "F002-1.jpg": b"boom"})

        def uploader(path, content, content_type):
            if content == b"boom":
                raise RuntimeError("storage unavailable")
            return "https://cdn.test/ok"

        correlation = asyncio.run(correlate_images(archive, uploader))

        assert correlation.image_map == {"F001": ["https://cdn.test/ok"]}
        assert correlation.uploaded == 1
        assert correlation.failed == 1
        assert correlation.failed_files == ["F002-1.jpg"]

    def test_empty_archive(self, make_zip):
        correlation = asyncio.run(correlate_images(make_zip({}), lambda *args: "unused"))

        assert correlation.image_map == {}
        assert correlation.uploaded == 0

    def test_codes_differing_in_case_stay_separate(self, make_zip):
        archive = make_zip({"F001-a.jpg": b"upper", "f001-b.PNG": b"lower"})

        def uploader(path, content, content_type):
            return f"https://cdn.test/{path}"

        correlation = asyncio.run(correlate_images(archive, uploader))

        assert set(correlation.image_map) == {"F001", "f001"}
        assert correlation.image_map["F001"][0].startswith("https://cdn.test/F001/")
        assert correlation.image_map["f001"][0].endswith(".png")
