import pytest

from comic.archive import ArchiveStore, guess_entry_mime, is_page_image_name, natural_sort_key
from comic.errors import (
    ArchiveNotLoadedError,
    ArchiveParseError,
    EmptyArchiveError,
    EntryNotFoundError,
)


def test_natural_sort_orders_numbers_numerically():
    names = ["p10.png", "p2.png", "p1.png"]
    assert sorted(names, key=natural_sort_key) == ["p1.png", "p2.png", "p10.png"]


def test_natural_sort_ignores_case_and_accents():
    names = ["b.jpg", "ABE.jpg", "Ábc.jpg", "abd.jpg"]
    assert sorted(names, key=natural_sort_key) == ["Ábc.jpg", "abd.jpg", "ABE.jpg", "b.jpg"]


def test_natural_sort_mixed_leading_digits_and_text():
    names = ["cover.jpg", "10.jpg", "2.jpg"]
    assert sorted(names, key=natural_sort_key) == ["2.jpg", "10.jpg", "cover.jpg"]


@pytest.mark.parametrize(
    "name, expected",
    [
        ("page01.jpg", True),
        ("CHAPTER/Page02.JPEG", True),
        ("art.webp", True),
        ("anim.gif", True),
        ("notes.txt", False),
        ("__MACOSX/._page01.jpg", False),
        (".hidden.png", False),
        ("chapter/._page01.jpg", False),
        ("page.jpg.bak", False),
    ],
)
def test_is_page_image_name(name, expected):
    assert is_page_image_name(name) is expected


@pytest.mark.parametrize(
    "name, mime",
    [("a.png", "image/png"), ("a.WEBP", "image/webp"), ("a.jpg", "image/jpeg"), ("a.gif", "image/jpeg")],
)
def test_guess_entry_mime(name, mime):
    assert guess_entry_mime(name) == mime


def test_load_sorts_and_filters_pages(comic_archive):
    store = ArchiveStore()
    pages = store.load(comic_archive)
    assert [p.file_name for p in pages] == ["p1.png", "p2.png", "p10.png"]
    assert [p.index for p in pages] == [0, 1, 2]
    assert store.is_loaded
    assert len(store) == 3


def test_load_accepts_bytes(make_zip, make_png):
    store = ArchiveStore()
    pages = store.load(make_zip({"dir/": b"", "dir/b.png": make_png(), "dir/a.png": make_png()}))
    assert [p.file_name for p in pages] == ["dir/a.png", "dir/b.png"]


def test_extract_entry_returns_image(comic_archive):
    store = ArchiveStore()
    store.load(comic_archive)
    image = store.extract_entry("p2.png")
    assert image.mime_type == "image/png"
    assert image.data.startswith(b"\x89PNG")


def test_extract_missing_entry(comic_archive):
    store = ArchiveStore()
    store.load(comic_archive)
    with pytest.raises(EntryNotFoundError) as excinfo:
        store.extract_entry("missing.png")
    assert excinfo.value.file_name == "missing.png"
    assert "missing.png" in str(excinfo.value)


def test_extract_without_archive():
    with pytest.raises(ArchiveNotLoadedError):
        ArchiveStore().extract_entry("p1.png")


def test_non_zip_input_is_parse_error():
    store = ArchiveStore()
    with pytest.raises(ArchiveParseError):
        store.load(b"definitely not a zip file")
    assert not store.is_loaded


def test_rar_input_is_parse_error(tmp_path):
    path = tmp_path / "chapter.cbr"
    path.write_bytes(b"Rar!\x1a\x07\x00" + b"\x00" * 64)
    with pytest.raises(ArchiveParseError):
        ArchiveStore().load(path)


def test_missing_file_is_parse_error(tmp_path):
    with pytest.raises(ArchiveParseError):
        ArchiveStore().load(tmp_path / "nope.cbz")


def test_archive_without_images_is_empty(make_zip):
    store = ArchiveStore()
    with pytest.raises(EmptyArchiveError):
        store.load(make_zip({"readme.txt": b"hi", "__MACOSX/._a.jpg": b"x"}))
    assert not store.is_loaded
    assert store.pages == []


def test_failed_load_keeps_resident_archive(comic_archive, make_zip):
    store = ArchiveStore()
    store.load(comic_archive)
    with pytest.raises(EmptyArchiveError):
        store.load(make_zip({"readme.txt": b"hi"}))
    assert len(store) == 3
    assert store.extract_entry("p1.png").data


def test_load_replaces_previous_archive(comic_archive, make_zip, make_png):
    store = ArchiveStore()
    store.load(comic_archive)
    store.load(make_zip({"only.png": make_png()}))
    assert [p.file_name for p in store.pages] == ["only.png"]
    with pytest.raises(EntryNotFoundError):
        store.extract_entry("p1.png")


def test_clear_is_idempotent(comic_archive):
    store = ArchiveStore()
    store.load(comic_archive)
    store.clear()
    store.clear()
    assert not store.is_loaded
    assert store.pages == []
    with pytest.raises(ArchiveNotLoadedError):
        store.extract_entry("p1.png")


def test_context_manager_releases_archive(comic_archive):
    with ArchiveStore() as store:
        store.load(comic_archive)
        assert store.is_loaded
    assert not store.is_loaded
