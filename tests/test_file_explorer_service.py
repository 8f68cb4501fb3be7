"""Unit tests for listing and folder inference"""

from datetime import datetime, timezone

from bucket_panel.services.file_explorer_service import (
    build_listing,
    empty_listing,
    explore,
    infer_folders,
    matches_search,
    normalize_prefix,
)


def obj(key, size=10, day=1, owner=None):
    entry = {
        "Key": key,
        "Size": size,
        "LastModified": datetime(2024, 10, day, 12, 0, tzinfo=timezone.utc),
    }
    if owner:
        entry["Owner"] = {"DisplayName": owner, "ID": "owner-id"}
    return entry


OBJECTS = [
    obj("e.txt", day=1, owner="Ana Oliveira"),
    obj("a/d.txt", day=2),
    obj("a/b/c.txt", day=3),
    obj("a/empty/", size=0, day=4),
    obj("Zeta/z.png", day=5),
]


def listing():
    return build_listing(OBJECTS, "media", "sa-east-1", "cdn.example.com")


def test_listing_is_newest_first():
    files = listing()["files"]

    assert [f["key"] for f in files] == ["Zeta/z.png", "a/empty/", "a/b/c.txt", "a/d.txt", "e.txt"]


def test_listing_stats_skip_placeholders():
    result = listing()

    assert result["stats"]["totalFiles"] == 4
    assert result["stats"]["totalSize"] == 40
    assert result["stats"]["bucket"] == "media"
    assert result["setupRequired"] is False
    assert [r["id"] for r in result["recentUploads"]] == ["Zeta/z.png", "a/b/c.txt", "a/d.txt", "e.txt"]


def test_file_entry_urls_and_owner():
    files = {f["key"]: f for f in listing()["files"]}

    assert files["e.txt"]["uploadedBy"] == "Ana Oliveira"
    assert files["a/d.txt"]["uploadedBy"] == "Sistema"
    assert files["a/d.txt"]["url"] == "https://media.s3.sa-east-1.amazonaws.com/a/d.txt"
    assert files["a/d.txt"]["cdnUrl"] == "https://cdn.example.com/a/d.txt"
    assert files["a/empty/"]["isFolderPlaceholder"] is True


def test_keys_are_url_encoded_per_segment():
    result = build_listing([obj("fotos/minha foto#1.png")], "media", "us-east-1")

    assert result["files"][0]["url"] == "https://media.s3.us-east-1.amazonaws.com/fotos/minha%20foto%231.png"
    assert result["files"][0]["fileName"] == "minha foto#1.png"


def test_infer_folders_at_root():
    folders = infer_folders(listing()["files"], "")

    assert folders == [{"name": "a", "itemCount": 3}, {"name": "Zeta", "itemCount": 1}]


def test_infer_folders_nested_with_empty_placeholder():
    folders = infer_folders(listing()["files"], "a")

    assert folders == [{"name": "b", "itemCount": 1}, {"name": "empty", "itemCount": 0}]


def test_explore_level_files_and_breadcrumbs():
    result = explore(listing()["files"], "/a/")

    assert result["prefix"] == "a"
    assert result["breadcrumbs"] == ["a"]
    assert [f["key"] for f in result["files"]] == ["a/d.txt"]


def test_explore_search():
    files = listing()["files"]

    assert [f["key"] for f in explore(files, "", "ANA OLIV")["files"]] == ["e.txt"]
    assert explore(files, "", "zeta")["folders"] == [{"name": "Zeta", "itemCount": 1}]
    assert explore(files, "", "nothing-matches") == {
        "prefix": "",
        "breadcrumbs": [],
        "folders": [],
        "files": [],
    }


def test_search_does_not_span_fields():
    file = {"fileName": "report.pdf", "key": "docs/report.pdf", "uploadedBy": "Sistema"}

    assert matches_search(file, "report.pdf")
    assert matches_search(file, "docs/")
    assert matches_search(file, "sistema")
    assert not matches_search(file, "pdf docs")
    assert not matches_search(file, "pdf sistema")


def test_empty_listing():
    result = empty_listing()

    assert result["files"] == []
    assert result["setupRequired"] is True


def test_normalize_prefix():
    assert normalize_prefix(" /a/b/ ") == "a/b"
    assert normalize_prefix(None) == ""
