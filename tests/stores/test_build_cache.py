"""Tests for the persistent build cache."""

from __future__ import annotations

from pathlib import Path

from yuibuild.stores import BuildCache
from yuibuild.stores.build_cache import CACHE_FILENAME, directory_fingerprint, file_fingerprint


def test_build_cache_round_trip(tmp_path: Path) -> None:
    cache = BuildCache.for_build_directory(tmp_path)
    cache.store("/app/foo.js", fingerprint="abc", signature="--silent")
    cache.persist()

    assert (tmp_path / CACHE_FILENAME).exists()
    loaded = BuildCache.for_build_directory(tmp_path)
    assert loaded.is_fresh("/app/foo.js", fingerprint="abc", signature="--silent")


def test_build_cache_is_stale_when_content_or_arguments_change(tmp_path: Path) -> None:
    cache = BuildCache(tmp_path / "cache.json")
    cache.store("/app/foo.js", fingerprint="abc", signature="--silent")

    assert not cache.is_fresh("/app/foo.js", fingerprint="def", signature="--silent")
    assert not cache.is_fresh("/app/foo.js", fingerprint="abc", signature="--lint")
    assert not cache.is_fresh("/app/bar.js", fingerprint="abc", signature="--silent")


def test_build_cache_prune_reports_removed_keys(tmp_path: Path) -> None:
    cache = BuildCache(tmp_path / "cache.json")
    for key in ("a", "b", "c"):
        cache.store(key, fingerprint="1", signature="s")

    assert cache.prune(["a", "b"]) == ["c"]
    assert cache.prune(["a", "b"]) == []
    cache.persist()

    reloaded = BuildCache(tmp_path / "cache.json")
    assert reloaded.keys() == ["a", "b"]
    assert not reloaded.is_fresh("c", fingerprint="1", signature="s")


def test_build_cache_ignores_corrupt_file(tmp_path: Path) -> None:
    path = tmp_path / "cache.json"
    path.write_text("{not json", encoding="utf-8")

    cache = BuildCache(path)

    assert not cache.is_fresh("a", fingerprint="1", signature="s")


def test_file_fingerprint_tracks_content(tmp_path: Path) -> None:
    target = tmp_path / "foo.js"
    target.write_text("one", encoding="utf-8")
    before = file_fingerprint(target)
    target.write_text("two", encoding="utf-8")

    assert before is not None
    assert file_fingerprint(target) != before
    assert file_fingerprint(tmp_path / "missing.js") is None


def test_directory_fingerprint_covers_nested_files(tmp_path: Path) -> None:
    (tmp_path / "js").mkdir()
    (tmp_path / "build").mkdir()
    (tmp_path / "build.json").write_text("{}", encoding="utf-8")
    (tmp_path / "js" / "widget.js").write_text("one", encoding="utf-8")
    before = directory_fingerprint(tmp_path, exclude=[tmp_path / "build"])

    (tmp_path / "build" / "widget.js").write_text("output", encoding="utf-8")
    assert directory_fingerprint(tmp_path, exclude=[tmp_path / "build"]) == before

    (tmp_path / "js" / "widget.js").write_text("two", encoding="utf-8")
    assert directory_fingerprint(tmp_path, exclude=[tmp_path / "build"]) != before
    assert directory_fingerprint(tmp_path / "missing") is None
