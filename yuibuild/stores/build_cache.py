"""Persistent content-hash cache for built module files."""

from __future__ import annotations

from datetime import UTC, datetime
import hashlib
import json
import os
from pathlib import Path
from typing import Dict, Iterable, List, Optional

_CACHE_VERSION = 1

CACHE_FILENAME = ".yuibuild-cache.json"


class BuildCache:
    """Remembers the content fingerprint and arguments of each successful build.

    Entries are keyed by build target path. A target is fresh only while both
    its fingerprint and the shifter argument signature match the stored entry.
    """

    def __init__(self, path: Path | None) -> None:
        self._path = path
        self._entries: Dict[str, Dict[str, object]] = {}
        self._dirty = False
        if self._path is not None:
            self._load(self._path)

    @classmethod
    def for_build_directory(cls, build_directory: str | Path) -> "BuildCache":
        return cls(Path(build_directory) / CACHE_FILENAME)

    def keys(self) -> List[str]:
        return sorted(self._entries)

    def is_fresh(self, key: str, *, fingerprint: str, signature: str) -> bool:
        entry = self._entries.get(key)
        if not entry:
            return False
        return entry.get("fingerprint") == fingerprint and entry.get("signature") == signature

    def store(self, key: str, *, fingerprint: str, signature: str) -> None:
        self._entries[key] = {
            "fingerprint": fingerprint,
            "signature": signature,
            "built_at": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
        }
        self._dirty = True

    def prune(self, keys_to_keep: Iterable[str]) -> List[str]:
        """Drop entries not listed in ``keys_to_keep`` and return their keys."""
        keep = set(keys_to_keep)
        removed = [key for key in self._entries if key not in keep]
        for key in removed:
            del self._entries[key]
        if removed:
            self._dirty = True
        return removed

    def persist(self) -> None:
        if not self._dirty or self._path is None:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(
            json.dumps({"version": _CACHE_VERSION, "entries": self._entries}, indent=2, sort_keys=True),
            encoding="utf-8",
        )
        self._dirty = False

    def _load(self, path: Path) -> None:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            return
        if not isinstance(data, dict) or data.get("version") != _CACHE_VERSION:
            return
        entries = data.get("entries")
        if not isinstance(entries, dict):
            return
        self._entries = {
            key: raw
            for key, raw in entries.items()
            if isinstance(key, str)
            and isinstance(raw, dict)
            and "fingerprint" in raw
            and "signature" in raw
        }


def file_fingerprint(path: str | Path) -> Optional[str]:
    """Return the sha1 of a file's contents, or None when it cannot be read."""
    try:
        data = Path(path).read_bytes()
    except OSError:
        return None
    return hashlib.sha1(data).hexdigest()


def directory_fingerprint(
    directory: str | Path, *, exclude: Iterable[str | Path] = ()
) -> Optional[str]:
    """Hash every file below ``directory`` as sorted ``(relative path, sha1)`` pairs.

    Directories listed in ``exclude`` and hidden directories are not descended
    into. Returns None when ``directory`` does not exist.
    """
    root = os.path.normpath(str(directory))
    if not os.path.isdir(root):
        return None
    skipped = {os.path.normpath(str(path)) for path in exclude}
    pairs: List[tuple[str, str]] = []
    for current, dirnames, filenames in os.walk(root):
        dirnames[:] = [
            name
            for name in dirnames
            if not name.startswith(".")
            and os.path.normpath(os.path.join(current, name)) not in skipped
        ]
        for filename in filenames:
            path = os.path.join(current, filename)
            digest = file_fingerprint(path)
            if digest is not None:
                pairs.append((os.path.relpath(path, root).replace(os.sep, "/"), digest))
    digest = hashlib.sha1()
    for relative, file_digest in sorted(pairs):
        digest.update(f"{relative}\0{file_digest}\n".encode("utf-8"))
    return digest.hexdigest()


__all__ = ["BuildCache", "CACHE_FILENAME", "directory_fingerprint", "file_fingerprint"]
