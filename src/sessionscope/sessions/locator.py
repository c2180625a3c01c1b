"""Session file locator: memoized ID -> path indexes with single-flight builds.

Providers that embed a timestamp and the session ID in rollout filenames
under an unpredictable directory tree are resolved here. The first lookup
for a ``(layout, base_dir)`` pair scans the tree once; concurrent callers
share that scan. A miss triggers a narrow glob for the single ID whose
result is inserted into the live index.
"""

from __future__ import annotations

import glob
import re
import threading
from concurrent.futures import Future
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Generic, Hashable, TypeVar

from sessionscope.config.logging import logger

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class SingleFlight(Generic[K, V]):
    """Coalesce concurrent computations of the same key into one.

    The pending ``Future`` is registered before the work starts, so every
    caller that arrives while the build is running waits on the same
    result. Completed values stay memoized; a failed build is evicted so a
    later call can retry.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._futures: dict[K, Future[V]] = {}
        self.builds = 0

    def get(self, key: K, build: Callable[[], V]) -> V:
        """Return the memoized value for ``key``, building it at most once."""
        with self._lock:
            future = self._futures.get(key)
            owner = future is None
            if future is None:
                future = Future()
                self._futures[key] = future
                self.builds += 1
        if not owner:
            return future.result()
        try:
            value = build()
        except BaseException as exc:
            with self._lock:
                self._futures.pop(key, None)
            future.set_exception(exc)
            raise
        future.set_result(value)
        return value

    def clear(self) -> None:
        """Forget every memoized value."""
        with self._lock:
            self._futures.clear()


@dataclass(frozen=True)
class FileLayout:
    """How one provider names its session files.

    ``pattern`` must define ``date`` and ``session_id`` named groups;
    ``fallback_glob`` is formatted with ``session_id`` for targeted lookups.
    """

    name: str
    pattern: re.Pattern[str]
    fallback_glob: str

    def parse(self, filename: str) -> tuple[str, str] | None:
        """Return ``(date, session_id)`` for a matching filename."""
        match = self.pattern.match(filename)
        if not match:
            return None
        return match.group("date"), match.group("session_id")


def scan_layout(layout: FileLayout, base_dir: Path) -> list[tuple[str, str, Path]]:
    """Recursively list ``(date, session_id, path)`` for files matching ``layout``."""
    if not base_dir.is_dir():
        return []
    found: list[tuple[str, str, Path]] = []
    for path in sorted(base_dir.rglob("*.jsonl")):
        parsed = layout.parse(path.name)
        if parsed:
            found.append((parsed[0], parsed[1], path))
    return found


class SessionLocator:
    """Process-lifetime cache of session file indexes and per-session headers."""

    def __init__(self) -> None:
        self._indexes: SingleFlight[tuple[str, str], dict[str, Path]] = SingleFlight()
        self._memo: SingleFlight[Hashable, object] = SingleFlight()
        self._insert_lock = threading.Lock()

    @property
    def scan_count(self) -> int:
        """Number of directory scans started by this locator."""
        return self._indexes.builds

    def index(self, layout: FileLayout, base_dir: Path) -> dict[str, Path]:
        """Return the memoized ``{session_id: path}`` index for one directory."""
        key = (layout.name, str(base_dir))

        def build() -> dict[str, Path]:
            index = {sid: path for _, sid, path in scan_layout(layout, base_dir)}
            logger.debug(
                "indexed {} {} session file(s) under {}", len(index), layout.name, base_dir
            )
            return index

        return self._indexes.get(key, build)

    def find(self, layout: FileLayout, base_dir: Path, session_id: str) -> Path | None:
        """Resolve a session file, falling back to a targeted glob on a miss."""
        index = self.index(layout, base_dir)
        cached = index.get(session_id)
        if cached is not None:
            return cached
        if not session_id or not base_dir.is_dir():
            return None
        pattern = layout.fallback_glob.format(session_id=glob.escape(session_id))
        for path in sorted(base_dir.glob(pattern)):
            with self._insert_lock:
                index[session_id] = path
            return path
        return None

    def memo(self, key: Hashable, build: Callable[[], V]) -> V:
        """Memoize an arbitrary per-session computation, single-flight."""
        return self._memo.get(key, build)  # type: ignore[return-value]

    def clear(self) -> None:
        """Drop every cached index and memoized value."""
        self._indexes.clear()
        self._memo.clear()


DEFAULT_LOCATOR = SessionLocator()


if __name__ == "__main__":
    from tempfile import TemporaryDirectory

    layout = FileLayout(
        name="demo",
        pattern=re.compile(r"^(?P<date>\d{4}-\d{2}-\d{2})_(?P<session_id>.+)\.jsonl$"),
        fallback_glob="**/*_{session_id}.jsonl",
    )
    with TemporaryDirectory() as tmp_dir:
        base = Path(tmp_dir)
        (base / "2026").mkdir()
        (base / "2026" / "2026-01-02_abc.jsonl").write_text("{}\n", encoding="utf-8")
        locator = SessionLocator()
        assert locator.find(layout, base, "abc") is not None
        (base / "2026" / "2026-01-03_late.jsonl").write_text("{}\n", encoding="utf-8")
        assert locator.find(layout, base, "late") is not None
        assert locator.scan_count == 1
    print("locator: self-test passed")
