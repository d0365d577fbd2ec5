"""Runtime helpers for tracking how often functions execute in production."""

from __future__ import annotations

import atexit
import json
import os
import threading
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Dict, Optional

_DEFAULT_FILE = Path(__file__).resolve().parent / "function_call_counts.json"


class CallCounter:
    """Thread-safe per-name counter, flushed to a JSON file in batches.

    Existing counts in ``path`` are loaded on start so totals accumulate
    across runs. With ``persist`` off the counts live only in memory.
    """

    def __init__(self, path: Path, *, persist: bool = True, flush_every: int = 50) -> None:
        self.path = path
        self.persist = persist
        self.flush_every = max(1, flush_every)
        self._lock = threading.RLock()
        self._counts: Dict[str, int] = {}
        self._unflushed = 0
        if persist:
            self._counts.update(self._read_file())

    def hit(self, name: str) -> None:
        if not name:
            return
        with self._lock:
            self._counts[name] = self._counts.get(name, 0) + 1
            self._unflushed += 1
            if self._unflushed >= self.flush_every:
                self._flush_locked()

    def snapshot(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._counts)

    def clear(self) -> None:
        with self._lock:
            self._counts.clear()
            self._unflushed = 0

    def flush(self) -> None:
        with self._lock:
            self._flush_locked()

    def _read_file(self) -> Dict[str, int]:
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (OSError, ValueError):
            return {}
        if not isinstance(data, dict):
            return {}

        loaded: Dict[str, int] = {}
        for name, raw in data.items():
            try:
                loaded[str(name)] = max(int(raw), 0)
            except (TypeError, ValueError):
                continue
        return loaded

    def _flush_locked(self) -> None:
        self._unflushed = 0
        if not self.persist:
            return

        # Write to a sibling temp file and swap it in, so readers never see half a file.
        tmp_path: Optional[Path] = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with NamedTemporaryFile("w", encoding="utf-8", dir=self.path.parent, delete=False) as handle:
                tmp_path = Path(handle.name)
                json.dump(self._counts, handle, sort_keys=True, indent=0)
            tmp_path.replace(self.path)
        except OSError:
            if tmp_path is not None:
                try:
                    tmp_path.unlink()
                except OSError:
                    pass


_COUNTER = CallCounter(
    Path(os.getenv("TRACKING_FILE") or _DEFAULT_FILE),
    persist=os.getenv("TRACKING_DISABLED", "").strip().lower() not in {"1", "true", "yes", "on"},
)
atexit.register(_COUNTER.flush)


def t(func_name: str) -> None:
    """Record the provided function name each time it runs."""
    _COUNTER.hit(func_name)


def counts() -> Dict[str, int]:
    """Return a copy of the current call counts."""
    return _COUNTER.snapshot()


def reset() -> None:
    """Forget every recorded count (the persisted file is left untouched)."""
    _COUNTER.clear()
