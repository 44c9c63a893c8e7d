"""Flat JSON document store, one document per content domain."""

from __future__ import annotations

import json
import logging
import os
import stat
import tempfile
import threading
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional

from inedit_cms.errors import BackendUnavailable

logger = logging.getLogger(__name__)

_TOKEN_LOCK = threading.Lock()
_LAST_TOKEN_MS = 0
NEW_DOCUMENT_MODE = 0o644


def new_token(prefix: str) -> str:
    """Return ``<prefix>_<millis>``, strictly increasing within the process.

    Two processes writing the same data directory can still collide.
    """

    global _LAST_TOKEN_MS
    with _TOKEN_LOCK:
        now_ms = int(time.time() * 1000)
        _LAST_TOKEN_MS = max(now_ms, _LAST_TOKEN_MS + 1)
        return f"{prefix}_{_LAST_TOKEN_MS}"


class FileStore:
    """Read and rewrite whole JSON documents under a data directory.

    Domains map to ``<domain>.json``; translation documents are addressed as
    ``translations/<locale>``. A read-mutate-write cycle must go through
    :meth:`transaction`, which serializes writers of the same document within
    this process.
    """

    def __init__(self, data_dir: Path | str):
        self.data_dir = Path(data_dir)
        self._locks: Dict[str, threading.RLock] = {}
        self._locks_guard = threading.Lock()

    def path_for(self, domain: str) -> Path:
        return self.data_dir / f"{domain}.json"

    def read(self, domain: str) -> Optional[Any]:
        """Return the parsed document, or ``None`` if it does not exist yet."""

        path = self.path_for(domain)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.info("Content document %s not available at %s", domain, path)
            return None
        except OSError as exc:
            logger.error("Unable to read content document %s: %s", domain, exc)
            raise BackendUnavailable(f"Document {domain} is unreadable.", domain=domain) from exc

        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.error("Content document %s is not valid JSON: %s", domain, exc)
            raise BackendUnavailable(f"Document {domain} is corrupted.", domain=domain) from exc

    def write(self, domain: str, document: Any) -> bool:
        """Serialize and replace the whole document. Returns ``False`` on failure."""

        path = self.path_for(domain)
        payload = json.dumps(document, ensure_ascii=False, indent=2)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            try:
                mode = stat.S_IMODE(path.stat().st_mode)
            except FileNotFoundError:
                mode = NEW_DOCUMENT_MODE
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(payload)
                os.chmod(tmp_name, mode)
                os.replace(tmp_name, path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as exc:
            logger.error("Unable to write content document %s: %s", domain, exc)
            return False
        return True

    def list_documents(self, folder: str) -> List[str]:
        """Return the document names stored in ``folder`` (e.g. translation locales)."""

        directory = self.data_dir / folder
        if not directory.is_dir():
            return []
        return sorted(entry.stem for entry in directory.glob("*.json"))

    def lock_for(self, domain: str) -> threading.RLock:
        with self._locks_guard:
            lock = self._locks.get(domain)
            if lock is None:
                lock = threading.RLock()
                self._locks[domain] = lock
            return lock

    @contextmanager
    def transaction(self, domain: str, default: Optional[Callable[[], Any]] = None) -> Iterator[Any]:
        """Hold the domain lock across read, in-place mutation and write.

        A missing document is created from ``default`` when given; otherwise
        :class:`BackendUnavailable` is raised. The document is written back
        only if the block exits without an exception.
        """

        with self.lock_for(domain):
            document = self.read(domain)
            if document is None:
                if default is None:
                    raise BackendUnavailable(f"Document {domain} is not available.", domain=domain)
                document = default()
            yield document
            if not self.write(domain, document):
                raise BackendUnavailable(f"Document {domain} could not be saved.", domain=domain)


__all__ = ["FileStore", "NEW_DOCUMENT_MODE", "new_token"]
