"""JSON document store (fcntl.flock + atomic write).

Documents are addressed by slash-separated keys such as ``"progression"`` or
``"chat_sessions/chat_123"`` and live under ``<root>/<key>.json``. Missing or
unparsable documents are replaced by their default shape instead of raising.
"""

import copy
import fcntl
import json
import os
import re
import tempfile
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any, TypeVar

import structlog
from pydantic import BaseModel

from learner_memory.errors import InvalidRequestError

logger = structlog.get_logger()

M = TypeVar("M", bound=BaseModel)

_KEY_SEGMENT = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.\-]*$")


class DocumentStore:
    """Read/write named JSON documents and document collections.

    Writes are full overwrites. ``locked(key)`` serializes read-modify-write
    cycles on one key across threads and processes.

    Args:
        root: Directory holding every document.
    """

    def __init__(self, root: Path):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def path_for(self, key: str) -> Path:
        segments = key.split("/")
        if not all(_KEY_SEGMENT.match(s) and s not in (".", "..") for s in segments):
            raise InvalidRequestError(f"Invalid document key: {key!r}")
        return self.root.joinpath(*segments[:-1]) / f"{segments[-1]}.json"

    def exists(self, key: str) -> bool:
        return self.path_for(key).exists()

    # ── raw JSON ──

    def read(self, key: str, default: Any) -> Any:
        """Return the stored document, or persist and return ``default``."""
        path = self.path_for(key)
        if path.exists():
            try:
                with open(path, encoding="utf-8") as f:
                    return json.load(f)
            except (OSError, ValueError) as e:
                logger.warning("document_corrupt", key=key, error=str(e))
        else:
            logger.info("document_missing", key=key)
        value = copy.deepcopy(default)
        self.write(key, value)
        logger.info("document_reset", key=key)
        return copy.deepcopy(default)

    def write(self, key: str, document: Any) -> None:
        path = self.path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w", dir=path.parent, delete=False, suffix=".tmp", encoding="utf-8"
        ) as tmp:
            json.dump(document, tmp, indent=2, ensure_ascii=False, default=str)
        os.replace(tmp.name, path)
        logger.debug("document_written", key=key)

    # ── typed documents ──

    def load(
        self,
        key: str,
        model_type: type[M],
        default_factory: Callable[[], M] | None = None,
    ) -> M | None:
        """Load a document as ``model_type``.

        A missing, unparsable or schema-invalid document is treated as absent:
        the default (if any) is written back and returned, otherwise None.
        """
        path = self.path_for(key)
        if path.exists():
            try:
                return model_type.model_validate_json(path.read_text(encoding="utf-8"))
            except (OSError, ValueError) as e:
                logger.warning("document_corrupt", key=key, error=str(e))
        if default_factory is None:
            return None
        model = default_factory()
        self.save(key, model)
        logger.info("document_reset", key=key)
        return model

    def save(self, key: str, model: BaseModel) -> None:
        self.write(key, model.model_dump(mode="json", by_alias=True))

    @contextmanager
    def locked(self, key: str) -> Iterator[None]:
        """Hold the per-key write lock for a read-modify-write cycle."""
        path = self.path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        with self._locks_guard:
            lock = self._locks.setdefault(key, threading.Lock())
        with lock:
            lock_path = path.with_suffix(".lock")
            with open(lock_path, "w") as lock_file:
                fcntl.flock(lock_file, fcntl.LOCK_EX)
                try:
                    yield
                finally:
                    fcntl.flock(lock_file, fcntl.LOCK_UN)

    def update(
        self,
        key: str,
        model_type: type[M],
        default_factory: Callable[[], M],
        mutate: Callable[[M], None],
    ) -> M:
        """Load, mutate and save one document while holding its lock."""
        with self.locked(key):
            model = self.load(key, model_type, default_factory)
            mutate(model)
            self.save(key, model)
        return model

    # ── collections ──

    def keys(self, prefix: str) -> list[str]:
        directory = self.root / prefix
        if not directory.is_dir():
            return []
        return sorted(f"{prefix}/{p.stem}" for p in directory.glob("*.json"))

    def delete(self, key: str) -> bool:
        path = self.path_for(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        path.with_suffix(".lock").unlink(missing_ok=True)
        logger.info("document_deleted", key=key)
        return True

    def clear(self, prefix: str) -> int:
        count = 0
        for key in self.keys(prefix):
            if self.delete(key):
                count += 1
        logger.info("collection_cleared", prefix=prefix, count=count)
        return count
