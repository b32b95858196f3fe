"""Flat-file JSON key-value store for the processing ledger.

Each key is one ``<key>.json`` file under a root directory, e.g.
``data/metadata/processed_files.json``.  Writes go to a temporary file in
the same directory and are swapped in with :func:`os.replace`, so a crash
mid-write never leaves a half-written ledger file behind.

If the configured root cannot be created or written, the store falls back
to a directory under the system temp dir and reports ``is_persistent ==
False``.  Data written there does not survive a restart; the fallback is
logged as a warning and surfaced by the CLI status command and the API
health endpoint.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any

import structlog

from src.interfaces.key_value_store import IKeyValueStore
from src.utils.errors import LedgerError

logger = structlog.get_logger(logger_name=__name__)

_FALLBACK_DIR_NAME = "knowledge-assistant-metadata"


class JsonFileStore(IKeyValueStore):
    """Key-value store writing one JSON document per key.

    Parameters
    ----------
    root:
        Directory that holds the ``<key>.json`` files.  Created on demand.
    """

    def __init__(self, root: str | Path) -> None:
        self._root, self._persistent = self._resolve_root(Path(root))

    # ------------------------------------------------------------------
    # IKeyValueStore implementation
    # ------------------------------------------------------------------

    def read(self, key: str) -> Any | None:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            # Corrupt or unreadable: start fresh rather than fail the run.
            logger.warning("ledger_file_corrupt", path=str(path), error=str(exc))
            return None

    def write(self, key: str, value: Any) -> None:
        path = self._path(key)
        try:
            fd, tmp_name = tempfile.mkstemp(prefix=f".{key}.", suffix=".tmp", dir=self._root)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    json.dump(value, handle, indent=2, default=str)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise LedgerError(
                message=f"Could not write {path}: {exc}",
                provider_name="json_file_store",
            ) from exc

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)

    @property
    def location(self) -> str:
        return str(self._root)

    @property
    def is_persistent(self) -> bool:
        return self._persistent

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _path(self, key: str) -> Path:
        return self._root / f"{key}.json"

    @staticmethod
    def _resolve_root(root: Path) -> tuple[Path, bool]:
        """Return a writable root and whether it is the configured (durable) one."""
        try:
            root.mkdir(parents=True, exist_ok=True)
            probe = tempfile.NamedTemporaryFile(dir=root, prefix=".probe.", delete=True)
            probe.close()
            return root, True
        except OSError as exc:
            fallback = Path(tempfile.gettempdir()) / _FALLBACK_DIR_NAME
            fallback.mkdir(parents=True, exist_ok=True)
            logger.warning(
                "ledger_storage_degraded",
                configured=str(root),
                fallback=str(fallback),
                error=str(exc),
                msg="Ledger data will not survive a restart.",
            )
            return fallback, False
