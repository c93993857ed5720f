"""Append-only JSON-lines files, one per stream."""

from __future__ import annotations

import json
import os
from logging import getLogger
from typing import TYPE_CHECKING, cast

from clinfold.domain.errors import StorageReadError, StorageWriteError

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

    from clinfold.domain.model.enums import StreamName

log = getLogger(__name__)


class JsonlStore:
    def __init__(self, path: Path) -> None:
        self.path = path

    def append(self, payload: Mapping[str, object]) -> None:
        try:
            line = json.dumps(payload, ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            raise StorageWriteError(f"Payload is not JSON serialisable: {exc}") from exc
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._drop_torn_tail()
            with self.path.open("a", encoding="utf-8") as handle:
                handle.write(line + "\n")
                handle.flush()
                os.fsync(handle.fileno())
        except OSError as exc:
            raise StorageWriteError(f"Could not append to {self.path}: {exc}") from exc

    def _drop_torn_tail(self) -> None:
        """Make sure the next append starts on a fresh line.

        A last line without a newline is kept (and terminated) when it decodes,
        otherwise it is cut off.
        """

        try:
            handle = self.path.open("r+b")
        except FileNotFoundError:
            return
        with handle:
            size = handle.seek(0, os.SEEK_END)
            if size == 0:
                return
            handle.seek(size - 1)
            if handle.read(1) == b"\n":
                return
            handle.seek(0)
            content = handle.read()
            cut = content.rfind(b"\n") + 1
            try:
                json.loads(content[cut:])
            except ValueError:
                log.warning("Truncating torn last line of %s", self.path)
                handle.truncate(cut)
            else:
                handle.write(b"\n")

    def read_all(self) -> list[dict[str, object]]:
        """Re-read the whole file; a missing file is an empty stream."""

        try:
            with self.path.open(encoding="utf-8") as handle:
                lines = handle.readlines()
        except FileNotFoundError:
            return []
        except OSError as exc:
            raise StorageReadError(f"Could not read {self.path}: {exc}") from exc

        payloads: list[dict[str, object]] = []
        for number, line in enumerate(lines, start=1):
            if not line.strip():
                continue
            try:
                loaded = json.loads(line)
            except json.JSONDecodeError as exc:
                if number == len(lines) and not line.endswith("\n"):
                    # interrupted append
                    log.warning("Ignoring torn last line %s:%d", self.path, number)
                    break
                raise StorageReadError(f"{self.path}:{number}: invalid JSON ({exc.msg})") from exc
            if not isinstance(loaded, dict):
                raise StorageReadError(f"{self.path}:{number}: expected a JSON object")
            payloads.append(cast("dict[str, object]", loaded))
        return payloads


class JsonlBackend:
    """Streams live at ``<data_dir>/<stream>.jsonl``."""

    def __init__(self, data_dir: Path) -> None:
        self.data_dir = data_dir

    def open_stream(self, name: StreamName) -> JsonlStore:
        path = self.data_dir / f"{name}.jsonl"
        log.debug("Opening JSONL stream %s at %s", name, path)
        return JsonlStore(path)

    def close(self) -> None:
        return None
