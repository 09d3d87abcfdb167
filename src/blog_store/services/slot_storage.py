"""Durable slot storage for the content repository.

A slot is a named, independently readable and writable payload. The
repository keeps each collection in its own slot as a JSON array of
records with camelCase field names and ISO-8601 timestamps.
"""

from __future__ import annotations

import json
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError

from blog_store.utils.logging import get_logger

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class BlogStoreError(Exception):
    """Base class for content repository errors."""


class DeserializationFailed(BlogStoreError):
    """Raised when a stored slot cannot be decoded into its collection."""

    def __init__(self, slot: str, reason: str) -> None:
        super().__init__(f"Slot '{slot}' could not be loaded: {reason}")
        self.slot = slot
        self.reason = reason


class PersistenceWriteFailed(BlogStoreError):
    """Raised when a slot could not be written.

    The in-memory mutation that triggered the write has already been
    applied and is kept.
    """

    def __init__(self, slot: str, reason: str, *, entity_id: str | None = None) -> None:
        super().__init__(f"Slot '{slot}' could not be written: {reason}")
        self.slot = slot
        self.reason = reason
        self.entity_id = entity_id


class SlotStorage(ABC):
    """Key-value store holding one serialized payload per slot name."""

    @abstractmethod
    def read(self, name: str) -> str | None:
        """Return the stored payload, or None if the slot was never written."""

    @abstractmethod
    def write(self, name: str, payload: str) -> None:
        """Replace the slot payload. Raises PersistenceWriteFailed on failure."""


class InMemorySlotStorage(SlotStorage):
    """Slot storage kept in a dict, for tests and embedded hosts."""

    def __init__(self, slots: dict[str, str] | None = None):
        self.slots: dict[str, str] = dict(slots or {})

    def read(self, name: str) -> str | None:
        return self.slots.get(name)

    def write(self, name: str, payload: str) -> None:
        self.slots[name] = payload


class JsonFileSlotStorage(SlotStorage):
    """Slot storage with one JSON file per slot under a directory."""

    def __init__(self, directory: Path, prefix: str = "blog-"):
        self.directory = Path(directory)
        self.prefix = prefix

    def path_for(self, name: str) -> Path:
        return self.directory / f"{self.prefix}{name}.json"

    def read(self, name: str) -> str | None:
        path = self.path_for(name)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise DeserializationFailed(name, str(exc)) from exc

    def write(self, name: str, payload: str) -> None:
        path = self.path_for(name)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            # Readers only ever see a complete slot: temp file, then rename
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(payload)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise PersistenceWriteFailed(name, str(exc)) from exc
        logger.debug("Wrote slot %s (%d bytes)", name, len(payload))


def encode_collection(records: list[BaseModel]) -> str:
    """Serialize a collection to the slot payload format."""
    data: list[dict[str, Any]] = [
        record.model_dump(mode="json", by_alias=True) for record in records
    ]
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def decode_collection(slot: str, payload: str, model: type[ModelT]) -> list[ModelT]:
    """Parse a slot payload back into model instances.

    Raises DeserializationFailed if the payload is not a JSON array of
    valid records.
    """
    try:
        data = json.loads(payload)
    except ValueError as exc:
        raise DeserializationFailed(slot, f"invalid JSON ({exc})") from exc
    if not isinstance(data, list):
        raise DeserializationFailed(slot, f"expected a list, got {type(data).__name__}")
    try:
        return TypeAdapter(list[model]).validate_python(data)
    except ValidationError as exc:
        raise DeserializationFailed(slot, f"{exc.error_count()} invalid record field(s)") from exc
