"""File-backed canvas stores.

Each canvas owns a directory holding one file per store:

    <data_dir>/<canvas_id>/
    ├── canvas.yaml      # name, timestamps, current section, flags
    ├── sections.json    # ten section rows keyed by section id
    ├── impact.json      # the impact chain row
    └── venture.json     # the venture profile row

Writes are per-field read-modify-write cycles under a per-store lock, so two
writes to different fields never lose each other and two writes to the same
field resolve last-write-wins. Files are replaced atomically.
"""

import json
import logging
import os
import tempfile
import threading
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, ClassVar

import yaml
from pydantic import ValidationError
from pydantic.alias_generators import to_snake

from slc_advisor.canvas.models import ImpactChain, VentureProfile
from slc_advisor.canvas.sections import IMPACT_FIELDS, STORED_SECTIONS
from slc_advisor.config import DEFAULT_CANVAS_NAME
from slc_advisor.errors import StoreCorruptedError

logger = logging.getLogger(__name__)


def utc_now() -> str:
    """Current UTC time as an ISO string with a trailing Z."""
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


def _atomic_write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class _JsonStore:
    """Base class for a single JSON file under a canvas directory."""

    FILENAME: ClassVar[str] = ""

    def __init__(self, canvas_dir: Path) -> None:
        self.canvas_dir = canvas_dir
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self.canvas_dir / self.FILENAME

    def _read(self) -> dict[str, Any]:
        """Read the file. Caller must hold self._lock."""
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise StoreCorruptedError(f"Corrupted {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise StoreCorruptedError(f"Corrupted {self.path}: expected an object")
        return data

    def _write(self, data: dict[str, Any]) -> None:
        """Write the file. Caller must hold self._lock."""
        _atomic_write(self.path, json.dumps(data, indent=2))


# =============================================================================
# Sections
# =============================================================================


class SectionStore(_JsonStore):
    """The ten section rows (every canvas section except ``impact``)."""

    FILENAME = "sections.json"

    def initialize(self) -> None:
        now = utc_now()
        with self._lock:
            rows = self._read()
            for key in STORED_SECTIONS:
                rows.setdefault(key, {"content": "", "updatedAt": now})
            self._write(rows)

    def rows(self) -> dict[str, dict[str, Any]]:
        """All rows in display order, defaulting absent ones to empty."""
        with self._lock:
            stored = self._read()
        return {key: stored.get(key, {"content": "", "updatedAt": None}) for key in STORED_SECTIONS}

    def contents(self) -> dict[str, str]:
        return {key: row.get("content", "") for key, row in self.rows().items()}

    def write(self, key: str, content: str) -> str:
        """Upsert one section and return its new timestamp."""
        if key not in STORED_SECTIONS:
            raise ValueError(f"Not a stored section: {key}")
        now = utc_now()
        with self._lock:
            rows = self._read()
            rows[key] = {"content": content, "updatedAt": now}
            self._write(rows)
        logger.debug(f"Section '{key}' written ({len(content)} chars)")
        return now


# =============================================================================
# Impact chain
# =============================================================================


class ImpactChainStore(_JsonStore):
    """The single impact chain row."""

    FILENAME = "impact.json"

    def initialize(self) -> None:
        with self._lock:
            if not self.path.exists():
                self._write(ImpactChain(updated_at=utc_now()).to_wire())

    def load(self) -> ImpactChain:
        with self._lock:
            data = self._read()
        try:
            return ImpactChain.model_validate(data)
        except ValidationError as e:
            raise StoreCorruptedError(f"Corrupted {self.path}: {e}") from e

    def contents(self) -> dict[str, str]:
        return self.load().as_field_map()

    def write(self, key: str, content: str) -> str:
        if key not in IMPACT_FIELDS:
            raise ValueError(f"Not an impact field: {key}")
        now = utc_now()
        with self._lock:
            data = self._read()
            data[key] = content
            data["updatedAt"] = now
            self._write(data)
        logger.debug(f"Impact field '{key}' written ({len(content)} chars)")
        return now


# =============================================================================
# Venture profile
# =============================================================================


class VentureProfileStore(_JsonStore):
    """The single venture profile row."""

    FILENAME = "venture.json"

    def initialize(self) -> None:
        now = utc_now()
        with self._lock:
            if not self.path.exists():
                self._write(VentureProfile(created_at=now, updated_at=now).to_wire())

    def load(self) -> VentureProfile:
        with self._lock:
            data = self._read()
        try:
            return VentureProfile.model_validate(data)
        except ValidationError as e:
            raise StoreCorruptedError(f"Corrupted {self.path}: {e}") from e

    def update_dimension(
        self,
        dimension: str,
        value: str | list[str] | None,
        confidence: float | None = None,
        confirmed: bool | None = None,
    ) -> VentureProfile:
        """Set one dimension, optionally with its confidence and confirmation."""
        with self._lock:
            try:
                profile = VentureProfile.model_validate(self._read())
            except ValidationError as e:
                raise StoreCorruptedError(f"Corrupted {self.path}: {e}") from e

            dimensions = profile.dimensions.model_dump()
            dimensions[to_snake(dimension)] = value
            profile.dimensions = type(profile.dimensions).model_validate(dimensions)
            if confidence is not None:
                profile.confidence[dimension] = confidence
            if confirmed is not None:
                profile.confirmed[dimension] = confirmed
            profile.updated_at = utc_now()

            self._write(profile.to_wire())
        return profile


# =============================================================================
# Canvas metadata
# =============================================================================


@dataclass
class CanvasMeta:
    """Canvas-level metadata stored in canvas.yaml."""

    id: str
    name: str = DEFAULT_CANVAS_NAME
    created_at: str | None = None
    updated_at: str | None = None
    current_section: str | None = None
    starred: bool = False
    archived: bool = False


class CanvasMetaStore:
    """Reads and writes canvas.yaml."""

    FILENAME = "canvas.yaml"

    def __init__(self, canvas_dir: Path) -> None:
        self.canvas_dir = canvas_dir
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self.canvas_dir / self.FILENAME

    def exists(self) -> bool:
        return self.path.exists()

    def _read(self) -> CanvasMeta:
        """Read canvas.yaml. Caller must hold self._lock."""
        try:
            data = yaml.safe_load(self.path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as e:
            raise StoreCorruptedError(f"Corrupted {self.path}: {e}") from e
        try:
            return CanvasMeta(**data)
        except TypeError as e:
            raise StoreCorruptedError(f"Corrupted {self.path}: {e}") from e

    def _write(self, meta: CanvasMeta) -> None:
        """Write canvas.yaml. Caller must hold self._lock."""
        _atomic_write(self.path, yaml.safe_dump(asdict(meta), sort_keys=False))

    def create(self, canvas_id: str, name: str) -> CanvasMeta:
        now = utc_now()
        meta = CanvasMeta(id=canvas_id, name=name, created_at=now, updated_at=now)
        with self._lock:
            self._write(meta)
        return meta

    def load(self) -> CanvasMeta:
        with self._lock:
            return self._read()

    def update(self, **changes: Any) -> CanvasMeta:
        """Apply field changes and bump updated_at."""
        with self._lock:
            meta = self._read()
            for key, value in changes.items():
                if not hasattr(meta, key):
                    raise AttributeError(f"Unknown canvas metadata field: {key}")
                setattr(meta, key, value)
            meta.updated_at = utc_now()
            self._write(meta)
        return meta

    def touch(self) -> str:
        """Bump updated_at and return it."""
        return self.update().updated_at
