"""Canvas registry over the data directory.

Directory Structure:
    data/
    ├── 3f2a9c.../        # one directory per canvas (see canvas.store)
    └── 8b41d0.../
"""

import logging
import re
import shutil
import uuid
from pathlib import Path

from slc_advisor.canvas.aggregate import CanvasAggregate
from slc_advisor.canvas.store import CanvasMeta, CanvasMetaStore
from slc_advisor.config import DEFAULT_CANVAS_NAME
from slc_advisor.errors import CanvasNotFoundError

logger = logging.getLogger(__name__)

_CANVAS_ID_RE = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


class CanvasRepository:
    """Creates, opens and lists canvases under one data directory.

    Args:
        data_dir: Root directory; created on first use.
    """

    def __init__(self, data_dir: Path) -> None:
        self.data_dir = Path(data_dir)

    def _canvas_dir(self, canvas_id: str) -> Path:
        if not _CANVAS_ID_RE.match(canvas_id):
            raise CanvasNotFoundError(f"Invalid canvas id: {canvas_id!r}")
        return self.data_dir / canvas_id

    def create(self, name: str = DEFAULT_CANVAS_NAME) -> CanvasAggregate:
        canvas_id = uuid.uuid4().hex
        canvas_dir = self.data_dir / canvas_id
        canvas_dir.mkdir(parents=True)
        aggregate = CanvasAggregate(canvas_dir)
        aggregate.initialize(canvas_id, name.strip() or DEFAULT_CANVAS_NAME)
        return aggregate

    def open(self, canvas_id: str) -> CanvasAggregate:
        """Open an existing canvas.

        Raises:
            CanvasNotFoundError: If no canvas with this id exists.
        """
        canvas_dir = self._canvas_dir(canvas_id)
        if not CanvasMetaStore(canvas_dir).exists():
            raise CanvasNotFoundError(f"Canvas not found: {canvas_id}")
        return CanvasAggregate(canvas_dir)

    def exists(self, canvas_id: str) -> bool:
        try:
            return CanvasMetaStore(self._canvas_dir(canvas_id)).exists()
        except CanvasNotFoundError:
            return False

    def list_canvases(self, include_archived: bool = False) -> list[CanvasMeta]:
        """Canvas metadata, starred first, then most recently updated."""
        if not self.data_dir.exists():
            return []

        canvases = []
        for path in self.data_dir.iterdir():
            store = CanvasMetaStore(path)
            if not path.is_dir() or not store.exists():
                continue
            meta = store.load()
            if meta.archived and not include_archived:
                continue
            canvases.append(meta)

        canvases.sort(key=lambda m: m.updated_at or "", reverse=True)
        canvases.sort(key=lambda m: not m.starred)
        return canvases

    def rename(self, canvas_id: str, name: str) -> CanvasMeta:
        name = name.strip()
        if not name:
            raise ValueError("Canvas name cannot be empty")
        return self.open(canvas_id).meta.update(name=name)

    def set_starred(self, canvas_id: str, starred: bool) -> CanvasMeta:
        return self.open(canvas_id).meta.update(starred=starred)

    def set_archived(self, canvas_id: str, archived: bool) -> CanvasMeta:
        return self.open(canvas_id).meta.update(archived=archived)

    def delete(self, canvas_id: str) -> None:
        aggregate = self.open(canvas_id)
        shutil.rmtree(aggregate.canvas_dir)
        logger.info(f"Deleted canvas {canvas_id}")
