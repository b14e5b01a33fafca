from __future__ import annotations

import logging
from typing import Callable

from app.schemas.conflict import MutationResult
from app.schemas.timetable import CellRef, EmptySlot, MutationMode, SessionFields, SessionRow, TimetableGrid
from app.services.conflict_service import analyze_grid, version_summary
from app.services.grid import add_room, move_cell, session_cell, set_cell
from app.services.version_store import VersionStore

logger = logging.getLogger(__name__)


class TimetableMutationService:
    """Read-modify-write edits against the latest timetable version.

    Each call loads the latest grid (or an empty one), applies the change to
    a copy, analyzes the copy, and persists it either as a new version or
    over the version it was read from. Conflicts never block the write.
    In-place writes are refused when the version moved after it was read.
    """

    def __init__(self, store: VersionStore, default_mode: MutationMode = "new_version") -> None:
        self.store = store
        self.default_mode = default_mode

    def add_room(self, room: str, mode: MutationMode | None = None) -> MutationResult:
        return self._apply("add_room", mode, lambda grid: add_room(grid, room))

    def update_session(self, ref: CellRef, fields: SessionFields, mode: MutationMode | None = None) -> MutationResult:
        return self._apply("update_session", mode, lambda grid: set_cell(grid, ref, session_cell(fields)))

    def delete_session(self, ref: CellRef, mode: MutationMode | None = None) -> MutationResult:
        return self._apply("delete_session", mode, lambda grid: set_cell(grid, ref, EmptySlot()))

    def move_session(self, source: CellRef, target: CellRef, mode: MutationMode | None = None) -> MutationResult:
        return self._apply("move_session", mode, lambda grid: move_cell(grid, source, target))

    def apply_rows(self, rows: list[SessionRow], mode: MutationMode | None = None) -> MutationResult:
        def apply_all(grid: TimetableGrid) -> TimetableGrid:
            for row in rows:
                grid = set_cell(grid, row, session_cell(row))
            return grid

        return self._apply("apply_rows", mode, apply_all)

    def _apply(
        self,
        operation: str,
        mode: MutationMode | None,
        change: Callable[[TimetableGrid], TimetableGrid],
    ) -> MutationResult:
        resolved_mode = mode or self.default_mode
        revision = None
        if resolved_mode == "in_place":
            base_version, revision, grid = self.store.load_latest_for_update()
        else:
            base_version, grid = self.store.load_latest()
        if base_version is None:
            resolved_mode = "new_version"

        grid = change(grid)
        analysis = analyze_grid(grid)
        summary = version_summary(analysis)
        if resolved_mode == "in_place":
            version_number = self.store.overwrite(base_version, grid, summary, expected_revision=revision)
        else:
            version_number = self.store.save(grid, summary)

        logger.info(
            "TIMETABLE MUTATION | operation=%s | base=%s | version=%s | mode=%s | conflicts=%s",
            operation,
            base_version,
            version_number,
            resolved_mode,
            len(analysis.conflicts),
        )
        return MutationResult(
            version_number=version_number,
            mode=resolved_mode,
            grid=grid,
            conflicts=analysis.conflicts,
            stats=analysis.stats,
        )
