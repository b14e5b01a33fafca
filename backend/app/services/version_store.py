from __future__ import annotations

import logging

from pydantic import ValidationError
from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import (
    InvalidArgumentError,
    PersistenceError,
    ResourceNotFoundError,
    VersionConflictError,
)
from app.models.timetable import SELECTED_VERSION_ROW_ID, SelectedVersion
from app.models.timetable_version import TimetableVersion
from app.schemas.timetable import TimetableGrid
from app.schemas.version import TimetableVersionCompare
from app.services.grid import empty_grid, slot_fingerprints

logger = logging.getLogger(__name__)


def parse_version_number(value: object) -> int:
    if isinstance(value, bool):
        raise InvalidArgumentError("Invalid version number", details={"version": str(value)})
    if isinstance(value, int):
        number = value
    else:
        raw = str(value).strip() if value is not None else ""
        # str.isdigit also accepts digits such as "²" that int() rejects.
        if not (raw.isascii() and raw.isdigit()):
            raise InvalidArgumentError("Invalid version number", details={"version": raw})
        number = int(raw)
    if number <= 0:
        raise InvalidArgumentError("Version number must be positive", details={"version": str(value)})
    return number


class VersionStore:
    """Numbered timetable snapshots plus the single selected-version pointer.

    Every write is one transaction on ``db``: it either commits fully or is
    rolled back and reported as :class:`PersistenceError`. Version numbers
    come from the table's identity column, never from reading the current
    maximum.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def list_records(self) -> list[TimetableVersion]:
        try:
            return list(
                self.db.execute(
                    select(TimetableVersion).order_by(TimetableVersion.version_number.asc())
                ).scalars()
            )
        except SQLAlchemyError as exc:
            raise self._failure("list", exc) from exc

    def list_versions(self) -> list[int]:
        return [record.version_number for record in self.list_records()]

    def latest_version(self) -> int | None:
        try:
            return self.db.execute(select(func.max(TimetableVersion.version_number))).scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise self._failure("latest", exc) from exc

    def selected_version(self) -> int | None:
        try:
            record = self.db.get(SelectedVersion, SELECTED_VERSION_ROW_ID)
        except SQLAlchemyError as exc:
            raise self._failure("selected", exc) from exc
        return record.version_number if record is not None else None

    def load(self, version: object) -> TimetableGrid:
        version_number = parse_version_number(version)
        try:
            record = self.db.get(TimetableVersion, version_number)
        except SQLAlchemyError as exc:
            raise self._failure("load", exc, version=version_number) from exc
        if record is None:
            raise ResourceNotFoundError("Version", str(version_number))
        return self._grid_from(record)

    def load_latest(self) -> tuple[int | None, TimetableGrid]:
        latest = self.latest_version()
        if latest is None:
            return None, empty_grid()
        return latest, self.load(latest)

    def load_latest_for_update(self) -> tuple[int | None, int | None, TimetableGrid]:
        """Read the latest version for an in-place edit.

        Returns ``(version_number, revision, grid)``. The row stays locked
        until the session commits or rolls back; the revision lets
        :meth:`overwrite` detect writes made by other sessions in between.
        """
        try:
            record = self.db.execute(
                select(TimetableVersion)
                .order_by(TimetableVersion.version_number.desc())
                .limit(1)
                .with_for_update()
                .execution_options(populate_existing=True)
            ).scalar_one_or_none()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise self._failure("load_latest", exc) from exc
        if record is None:
            return None, None, empty_grid()
        return record.version_number, record.revision, self._grid_from(record)

    def save(self, grid: TimetableGrid, summary: dict | None = None) -> int:
        record = TimetableVersion(payload=grid.model_dump(mode="json"), summary=summary or {})
        try:
            self.db.add(record)
            self.db.flush()
            version_number = record.version_number
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise self._failure("save", exc) from exc
        logger.info("TIMETABLE VERSION SAVED | version=%s", version_number)
        return version_number

    def overwrite(
        self,
        version: object,
        grid: TimetableGrid,
        summary: dict | None = None,
        expected_revision: int | None = None,
    ) -> int:
        """Replace the whole snapshot of ``version`` in one UPDATE.

        With ``expected_revision`` the write is a read-modify-write edit: it
        is refused with :class:`VersionConflictError` when ``version`` is no
        longer the latest version or its revision moved since it was read.
        """
        version_number = parse_version_number(version)
        statement = update(TimetableVersion).where(TimetableVersion.version_number == version_number)
        if expected_revision is not None:
            statement = statement.where(TimetableVersion.revision == expected_revision)
        statement = statement.values(
            payload=grid.model_dump(mode="json"),
            summary=summary or {},
            revision=TimetableVersion.revision + 1,
            updated_at=func.now(),
        ).execution_options(synchronize_session=False)
        try:
            if expected_revision is not None:
                latest = self.db.execute(select(func.max(TimetableVersion.version_number))).scalar_one_or_none()
                if latest is not None and latest != version_number:
                    self.db.rollback()
                    raise VersionConflictError(
                        version_number,
                        f"Version {version_number} is no longer the latest version",
                        details={"latest_version": latest},
                    )
            result = self.db.execute(statement)
            if result.rowcount == 0:
                exists = self.db.execute(
                    select(TimetableVersion.version_number).where(TimetableVersion.version_number == version_number)
                ).scalar_one_or_none()
                self.db.rollback()
                if exists is None:
                    raise ResourceNotFoundError("Version", str(version_number))
                raise VersionConflictError(
                    version_number,
                    f"Version {version_number} was modified by another edit",
                    details={"expected_revision": expected_revision},
                )
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise self._failure("overwrite", exc, version=version_number) from exc
        logger.info("TIMETABLE VERSION OVERWRITTEN | version=%s", version_number)
        return version_number

    def finalize(self, version: object) -> int:
        version_number = parse_version_number(version)
        try:
            # Lock order (version row, then pointer row) matches delete().
            exists = self.db.execute(
                select(TimetableVersion.version_number)
                .where(TimetableVersion.version_number == version_number)
                .with_for_update()
            ).scalar_one_or_none()
            if exists is None:
                self.db.rollback()
                raise ResourceNotFoundError("Version", str(version_number))
            pointer = self._pointer_row()
            previous = pointer.version_number
            pointer.version_number = version_number
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise self._failure("finalize", exc, version=version_number) from exc
        logger.info("TIMETABLE VERSION FINALIZED | version=%s | previous=%s", version_number, previous)
        return version_number

    def delete(self, version: object) -> None:
        version_number = parse_version_number(version)
        try:
            exists = self.db.execute(
                select(TimetableVersion.version_number)
                .where(TimetableVersion.version_number == version_number)
                .with_for_update()
            ).scalar_one_or_none()
            if exists is None:
                self.db.rollback()
                raise ResourceNotFoundError("Version", str(version_number))
            pointer = self._pointer_row()
            if pointer.version_number == version_number:
                self.db.rollback()
                raise InvalidArgumentError(
                    f"Version {version_number} is the selected version and cannot be deleted",
                    details={"version": version_number},
                )
            self.db.execute(delete(TimetableVersion).where(TimetableVersion.version_number == version_number))
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise self._failure("delete", exc, version=version_number) from exc
        logger.info("TIMETABLE VERSION DELETED | version=%s", version_number)

    def compare(self, from_version: object, to_version: object) -> TimetableVersionCompare:
        from_number = parse_version_number(from_version)
        to_number = parse_version_number(to_version)
        from_slots = slot_fingerprints(self.load(from_number))
        to_slots = slot_fingerprints(self.load(to_number))

        added = to_slots - from_slots
        removed = from_slots - to_slots
        # A cell whose session was replaced shows up once on each side.
        changed = len({key[:3] for key in added} & {key[:3] for key in removed})

        return TimetableVersionCompare(
            from_version=from_number,
            to_version=to_number,
            added_slots=len(added) - changed,
            removed_slots=len(removed) - changed,
            changed_slots=changed,
        )

    def _pointer_row(self) -> SelectedVersion:
        pointer = self.db.execute(
            select(SelectedVersion).where(SelectedVersion.id == SELECTED_VERSION_ROW_ID).with_for_update()
        ).scalar_one_or_none()
        if pointer is None:
            pointer = SelectedVersion(id=SELECTED_VERSION_ROW_ID, version_number=None)
            self.db.add(pointer)
            self.db.flush()
        return pointer

    def _failure(self, operation: str, exc: SQLAlchemyError, version: int | None = None) -> PersistenceError:
        logger.exception("TIMETABLE STORE FAILURE | operation=%s | version=%s", operation, version)
        return PersistenceError(
            f"Timetable store could not complete {operation}",
            details={"operation": operation, "version": version, "error": exc.__class__.__name__},
        )

    def _grid_from(self, record: TimetableVersion) -> TimetableGrid:
        try:
            return TimetableGrid.model_validate(record.payload)
        except ValidationError as exc:
            logger.exception("TIMETABLE SNAPSHOT INVALID | version=%s", record.version_number)
            raise PersistenceError(
                f"Stored snapshot for version {record.version_number} is unreadable",
                details={"version": record.version_number},
            ) from exc
