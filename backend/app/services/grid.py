from __future__ import annotations

from collections.abc import Iterable, Iterator

from app.core.exceptions import DuplicateRoomError, InvalidArgumentError, ResourceNotFoundError
from app.schemas.timetable import (
    TIME_SLOTS,
    WEEKDAYS,
    CellRef,
    EmptySlot,
    LocatedSession,
    RoomSchedule,
    SessionFields,
    SessionSlot,
    SlotCell,
    TimetableGrid,
    Weekday,
    empty_slots,
)

SESSION_FIELD_NAMES = tuple(SessionFields.model_fields)


def empty_grid() -> TimetableGrid:
    return TimetableGrid(days={day: [] for day in WEEKDAYS})


def slot_index(time: str) -> int:
    try:
        return TIME_SLOTS.index(time)
    except ValueError:
        raise ResourceNotFoundError("Time slot", time) from None


def find_room(grid: TimetableGrid, day: Weekday, room: str) -> RoomSchedule:
    for schedule in grid.days.get(day, []):
        if schedule.room == room:
            return schedule
    raise ResourceNotFoundError("Room", f"{room} on {day.value}")


def get_cell(grid: TimetableGrid, ref: CellRef) -> SlotCell:
    index = slot_index(ref.time)
    return find_room(grid, ref.day, ref.room).slots[index]


def iter_sessions(grid: TimetableGrid, days: Iterable[Weekday] | None = None) -> Iterator[LocatedSession]:
    wanted = set(days) if days is not None else set(WEEKDAYS)
    for day in WEEKDAYS:
        if day not in wanted:
            continue
        for schedule in grid.days.get(day, []):
            for time, cell in zip(TIME_SLOTS, schedule.slots):
                if isinstance(cell, SessionSlot):
                    yield LocatedSession(
                        day=day,
                        room=schedule.room,
                        time=time,
                        **cell.model_dump(include=set(SESSION_FIELD_NAMES)),
                    )


def add_room(grid: TimetableGrid, room: str) -> TimetableGrid:
    """Return a copy of ``grid`` with ``room`` appended to every weekday.

    The room must not exist on any day; the check runs before anything is
    copied so a rejected call never produces a partially extended grid.
    """
    name = room.strip()
    if not name:
        raise InvalidArgumentError("Room name cannot be blank")
    clashes = [day.value for day in WEEKDAYS if any(s.room == name for s in grid.days.get(day, []))]
    if clashes:
        raise DuplicateRoomError(name, clashes)

    updated = grid.model_copy(deep=True)
    for day in WEEKDAYS:
        updated.days.setdefault(day, []).append(RoomSchedule(room=name, slots=empty_slots()))
    return updated


def set_cell(grid: TimetableGrid, ref: CellRef, cell: SlotCell) -> TimetableGrid:
    index = slot_index(ref.time)
    find_room(grid, ref.day, ref.room)
    updated = grid.model_copy(deep=True)
    find_room(updated, ref.day, ref.room).slots[index] = cell
    return updated


def session_cell(fields: SessionFields) -> SlotCell:
    cell = SessionSlot(**fields.model_dump(include=set(SESSION_FIELD_NAMES)))
    return EmptySlot() if cell.is_blank else cell


def move_cell(grid: TimetableGrid, source: CellRef, target: CellRef) -> TimetableGrid:
    """Move the session at ``source`` to ``target``, swapping if both are occupied."""
    source_cell = get_cell(grid, source)
    target_cell = get_cell(grid, target)
    if not isinstance(source_cell, SessionSlot):
        raise InvalidArgumentError(
            "Source cell holds no session",
            details={"day": source.day.value, "room": source.room, "time": source.time},
        )
    if source == target:
        return grid.model_copy(deep=True)

    updated = grid.model_copy(deep=True)
    find_room(updated, source.day, source.room).slots[slot_index(source.time)] = (
        target_cell.model_copy() if isinstance(target_cell, SessionSlot) else EmptySlot()
    )
    find_room(updated, target.day, target.room).slots[slot_index(target.time)] = source_cell.model_copy()
    return updated


def slot_fingerprints(grid: TimetableGrid) -> set[tuple[str, str, str, str, str, str]]:
    return {
        (
            session.day.value,
            session.room,
            session.time,
            session.subject or "",
            session.teacher or "",
            session.section or "",
        )
        for session in iter_sessions(grid)
    }


def list_teachers(grid: TimetableGrid) -> list[str]:
    return sorted({session.teacher for session in iter_sessions(grid) if session.teacher})


def list_sections(grid: TimetableGrid) -> list[str]:
    return sorted({session.section for session in iter_sessions(grid) if session.section})


def sessions_for_teacher(
    grid: TimetableGrid, teacher: str, days: Iterable[Weekday] | None = None
) -> list[LocatedSession]:
    name = teacher.strip()
    return [session for session in iter_sessions(grid, days) if session.teacher == name]


def sessions_for_section(
    grid: TimetableGrid, section: str, days: Iterable[Weekday] | None = None
) -> list[LocatedSession]:
    name = section.strip()
    return [session for session in iter_sessions(grid, days) if session.section == name]
