from typing import Literal

from pydantic import BaseModel

from app.schemas.timetable import MutationMode, TimetableGrid, Weekday


class TimetableConflict(BaseModel):
    conflict_type: Literal["teacher_conflict", "subject_section_conflict"]
    day: Weekday
    time: str
    room: str | None = None
    rooms: list[str]
    message: str


class TimetableStats(BaseModel):
    total_slots: int
    scheduled: int
    free: int
    rooms_per_day: dict[Weekday, int]


class GridAnalysis(BaseModel):
    conflicts: list[TimetableConflict]
    stats: TimetableStats


class MutationResult(GridAnalysis):
    version_number: int
    mode: MutationMode
    grid: TimetableGrid
