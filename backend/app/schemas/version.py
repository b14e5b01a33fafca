from datetime import datetime

from pydantic import BaseModel

from app.schemas.conflict import TimetableConflict, TimetableStats
from app.schemas.timetable import TimetableGrid


class TimetableVersionOut(BaseModel):
    version_number: int
    summary: dict
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class TimetableVersionList(BaseModel):
    versions: list[TimetableVersionOut]
    latest_version: int | None
    selected_version: int | None


class TimetableVersionDetail(BaseModel):
    version_number: int
    is_selected: bool
    is_latest: bool
    grid: TimetableGrid
    conflicts: list[TimetableConflict]
    stats: TimetableStats


class FinalizeVersionOut(BaseModel):
    success: bool = True
    version_number: int


class TimetableVersionCompare(BaseModel):
    from_version: int
    to_version: int
    added_slots: int
    removed_slots: int
    changed_slots: int


class CurrentTimetableOut(BaseModel):
    version_number: int | None
    grid: TimetableGrid
    conflicts: list[TimetableConflict]
    stats: TimetableStats
