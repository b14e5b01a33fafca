from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Discriminator, Field, Tag, field_validator


class Weekday(str, Enum):
    monday = "Monday"
    tuesday = "Tuesday"
    wednesday = "Wednesday"
    thursday = "Thursday"
    friday = "Friday"


WEEKDAYS: tuple[Weekday, ...] = tuple(Weekday)

TIME_SLOTS: tuple[str, ...] = (
    "9:30-10:30",
    "10:30-11:30",
    "11:30-12:30",
    "12:30-1:30",
    "1:30-2:30",
    "2:30-3:30",
    "3:30-4:30",
)

MutationMode = Literal["new_version", "in_place"]


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class SessionFields(BaseModel):
    subject: str | None = Field(default=None, max_length=200)
    teacher: str | None = Field(default=None, max_length=200)
    section: str | None = Field(default=None, max_length=50)
    subject_code: str | None = Field(default=None, max_length=50)
    subject_type: str | None = Field(default=None, max_length=50)
    semester: str | None = Field(default=None, max_length=50)
    credit_hours: int | None = Field(default=None, ge=0, le=40)

    @field_validator("subject", "teacher", "section", "subject_code", "subject_type", "semester", mode="before")
    @classmethod
    def strip_blank(cls, value: object) -> object:
        return _blank_to_none(value)

    @property
    def is_blank(self) -> bool:
        return self.subject is None and self.teacher is None and self.section is None


class EmptySlot(BaseModel):
    kind: Literal["empty"] = "empty"


class SessionSlot(SessionFields):
    kind: Literal["session"] = "session"


def _slot_kind(value: object) -> str | None:
    if isinstance(value, dict):
        if "kind" in value:
            return value["kind"]
        occupied = any(_blank_to_none(value.get(key)) for key in ("subject", "teacher", "section"))
        return "session" if occupied else "empty"
    return getattr(value, "kind", None)


SlotCell = Annotated[
    Union[Annotated[EmptySlot, Tag("empty")], Annotated[SessionSlot, Tag("session")]],
    Discriminator(_slot_kind),
]


def empty_slots() -> list[SlotCell]:
    return [EmptySlot() for _ in TIME_SLOTS]


class RoomSchedule(BaseModel):
    room: str = Field(min_length=1, max_length=100)
    slots: list[SlotCell] = Field(default_factory=empty_slots)

    @field_validator("room")
    @classmethod
    def validate_room(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("Room name cannot be blank")
        return cleaned

    @field_validator("slots")
    @classmethod
    def validate_slots(cls, value: list[SlotCell]) -> list[SlotCell]:
        if len(value) != len(TIME_SLOTS):
            raise ValueError(f"Room schedule must have exactly {len(TIME_SLOTS)} slots, got {len(value)}")
        # A session with nothing in it is stored as an empty cell.
        return [EmptySlot() if isinstance(cell, SessionSlot) and cell.is_blank else cell for cell in value]


class TimetableGrid(BaseModel):
    days: dict[Weekday, list[RoomSchedule]] = Field(default_factory=dict, validate_default=True)

    @field_validator("days")
    @classmethod
    def validate_days(cls, value: dict[Weekday, list[RoomSchedule]]) -> dict[Weekday, list[RoomSchedule]]:
        ordered: dict[Weekday, list[RoomSchedule]] = {}
        for day in WEEKDAYS:
            rooms = value.get(day, [])
            seen: set[str] = set()
            duplicates: list[str] = []
            for schedule in rooms:
                if schedule.room in seen:
                    duplicates.append(schedule.room)
                seen.add(schedule.room)
            if duplicates:
                raise ValueError(f"Duplicate room(s) on {day.value}: {', '.join(duplicates)}")
            ordered[day] = rooms
        return ordered


class CellRef(BaseModel):
    day: Weekday
    room: str = Field(min_length=1, max_length=100)
    time: str = Field(min_length=1, max_length=20)


class LocatedSession(SessionFields):
    day: Weekday
    room: str
    time: str


class SessionRow(CellRef, SessionFields):
    """One normalized row handed over by the roster upload."""


class SessionUpdateRequest(SessionRow):
    mode: MutationMode | None = None


class AddRoomRequest(BaseModel):
    room: str = Field(min_length=1, max_length=100)
    mode: MutationMode | None = None

    @field_validator("room")
    @classmethod
    def validate_room(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("Room name cannot be blank")
        return cleaned


class MoveSessionRequest(BaseModel):
    source: CellRef
    target: CellRef
    mode: MutationMode | None = None


class ApplyRowsRequest(BaseModel):
    rows: list[SessionRow] = Field(min_length=1, max_length=2000)
    mode: MutationMode | None = None
