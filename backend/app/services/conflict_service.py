from __future__ import annotations

from app.schemas.conflict import GridAnalysis, TimetableConflict, TimetableStats
from app.schemas.timetable import TIME_SLOTS, WEEKDAYS, SessionSlot, TimetableGrid

NO_SECTION_LABEL = "No Section"


def compute_conflicts(grid: TimetableGrid) -> list[TimetableConflict]:
    """Find teachers and subject-sections booked into more than one room at once.

    Rooms are reported in the order they appear in the day's schedule, and
    conflicts in the order their key was first seen, so the output is stable
    for a given grid.
    """
    conflicts: list[TimetableConflict] = []
    for day in WEEKDAYS:
        schedules = grid.days.get(day, [])
        if not schedules:
            continue

        for index, time in enumerate(TIME_SLOTS):
            teacher_rooms: dict[str, list[str]] = {}
            subject_rooms: dict[tuple[str, str | None], list[str]] = {}

            for schedule in schedules:
                cell = schedule.slots[index]
                if not isinstance(cell, SessionSlot):
                    continue
                # A session without a teacher is unscheduled.
                if not cell.teacher:
                    continue
                teacher_rooms.setdefault(cell.teacher, []).append(schedule.room)
                if cell.subject:
                    subject_rooms.setdefault((cell.subject, cell.section), []).append(schedule.room)

            for teacher, rooms in teacher_rooms.items():
                if len(rooms) > 1:
                    conflicts.append(
                        TimetableConflict(
                            conflict_type="teacher_conflict",
                            day=day,
                            time=time,
                            room=rooms[0],
                            rooms=rooms,
                            message=f"Teacher {teacher} appears in multiple rooms at {time} ({', '.join(rooms)})",
                        )
                    )
            for (subject, section), rooms in subject_rooms.items():
                if len(rooms) > 1:
                    conflicts.append(
                        TimetableConflict(
                            conflict_type="subject_section_conflict",
                            day=day,
                            time=time,
                            room=rooms[0],
                            rooms=rooms,
                            message=(
                                f"Subject {subject} ({section or NO_SECTION_LABEL}) appears in multiple rooms "
                                f"at {time} ({', '.join(rooms)})"
                            ),
                        )
                    )
    return conflicts


def compute_stats(grid: TimetableGrid) -> TimetableStats:
    total_slots = 0
    scheduled = 0
    rooms_per_day = {}
    for day in WEEKDAYS:
        schedules = grid.days.get(day, [])
        rooms_per_day[day] = len(schedules)
        for schedule in schedules:
            total_slots += len(schedule.slots)
            scheduled += sum(1 for cell in schedule.slots if isinstance(cell, SessionSlot) and cell.teacher)

    return TimetableStats(
        total_slots=total_slots,
        scheduled=scheduled,
        free=max(total_slots - scheduled, 0),
        rooms_per_day=rooms_per_day,
    )


def analyze_grid(grid: TimetableGrid) -> GridAnalysis:
    return GridAnalysis(conflicts=compute_conflicts(grid), stats=compute_stats(grid))


def version_summary(analysis: GridAnalysis) -> dict:
    return {
        "rooms": max(analysis.stats.rooms_per_day.values(), default=0),
        "scheduled": analysis.stats.scheduled,
        "total_slots": analysis.stats.total_slots,
        "conflicts": len(analysis.conflicts),
    }
