from fastapi import APIRouter, Depends, Query, Response, status

from app.api.deps import get_mutation_service, get_version_store
from app.core.exceptions import InvalidArgumentError, ResourceNotFoundError
from app.schemas.conflict import GridAnalysis, MutationResult
from app.schemas.timetable import (
    AddRoomRequest,
    ApplyRowsRequest,
    CellRef,
    LocatedSession,
    MoveSessionRequest,
    MutationMode,
    SessionUpdateRequest,
    TimetableGrid,
    Weekday,
)
from app.schemas.version import (
    CurrentTimetableOut,
    FinalizeVersionOut,
    TimetableVersionCompare,
    TimetableVersionDetail,
    TimetableVersionList,
    TimetableVersionOut,
)
from app.services.conflict_service import analyze_grid, version_summary
from app.services.grid import list_sections, list_teachers, sessions_for_section, sessions_for_teacher
from app.services.timetable_mutations import TimetableMutationService
from app.services.version_store import VersionStore, parse_version_number

router = APIRouter()


def _version_detail(store: VersionStore, version_number: int, grid: TimetableGrid) -> TimetableVersionDetail:
    analysis = analyze_grid(grid)
    return TimetableVersionDetail(
        version_number=version_number,
        is_selected=store.selected_version() == version_number,
        is_latest=store.latest_version() == version_number,
        grid=grid,
        conflicts=analysis.conflicts,
        stats=analysis.stats,
    )


def _resolve_grid(store: VersionStore, version: str | None) -> TimetableGrid:
    if version is not None:
        return store.load(version)
    latest, grid = store.load_latest()
    if latest is None:
        raise ResourceNotFoundError("Version", "latest")
    return grid


@router.get("/versions", response_model=TimetableVersionList)
def list_timetable_versions(store: VersionStore = Depends(get_version_store)) -> TimetableVersionList:
    records = store.list_records()
    return TimetableVersionList(
        versions=[TimetableVersionOut.model_validate(record) for record in records],
        latest_version=records[-1].version_number if records else None,
        selected_version=store.selected_version(),
    )


@router.post("/versions", response_model=TimetableVersionDetail, status_code=status.HTTP_201_CREATED)
def save_timetable_version(
    grid: TimetableGrid,
    store: VersionStore = Depends(get_version_store),
) -> TimetableVersionDetail:
    version_number = store.save(grid, version_summary(analyze_grid(grid)))
    return _version_detail(store, version_number, grid)


@router.get("/versions/compare", response_model=TimetableVersionCompare)
def compare_timetable_versions(
    from_version: str = Query(..., alias="from"),
    to_version: str = Query(..., alias="to"),
    store: VersionStore = Depends(get_version_store),
) -> TimetableVersionCompare:
    return store.compare(from_version, to_version)


@router.get("/versions/{version}", response_model=TimetableVersionDetail)
def get_timetable_version(version: str, store: VersionStore = Depends(get_version_store)) -> TimetableVersionDetail:
    version_number = parse_version_number(version)
    return _version_detail(store, version_number, store.load(version_number))


@router.put("/versions/{version}", response_model=TimetableVersionDetail)
def overwrite_timetable_version(
    version: str,
    grid: TimetableGrid,
    store: VersionStore = Depends(get_version_store),
) -> TimetableVersionDetail:
    version_number = store.overwrite(version, grid, version_summary(analyze_grid(grid)))
    return _version_detail(store, version_number, grid)


@router.delete("/versions/{version}", status_code=status.HTTP_204_NO_CONTENT)
def delete_timetable_version(version: str, store: VersionStore = Depends(get_version_store)) -> Response:
    store.delete(version)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/selected", response_model=TimetableVersionDetail)
def get_selected_timetable(store: VersionStore = Depends(get_version_store)) -> TimetableVersionDetail:
    selected = store.selected_version()
    if selected is None:
        raise ResourceNotFoundError("Version", "selected")
    return _version_detail(store, selected, store.load(selected))


@router.put("/finalize-version", response_model=FinalizeVersionOut)
def finalize_timetable_version(
    version: str | None = Query(default=None),
    store: VersionStore = Depends(get_version_store),
) -> FinalizeVersionOut:
    if version is None or not version.strip():
        raise InvalidArgumentError("Version parameter is required")
    return FinalizeVersionOut(version_number=store.finalize(version))


@router.post("/conflicts/analyze", response_model=GridAnalysis)
def analyze_timetable_conflicts(grid: TimetableGrid) -> GridAnalysis:
    return analyze_grid(grid)


@router.get("/current", response_model=CurrentTimetableOut)
def get_current_timetable(store: VersionStore = Depends(get_version_store)) -> CurrentTimetableOut:
    latest, grid = store.load_latest()
    analysis = analyze_grid(grid)
    return CurrentTimetableOut(
        version_number=latest,
        grid=grid,
        conflicts=analysis.conflicts,
        stats=analysis.stats,
    )


@router.post("/current/rooms", response_model=MutationResult)
def add_timetable_room(
    payload: AddRoomRequest,
    service: TimetableMutationService = Depends(get_mutation_service),
) -> MutationResult:
    return service.add_room(payload.room, payload.mode)


@router.put("/current/slots", response_model=MutationResult)
def update_timetable_session(
    payload: SessionUpdateRequest,
    service: TimetableMutationService = Depends(get_mutation_service),
) -> MutationResult:
    ref = CellRef(day=payload.day, room=payload.room, time=payload.time)
    return service.update_session(ref, payload, payload.mode)


@router.delete("/current/slots", response_model=MutationResult)
def delete_timetable_session(
    day: Weekday = Query(...),
    room: str = Query(..., min_length=1, max_length=100),
    time: str = Query(..., min_length=1, max_length=20),
    mode: MutationMode | None = Query(default=None),
    service: TimetableMutationService = Depends(get_mutation_service),
) -> MutationResult:
    return service.delete_session(CellRef(day=day, room=room, time=time), mode)


@router.post("/current/slots/move", response_model=MutationResult)
def move_timetable_session(
    payload: MoveSessionRequest,
    service: TimetableMutationService = Depends(get_mutation_service),
) -> MutationResult:
    return service.move_session(payload.source, payload.target, payload.mode)


@router.post("/current/slots/bulk", response_model=MutationResult)
def apply_timetable_rows(
    payload: ApplyRowsRequest,
    service: TimetableMutationService = Depends(get_mutation_service),
) -> MutationResult:
    return service.apply_rows(payload.rows, payload.mode)


@router.get("/teachers", response_model=list[str])
def get_timetable_teachers(
    version: str | None = Query(default=None),
    store: VersionStore = Depends(get_version_store),
) -> list[str]:
    return list_teachers(_resolve_grid(store, version))


@router.get("/teachers/{teacher}/sessions", response_model=list[LocatedSession])
def get_teacher_sessions(
    teacher: str,
    version: str | None = Query(default=None),
    days: list[Weekday] | None = Query(default=None),
    store: VersionStore = Depends(get_version_store),
) -> list[LocatedSession]:
    return sessions_for_teacher(_resolve_grid(store, version), teacher, days)


@router.get("/sections", response_model=list[str])
def get_timetable_sections(
    version: str | None = Query(default=None),
    store: VersionStore = Depends(get_version_store),
) -> list[str]:
    return list_sections(_resolve_grid(store, version))


@router.get("/sections/{section}/sessions", response_model=list[LocatedSession])
def get_section_sessions(
    section: str,
    version: str | None = Query(default=None),
    days: list[Weekday] | None = Query(default=None),
    store: VersionStore = Depends(get_version_store),
) -> list[LocatedSession]:
    return sessions_for_section(_resolve_grid(store, version), section, days)
