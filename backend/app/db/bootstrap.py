from __future__ import annotations

import logging

from sqlalchemy import inspect, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from app.db.base import Base
from app.db.session import engine as default_engine
from app.models.timetable import SELECTED_VERSION_ROW_ID, SelectedVersion

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "timetable_versions": {"version_number", "payload", "summary", "revision", "created_at", "updated_at"},
    "selected_version": {"id", "version_number", "updated_at"},
}


def _ensure_selected_version_row(engine: Engine) -> None:
    with Session(engine) as session:
        existing = session.execute(
            select(SelectedVersion.id).where(SelectedVersion.id == SELECTED_VERSION_ROW_ID)
        ).scalar_one_or_none()
        if existing is not None:
            return
        session.add(SelectedVersion(id=SELECTED_VERSION_ROW_ID, version_number=None))
        session.commit()


def _assert_required_columns(engine: Engine) -> None:
    with engine.begin() as connection:
        inspector = inspect(connection)
        table_names = set(inspector.get_table_names())
        missing_tables = [name for name in REQUIRED_COLUMNS if name not in table_names]
        if missing_tables:
            raise RuntimeError(f"Missing required tables: {', '.join(sorted(missing_tables))}")

        missing_columns: list[str] = []
        for table_name, required in REQUIRED_COLUMNS.items():
            existing = {item["name"] for item in inspector.get_columns(table_name)}
            for column_name in sorted(required - existing):
                missing_columns.append(f"{table_name}.{column_name}")
        if missing_columns:
            raise RuntimeError(f"Missing required columns: {', '.join(missing_columns)}")


def ensure_runtime_schema_compatibility(engine: Engine | None = None) -> None:
    target = engine or default_engine
    try:
        Base.metadata.create_all(bind=target)
        _ensure_selected_version_row(target)
        _assert_required_columns(target)
    except Exception as exc:  # pragma: no cover - runtime environment dependent
        logger.exception("Runtime schema compatibility bootstrap failed")
        raise RuntimeError("Runtime schema compatibility bootstrap failed") from exc
