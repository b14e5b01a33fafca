from collections.abc import Generator

from fastapi import Depends
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.db.session import SessionLocal
from app.services.timetable_mutations import TimetableMutationService
from app.services.version_store import VersionStore


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_version_store(db: Session = Depends(get_db)) -> VersionStore:
    return VersionStore(db)


def get_mutation_service(store: VersionStore = Depends(get_version_store)) -> TimetableMutationService:
    return TimetableMutationService(store, default_mode=get_settings().default_mutation_mode)
