from datetime import datetime

from sqlalchemy import DateTime, Integer
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.db.base import Base

SELECTED_VERSION_ROW_ID = 1


class SelectedVersion(Base):
    __tablename__ = "selected_version"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=SELECTED_VERSION_ROW_ID)
    version_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
