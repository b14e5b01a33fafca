from app.models.timetable import SelectedVersion  # noqa: F401
from app.models.timetable_version import TimetableVersion  # noqa: F401
