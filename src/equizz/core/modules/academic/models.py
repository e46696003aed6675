"""Academic structure: years contain classes, classes follow courses."""

from datetime import datetime
from uuid import UUID

from pydantic import Field

from equizz.core.db import MongoModel
from equizz.utils import now


class AcademicYear(MongoModel):
    label: str  # e.g. "2025-2026"
    start_date: datetime
    end_date: datetime
    is_current: bool = False
    created_at: datetime = Field(default_factory=now)


class SchoolClass(MongoModel):
    """A cohort of students within one academic year."""

    name: str
    level: str = ""  # e.g. "L1", "M2"
    academic_year_id: UUID
    created_at: datetime = Field(default_factory=now)


class Course(MongoModel):
    code: str
    name: str
    class_id: UUID
    teacher: str = ""
    created_at: datetime = Field(default_factory=now)
