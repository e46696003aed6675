from datetime import datetime
from typing import Any
from uuid import UUID

import structlog
from pymongo.asynchronous.database import AsyncDatabase

from equizz import utils
from equizz.core.core import Service
from equizz.core.modules.academic.models import AcademicYear, Course, SchoolClass
from equizz.errors import NotFoundError, ValidationError

logger = structlog.get_logger(__name__)


class AcademicService(Service):
    """Academic years, classes and courses."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._years = database.get_collection("academic_years")
        self._classes = database.get_collection("classes")
        self._courses = database.get_collection("courses")

    async def on_start(self) -> None:
        await self._years.create_index([("label", 1)], unique=True)
        await self._classes.create_index([("academic_year_id", 1), ("name", 1)], unique=True)
        await self._courses.create_index([("class_id", 1), ("code", 1)], unique=True)

    # --- Academic years ---

    async def create_year(
        self, label: str, start_date: datetime, end_date: datetime, is_current: bool = False
    ) -> AcademicYear:
        if end_date <= start_date:
            raise ValidationError("Academic year must end after it starts")
        if await self._years.count_documents({"label": label}, limit=1):
            raise ValidationError(f"Academic year '{label}' already exists")
        if is_current:
            # Only one year is current at a time
            await self._years.update_many({"is_current": True}, {"$set": {"is_current": False}})
        year = AcademicYear(label=label, start_date=start_date, end_date=end_date, is_current=is_current)
        await self._years.insert_one(year.to_mongo())
        return year

    async def list_years(self) -> list[AcademicYear]:
        return await AcademicYear.list_cursor(self._years.find().sort("start_date", -1))

    async def get_year(self, year_id: UUID) -> AcademicYear:
        doc = await self._years.find_one({"_id": year_id})
        if doc is None:
            raise NotFoundError(f"Academic year '{year_id}' not found")
        return AcademicYear.model_validate(doc)

    async def update_year(
        self,
        year_id: UUID,
        label: str | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        is_current: bool | None = None,
    ) -> AcademicYear:
        """Partial update; fields left as None keep their stored value."""
        year = await self.get_year(year_id)
        if utils.as_utc(end_date or year.end_date) <= utils.as_utc(start_date or year.start_date):
            raise ValidationError("Academic year must end after it starts")

        update: dict[str, Any] = {}
        if label is not None and label != year.label:
            if await self._years.count_documents({"label": label}, limit=1):
                raise ValidationError(f"Academic year '{label}' already exists")
            update["label"] = label
        if start_date is not None:
            update["start_date"] = utils.as_utc(start_date)
        if end_date is not None:
            update["end_date"] = utils.as_utc(end_date)
        if is_current is not None:
            if is_current:
                await self._years.update_many(
                    {"is_current": True, "_id": {"$ne": year_id}}, {"$set": {"is_current": False}}
                )
            update["is_current"] = is_current

        if update:
            await self._years.update_one({"_id": year_id}, {"$set": update})
            logger.info("academic_year_updated", year_id=str(year_id), fields=sorted(update))
        return await self.get_year(year_id)

    async def delete_year(self, year_id: UUID) -> None:
        await self.get_year(year_id)
        if await self._classes.count_documents({"academic_year_id": year_id}, limit=1):
            raise ValidationError("Cannot delete academic year: it still has classes")
        await self._years.delete_one({"_id": year_id})

    # --- Classes ---

    async def create_class(self, name: str, academic_year_id: UUID, level: str = "") -> SchoolClass:
        await self.get_year(academic_year_id)
        if await self._classes.count_documents({"academic_year_id": academic_year_id, "name": name}, limit=1):
            raise ValidationError(f"Class '{name}' already exists for this academic year")
        school_class = SchoolClass(name=name, level=level, academic_year_id=academic_year_id)
        await self._classes.insert_one(school_class.to_mongo())
        return school_class

    async def list_classes(self, academic_year_id: UUID | None = None) -> list[SchoolClass]:
        query: dict[str, Any] = {}
        if academic_year_id is not None:
            query["academic_year_id"] = academic_year_id
        return await SchoolClass.list_cursor(self._classes.find(query).sort("name", 1))

    async def get_class(self, class_id: UUID) -> SchoolClass:
        doc = await self._classes.find_one({"_id": class_id})
        if doc is None:
            raise NotFoundError(f"Class '{class_id}' not found")
        return SchoolClass.model_validate(doc)

    async def update_class(self, class_id: UUID, name: str | None = None, level: str | None = None) -> SchoolClass:
        school_class = await self.get_class(class_id)
        update: dict[str, Any] = {}
        if name is not None and name != school_class.name:
            query = {"academic_year_id": school_class.academic_year_id, "name": name}
            if await self._classes.count_documents(query, limit=1):
                raise ValidationError(f"Class '{name}' already exists for this academic year")
            update["name"] = name
        if level is not None:
            update["level"] = level

        if update:
            await self._classes.update_one({"_id": class_id}, {"$set": update})
            logger.info("class_updated", class_id=str(class_id), fields=sorted(update))
        return await self.get_class(class_id)

    async def delete_class(self, class_id: UUID) -> None:
        await self.get_class(class_id)
        if await self._courses.count_documents({"class_id": class_id}, limit=1):
            raise ValidationError("Cannot delete class: it still has courses")
        if await self.core.services.user.count_students(class_id):
            raise ValidationError("Cannot delete class: students are still enrolled")
        await self._classes.delete_one({"_id": class_id})

    # --- Courses ---

    async def create_course(self, code: str, name: str, class_id: UUID, teacher: str = "") -> Course:
        await self.get_class(class_id)
        if await self._courses.count_documents({"class_id": class_id, "code": code}, limit=1):
            raise ValidationError(f"Course '{code}' already exists for this class")
        course = Course(code=code, name=name, class_id=class_id, teacher=teacher)
        await self._courses.insert_one(course.to_mongo())
        return course

    async def list_courses(self, class_id: UUID | None = None) -> list[Course]:
        query: dict[str, Any] = {}
        if class_id is not None:
            query["class_id"] = class_id
        return await Course.list_cursor(self._courses.find(query).sort("code", 1))

    async def get_course(self, course_id: UUID) -> Course:
        doc = await self._courses.find_one({"_id": course_id})
        if doc is None:
            raise NotFoundError(f"Course '{course_id}' not found")
        return Course.model_validate(doc)

    async def update_course(
        self, course_id: UUID, code: str | None = None, name: str | None = None, teacher: str | None = None
    ) -> Course:
        course = await self.get_course(course_id)
        update: dict[str, Any] = {}
        if code is not None and code != course.code:
            if await self._courses.count_documents({"class_id": course.class_id, "code": code}, limit=1):
                raise ValidationError(f"Course '{code}' already exists for this class")
            update["code"] = code
        if name is not None:
            update["name"] = name
        if teacher is not None:
            update["teacher"] = teacher

        if update:
            await self._courses.update_one({"_id": course_id}, {"$set": update})
            logger.info("course_updated", course_id=str(course_id), fields=sorted(update))
        return await self.get_course(course_id)

    async def delete_course(self, course_id: UUID) -> None:
        result = await self._courses.delete_one({"_id": course_id})
        if result.deleted_count == 0:
            raise NotFoundError(f"Course '{course_id}' not found")
