"""Tests for academic years, classes and courses."""

from datetime import UTC, datetime
from uuid import uuid4

import pytest

from equizz.errors import NotFoundError, ValidationError


@pytest.fixture
def academic(core):
    return core.services.academic


def year_dates(start: int) -> tuple[datetime, datetime]:
    return datetime(start, 9, 1, tzinfo=UTC), datetime(start + 1, 7, 31, tzinfo=UTC)


class TestAcademicYears:
    """Tests for academic year management."""

    async def test_only_one_current_year(self, academic):
        first = await academic.create_year("2023-2024", *year_dates(2023), is_current=True)
        second = await academic.create_year("2024-2025", *year_dates(2024), is_current=True)

        assert not (await academic.get_year(first.id)).is_current
        assert (await academic.get_year(second.id)).is_current

    async def test_listed_newest_first(self, academic):
        await academic.create_year("2023-2024", *year_dates(2023))
        await academic.create_year("2024-2025", *year_dates(2024))
        assert [year.label for year in await academic.list_years()] == ["2024-2025", "2023-2024"]

    async def test_duplicate_label(self, academic):
        await academic.create_year("2024-2025", *year_dates(2024))
        with pytest.raises(ValidationError, match="already exists"):
            await academic.create_year("2024-2025", *year_dates(2024))

    async def test_end_before_start(self, academic):
        start, end = year_dates(2024)
        with pytest.raises(ValidationError):
            await academic.create_year("2024-2025", end, start)

    async def test_cannot_delete_year_with_classes(self, academic, school_class):
        with pytest.raises(ValidationError, match="still has classes"):
            await academic.delete_year(school_class.academic_year_id)


class TestClassesAndCourses:
    """Tests for class and course management."""

    async def test_class_requires_existing_year(self, academic):
        with pytest.raises(NotFoundError):
            await academic.create_class("L1", uuid4())

    async def test_duplicate_class_name_in_year(self, academic, school_class):
        with pytest.raises(ValidationError):
            await academic.create_class(school_class.name, school_class.academic_year_id)

    async def test_cannot_delete_class_with_students(self, academic, school_class, student):
        with pytest.raises(ValidationError, match="students"):
            await academic.delete_class(school_class.id)

    async def test_cannot_delete_class_with_courses(self, academic, school_class):
        await academic.create_course("INF301", "Algorithmique", school_class.id, teacher="M. Nkoulou")
        with pytest.raises(ValidationError, match="courses"):
            await academic.delete_class(school_class.id)

    async def test_course_lifecycle(self, academic, school_class):
        course = await academic.create_course("INF301", "Algorithmique", school_class.id)
        assert [c.id for c in await academic.list_courses(school_class.id)] == [course.id]

        await academic.delete_course(course.id)

        assert await academic.list_courses(school_class.id) == []
        with pytest.raises(NotFoundError):
            await academic.delete_course(course.id)

    async def test_empty_class_can_be_deleted(self, academic, school_class):
        await academic.delete_class(school_class.id)
        assert await academic.list_classes() == []


class TestUpdates:
    """Tests for partial updates of years, classes and courses."""

    async def test_update_year_label_and_dates(self, academic):
        year = await academic.create_year("2024-2025", *year_dates(2024))
        start, end = year_dates(2025)

        updated = await academic.update_year(year.id, label="2025-2026", start_date=start, end_date=end)

        assert updated.label == "2025-2026"
        assert updated.start_date == start
        assert updated.end_date == end

    async def test_update_year_keeps_omitted_fields(self, academic):
        year = await academic.create_year("2024-2025", *year_dates(2024), is_current=True)
        updated = await academic.update_year(year.id, label="2024/2025")
        assert updated.start_date == year.start_date
        assert updated.is_current

    async def test_make_year_current_clears_others(self, academic):
        first = await academic.create_year("2023-2024", *year_dates(2023), is_current=True)
        second = await academic.create_year("2024-2025", *year_dates(2024))

        await academic.update_year(second.id, is_current=True)

        assert not (await academic.get_year(first.id)).is_current
        assert (await academic.get_year(second.id)).is_current

    async def test_update_year_rejects_inverted_dates(self, academic):
        year = await academic.create_year("2024-2025", *year_dates(2024))
        with pytest.raises(ValidationError, match="end after"):
            await academic.update_year(year.id, end_date=year.start_date)

    async def test_update_year_duplicate_label(self, academic):
        await academic.create_year("2023-2024", *year_dates(2023))
        year = await academic.create_year("2024-2025", *year_dates(2024))
        with pytest.raises(ValidationError, match="already exists"):
            await academic.update_year(year.id, label="2023-2024")

    async def test_update_unknown_year(self, academic):
        with pytest.raises(NotFoundError):
            await academic.update_year(uuid4(), label="2030-2031")

    async def test_update_class(self, academic, school_class):
        updated = await academic.update_class(school_class.id, name="L3 Génie Logiciel", level="L3-GL")
        assert updated.name == "L3 Génie Logiciel"
        assert updated.level == "L3-GL"
        assert updated.academic_year_id == school_class.academic_year_id

    async def test_update_class_duplicate_name(self, academic, school_class):
        other = await academic.create_class("L3 Réseaux", school_class.academic_year_id)
        with pytest.raises(ValidationError, match="already exists"):
            await academic.update_class(other.id, name=school_class.name)

    async def test_update_course(self, academic, school_class):
        course = await academic.create_course("INF301", "Algorithmiqe", school_class.id)

        updated = await academic.update_course(course.id, name="Algorithmique", teacher="Mme Ateba")

        assert updated.code == "INF301"
        assert updated.name == "Algorithmique"
        assert updated.teacher == "Mme Ateba"

    async def test_update_course_duplicate_code(self, academic, school_class):
        await academic.create_course("INF301", "Algorithmique", school_class.id)
        course = await academic.create_course("INF302", "Réseaux", school_class.id)
        with pytest.raises(ValidationError, match="already exists"):
            await academic.update_course(course.id, code="INF301")
