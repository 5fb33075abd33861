"""SQLAlchemy implementation of CatalogRepo."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from lms_progress.db.tables import (
    CourseActivityRow,
    CourseModuleRow,
    CourseRow,
    CourseUnitRow,
    ModuleComponentRow,
    QuizQuestionRow,
    QuizRow,
)
from lms_progress.models.course import (
    Course,
    CourseActivity,
    CourseModule,
    CourseUnit,
    ModuleComponent,
    QuestionType,
    Quiz,
    QuizQuestion,
)


class SqlCatalogRepo:
    """Satisfies the CatalogRepo Protocol via a SQLAlchemy session."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get_course(self, course_id: int) -> Course | None:
        row = self._session.get(CourseRow, course_id)
        return _row_to_course(row) if row is not None else None

    def add_course(self, course: Course) -> Course:
        row = CourseRow(
            title=course.title,
            is_published=course.is_published,
            intelligent_progress_enabled=course.intelligent_progress_enabled,
            teacher_id=course.teacher_id,
        )
        self._session.add(row)
        self._session.flush()
        return _row_to_course(row)

    def get_unit(self, unit_id: int) -> CourseUnit | None:
        row = self._session.get(CourseUnitRow, unit_id)
        return _row_to_unit(row) if row is not None else None

    def units_for_course(self, course_id: int) -> list[CourseUnit]:
        stmt = (
            select(CourseUnitRow)
            .where(CourseUnitRow.course_id == course_id)
            .order_by(CourseUnitRow.position, CourseUnitRow.id)
        )
        return [_row_to_unit(r) for r in self._session.scalars(stmt)]

    def add_unit(self, unit: CourseUnit) -> CourseUnit:
        row = CourseUnitRow(
            course_id=unit.course_id, title=unit.title, position=unit.position
        )
        self._session.add(row)
        self._session.flush()
        return _row_to_unit(row)

    def get_module(self, module_id: int) -> CourseModule | None:
        row = self._session.get(CourseModuleRow, module_id)
        return _row_to_module(row) if row is not None else None

    def modules_for_course(self, course_id: int) -> list[CourseModule]:
        stmt = (
            select(CourseModuleRow)
            .where(CourseModuleRow.course_id == course_id)
            .order_by(CourseModuleRow.position, CourseModuleRow.id)
        )
        return [_row_to_module(r) for r in self._session.scalars(stmt)]

    def add_module(self, module: CourseModule) -> CourseModule:
        row = CourseModuleRow(
            course_id=module.course_id,
            unit_id=module.unit_id,
            title=module.title,
            position=module.position,
        )
        self._session.add(row)
        self._session.flush()
        return _row_to_module(row)

    def get_component(self, component_id: int) -> ModuleComponent | None:
        row = self._session.get(ModuleComponentRow, component_id)
        return _row_to_component(row) if row is not None else None

    def components_for_module(self, module_id: int) -> list[ModuleComponent]:
        stmt = (
            select(ModuleComponentRow)
            .where(ModuleComponentRow.module_id == module_id)
            .order_by(ModuleComponentRow.position, ModuleComponentRow.id)
        )
        return [_row_to_component(r) for r in self._session.scalars(stmt)]

    def add_component(self, component: ModuleComponent) -> ModuleComponent:
        row = ModuleComponentRow(
            module_id=component.module_id,
            title=component.title,
            type=component.type,
            is_mandatory=component.is_mandatory,
            position=component.position,
        )
        self._session.add(row)
        self._session.flush()
        return _row_to_component(row)

    def get_quiz(self, quiz_id: int) -> Quiz | None:
        row = self._session.get(QuizRow, quiz_id)
        return _row_to_quiz(row) if row is not None else None

    def quizzes_for_module(self, module_id: int) -> list[Quiz]:
        stmt = select(QuizRow).where(QuizRow.module_id == module_id).order_by(QuizRow.id)
        return [_row_to_quiz(r) for r in self._session.scalars(stmt)]

    def add_quiz(self, quiz: Quiz) -> Quiz:
        row = QuizRow(
            module_id=quiz.module_id,
            title=quiz.title,
            max_attempts=quiz.max_attempts,
            passing_score=quiz.passing_score,
            is_mandatory=quiz.is_mandatory,
        )
        self._session.add(row)
        self._session.flush()
        return _row_to_quiz(row)

    def questions_for_quiz(self, quiz_id: int) -> list[QuizQuestion]:
        stmt = (
            select(QuizQuestionRow)
            .where(QuizQuestionRow.quiz_id == quiz_id)
            .order_by(QuizQuestionRow.position, QuizQuestionRow.id)
        )
        return [_row_to_question(r) for r in self._session.scalars(stmt)]

    def add_question(self, question: QuizQuestion) -> QuizQuestion:
        row = QuizQuestionRow(
            quiz_id=question.quiz_id,
            type=question.type.value,
            prompt=question.prompt,
            correct_answers=list(question.correct_answers),
            points=question.points,
            position=question.position,
        )
        self._session.add(row)
        self._session.flush()
        return _row_to_question(row)

    def get_activity(self, activity_id: int) -> CourseActivity | None:
        row = self._session.get(CourseActivityRow, activity_id)
        return _row_to_activity(row) if row is not None else None

    def activities_for_course(self, course_id: int) -> list[CourseActivity]:
        stmt = (
            select(CourseActivityRow)
            .where(CourseActivityRow.course_id == course_id)
            .order_by(CourseActivityRow.id)
        )
        return [_row_to_activity(r) for r in self._session.scalars(stmt)]

    def add_activity(self, activity: CourseActivity) -> CourseActivity:
        row = CourseActivityRow(
            course_id=activity.course_id,
            title=activity.title,
            max_score=activity.max_score,
            weight=activity.weight,
            is_mandatory=activity.is_mandatory,
        )
        self._session.add(row)
        self._session.flush()
        return _row_to_activity(row)


def _row_to_course(row: CourseRow) -> Course:
    return Course(
        id=row.id,
        title=row.title,
        is_published=row.is_published,
        intelligent_progress_enabled=row.intelligent_progress_enabled,
        teacher_id=row.teacher_id,
    )


def _row_to_unit(row: CourseUnitRow) -> CourseUnit:
    return CourseUnit(
        id=row.id, course_id=row.course_id, title=row.title, position=row.position
    )


def _row_to_module(row: CourseModuleRow) -> CourseModule:
    return CourseModule(
        id=row.id,
        course_id=row.course_id,
        title=row.title,
        position=row.position,
        unit_id=row.unit_id,
    )


def _row_to_component(row: ModuleComponentRow) -> ModuleComponent:
    return ModuleComponent(
        id=row.id,
        module_id=row.module_id,
        title=row.title,
        type=row.type,
        is_mandatory=row.is_mandatory,
        position=row.position,
    )


def _row_to_quiz(row: QuizRow) -> Quiz:
    return Quiz(
        id=row.id,
        module_id=row.module_id,
        title=row.title,
        max_attempts=row.max_attempts,
        passing_score=row.passing_score,
        is_mandatory=row.is_mandatory,
    )


def _row_to_question(row: QuizQuestionRow) -> QuizQuestion:
    return QuizQuestion(
        id=row.id,
        quiz_id=row.quiz_id,
        type=QuestionType(row.type),
        prompt=row.prompt,
        correct_answers=tuple(row.correct_answers or ()),
        points=row.points,
        position=row.position,
    )


def _row_to_activity(row: CourseActivityRow) -> CourseActivity:
    return CourseActivity(
        id=row.id,
        course_id=row.course_id,
        title=row.title,
        max_score=row.max_score,
        weight=row.weight,
        is_mandatory=row.is_mandatory,
    )
