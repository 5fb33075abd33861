from __future__ import annotations

import enum
from dataclasses import dataclass


class QuestionType(enum.StrEnum):
    MULTIPLE_CHOICE = "multiple_choice"
    TRUE_FALSE = "true_false"
    SHORT_ANSWER = "short_answer"
    ESSAY = "essay"


@dataclass(frozen=True, slots=True)
class Course:
    id: int
    title: str
    is_published: bool = False
    intelligent_progress_enabled: bool = False
    teacher_id: int | None = None

    @staticmethod
    def new(
        *,
        title: str,
        is_published: bool = False,
        intelligent_progress_enabled: bool = False,
        teacher_id: int | None = None,
    ) -> Course:
        return Course(
            id=0,
            title=title,
            is_published=is_published,
            intelligent_progress_enabled=intelligent_progress_enabled,
            teacher_id=teacher_id,
        )


@dataclass(frozen=True, slots=True)
class CourseUnit:
    id: int
    course_id: int
    title: str
    position: int = 0

    @staticmethod
    def new(*, course_id: int, title: str, position: int = 0) -> CourseUnit:
        return CourseUnit(id=0, course_id=course_id, title=title, position=position)


@dataclass(frozen=True, slots=True)
class CourseModule:
    id: int
    course_id: int
    title: str
    position: int = 0
    unit_id: int | None = None

    @staticmethod
    def new(
        *, course_id: int, title: str, position: int = 0, unit_id: int | None = None
    ) -> CourseModule:
        return CourseModule(
            id=0, course_id=course_id, title=title, position=position, unit_id=unit_id
        )


@dataclass(frozen=True, slots=True)
class ModuleComponent:
    id: int
    module_id: int
    title: str
    type: str = "content"  # content|video|reading|interactive
    is_mandatory: bool = True
    position: int = 0

    @staticmethod
    def new(
        *,
        module_id: int,
        title: str,
        type: str = "content",
        is_mandatory: bool = True,
        position: int = 0,
    ) -> ModuleComponent:
        return ModuleComponent(
            id=0,
            module_id=module_id,
            title=title,
            type=type,
            is_mandatory=is_mandatory,
            position=position,
        )


@dataclass(frozen=True, slots=True)
class Quiz:
    id: int
    module_id: int
    title: str
    max_attempts: int = 3
    passing_score: float = 70.0
    is_mandatory: bool = True

    @staticmethod
    def new(
        *,
        module_id: int,
        title: str,
        max_attempts: int = 3,
        passing_score: float = 70.0,
        is_mandatory: bool = True,
    ) -> Quiz:
        return Quiz(
            id=0,
            module_id=module_id,
            title=title,
            max_attempts=max_attempts,
            passing_score=passing_score,
            is_mandatory=is_mandatory,
        )


@dataclass(frozen=True, slots=True)
class QuizQuestion:
    id: int
    quiz_id: int
    type: QuestionType
    prompt: str
    correct_answers: tuple[str, ...] = ()
    points: float = 1.0
    position: int = 0

    @staticmethod
    def new(
        *,
        quiz_id: int,
        type: QuestionType,
        prompt: str,
        correct_answers: tuple[str, ...] = (),
        points: float = 1.0,
        position: int = 0,
    ) -> QuizQuestion:
        return QuizQuestion(
            id=0,
            quiz_id=quiz_id,
            type=type,
            prompt=prompt,
            correct_answers=correct_answers,
            points=points,
            position=position,
        )

    def check_answer(self, answer: object) -> bool | None:
        """Auto-grade one answer.

        Returns None for question types that need a human grader.
        """
        match self.type:
            case QuestionType.MULTIPLE_CHOICE:
                return str(answer) in self.correct_answers
            case QuestionType.TRUE_FALSE:
                if not self.correct_answers:
                    return False
                return str(answer).lower() == self.correct_answers[0].lower()
            case QuestionType.SHORT_ANSWER:
                given = str(answer).strip().lower()
                return any(given == c.strip().lower() for c in self.correct_answers)
            case QuestionType.ESSAY:
                return None


@dataclass(frozen=True, slots=True)
class CourseActivity:
    id: int
    course_id: int
    title: str
    max_score: float = 100.0
    weight: float = 1.0
    is_mandatory: bool = True

    @staticmethod
    def new(
        *,
        course_id: int,
        title: str,
        max_score: float = 100.0,
        weight: float = 1.0,
        is_mandatory: bool = True,
    ) -> CourseActivity:
        return CourseActivity(
            id=0,
            course_id=course_id,
            title=title,
            max_score=max_score,
            weight=weight,
            is_mandatory=is_mandatory,
        )
