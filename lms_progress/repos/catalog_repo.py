from __future__ import annotations

import itertools
from dataclasses import replace
from typing import Protocol

from lms_progress.models.course import (
    Course,
    CourseActivity,
    CourseModule,
    CourseUnit,
    ModuleComponent,
    Quiz,
    QuizQuestion,
)


class CatalogRepo(Protocol):
    """Read access to course structure, plus the adds used for seeding.

    Authoring courses is out of this service's hands; the engine only
    reads structure to know what counts toward completion.
    """

    def get_course(self, course_id: int) -> Course | None: ...
    def add_course(self, course: Course) -> Course: ...

    def get_unit(self, unit_id: int) -> CourseUnit | None: ...
    def units_for_course(self, course_id: int) -> list[CourseUnit]: ...
    def add_unit(self, unit: CourseUnit) -> CourseUnit: ...

    def get_module(self, module_id: int) -> CourseModule | None: ...
    def modules_for_course(self, course_id: int) -> list[CourseModule]: ...
    def add_module(self, module: CourseModule) -> CourseModule: ...

    def get_component(self, component_id: int) -> ModuleComponent | None: ...
    def components_for_module(self, module_id: int) -> list[ModuleComponent]: ...
    def add_component(self, component: ModuleComponent) -> ModuleComponent: ...

    def get_quiz(self, quiz_id: int) -> Quiz | None: ...
    def quizzes_for_module(self, module_id: int) -> list[Quiz]: ...
    def add_quiz(self, quiz: Quiz) -> Quiz: ...

    def questions_for_quiz(self, quiz_id: int) -> list[QuizQuestion]: ...
    def add_question(self, question: QuizQuestion) -> QuizQuestion: ...

    def get_activity(self, activity_id: int) -> CourseActivity | None: ...
    def activities_for_course(self, course_id: int) -> list[CourseActivity]: ...
    def add_activity(self, activity: CourseActivity) -> CourseActivity: ...


class InMemoryCatalogRepo:
    def __init__(self) -> None:
        self._ids = itertools.count(1)
        self._courses: dict[int, Course] = {}
        self._units: dict[int, CourseUnit] = {}
        self._modules: dict[int, CourseModule] = {}
        self._components: dict[int, ModuleComponent] = {}
        self._quizzes: dict[int, Quiz] = {}
        self._questions: dict[int, QuizQuestion] = {}
        self._activities: dict[int, CourseActivity] = {}

    def get_course(self, course_id: int) -> Course | None:
        return self._courses.get(course_id)

    def add_course(self, course: Course) -> Course:
        stored = replace(course, id=next(self._ids))
        self._courses[stored.id] = stored
        return stored

    def get_unit(self, unit_id: int) -> CourseUnit | None:
        return self._units.get(unit_id)

    def units_for_course(self, course_id: int) -> list[CourseUnit]:
        units = [u for u in self._units.values() if u.course_id == course_id]
        return sorted(units, key=lambda u: (u.position, u.id))

    def add_unit(self, unit: CourseUnit) -> CourseUnit:
        stored = replace(unit, id=next(self._ids))
        self._units[stored.id] = stored
        return stored

    def get_module(self, module_id: int) -> CourseModule | None:
        return self._modules.get(module_id)

    def modules_for_course(self, course_id: int) -> list[CourseModule]:
        modules = [m for m in self._modules.values() if m.course_id == course_id]
        return sorted(modules, key=lambda m: (m.position, m.id))

    def add_module(self, module: CourseModule) -> CourseModule:
        stored = replace(module, id=next(self._ids))
        self._modules[stored.id] = stored
        return stored

    def get_component(self, component_id: int) -> ModuleComponent | None:
        return self._components.get(component_id)

    def components_for_module(self, module_id: int) -> list[ModuleComponent]:
        items = [c for c in self._components.values() if c.module_id == module_id]
        return sorted(items, key=lambda c: (c.position, c.id))

    def add_component(self, component: ModuleComponent) -> ModuleComponent:
        stored = replace(component, id=next(self._ids))
        self._components[stored.id] = stored
        return stored

    def get_quiz(self, quiz_id: int) -> Quiz | None:
        return self._quizzes.get(quiz_id)

    def quizzes_for_module(self, module_id: int) -> list[Quiz]:
        return [q for q in self._quizzes.values() if q.module_id == module_id]

    def add_quiz(self, quiz: Quiz) -> Quiz:
        stored = replace(quiz, id=next(self._ids))
        self._quizzes[stored.id] = stored
        return stored

    def questions_for_quiz(self, quiz_id: int) -> list[QuizQuestion]:
        items = [q for q in self._questions.values() if q.quiz_id == quiz_id]
        return sorted(items, key=lambda q: (q.position, q.id))

    def add_question(self, question: QuizQuestion) -> QuizQuestion:
        stored = replace(question, id=next(self._ids))
        self._questions[stored.id] = stored
        return stored

    def get_activity(self, activity_id: int) -> CourseActivity | None:
        return self._activities.get(activity_id)

    def activities_for_course(self, course_id: int) -> list[CourseActivity]:
        return [a for a in self._activities.values() if a.course_id == course_id]

    def add_activity(self, activity: CourseActivity) -> CourseActivity:
        stored = replace(activity, id=next(self._ids))
        self._activities[stored.id] = stored
        return stored
