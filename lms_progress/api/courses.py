"""Course structure and system settings.

The engine reads a course's units, modules, components, quizzes and
activities; these endpoints are how that structure gets in.

  POST /v1/courses
  GET  /v1/courses/{id}
  POST /v1/courses/{id}/units
  POST /v1/courses/{id}/modules
  POST /v1/courses/{id}/activities
  GET  /v1/courses/{id}/certificate-stats
  POST /v1/modules/{id}/components
  POST /v1/modules/{id}/quizzes                 quiz with its questions
  GET  /v1/settings
  PUT  /v1/settings/{key}                       runtime override of thresholds/weights
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from lms_progress.api.dependencies import get_services
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
from lms_progress.models.setting import SystemSetting
from lms_progress.services.container import Services
from lms_progress.services.errors import NotFoundError

router = APIRouter(tags=["courses"])


class CourseIn(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    is_published: bool = False
    intelligent_progress_enabled: bool = False
    teacher_id: int | None = None


class CourseOut(BaseModel):
    id: int
    title: str
    is_published: bool
    intelligent_progress_enabled: bool
    teacher_id: int | None


class UnitIn(BaseModel):
    title: str = Field(min_length=1)
    position: int = 0


class ModuleIn(BaseModel):
    title: str = Field(min_length=1)
    position: int = 0
    unit_id: int | None = None


class ComponentIn(BaseModel):
    title: str = Field(min_length=1)
    type: str = "content"
    is_mandatory: bool = True
    position: int = 0


class QuestionIn(BaseModel):
    type: QuestionType
    prompt: str
    correct_answers: list[str] = Field(default_factory=list)
    points: float = Field(default=1.0, ge=0)


class QuizIn(BaseModel):
    title: str = Field(min_length=1)
    max_attempts: int = Field(default=3, ge=1)
    passing_score: float = Field(default=70.0, ge=0, le=100)
    is_mandatory: bool = True
    questions: list[QuestionIn] = Field(default_factory=list)


class ActivityIn(BaseModel):
    title: str = Field(min_length=1)
    max_score: float = Field(default=100.0, ge=0)
    weight: float = Field(default=1.0, ge=0)
    is_mandatory: bool = True


class CreatedOut(BaseModel):
    id: int


class QuizOut(BaseModel):
    id: int
    question_ids: list[int]


class CertificateStatsOut(BaseModel):
    course_id: int
    total_enrollments: int
    virtual_certificates: int
    complete_certificates: int
    virtual_rate: float
    complete_rate: float


class SettingIn(BaseModel):
    value: str
    type: str = Field(default="string", pattern="^(string|integer|float|boolean|json)$")
    description: str | None = None


class SettingOut(BaseModel):
    key: str
    value: str
    type: str
    description: str | None


def _course(services: Services, course_id: int) -> Course:
    course = services.repos.catalog.get_course(course_id)
    if course is None:
        raise NotFoundError("course", course_id)
    return course


def _module(services: Services, module_id: int) -> CourseModule:
    module = services.repos.catalog.get_module(module_id)
    if module is None:
        raise NotFoundError("module", module_id)
    return module


def _course_out(course: Course) -> CourseOut:
    return CourseOut(
        id=course.id,
        title=course.title,
        is_published=course.is_published,
        intelligent_progress_enabled=course.intelligent_progress_enabled,
        teacher_id=course.teacher_id,
    )


# ---- courses ----


@router.post("/v1/courses", response_model=CourseOut, status_code=status.HTTP_201_CREATED)
def create_course(
    body: CourseIn,
    services: Annotated[Services, Depends(get_services)],
) -> CourseOut:
    course = services.repos.catalog.add_course(Course.new(**body.model_dump()))
    return _course_out(course)


@router.get("/v1/courses/{course_id}", response_model=CourseOut)
def get_course(
    course_id: int,
    services: Annotated[Services, Depends(get_services)],
) -> CourseOut:
    return _course_out(_course(services, course_id))


@router.post(
    "/v1/courses/{course_id}/units",
    response_model=CreatedOut,
    status_code=status.HTTP_201_CREATED,
)
def create_unit(
    course_id: int,
    body: UnitIn,
    services: Annotated[Services, Depends(get_services)],
) -> CreatedOut:
    _course(services, course_id)
    unit = services.repos.catalog.add_unit(
        CourseUnit.new(course_id=course_id, title=body.title, position=body.position)
    )
    return CreatedOut(id=unit.id)


@router.post(
    "/v1/courses/{course_id}/modules",
    response_model=CreatedOut,
    status_code=status.HTTP_201_CREATED,
)
def create_module(
    course_id: int,
    body: ModuleIn,
    services: Annotated[Services, Depends(get_services)],
) -> CreatedOut:
    _course(services, course_id)
    if body.unit_id is not None:
        unit = services.repos.catalog.get_unit(body.unit_id)
        if unit is None or unit.course_id != course_id:
            raise NotFoundError("unit", body.unit_id)
    module = services.repos.catalog.add_module(
        CourseModule.new(course_id=course_id, **body.model_dump())
    )
    return CreatedOut(id=module.id)


@router.post(
    "/v1/courses/{course_id}/activities",
    response_model=CreatedOut,
    status_code=status.HTTP_201_CREATED,
)
def create_activity(
    course_id: int,
    body: ActivityIn,
    services: Annotated[Services, Depends(get_services)],
) -> CreatedOut:
    _course(services, course_id)
    activity = services.repos.catalog.add_activity(
        CourseActivity.new(course_id=course_id, **body.model_dump())
    )
    return CreatedOut(id=activity.id)


@router.get(
    "/v1/courses/{course_id}/certificate-stats",
    response_model=CertificateStatsOut,
)
def certificate_stats(
    course_id: int,
    services: Annotated[Services, Depends(get_services)],
) -> CertificateStatsOut:
    return CertificateStatsOut(**services.certificates.course_stats(course_id).to_dict())


# ---- modules ----


@router.post(
    "/v1/modules/{module_id}/components",
    response_model=CreatedOut,
    status_code=status.HTTP_201_CREATED,
)
def create_component(
    module_id: int,
    body: ComponentIn,
    services: Annotated[Services, Depends(get_services)],
) -> CreatedOut:
    _module(services, module_id)
    component = services.repos.catalog.add_component(
        ModuleComponent.new(module_id=module_id, **body.model_dump())
    )
    return CreatedOut(id=component.id)


@router.post(
    "/v1/modules/{module_id}/quizzes",
    response_model=QuizOut,
    status_code=status.HTTP_201_CREATED,
)
def create_quiz(
    module_id: int,
    body: QuizIn,
    services: Annotated[Services, Depends(get_services)],
) -> QuizOut:
    _module(services, module_id)
    catalog = services.repos.catalog
    quiz = catalog.add_quiz(
        Quiz.new(
            module_id=module_id,
            title=body.title,
            max_attempts=body.max_attempts,
            passing_score=body.passing_score,
            is_mandatory=body.is_mandatory,
        )
    )
    question_ids = [
        catalog.add_question(
            QuizQuestion.new(
                quiz_id=quiz.id,
                type=q.type,
                prompt=q.prompt,
                correct_answers=tuple(q.correct_answers),
                points=q.points,
                position=position,
            )
        ).id
        for position, q in enumerate(body.questions)
    ]
    return QuizOut(id=quiz.id, question_ids=question_ids)


# ---- settings ----


@router.get("/v1/settings", response_model=list[SettingOut])
def list_settings(
    services: Annotated[Services, Depends(get_services)],
) -> list[SettingOut]:
    return [
        SettingOut(key=s.key, value=s.value, type=s.type, description=s.description)
        for s in services.repos.settings.all()
    ]


@router.put("/v1/settings/{key}", response_model=SettingOut)
def put_setting(
    key: str,
    body: SettingIn,
    services: Annotated[Services, Depends(get_services)],
) -> SettingOut:
    setting = services.repos.settings.put(
        SystemSetting(
            key=key, value=body.value, type=body.type, description=body.description
        )
    )
    return SettingOut(
        key=setting.key,
        value=setting.value,
        type=setting.type,
        description=setting.description,
    )
