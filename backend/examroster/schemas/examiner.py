from datetime import date

from pydantic import BaseModel, EmailStr, Field, field_validator

from examroster.models.examiner import ExaminerStatus, ExaminerType


class ExaminerCreate(BaseModel):
    email: EmailStr
    name: str = Field(min_length=1, max_length=200)
    type_examiner: ExaminerType = ExaminerType.lecturer
    status: ExaminerStatus = ExaminerStatus.active

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("Name cannot be empty")
        return trimmed

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class ExaminerOut(BaseModel):
    id: int
    semester_id: int
    email: str
    name: str
    type_examiner: int
    status: int

    model_config = {"from_attributes": True}


class AvailabilityDay(BaseModel):
    day: date


class AvailabilityOut(BaseModel):
    examiner_id: int
    days: list[date]
