from datetime import date

from pydantic import BaseModel, Field, model_validator

from examroster.models.semester import Season


class ExamTypeOut(BaseModel):
    id: int
    type: str
    block: int
    des: int

    model_config = {"from_attributes": True}


class ExamPhaseCreate(BaseModel):
    semester_id: int = Field(ge=1)
    exam_type_id: int = Field(ge=1)
    start_day: date
    end_day: date

    @model_validator(mode="after")
    def validate_window(self) -> "ExamPhaseCreate":
        if self.start_day > self.end_day:
            raise ValueError("start_day must not be after end_day")
        return self


class ExamPhaseUpdate(BaseModel):
    exam_type_id: int | None = Field(default=None, ge=1)
    start_day: date | None = None
    end_day: date | None = None


class ExamPhaseOut(BaseModel):
    id: int
    semester_id: int
    exam_type_id: int
    start_day: date
    end_day: date

    model_config = {"from_attributes": True}


class ExamPhaseDetailOut(ExamPhaseOut):
    season: Season
    year: int
    type: str
    block: int
    des: int
