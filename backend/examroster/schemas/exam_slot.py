from __future__ import annotations

from datetime import date
import re

from pydantic import BaseModel, field_validator, model_validator

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def parse_time_to_minutes(value: str) -> int:
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


class ExamSlotCreate(BaseModel):
    day: date


class ExamSlotOut(BaseModel):
    id: int
    exam_phase_id: int
    day: date

    model_config = {"from_attributes": True}


class SubInSlotCreate(BaseModel):
    start_time: str | None = None
    end_time: str | None = None

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time_format(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip()
        parse_time_to_minutes(value)
        return value

    @model_validator(mode="after")
    def validate_window(self) -> "SubInSlotCreate":
        if (self.start_time is None) != (self.end_time is None):
            raise ValueError("start_time and end_time must be given together")
        if self.start_time and parse_time_to_minutes(self.end_time) <= parse_time_to_minutes(self.start_time):
            raise ValueError("end_time must be after start_time")
        return self


class SubInSlotOut(BaseModel):
    id: int
    exam_slot_id: int
    start_time: str | None = None
    end_time: str | None = None

    model_config = {"from_attributes": True}
