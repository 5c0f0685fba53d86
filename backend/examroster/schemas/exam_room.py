from pydantic import BaseModel, Field, field_validator


class ExamRoomCreate(BaseModel):
    room_ref: str = Field(min_length=1, max_length=50)
    course_id: int = Field(ge=1)

    @field_validator("room_ref")
    @classmethod
    def normalize_room_ref(cls, value: str) -> str:
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("room_ref cannot be empty")
        return trimmed


class ExamRoomOut(BaseModel):
    id: int
    sub_in_slot_id: int
    room_ref: str
    course_id: int
    examiner_id: int | None = None

    model_config = {"from_attributes": True}


class ExaminerAssignment(BaseModel):
    examiner_id: int = Field(ge=1)


class AutoFillSummaryOut(BaseModel):
    slot_id: int
    assigned: int
    unstaffed: int
    assigned_room_ids: list[int]
    unstaffed_room_ids: list[int]
    skipped_room_ids: list[int]
    failed_room_ids: list[int]

    model_config = {"from_attributes": True}
