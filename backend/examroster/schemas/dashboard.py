from datetime import date

from pydantic import BaseModel


class ExaminerSummaryOut(BaseModel):
    examiner_id: int
    name: str
    email: str
    role: str
    status: int

    model_config = {"from_attributes": True}


class DistinctExaminersOut(BaseModel):
    phase_id: int
    status: str
    message: str | None = None
    total: int
    by_role: dict[str, int]
    examiners: list[ExaminerSummaryOut]

    model_config = {"from_attributes": True}


class PhaseCountOut(BaseModel):
    phase_id: int
    count: int


class ExaminerLoadOut(BaseModel):
    examiner_id: int
    name: str
    email: str
    quantity: int

    model_config = {"from_attributes": True}


class LoadEntryOut(BaseModel):
    examiner_id: int
    quantity: int


class SlotUtilizationOut(BaseModel):
    slot_id: int
    day: date
    total_rooms: int
    staffed_rooms: int
    ratio: float

    model_config = {"from_attributes": True}
