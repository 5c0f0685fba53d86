from pydantic import BaseModel, Field

from examroster.models.semester import Season


class SemesterCreate(BaseModel):
    season: Season
    year: int = Field(ge=2000, le=2100)


class SemesterOut(SemesterCreate):
    id: int

    model_config = {"from_attributes": True}
