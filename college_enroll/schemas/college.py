from pydantic import BaseModel, Field


class CollegeCreate(BaseModel):
    name: str = Field(min_length=2, max_length=255)
    code: str = Field(min_length=1, max_length=50)


class CollegeRead(BaseModel):
    id: int
    name: str
    code: str

    class Config:
        from_attributes = True
