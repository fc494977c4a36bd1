from pydantic import BaseModel, field_validator


class GenerateRequest(BaseModel):
    topic: str

    @field_validator("topic")
    @classmethod
    def topic_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("topic must not be empty")
        return v


class ErrorResponse(BaseModel):
    message: str
