from pydantic import BaseModel, ConfigDict, Field, field_validator


class PostBase(BaseModel):
    title: str = Field(min_length=1)
    content: str = Field(min_length=1)

    @field_validator("title", "content")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value


class PostCreate(PostBase):
    pass


class PostResponse(PostBase):
    model_config = ConfigDict(from_attributes=True, coerce_numbers_to_str=True)

    id: str
