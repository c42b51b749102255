from pydantic import BaseModel, ConfigDict, Field


class ConsentActionResponse(BaseModel):
    success: bool
    message: str


class CategoryCheckResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    category: str
    has_consent: bool = Field(alias="hasConsent")
