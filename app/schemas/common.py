from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Wire models use camelCase keys; snake_case is accepted on input too."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class SuccessOut(CamelModel):
    success: bool = True


class MessageOut(SuccessOut):
    message: str


class ValidationIssueOut(BaseModel):
    field: str
    message: str
    type: str | None = None


class ErrorOut(BaseModel):
    success: bool = False
    error: str
    code: str
    requestId: str
    details: list[ValidationIssueOut] | None = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "success": False,
                "error": "Not a member of this business",
                "code": "forbidden",
                "requestId": "8d8f2b00-6c79-4a45-8ff4-b0a5f2bc4bc2",
                "details": None,
            }
        }
    )
