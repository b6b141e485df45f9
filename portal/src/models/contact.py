"""Contact form models."""

from pydantic import BaseModel, EmailStr, Field, field_validator


class ContactMessageRequest(BaseModel):
    """Message sent from the public contact page."""
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    message: str = Field(..., min_length=1, max_length=5000)

    @field_validator("name", "message")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    model_config = {
        "json_schema_extra": {
            "example": {
                "name": "Asha",
                "email": "asha@example.com",
                "message": "When will the June exam window open?"
            }
        }
    }
