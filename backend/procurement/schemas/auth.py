from pydantic import BaseModel, EmailStr, Field


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class SignupRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)
    name: str | None = None


class UserOut(BaseModel):
    id: int
    email: str
    name: str | None
    is_active: bool

    model_config = {"from_attributes": True}
