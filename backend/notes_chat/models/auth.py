from pydantic import BaseModel, Field


class Credentials(BaseModel):
    user_id: str = Field(min_length=3, max_length=64, pattern=r"^[A-Za-z0-9_@-]+$")
    password: str = Field(min_length=8, max_length=128)


class RegisterRequest(Credentials):
    pass


class LoginRequest(Credentials):
    pass


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
