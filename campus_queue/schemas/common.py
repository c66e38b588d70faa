from pydantic import BaseModel


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class Pagination(BaseModel):
    page: int
    size: int
    total: int


class SystemHealth(BaseModel):
    component: str
    status: str
    detail: str | None = None
