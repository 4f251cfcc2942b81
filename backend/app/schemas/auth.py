import uuid

from pydantic import BaseModel


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserOut(BaseModel):
    id: uuid.UUID
    email: str
    name: str
    role: str
    team_id: uuid.UUID
    is_active: bool

    model_config = {"from_attributes": True}
