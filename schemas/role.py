from pydantic import BaseModel, field_validator

ROLE_NAME_MAX_LENGTH = 50

class RoleBase(BaseModel):
    role: str

class RoleCreate(RoleBase):
    @field_validator("role")
    @classmethod
    def role_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("role name must not be blank")
        if len(v) > ROLE_NAME_MAX_LENGTH:
            raise ValueError(f"role name must be at most {ROLE_NAME_MAX_LENGTH} characters")
        return v

class RoleRead(RoleBase):
    id: int
