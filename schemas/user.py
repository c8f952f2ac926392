from pydantic import BaseModel, EmailStr, field_validator
from typing import List, Optional

from .role import RoleRead
from .agenda import AgendaRead

EMAIL_MAX_LENGTH = 255
USERNAME_MAX_LENGTH = 50
PASSWORD_MAX_LENGTH = 255

class UserBase(BaseModel):
    username: str
    email: EmailStr

class UserCreate(UserBase):
    # 이미 해시된 비밀번호 (utils.security.hash_password 결과)
    password: str
    enabled: bool = True

    @field_validator("username")
    @classmethod
    def username_valid(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("username must not be blank")
        if len(v) > USERNAME_MAX_LENGTH:
            raise ValueError(f"username must be at most {USERNAME_MAX_LENGTH} characters")
        return v

    @field_validator("email")
    @classmethod
    def email_length(cls, v: str) -> str:
        if len(v) > EMAIL_MAX_LENGTH:
            raise ValueError(f"email must be at most {EMAIL_MAX_LENGTH} characters")
        return v

    @field_validator("password")
    @classmethod
    def password_present(cls, v: str) -> str:
        if not v:
            raise ValueError("password must not be empty")
        if len(v) > PASSWORD_MAX_LENGTH:
            raise ValueError(f"password must be at most {PASSWORD_MAX_LENGTH} characters")
        return v

class UserRead(UserBase):
    id: int
    enabled: bool
    password: str
    # None = 관계를 로드하지 않음 (with_relations=False)
    roles: Optional[List[RoleRead]] = None
    agendas: Optional[List[AgendaRead]] = None

    @property
    def role_names(self) -> List[str]:
        return [r.role for r in self.roles or []]
