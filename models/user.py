from sqlalchemy import Boolean, Column, Integer, String, true
from sqlalchemy.orm import relationship
from .base import Base

class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    enabled = Column(Boolean, nullable=False, default=True, server_default=true())
    email = Column(String(255), unique=True, nullable=False, index=True)
    username = Column(String(50), unique=True, nullable=False, index=True)
    # 해시된 비밀번호만 저장 (해싱은 호출자 책임)
    password = Column(String(255), nullable=False)
    roles = relationship('Role', secondary='users_to_roles', back_populates='users', passive_deletes=True)
    agendas = relationship('Agenda', back_populates='user', cascade='all, delete-orphan', passive_deletes=True)

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}', email='{self.email}', enabled={self.enabled})>"
