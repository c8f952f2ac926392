from sqlalchemy import Column, Integer, String, Table, ForeignKey
from sqlalchemy.orm import relationship
from .base import Base

# Association table for User-Role N:M (owned by User)
users_to_roles = Table(
    'users_to_roles', Base.metadata,
    Column('usersid', Integer, ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
    Column('rolesid', Integer, ForeignKey('roles.id', ondelete='CASCADE'), primary_key=True)
)

class Role(Base):
    __tablename__ = 'roles'
    id = Column(Integer, primary_key=True, index=True)
    role = Column(String(50), unique=True, nullable=False, index=True)
    users = relationship('User', secondary=users_to_roles, back_populates='roles', passive_deletes=True)

    def __repr__(self):
        return f"<Role(id={self.id}, role='{self.role}')>"
