import enum
from sqlalchemy import BigInteger, Boolean, Column, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from .base import Base


class DayOfWeek(str, enum.Enum):
    MONDAY = "MONDAY"
    TUESDAY = "TUESDAY"
    WEDNESDAY = "WEDNESDAY"
    THURSDAY = "THURSDAY"
    FRIDAY = "FRIDAY"
    SATURDAY = "SATURDAY"
    SUNDAY = "SUNDAY"

    @property
    def ordinal(self) -> int:
        return list(DayOfWeek).index(self)


class Agenda(Base):
    __tablename__ = 'agenda'
    # SQLite는 INTEGER PRIMARY KEY만 자동 증가하므로 variant 지정
    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, index=True)
    usersid = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    # 요일은 이름 문자열로 저장 (MONDAY ... SUNDAY)
    day = Column(Enum(DayOfWeek, name='day_of_week', native_enum=False, length=9), nullable=False)
    time = Column(String(5), nullable=False)  # HH:MM
    accessible = Column(Boolean, nullable=False, default=False)
    note = Column(Text, nullable=False)
    user = relationship('User', back_populates='agendas')

    def __repr__(self):
        return f"<Agenda(id={self.id}, usersid={self.usersid}, day={self.day.value if self.day else None}, time='{self.time}')>"
