import re
from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, BeforeValidator, StrictBool

from models.agenda import DayOfWeek

# HH:MM, 00:00 ~ 23:59
TIME_PATTERN = re.compile(r"^([01][0-9]|2[0-3]):[0-5][0-9]$")
NOTE_MAX_LENGTH = 1000


def validate_time(v: str) -> str:
    if not TIME_PATTERN.match(v):
        raise ValueError(f"time must be formatted as HH:MM, got {v!r}")
    return v


def validate_note(v: str) -> str:
    if not v.strip():
        raise ValueError("note must not be blank")
    if len(v) > NOTE_MAX_LENGTH:
        raise ValueError(f"note must be at most {NOTE_MAX_LENGTH} characters")
    return v


def parse_day(v):
    # "monday", "MONDAY", DayOfWeek.MONDAY 모두 허용
    if isinstance(v, str):
        return v.strip().upper()
    return v


Day = Annotated[DayOfWeek, BeforeValidator(parse_day)]
TimeStr = Annotated[str, AfterValidator(validate_time)]
NoteStr = Annotated[str, AfterValidator(validate_note)]


class AgendaCreate(BaseModel):
    user_id: int
    day: Day
    time: TimeStr
    accessible: StrictBool
    note: NoteStr

class AgendaUpdate(BaseModel):
    day: Optional[Day] = None
    time: Optional[TimeStr] = None
    accessible: Optional[StrictBool] = None
    note: Optional[NoteStr] = None

class AgendaRead(BaseModel):
    id: int
    user_id: int
    day: DayOfWeek
    time: str
    accessible: bool
    note: str
