"""Datenmodell für Lehrer und Provisionen (Pydantic v2)."""

from typing import Optional

from pydantic import BaseModel, Field


class Teacher(BaseModel):
    """Ein Kitelehrer."""

    id: str
    name: str


class Commission(BaseModel):
    """Stundensatz, den ein Lehrer für gehaltene Events bekommt."""

    id: Optional[str] = None
    teacher_id: Optional[str] = None
    price_per_hour: float = Field(0, ge=0)   # €/h
    description: Optional[str] = None
