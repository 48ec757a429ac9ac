"""Pydantic models shared across the Movie Club service."""

from __future__ import annotations

from datetime import date
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .utils import parse_iso_date, parse_release_date

TBA = "TBA"


class CamelModel(BaseModel):
    """Base model exposing camelCase aliases on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class Movie(CamelModel):
    """Candidate title returned by the catalog."""

    id: int
    title: str
    release_date: Optional[date] = None
    poster_path: Optional[str] = None

    @field_validator("release_date", mode="before")
    @classmethod
    def lenient_release_date(cls, value):
        return parse_release_date(value)

    @field_validator("poster_path", mode="before")
    @classmethod
    def blank_poster(cls, value):
        return value or None

    @property
    def release_label(self) -> str:
        return self.release_date.isoformat() if self.release_date else TBA

    def poster_url(self, image_base_url: str, size: str = "w500") -> Optional[str]:
        """Full poster URL for the given image size, if the title has one."""
        if not self.poster_path:
            return None
        return f"{image_base_url.rstrip('/')}/{size}{self.poster_path}"


class ShowtimeSlot(CamelModel):
    """A single bookable (theater, format, date, time) showing."""

    model_config = ConfigDict(frozen=True)

    theater_name: str
    time: str
    format: Optional[str] = None
    date: Optional[str] = None


class ShowtimeOption(CamelModel):
    """A slot paired with its positional identifier and display label."""

    id: str
    label: str
    slot: ShowtimeSlot


class Selection(CamelModel):
    """Fully populated admin selection."""

    movie_id: int
    movie_title: str
    proposed_date: date


class SelectionState(CamelModel):
    """Selection as stored, tolerating fields that have not been set yet."""

    movie_id: Optional[int] = None
    movie_title: Optional[str] = None
    proposed_date: Optional[date] = None

    @field_validator("proposed_date", mode="before")
    @classmethod
    def lenient_date(cls, value):
        return parse_iso_date(value)

    @property
    def has_movie(self) -> bool:
        return self.movie_id is not None and bool(self.movie_title)

    @property
    def has_date(self) -> bool:
        return self.proposed_date is not None

    def complete(self) -> Optional[Selection]:
        """Return the full selection, or ``None`` when any field is missing."""
        if not (self.has_movie and self.has_date):
            return None
        return Selection(
            movie_id=self.movie_id,
            movie_title=self.movie_title,
            proposed_date=self.proposed_date,
        )


class BallotRequest(CamelModel):
    """A member's ranked showtime choices and the dates they can make."""

    choices: List[str] = Field(default_factory=list)
    available_dates: List[date] = Field(default_factory=list)


class RankedChoice(CamelModel):
    rank: int
    option_id: str
    label: str


class Ballot(CamelModel):
    """Validated ballot echoed back to the member."""

    movie_id: int
    movie_title: str
    choices: List[RankedChoice]
    available_dates: List[date]
