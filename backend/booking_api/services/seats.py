"""
Seat identifier normalization and showing keys.

Seats arrive in many shapes: "A1, a2", '["A1","A2"]', "{A1,A2}", or a
JSON list. Every representation collapses to the same frozenset of
upper-case tokens, and the same function is applied to request payloads
and to stored rows so comparisons are always like-for-like.
"""

import re
from collections.abc import Iterable
from typing import Any, NamedTuple, Optional

_WHITESPACE = re.compile(r"\s+")
_SEAT_NOISE = re.compile(r"[^A-Za-z0-9 ,]")
_DIGITS = re.compile(r"(\d+)")


def _tokens(chunk: str) -> Iterable[str]:
    cleaned = _SEAT_NOISE.sub("", _WHITESPACE.sub(" ", chunk))
    for token in cleaned.split(","):
        token = token.strip().upper()
        if token:
            yield token


def normalize_seats(raw: Any) -> frozenset[str]:
    """Convert a raw seat value of unknown representation to canonical tokens."""
    if raw is None:
        return frozenset()
    if isinstance(raw, bytes):
        chunks = [raw.decode("utf-8", errors="ignore")]
    elif isinstance(raw, str):
        chunks = [raw]
    elif isinstance(raw, Iterable):
        chunks = [str(item) for item in raw if item is not None]
    else:
        chunks = [str(raw)]

    seats: set[str] = set()
    for chunk in chunks:
        seats.update(_tokens(chunk))
    return frozenset(seats)


def seat_sort_key(seat: str) -> list:
    # Natural ordering: A2 sorts before A10
    return [int(part) if part.isdigit() else part for part in _DIGITS.split(seat)]


def sorted_seats(seats: Iterable[str]) -> list[str]:
    return sorted(seats, key=seat_sort_key)


class ShowingKey(NamedTuple):
    """A specific showing: movie or event title, date and time."""

    title: str
    date: str
    time: str

    @classmethod
    def build(
        cls,
        movie_name: Optional[str],
        event_name: Optional[str],
        date: str,
        time: str,
    ) -> "ShowingKey":
        title = (movie_name or "").strip() or (event_name or "").strip()
        return cls(title=title, date=date.strip(), time=time.strip())

    def __str__(self) -> str:
        return f"{self.title}|{self.date}|{self.time}"
