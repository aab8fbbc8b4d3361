"""Normalization of half-day-relative timetable strings into minutes of day."""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

PLACEHOLDER_TOKENS = frozenset({"", "-"})

# "8:05", "8:05PM", "12:10 am", "8" (minute defaults to 0)
_TOKEN_RE = re.compile(r"^(\d{1,2})(?::(\d{2}))?\s*([AaPp][Mm])?$")


class Period(Enum):
    """Half of the day inferred for a token."""
    UNKNOWN = "unknown"
    AM = "AM"
    PM = "PM"


class MalformedTokenError(ValueError):
    """Raised by parse_token for a token that is neither a time nor a placeholder."""


@dataclass(frozen=True)
class ParsedToken:
    """A timetable token split into its raw parts."""
    hour: int  # 1-12, as written
    minute: int
    marker: Optional[Period] = None  # Explicit AM/PM suffix, if any


@dataclass(frozen=True)
class NormalizedTimes:
    """Result of normalizing one stop's tokens."""
    minutes: Tuple[Optional[int], ...]
    malformed: Tuple[Tuple[int, str], ...] = ()  # (index, token) data-quality flags


def is_placeholder(token: str) -> bool:
    return token.strip() in PLACEHOLDER_TOKENS


def parse_token(token: str) -> Optional[ParsedToken]:
    """
    Parse a single timetable token.

    Returns:
        ParsedToken, or None for a placeholder.

    Raises:
        MalformedTokenError: If the token is not a recognizable time.
    """
    text = token.strip()
    if text in PLACEHOLDER_TOKENS:
        return None

    match = _TOKEN_RE.match(text)
    if not match:
        raise MalformedTokenError(f"Unparseable time token {token!r}")

    hour = int(match.group(1))
    minute = int(match.group(2) or 0)
    if not 1 <= hour <= 12 or not 0 <= minute <= 59:
        raise MalformedTokenError(f"Time token out of range {token!r}")

    suffix = match.group(3)
    marker = Period(suffix.upper()) if suffix else None
    return ParsedToken(hour=hour, minute=minute, marker=marker)


class PeriodInference:
    """
    AM/PM state machine for one stop's token sequence.

    Feed tokens in order with advance(); the state holds the last inferred
    period and the raw hour of the last non-placeholder token.
    """

    def __init__(self):
        self.period = Period.UNKNOWN
        self.last_hour: Optional[int] = None

    def advance(self, parsed: ParsedToken) -> Period:
        """Consume one parsed token and return the period it belongs to."""
        hour = parsed.hour
        last = self.last_hour

        if parsed.marker is not None:
            self.period = parsed.marker
        elif last is not None:
            if hour == 12 and last >= 10:
                self.period = Period.PM
            elif hour < last and last >= 11:
                self.period = Period.PM
            elif self.period is Period.PM and hour < last and hour != 12:
                self.period = Period.PM

        if self.period is Period.UNKNOWN:
            self.period = Period.AM

        self.last_hour = hour
        return self.period

    def to_minutes(self, parsed: ParsedToken) -> int:
        """Advance with the token and convert it to a minute of day."""
        period = self.advance(parsed)
        return to_24_hour(parsed.hour, period) * 60 + parsed.minute


def to_24_hour(hour: int, period: Period) -> int:
    if period is Period.PM and hour != 12:
        return hour + 12
    if period is Period.AM and hour == 12:
        return 0
    return hour


def normalize_report(tokens: Sequence[str]) -> NormalizedTimes:
    """
    Normalize tokens and collect data-quality flags.

    Malformed tokens become None, are logged, and leave the inference
    state untouched so the remaining tokens are still evaluated.
    """
    inference = PeriodInference()
    minutes: List[Optional[int]] = []
    malformed: List[Tuple[int, str]] = []

    for index, token in enumerate(tokens):
        try:
            parsed = parse_token(token)
        except MalformedTokenError as e:
            logger.warning(f"Treating token {index} as no service: {e}")
            malformed.append((index, token))
            minutes.append(None)
            continue

        if parsed is None:
            minutes.append(None)
        else:
            minutes.append(inference.to_minutes(parsed))

    return NormalizedTimes(minutes=tuple(minutes), malformed=tuple(malformed))


def normalize(tokens: Sequence[str]) -> List[Optional[int]]:
    """
    Convert an ordered list of timetable tokens for one stop to minutes of day.

    Args:
        tokens: Tokens like "8:00AM", "8:10", "-" in run order.

    Returns:
        One entry per token: minute of day, or None where the run skips the stop.
    """
    return list(normalize_report(tokens).minutes)


def format_minutes(minutes: int) -> str:
    """Format a minute of day for display, e.g. 485 -> "8:05 AM"."""
    hour, minute = divmod(minutes, 60)
    hour %= 24
    ampm = "PM" if hour >= 12 else "AM"
    return f"{hour % 12 or 12}:{minute:02d} {ampm}"


def minutes_to_token(minutes: int) -> str:
    """Format a minute of day as an explicit timetable token, e.g. 485 -> "8:05AM"."""
    return format_minutes(minutes).replace(" ", "")
