"""Human-readable vacancy numbers: ``WB/EXT/NNNN/YYYY``, sequential per year."""

import re
from typing import Iterable, Optional

VACANCY_NUMBER_PREFIX = "WB/EXT"
VACANCY_NUMBER_PATTERN = re.compile(r"^WB/EXT/(\d{4})/(\d{4})$")


def format_vacancy_number(sequence: int, year: int) -> str:
    if sequence < 1 or sequence > 9999:
        raise ValueError(f"Vacancy sequence out of range: {sequence}")
    return f"{VACANCY_NUMBER_PREFIX}/{sequence:04d}/{year}"


def parse_vacancy_number(value: str) -> Optional[tuple[int, int]]:
    """Return ``(sequence, year)`` or None if the value is not a vacancy number."""
    match = VACANCY_NUMBER_PATTERN.match(value or "")
    if not match:
        return None
    return int(match.group(1)), int(match.group(2))


def is_vacancy_number(value: str) -> bool:
    return parse_vacancy_number(value) is not None


def next_sequence(existing: Iterable[str], year: int) -> int:
    """Highest sequence already used in ``year`` plus one, or 1 if none."""
    highest = 0
    for number in existing:
        parsed = parse_vacancy_number(number)
        if parsed and parsed[1] == year:
            highest = max(highest, parsed[0])
    return highest + 1


def year_pattern(year: int) -> str:
    """SQL LIKE pattern matching every number of ``year``."""
    return f"{VACANCY_NUMBER_PREFIX}/%/{year}"
