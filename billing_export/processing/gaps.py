"""Detect missing invoice numbers in a numbering sequence."""
from __future__ import annotations

import logging
import re
from typing import Dict, Iterable, List, Optional, Set, Tuple

logger = logging.getLogger(__name__)

_NUMBER_PATTERN = re.compile(r"^(\D*)(\d+)$")
MAX_GAP_SPAN = 100_000


def split_number(value: str) -> Optional[Tuple[str, int, int]]:
    """Return ``(prefix, number, digit width)`` or ``None`` for non-sequential numbers."""

    match = _NUMBER_PATTERN.match(value.strip())
    if not match:
        return None
    prefix, digits = match.groups()
    return prefix, int(digits), len(digits)


def find_missing_numbers(numbers: Iterable[str]) -> List[str]:
    """List the invoice numbers absent between the lowest and highest observed.

    Missing numbers are zero-padded to the digit width of the highest number.
    The prefix is kept only when every parsed number shares the same one.
    Ranges wider than ``MAX_GAP_SPAN`` are logged and reported as no gaps.
    """

    prefixes: Set[str] = set()
    widths: Dict[int, int] = {}
    parsed_count = 0
    for value in numbers:
        parsed = split_number(value or "")
        if parsed is None:
            continue
        prefix, number, width = parsed
        prefixes.add(prefix)
        widths[number] = max(width, widths.get(number, 0))
        parsed_count += 1

    if parsed_count < 2:
        return []

    low, high = min(widths), max(widths)
    if high - low > MAX_GAP_SPAN:
        logger.warning("Invoice numbers span %d to %d, too wide to list gaps", low, high)
        return []
    width = widths[high]
    prefix = next(iter(prefixes)) if len(prefixes) == 1 else ""
    return [f"{prefix}{number:0{width}d}" for number in range(low, high + 1) if number not in widths]
