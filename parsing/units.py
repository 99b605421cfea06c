"""Unit token parsing: free-text responding-unit lists -> canonical unit codes."""

import logging
import re
from typing import Optional

logger = logging.getLogger("dispatch_watch.parsing.units")

MAX_UNITS = 15

TOKEN_SPLIT_REGEX = re.compile(r"[,;|\t\s]+")

STOP_WORDS = {"AND", "PLUS", "WITH", "ALSO", "RESPONDING", "DISPATCH", "DISPATCHED"}

# (pattern, prefix). First match wins; the code is prefix + the captured digits.
UNIT_PATTERNS = [
    (re.compile(r"^E(\d+)$"), "E"),
    (re.compile(r"^ENGINE(\d+)$"), "E"),
    (re.compile(r"^L(\d+)$"), "L"),
    (re.compile(r"^LADDER(\d+)$"), "L"),
    (re.compile(r"^R(\d+)$"), "R"),
    (re.compile(r"^RESCUE(\d+)$"), "R"),
    (re.compile(r"^S(\d+)$"), "S"),
    (re.compile(r"^SQUAD(\d+)$"), "S"),
    (re.compile(r"^SPECIAL(\d+)$"), "S"),
    (re.compile(r"^SUPPORT(\d+)$"), "S"),
    (re.compile(r"^D(\d+)$"), "D"),
    (re.compile(r"^DISTRICT(\d+)$"), "D"),
    (re.compile(r"^FI(\d+)$"), "FI"),
    (re.compile(r"^FIRE(\d+)$"), "FI"),
    (re.compile(r"^P(\d+)$"), ""),  # paramedic units are keyed by number alone
    (re.compile(r"^(\d{1,3})$"), ""),
]

UNIT_LIKE_REGEXES = [
    re.compile(r"^[A-Z]+\d+$"),
    re.compile(r"^\d+[A-Z]*$"),
]
MAX_UNIT_LIKE_LEN = 10


def tokenize(text: Optional[str]) -> list[str]:
    """Split a raw unit string on commas, semicolons, pipes, tabs and whitespace; upper-case each token."""
    if not text or not text.strip():
        return []
    return [t.strip().upper() for t in TOKEN_SPLIT_REGEX.split(text) if t.strip()]


def canonical_unit(token: str) -> Optional[str]:
    """Return the canonical code for one upper-cased token, or None if it is not a unit."""
    if not token or token in STOP_WORDS:
        return None
    for rx, prefix in UNIT_PATTERNS:
        m = rx.match(token)
        if m:
            return prefix + m.group(1)
    if len(token) < MAX_UNIT_LIKE_LEN and any(rx.match(token) for rx in UNIT_LIKE_REGEXES):
        return token
    return None


def parse_units(text: Optional[str]) -> list[str]:
    """
    Parse a free-text unit list into an ordered, deduplicated list of unit codes (max 15).
    First occurrence wins. Aliases are not merged: "E12" and "12" stay distinct codes.
    Never raises; empty input gives [].
    """
    units: list[str] = []
    for token in tokenize(text):
        code = canonical_unit(token)
        if code is None or code in units:
            continue
        units.append(code)
    if len(units) > MAX_UNITS:
        logger.debug("unit list truncated parsed=%d max=%d", len(units), MAX_UNITS)
        units = units[:MAX_UNITS]
    return units
