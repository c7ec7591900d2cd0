"""Length and encoding parsing.

A length is written either as a plain integer ("40", meaning 40 characters
of rendered output) or with a byte suffix ("32b", meaning 32 raw random
bytes before encoding).
"""

import re

from kube_secretgen.exceptions import InvalidLengthFormatError
from kube_secretgen.models import GenerationConstraint

BYTE_SUFFIX = "b"

_DIGITS_PATTERN = re.compile(r"^\d+$")


def parse_length(length: str, fallback: int) -> tuple[int, bool]:
    """Parse a length string into a length and a byte-length flag.

    Args:
        length: The length string, e.g. "", "40" or "32B".
        fallback: Length used when the string is empty or zero.

    Returns:
        A (length, is_byte_length) tuple.

    Raises:
        InvalidLengthFormatError: If the string (without suffix) is not a
            non-negative integer. The error carries the fallback.

    """
    value = length.strip().lower()
    if not value:
        return fallback, False

    is_byte_length = value.endswith(BYTE_SUFFIX)
    digits = value.removesuffix(BYTE_SUFFIX)
    if not _DIGITS_PATTERN.match(digits):
        raise InvalidLengthFormatError(length, fallback)

    parsed = int(digits)
    if parsed <= 0:
        return fallback, is_byte_length
    return parsed, is_byte_length


def resolve_encoding(*candidates: str, default: str) -> str:
    """Return the first non-empty encoding name, or the default.

    Args:
        *candidates: Encoding names in order of priority.
        default: Encoding used when every candidate is empty.

    Returns:
        The lower-cased encoding name.

    """
    for candidate in candidates:
        if candidate and candidate.strip():
            return candidate.strip().lower()
    return default


def build_constraint(length: str, encoding: str, *, fallback_length: int, fallback_encoding: str) -> GenerationConstraint:
    """Build a generation constraint from raw length and encoding strings.

    Args:
        length: The length string.
        encoding: The encoding name; empty means the fallback.
        fallback_length: Length used when the string is empty or zero.
        fallback_encoding: Encoding used when none is given.

    Returns:
        The parsed GenerationConstraint.

    Raises:
        InvalidLengthFormatError: If the length string is malformed.

    """
    parsed, is_byte_length = parse_length(length, fallback_length)
    return GenerationConstraint(
        length=parsed,
        is_byte_length=is_byte_length,
        encoding=resolve_encoding(encoding, default=fallback_encoding),
    )
