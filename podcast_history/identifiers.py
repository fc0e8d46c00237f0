"""Text codec for the 128-bit UUIDs both players use as feed keys."""

import string

from .errors import InvalidUUIDError

UUID_TEXT_LENGTH = 36
HYPHEN_OFFSETS = (8, 13, 18, 23)

_HEX_DIGITS = frozenset(string.hexdigits)
_MAX_UUID = (1 << 128) - 1


def encode_uuid(value: int) -> str:
    """Render a 128-bit integer as lower-case 8-4-4-4-12 hex.

    Raises:
        ValueError: If value does not fit in 128 unsigned bits
    """
    if not 0 <= value <= _MAX_UUID:
        raise ValueError(f"UUID value out of range: {value}")
    digits = f"{value:032x}"
    return f"{digits[:8]}-{digits[8:12]}-{digits[12:16]}-{digits[16:20]}-{digits[20:]}"


def decode_uuid(text: str) -> int:
    """Parse canonical UUID text back into its 128-bit integer.

    Args:
        text: 36 characters with hyphens at offsets 8, 13, 18 and 23

    Returns:
        The unsigned integer value

    Raises:
        InvalidUUIDError: If the length, hyphen positions or hex digits are wrong
    """
    if not isinstance(text, str) or len(text) != UUID_TEXT_LENGTH:
        raise InvalidUUIDError(text)
    if any(text[offset] != "-" for offset in HYPHEN_OFFSETS):
        raise InvalidUUIDError(text)

    digits = text.replace("-", "")
    # Stray hyphens elsewhere leave fewer than 32 digits
    if len(digits) != 32 or not all(c in _HEX_DIGITS for c in digits):
        raise InvalidUUIDError(text)
    return int(digits, 16)
