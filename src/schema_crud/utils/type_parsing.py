"""
Helpers for reading raw column types and fixed date/time masks
"""
import re
from typing import Pattern, Tuple

# Placeholders a mask may contain and the pattern each one stands for
MASK_PATTERNS = {
    'YYYY': r'(19|20)\d\d',
    'MM': r'(0[1-9]|1[0-2])',
    'DD': r'(0[1-9]|[12][0-9]|3[01])',
    'hh': r'([01][0-9]|2[0-3])',
    'mm': r'([0-5][0-9])',
    'ss': r'([0-5][0-9])',
}

_MASK_TOKEN = re.compile('|'.join(MASK_PATTERNS))
_PRECISION_SCALE = re.compile(r'^\s*\d+\s*,\s*\d+\s*$')


def split_raw_type(raw_type: str) -> Tuple[str, str]:
    """
    Split a raw column type such as ``varchar(500)`` into name and length text.

    Only the first ``(...)`` pair is considered. A missing or unterminated
    pair yields an empty length text.

    Returns:
        Tuple of (lower-cased type name, length text)
    """
    raw_type = (raw_type or '').strip()
    start = raw_type.find('(')
    if start == -1:
        return raw_type.lower(), ''

    end = raw_type.find(')', start + 1)
    if end == -1:
        return raw_type.lower(), ''

    return raw_type[:start].strip().lower(), raw_type[start + 1:end].strip()


def is_precision_scale(length_text: str) -> bool:
    """True for numeric ``precision,scale`` parameters like ``10,2``"""
    return bool(_PRECISION_SCALE.match(length_text))


def parse_max_length(length_text: str) -> int:
    """Numeric length text as an int, 0 (unbounded) for anything else"""
    return int(length_text) if length_text.isascii() and length_text.isdigit() else 0


def mask_to_regex(mask: str) -> Pattern:
    """Compile a mask such as ``YYYY-MM-DD hh:mm:ss`` to an anchored regex"""
    parts = []
    position = 0
    for match in _MASK_TOKEN.finditer(mask):
        parts.append(re.escape(mask[position:match.start()]))
        parts.append(MASK_PATTERNS[match.group(0)])
        position = match.end()
    parts.append(re.escape(mask[position:]))
    return re.compile('^' + ''.join(parts) + '$')


def matches_mask(value: str, mask: str) -> bool:
    """Whether the whole of ``value`` matches the mask"""
    return mask_to_regex(mask).fullmatch(value) is not None
