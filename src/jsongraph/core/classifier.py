"""
Semantic type classifier.

Maps a JSON value (plus an optional key used as a hint) to a ``SemanticType``.
Strings run through an ordered cascade of ``ClassifierRule`` entries and the
first rule whose predicate accepts the value wins, so the order of
``STRING_RULES`` is part of the contract.
"""

import base64
import binascii
import re
from datetime import date, datetime
from typing import Any, Callable, NamedTuple, Tuple
from urllib.parse import urlparse

from ..config import TIMESTAMP_MAX_MS, TIMESTAMP_MIN_MS
from .exceptions import ValidationError
from .types import SemanticType

URL_SCHEMES = frozenset({"http", "https", "ftp", "ws", "wss"})

_EMAIL = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_UUID = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$", re.IGNORECASE)
_BASE64 = re.compile(r"^[A-Za-z0-9+/]+={0,2}$")
_DIGITS = re.compile(r"^\d+$")
_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_DATETIME = re.compile(r"^(\d{4})-(\d{2})-(\d{2})[T ](\d{2}):(\d{2}):(\d{2})")
_NUMERIC = re.compile(r"^-?\d+(\.\d+)?$")
_HEX_COLOR = re.compile(r"^#?([0-9A-F]{3}|[0-9A-F]{6}|[0-9A-F]{8})$", re.IGNORECASE)
_RGB_COLOR = re.compile(r"^rgb\(\s*\d+\s*,\s*\d+\s*,\s*\d+\s*\)$", re.IGNORECASE)
_RGBA_COLOR = re.compile(r"^rgba\(\s*\d+\s*,\s*\d+\s*,\s*\d+\s*,\s*[\d.]+\s*\)$", re.IGNORECASE)
# A bare integer is a number, not a version: require a dot or a leading "v"
_VERSION = re.compile(r"^(v\d+(\.\d+)*|\d+(\.\d+)+)([+-][\w.-]*)?$", re.IGNORECASE)
_SEMVER = re.compile(
    r"^\d+\.\d+\.\d+"
    r"(-[0-9A-Za-z-]+(\.[0-9A-Za-z-]+)*)?"
    r"(\+[0-9A-Za-z-]+(\.[0-9A-Za-z-]+)*)?$"
)
_IPV4 = re.compile(r"^(\d{1,3})\.(\d{1,3})\.(\d{1,3})\.(\d{1,3})$")
_IPV6 = re.compile(r"^([0-9a-fA-F]{1,4}:){7}[0-9a-fA-F]{1,4}$")
_PHONE = re.compile(r"^\+?\(?[\d\s\-()]{10,}$")
_CARD = re.compile(r"^\d{13,19}$")
_FILE_PATH = re.compile(
    r'^([a-zA-Z]:)?(\.{1,2})?[\\/]?([^\\/:*?"<>|\r\n]+[\\/])*[^\\/:*?"<>|\r\n]+\.[A-Za-z0-9]{1,10}$'
)
_DIRECTORY_PATH = re.compile(
    r'^([a-zA-Z]:)?(\.{1,2})?[\\/]?([^\\/:*?"<>|\r\n]+[\\/])+[^\\/:*?"<>|\r\n.]*$'
)


# --- Predicates -------------------------------------------------------------

def is_timestamp(value: float) -> bool:
    """Epoch milliseconds strictly between 2000-01-01 and 2100-01-01."""
    return TIMESTAMP_MIN_MS < value < TIMESTAMP_MAX_MS


def is_url(text: str) -> bool:
    try:
        parsed = urlparse(text)
    except ValueError:
        return False
    return parsed.scheme.lower() in URL_SCHEMES and bool(parsed.netloc)


def is_email(text: str) -> bool:
    return bool(_EMAIL.match(text))


def is_uuid(text: str) -> bool:
    return bool(_UUID.match(text))


def is_base64(text: str) -> bool:
    """
    Exact round trip only: the length must be a multiple of four and
    re-encoding the decoded bytes must reproduce the input. Digit-only
    strings are numbers, never base64.
    """
    if not text or len(text) % 4 != 0 or _DIGITS.match(text):
        return False
    if not _BASE64.match(text):
        return False
    try:
        decoded = base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError):
        return False
    return base64.b64encode(decoded).decode("ascii") == text


def _valid_date(year: str, month: str, day: str) -> bool:
    try:
        date(int(year), int(month), int(day))
    except ValueError:
        return False
    return True


def is_date(text: str) -> bool:
    match = _DATE.match(text)
    return bool(match) and _valid_date(*match.groups())


def is_datetime(text: str) -> bool:
    match = _DATETIME.match(text)
    if not match:
        return False
    year, month, day, hour, minute, second = match.groups()
    try:
        datetime(int(year), int(month), int(day), int(hour), int(minute), int(second))
    except ValueError:
        return False
    return True


def is_hex_color(text: str) -> bool:
    return bool(_HEX_COLOR.match(text))


def is_rgb_color(text: str) -> bool:
    return bool(_RGB_COLOR.match(text))


def is_rgba_color(text: str) -> bool:
    return bool(_RGBA_COLOR.match(text))


def is_version(text: str) -> bool:
    return bool(_VERSION.match(text))


def is_semantic_version(text: str) -> bool:
    return bool(_SEMVER.match(text))


def is_ipv4(text: str) -> bool:
    match = _IPV4.match(text)
    return bool(match) and all(0 <= int(octet) <= 255 for octet in match.groups())


def is_ipv6(text: str) -> bool:
    return bool(_IPV6.match(text))


def is_phone(text: str) -> bool:
    return bool(_PHONE.match(re.sub(r"\s", "", text)))


def luhn_check(digits: str) -> bool:
    total = 0
    for position, char in enumerate(reversed(digits)):
        digit = int(char)
        if position % 2 == 1:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
    return total % 10 == 0


def is_credit_card(text: str) -> bool:
    cleaned = re.sub(r"\s+", "", text)
    return bool(_CARD.match(cleaned)) and luhn_check(cleaned)


def _has_separator(text: str) -> bool:
    return "/" in text or "\\" in text


def is_file_path(text: str) -> bool:
    return _has_separator(text) and bool(_FILE_PATH.match(text))


def is_directory_path(text: str) -> bool:
    return _has_separator(text) and bool(_DIRECTORY_PATH.match(text))


# --- Cascade ----------------------------------------------------------------

class ClassifierRule(NamedTuple):
    """A (predicate, tag) pair. Predicates receive the string and the lowercased key."""
    name: str
    predicate: Callable[[str, str], bool]
    tag: SemanticType


STRING_RULES: Tuple[ClassifierRule, ...] = (
    ClassifierRule("url", lambda s, k: is_url(s), SemanticType.URL),
    ClassifierRule("email", lambda s, k: is_email(s), SemanticType.EMAIL),
    ClassifierRule("uuid", lambda s, k: is_uuid(s), SemanticType.UUID),
    ClassifierRule("base64", lambda s, k: is_base64(s), SemanticType.BASE64),
    ClassifierRule("date", lambda s, k: is_date(s), SemanticType.DATE),
    ClassifierRule("datetime", lambda s, k: is_datetime(s), SemanticType.DATETIME),
    ClassifierRule(
        "timestamp-hint",
        lambda s, k: ("time" in k or "stamp" in k) and bool(_NUMERIC.match(s)),
        SemanticType.TIMESTAMP,
    ),
    ClassifierRule("hex-color", lambda s, k: is_hex_color(s), SemanticType.HEX_COLOR),
    ClassifierRule("rgb-color", lambda s, k: is_rgb_color(s), SemanticType.RGB_COLOR),
    ClassifierRule("rgba-color", lambda s, k: is_rgba_color(s), SemanticType.RGBA_COLOR),
    # Strict semver and dotted quads precede the loose version pattern, which would swallow both.
    # Only semver has to move for "1.2.3"; ipv4 and ipv6 move with it so "10.0.0.1" stays an address.
    ClassifierRule("semantic-version", lambda s, k: is_semantic_version(s), SemanticType.SEMANTIC_VERSION),
    ClassifierRule("ipv4", lambda s, k: is_ipv4(s), SemanticType.IPV4),
    ClassifierRule("ipv6", lambda s, k: is_ipv6(s), SemanticType.IPV6),
    ClassifierRule("version", lambda s, k: is_version(s) or "version" in k, SemanticType.VERSION),
    # Luhn is stricter than the phone pattern; card numbers also match it
    ClassifierRule("credit-card", lambda s, k: is_credit_card(s), SemanticType.CREDIT_CARD),
    ClassifierRule("phone", lambda s, k: is_phone(s), SemanticType.PHONE),
    ClassifierRule("file-path", lambda s, k: is_file_path(s) or "path" in k, SemanticType.FILE_PATH),
    ClassifierRule("directory-path", lambda s, k: is_directory_path(s), SemanticType.DIRECTORY_PATH),
)


def classify_string(text: str, key: str = "") -> SemanticType:
    key_lower = key.lower()
    for rule in STRING_RULES:
        if rule.predicate(text, key_lower):
            return rule.tag
    return SemanticType.STRING


def classify_number(value: float) -> SemanticType:
    return SemanticType.TIMESTAMP if is_timestamp(value) else SemanticType.NUMBER


def classify(value: Any, key: str = "") -> SemanticType:
    """
    Classify a JSON value.

    Args:
        value: Any JSON value (None, bool, int, float, str, dict, list).
        key: The key the value sits under; used only as a hint.

    Raises:
        ValidationError: If ``value`` is not a JSON value.
    """
    if value is None:
        return SemanticType.NULL
    # bool is an int subclass, so it must be checked first
    if isinstance(value, bool):
        return SemanticType.BOOLEAN
    if isinstance(value, (int, float)):
        return classify_number(value)
    if isinstance(value, str):
        return classify_string(value, key)
    if isinstance(value, list):
        return SemanticType.ARRAY
    if isinstance(value, dict):
        return SemanticType.OBJECT
    raise ValidationError(f"Unsupported value of type {type(value).__name__}")
