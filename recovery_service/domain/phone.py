import re

_SEPARATORS = re.compile(r"[\s\-().]")
_PHONE_SHAPE = re.compile(r"^\+?[0-9\s\-().]{7,20}$")


def normalize_phone(phone: str) -> str:
    """
    Normalize a phone number to international format.

    Separators are stripped and a leading "+" is added when missing.
    Already-normalized numbers come back unchanged.
    """
    digits = _SEPARATORS.sub("", phone.strip())
    if digits.startswith("+"):
        return digits
    return f"+{digits}"


def looks_like_phone(identifier: str) -> bool:
    """Digits with optional "+" and separators, 7 to 20 characters"""
    return bool(_PHONE_SHAPE.match(identifier.strip()))
