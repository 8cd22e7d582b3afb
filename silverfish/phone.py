# File: silverfish/phone.py
"""silverfish.phone: нормализация телефонных номеров (NANP) к виду XXX-XXX-XXXX."""

from __future__ import annotations

import re
from typing import Iterator, Optional

__all__ = ("PHONE_PATTERN", "normalize_phone", "find_phones")

_DIGITS_RE = re.compile(r"\d+", re.ASCII)

#: Телефон в тексте страницы: +1, код города в скобках или без, разделители " -.", добавочный.
PHONE_PATTERN = re.compile(
    r"(?P<number>(?:\+?1[\s\-.]?)?(?:\(\s*\d{3}\s*\)|\d{3})[\s\-.]?\d{3}[\s\-.]?\d{4})"
    r"(?P<extension>\s*(?:x|ext\.?)\s*\d{1,6})?",
    re.IGNORECASE | re.ASCII,
)


def normalize_phone(text: str) -> Optional[str]:
    """Приводит *text* к ``XXX-XXX-XXXX`` или возвращает None.

    Все группы цифр склеиваются; ведущая ``1`` у 11-значного номера
    отбрасывается; остаться должно ровно 10 цифр, не все нули.
    """
    digits = "".join(_DIGITS_RE.findall(text or ""))
    if len(digits) == 11 and digits[0] == "1":
        digits = digits[1:]
    if len(digits) != 10:
        return None
    if digits == "0000000000":
        return None
    return f"{digits[:3]}-{digits[3:6]}-{digits[6:]}"


def find_phones(text: str) -> Iterator[str]:
    """Нормализованные номера всех совпадений PHONE_PATTERN в *text* (с повторами)."""
    for match in PHONE_PATTERN.finditer(text):
        normalized = normalize_phone(match.group("number"))
        if normalized is not None:
            yield normalized
