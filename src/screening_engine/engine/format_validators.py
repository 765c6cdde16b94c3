"""Format predicates consumed by answer intake.

The engine only decides *whether* a format check applies to a question;
the predicates themselves belong to the validation-utilities collaborator.
``FormatValidatorRegistry`` ships a default set that callers can extend or
override per session.
"""

import math
import re
from typing import Callable, Dict, Iterable, Optional
from urllib.parse import urlparse

FormatPredicate = Callable[[str], bool]

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
# Brazilian phone numbers, optional +55 and area code
PHONE_PATTERN = re.compile(r"^(\+55\s?)?(\(?\d{2}\)?\s?)?\d{4,5}-?\d{4}$")
CEP_PATTERN = re.compile(r"^\d{5}-?\d{3}$")
CURRENCY_PREFIX = re.compile(r"^R\$\s*", re.IGNORECASE)


def is_valid_email(value: str) -> bool:
    return bool(EMAIL_PATTERN.match(value.strip()))


def is_valid_phone(value: str) -> bool:
    return bool(PHONE_PATTERN.match(value.strip()))


def is_valid_url(value: str) -> bool:
    try:
        parsed = urlparse(value.strip())
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def is_valid_cep(value: str) -> bool:
    return bool(CEP_PATTERN.match(value.strip()))


def parse_currency(value: str) -> float:
    """Parse an amount such as ``R$ 1.234,56`` or ``1234.56``; NaN when unparseable.

    The separator that comes last is the decimal separator, so both the
    Brazilian (``1.234,56``) and the plain (``1,234.56``) notations work.
    """
    text = CURRENCY_PREFIX.sub("", value.strip()).replace(" ", "")
    if text.rfind(",") > text.rfind("."):
        text = text.replace(".", "").replace(",", ".")
    else:
        text = text.replace(",", "")
    try:
        return float(text)
    except ValueError:
        return math.nan


def is_valid_currency(value: str) -> bool:
    """A currency answer must be a finite amount greater than zero."""
    amount = parse_currency(value)
    return math.isfinite(amount) and amount > 0


def _cpf_check_digit(digits: str) -> int:
    weight = len(digits) + 1
    total = sum(int(d) * (weight - i) for i, d in enumerate(digits))
    remainder = (total * 10) % 11
    return 0 if remainder == 10 else remainder


def is_valid_cpf(value: str) -> bool:
    """Validate a CPF (Brazilian national id) by its two check digits."""
    digits = re.sub(r"\D", "", value)
    if len(digits) != 11 or len(set(digits)) == 1:
        return False
    first = _cpf_check_digit(digits[:9])
    second = _cpf_check_digit(digits[:9] + str(first))
    return digits[9:] == f"{first}{second}"


DEFAULT_VALIDATORS: Dict[str, FormatPredicate] = {
    "email": is_valid_email,
    "phone": is_valid_phone,
    "url": is_valid_url,
    "cpf": is_valid_cpf,
    "cep": is_valid_cep,
    "currency": is_valid_currency,
}


class FormatValidatorRegistry:
    """Named format predicates available to the rule builder."""

    def __init__(self, validators: Optional[Dict[str, FormatPredicate]] = None) -> None:
        self._validators: Dict[str, FormatPredicate] = dict(DEFAULT_VALIDATORS)
        if validators:
            self._validators.update(validators)

    def register(self, name: str, predicate: FormatPredicate) -> None:
        self._validators[name] = predicate

    def get(self, name: str) -> Optional[FormatPredicate]:
        return self._validators.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._validators

    @property
    def names(self) -> Iterable[str]:
        return sorted(self._validators)
