"""CPF/RG helpers."""

import re

_NON_DIGITS = re.compile(r"\D")


def only_digits(value: str) -> str:
    return _NON_DIGITS.sub("", value or "")


def _check_digit(digits: str, weight_start: int) -> int:
    total = sum(int(d) * w for d, w in zip(digits, range(weight_start, 1, -1)))
    rev = 11 - (total % 11)
    return 0 if rev >= 10 else rev


def is_valid_cpf(cpf: str) -> bool:
    """Validate a CPF given as '123.456.789-09' or '12345678909'."""
    cpf = only_digits(cpf)
    if len(cpf) != 11 or cpf == cpf[0] * 11:
        return False
    if _check_digit(cpf[:9], 10) != int(cpf[9]):
        return False
    return _check_digit(cpf[:10], 11) == int(cpf[10])


def format_cpf(cpf: str) -> str:
    digits = only_digits(cpf)
    if len(digits) != 11:
        return cpf
    return f"{digits[:3]}.{digits[3:6]}.{digits[6:9]}-{digits[9:]}"


def is_valid_rg(rg: str) -> bool:
    return 7 <= len(only_digits(rg)) <= 12


def format_rg(rg: str) -> str:
    """Format a 9-digit RG as '12.345.678-9'; other lengths are returned as digits."""
    digits = only_digits(rg)
    if len(digits) != 9:
        return digits
    return f"{digits[:2]}.{digits[2:5]}.{digits[5:8]}-{digits[8]}"
