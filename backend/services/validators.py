"""
CPF / CEP / phone helpers.

Formatting helpers never raise: input that does not match the expected
digit count comes back untouched.
"""

import re

_CPF_BLACKLIST = {str(d) * 11 for d in range(10)}


def only_digits(value: str | None) -> str:
    if not value:
        return ""
    return re.sub(r"\D+", "", value)


def _cpf_digit(digits: str, weight: int) -> int:
    total = sum(int(d) * (weight - i) for i, d in enumerate(digits))
    digit = 11 - (total % 11)
    return 0 if digit >= 10 else digit


def validate_cpf(cpf: str) -> bool:
    """Mod-11 check of both verification digits."""
    clean = only_digits(cpf)
    if len(clean) != 11 or clean in _CPF_BLACKLIST:
        return False
    d1 = _cpf_digit(clean[:9], 10)
    d2 = _cpf_digit(clean[:10], 11)
    return clean[9] == str(d1) and clean[10] == str(d2)


def format_cpf(cpf: str) -> str:
    clean = only_digits(cpf)
    if len(clean) != 11:
        return cpf
    return f"{clean[:3]}.{clean[3:6]}.{clean[6:9]}-{clean[9:]}"


def validate_cep(cep: str) -> bool:
    return len(only_digits(cep)) == 8


def format_cep(cep: str) -> str:
    clean = only_digits(cep)
    if len(clean) != 8:
        return cep
    return f"{clean[:5]}-{clean[5:]}"


def format_phone(phone: str) -> str:
    """(DD) NNNNN-NNNN for mobiles, (DD) NNNN-NNNN for landlines."""
    if not phone:
        return ""
    clean = only_digits(phone)
    if len(clean) == 11:
        return f"({clean[:2]}) {clean[2:7]}-{clean[7:]}"
    if len(clean) == 10:
        return f"({clean[:2]}) {clean[2:6]}-{clean[6:]}"
    return phone
