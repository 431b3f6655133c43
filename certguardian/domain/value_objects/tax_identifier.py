"""
Tax Identifier Value Object - Brazilian CPF / CNPJ with check digit validation.
"""

import re
from dataclasses import dataclass
from ..exceptions import ValidationError

_CNPJ_WEIGHTS = [5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2]


def _cpf_digit(digits: str) -> int:
    weight = len(digits) + 1
    total = sum(int(d) * (weight - i) for i, d in enumerate(digits))
    rest = (total * 10) % 11
    return 0 if rest == 10 else rest


def _cnpj_digit(digits: str) -> int:
    weights = _CNPJ_WEIGHTS if len(digits) == 12 else [6] + _CNPJ_WEIGHTS
    total = sum(int(d) * w for d, w in zip(digits, weights))
    rest = total % 11
    return 0 if rest < 2 else 11 - rest


def is_valid_cpf(digits: str) -> bool:
    if len(digits) != 11 or not digits.isdigit() or len(set(digits)) == 1:
        return False
    first = _cpf_digit(digits[:9])
    second = _cpf_digit(digits[:9] + str(first))
    return digits[9:] == f"{first}{second}"


def is_valid_cnpj(digits: str) -> bool:
    if len(digits) != 14 or not digits.isdigit() or len(set(digits)) == 1:
        return False
    first = _cnpj_digit(digits[:12])
    second = _cnpj_digit(digits[:12] + str(first))
    return digits[12:] == f"{first}{second}"


@dataclass(frozen=True)
class TaxIdentifier:
    """
    Immutable CPF (11 digits) or CNPJ (14 digits).

    Accepts punctuated input and keeps digits only.

    Usage:
        doc = TaxIdentifier("11.222.333/0001-81")
        print(doc.value)      # "11222333000181"
    """

    value: str

    def __post_init__(self):
        if not self.value or not str(self.value).strip():
            raise ValidationError("CPF/CNPJ é obrigatório", "identifier")

        digits = re.sub(r'\D', '', str(self.value))

        if len(digits) == 11:
            valid = is_valid_cpf(digits)
        elif len(digits) == 14:
            valid = is_valid_cnpj(digits)
        else:
            raise ValidationError(
                f"CPF/CNPJ inválido: {self.value}. Informe 11 ou 14 dígitos",
                "identifier"
            )

        if not valid:
            raise ValidationError(f"CPF/CNPJ inválido: {self.value}", "identifier")

        object.__setattr__(self, 'value', digits)

    def __str__(self) -> str:
        return self.value


def normalize_identifier(value: str) -> str:
    """Validate a CPF/CNPJ and return its digits."""
    return TaxIdentifier(value).value


def format_identifier(value: str) -> str:
    """Render stored digits with punctuation; unknown shapes come back unchanged."""
    digits = re.sub(r'\D', '', value or '')
    if len(digits) == 11:
        return f"{digits[:3]}.{digits[3:6]}.{digits[6:9]}-{digits[9:]}"
    if len(digits) == 14:
        return f"{digits[:2]}.{digits[2:5]}.{digits[5:8]}/{digits[8:12]}-{digits[12:]}"
    return value
