"""Testes dos normalizadores de CPF, CEP e telefone."""

import pytest

from services.validators import (
    only_digits, validate_cpf, format_cpf, validate_cep, format_cep, format_phone,
)

CPFS_VALIDOS = ["52998224725", "11144477735", "529.982.247-25"]


def _cpf_com_digitos(prefixo: str) -> str:
    """Calcula os dois dígitos verificadores (módulo 11) para um prefixo de 9 dígitos."""
    digitos = [int(d) for d in prefixo]
    for tamanho in (9, 10):
        soma = sum(d * p for d, p in zip(digitos, range(tamanho + 1, 1, -1)))
        resto = (soma * 10) % 11
        digitos.append(0 if resto == 10 else resto)
    return "".join(str(d) for d in digitos)


PREFIXOS = [f"{n:09d}" for n in range(12345, 10**9, 7654321)]


class TestCPF:

    @pytest.mark.parametrize("cpf", CPFS_VALIDOS)
    def test_valid(self, cpf):
        assert validate_cpf(cpf) is True

    @pytest.mark.parametrize("digit", "0123456789")
    def test_same_digit_sequences_rejected(self, digit):
        assert validate_cpf(digit * 11) is False

    @pytest.mark.parametrize("cpf", ["52998224724", "11144477730", "1234567890", "", "abc"])
    def test_invalid(self, cpf):
        assert validate_cpf(cpf) is False

    def test_generated_cpfs_follow_mod11(self):
        for prefixo in PREFIXOS:
            cpf = _cpf_com_digitos(prefixo)
            if len(set(cpf)) == 1:
                continue
            assert validate_cpf(cpf) is True, cpf

            for pos in range(11):
                for d in "0123456789":
                    if d == cpf[pos]:
                        continue
                    mutado = cpf[:pos] + d + cpf[pos + 1:]
                    if pos >= 9:
                        # a wrong check digit never validates
                        assert validate_cpf(mutado) is False, mutado
                    esperado = (mutado == _cpf_com_digitos(mutado[:9])
                                and len(set(mutado)) > 1)
                    assert validate_cpf(mutado) is esperado, mutado

    def test_format_roundtrip_keeps_digits(self):
        formatted = format_cpf("52998224725")
        assert formatted == "529.982.247-25"
        assert only_digits(formatted) == "52998224725"

    def test_format_wrong_length_returns_input(self):
        assert format_cpf("123.45") == "123.45"


class TestCEP:

    def test_validate(self):
        assert validate_cep("35010-000") is True
        assert validate_cep("3501000") is False

    def test_format(self):
        assert format_cep("35010000") == "35010-000"
        assert format_cep("350") == "350"


class TestPhone:

    def test_mobile(self):
        assert format_phone("33984043348") == "(33) 98404-3348"

    def test_landline(self):
        assert format_phone("3332211234") == "(33) 3221-1234"

    def test_unknown_length_untouched(self):
        assert format_phone("+1 555 0100") == "+1 555 0100"

    def test_empty(self):
        assert format_phone("") == ""
