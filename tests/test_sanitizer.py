#  Copyright (c) 2026 Fleer
import math

import pytest

from utilities.sanitizer import Sanitizer


@pytest.mark.parametrize("valor", [None, "", "   ", math.nan, float("nan")])
def test_vazio(valor):
    assert Sanitizer.vazio(valor)


def test_vazio_zero_nao_e_vazio():
    assert not Sanitizer.vazio(0)
    assert not Sanitizer.vazio("0")


def test_texto_celula_float_inteiro_vira_inteiro():
    assert Sanitizer.texto_celula(5.0) == "5"
    assert Sanitizer.texto_celula(2.5) == "2.5"
    assert Sanitizer.texto_celula("  5B ") == "5B"
    assert Sanitizer.texto_celula(None) == ""


def test_limpar_texto_remove_acentos_e_colapsa_espacos():
    assert Sanitizer.limpar_texto("  Nota   Produção ") == "NOTA PRODUCAO"
    assert Sanitizer.limpar_texto("Presença") == "PRESENCA"
    assert Sanitizer.limpar_texto("ano/série") == "ANO/SERIE"


def test_normalizar_nome_mantem_acentos():
    assert Sanitizer.normalizar_nome("  joão   da  Silva ") == "JOÃO DA SILVA"


def test_extrair_digitos():
    assert Sanitizer.extrair_digitos("5º Ano") == "5"
    assert Sanitizer.extrair_digitos("Ano 2025") == "2025"
    assert Sanitizer.extrair_digitos("sem série") == ""


@pytest.mark.parametrize("valor, esperado", [
    ("8,5", 8.5),
    (7, 7.0),
    ("10", 10.0),
    ("-", None),
    ("", None),
    ("abc", None),
    (None, None),
])
def test_limpar_nota(valor, esperado):
    assert Sanitizer.limpar_nota(valor) == esperado
