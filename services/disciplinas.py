#  Copyright (c) 2026 Fleer
"""Mapeamento de número de questão para disciplina.

Funções puras: não acessam banco nem estado global.
"""
from typing import Optional, Sequence

from database.schemas import FaixaDisciplina

DISCIPLINA_NAO_MAPEADA = "nao_mapeada"


def faixa_da_questao(faixas: Sequence[FaixaDisciplina], numero: int) -> Optional[FaixaDisciplina]:
    """
    Percorre as faixas em ordem e devolve a primeira que contém a questão.

    Args:
        faixas (Sequence[FaixaDisciplina]): Faixas da série, ordenadas.
        numero (int): Número da questão (Q7 -> 7).

    Returns:
        Optional[FaixaDisciplina]: A faixa, ou None se nenhuma contém o número.
    """
    for faixa in faixas:
        if faixa.contem(numero):
            return faixa
    return None


def mapear_disciplina(faixas: Sequence[FaixaDisciplina], numero: int) -> str:
    """
    Disciplina da questão, ou DISCIPLINA_NAO_MAPEADA.

    Args:
        faixas (Sequence[FaixaDisciplina]): Faixas da série, ordenadas.
        numero (int): Número da questão.

    Returns:
        str: 'LP', 'MAT', 'CH', 'CN' ou DISCIPLINA_NAO_MAPEADA.
    """
    faixa = faixa_da_questao(faixas, numero)
    return faixa.disciplina if faixa else DISCIPLINA_NAO_MAPEADA
