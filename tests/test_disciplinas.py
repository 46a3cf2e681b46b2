#  Copyright (c) 2026 Fleer
import pytest

from services.disciplinas import mapear_disciplina, faixa_da_questao, DISCIPLINA_NAO_MAPEADA
from services.series_config import ResolvedorConfigSerie

ANOS_FINAIS = ResolvedorConfigSerie.esquema_fixo(9).faixas
QUINTO_ANO = ResolvedorConfigSerie.esquema_fixo(5).faixas


@pytest.mark.parametrize("numero, esperado", [
    (0, DISCIPLINA_NAO_MAPEADA),
    (1, "LP"),
    (20, "LP"),
    (21, "CH"),
    (30, "CH"),
    (31, "MAT"),
    (50, "MAT"),
    (51, "CN"),
    (60, "CN"),
    (61, DISCIPLINA_NAO_MAPEADA),
])
def test_limites_das_faixas_anos_finais(numero, esperado):
    assert mapear_disciplina(ANOS_FINAIS, numero) == esperado


@pytest.mark.parametrize("numero, esperado", [
    (14, "LP"),
    (15, "MAT"),
    (34, "MAT"),
    (35, DISCIPLINA_NAO_MAPEADA),
])
def test_limites_das_faixas_quinto_ano(numero, esperado):
    assert mapear_disciplina(QUINTO_ANO, numero) == esperado


def test_faixa_da_questao_devolve_a_faixa():
    faixa = faixa_da_questao(QUINTO_ANO, 20)
    assert faixa.disciplina == "MAT"
    assert (faixa.questao_inicio, faixa.questao_fim, faixa.qtd_questoes) == (15, 34, 20)


def test_sem_faixas_nada_e_mapeado():
    assert faixa_da_questao((), 1) is None
    assert mapear_disciplina((), 1) == DISCIPLINA_NAO_MAPEADA
