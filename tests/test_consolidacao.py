#  Copyright (c) 2026 Fleer
import pytest

from database.schemas import ConfiguracaoSerie, FaixaDisciplina
from services.consolidacao import (
    CalculadoraConsolidacao, nota_disciplina, nivel_por_acertos, nivel_producao, combinar_niveis
)
from services.series_config import ResolvedorConfigSerie

QUINTO = ResolvedorConfigSerie.esquema_fixo(5)
TERCEIRO = ResolvedorConfigSerie.esquema_fixo(3)
NONO = ResolvedorConfigSerie.esquema_fixo(9)
DESCONHECIDA = ResolvedorConfigSerie.esquema_fixo(None)


@pytest.fixture
def calculadora():
    return CalculadoraConsolidacao("media")


# ----------------------------
# FUNÇÕES AUXILIARES
# ----------------------------
def test_nota_disciplina():
    assert nota_disciplina(7, 14) == 5.0
    assert nota_disciplina(20, 20) == 10.0
    assert nota_disciplina(3, 0) == 0.0


@pytest.mark.parametrize("acertos, faixas, esperado", [
    (0, [1, 4, 8, 12], None),
    (1, [1, 4, 8, 12], "N1"),
    (3, [1, 4, 8, 12], "N1"),
    (4, [1, 4, 8, 12], "N2"),
    (11, [1, 4, 8, 12], "N3"),
    (14, [1, 4, 8, 12], "N4"),
    (15, [1, 6, 11, 16], "N3"),
    (16, [1, 6, 11, 16], "N4"),
    (5, None, None),
])
def test_nivel_por_acertos(acertos, faixas, esperado):
    assert nivel_por_acertos(acertos, faixas) == esperado


@pytest.mark.parametrize("nota, esperado", [
    (None, None), (0, None), (3.9, "N1"), (4.0, "N2"), (5.99, "N2"), (6.0, "N3"), (7.99, "N3"), (8.0, "N4"),
])
def test_nivel_producao(nota, esperado):
    assert nivel_producao(nota) == esperado


@pytest.mark.parametrize("niveis, esperado", [
    (["N1", "N4"], "N2"),           # média 2.5
    (["N4", "N4", "N3"], "N4"),     # média 3.67
    (["N2", "N3", None], "N2"),     # None é ignorado; 2.5 ainda é N2
    (["N1", "N1", "N2"], "N1"),     # média 1.33
    ([None, None], None),
])
def test_combinar_niveis_por_media(niveis, esperado):
    assert combinar_niveis(niveis, "media") == esperado


@pytest.mark.parametrize("niveis, esperado", [
    (["N3", "N3", "N1"], "N3"),
    (["N1", "N2"], "N1"),           # empate vai para o menor
    (["N4", "N2", None], "N2"),
])
def test_combinar_niveis_por_maioria(niveis, esperado):
    assert combinar_niveis(niveis, "maioria") == esperado


def test_regra_desconhecida():
    with pytest.raises(ValueError):
        combinar_niveis(["N1"], "mediana")
    with pytest.raises(ValueError):
        CalculadoraConsolidacao("mediana")


# ----------------------------
# ANOS INICIAIS
# ----------------------------
def test_quinto_ano_tudo_certo_com_producao(calculadora):
    r = calculadora.calcular(QUINTO, "P", {"LP": 14, "MAT": 20}, nota_producao=8, respondidas=34)
    assert r.nota_lp == 10.0
    assert r.nota_mat == 10.0
    assert r.nota_producao == 8
    assert r.media_aluno == pytest.approx((10 + 10 + 8) / 3)
    assert (r.nivel_lp, r.nivel_mat, r.nivel_prod, r.nivel_aluno) == ("N4", "N4", "N4", "N4")
    assert r.total_questoes_respondidas == 34
    assert r.total_questoes_esperadas == 34


def test_sem_producao_divide_por_dois(calculadora):
    r = calculadora.calcular(QUINTO, "P", {"LP": 14, "MAT": 10})
    assert r.nota_producao is None
    assert r.nivel_prod is None
    assert r.media_aluno == pytest.approx((10 + 5) / 2)


def test_producao_zero_nao_entra_na_media(calculadora):
    r = calculadora.calcular(TERCEIRO, "P", {"LP": 7, "MAT": 0}, nota_producao=0)
    assert r.media_aluno == pytest.approx(2.5)
    assert r.nivel_mat is None


@pytest.mark.parametrize("config", [TERCEIRO, QUINTO])
def test_anos_iniciais_tudo_zero(calculadora, config):
    r = calculadora.calcular(config, "P", {"LP": 0, "MAT": 0}, respondidas=10)
    assert r.media_aluno == 0.0
    assert r.nivel_aluno is None


def test_itens_tem_precedencia_sobre_a_nota_informada(calculadora):
    itens = [1, 1, 1, 1, 1, 1, 0, 0]
    r = calculadora.calcular(QUINTO, "P", {"LP": 14, "MAT": 20}, itens_producao=itens, nota_producao=2)
    assert r.nota_producao == pytest.approx(7.5)
    assert r.nivel_prod == "N3"
    assert r.item_producao_1 == 1
    assert r.item_producao_8 == 0
    assert r.media_aluno == pytest.approx((10 + 10 + 7.5) / 3)


def test_producao_fora_da_media_quando_configurada():
    config = ConfiguracaoSerie(
        serie="5",
        faixas=QUINTO.faixas,
        producao=FaixaDisciplina("PROD", None, None, 8, compoe_media=False),
    )
    r = CalculadoraConsolidacao().calcular(config, "P", {"LP": 14, "MAT": 20}, nota_producao=4)
    assert r.media_aluno == pytest.approx(10.0)
    assert r.nivel_prod == "N2"


def test_regra_maioria_no_nivel_geral():
    r = CalculadoraConsolidacao("maioria").calcular(QUINTO, "P", {"LP": 14, "MAT": 1}, nota_producao=3)
    assert (r.nivel_lp, r.nivel_mat, r.nivel_prod) == ("N4", "N1", "N1")
    assert r.nivel_aluno == "N1"


# ----------------------------
# ANOS FINAIS
# ----------------------------
def test_anos_finais_divisor_fixo_de_quatro(calculadora):
    r = calculadora.calcular(NONO, "P", {"LP": 20, "CH": 0, "MAT": 0, "CN": 0})
    assert r.media_aluno == pytest.approx(2.5)
    assert r.nivel_lp is None
    assert r.nivel_aluno is None
    assert r.nota_producao is None


def test_anos_finais_tudo_certo(calculadora):
    r = calculadora.calcular(NONO, "P", {"LP": 20, "CH": 10, "MAT": 20, "CN": 10})
    assert (r.nota_lp, r.nota_ch, r.nota_mat, r.nota_cn) == (10.0, 10.0, 10.0, 10.0)
    assert r.media_aluno == pytest.approx(10.0)


def test_anos_finais_tudo_zero(calculadora):
    r = calculadora.calcular(NONO, "P", {})
    assert r.media_aluno == 0.0
    assert r.total_acertos_cn == 0


def test_serie_desconhecida_usa_divisor_de_quatro(calculadora):
    r = calculadora.calcular(DESCONHECIDA, "P", {"LP": 20, "CH": 10, "MAT": 0, "CN": 0})
    assert r.media_aluno == pytest.approx(5.0)


def test_disciplina_nao_avaliada_conta_como_zero(calculadora):
    r = calculadora.calcular(TERCEIRO, "P", {"LP": 14, "MAT": 14})
    assert r.nota_ch == 0.0
    assert r.nota_cn == 0.0
    assert r.media_aluno == pytest.approx(10.0)


# ----------------------------
# PRESENÇA
# ----------------------------
def test_ausente_zera_contagens_e_anula_notas(calculadora):
    r = calculadora.calcular(QUINTO, "F", {"LP": 5, "MAT": 5}, nota_producao=8)
    assert r.presenca == "F"
    assert (r.total_acertos_lp, r.total_acertos_mat) == (0, 0)
    assert r.nota_lp is None and r.nota_mat is None and r.nota_producao is None
    assert r.media_aluno is None
    assert r.nivel_aluno is None
    assert r.total_questoes_respondidas == 0
    assert r.total_questoes_esperadas == 34


def test_sem_dados_deixa_tudo_nulo(calculadora):
    r = calculadora.calcular(QUINTO, "-", {"LP": 5})
    assert r.presenca == "-"
    assert r.total_acertos_lp is None
    assert r.media_aluno is None
    assert r.total_questoes_esperadas is None
