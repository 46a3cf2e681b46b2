#  Copyright (c) 2026 Fleer
import logging

import pytest

from config.series_padrao import linhas_configuracao_padrao
from database.models import ConfiguracaoSerieDisciplina
from models.configuracao_serie_model import ConfiguracaoSerieModel
from services.series_config import (
    ResolvedorConfigSerie, ConfiguracaoInvalidaError, normalizar_serie, parece_ano
)


@pytest.mark.parametrize("texto, esperado", [
    ("5º Ano", "5"),
    ("05", "5"),
    ("9", "9"),
    ("2025", None),
    ("", None),
    (None, None),
])
def test_normalizar_serie(texto, esperado):
    assert normalizar_serie(texto) == esperado


def test_parece_ano():
    assert parece_ano(2000)
    assert parece_ano(2100)
    assert not parece_ano(9)
    assert not parece_ano(2101)


def test_popular_padrao_so_na_tabela_vazia(session_factory):
    model = ConfiguracaoSerieModel(session_factory)
    with session_factory() as session:
        assert session.query(ConfiguracaoSerieDisciplina).count() == len(linhas_configuracao_padrao())
    assert model.popular_padrao() == 0


def test_resolve_quinto_ano_pelo_cadastro(resolvedor):
    for texto in ("5º Ano", "5", "05", " 5 "):
        configuracao = resolvedor.resolver(texto)
        assert configuracao.serie == "5"
        assert not configuracao.padrao
        assert [(f.disciplina, f.questao_inicio, f.questao_fim) for f in configuracao.faixas] == [
            ("LP", 1, 14), ("MAT", 15, 34)
        ]
        assert configuracao.producao is not None
        assert configuracao.faixa("MAT").faixas_nivel == (1, 6, 11, 16)


def test_resolve_anos_finais_pelo_cadastro(resolvedor):
    configuracao = resolvedor.resolver("8º ano")
    assert [f.disciplina for f in configuracao.faixas] == ["LP", "CH", "MAT", "CN"]
    assert configuracao.producao is None
    assert not configuracao.anos_iniciais
    assert configuracao.total_questoes == 60


def test_primeiro_numero_do_texto_com_cadastro(resolvedor):
    # "5 ANO 2025" tem dígitos "52025", que não formam série; o primeiro número sim
    configuracao = resolvedor.resolver("5 ANO 2025")
    assert configuracao.serie == "5"
    assert not configuracao.padrao


def test_serie_sem_cadastro_usa_esquema_fixo_com_aviso(resolvedor, caplog):
    with caplog.at_level(logging.WARNING, logger="services.series_config"):
        configuracao = resolvedor.resolver("4º Ano")
    assert configuracao.padrao
    assert configuracao.serie == "4"
    assert [(f.disciplina, f.questao_inicio, f.questao_fim) for f in configuracao.faixas] == [
        ("LP", 1, 14), ("MAT", 15, 34)
    ]
    assert any("sem configuração cadastrada" in r.getMessage() for r in caplog.records)


def test_ano_letivo_nunca_vira_serie(resolvedor):
    configuracao = resolvedor.resolver("2025")
    assert configuracao.padrao
    assert configuracao.serie is None
    assert [f.disciplina for f in configuracao.faixas] == ["LP", "CH", "MAT", "CN"]


@pytest.mark.parametrize("serie, esquema", [
    (1, [("LP", 1, 14), ("MAT", 15, 28)]),
    (3, [("LP", 1, 14), ("MAT", 15, 28)]),
    (4, [("LP", 1, 14), ("MAT", 15, 34)]),
    (5, [("LP", 1, 14), ("MAT", 15, 34)]),
    (6, [("LP", 1, 20), ("CH", 21, 30), ("MAT", 31, 50), ("CN", 51, 60)]),
])
def test_esquema_fixo_por_faixa_de_serie(serie, esquema):
    configuracao = ResolvedorConfigSerie.esquema_fixo(serie)
    assert [(f.disciplina, f.questao_inicio, f.questao_fim) for f in configuracao.faixas] == esquema


def test_resolucao_memorizada_por_texto(resolvedor, session_factory):
    primeira = resolvedor.resolver("5º Ano")
    # Mudanças no banco depois da carga não afetam o job em andamento
    ConfiguracaoSerieModel(session_factory).create({
        "serie": "4", "disciplina": "LP", "questao_inicio": 1, "questao_fim": 10, "qtd_questoes": 10,
    })
    assert resolvedor.resolver("5º Ano") is primeira
    assert resolvedor.resolver("4").padrao


def test_faixas_sobrepostas_sao_rejeitadas(session_factory):
    model = ConfiguracaoSerieModel(session_factory)
    model.create({"serie": "4", "disciplina": "LP", "questao_inicio": 1, "questao_fim": 14, "qtd_questoes": 14})
    model.create({"serie": "4", "disciplina": "MAT", "questao_inicio": 10, "questao_fim": 30, "qtd_questoes": 21})

    with pytest.raises(ConfiguracaoInvalidaError, match="sobrepõe"):
        ResolvedorConfigSerie(session_factory=session_factory).carregar()


def test_faixa_invertida_e_rejeitada(session_factory):
    ConfiguracaoSerieModel(session_factory).create(
        {"serie": "4", "disciplina": "LP", "questao_inicio": 14, "questao_fim": 1, "qtd_questoes": 14}
    )
    with pytest.raises(ConfiguracaoInvalidaError, match="faixa inválida"):
        ResolvedorConfigSerie(session_factory=session_factory).carregar()
