#  Copyright (c) 2026 Fleer
import pytest

from database.models import Aluno, ConfiguracaoSerieDisciplina, ResultadoConsolidado
from services.importacao_job import ControladorJob, CONCLUIDO
from services.recalculo import recalcular_niveis
from utilities.sanitizer import Sanitizer


def consolidado_de(session_factory, nome):
    with session_factory() as session:
        return (
            session.query(ResultadoConsolidado)
            .join(Aluno, Aluno.id == ResultadoConsolidado.aluno_id)
            .filter(Aluno.nome_normalizado == Sanitizer.normalizar_nome(nome))
            .one()
        )


@pytest.fixture
def importado(session_factory, planilha_quinto_ano, criar_job):
    caminho, _, nomes = planilha_quinto_ano
    assert ControladorJob(criar_job(caminho), session_factory=session_factory).executar() == CONCLUIDO
    return nomes


def _alterar_consolidado(session_factory, aluno_id, **valores):
    with session_factory() as session:
        session.query(ResultadoConsolidado).filter_by(aluno_id=aluno_id).update(valores)
        session.commit()


def test_sem_mudanca_nada_e_gravado(session_factory, importado):
    assert recalcular_niveis(session_factory, "2025") == {"avaliados": 2, "atualizados": 0}


def test_restaura_niveis_apagados(session_factory, importado):
    nome_a, _, nome_c = importado
    a = consolidado_de(session_factory, nome_a)
    _alterar_consolidado(session_factory, a.aluno_id, nivel_lp=None, nivel_mat=None, nivel_prod=None,
                         nivel_aluno=None)

    assert recalcular_niveis(session_factory) == {"avaliados": 2, "atualizados": 1}
    a = consolidado_de(session_factory, nome_a)
    assert (a.nivel_lp, a.nivel_mat, a.nivel_prod, a.nivel_aluno) == ("N4", "N4", "N4", "N4")
    c = consolidado_de(session_factory, nome_c)
    assert (c.nivel_lp, c.nivel_mat, c.nivel_aluno) == ("N2", "N2", "N2")


def test_usa_as_faixas_atuais_da_configuracao(session_factory, importado):
    nome_a, nome_b, nome_c = importado
    with session_factory() as session:
        session.query(ConfiguracaoSerieDisciplina).filter_by(serie="5", disciplina="LP").update(
            {"faixas_nivel": [1, 4, 8, 15]}
        )
        session.commit()

    assert recalcular_niveis(session_factory, "2025") == {"avaliados": 2, "atualizados": 1}
    a = consolidado_de(session_factory, nome_a)
    assert a.nivel_lp == "N3"
    assert a.nivel_aluno == "N4"
    assert consolidado_de(session_factory, nome_c).nivel_lp == "N2"
    b = consolidado_de(session_factory, nome_b)
    assert b.presenca == "F" and b.nivel_aluno is None


def test_regra_da_maioria(session_factory, importado):
    nome_a, _, _ = importado
    with session_factory() as session:
        session.query(ConfiguracaoSerieDisciplina).filter_by(serie="5", disciplina="LP").update(
            {"faixas_nivel": [1, 4, 8, 15]}
        )
        session.commit()

    recalcular_niveis(session_factory, regra_nivel="maioria")
    assert consolidado_de(session_factory, nome_a).nivel_aluno == "N4"


def test_anos_finais_nao_sao_alterados(session_factory, escrever_planilha, respostas, criar_job):
    linhas = [{"ESCOLA": "EMEF CENTRAL", "ALUNO": "JOAO PEREIRA", "TURMA": "9A", "SERIE": "9",
               **respostas(1, 60, 30)}]
    assert ControladorJob(criar_job(escrever_planilha(linhas)), session_factory=session_factory).executar() \
        == CONCLUIDO
    joao = consolidado_de(session_factory, "JOAO PEREIRA")
    _alterar_consolidado(session_factory, joao.aluno_id, nivel_aluno="N1")

    assert recalcular_niveis(session_factory) == {"avaliados": 0, "atualizados": 0}
    assert consolidado_de(session_factory, "JOAO PEREIRA").nivel_aluno == "N1"
