#  Copyright (c) 2026 Fleer
import os

import pandas as pd
import pytest
from faker import Faker
from sqlalchemy.orm import sessionmaker

from controllers.import_processor import ExcelEngine
from database.conexion import crear_engine
from database.setup import inicializar_base_de_datos
from models.importacao_model import ImportacaoModel
from services.series_config import ResolvedorConfigSerie


@pytest.fixture
def engine(tmp_path):
    eng = crear_engine(f"sqlite:///{tmp_path / 'teste.db'}")
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    """Banco SQLite temporário com as tabelas criadas e a configuração padrão das séries."""
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)
    inicializar_base_de_datos(engine, factory)
    return factory


@pytest.fixture
def resolvedor(session_factory):
    resolvedor = ResolvedorConfigSerie(session_factory=session_factory)
    resolvedor.carregar()
    return resolvedor


@pytest.fixture
def fake():
    Faker.seed(2025)
    return Faker("pt_BR")


def _respostas(inicio: int, fim: int, acertos: int) -> dict:
    """Colunas Q{inicio}..Q{fim}: as primeiras `acertos` corretas (1), as demais erradas (0)."""
    return {f"Q{n}": (1 if n - inicio < acertos else 0) for n in range(inicio, fim + 1)}


@pytest.fixture
def respostas():
    return _respostas


@pytest.fixture
def escrever_planilha(tmp_path):
    """Grava uma lista de dicts como planilha (.xlsx, .ods ou .csv com ';') e devolve o caminho."""
    def _escrever(linhas, nome="resultados.xlsx"):
        caminho = tmp_path / nome
        df = pd.DataFrame(linhas)
        if caminho.suffix == ".csv":
            df.to_csv(caminho, index=False, sep=";")
        else:
            df.to_excel(str(caminho), index=False)
        return str(caminho)
    return _escrever


@pytest.fixture
def criar_job(session_factory):
    """Registra uma importação em 'processando' para o arquivo, sem iniciar a thread."""
    def _criar(caminho, ano_letivo="2025"):
        leitor = ExcelEngine(caminho)
        leitor.cargar()
        importacao = ImportacaoModel(session_factory).criar(
            os.path.basename(caminho), caminho, ano_letivo, leitor.total_linhas
        )
        return importacao.id
    return _criar


@pytest.fixture
def planilha_quinto_ano(fake, escrever_planilha):
    """Três alunos do 5º ano: A acerta tudo com produção 8, B faltou, C sem série na turma 5B."""
    escola = f"EMEF {fake.last_name()}"
    nomes = [fake.unique.name() for _ in range(3)]
    a = {"ESCOLA": escola, "ALUNO": nomes[0], "TURMA": "5A", "ANO/SÉRIE": "5º Ano", "FALTA": None,
         **_respostas(1, 14, 14), **_respostas(15, 34, 20), "NOTA PRODUÇÃO": 8}
    b = {"ESCOLA": escola, "ALUNO": nomes[1], "TURMA": "5A", "ANO/SÉRIE": "5º Ano", "FALTA": "X"}
    c = {"ESCOLA": escola, "ALUNO": nomes[2], "TURMA": "5B", "ANO/SÉRIE": None, "FALTA": None,
         **_respostas(1, 14, 7), **_respostas(15, 34, 10)}
    caminho = escrever_planilha([a, b, c])
    return caminho, escola, nomes
