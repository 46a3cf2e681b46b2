#  Copyright (c) 2026 Fleer
import pandas as pd
import pytest

from controllers.import_processor import ExcelEngine, NormalizadorLinha, ErroLinha, ErroLeituraPlanilha


def normalizar(resolvedor, registro: dict, indice: int = 0):
    """Normaliza um único registro com cabeçalhos já no formato normalizado."""
    leitor = ExcelEngine("memoria.xlsx")
    leitor.df = pd.DataFrame([registro], dtype=object)
    mapa = leitor.mapear_columnas()
    return NormalizadorLinha(mapa, resolvedor).normalizar(indice, leitor.linha(0))


BASE = {"ESCOLA": "EMEF CENTRAL", "ALUNO": "MARIA SOUZA"}


# ----------------------------
# LEITURA E CABEÇALHOS
# ----------------------------
def test_cabecalhos_normalizados_e_mapeados(escrever_planilha):
    caminho = escrever_planilha([{
        "Nome da Escola": "EMEF A", "Nome do Aluno": "ANA", "Turma": "3A", "Ano/Série": "3º ano",
        "Presença": "P", "Q 01": 1, "Q_2": 0, "Item 1": 1, "NOTA-LP": 5,
    }])
    leitor = ExcelEngine(caminho)
    leitor.cargar()
    mapa = leitor.mapear_columnas()

    assert mapa.campos["escola"] == "NOME DA ESCOLA"
    assert mapa.campos["aluno"] == "NOME DO ALUNO"
    assert mapa.campos["turma"] == "TURMA"
    assert mapa.campos["serie"] == "ANO/SERIE"
    assert mapa.campos["presenca"] == "PRESENCA"
    assert mapa.campos["nota_lp"] == "NOTA-LP"
    assert mapa.questoes == {1: "Q 01", 2: "Q_2"}
    assert mapa.itens == {1: "ITEM 1"}
    assert mapa.faltando() == []


def test_cabecalho_de_ano_letivo_nao_vira_serie():
    leitor = ExcelEngine("memoria.xlsx")
    leitor.df = pd.DataFrame([{"ESCOLA": "E", "ALUNO": "A", "ANO LETIVO": "2025"}], dtype=object)
    mapa = leitor.mapear_columnas()
    assert "serie" not in mapa.campos


def test_busca_parcial_no_cabecalho():
    leitor = ExcelEngine("memoria.xlsx")
    leitor.df = pd.DataFrame([{"ESCOLA MUNICIPAL": "E", "NOME COMPLETO DO ALUNO": "A"}], dtype=object)
    mapa = leitor.mapear_columnas()
    assert mapa.campos["escola"] == "ESCOLA MUNICIPAL"
    assert mapa.campos["aluno"] == "NOME COMPLETO DO ALUNO"


def test_serie_ano_invertido(escrever_planilha):
    caminho = escrever_planilha([{"Escola": "EMEF A", "Aluno": "ANA", "Série/Ano": "5º ano"}])
    leitor = ExcelEngine(caminho)
    leitor.cargar()
    assert leitor.mapear_columnas().campos["serie"] == "SERIE/ANO"


@pytest.mark.parametrize("cabecalho", ["SERIE ESCOLAR", "ETAPA DE ENSINO", "ANO ESCOLAR DO ALUNO"])
def test_busca_parcial_testa_todos_os_aliases_da_serie(cabecalho):
    leitor = ExcelEngine("memoria.xlsx")
    leitor.df = pd.DataFrame([{"ESCOLA": "E", "ALUNO": "A", "ANO LETIVO": "2025", cabecalho: "5"}], dtype=object)
    mapa = leitor.mapear_columnas()
    assert mapa.campos["serie"] == cabecalho


def test_busca_parcial_prefere_alias_mais_longo():
    leitor = ExcelEngine("memoria.xlsx")
    leitor.df = pd.DataFrame([{"ESCOLA": "E", "NOME DA MAE": "M", "NOME COMPLETO DO ALUNO": "A"}], dtype=object)
    assert leitor.mapear_columnas().campos["aluno"] == "NOME COMPLETO DO ALUNO"


def test_linhas_vazias_sao_descartadas(escrever_planilha):
    caminho = escrever_planilha([
        {"ESCOLA": "E", "ALUNO": "A"},
        {"ESCOLA": None, "ALUNO": None},
        {"ESCOLA": "E", "ALUNO": "B"},
    ])
    leitor = ExcelEngine(caminho)
    leitor.cargar()
    assert leitor.total_linhas == 2
    # a linha seguinte à vazia mantém o número original (linha 4 da aba)
    assert leitor.linha(1).name == 2


def test_le_csv_com_ponto_e_virgula(escrever_planilha):
    caminho = escrever_planilha([
        {"ESCOLA": "EMEF A", "ALUNO": "ANA", "TURMA": "5A", "Q1": 1},
        {"ESCOLA": "EMEF A", "ALUNO": "BIA", "TURMA": "5A", "Q1": 0},
    ], nome="resultados.csv")
    leitor = ExcelEngine(caminho)
    leitor.cargar()
    mapa = leitor.mapear_columnas()
    assert leitor.total_linhas == 2
    assert mapa.campos["turma"] == "TURMA"
    assert mapa.questoes == {1: "Q1"}


def test_le_ods(escrever_planilha):
    caminho = escrever_planilha([{"ESCOLA": "EMEF A", "ALUNO": "ANA"}], nome="resultados.ods")
    leitor = ExcelEngine(caminho)
    leitor.cargar()
    assert leitor.total_linhas == 1


def test_arquivo_corrompido(tmp_path):
    caminho = tmp_path / "quebrada.xlsx"
    caminho.write_bytes(b"isto nao e uma planilha")
    with pytest.raises(ErroLeituraPlanilha):
        ExcelEngine(str(caminho)).cargar()


def test_arquivo_inexistente(tmp_path):
    with pytest.raises(ErroLeituraPlanilha):
        ExcelEngine(str(tmp_path / "nao_existe.xlsx")).cargar()


# ----------------------------
# SÉRIE
# ----------------------------
def test_serie_pela_coluna(resolvedor):
    linha = normalizar(resolvedor, {**BASE, "ANO/SERIE": "5º Ano", "TURMA": "9A"})
    assert (linha.serie, linha.origem_serie) == ("5", "coluna")
    assert not linha.configuracao.padrao


def test_ano_na_coluna_de_serie_e_descartado(resolvedor):
    linha = normalizar(resolvedor, {**BASE, "SERIE": "2025", "TURMA": "3A"})
    assert (linha.serie, linha.origem_serie) == ("3", "turma")


def test_serie_pelo_codigo_da_turma(resolvedor, respostas):
    linha = normalizar(resolvedor, {**BASE, "SERIE": None, "TURMA": "5B", **respostas(1, 3, 3)})
    assert (linha.serie, linha.origem_serie) == ("5", "turma")
    assert linha.configuracao.faixa("MAT").questao_fim == 34


def test_turma_fora_de_1_a_9_nao_define_serie(resolvedor, respostas):
    linha = normalizar(resolvedor, {**BASE, "TURMA": "12A", **respostas(1, 28, 10)})
    assert (linha.serie, linha.origem_serie) == ("2", "questoes")


@pytest.mark.parametrize("maior, serie", [(28, "2"), (34, "5"), (35, "8"), (60, "8")])
def test_serie_pela_maior_questao(resolvedor, respostas, maior, serie):
    linha = normalizar(resolvedor, {**BASE, "TURMA": "B", **respostas(1, maior, 1)})
    assert (linha.serie, linha.origem_serie) == (serie, "questoes")


def test_sem_nenhuma_pista_de_serie(resolvedor):
    linha = normalizar(resolvedor, {**BASE})
    assert linha.serie is None
    assert linha.origem_serie is None
    assert linha.configuracao.padrao
    assert not linha.configuracao.anos_iniciais


# ----------------------------
# PRESENÇA
# ----------------------------
@pytest.mark.parametrize("coluna, valor, esperado", [
    ("P/F", "P", "P"),
    ("P/F", "f", "F"),
    ("FALTA", "X", "F"),
    ("FALTA", "sim", "F"),
    ("FALTA", "ok", "P"),
    ("PRESENCA", "Não", "F"),
    ("PRESENCA", "sim", "P"),
    ("PRESENCA", "Presente", "P"),
])
def test_vocabularios_de_presenca(resolvedor, coluna, valor, esperado):
    linha = normalizar(resolvedor, {**BASE, "SERIE": "5", coluna: valor})
    assert linha.presenca == esperado


def test_ordem_das_colunas_de_presenca(resolvedor):
    linha = normalizar(resolvedor, {**BASE, "SERIE": "5", "P/F": "F", "PRESENCA": "P"})
    assert linha.presenca == "F"


def test_sem_coluna_de_presenca_com_respostas_e_presente(resolvedor, respostas):
    linha = normalizar(resolvedor, {**BASE, "SERIE": "5", **respostas(1, 2, 1)})
    assert linha.presenca == "P"


def test_sem_presenca_e_sem_respostas_e_sem_dados(resolvedor):
    linha = normalizar(resolvedor, {**BASE, "SERIE": "5", "PRESENCA": None})
    assert linha.presenca == "-"


# ----------------------------
# RESPOSTAS E ITENS
# ----------------------------
def test_respostas_acertos_e_disciplinas(resolvedor):
    linha = normalizar(resolvedor, {**BASE, "SERIE": "5", "Q1": "x", "Q2": "1", "Q3": 0, "Q15": "X", "Q16": "B"})
    assert linha.acertos == {"LP": 2, "MAT": 1}
    por_codigo = {r.codigo: r for r in linha.respostas}
    assert por_codigo["Q1"].acertou and por_codigo["Q1"].nota == 1.0
    assert not por_codigo["Q3"].acertou and por_codigo["Q3"].nota == 0.0
    assert por_codigo["Q15"].disciplina == "MAT"
    assert por_codigo["Q16"].resposta == "B"


def test_questao_fora_das_faixas_e_ignorada(resolvedor):
    linha = normalizar(resolvedor, {**BASE, "SERIE": "2", "Q1": 1, "Q40": 1})
    assert [r.numero for r in linha.respostas] == [1]
    assert linha.acertos == {"LP": 1, "MAT": 0}


def test_aluno_ausente_nao_pontua(resolvedor):
    linha = normalizar(resolvedor, {**BASE, "SERIE": "5", "FALTA": "F", "Q1": 1})
    assert linha.presenca == "F"
    assert linha.acertos == {"LP": 0, "MAT": 0}
    assert linha.respostas[0].resposta is None
    assert not linha.respostas[0].acertou


def test_itens_de_producao(resolvedor):
    linha = normalizar(resolvedor, {**BASE, "SERIE": "3", "ITEM 1": "X", "ITEM_2": 0, "I3": "1", "ITEM 4": 2})
    assert linha.itens_producao == [1, 0, 1, 1, None, None, None, None]


def test_notas_da_planilha_lidas(resolvedor):
    linha = normalizar(resolvedor, {**BASE, "SERIE": "5", "NOTA PRODUCAO": "7,5", "NOTA-LP": 6, "MEDIA": None})
    assert linha.nota_producao == 7.5
    assert linha.notas_planilha["nota_lp"] == 6.0
    assert linha.notas_planilha["media"] is None


# ----------------------------
# LINHAS REJEITADAS
# ----------------------------
@pytest.mark.parametrize("campo", ["ESCOLA", "ALUNO"])
def test_nome_vazio_rejeita_a_linha(resolvedor, campo):
    with pytest.raises(ErroLinha, match="Linha 5"):
        normalizar(resolvedor, {**BASE, campo: "  ", "SERIE": "5"}, indice=3)


def test_fila_conta_o_cabecalho(resolvedor):
    linha = normalizar(resolvedor, {**BASE, "SERIE": "5"}, indice=0)
    assert linha.fila == 2
