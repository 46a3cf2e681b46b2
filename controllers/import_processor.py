#  Copyright (c) 2026 Fleer
import logging
import os
import zipfile
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

import pandas as pd

from config.mappings import (
    COLUNA_ALIAS, COLUNAS_OBRIGATORIAS, CABECALHOS_ANO_LETIVO, CAMPOS_BUSCA_PARCIAL,
    PADRAO_QUESTAO, PADRAO_ITEM_PRODUCAO, MAX_ITENS_PRODUCAO,
    VOCABULARIO_PRESENCA, PRESENCA_TOKEN_DESCONHECIDO, ORDEM_COLUNAS_PRESENCA,
    PRESENCA_SEM_DADOS, VALORES_ACERTO, SERIE_POR_MAIOR_QUESTAO, SERIE_QUESTOES_ACIMA,
)
from database.schemas import LinhaNormalizada, RespostaQuestao
from services.disciplinas import mapear_disciplina, DISCIPLINA_NAO_MAPEADA
from services.series_config import ResolvedorConfigSerie, parece_ano
from utilities.sanitizer import Sanitizer

logger = logging.getLogger(__name__)

CAMPOS_NOTAS_PLANILHA = ['nota_lp', 'nota_mat', 'nota_ch', 'nota_cn', 'media']


class ErroLeituraPlanilha(Exception):
    """O arquivo não pôde ser lido como planilha."""


class ErroLinha(Exception):
    """Linha rejeitada. Conta como erro da importação mas não a interrompe."""


@dataclass
class MapaColunas:
    """Resultado do mapeamento de cabeçalhos: campo interno -> coluna da planilha."""
    campos: Dict[str, str] = field(default_factory=dict)
    questoes: Dict[int, str] = field(default_factory=dict)
    itens: Dict[int, str] = field(default_factory=dict)

    def faltando(self) -> list:
        return [c for c in COLUNAS_OBRIGATORIAS if c not in self.campos]


class ExcelEngine:
    """Motor de leitura das planilhas de resultados (xlsx, ods ou csv).

    Lê a primeira aba, normaliza os cabeçalhos e identifica as colunas de
    identificação, de presença, de questões (Q1..Q60) e de itens da produção
    textual.
    """

    def __init__(self, filepath: str):
        """
        Args:
            filepath (str): Caminho do arquivo .xlsx, .ods ou .csv.
        """
        self.filepath = filepath
        self.df = None
        self.mapa = MapaColunas()

    def cargar(self) -> pd.DataFrame:
        """Carrega a primeira aba num DataFrame e normaliza os cabeçalhos.

        Returns:
            pd.DataFrame: Dados com todas as células como object.

        Raises:
            ErroLeituraPlanilha: Se o arquivo não existir ou não puder ser interpretado.
        """
        extensao = os.path.splitext(self.filepath)[1].lower()
        try:
            if extensao == ".csv":
                self.df = pd.read_csv(self.filepath, dtype=object, sep=None, engine="python",
                                      encoding="utf-8-sig", skip_blank_lines=False)
            else:
                engine = "odf" if extensao == ".ods" else "openpyxl"
                self.df = pd.read_excel(self.filepath, engine=engine, dtype=object)
        except (OSError, ValueError, ImportError, zipfile.BadZipFile) as e:
            raise ErroLeituraPlanilha(f"Não foi possível ler '{os.path.basename(self.filepath)}': {e}") from e

        self.df.columns = [Sanitizer.limpar_texto(col) for col in self.df.columns]
        # o índice original é mantido: "Linha N" nos erros aponta a linha real da aba
        self.df = self.df.dropna(how="all")
        logger.info("Planilha '%s' carregada: %d linhas, %d colunas.",
                    os.path.basename(self.filepath), len(self.df), len(self.df.columns))
        return self.df

    @property
    def total_linhas(self) -> int:
        return 0 if self.df is None else len(self.df)

    def mapear_columnas(self) -> MapaColunas:
        """Identifica as colunas pelos aliases conhecidos.

        Primeiro procura correspondência exata para todos os campos; depois,
        para os campos de identificação ainda sem coluna, aceita qualquer
        alias contido num cabeçalho maior, testando os mais longos antes.
        Cabeçalhos de ano letivo nunca viram série.

        Returns:
            MapaColunas: Mapeamento encontrado.
        """
        usadas = set()

        for col in self.df.columns:
            m = PADRAO_QUESTAO.match(col)
            if m:
                self.mapa.questoes[int(m.group(1))] = col
                usadas.add(col)
                continue
            m = PADRAO_ITEM_PRODUCAO.match(col)
            if m and 1 <= int(m.group(1)) <= MAX_ITENS_PRODUCAO:
                self.mapa.itens[int(m.group(1))] = col
                usadas.add(col)

        for campo, aliases in COLUNA_ALIAS.items():
            for col in self.df.columns:
                if col not in usadas and col in aliases:
                    self.mapa.campos[campo] = col
                    usadas.add(col)
                    break

        for campo in CAMPOS_BUSCA_PARCIAL:
            if campo in self.mapa.campos:
                continue
            col = self._busca_parcial(COLUNA_ALIAS[campo], usadas)
            if col:
                self.mapa.campos[campo] = col
                usadas.add(col)

        self.mapa.questoes = dict(sorted(self.mapa.questoes.items()))
        logger.debug("Colunas mapeadas: %s; %d questões; %d itens de produção.",
                     self.mapa.campos, len(self.mapa.questoes), len(self.mapa.itens))
        return self.mapa

    def _busca_parcial(self, aliases, usadas):
        # "NOME" só é tentado depois de "ALUNO", "NOME DO ALUNO" etc.
        for alias in sorted(aliases, key=len, reverse=True):
            for col in self.df.columns:
                if col in usadas or col in CABECALHOS_ANO_LETIVO:
                    continue
                if alias in col:
                    return col
        return None

    def linha(self, indice: int) -> pd.Series:
        """Linha pela posição entre as linhas não vazias. `.name` guarda o índice original na aba."""
        return self.df.iloc[indice]


class NormalizadorLinha:
    """Converte uma linha crua da planilha numa `LinhaNormalizada`.

    Toda a resolução de ambiguidades fica aqui: variações de cabeçalho,
    vocabulários de presença e a cadeia de inferência da série.
    """

    def __init__(self, mapa: MapaColunas, resolvedor: ResolvedorConfigSerie):
        self.mapa = mapa
        self.resolvedor = resolvedor

    def _valor(self, row, campo: str):
        col = self.mapa.campos.get(campo)
        return row.get(col) if col else None

    def normalizar(self, indice: int, row) -> LinhaNormalizada:
        """
        Normaliza uma linha.

        Args:
            indice (int): Índice original da linha na aba (0 é a primeira após o cabeçalho).
            row (pd.Series): Valores da linha.

        Returns:
            LinhaNormalizada: Registro canônico.

        Raises:
            ErroLinha: Se o nome da escola ou do aluno estiver vazio.
        """
        fila = indice + 2
        escola = Sanitizer.texto_celula(self._valor(row, 'escola'))
        aluno = Sanitizer.texto_celula(self._valor(row, 'aluno'))
        if not escola or not aluno:
            raise ErroLinha(f"Linha {fila}: Escola ou aluno vazio (Escola: \"{escola}\", Aluno: \"{aluno}\")")

        turma = Sanitizer.texto_celula(self._valor(row, 'turma'))

        celulas = {}
        for numero, col in self.mapa.questoes.items():
            texto = Sanitizer.texto_celula(row.get(col))
            if texto:
                celulas[numero] = texto

        serie_texto, origem = self.resolver_serie(fila, row, turma, celulas)
        configuracao = self.resolvedor.resolver(serie_texto)
        presenca = self.resolver_presenca(row, bool(celulas))
        ausente = presenca == 'F'

        acertos = {f.disciplina: 0 for f in configuracao.faixas}
        respostas = []
        for numero, texto in celulas.items():
            disciplina = mapear_disciplina(configuracao.faixas, numero)
            if disciplina == DISCIPLINA_NAO_MAPEADA:
                logger.debug("Linha %d: Q%d fora das faixas da série %s; ignorada.",
                             fila, numero, configuracao.serie)
                continue
            faixa = configuracao.faixa(disciplina)
            acertou = (not ausente) and texto.upper() in VALORES_ACERTO
            if acertou:
                acertos[faixa.disciplina] += 1
            respostas.append(RespostaQuestao(
                numero=numero,
                resposta=None if ausente else texto,
                acertou=acertou,
                nota=faixa.valor_questao if acertou else 0.0,
                disciplina=faixa.disciplina,
            ))

        return LinhaNormalizada(
            indice=indice,
            escola_nome=escola,
            aluno_nome=aluno,
            turma_codigo=turma,
            serie=configuracao.serie,
            origem_serie=origem,
            presenca=presenca,
            configuracao=configuracao,
            respostas=respostas,
            acertos=acertos,
            itens_producao=self.ler_itens(row),
            nota_producao=Sanitizer.limpar_nota(self._valor(row, 'nota_producao')),
            notas_planilha={c: Sanitizer.limpar_nota(self._valor(row, c)) for c in CAMPOS_NOTAS_PLANILHA},
        )

    def resolver_serie(self, fila: int, row, turma: str, celulas: dict) -> Tuple[Optional[str], Optional[str]]:
        """
        Série da linha e a regra que a resolveu.

        1. coluna de série (valores que parecem ano letivo são descartados);
        2. dígitos iniciais do código da turma ("5B" -> "5");
        3. maior questão respondida (<=28 -> "2", <=34 -> "5", acima -> "8").

        Returns:
            Tuple[Optional[str], Optional[str]]: (texto da série, 'coluna' | 'turma' | 'questoes'),
            ou (None, None) se nenhuma regra se aplicar.
        """
        bruto = Sanitizer.texto_celula(self._valor(row, 'serie'))
        digitos = Sanitizer.extrair_digitos(bruto)
        if digitos:
            if not parece_ano(int(digitos)):
                return bruto, 'coluna'
            logger.info("Linha %d: coluna de série traz o ano '%s'; valor descartado.", fila, bruto)

        inicio = ""
        for c in turma:
            if not c.isdigit():
                break
            inicio += c
        if inicio and 1 <= int(inicio) <= 9:
            logger.info("Linha %d: série %s inferida pelo código da turma '%s'.", fila, int(inicio), turma)
            return str(int(inicio)), 'turma'

        if celulas:
            maior = max(celulas)
            serie = SERIE_QUESTOES_ACIMA
            for limite, candidata in SERIE_POR_MAIOR_QUESTAO:
                if maior <= limite:
                    serie = candidata
                    break
            logger.info("Linha %d: série %s inferida pela maior questão respondida (Q%d).", fila, serie, maior)
            return serie, 'questoes'

        return None, None

    def resolver_presenca(self, row, tem_respostas: bool) -> str:
        """
        'P', 'F' ou '-' (sem dados).

        Consulta as colunas P/F, FALTA e PRESENÇA nessa ordem, cada uma com seu
        vocabulário. Sem nenhuma coluna preenchida, a linha é presente se houver
        alguma questão respondida e "sem dados" caso contrário.
        """
        for campo in ORDEM_COLUNAS_PRESENCA:
            token = Sanitizer.limpar_texto(self._valor(row, campo))
            if not token:
                continue
            valor = VOCABULARIO_PRESENCA[campo].get(token, PRESENCA_TOKEN_DESCONHECIDO[campo])
            if valor:
                return valor
        return 'P' if tem_respostas else PRESENCA_SEM_DADOS

    def ler_itens(self, row) -> list:
        """Itens 1..8 da produção textual como 0/1, ou None quando a célula está vazia."""
        itens = []
        for n in range(1, MAX_ITENS_PRODUCAO + 1):
            col = self.mapa.itens.get(n)
            texto = Sanitizer.texto_celula(row.get(col)) if col else ""
            if not texto:
                itens.append(None)
            elif texto.upper() in VALORES_ACERTO:
                itens.append(1)
            else:
                valor = Sanitizer.limpar_nota(texto)
                itens.append(1 if valor and valor > 0 else 0)
        return itens
