#  Copyright (c) 2026 Fleer
#  Permission is hereby granted, free of charge, to any person obtaining a copy
#  of this software and associated documentation files (the "Software"), to deal
#  in the Software without restriction, including without limitation the rights
#  to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
#  copies of the Software, and to permit persons to whom the Software is
#  furnished to do so, subject to the following conditions:
#
#  The above copyright notice and this permission notice shall be included in all
#  copies or substantial portions of the Software.

import logging
from collections import Counter
from typing import Dict, List, Optional, Sequence

from config.mappings import PRESENCA_SEM_DADOS
from config.series_padrao import QTD_ITENS_PRODUCAO
from database.config import REGRA_NIVEL_ALUNO
from database.schemas import ConfiguracaoSerie, LinhaNormalizada, ResultadoCalculado

logger = logging.getLogger(__name__)

DISCIPLINAS_OBJETIVAS = ['LP', 'MAT', 'CH', 'CN']

NIVEIS = ['N1', 'N2', 'N3', 'N4']
VALOR_NIVEL = {'N1': 1, 'N2': 2, 'N3': 3, 'N4': 4}

# Nota da produção (0-10): abaixo do limite -> nível
FAIXAS_NIVEL_PRODUCAO = [(4.0, 'N1'), (6.0, 'N2'), (8.0, 'N3')]
NIVEL_PRODUCAO_MAXIMO = 'N4'

# Média dos valores dos níveis: até o limite -> nível
FAIXAS_MEDIA_NIVEL = [(1.5, 'N1'), (2.5, 'N2'), (3.5, 'N3')]

REGRAS_NIVEL_ALUNO = ('media', 'maioria')

# Diferença tolerada entre uma nota da planilha e a calculada antes de registrar divergência
TOLERANCIA_DIVERGENCIA = 0.01


def nota_disciplina(acertos: int, qtd_questoes: int) -> float:
    """Acertos / questões esperadas x 10; 0 quando não há questões esperadas."""
    if not qtd_questoes:
        return 0.0
    return acertos / qtd_questoes * 10


def nivel_por_acertos(acertos: int, faixas_nivel: Optional[Sequence[int]]) -> Optional[str]:
    """
    Nível pelos acertos mínimos de N1..N4.

    Args:
        acertos (int): Total de acertos na disciplina.
        faixas_nivel (Sequence[int]): Mínimos crescentes, ex. [1, 4, 8, 12].

    Returns:
        Optional[str]: 'N1'..'N4', ou None sem faixas ou abaixo do mínimo de N1 (ex. 0 acertos).
    """
    if not faixas_nivel or not acertos:
        return None
    nivel = None
    for minimo, rotulo in zip(faixas_nivel, NIVEIS):
        if acertos >= minimo:
            nivel = rotulo
    return nivel


def nivel_producao(nota: Optional[float]) -> Optional[str]:
    """Nível da produção textual pela nota; None quando não avaliada (vazia ou 0)."""
    if not nota:
        return None
    for limite, rotulo in FAIXAS_NIVEL_PRODUCAO:
        if nota < limite:
            return rotulo
    return NIVEL_PRODUCAO_MAXIMO


def combinar_niveis(niveis: List[Optional[str]], regra: str = 'media') -> Optional[str]:
    """
    Nível geral do aluno a partir dos níveis por disciplina.

    Args:
        niveis (list): Níveis de LP, MAT e produção; None é ignorado.
        regra (str): 'media' (média dos valores, limites 1.5/2.5/3.5) ou
            'maioria' (nível mais frequente; empate vai para o menor).

    Returns:
        Optional[str]: Nível geral, ou None se nenhum nível foi atribuído.

    Raises:
        ValueError: Se a regra não for conhecida.
    """
    validos = [n for n in niveis if n]
    if not validos:
        return None

    if regra == 'maioria':
        contagem = Counter(validos)
        maior = max(contagem.values())
        return min((n for n, c in contagem.items() if c == maior), key=VALOR_NIVEL.get)

    if regra == 'media':
        media = sum(VALOR_NIVEL[n] for n in validos) / len(validos)
        for limite, rotulo in FAIXAS_MEDIA_NIVEL:
            if media <= limite:
                return rotulo
        return 'N4'

    raise ValueError(f"Regra de nível desconhecida: '{regra}'. Use uma de {REGRAS_NIVEL_ALUNO}.")


class CalculadoraConsolidacao:
    """Calcula o resultado consolidado de um aluno.

    O resultado depende apenas dos acertos por disciplina, dos itens e da nota
    de produção e da configuração da série. A média usa divisor fixo: 3 nos
    anos iniciais quando há produção, 2 sem produção, e 4 nos anos finais,
    com disciplina ausente contando como zero.
    """

    def __init__(self, regra_nivel: str = REGRA_NIVEL_ALUNO):
        if regra_nivel not in REGRAS_NIVEL_ALUNO:
            raise ValueError(f"Regra de nível desconhecida: '{regra_nivel}'. Use uma de {REGRAS_NIVEL_ALUNO}.")
        self.regra_nivel = regra_nivel

    def calcular(
        self,
        configuracao: ConfiguracaoSerie,
        presenca: str,
        acertos: Dict[str, int],
        itens_producao: Optional[List[Optional[int]]] = None,
        nota_producao: Optional[float] = None,
        respondidas: int = 0,
    ) -> ResultadoCalculado:
        """
        Args:
            configuracao (ConfiguracaoSerie): Configuração da série do aluno.
            presenca (str): 'P', 'F' ou '-'.
            acertos (dict): Acertos por disciplina.
            itens_producao (list, optional): Itens 1..8 (0/1 ou None).
            nota_producao (float, optional): Nota de produção informada na planilha.
            respondidas (int): Questões com resposta dentro das faixas.

        Returns:
            ResultadoCalculado: Campos calculados. Linhas sem dados e de alunos
            ausentes ficam sem notas nem níveis.
        """
        if presenca == PRESENCA_SEM_DADOS:
            return ResultadoCalculado(presenca=presenca)

        if presenca == 'F':
            return ResultadoCalculado(
                presenca='F',
                total_acertos_lp=0, total_acertos_mat=0, total_acertos_ch=0, total_acertos_cn=0,
                total_questoes_respondidas=0,
                total_questoes_esperadas=configuracao.total_questoes,
            )

        resultado = ResultadoCalculado(
            presenca=presenca,
            total_questoes_respondidas=respondidas,
            total_questoes_esperadas=configuracao.total_questoes,
        )
        notas = {}
        for disciplina in DISCIPLINAS_OBJETIVAS:
            faixa = configuracao.faixa(disciplina)
            total = acertos.get(disciplina, 0) if faixa else 0
            notas[disciplina] = nota_disciplina(total, faixa.qtd_questoes) if faixa else 0.0
            setattr(resultado, f"total_acertos_{disciplina.lower()}", total)
            setattr(resultado, f"nota_{disciplina.lower()}", notas[disciplina])

        if configuracao.anos_iniciais:
            itens = list(itens_producao or [])
            for n, valor in enumerate(itens[:QTD_ITENS_PRODUCAO], start=1):
                setattr(resultado, f"item_producao_{n}", valor)
            resultado.nota_producao = self._nota_producao(configuracao, itens, nota_producao)

            producao = resultado.nota_producao or 0.0
            entra_na_media = configuracao.producao is None or configuracao.producao.compoe_media
            if producao > 0 and entra_na_media:
                resultado.media_aluno = (notas['LP'] + notas['MAT'] + producao) / 3
            else:
                resultado.media_aluno = (notas['LP'] + notas['MAT']) / 2

            niveis = self.niveis(configuracao, resultado.total_acertos_lp, resultado.total_acertos_mat,
                                 resultado.nota_producao)
            for campo, nivel in niveis.items():
                setattr(resultado, campo, nivel)
        else:
            resultado.media_aluno = (notas['LP'] + notas['CH'] + notas['MAT'] + notas['CN']) / 4

        return resultado

    def niveis(self, configuracao: ConfiguracaoSerie, acertos_lp: Optional[int], acertos_mat: Optional[int],
               nota_producao: Optional[float]) -> Dict[str, Optional[str]]:
        """
        Níveis de aprendizagem dos anos iniciais.

        Também usado para recalcular os níveis de resultados já gravados
        quando as faixas da série mudam.

        Returns:
            dict: nivel_lp, nivel_mat, nivel_prod e nivel_aluno.
        """
        faixa_lp = configuracao.faixa('LP')
        faixa_mat = configuracao.faixa('MAT')
        nivel_lp = nivel_por_acertos(acertos_lp or 0, faixa_lp.faixas_nivel if faixa_lp else None)
        nivel_mat = nivel_por_acertos(acertos_mat or 0, faixa_mat.faixas_nivel if faixa_mat else None)
        nivel_prod = nivel_producao(nota_producao)
        return {
            'nivel_lp': nivel_lp,
            'nivel_mat': nivel_mat,
            'nivel_prod': nivel_prod,
            'nivel_aluno': combinar_niveis([nivel_lp, nivel_mat, nivel_prod], self.regra_nivel),
        }

    @staticmethod
    def _nota_producao(configuracao: ConfiguracaoSerie, itens, nota_informada: Optional[float]) -> Optional[float]:
        """Nota pelos itens quando existem; senão a nota informada na planilha."""
        preenchidos = [i for i in itens if i is not None]
        if not preenchidos:
            return nota_informada
        qtd = configuracao.producao.qtd_questoes if configuracao.producao else QTD_ITENS_PRODUCAO
        return nota_disciplina(sum(preenchidos), qtd or QTD_ITENS_PRODUCAO)

    def calcular_linha(self, linha: LinhaNormalizada) -> ResultadoCalculado:
        """Atalho para calcular a partir de uma linha normalizada, registrando divergências."""
        resultado = self.calcular(
            linha.configuracao,
            linha.presenca,
            linha.acertos,
            linha.itens_producao,
            linha.nota_producao,
            respondidas=len(linha.respostas),
        )
        self.registrar_divergencias(linha, resultado)
        return resultado

    @staticmethod
    def registrar_divergencias(linha: LinhaNormalizada, resultado: ResultadoCalculado):
        """Compara as notas trazidas na planilha com as calculadas e registra no log as diferentes."""
        pares = {
            'nota_lp': resultado.nota_lp,
            'nota_mat': resultado.nota_mat,
            'nota_ch': resultado.nota_ch,
            'nota_cn': resultado.nota_cn,
            'media': resultado.media_aluno,
        }
        for campo, calculada in pares.items():
            informada = linha.notas_planilha.get(campo)
            if informada is None or calculada is None:
                continue
            if abs(informada - calculada) > TOLERANCIA_DIVERGENCIA:
                logger.info(
                    "Linha %d (%s): %s da planilha %.2f difere da calculada %.2f.",
                    linha.fila, linha.aluno_nome, campo, informada, calculada
                )
