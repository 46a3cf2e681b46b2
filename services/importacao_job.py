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
import os
import threading
from typing import Callable, Dict, Optional, Set

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.sql import func

from controllers.import_processor import ExcelEngine, NormalizadorLinha, ErroLinha, ErroLeituraPlanilha
from database.config import (
    TAMANHO_LOTE, LINHAS_POR_CHECKPOINT, LIMITE_ERROS, INTERVALO_PAUSA, REGRA_NIVEL_ALUNO
)
from database.schemas import ResumoImportacao
from models.importacao_model import ImportacaoModel
from models.resultado_consolidado_model import ResultadoConsolidadoModel
from services.consolidacao import CalculadoraConsolidacao
from services.persistence import ContextoImportacao, GravadorLotes, ErroGravacaoLote
from services.series_config import ResolvedorConfigSerie, ConfiguracaoInvalidaError

logger = logging.getLogger(__name__)

PROCESSANDO = "processando"
PAUSADO = "pausado"
CANCELADO = "cancelado"
CONCLUIDO = "concluido"
ERRO = "erro"

_TRANSICOES: Dict[str, Set[str]] = {
    PROCESSANDO: {PAUSADO, CANCELADO, CONCLUIDO, ERRO},
    PAUSADO: {PROCESSANDO, CANCELADO, ERRO},
    CANCELADO: set(),
    CONCLUIDO: set(),
    ERRO: set(),
}

STATUS_ATIVOS = {PROCESSANDO, PAUSADO}
STATUS_TERMINAIS = {CANCELADO, CONCLUIDO, ERRO}


class TransicaoInvalidaError(ValueError):
    """A mudança de status pedida não é permitida a partir do status atual."""


class ImportacaoNaoEncontradaError(LookupError):
    """Não existe importação com o id informado."""


def validar_transicao(atual: str, destino: str) -> str:
    """
    Confere se `atual -> destino` é uma transição válida.

    Returns:
        str: O status de destino.

    Raises:
        TransicaoInvalidaError: Se a transição não for permitida.
    """
    permitidos = _TRANSICOES.get(atual)
    if not permitidos or destino not in permitidos:
        raise TransicaoInvalidaError(f"Transição inválida: {atual} -> {destino}")
    return destino


def origens_de(destino: str) -> Set[str]:
    """Status a partir dos quais `destino` pode ser alcançado."""
    return {origem for origem, destinos in _TRANSICOES.items() if destino in destinos}


class ControladorJob:
    """Executa uma importação do início (ou da linha salva) até um status final.

    As linhas são processadas em sequência. Ao fim de cada lote o buffer é
    gravado, o progresso é persistido e o status gravado é relido: é só
    nesses pontos que pausa e cancelamento têm efeito.

    Args:
        importacao_id (str): Id do registro em `importacoes`.
        session_factory: Fábrica de sessões (padrão: SessionLocal).
        ouvinte (Callable, optional): Chamado a cada checkpoint com
            (importacao_id, proxima_linha, status).
        esperar (Callable, optional): Função de espera durante a pausa; recebe
            o intervalo em segundos. O padrão espera no evento interno, que
            `acordar()` dispara.
    """

    def __init__(
        self,
        importacao_id: str,
        session_factory=None,
        tamanho_lote: int = TAMANHO_LOTE,
        linhas_por_checkpoint: int = LINHAS_POR_CHECKPOINT,
        limite_erros: int = LIMITE_ERROS,
        intervalo_pausa: float = INTERVALO_PAUSA,
        regra_nivel: str = REGRA_NIVEL_ALUNO,
        ouvinte: Optional[Callable[[str, int, str], None]] = None,
        esperar: Optional[Callable[[float], object]] = None,
    ):
        self.importacao_id = importacao_id
        self.session_factory = session_factory
        self.tamanho_lote = tamanho_lote
        self.linhas_por_checkpoint = max(1, linhas_por_checkpoint)
        self.limite_erros = limite_erros
        self.intervalo_pausa = intervalo_pausa
        self.regra_nivel = regra_nivel
        self.ouvinte = ouvinte

        self._evento = threading.Event()
        self._esperar = esperar or self._evento.wait
        self.thread: Optional[threading.Thread] = None

        self.model = ImportacaoModel(session_factory)
        self.resumo = ResumoImportacao()
        self.proxima_linha = 0

    # ----------------------------
    # EXECUÇÃO
    # ----------------------------
    def iniciar_em_thread(self) -> threading.Thread:
        """Executa o job numa thread própria."""
        self.thread = threading.Thread(
            target=self.executar, name=f"importacao-{self.importacao_id}", daemon=True
        )
        self.thread.start()
        return self.thread

    def acordar(self):
        """Interrompe a espera de uma pausa para o status ser relido já."""
        self._evento.set()

    def executar(self) -> str:
        """
        Processa o job até um status final ou até ser cancelado.

        Returns:
            str: Status final gravado.

        Raises:
            ImportacaoNaoEncontradaError: Se o registro do job não existir.
        """
        importacao = self.model.get_by_id(self.importacao_id)
        if importacao is None:
            raise ImportacaoNaoEncontradaError(self.importacao_id)
        try:
            return self._executar(importacao)
        except Exception as e:
            logger.exception("Importação %s interrompida por erro inesperado.", self.importacao_id)
            self._finalizar(ERRO, f"Erro inesperado: {e}")
            return ERRO

    def _executar(self, importacao) -> str:
        self.resumo = ResumoImportacao.de_importacao(importacao)
        self.proxima_linha = importacao.proxima_linha or 0
        ano_letivo = importacao.ano_letivo

        status = importacao.status
        if status == PAUSADO:
            status = self._aguardar_retomada()
        if status != PROCESSANDO:
            return status

        engine = ExcelEngine(importacao.caminho_arquivo or "")
        try:
            engine.cargar()
            resolvedor = ResolvedorConfigSerie(session_factory=self.session_factory)
            resolvedor.carregar()
        except (ErroLeituraPlanilha, ConfiguracaoInvalidaError) as e:
            logger.error("Importação %s: %s", self.importacao_id, e)
            return self._finalizar(ERRO, str(e))

        mapa = engine.mapear_columnas()
        faltando = mapa.faltando()
        if faltando:
            logger.warning("Importação %s: colunas obrigatórias não encontradas: %s",
                           self.importacao_id, ", ".join(faltando))

        normalizador = NormalizadorLinha(mapa, resolvedor)
        contexto = ContextoImportacao(ano_letivo, self.resumo, self.session_factory)
        contexto.carregar_caches()
        gravador = GravadorLotes(ano_letivo, self.session_factory, self.tamanho_lote)
        calculadora = CalculadoraConsolidacao(self.regra_nivel)

        total = engine.total_linhas
        logger.info("Importação %s: processando linhas %d a %d de '%s'.",
                    self.importacao_id, self.proxima_linha + 1, total, importacao.nome_arquivo)

        desde_checkpoint = 0
        try:
            for indice in range(self.proxima_linha, total):
                row = engine.linha(indice)
                self._processar_linha(int(row.name), row, normalizador, contexto, gravador, calculadora)
                desde_checkpoint += 1
                if gravador.cheio or desde_checkpoint >= self.linhas_por_checkpoint:
                    desde_checkpoint = 0
                    status = self._checkpoint(gravador, indice + 1)
                    if status == PAUSADO:
                        status = self._aguardar_retomada()
                    if status == CANCELADO:
                        logger.info("Importação %s cancelada na linha %d; lotes gravados mantidos.",
                                    self.importacao_id, indice + 2)
                        return self._finalizar(CANCELADO)
                    if status != PROCESSANDO:
                        return status

            if self.proxima_linha < total or not gravador.vazio:
                status = self._checkpoint(gravador, total)
                if status == PAUSADO:
                    status = self._aguardar_retomada()
                if status == CANCELADO:
                    return self._finalizar(CANCELADO)
                if status != PROCESSANDO:
                    return status
        except ErroGravacaoLote as e:
            logger.error("Importação %s: %s", self.importacao_id, e)
            return self._finalizar(ERRO, str(e))

        falhou_tudo = total > 0 and self.resumo.linhas_com_erro >= total
        if not falhou_tudo:
            self._conferir_alunos(gravador.alunos_gravados, ano_letivo)
        destino = ERRO if falhou_tudo else CONCLUIDO
        mensagem = "Nenhuma linha foi importada." if falhou_tudo else None
        logger.info("Importação %s finalizada (%s): %d linhas processadas, %d com erro, %d questões.",
                    self.importacao_id, destino, self.resumo.linhas_processadas,
                    self.resumo.linhas_com_erro, self.resumo.questoes_importadas)
        return self._finalizar(destino, mensagem)

    def _processar_linha(self, indice, row, normalizador, contexto, gravador, calculadora):
        """Normaliza, resolve os cadastros e enfileira uma linha; erros da linha não param o job."""
        try:
            linha = normalizador.normalizar(indice, row)
            escola_id = contexto.resolver_escola(linha.escola_nome)
            turma_id = contexto.resolver_turma(linha.turma_codigo, escola_id, linha.serie)
            aluno_id, codigo = contexto.resolver_aluno(linha.aluno_nome, escola_id, turma_id, linha.serie)
        except ErroLinha as e:
            self._erro_linha(str(e))
            return
        except SQLAlchemyError as e:
            self._erro_linha(f"Linha {indice + 2}: falha ao gravar cadastro: {e}")
            return

        resultado = calculadora.calcular_linha(linha)
        gravador.adicionar(linha, resultado, escola_id, turma_id, aluno_id, codigo)
        self.resumo.linhas_processadas += 1

    def _conferir_alunos(self, esperados, ano_letivo: str):
        """Confere se todos os alunos gravados nesta execução têm consolidado no banco.

        A falta vira um erro no resumo; o job continua concluído.
        """
        if not esperados:
            return
        encontrados = ResultadoConsolidadoModel(self.session_factory).contar_alunos(esperados, ano_letivo)
        faltam = len(esperados) - encontrados
        if faltam <= 0:
            return
        mensagem = f"FALTAM {faltam} ALUNOS: Esperado {len(esperados)}, mas apenas {encontrados} foram importados"
        logger.error("Importação %s: %s", self.importacao_id, mensagem)
        self.resumo.registrar_erro(mensagem, self.limite_erros)
        self.model.gravar_progresso(self.importacao_id, self.resumo, self.proxima_linha)

    def _erro_linha(self, mensagem: str):
        self.resumo.linhas_com_erro += 1
        self.resumo.registrar_erro(mensagem, self.limite_erros)
        if self.resumo.total_erros <= self.limite_erros:
            logger.warning("Importação %s: %s", self.importacao_id, mensagem)

    # ----------------------------
    # CHECKPOINT E PAUSA
    # ----------------------------
    def _checkpoint(self, gravador: GravadorLotes, proxima_linha: int) -> str:
        """Grava o lote, persiste o progresso e devolve o status gravado."""
        self.resumo.questoes_importadas += gravador.descarregar()
        status = self.model.gravar_progresso(self.importacao_id, self.resumo, proxima_linha)
        self.proxima_linha = proxima_linha
        if self.ouvinte:
            self.ouvinte(self.importacao_id, proxima_linha, status)
            status = self.model.status_de(self.importacao_id)
        return status

    def _aguardar_retomada(self) -> str:
        """Espera enquanto o status gravado for 'pausado'."""
        logger.info("Importação %s pausada antes da linha %d.", self.importacao_id, self.proxima_linha + 2)
        while True:
            self._evento.clear()
            status = self.model.status_de(self.importacao_id)
            if status != PAUSADO:
                if status == PROCESSANDO:
                    logger.info("Importação %s retomada.", self.importacao_id)
                return status
            self._esperar(self.intervalo_pausa)

    def _finalizar(self, destino: str, mensagem: Optional[str] = None) -> str:
        """Grava o status final. Se o status já tiver mudado (ex. cancelado), prevalece o gravado.

        Uma pausa pedida depois do último checkpoint é respeitada: o job espera
        a retomada e só então conclui, ou fecha como cancelado.
        """
        campos = {"concluido_em": func.now()}
        if mensagem:
            campos["mensagem_erro"] = mensagem
        origens = origens_de(destino)
        if destino == CANCELADO:
            # o cancelamento normalmente já foi gravado pela interface; aqui só se fecha o job
            origens = origens | {CANCELADO}
        while not self.model.trocar_status(self.importacao_id, origens, destino, **campos):
            atual = self.model.status_de(self.importacao_id)
            if atual == PAUSADO:
                atual = self._aguardar_retomada()
                if atual == PROCESSANDO:
                    continue
                if atual == CANCELADO:
                    return self._finalizar(CANCELADO)
            logger.info("Importação %s: status final %s mantido (pedido: %s).",
                        self.importacao_id, atual, destino)
            return atual
        return destino


def retomar_interrompidas(session_factory=None, **opcoes) -> list:
    """
    Recoloca em execução os jobs que ficaram ativos quando o processo parou.

    Cada job continua a partir de `proxima_linha`, usando a cópia do arquivo
    guardada no envio. Jobs cujo arquivo sumiu são encerrados com erro.

    Args:
        session_factory: Fábrica de sessões.
        **opcoes: Repassadas a `ControladorJob`.

    Returns:
        list[ControladorJob]: Controladores iniciados.
    """
    model = ImportacaoModel(session_factory)
    iniciados = []
    for importacao in model.interrompidas():
        caminho = importacao.caminho_arquivo
        if not caminho or not os.path.exists(caminho):
            logger.error("Importação %s não pode ser retomada: arquivo '%s' indisponível.",
                         importacao.id, caminho)
            model.trocar_status(importacao.id, STATUS_ATIVOS, ERRO,
                                mensagem_erro="Arquivo original indisponível para retomar a importação.",
                                concluido_em=func.now())
            continue
        logger.info("Retomando importação %s (%s) a partir da linha %d.",
                    importacao.id, importacao.status, (importacao.proxima_linha or 0) + 2)
        controlador = ControladorJob(importacao.id, session_factory=session_factory, **opcoes)
        controlador.iniciar_em_thread()
        iniciados.append(controlador)
    return iniciados
