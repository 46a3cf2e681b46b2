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
import re
import threading
from typing import Dict, List

from controllers.import_processor import ExcelEngine, ErroLeituraPlanilha
from database.config import UPLOAD_DIR, REGRA_NIVEL_ALUNO
from models.importacao_model import ImportacaoModel
from services.importacao_job import (
    ControladorJob, ImportacaoNaoEncontradaError, TransicaoInvalidaError,
    validar_transicao, origens_de, retomar_interrompidas,
    PROCESSANDO, PAUSADO, CANCELADO, STATUS_TERMINAIS,
)
from services.recalculo import recalcular_niveis
from utilities.uid import generar_uid

logger = logging.getLogger(__name__)

EXTENSOES_ACEITAS = {".xlsx", ".ods", ".csv"}


class ControladorImportacoes:
    """Ponto de entrada do ciclo de vida das importações.

    Guarda uma cópia do arquivo enviado, cria o registro do job, dispara a
    thread de processamento e atende às consultas de progresso e aos pedidos
    de pausa, retomada e cancelamento. Todo o estado consultado vem do banco,
    de modo que uma janela reaberta continua acompanhando o mesmo job.
    """

    def __init__(self, session_factory=None, upload_dir: str = UPLOAD_DIR, **opcoes_job):
        """
        Args:
            session_factory: Fábrica de sessões (padrão: SessionLocal).
            upload_dir (str): Pasta onde as planilhas enviadas são guardadas.
            **opcoes_job: Repassadas a cada `ControladorJob` (tamanho do lote, ouvinte...).
        """
        self.session_factory = session_factory
        self.upload_dir = upload_dir
        self.opcoes_job = opcoes_job
        self.model = ImportacaoModel(session_factory)
        self._jobs: Dict[str, ControladorJob] = {}
        self._lock = threading.Lock()

    # ----------------------------
    # CICLO DE VIDA
    # ----------------------------
    def iniciar_importacao(self, conteudo: bytes, nome_arquivo: str, ano_letivo: str) -> str:
        """
        Registra e inicia uma importação.

        Args:
            conteudo (bytes): Bytes da planilha.
            nome_arquivo (str): Nome original, usado para escolher o leitor.
            ano_letivo (str): Ano letivo da avaliação (ex. "2025").

        Returns:
            str: Id da importação.

        Raises:
            ValueError: Ano letivo ou extensão inválidos.
            ErroLeituraPlanilha: Se o arquivo não puder ser lido.
        """
        ano_letivo = str(ano_letivo).strip()
        if not re.fullmatch(r"\d{4}", ano_letivo):
            raise ValueError(f"Ano letivo inválido: '{ano_letivo}'.")
        extensao = os.path.splitext(nome_arquivo)[1].lower()
        if extensao not in EXTENSOES_ACEITAS:
            raise ValueError(f"Formato não suportado: '{extensao}'. Use {', '.join(sorted(EXTENSOES_ACEITAS))}.")

        importacao_id = generar_uid()
        os.makedirs(self.upload_dir, exist_ok=True)
        caminho = os.path.join(self.upload_dir, f"{importacao_id}{extensao}")
        with open(caminho, "wb") as f:
            f.write(conteudo)

        try:
            engine = ExcelEngine(caminho)
            engine.cargar()
        except ErroLeituraPlanilha:
            os.remove(caminho)
            raise

        self.model.criar(nome_arquivo, caminho, ano_letivo, engine.total_linhas, importacao_id=importacao_id)
        logger.info("Importação %s criada: '%s', %d linhas, ano letivo %s.",
                    importacao_id, nome_arquivo, engine.total_linhas, ano_letivo)
        self._disparar(ControladorJob(importacao_id, session_factory=self.session_factory, **self.opcoes_job))
        return importacao_id

    def _disparar(self, job: ControladorJob):
        with self._lock:
            self._jobs[job.importacao_id] = job
        job.iniciar_em_thread()

    def _obter(self, importacao_id: str):
        importacao = self.model.get_by_id(importacao_id)
        if importacao is None:
            raise ImportacaoNaoEncontradaError(f"Importação não encontrada: {importacao_id}")
        return importacao

    def _mudar_status(self, importacao_id: str, destino: str):
        importacao = self._obter(importacao_id)
        validar_transicao(importacao.status, destino)
        if not self.model.trocar_status(importacao_id, origens_de(destino), destino):
            # O job mudou de status entre a leitura e o UPDATE
            raise TransicaoInvalidaError(
                f"Transição inválida: {self.model.status_de(importacao_id)} -> {destino}"
            )
        with self._lock:
            job = self._jobs.get(importacao_id)
        if job:
            job.acordar()
        logger.info("Importação %s: %s -> %s.", importacao_id, importacao.status, destino)

    def pausar(self, importacao_id: str):
        """Pede a pausa; o job para no próximo fim de lote. Só vale em 'processando'."""
        self._mudar_status(importacao_id, PAUSADO)

    def retomar(self, importacao_id: str):
        """Retoma um job pausado a partir da próxima linha não processada."""
        self._mudar_status(importacao_id, PROCESSANDO)

    def cancelar(self, importacao_id: str):
        """Cancela um job em andamento ou pausado. Os lotes já gravados permanecem."""
        self._mudar_status(importacao_id, CANCELADO)

    def cancelar_todas(self) -> List[str]:
        """Cancela todos os jobs em andamento ou pausados.

        Returns:
            List[str]: Ids dos jobs cancelados. Jobs que terminaram antes do UPDATE ficam de fora.
        """
        cancelados = self.model.cancelar_ativas()
        with self._lock:
            jobs = [self._jobs[i] for i in cancelados if i in self._jobs]
        for job in jobs:
            job.acordar()
        logger.info("%d importação(ões) cancelada(s): %s.", len(cancelados), ", ".join(cancelados) or "-")
        return cancelados

    def aguardar(self, importacao_id: str, timeout: float | None = None) -> bool:
        """
        Espera a thread do job terminar.

        Returns:
            bool: True se o job terminou dentro do prazo (ou não tem thread neste processo).
        """
        with self._lock:
            job = self._jobs.get(importacao_id)
        if job is None or job.thread is None:
            return True
        job.thread.join(timeout)
        return not job.thread.is_alive()

    def retomar_interrompidas(self) -> List[str]:
        """Reinicia os jobs deixados ativos por um processo anterior.

        Returns:
            List[str]: Ids dos jobs reiniciados.
        """
        iniciados = retomar_interrompidas(self.session_factory, **self.opcoes_job)
        with self._lock:
            for job in iniciados:
                self._jobs[job.importacao_id] = job
        return [job.importacao_id for job in iniciados]

    def recalcular_niveis(self, ano_letivo: str | None = None) -> dict:
        """Recalcula os níveis gravados com as faixas atuais da configuração de séries."""
        regra = self.opcoes_job.get("regra_nivel", REGRA_NIVEL_ALUNO)
        return recalcular_niveis(self.session_factory, ano_letivo, regra)

    # ----------------------------
    # CONSULTAS
    # ----------------------------
    @staticmethod
    def _progresso(importacao) -> dict:
        total = importacao.total_linhas or 0
        lidas = importacao.proxima_linha or 0
        if total:
            percentual = round(lidas / total * 100, 1)
        else:
            percentual = 100.0 if importacao.status in STATUS_TERMINAIS else 0.0
        return {
            "id": importacao.id,
            "nome_arquivo": importacao.nome_arquivo,
            "ano_letivo": importacao.ano_letivo,
            "status": importacao.status,
            "percentual": percentual,
            "total_linhas": total,
            "proxima_linha": lidas,
            "linhas_processadas": importacao.linhas_processadas,
            "linhas_com_erro": importacao.linhas_com_erro,
            "escolas": {"criadas": importacao.escolas_criadas, "existentes": importacao.escolas_existentes},
            "turmas": {"criadas": importacao.turmas_criadas, "existentes": importacao.turmas_existentes},
            "alunos": {"criados": importacao.alunos_criados, "existentes": importacao.alunos_existentes},
            "questoes_importadas": importacao.questoes_importadas,
        }

    def obter_progresso(self, importacao_id: str) -> dict:
        """Progresso atual lido do banco (percentual, linhas, contadores e status)."""
        return self._progresso(self._obter(importacao_id))

    def obter_resultado(self, importacao_id: str) -> dict:
        """Resumo final: contadores por entidade, erros (lista limitada) e mensagem de falha."""
        importacao = self._obter(importacao_id)
        resultado = self._progresso(importacao)
        resultado.update({
            "erros": list(importacao.erros or []),
            "total_erros": importacao.total_erros,
            "mensagem_erro": importacao.mensagem_erro,
            "finalizado": importacao.status in STATUS_TERMINAIS,
            "concluido_em": importacao.concluido_em,
        })
        return resultado

    def listar_importacoes(self, limite: int = 50) -> List[dict]:
        """Importações mais recentes, com o mesmo formato de `obter_progresso`."""
        return [self._progresso(i) for i in self.model.listar(limite)]
