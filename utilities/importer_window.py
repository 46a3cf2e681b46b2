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
from datetime import datetime

from PyQt6.QtCore import Qt, QTimer
from PyQt6.QtGui import QIntValidator
from PyQt6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QLabel, QPushButton, QLineEdit, QFileDialog,
    QMessageBox, QProgressBar, QTableWidget, QTableWidgetItem, QHeaderView, QGroupBox,
    QAbstractItemView,
)

from controllers.controlador_importacoes import ControladorImportacoes
from controllers.import_processor import ErroLeituraPlanilha
from database.config import ANO_LETIVO_PADRAO, actualizar_env
from services.importacao_job import (
    TransicaoInvalidaError, ImportacaoNaoEncontradaError, PROCESSANDO, PAUSADO, STATUS_TERMINAIS,
)

logger = logging.getLogger(__name__)

ROTULOS_STATUS = {
    "processando": "Processando",
    "pausado": "Pausado",
    "cancelado": "Cancelado",
    "concluido": "Concluído",
    "erro": "Erro",
}


class JanelaImportacao(QWidget):
    """
    Janela principal: envio da planilha, acompanhamento do job ativo e
    histórico das importações.

    O processamento corre numa thread do `ControladorImportacoes`; a janela só
    consulta o banco periodicamente, de modo que pode ser fechada e reaberta
    sem afetar o job.
    """
    INTERVALO_ATUALIZACAO_MS = 700

    def __init__(self, controlador: ControladorImportacoes = None, parent=None):
        super().__init__(parent)
        self.controlador = controlador or ControladorImportacoes()
        self.importacao_atual = None
        self._resumo_mostrado = None

        self._setup_ui()

        self.timer = QTimer(self)
        self.timer.timeout.connect(self.atualizar)
        self.timer.start(self.INTERVALO_ATUALIZACAO_MS)
        self.carregar_historico()

    # ----------------------------
    # UI
    # ----------------------------
    def _setup_ui(self):
        layout = QVBoxLayout(self)
        layout.setContentsMargins(20, 20, 20, 20)
        layout.setSpacing(12)

        titulo = QLabel("Importação de Resultados")
        titulo.setStyleSheet("font-size: 20px; font-weight: bold;")
        layout.addWidget(titulo)

        # --- Envio ---
        grupo_envio = QGroupBox("Nova importação")
        lay_envio = QHBoxLayout(grupo_envio)

        self.txt_arquivo = QLineEdit()
        self.txt_arquivo.setReadOnly(True)
        self.txt_arquivo.setPlaceholderText("Nenhum arquivo selecionado")
        btn_arquivo = QPushButton("Selecionar planilha...")
        btn_arquivo.setCursor(Qt.CursorShape.PointingHandCursor)
        btn_arquivo.clicked.connect(self.selecionar_arquivo)

        self.txt_ano = QLineEdit(ANO_LETIVO_PADRAO or str(datetime.now().year))
        self.txt_ano.setValidator(QIntValidator(2000, 2100, self))
        self.txt_ano.setMaximumWidth(80)

        self.btn_iniciar = QPushButton("Importar")
        self.btn_iniciar.setCursor(Qt.CursorShape.PointingHandCursor)
        self.btn_iniciar.clicked.connect(self.iniciar)

        lay_envio.addWidget(self.txt_arquivo, 1)
        lay_envio.addWidget(btn_arquivo)
        lay_envio.addWidget(QLabel("Ano letivo:"))
        lay_envio.addWidget(self.txt_ano)
        lay_envio.addWidget(self.btn_iniciar)
        layout.addWidget(grupo_envio)

        # --- Progresso ---
        grupo_prog = QGroupBox("Progresso")
        lay_prog = QVBoxLayout(grupo_prog)

        self.lbl_status = QLabel("Nenhuma importação selecionada.")
        self.barra = QProgressBar()
        self.barra.setRange(0, 1000)
        self.lbl_contadores = QLabel("")
        self.lbl_contadores.setWordWrap(True)

        lay_botoes = QHBoxLayout()
        self.btn_pausar = QPushButton("Pausar")
        self.btn_retomar = QPushButton("Retomar")
        self.btn_cancelar = QPushButton("Cancelar")
        for btn, acao in ((self.btn_pausar, self.pausar),
                          (self.btn_retomar, self.retomar),
                          (self.btn_cancelar, self.cancelar)):
            btn.setCursor(Qt.CursorShape.PointingHandCursor)
            btn.clicked.connect(acao)
            lay_botoes.addWidget(btn)
        lay_botoes.addStretch()

        lay_prog.addWidget(self.lbl_status)
        lay_prog.addWidget(self.barra)
        lay_prog.addWidget(self.lbl_contadores)
        lay_prog.addLayout(lay_botoes)
        layout.addWidget(grupo_prog)

        # --- Histórico ---
        lay_historico = QHBoxLayout()
        lay_historico.addWidget(QLabel("Importações recentes"))
        lay_historico.addStretch()
        btn_recalcular = QPushButton("Recalcular níveis")
        btn_recalcular.clicked.connect(self.recalcular_niveis)
        btn_cancelar_todas = QPushButton("Cancelar todas")
        btn_cancelar_todas.clicked.connect(self.cancelar_todas)
        for btn in (btn_recalcular, btn_cancelar_todas):
            btn.setCursor(Qt.CursorShape.PointingHandCursor)
            lay_historico.addWidget(btn)
        layout.addLayout(lay_historico)
        self.tabela = QTableWidget(0, 6)
        self.tabela.setHorizontalHeaderLabels(
            ["Arquivo", "Ano", "Status", "%", "Linhas", "Erros"]
        )
        self.tabela.horizontalHeader().setSectionResizeMode(0, QHeaderView.ResizeMode.Stretch)
        self.tabela.setEditTriggers(QAbstractItemView.EditTrigger.NoEditTriggers)
        self.tabela.setSelectionBehavior(QAbstractItemView.SelectionBehavior.SelectRows)
        self.tabela.setSelectionMode(QAbstractItemView.SelectionMode.SingleSelection)
        self.tabela.cellClicked.connect(self._selecionar_linha)
        layout.addWidget(self.tabela, 1)

        self._atualizar_botoes(None)

    def mostrar_erro(self, mensaje):
        QMessageBox.critical(self, "Erro", mensaje)

    # ----------------------------
    # AÇÕES
    # ----------------------------
    def selecionar_arquivo(self):
        archivo, _ = QFileDialog.getOpenFileName(
            self, "Selecionar planilha", "", "Planilhas (*.xlsx *.ods *.csv)"
        )
        if archivo:
            self.txt_arquivo.setText(archivo)

    def iniciar(self):
        archivo = self.txt_arquivo.text().strip()
        ano = self.txt_ano.text().strip()
        if not archivo:
            QMessageBox.warning(self, "Atenção", "Selecione uma planilha.")
            return

        try:
            with open(archivo, "rb") as f:
                conteudo = f.read()
            importacao_id = self.controlador.iniciar_importacao(conteudo, os.path.basename(archivo), ano)
        except (OSError, ValueError, ErroLeituraPlanilha) as e:
            self.mostrar_erro(str(e))
            return

        actualizar_env("ANO_LETIVO_PADRAO", ano)
        self.importacao_atual = importacao_id
        self.txt_arquivo.clear()
        self.atualizar()
        self.carregar_historico()

    def _mudar_status(self, acao):
        if not self.importacao_atual:
            return
        try:
            acao(self.importacao_atual)
        except (TransicaoInvalidaError, ImportacaoNaoEncontradaError) as e:
            QMessageBox.warning(self, "Atenção", str(e))
        self.atualizar()

    def pausar(self):
        self._mudar_status(self.controlador.pausar)

    def retomar(self):
        self._mudar_status(self.controlador.retomar)

    def cancelar(self):
        resp = QMessageBox.question(
            self, "Cancelar importação",
            "Os lotes já gravados serão mantidos. Deseja cancelar a importação?",
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No
        )
        if resp == QMessageBox.StandardButton.Yes:
            self._mudar_status(self.controlador.cancelar)

    def cancelar_todas(self):
        resp = QMessageBox.question(
            self, "Cancelar todas",
            "Todas as importações em andamento ou pausadas serão canceladas. Continuar?",
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No
        )
        if resp != QMessageBox.StandardButton.Yes:
            return
        cancelados = self.controlador.cancelar_todas()
        QMessageBox.information(self, "Cancelar todas", f"{len(cancelados)} importação(ões) cancelada(s).")
        self.atualizar()
        self.carregar_historico()

    def recalcular_niveis(self):
        ano = self.txt_ano.text().strip() or None
        try:
            resumo = self.controlador.recalcular_niveis(ano)
        except ValueError as e:
            self.mostrar_erro(str(e))
            return
        QMessageBox.information(
            self, "Recalcular níveis",
            f"{resumo['avaliados']} resultados avaliados, {resumo['atualizados']} atualizados."
        )

    # ----------------------------
    # ATUALIZAÇÃO
    # ----------------------------
    def _selecionar_linha(self, fila, _col):
        item = self.tabela.item(fila, 0)
        if item:
            self.importacao_atual = item.data(Qt.ItemDataRole.UserRole)
            self.atualizar()

    def _atualizar_botoes(self, status):
        self.btn_pausar.setEnabled(status == PROCESSANDO)
        self.btn_retomar.setEnabled(status == PAUSADO)
        self.btn_cancelar.setEnabled(status in (PROCESSANDO, PAUSADO))

    def atualizar(self):
        """Relê o progresso do job selecionado; ao terminar, mostra o resumo uma única vez."""
        if not self.importacao_atual:
            return
        try:
            prog = self.controlador.obter_progresso(self.importacao_atual)
        except ImportacaoNaoEncontradaError:
            self.importacao_atual = None
            self._atualizar_botoes(None)
            return

        status = prog["status"]
        self.barra.setValue(int(prog["percentual"] * 10))
        self.lbl_status.setText(
            f"{prog['nome_arquivo']} ({prog['ano_letivo']}): {ROTULOS_STATUS.get(status, status)} "
            f"- linha {prog['proxima_linha']} de {prog['total_linhas']}"
        )
        self.lbl_contadores.setText(
            f"Processadas: {prog['linhas_processadas']}   Com erro: {prog['linhas_com_erro']}   "
            f"Escolas: {prog['escolas']['criadas']} novas / {prog['escolas']['existentes']} existentes   "
            f"Turmas: {prog['turmas']['criadas']} / {prog['turmas']['existentes']}   "
            f"Alunos: {prog['alunos']['criados']} / {prog['alunos']['existentes']}   "
            f"Questões: {prog['questoes_importadas']}"
        )
        self._atualizar_botoes(status)

        if status in STATUS_TERMINAIS and self._resumo_mostrado != self.importacao_atual:
            self._resumo_mostrado = self.importacao_atual
            self.carregar_historico()
            self._mostrar_resumo(self.controlador.obter_resultado(self.importacao_atual))

    def _mostrar_resumo(self, resultado):
        texto = (
            f"Status: {ROTULOS_STATUS.get(resultado['status'], resultado['status'])}\n"
            f"Linhas processadas: {resultado['linhas_processadas']}\n"
            f"Linhas com erro: {resultado['linhas_com_erro']}\n"
            f"Questões importadas: {resultado['questoes_importadas']}"
        )
        if resultado["mensagem_erro"]:
            texto += f"\n\n{resultado['mensagem_erro']}"
        box = QMessageBox(self)
        box.setWindowTitle("Importação finalizada")
        box.setText(texto)
        if resultado["erros"]:
            box.setDetailedText("\n".join(resultado["erros"]))
        box.setIcon(QMessageBox.Icon.Critical if resultado["status"] == "erro" else QMessageBox.Icon.Information)
        box.exec()

    def carregar_historico(self):
        importacoes = self.controlador.listar_importacoes()
        self.tabela.setRowCount(0)
        for i, imp in enumerate(importacoes):
            self.tabela.insertRow(i)
            item_nome = QTableWidgetItem(imp["nome_arquivo"])
            item_nome.setData(Qt.ItemDataRole.UserRole, imp["id"])
            self.tabela.setItem(i, 0, item_nome)
            self.tabela.setItem(i, 1, QTableWidgetItem(imp["ano_letivo"]))
            self.tabela.setItem(i, 2, QTableWidgetItem(ROTULOS_STATUS.get(imp["status"], imp["status"])))
            self.tabela.setItem(i, 3, QTableWidgetItem(f"{imp['percentual']:.1f}"))
            self.tabela.setItem(i, 4, QTableWidgetItem(str(imp["linhas_processadas"])))
            self.tabela.setItem(i, 5, QTableWidgetItem(str(imp["linhas_com_erro"])))
