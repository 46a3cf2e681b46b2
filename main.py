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
import sys

from PyQt6.QtWidgets import QApplication
from qt_material import apply_stylesheet
from PyQt6.QtCore import QTranslator, QLibraryInfo, QTimer

from controllers.controlador_importacoes import ControladorImportacoes
from database.setup import inicializar_base_de_datos
from utilities.importer_window import JanelaImportacao
from utilities.logger import configurar_logging
import database.config as config

# Configuração de rotas para imports
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

logger = logging.getLogger(__name__)


def main():
    """
    Ponto de entrada da aplicação.

    1. Configura o logging.
    2. Inicializa o banco e a configuração padrão das séries.
    3. Retoma as importações interrompidas por um encerramento anterior.
    4. Configura o QApplication, a tradução e o tema (qt_material).
    5. Mostra a janela de importação e inicia o loop de eventos.
    """
    configurar_logging()
    inicializar_base_de_datos()

    controlador = ControladorImportacoes()
    retomadas = controlador.retomar_interrompidas()
    if retomadas:
        logger.info("%d importação(ões) retomada(s) após reinício.", len(retomadas))

    app = QApplication(sys.argv)
    translator = QTranslator()
    translator.load(
        "qt_pt",
        QLibraryInfo.path(QLibraryInfo.LibraryPath.TranslationsPath)
    )
    app.installTranslator(translator)

    apply_stylesheet(
        app,
        theme=config.THEME_XML,
        invert_secondary=True,
        extra={'font_family': config.FONT_FAMILY}
    )

    window = JanelaImportacao(controlador)
    window.setWindowTitle(config.APP_TITLE)

    QTimer.singleShot(100, window.showMaximized)

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
