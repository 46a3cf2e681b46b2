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

from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError

from database.conexion import engine as engine_padrao, Base, SessionLocal
import database.models  # noqa: F401  registra as tabelas no metadata
from models.configuracao_serie_model import ConfiguracaoSerieModel

logger = logging.getLogger(__name__)


def inicializar_base_de_datos(engine=None, session_factory=None):
    """
    Cria a estrutura do banco se não existir e grava a configuração padrão
    das séries quando a tabela estiver vazia.

    Args:
        engine: Engine alvo (padrão: o da aplicação).
        session_factory: Fábrica de sessões ligada ao mesmo engine.

    Raises:
        SQLAlchemyError: Se as tabelas não puderem ser criadas.
    """
    engine = engine or engine_padrao
    session_factory = session_factory or SessionLocal
    logger.info("Inicializando banco de dados (%s)...", engine.dialect.name)

    try:
        Base.metadata.create_all(bind=engine)
    except SQLAlchemyError:
        logger.exception("Erro crítico criando as tabelas.")
        raise
    logger.info("Estrutura de tabelas verificada/criada.")

    if inspect(engine).has_table("configuracao_series_disciplinas"):
        inseridas = ConfiguracaoSerieModel(session_factory).popular_padrao()
        if inseridas:
            logger.info("Configuração inicial das séries inserida (%d linhas).", inseridas)
