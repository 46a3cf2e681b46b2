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

from config.series_padrao import linhas_configuracao_padrao
from database.base_model import BaseCRUDModel
from database.models import ConfiguracaoSerieDisciplina

logger = logging.getLogger(__name__)


class ConfiguracaoSerieModel(BaseCRUDModel):
    """Modelo CRUD da configuração série x disciplina."""
    model = ConfiguracaoSerieDisciplina

    def listar_ativas(self):
        """Linhas ativas, ordenadas por série e questão inicial.

        Returns:
            list[ConfiguracaoSerieDisciplina]: Configuração cadastrada.
        """
        with self._get_session() as session:
            return (
                session.query(ConfiguracaoSerieDisciplina)
                .filter(ConfiguracaoSerieDisciplina.ativo.is_(True))
                .order_by(ConfiguracaoSerieDisciplina.serie, ConfiguracaoSerieDisciplina.questao_inicio)
                .all()
            )

    def popular_padrao(self) -> int:
        """Grava a configuração padrão se a tabela estiver vazia.

        Returns:
            int: Quantidade de linhas inseridas (0 se já havia configuração).
        """
        with self._get_session() as session:
            if session.query(ConfiguracaoSerieDisciplina).count() > 0:
                return 0
            linhas = linhas_configuracao_padrao()
            for dados in linhas:
                session.add(ConfiguracaoSerieDisciplina(**dados))
            session.commit()
        logger.info("Configuração padrão das séries gravada (%d linhas).", len(linhas))
        return len(linhas)
