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

from sqlalchemy.sql import func

from database.base_model import BaseCRUDModel, construir_upsert
from database.models import ResultadoProva

CHAVE_RESULTADO = ["aluno_id", "questao_codigo", "ano_letivo"]

# Colunas sobrescritas quando a mesma questão do mesmo aluno é reimportada
COLUNAS_ATUALIZADAS = [
    "escola_id", "turma_id", "aluno_codigo", "aluno_nome", "questao_numero",
    "resposta_aluno", "acertou", "nota", "disciplina", "area_conhecimento",
    "serie", "turma", "presenca",
]

MAX_LINHAS_POR_INSTRUCAO = 500


class ResultadoProvaModel(BaseCRUDModel):
    """Resultados por questão (uma linha por aluno, questão e ano letivo)."""
    model = ResultadoProva

    @staticmethod
    def gravar_lote(session, registros: list[dict]) -> int:
        """
        Executa o upsert multi-linha na sessão recebida, sem commit.
        O commit fica com quem abriu a transação.

        Args:
            session (Session): Sessão com a transação do lote.
            registros (list[dict]): Linhas com as mesmas chaves.

        Returns:
            int: Quantidade de linhas enviadas.
        """
        for inicio in range(0, len(registros), MAX_LINHAS_POR_INSTRUCAO):
            parte = registros[inicio:inicio + MAX_LINHAS_POR_INSTRUCAO]
            stmt = construir_upsert(
                session, ResultadoProva, parte, CHAVE_RESULTADO, COLUNAS_ATUALIZADAS,
                extras={"atualizado_em": func.now()}
            )
            session.execute(stmt)
        return len(registros)
