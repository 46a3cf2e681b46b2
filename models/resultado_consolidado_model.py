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

from datetime import datetime, timezone

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.sql import func

from database.base_model import BaseCRUDModel, construir_upsert
from database.models import ResultadoConsolidado

CHAVE_CONSOLIDADO = ["aluno_id", "ano_letivo"]

# Tudo menos a identidade e o carimbo de criação: a reimportação substitui a linha inteira
COLUNAS_ATUALIZADAS = [
    c.name for c in ResultadoConsolidado.__table__.columns
    if c.name not in ("id", "aluno_id", "ano_letivo", "criado_em", "atualizado_em")
]

# Cerca de 40 parâmetros por linha; mantém cada instrução abaixo do limite do SQLite
MAX_LINHAS_POR_INSTRUCAO = 200

# Tamanho de cada lista do IN ao conferir alunos gravados
MAX_IDS_POR_CONSULTA = 500


class ResultadoConsolidadoModel(BaseCRUDModel):
    """Resultado anual consolidado de cada aluno."""
    model = ResultadoConsolidado

    @staticmethod
    def gravar_lote(session, registros: list[dict]) -> int:
        """Upsert multi-linha na transação recebida, substituindo todas as colunas calculadas.

        Args:
            session (Session): Sessão com a transação do lote.
            registros (list[dict]): Linhas completas (todas as colunas de COLUNAS_ATUALIZADAS).

        Returns:
            int: Quantidade de linhas enviadas.
        """
        for inicio in range(0, len(registros), MAX_LINHAS_POR_INSTRUCAO):
            stmt = construir_upsert(
                session, ResultadoConsolidado, registros[inicio:inicio + MAX_LINHAS_POR_INSTRUCAO],
                CHAVE_CONSOLIDADO, COLUNAS_ATUALIZADAS,
                extras={"atualizado_em": func.now()}
            )
            session.execute(stmt)
        return len(registros)

    def contar_alunos(self, aluno_ids, ano_letivo: str) -> int:
        """Quantos dos alunos informados têm resultado consolidado no ano."""
        ids = list(aluno_ids)
        total = 0
        with self._get_session() as session:
            for inicio in range(0, len(ids), MAX_IDS_POR_CONSULTA):
                total += (
                    session.query(ResultadoConsolidado)
                    .filter(ResultadoConsolidado.ano_letivo == ano_letivo,
                            ResultadoConsolidado.aluno_id.in_(ids[inicio:inicio + MAX_IDS_POR_CONSULTA]))
                    .count()
                )
        return total

    def presentes(self, ano_letivo: str | None = None):
        """Resultados de alunos presentes com série conhecida, opcionalmente de um só ano."""
        with self._get_session() as session:
            query = session.query(ResultadoConsolidado).filter(
                ResultadoConsolidado.presenca == "P", ResultadoConsolidado.serie.isnot(None)
            )
            if ano_letivo:
                query = query.filter(ResultadoConsolidado.ano_letivo == ano_letivo)
            return query.order_by(ResultadoConsolidado.id).all()

    def atualizar_niveis(self, atualizacoes: list[dict]) -> int:
        """UPDATE em lote pela chave primária. Cada dict traz `id` e as colunas de nível.

        Returns:
            int: Quantidade de linhas enviadas.
        """
        if not atualizacoes:
            return 0
        agora = datetime.now(timezone.utc)
        with self._get_session() as session:
            try:
                session.execute(update(ResultadoConsolidado), [{**a, "atualizado_em": agora} for a in atualizacoes])
                session.commit()
            except SQLAlchemyError:
                session.rollback()
                raise
        return len(atualizacoes)
