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

from database.base_model import BaseCRUDModel
from database.models import Turma
from utilities.uid import generar_uid


class TurmaModel(BaseCRUDModel):
    """Modelo CRUD para as turmas."""
    model = Turma

    def mapa_do_ano(self, ano_letivo: str) -> dict:
        """Devolve {(codigo, escola_id): id} das turmas do ano letivo."""
        with self._get_session() as session:
            linhas = (
                session.query(Turma.codigo, Turma.escola_id, Turma.id)
                .filter(Turma.ano_letivo == ano_letivo)
                .all()
            )
        return {(codigo, escola_id): turma_id for codigo, escola_id, turma_id in linhas}

    def garantir_turma(self, codigo: str, escola_id: str, serie, ano_letivo: str) -> tuple[str, bool]:
        """
        Busca ou cria a turma pela chave (codigo, escola, ano letivo).

        Returns:
            tuple[str, bool]: (id, criada agora).
        """
        dados = {
            "id": generar_uid(),
            "codigo": codigo,
            "escola_id": escola_id,
            "serie": serie,
            "ano_letivo": ano_letivo,
        }
        return self.garantir(dados, ["codigo", "escola_id", "ano_letivo"])
