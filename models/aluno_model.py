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

import re

from database.base_model import BaseCRUDModel
from database.models import Aluno
from utilities.uid import generar_uid


class AlunoModel(BaseCRUDModel):
    """Modelo CRUD para os alunos."""
    model = Aluno

    def mapa_do_ano(self, ano_letivo: str) -> dict:
        """Devolve {(nome_normalizado, escola_id): (id, codigo)} dos alunos do ano letivo."""
        with self._get_session() as session:
            linhas = (
                session.query(Aluno.nome_normalizado, Aluno.escola_id, Aluno.id, Aluno.codigo)
                .filter(Aluno.ano_letivo == ano_letivo)
                .all()
            )
        return {(nome, escola_id): (aluno_id, codigo) for nome, escola_id, aluno_id, codigo in linhas}

    def maior_numero_codigo(self) -> int:
        """Maior número usado nos códigos ALUnnnn, ou 0 se não houver nenhum."""
        with self._get_session() as session:
            codigos = session.query(Aluno.codigo).filter(Aluno.codigo.like("ALU%")).all()
        maior = 0
        for (codigo,) in codigos:
            m = re.fullmatch(r"ALU(\d+)", codigo or "")
            if m:
                maior = max(maior, int(m.group(1)))
        return maior

    def garantir_aluno(self, dados: dict) -> tuple[str, bool]:
        """
        Busca ou cria o aluno pela chave (nome normalizado, escola, ano letivo).

        Args:
            dados (dict): codigo, nome, nome_normalizado, escola_id, turma_id, serie, ano_letivo.

        Returns:
            tuple[str, bool]: (id, criado agora).
        """
        registro = {"id": generar_uid(), **dados}
        return self.garantir(registro, ["nome_normalizado", "escola_id", "ano_letivo"])

    def codigo_de(self, aluno_id: str):
        with self._get_session() as session:
            return session.query(Aluno.codigo).filter(Aluno.id == aluno_id).scalar()
