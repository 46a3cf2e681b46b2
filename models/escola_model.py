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
from database.models import Escola
from utilities.uid import generar_uid


class EscolaModel(BaseCRUDModel):
    """Modelo CRUD para as escolas."""
    model = Escola

    def mapa_por_nome(self) -> dict:
        """Devolve {nome_normalizado: id} de todas as escolas."""
        with self._get_session() as session:
            return dict(session.query(Escola.nome_normalizado, Escola.id).all())

    def garantir_escola(self, nome: str, nome_normalizado: str) -> tuple[str, bool]:
        """
        Busca ou cria a escola pelo nome normalizado.

        Returns:
            tuple[str, bool]: (id, criada agora).
        """
        dados = {"id": generar_uid(), "nome": nome, "nome_normalizado": nome_normalizado}
        return self.garantir(dados, ["nome_normalizado"])
