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

from sqlalchemy.exc import IntegrityError
from sqlalchemy.dialects import postgresql, sqlite
from database.conexion import SessionLocal


def construir_upsert(session, model, registros: list[dict], chaves: list[str], atualizar: list[str],
                     extras: dict | None = None):
    """Monta um INSERT ... ON CONFLICT DO UPDATE multi-linha para o dialeto da sessão.

    Args:
        session (Session): Sessão ativa; define o dialeto (sqlite ou postgresql).
        model: Classe declarativa alvo.
        registros (list[dict]): Linhas a inserir.
        chaves (list[str]): Colunas da restrição única usada como alvo do conflito.
        atualizar (list[str]): Colunas sobrescritas quando a linha já existe.
        extras (dict, optional): Valores fixos no UPDATE (ex. carimbo de data).

    Returns:
        Insert: Instrução pronta para `session.execute`.

    Raises:
        NotImplementedError: Se o dialeto não suportar ON CONFLICT.
    """
    dialeto = session.get_bind().dialect.name
    if dialeto == "postgresql":
        stmt = postgresql.insert(model).values(registros)
    elif dialeto == "sqlite":
        stmt = sqlite.insert(model).values(registros)
    else:
        raise NotImplementedError(f"Upsert não suportado para o dialeto '{dialeto}'.")

    if not atualizar:
        return stmt.on_conflict_do_nothing(index_elements=chaves)
    return stmt.on_conflict_do_update(
        index_elements=chaves,
        set_={**{col: stmt.excluded[col] for col in atualizar}, **(extras or {})}
    )


class BaseCRUDModel:
    """Classe base para operações CRUD genéricas sobre modelos SQLAlchemy.

    Cada chamada abre e fecha sua própria sessão. As subclasses definem o
    atributo de classe `model`. A fábrica de sessões pode ser trocada no
    construtor, o que permite apontar o modelo para outro banco.
    """

    model = None  # definido na subclasse

    def __init__(self, session_factory=None):
        self.session_factory = session_factory or SessionLocal

    # ----------------------------
    # MÉTODOS BÁSICOS CRUD
    # ----------------------------
    def _get_session(self):
        """Cria uma nova sessão a partir da fábrica configurada.

        Returns:
            Session: Uma instância de sqlalchemy.orm.Session.
        """
        return self.session_factory()

    def get_by_id(self, obj_id: str):
        """Busca um registro pela chave primária.

        Args:
            obj_id (str): Identificador do registro.

        Returns:
            object: A instância, ou None se não existir.
        """
        with self._get_session() as session:
            return session.query(self.model).filter_by(id=obj_id).first()

    def create(self, data: dict):
        """Cria um registro novo.

        Args:
            data (dict): Valores das colunas.

        Returns:
            object: A instância persistida.

        Raises:
            IntegrityError: Se alguma restrição for violada.
        """
        with self._get_session() as session:
            try:
                obj = self.model(**data)
                session.add(obj)
                session.commit()
                session.refresh(obj)
                return obj
            except IntegrityError:
                session.rollback()
                raise

    def garantir(self, data: dict, chaves: list[str]) -> tuple[str, bool]:
        """Insere o registro se a chave única ainda não existir e devolve seu id.

        Seguro com importações concorrentes: o INSERT usa ON CONFLICT DO NOTHING
        e o id é sempre relido pela chave.

        Args:
            data (dict): Valores do registro novo. Deve conter `id`.
            chaves (list[str]): Colunas da restrição única.

        Returns:
            tuple[str, bool]: (id do registro, True se foi criado agora).
        """
        with self._get_session() as session:
            try:
                session.execute(construir_upsert(session, self.model, [data], chaves, []))
                filtro = {c: data[c] for c in chaves}
                obj_id = session.query(self.model.id).filter_by(**filtro).scalar()
                session.commit()
            except Exception:
                session.rollback()
                raise
        return obj_id, obj_id == data["id"]

