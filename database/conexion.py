#  Copyright (c) 2026 Fleer
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from .config import DATABASE_URL


def crear_engine(url: str = DATABASE_URL, echo: bool = False) -> Engine:
    """Cria o Engine do SQLAlchemy para a URL informada.

    Conexões SQLite são abertas sem a trava de thread única, pois cada
    importação roda em sua própria thread e abre suas próprias sessões.

    Args:
        url (str): URL de conexão SQLAlchemy.
        echo (bool): Se True, registra o SQL emitido.

    Returns:
        Engine: Engine configurado.
    """
    kwargs = {"echo": echo}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False, "timeout": 30}
    return create_engine(url, **kwargs)


engine = crear_engine()


@event.listens_for(Engine, "connect")
def activar_foreign_keys_sqlite(dbapi_connection, connection_record):
    """Ativa o suporte a chaves estrangeiras em conexões SQLite.

    O SQLAlchemy não habilita isso por padrão no SQLite. Para outros drivers
    o listener não faz nada.

    Args:
        dbapi_connection: A conexão crua da DBAPI.
        connection_record: O registro de contexto da conexão.
    """
    if "sqlite3" in str(dbapi_connection.__class__.__module__):
        cursor = dbapi_connection.cursor()
        try:
            cursor.execute("PRAGMA foreign_keys=ON")
        finally:
            cursor.close()


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)
Base = declarative_base()
