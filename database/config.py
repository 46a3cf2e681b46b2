#  Copyright (c) 2026 Fleer
import os
import sys
from dotenv import load_dotenv, set_key

# 1. DETERMINAR RUTAS BASE
if getattr(sys, 'frozen', False):
    # Executável empacotado: a pasta do executável
    BASE_DIR = os.path.dirname(sys.executable)
else:
    BASE_DIR = os.path.dirname(os.path.abspath(__file__))

ENV_PATH = os.path.join(BASE_DIR, '.env')
if os.path.exists(ENV_PATH):
    load_dotenv(ENV_PATH)


def actualizar_env(clave, valor):
    """Atualiza ou cria uma variável no arquivo .env.

    Usado para lembrar preferências do operador entre sessões, como o último
    ano letivo importado.

    Args:
        clave (str): Nome da variável de ambiente.
        valor (str): Valor a gravar.
    """
    if not os.path.exists(ENV_PATH):
        with open(ENV_PATH, 'w') as f: f.write("")
    set_key(ENV_PATH, clave, str(valor))
    os.environ[clave] = str(valor)


def _int_env(nome, padrao):
    try:
        return int(os.getenv(nome, padrao))
    except (TypeError, ValueError):
        return padrao


# 2. CONFIGURAÇÃO DO BANCO DE DADOS
DB_TYPE = os.getenv("DB_TYPE", "sqlite")
DB_NAME = os.getenv("DB_NAME", "sisam.db")

if DB_TYPE == "sqlite":
    db_path = os.path.join(BASE_DIR, DB_NAME)
    DATABASE_URL = f"sqlite:///{db_path}"
else:
    _user = os.getenv("DB_USER")
    _pass = os.getenv("DB_PASS")
    _host = os.getenv("DB_HOST")
    _name = os.getenv("DB_NAME_REMOTE")
    _port = os.getenv("DB_PORT", "5432")

    if not all([_user, _pass, _host, _name]):
        fallback_path = os.path.join(BASE_DIR, 'temp_fallback.db')
        DATABASE_URL = f"sqlite:///{fallback_path}"
    else:
        DATABASE_URL = f"postgresql://{_user}:{_pass}@{_host}:{_port}/{_name}"

# 3. PARÂMETROS DA IMPORTAÇÃO
TAMANHO_LOTE = _int_env("TAMANHO_LOTE", 500)
LINHAS_POR_CHECKPOINT = _int_env("LINHAS_POR_CHECKPOINT", 50)
LIMITE_ERROS = _int_env("LIMITE_ERROS", 100)
INTERVALO_PAUSA = float(os.getenv("INTERVALO_PAUSA", "0.5"))

# "media" (média dos níveis N1..N4) ou "maioria" (nível mais frequente)
REGRA_NIVEL_ALUNO = os.getenv("REGRA_NIVEL_ALUNO", "media").strip().lower()

# Cópia dos arquivos enviados, para retomar importações após reinício
UPLOAD_DIR = os.getenv("UPLOAD_DIR", os.path.join(BASE_DIR, 'uploads'))

# 4. LOGGING
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("LOG_FORMAT", "text")

# 5. INTERFACE
THEME_XML = 'light_blue.xml'
FONT_FAMILY = 'Roboto'
APP_TITLE = "SISAM - Importação de Resultados"
ANO_LETIVO_PADRAO = os.getenv("ANO_LETIVO_PADRAO", "")
