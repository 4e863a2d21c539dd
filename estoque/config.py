# -*- coding: utf-8 -*-
"""
Configuração da API de estoque, lida de variáveis de ambiente (e do .env).
"""
import os
from dotenv import load_dotenv

load_dotenv()


class Config:
    ENVIRONMENT = os.environ.get("ENVIRONMENT", "development")

    # Usa variável de ambiente ou default para SQLite
    DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite:///./estoque.db")

    # Portal externo que emite e valida os tokens de sessão
    PORTAL_URL = os.environ.get("PORTAL_URL", "https://ir-comercio-portal-zcan.onrender.com")
    PORTAL_TIMEOUT = float(os.environ.get("PORTAL_TIMEOUT", "10"))
    PORTAL_RETRIES = int(os.environ.get("PORTAL_RETRIES", "1"))

    # 'tabela' (grupos em tabela própria) ou 'derivado' (grupos derivados dos produtos)
    GRUPOS_MODO = os.environ.get("GRUPOS_MODO", "tabela")

    PAGE_SIZE_MAX = int(os.environ.get("PAGE_SIZE_MAX", "50"))

    FRONTEND_URL = os.environ.get("FRONTEND_URL", "http://localhost:3002")
    LOG_FILE = os.environ.get("LOG_FILE")
    ACCESS_REPORT_INTERVAL = int(os.environ.get("ACCESS_REPORT_INTERVAL", "3600"))


def normalizar_database_url(url: str) -> str:
    # Se for PostgreSQL no Render, ajusta o prefixo se necessário
    if url and url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql://", 1)
    return url
