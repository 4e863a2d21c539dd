# -*- coding: utf-8 -*-
"""
Configuração do banco de dados SQLAlchemy para a API de estoque.
"""

from datetime import datetime, timezone

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from estoque.config import Config, normalizar_database_url

DATABASE_URL = normalizar_database_url(Config.DATABASE_URL)


def criar_engine(url: str):
    connect_args = {}
    if url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}

    # pool_pre_ping=True: Verifica se a conexão está viva antes de usar
    # pool_recycle: Recicla conexões a cada hora para evitar timeouts do banco
    return create_engine(
        url,
        connect_args=connect_args,
        pool_pre_ping=True,
        pool_recycle=3600
    )


engine = criar_engine(DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def agora_utc():
    # colunas DateTime sem fuso guardam UTC
    return datetime.now(timezone.utc).replace(tzinfo=None)


# Função para obter uma sessão do banco de dados (usada com Depends)
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
