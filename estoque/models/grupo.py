# -*- coding: utf-8 -*-
"""
Modelos SQLAlchemy para Grupos de produtos.

Grupo é usado pelo registro em tabela própria; GrupoPendente guarda, no registro
derivado, os grupos recém-criados que ainda não têm nenhum produto.
"""
from sqlalchemy import Column, Integer, String, DateTime
from estoque.database import Base, agora_utc


class Grupo(Base):
    __tablename__ = 'grupos'

    id = Column(Integer, primary_key=True, index=True)
    codigo = Column(Integer, unique=True, index=True, nullable=False)
    nome = Column(String(100), unique=True, nullable=False)
    created_at = Column(DateTime, default=agora_utc)


class GrupoPendente(Base):
    __tablename__ = 'grupos_pendentes'

    id = Column(Integer, primary_key=True, index=True)
    codigo = Column(Integer, unique=True, index=True, nullable=False)
    nome = Column(String(100), unique=True, nullable=False)
    created_at = Column(DateTime, default=agora_utc)
