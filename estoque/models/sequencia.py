# -*- coding: utf-8 -*-
"""
Modelo para controle de sequências numéricas.
Guarda o maior código já alocado, para que códigos nunca sejam reutilizados
mesmo depois que os registros forem excluídos.
"""
from sqlalchemy import Column, Integer, String
from estoque.database import Base


class Sequencia(Base):
    __tablename__ = 'sequencias'

    id = Column(Integer, primary_key=True, index=True)
    nome = Column(String(30), unique=True, nullable=False)  # ex: 'grupo'
    ultimo_numero = Column(Integer, nullable=False, default=0)
