# -*- coding: utf-8 -*-
"""
Modelo SQLAlchemy para o razão de movimentações (entrada/saída) de estoque.
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from estoque.database import Base, agora_utc

TIPOS_MOVIMENTACAO = ('entrada', 'saida')


class Movimentacao(Base):
    __tablename__ = 'movimentacoes'

    id = Column(Integer, primary_key=True, index=True)
    produto_id = Column(Integer, ForeignKey('estoque.id', ondelete='CASCADE'), nullable=False, index=True)
    tipo = Column(String(10), nullable=False)  # 'entrada' ou 'saida'
    quantidade = Column(Integer, nullable=False)

    # Snapshot da identidade do produto no momento da movimentação
    codigo = Column(Integer, nullable=False)
    marca = Column(String(100), nullable=False)
    codigo_fornecedor = Column(String(100), nullable=False)

    quantidade_anterior = Column(Integer, nullable=False)
    quantidade_posterior = Column(Integer, nullable=False)
    usuario = Column(String(100), nullable=True)
    created_at = Column(DateTime, default=agora_utc, nullable=False, index=True)

    produto = relationship("Produto", back_populates="movimentacoes")

    __table_args__ = (
        CheckConstraint('quantidade > 0', name='ck_movimentacoes_quantidade_positiva'),
        CheckConstraint("tipo IN ('entrada', 'saida')", name='ck_movimentacoes_tipo'),
    )
