# -*- coding: utf-8 -*-
"""
Modelo SQLAlchemy para a entidade Produto (linha da tabela 'estoque').
"""
from sqlalchemy import Column, Integer, String, Numeric, DateTime, CheckConstraint
from sqlalchemy.orm import relationship
from estoque.database import Base, agora_utc


# Maior valor de uma coluna Integer (32 bits)
QUANTIDADE_MAXIMA = 2_147_483_647


class Produto(Base):
    __tablename__ = 'estoque'

    id = Column(Integer, primary_key=True, index=True)
    codigo = Column(Integer, unique=True, index=True, nullable=False)
    codigo_fornecedor = Column(String(100), unique=True, index=True, nullable=False)
    ncm = Column(String(20), nullable=True)
    marca = Column(String(100), nullable=False)
    descricao = Column(String(255), nullable=False)
    unidade = Column(String(10), nullable=False, default='UN')
    quantidade = Column(Integer, nullable=False, default=0)
    # Quantidade no cadastro; base da conferência do razão de movimentações
    quantidade_inicial = Column(Integer, nullable=False, default=0)
    valor_unitario = Column(Numeric(12, 2), nullable=False, default=0)

    # Grupo desnormalizado na linha do produto
    grupo_codigo = Column(Integer, index=True, nullable=False)
    grupo_nome = Column(String(100), nullable=False)

    timestamp = Column(DateTime, default=agora_utc, nullable=False)

    movimentacoes = relationship(
        "Movimentacao",
        back_populates="produto",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        CheckConstraint('quantidade >= 0', name='ck_estoque_quantidade_nao_negativa'),
        CheckConstraint(f'quantidade <= {QUANTIDADE_MAXIMA}', name='ck_estoque_quantidade_maxima'),
        CheckConstraint('valor_unitario >= 0', name='ck_estoque_valor_nao_negativo'),
    )


# Garante que a classe do relacionamento esteja registrada junto com Produto
from estoque.models.movimentacao import Movimentacao  # noqa: E402,F401
