# -*- coding: utf-8 -*-
"""
Schemas Pydantic para movimentações de estoque.
"""

from pydantic import BaseModel, Field
from typing import List, Literal, Optional
from datetime import datetime

from estoque.models.produto import QUANTIDADE_MAXIMA


class MovimentacaoCreate(BaseModel):
    tipo: Literal['entrada', 'saida']
    quantidade: int = Field(..., gt=0, le=QUANTIDADE_MAXIMA)


# Usado pelas rotas /entrada e /saida, onde o tipo vem da URL
class QuantidadeMovimentacao(BaseModel):
    quantidade: int = Field(..., gt=0, le=QUANTIDADE_MAXIMA)


class MovimentacaoRead(BaseModel):
    id: int
    produto_id: int
    tipo: str
    quantidade: int
    codigo: int
    marca: str
    codigo_fornecedor: str
    quantidade_anterior: int
    quantidade_posterior: int
    usuario: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class MovimentacaoPaginated(BaseModel):
    data: List[MovimentacaoRead]
    total: int
    page: int
    totalPages: int


class ConferenciaRead(BaseModel):
    produto_id: int
    quantidade_inicial: int
    total_entradas: int
    total_saidas: int
    quantidade_esperada: int
    quantidade_atual: int
    consistente: bool
