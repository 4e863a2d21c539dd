# -*- coding: utf-8 -*-
"""
Schemas Pydantic para a entidade Produto.
"""

from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import datetime

from estoque.models.produto import QUANTIDADE_MAXIMA


def _texto_maiusculo(valor):
    if valor is None:
        return valor
    return valor.strip().upper()


def _texto_limpo(valor):
    if valor is None:
        return valor
    valor = valor.strip()
    return valor or None


# Schema para criação de Produto
class ProdutoCreate(BaseModel):
    codigo_fornecedor: str = Field(..., max_length=100)
    marca: str = Field(..., max_length=100)
    descricao: str = Field(..., max_length=255)
    ncm: Optional[str] = Field(None, max_length=20)
    unidade: Optional[str] = Field('UN', max_length=10)
    quantidade: int = Field(..., ge=0, le=QUANTIDADE_MAXIMA)
    valor_unitario: float = Field(..., ge=0)
    grupo_codigo: Optional[int] = None
    grupo_nome: Optional[str] = Field(None, max_length=100)

    @field_validator('codigo_fornecedor')
    @classmethod
    def limpar_codigo_fornecedor(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('Código do fornecedor é obrigatório')
        return v

    @field_validator('marca', 'descricao')
    @classmethod
    def normalizar_obrigatorio(cls, v):
        v = _texto_maiusculo(v)
        if not v:
            raise ValueError('Campo obrigatório')
        return v

    @field_validator('unidade')
    @classmethod
    def normalizar_unidade(cls, v):
        return _texto_maiusculo(v) or 'UN'

    @field_validator('ncm')
    @classmethod
    def limpar_ncm(cls, v):
        return _texto_limpo(v)

    @field_validator('grupo_nome')
    @classmethod
    def normalizar_grupo_nome(cls, v):
        return _texto_maiusculo(v) or None

    @field_validator('valor_unitario')
    @classmethod
    def arredondar_valor(cls, v):
        return round(v, 2)


# Schema para atualização de Produto: marca, grupo, código do fornecedor e
# quantidade não mudam por aqui (quantidade só via movimentação)
class ProdutoUpdate(BaseModel):
    ncm: Optional[str] = Field(None, max_length=20)
    descricao: Optional[str] = Field(None, max_length=255)
    unidade: Optional[str] = Field(None, max_length=10)
    valor_unitario: Optional[float] = Field(None, ge=0)

    @field_validator('descricao', 'unidade')
    @classmethod
    def normalizar(cls, v):
        v = _texto_maiusculo(v)
        if v is not None and not v:
            raise ValueError('Campo não pode ser vazio')
        return v

    @field_validator('ncm')
    @classmethod
    def limpar_ncm(cls, v):
        return _texto_limpo(v)

    @field_validator('valor_unitario')
    @classmethod
    def arredondar_valor(cls, v):
        return None if v is None else round(v, 2)


# Schema para leitura/retorno de Produto
class ProdutoRead(BaseModel):
    id: int
    codigo: int
    codigo_fornecedor: str
    ncm: Optional[str] = None
    marca: str
    descricao: str
    unidade: str
    quantidade: int
    quantidade_inicial: int
    valor_unitario: float
    grupo_codigo: int
    grupo_nome: str
    timestamp: datetime

    class Config:
        from_attributes = True


class ProdutoPaginated(BaseModel):
    data: List[ProdutoRead]
    total: int
    page: int
    totalPages: int
