# -*- coding: utf-8 -*-
"""
Schemas Pydantic para Grupos de produtos.
"""

from pydantic import BaseModel, Field, field_validator


class GrupoCreate(BaseModel):
    nome: str = Field(..., max_length=100)

    @field_validator('nome')
    @classmethod
    def normalizar_nome(cls, v):
        v = v.strip().upper()
        if not v:
            raise ValueError('Nome do grupo é obrigatório')
        return v


class GrupoRead(BaseModel):
    codigo: int
    nome: str

    class Config:
        from_attributes = True


class GrupoExcluido(BaseModel):
    deletedCount: int
