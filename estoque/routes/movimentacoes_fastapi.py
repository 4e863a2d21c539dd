# -*- coding: utf-8 -*-
"""
Rotas FastAPI para o histórico de movimentações de estoque.
"""
from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from estoque.database import get_db
from estoque.schemas.movimentacao import MovimentacaoPaginated
from estoque.services.movimentacoes import listar_movimentacoes

router = APIRouter(tags=["Movimentações"])


@router.get("", response_model=MovimentacaoPaginated)
def read_movimentacoes(
    tipo: Optional[str] = None,
    page: int = 1,
    limit: int = 50,
    db: Session = Depends(get_db)
):
    """
    Lista movimentações, mais recentes primeiro, com filtro opcional por tipo.
    """
    return listar_movimentacoes(db, tipo=tipo, page=page, limit=limit)
