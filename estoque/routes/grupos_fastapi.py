# -*- coding: utf-8 -*-
"""
Rotas FastAPI para os Grupos de produtos.
"""
from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from estoque.database import get_db
from estoque.erros import ValidacaoError
from estoque.schemas.grupo import GrupoCreate, GrupoExcluido, GrupoRead
from estoque.services.grupos import RegistroGrupos, get_registro

router = APIRouter(
    tags=["Grupos"],
    responses={404: {"description": "Grupo não encontrado"}},
)


@router.get("", response_model=List[GrupoRead])
def read_grupos(db: Session = Depends(get_db), registro: RegistroGrupos = Depends(get_registro)):
    return registro.listar(db)


@router.post("", response_model=GrupoRead, status_code=status.HTTP_201_CREATED)
def create_grupo(
    grupo: GrupoCreate,
    db: Session = Depends(get_db),
    registro: RegistroGrupos = Depends(get_registro)
):
    """
    Cria um grupo. O código é o próximo múltiplo de 10000.
    """
    return registro.criar(db, grupo.nome)


@router.delete("/{grupo_codigo}", response_model=GrupoExcluido)
def delete_grupo(
    grupo_codigo: int,
    confirmar: bool = False,
    db: Session = Depends(get_db),
    registro: RegistroGrupos = Depends(get_registro)
):
    """
    Exclui o grupo com TODOS os seus produtos e movimentações.
    Irreversível; exige ?confirmar=true.
    """
    if not confirmar:
        raise ValidacaoError("Exclusão de grupo exige confirmação (confirmar=true)")
    return {"deletedCount": registro.excluir(db, grupo_codigo)}
