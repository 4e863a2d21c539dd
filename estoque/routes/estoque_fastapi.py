# -*- coding: utf-8 -*-
"""
Rotas FastAPI para o CRUD de Produtos do estoque e suas movimentações.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from estoque.auth import nome_usuario, verificar_sessao
from estoque.database import get_db
from estoque.schemas.movimentacao import (
    ConferenciaRead,
    MovimentacaoCreate,
    MovimentacaoPaginated,
    QuantidadeMovimentacao,
)
from estoque.schemas.produto import ProdutoCreate, ProdutoPaginated, ProdutoRead, ProdutoUpdate
from estoque.services import movimentacoes, produtos
from estoque.services.grupos import RegistroGrupos, get_registro

router = APIRouter(
    tags=["Estoque"],
    responses={404: {"description": "Produto não encontrado"}},
)


@router.head("")
def head_estoque():
    return Response(status_code=status.HTTP_200_OK)


@router.get("", response_model=ProdutoPaginated)
def read_produtos(
    page: int = 1,
    limit: int = 50,
    grupo_codigo: Optional[int] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """
    Lista produtos paginados, ordenados por grupo e código.
    A busca considera código, código do fornecedor, marca e descrição.
    """
    return produtos.listar_produtos(db, grupo_codigo=grupo_codigo, search=search, page=page, limit=limit)


@router.get("/{produto_id}", response_model=ProdutoRead)
def read_produto(produto_id: int, db: Session = Depends(get_db)):
    return produtos.obter_produto(db, produto_id)


@router.post("", response_model=ProdutoRead, status_code=status.HTTP_201_CREATED)
def create_produto(
    produto: ProdutoCreate,
    db: Session = Depends(get_db),
    registro: RegistroGrupos = Depends(get_registro)
):
    """
    Cadastra um produto. O código é alocado automaticamente dentro do grupo.
    """
    return produtos.criar_produto(db, produto, registro)


@router.put("/{produto_id}", response_model=ProdutoRead)
def update_produto(produto_id: int, produto_update: ProdutoUpdate, db: Session = Depends(get_db)):
    """
    Atualiza NCM, descrição, unidade e valor unitário.
    Quantidade só muda por movimentação.
    """
    return produtos.atualizar_produto(db, produto_id, produto_update)


@router.delete("/{produto_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_produto(produto_id: int, db: Session = Depends(get_db)):
    produtos.excluir_produto(db, produto_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# --- Movimentações ---

@router.post("/{produto_id}/movimentar", response_model=ProdutoRead)
def movimentar(
    produto_id: int,
    movimentacao: MovimentacaoCreate,
    db: Session = Depends(get_db),
    sessao: dict = Depends(verificar_sessao)
):
    return movimentacoes.aplicar_movimentacao(
        db, produto_id, movimentacao.tipo, movimentacao.quantidade, usuario=nome_usuario(sessao)
    )


@router.post("/{produto_id}/entrada", response_model=ProdutoRead)
def entrada(
    produto_id: int,
    dados: QuantidadeMovimentacao,
    db: Session = Depends(get_db),
    sessao: dict = Depends(verificar_sessao)
):
    return movimentacoes.aplicar_movimentacao(
        db, produto_id, 'entrada', dados.quantidade, usuario=nome_usuario(sessao)
    )


@router.post("/{produto_id}/saida", response_model=ProdutoRead)
def saida(
    produto_id: int,
    dados: QuantidadeMovimentacao,
    db: Session = Depends(get_db),
    sessao: dict = Depends(verificar_sessao)
):
    return movimentacoes.aplicar_movimentacao(
        db, produto_id, 'saida', dados.quantidade, usuario=nome_usuario(sessao)
    )


@router.get("/{produto_id}/movimentacoes", response_model=MovimentacaoPaginated)
def read_movimentacoes_produto(
    produto_id: int,
    page: int = 1,
    limit: int = 50,
    db: Session = Depends(get_db)
):
    return movimentacoes.listar_movimentacoes(db, produto_id=produto_id, page=page, limit=limit)


@router.get("/{produto_id}/conferencia", response_model=ConferenciaRead)
def read_conferencia(produto_id: int, db: Session = Depends(get_db)):
    """
    Confere se quantidade inicial + entradas - saídas bate com a quantidade atual.
    """
    return movimentacoes.conferir_razao(db, produto_id)
