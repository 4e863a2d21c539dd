# -*- coding: utf-8 -*-
"""
Razão de movimentações: aplica entradas e saídas ao estoque de um produto e
registra cada uma, na mesma transação.

A quantidade é alterada por um único UPDATE condicional (para saída,
'quantidade >= n' no WHERE; para entrada, o teto da coluna Integer).
Duas saídas simultâneas não conseguem validar contra a mesma leitura: o
banco serializa as escritas na linha e a segunda encontra o saldo já baixado.
"""
import logging

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from estoque.erros import (
    EstoqueInsuficienteError,
    InternoError,
    NaoEncontradoError,
    ValidacaoError,
)
from estoque.database import agora_utc
from estoque.models.movimentacao import Movimentacao, TIPOS_MOVIMENTACAO
from estoque.models.produto import Produto, QUANTIDADE_MAXIMA
from estoque.services.paginacao import paginar

logger = logging.getLogger(__name__)


def _validar(tipo, quantidade):
    if tipo not in TIPOS_MOVIMENTACAO:
        raise ValidacaoError("Tipo de movimentação inválido. Use 'entrada' ou 'saida'.")
    if isinstance(quantidade, bool) or not isinstance(quantidade, int) or quantidade <= 0:
        raise ValidacaoError("A quantidade deve ser um inteiro maior que zero")
    if quantidade > QUANTIDADE_MAXIMA:
        raise ValidacaoError(f"A quantidade não pode passar de {QUANTIDADE_MAXIMA}")


def aplicar_movimentacao(db, produto_id: int, tipo: str, quantidade: int, usuario=None) -> Produto:
    """
    Aplica uma entrada ou saída e anexa a Movimentacao correspondente.
    Em qualquer falha nada é gravado: nem a quantidade nem o registro.
    """
    _validar(tipo, quantidade)

    if tipo == 'entrada':
        filtros = [Produto.id == produto_id, Produto.quantidade <= QUANTIDADE_MAXIMA - quantidade]
        nova_quantidade = Produto.quantidade + quantidade
    else:
        filtros = [Produto.id == produto_id, Produto.quantidade >= quantidade]
        nova_quantidade = Produto.quantidade - quantidade

    try:
        linhas = (
            db.query(Produto)
            .filter(*filtros)
            .update(
                {Produto.quantidade: nova_quantidade, Produto.timestamp: agora_utc()},
                synchronize_session=False,
            )
        )
        if linhas == 0:
            db.rollback()
            existe = db.query(Produto.id).filter(Produto.id == produto_id).first()
            if existe is None:
                raise NaoEncontradoError("Produto não encontrado")
            if tipo == 'entrada':
                raise ValidacaoError(f"O estoque não pode passar de {QUANTIDADE_MAXIMA}")
            raise EstoqueInsuficienteError()

        # Leitura dentro da mesma transação: enxerga o próprio UPDATE
        produto = (
            db.query(Produto)
            .populate_existing()
            .filter(Produto.id == produto_id)
            .one()
        )
        posterior = produto.quantidade
        anterior = posterior - quantidade if tipo == 'entrada' else posterior + quantidade

        db.add(Movimentacao(
            produto_id=produto.id,
            tipo=tipo,
            quantidade=quantidade,
            codigo=produto.codigo,
            marca=produto.marca,
            codigo_fornecedor=produto.codigo_fornecedor,
            quantidade_anterior=anterior,
            quantidade_posterior=posterior,
            usuario=usuario,
        ))
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Erro ao movimentar estoque do produto %s", produto_id)
        raise InternoError("Erro ao movimentar estoque")

    db.refresh(produto)
    logger.info(
        "Movimentação %s de %s no produto %s (%s -> %s)",
        tipo, quantidade, produto.codigo, anterior, posterior,
    )
    return produto


def listar_movimentacoes(db, tipo=None, produto_id=None, page=1, limit=None):
    """Movimentações mais recentes primeiro, com filtro opcional por tipo e produto."""
    if tipo is not None and tipo not in TIPOS_MOVIMENTACAO:
        raise ValidacaoError("Tipo de movimentação inválido. Use 'entrada' ou 'saida'.")

    query = db.query(Movimentacao)
    if tipo:
        query = query.filter(Movimentacao.tipo == tipo)
    if produto_id is not None:
        if db.query(Produto.id).filter(Produto.id == produto_id).first() is None:
            raise NaoEncontradoError("Produto não encontrado")
        query = query.filter(Movimentacao.produto_id == produto_id)

    query = query.order_by(Movimentacao.created_at.desc(), Movimentacao.id.desc())
    return paginar(query, page, limit)


def conferir_razao(db, produto_id: int) -> dict:
    """
    Confere quantidade_inicial + entradas - saídas contra a quantidade atual.
    """
    produto = db.query(Produto).filter(Produto.id == produto_id).first()
    if produto is None:
        raise NaoEncontradoError("Produto não encontrado")

    totais = dict(
        db.query(Movimentacao.tipo, func.coalesce(func.sum(Movimentacao.quantidade), 0))
        .filter(Movimentacao.produto_id == produto_id)
        .group_by(Movimentacao.tipo)
        .all()
    )
    entradas = int(totais.get('entrada', 0))
    saidas = int(totais.get('saida', 0))
    esperada = produto.quantidade_inicial + entradas - saidas

    if esperada != produto.quantidade:
        logger.error(
            "Razão inconsistente no produto %s: esperado %s, atual %s",
            produto.codigo, esperada, produto.quantidade,
        )

    return {
        "produto_id": produto.id,
        "quantidade_inicial": produto.quantidade_inicial,
        "total_entradas": entradas,
        "total_saidas": saidas,
        "quantidade_esperada": esperada,
        "quantidade_atual": produto.quantidade,
        "consistente": esperada == produto.quantidade,
    }
