# -*- coding: utf-8 -*-
"""
Cadastro de produtos: criação com alocação de código, edição dos campos
mutáveis, exclusão e listagem paginada com busca.
"""
import logging

from sqlalchemy import String, cast, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from estoque.database import agora_utc
from estoque.erros import ConflitoError, DuplicadoError, InternoError, NaoEncontradoError, ValidacaoError
from estoque.models.produto import Produto
from estoque.services.codigos import proximo_codigo_produto
from estoque.services.paginacao import paginar

logger = logging.getLogger(__name__)

TENTATIVAS_CRIACAO = 2


def obter_produto(db, produto_id: int) -> Produto:
    produto = db.query(Produto).filter(Produto.id == produto_id).first()
    if produto is None:
        raise NaoEncontradoError("Produto não encontrado")
    return produto


def _codigo_fornecedor_existe(db, codigo_fornecedor: str) -> bool:
    return db.query(Produto.id).filter(Produto.codigo_fornecedor == codigo_fornecedor).first() is not None


def resolver_grupo(db, registro, grupo_codigo=None, grupo_nome=None):
    if grupo_codigo is not None:
        grupo = registro.obter(db, grupo_codigo)
    elif grupo_nome:
        grupo = registro.buscar_por_nome(db, grupo_nome)
    else:
        raise ValidacaoError("Selecione um grupo")
    if grupo is None:
        raise NaoEncontradoError("Grupo não encontrado")
    return grupo


def criar_produto(db, dados, registro) -> Produto:
    """
    Cadastra um produto no grupo informado (por código ou nome).

    O código é calculado e gravado na mesma transação; se outro cadastro
    simultâneo levar o mesmo código, a criação inteira é refeita uma vez
    e depois falha com ConflitoError. O grupo é conferido de novo depois do
    INSERT: se foi excluído nesse meio tempo, nada é gravado.
    """
    grupo = resolver_grupo(db, registro, dados.grupo_codigo, dados.grupo_nome)

    for tentativa in range(1, TENTATIVAS_CRIACAO + 1):
        if _codigo_fornecedor_existe(db, dados.codigo_fornecedor):
            raise DuplicadoError("Código do fornecedor já cadastrado")

        produto = Produto(
            codigo=proximo_codigo_produto(db, grupo.codigo),
            codigo_fornecedor=dados.codigo_fornecedor,
            ncm=dados.ncm,
            marca=dados.marca,
            descricao=dados.descricao,
            unidade=dados.unidade or 'UN',
            quantidade=dados.quantidade,
            quantidade_inicial=dados.quantidade,
            valor_unitario=dados.valor_unitario,
            grupo_codigo=grupo.codigo,
            grupo_nome=grupo.nome,
            timestamp=agora_utc(),
        )
        try:
            db.add(produto)
            db.flush()
            if not registro.travar(db, grupo.codigo, ignorar_produto_id=produto.id):
                db.rollback()
                raise NaoEncontradoError("Grupo não encontrado")
            registro.produto_adicionado(db, grupo)
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.warning(
                "Conflito de unicidade ao cadastrar %s (tentativa %s)",
                dados.codigo_fornecedor, tentativa,
            )
            continue
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Erro ao criar produto %s", dados.codigo_fornecedor)
            raise InternoError("Erro ao criar produto")

        db.refresh(produto)
        logger.info("Produto %s cadastrado no grupo %s", produto.codigo, grupo.codigo)
        return produto

    if _codigo_fornecedor_existe(db, dados.codigo_fornecedor):
        raise DuplicadoError("Código do fornecedor já cadastrado")
    raise ConflitoError("Não foi possível alocar o código do produto. Tente novamente.")


def atualizar_produto(db, produto_id: int, dados) -> Produto:
    produto = obter_produto(db, produto_id)

    for key, value in dados.model_dump(exclude_unset=True).items():
        if value is None and key != 'ncm':
            continue
        setattr(produto, key, value)
    produto.timestamp = agora_utc()

    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Erro ao atualizar produto %s", produto_id)
        raise InternoError("Erro ao atualizar produto")

    db.refresh(produto)
    return produto


def excluir_produto(db, produto_id: int):
    produto = obter_produto(db, produto_id)
    codigo = produto.codigo
    try:
        # cascade do relacionamento remove as movimentações
        db.delete(produto)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Erro ao excluir produto %s", produto_id)
        raise InternoError("Erro ao excluir produto")
    logger.info("Produto %s excluído", codigo)


def escapar_like(texto: str) -> str:
    return texto.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')


def listar_produtos(db, grupo_codigo=None, search=None, page=1, limit=None):
    query = db.query(Produto)
    if grupo_codigo is not None:
        query = query.filter(Produto.grupo_codigo == grupo_codigo)
    if search and search.strip():
        termo = f"%{escapar_like(search.strip().upper())}%"
        query = query.filter(or_(
            cast(Produto.codigo, String).ilike(termo, escape='\\'),
            Produto.codigo_fornecedor.ilike(termo, escape='\\'),
            Produto.marca.ilike(termo, escape='\\'),
            Produto.descricao.ilike(termo, escape='\\'),
        ))
    query = query.order_by(Produto.grupo_codigo, Produto.codigo)
    return paginar(query, page, limit)
