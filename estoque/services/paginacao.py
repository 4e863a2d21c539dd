# -*- coding: utf-8 -*-
"""
Paginação 1-based usada pelas listagens de produtos e movimentações.
"""
from estoque.config import Config


def normalizar_paginacao(page, limit, limite_maximo=None):
    limite_maximo = limite_maximo or Config.PAGE_SIZE_MAX
    page = page if page and page > 0 else 1
    if not limit or limit < 1:
        limit = limite_maximo
    return page, min(limit, limite_maximo)


def total_paginas(total, limit):
    # Nunca menos que 1, mesmo com a listagem vazia
    return max(1, -(-total // limit))


def paginar(query, page, limit):
    """
    Executa a query paginada e devolve o envelope {data, total, page, totalPages}.
    Uma página além da última volta vazia, com totalPages inalterado.
    """
    page, limit = normalizar_paginacao(page, limit)
    total = query.order_by(None).count()
    itens = query.offset((page - 1) * limit).limit(limit).all()
    return {
        "data": itens,
        "total": total,
        "page": page,
        "totalPages": total_paginas(total, limit),
    }
