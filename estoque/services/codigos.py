# -*- coding: utf-8 -*-
"""
Alocação de códigos de produto e de grupo.

Produtos recebem códigos sequenciais dentro da faixa do seu grupo: o grupo 10000
numera seus produtos a partir de 10001, o grupo 20000 a partir de 20001, e assim
por diante. Grupos recebem múltiplos de 10000, estritamente crescentes e nunca
reaproveitados; o maior código já entregue fica registrado na tabela de sequências.
"""
import logging

from sqlalchemy import func

from estoque.erros import ConflitoError, ValidacaoError
from estoque.models.grupo import Grupo, GrupoPendente
from estoque.models.produto import Produto
from estoque.models.sequencia import Sequencia

logger = logging.getLogger(__name__)

FAIXA_GRUPO = 10000
SEQUENCIA_GRUPO = 'grupo'


def proximo_codigo_produto(db, grupo_codigo: int) -> int:
    """
    Maior código do grupo + 1, ou grupo_codigo + 1 se o grupo está vazio.
    Deve ser chamado na mesma transação do INSERT; a unicidade de 'codigo'
    no banco detecta a corrida entre dois cadastros simultâneos.
    """
    maior = (
        db.query(func.max(Produto.codigo))
        .filter(Produto.grupo_codigo == grupo_codigo)
        .scalar()
    )
    proximo = maior + 1 if maior is not None else grupo_codigo + 1
    if proximo >= grupo_codigo + FAIXA_GRUPO:
        raise ValidacaoError(f"O grupo {grupo_codigo} atingiu o limite de produtos")
    return proximo


def arredondar_codigo_grupo(maior: int) -> int:
    if not maior or maior <= 0:
        return FAIXA_GRUPO
    return -(-maior // FAIXA_GRUPO) * FAIXA_GRUPO + FAIXA_GRUPO


def _maior_codigo_grupo_em_uso(db) -> int:
    candidatos = [
        db.query(func.max(Grupo.codigo)).scalar(),
        db.query(func.max(GrupoPendente.codigo)).scalar(),
        db.query(func.max(Produto.grupo_codigo)).scalar(),
    ]
    return max([c for c in candidatos if c is not None], default=0)


def proximo_codigo_grupo(db) -> int:
    """Código que o próximo grupo receberia, sem reservá-lo."""
    sequencia = db.query(Sequencia).filter(Sequencia.nome == SEQUENCIA_GRUPO).first()
    ultimo = sequencia.ultimo_numero if sequencia else 0
    return arredondar_codigo_grupo(max(ultimo, _maior_codigo_grupo_em_uso(db)))


def reservar_codigo_grupo(db) -> int:
    """
    Reserva o próximo código de grupo com compare-and-swap sobre a sequência.
    Não faz commit. Se outra transação reservou antes, levanta ConflitoError e
    quem chamou deve refazer a criação inteira.
    """
    sequencia = db.query(Sequencia).filter(Sequencia.nome == SEQUENCIA_GRUPO).first()
    ultimo = sequencia.ultimo_numero if sequencia else 0
    novo = arredondar_codigo_grupo(max(ultimo, _maior_codigo_grupo_em_uso(db)))

    if sequencia is None:
        # A unicidade de 'nome' barra duas criações concorrentes da sequência
        db.add(Sequencia(nome=SEQUENCIA_GRUPO, ultimo_numero=novo))
        db.flush()
        return novo

    linhas = (
        db.query(Sequencia)
        .filter(Sequencia.nome == SEQUENCIA_GRUPO, Sequencia.ultimo_numero == ultimo)
        .update({Sequencia.ultimo_numero: novo}, synchronize_session=False)
    )
    if linhas != 1:
        logger.warning("Sequência de grupos alterada por outra transação (esperado %s)", ultimo)
        raise ConflitoError()
    return novo
