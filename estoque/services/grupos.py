# -*- coding: utf-8 -*-
"""
Registro de grupos de produtos.

Duas implementações com o mesmo comportamento externo:

- RegistroGruposTabela: grupos são linhas da tabela 'grupos' e existem mesmo sem produtos.
- RegistroGruposDerivado: um grupo é o par (grupo_codigo, grupo_nome) presente nas
  linhas de produto. Um grupo recém-criado fica em 'grupos_pendentes' até receber o
  primeiro produto; quando o último produto sai, o grupo deixa de existir.

Em ambas, excluir um grupo exclui todos os seus produtos e as movimentações
deles numa única transação.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from estoque.config import Config
from estoque.erros import ConflitoError, DuplicadoError, InternoError, NaoEncontradoError, ValidacaoError
from estoque.models.grupo import Grupo, GrupoPendente
from estoque.models.movimentacao import Movimentacao
from estoque.models.produto import Produto
from estoque.services.codigos import reservar_codigo_grupo

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GrupoInfo:
    codigo: int
    nome: str


def normalizar_nome(nome) -> str:
    nome = (nome or '').strip().upper()
    if not nome:
        raise ValidacaoError("Nome do grupo é obrigatório")
    return nome


class RegistroGrupos(ABC):
    tentativas_criacao = 2

    @abstractmethod
    def listar(self, db) -> list:
        """Grupos distintos, em ordem crescente de código."""

    @abstractmethod
    def obter(self, db, codigo: int):
        """GrupoInfo do código, ou None."""

    @abstractmethod
    def buscar_por_nome(self, db, nome: str):
        """GrupoInfo com o nome (sem diferenciar maiúsculas), ou None."""

    @abstractmethod
    def travar(self, db, codigo: int, ignorar_produto_id=None) -> bool:
        """
        Confirma, dentro da transação corrente, que o grupo existe, travando
        o que o representa onde o banco permite (SELECT ... FOR UPDATE).
        ignorar_produto_id exclui da conferência o produto recém-inserido.
        """

    @abstractmethod
    def _inserir(self, db, codigo: int, nome: str):
        """Grava o grupo novo na sessão, sem commit."""

    @abstractmethod
    def _remover_registro(self, db, codigo: int):
        """Remove o que o registro guarda do grupo além dos produtos, sem commit."""

    def produto_adicionado(self, db, grupo: GrupoInfo):
        """Chamado na transação que cadastra um produto no grupo."""

    def criar(self, db, nome: str) -> GrupoInfo:
        nome = normalizar_nome(nome)

        for tentativa in range(1, self.tentativas_criacao + 1):
            if self.buscar_por_nome(db, nome) is not None:
                raise DuplicadoError(f"Grupo '{nome}' já existe")
            try:
                codigo = reservar_codigo_grupo(db)
                self._inserir(db, codigo, nome)
                db.commit()
            except (IntegrityError, ConflitoError):
                db.rollback()
                logger.warning("Corrida ao criar o grupo %s (tentativa %s)", nome, tentativa)
                continue
            except SQLAlchemyError:
                db.rollback()
                logger.exception("Erro ao criar grupo %s", nome)
                raise InternoError("Erro ao criar grupo")

            logger.info("Grupo %s criado com código %s", nome, codigo)
            return GrupoInfo(codigo=codigo, nome=nome)

        if self.buscar_por_nome(db, nome) is not None:
            raise DuplicadoError(f"Grupo '{nome}' já existe")
        raise ConflitoError("Não foi possível alocar o código do grupo. Tente novamente.")

    def excluir(self, db, codigo: int) -> int:
        """
        Exclui o grupo, todos os produtos dele e as movimentações desses produtos.
        Tudo ou nada: em erro, a transação inteira é desfeita.
        """
        if not self.travar(db, codigo):
            db.rollback()
            raise NaoEncontradoError("Grupo não encontrado")

        try:
            ids_produtos = db.query(Produto.id).filter(Produto.grupo_codigo == codigo)
            db.query(Movimentacao).filter(
                Movimentacao.produto_id.in_(ids_produtos.scalar_subquery())
            ).delete(synchronize_session=False)
            excluidos = (
                db.query(Produto)
                .filter(Produto.grupo_codigo == codigo)
                .delete(synchronize_session=False)
            )
            self._remover_registro(db, codigo)
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Erro ao excluir grupo %s", codigo)
            raise InternoError("Erro ao excluir grupo")

        db.expire_all()
        logger.info("Grupo %s excluído com %s produto(s)", codigo, excluidos)
        return excluidos


class RegistroGruposTabela(RegistroGrupos):

    def listar(self, db):
        grupos = db.query(Grupo).order_by(Grupo.codigo).all()
        return [GrupoInfo(codigo=g.codigo, nome=g.nome) for g in grupos]

    def obter(self, db, codigo):
        grupo = db.query(Grupo).filter(Grupo.codigo == codigo).first()
        return GrupoInfo(codigo=grupo.codigo, nome=grupo.nome) if grupo else None

    def buscar_por_nome(self, db, nome):
        grupo = db.query(Grupo).filter(func.upper(Grupo.nome) == nome.strip().upper()).first()
        return GrupoInfo(codigo=grupo.codigo, nome=grupo.nome) if grupo else None

    def travar(self, db, codigo, ignorar_produto_id=None):
        return db.query(Grupo.id).filter(Grupo.codigo == codigo).with_for_update().first() is not None

    def _inserir(self, db, codigo, nome):
        db.add(Grupo(codigo=codigo, nome=nome))
        db.flush()

    def _remover_registro(self, db, codigo):
        db.query(Grupo).filter(Grupo.codigo == codigo).delete(synchronize_session=False)


class RegistroGruposDerivado(RegistroGrupos):

    def listar(self, db):
        pares = {
            codigo: nome
            for codigo, nome in db.query(Produto.grupo_codigo, Produto.grupo_nome).distinct()
        }
        for pendente in db.query(GrupoPendente).all():
            pares.setdefault(pendente.codigo, pendente.nome)
        return [GrupoInfo(codigo=c, nome=pares[c]) for c in sorted(pares)]

    def obter(self, db, codigo):
        linha = (
            db.query(Produto.grupo_codigo, Produto.grupo_nome)
            .filter(Produto.grupo_codigo == codigo)
            .first()
        )
        if linha is None:
            linha = (
                db.query(GrupoPendente.codigo, GrupoPendente.nome)
                .filter(GrupoPendente.codigo == codigo)
                .first()
            )
        return GrupoInfo(codigo=linha[0], nome=linha[1]) if linha else None

    def buscar_por_nome(self, db, nome):
        nome = nome.strip().upper()
        linha = (
            db.query(Produto.grupo_codigo, Produto.grupo_nome)
            .filter(func.upper(Produto.grupo_nome) == nome)
            .first()
        )
        if linha is None:
            linha = (
                db.query(GrupoPendente.codigo, GrupoPendente.nome)
                .filter(func.upper(GrupoPendente.nome) == nome)
                .first()
            )
        return GrupoInfo(codigo=linha[0], nome=linha[1]) if linha else None

    def travar(self, db, codigo, ignorar_produto_id=None):
        pendente = (
            db.query(GrupoPendente.id)
            .filter(GrupoPendente.codigo == codigo)
            .with_for_update()
            .first()
        )
        if pendente is not None:
            return True
        produtos = db.query(Produto.id).filter(Produto.grupo_codigo == codigo)
        if ignorar_produto_id is not None:
            produtos = produtos.filter(Produto.id != ignorar_produto_id)
        return produtos.with_for_update().first() is not None

    def _inserir(self, db, codigo, nome):
        db.add(GrupoPendente(codigo=codigo, nome=nome))
        db.flush()

    def _remover_registro(self, db, codigo):
        db.query(GrupoPendente).filter(GrupoPendente.codigo == codigo).delete(synchronize_session=False)

    def produto_adicionado(self, db, grupo):
        # A partir do primeiro produto o grupo passa a ser derivado das linhas de estoque
        db.query(GrupoPendente).filter(GrupoPendente.codigo == grupo.codigo).delete(synchronize_session=False)


REGISTROS = {
    'tabela': RegistroGruposTabela,
    'derivado': RegistroGruposDerivado,
}


def obter_registro(modo=None) -> RegistroGrupos:
    modo = (modo or Config.GRUPOS_MODO).lower()
    if modo not in REGISTROS:
        raise ValueError(f"GRUPOS_MODO inválido: {modo}")
    return REGISTROS[modo]()


# Dependência FastAPI
def get_registro() -> RegistroGrupos:
    return obter_registro()
