# -*- coding: utf-8 -*-
"""
Exceções de domínio do estoque. Cada uma carrega o status HTTP devolvido pela API;
os handlers em main.py convertem para {"error": mensagem}.
"""


class EstoqueError(Exception):
    status_code = 500
    mensagem_padrao = "Erro interno do servidor"

    def __init__(self, mensagem=None):
        self.mensagem = mensagem or self.mensagem_padrao
        super().__init__(self.mensagem)


class ValidacaoError(EstoqueError):
    status_code = 400
    mensagem_padrao = "Dados inválidos"


class DuplicadoError(EstoqueError):
    status_code = 400
    mensagem_padrao = "Registro duplicado"


class NaoEncontradoError(EstoqueError):
    status_code = 404
    mensagem_padrao = "Registro não encontrado"


class EstoqueInsuficienteError(EstoqueError):
    status_code = 400
    mensagem_padrao = "Quantidade insuficiente em estoque"


class ConflitoError(EstoqueError):
    status_code = 409
    mensagem_padrao = "Conflito de concorrência. Tente novamente."


class AutenticacaoError(EstoqueError):
    status_code = 401
    mensagem_padrao = "Não autenticado"


class InternoError(EstoqueError):
    pass
