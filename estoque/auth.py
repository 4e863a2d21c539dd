# -*- coding: utf-8 -*-
"""
Autenticação via portal externo.

O portal emite os tokens de sessão; esta API só pergunta se um token é válido
(POST {PORTAL_URL}/api/verify-session). Se o portal não responder, a API falha
fechada: a requisição recebe 401 como qualquer sessão inválida.
"""
import logging
from typing import Optional

import httpx
from fastapi import Depends, Header, Request

from estoque.config import Config
from estoque.erros import AutenticacaoError

logger = logging.getLogger(__name__)


class ValidadorSessao:
    def __init__(self, portal_url: str, timeout: float = 10.0, tentativas_extras: int = 1, transport=None):
        self.url = f"{portal_url.rstrip('/')}/api/verify-session"
        self.timeout = timeout
        self.tentativas_extras = tentativas_extras
        self.transport = transport

    async def _consultar_portal(self, token: str) -> httpx.Response:
        ultimo_erro = None
        for tentativa in range(self.tentativas_extras + 1):
            try:
                async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                    return await client.post(self.url, json={"sessionToken": token})
            except httpx.TransportError as e:
                ultimo_erro = e
                logger.warning("Portal indisponível (tentativa %s): %s", tentativa + 1, e)
        logger.error("Falha ao verificar sessão no portal: %s", ultimo_erro)
        raise AutenticacaoError("Erro ao verificar autenticação")

    async def validar(self, token: str) -> dict:
        """
        Devolve o objeto de sessão do portal ou levanta AutenticacaoError.
        """
        if not token:
            raise AutenticacaoError("Não autenticado")

        response = await self._consultar_portal(token)
        if response.status_code != 200:
            raise AutenticacaoError("Sessão inválida")
        try:
            dados = response.json()
        except ValueError:
            raise AutenticacaoError("Sessão inválida")
        if not isinstance(dados, dict) or not dados.get("valid"):
            raise AutenticacaoError("Sessão inválida")
        return dados.get("session") or {}


validador_sessao = ValidadorSessao(
    Config.PORTAL_URL,
    timeout=Config.PORTAL_TIMEOUT,
    tentativas_extras=Config.PORTAL_RETRIES,
)


# --- DEPENDÊNCIAS DE AUTENTICAÇÃO ---
def get_validador() -> ValidadorSessao:
    return validador_sessao


async def verificar_sessao(
    request: Request,
    x_session_token: Optional[str] = Header(None),
    validador: ValidadorSessao = Depends(get_validador),
) -> dict:
    token = x_session_token or request.query_params.get("sessionToken")
    if not token:
        raise AutenticacaoError("Não autenticado")

    sessao = await validador.validar(token)
    request.state.sessao = sessao
    return sessao


def nome_usuario(sessao) -> Optional[str]:
    if not sessao:
        return None
    for chave in ("username", "nome", "name", "email"):
        if sessao.get(chave):
            return str(sessao[chave])[:100]
    return None
