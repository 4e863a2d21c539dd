# frontend/utils.py

import logging

import requests

from frontend.config import Config

logger = logging.getLogger(__name__)


class ClienteApi:
    """
    Cliente HTTP da API de estoque, enviando o token de sessão do portal.
    """

    def __init__(self, base_url=None, session_token=None, http=None, timeout=None):
        self.base_url = (base_url if base_url is not None else Config.API_BASE_URL).rstrip('/')
        self.session_token = session_token
        self.http = http or requests.Session()
        self.timeout = timeout or Config.REQUEST_TIMEOUT
        self.sessao_expirada = False

    def headers(self):
        h = {'Accept': 'application/json'}
        if self.session_token:
            h['X-Session-Token'] = self.session_token
        return h

    def request(self, endpoint, method='GET', json=None, params=None, timeout=None):
        """
        Faz a requisição e devolve a resposta, ou None se a API não respondeu.
        Um 401 marca a sessão como expirada.
        """
        url = f"{self.base_url}{endpoint}"
        try:
            response = self.http.request(
                method, url, json=json, params=params,
                headers=self.headers(), timeout=timeout or self.timeout
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Erro na requisição {method} {url}: {e}")
            return None

        if response.status_code == 401:
            self.sessao_expirada = True

        logger.info(f"API Request: {method} {url} - Status: {response.status_code}")
        return response


def mensagem_de_erro(response, padrao='Erro'):
    if response is None:
        return 'Sem conexão com o servidor'
    try:
        return response.json().get('error') or padrao
    except ValueError:
        return padrao
