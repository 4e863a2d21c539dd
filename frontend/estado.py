# frontend/estado.py
"""
Estado do cliente de estoque: cache da página atual de produtos e da lista de
grupos, filtros, paginação e o ciclo de verificação de conexão / recarga
automática. A renderização fica a cargo de quem consome este estado.
"""

import hashlib
import json
import logging
import time

from frontend.config import Config
from frontend.utils import ClienteApi, mensagem_de_erro

logger = logging.getLogger(__name__)


class ErroCliente(Exception):
    pass


class EstadoEstoque:

    def __init__(self, api: ClienteApi, page_size=None, relogio=time.monotonic):
        self.api = api
        self.page_size = page_size or Config.PAGE_SIZE
        self._relogio = relogio

        self.produtos = []
        self.grupos = []  # [{codigo, nome}]
        self.current_page = 1
        self.total_pages = 1
        self.total_records = 0
        self.grupo_codigo = None  # None = TODOS
        self.search_term = ''
        self.is_loading = False
        self.is_online = False

        self._ultimo_hash = None
        self._hash_em = None
        self._ultima_conexao = None
        self._ultimo_refresh = None

    @property
    def sessao_expirada(self):
        return self.api.sessao_expirada

    # --- carga ---

    def carregar_tudo(self):
        self.atualizar_grupos()
        return self.carregar_produtos(1)

    def atualizar_grupos(self):
        response = self.api.request('/grupos')
        if response is not None and response.status_code == 200:
            self.grupos = sorted(response.json(), key=lambda g: g['codigo'])
        return self.grupos

    def carregar_produtos(self, page=1):
        """
        Busca uma página de produtos com os filtros atuais.
        Devolve True se a lista mudou desde a última busca.
        """
        if self.is_loading:
            return False
        self.is_loading = True
        self.current_page = page
        try:
            params = {'page': page, 'limit': self.page_size}
            if self.grupo_codigo is not None:
                params['grupo_codigo'] = self.grupo_codigo
            if self.search_term:
                params['search'] = self.search_term

            response = self.api.request('/estoque', params=params)
            if response is None:
                self.is_online = False
                return False
            if response.status_code != 200:
                logger.error(f"Erro ao carregar produtos: {response.status_code}")
                return False

            result = response.json()
            self.produtos = result.get('data') or []
            self.total_records = result.get('total') or 0
            self.total_pages = result.get('totalPages') or 1
            self.current_page = result.get('page') or page
            self.is_online = True
            self._ultimo_refresh = self._relogio()
            return self.houve_mudanca(result)
        finally:
            self.is_loading = False

    def houve_mudanca(self, result):
        """
        Compara o hash do resultado com o da última busca. O hash guardado
        expira após Config.INTERVALO_HASH segundos.
        """
        agora = self._relogio()
        if self._hash_em is not None and agora - self._hash_em >= Config.INTERVALO_HASH:
            self._ultimo_hash = None
        conteudo = json.dumps(result, sort_keys=True, default=str).encode('utf-8')
        novo_hash = hashlib.sha1(conteudo).hexdigest()
        mudou = novo_hash != self._ultimo_hash
        self._ultimo_hash = novo_hash
        self._hash_em = agora
        return mudou

    # --- filtros e paginação ---

    def filtrar_por_grupo(self, grupo_codigo):
        self.grupo_codigo = grupo_codigo
        return self.carregar_produtos(1)

    def buscar(self, termo):
        self.search_term = (termo or '').strip()
        return self.carregar_produtos(1)

    def ir_para_pagina(self, page):
        if page < 1 or page > self.total_pages:
            return False
        return self.carregar_produtos(page)

    def paginas_visiveis(self, janela=5):
        """Números de página a exibir, centrados na atual."""
        inicio = max(1, self.current_page - janela // 2)
        fim = min(self.total_pages, inicio + janela - 1)
        inicio = max(1, fim - janela + 1)
        return list(range(inicio, fim + 1))

    # --- conexão ---

    def verificar_conexao(self):
        response = self.api.request('/estoque', params={'page': 1, 'limit': 1})
        if response is None:
            return False
        if response.status_code == 401:
            logger.warning("Sessão expirada")
            return False
        return response.status_code == 200

    def executar_ciclo(self, agora=None):
        """
        Executa o que estiver vencido: verificação de conexão a cada
        INTERVALO_CONEXAO segundos (recarregando tudo ao voltar a ficar online)
        e recarga da página atual a cada INTERVALO_REFRESH segundos.
        """
        agora = self._relogio() if agora is None else agora

        if self._ultima_conexao is None or agora - self._ultima_conexao >= Config.INTERVALO_CONEXAO:
            self._ultima_conexao = agora
            online = self.verificar_conexao()
            if online and not self.is_online:
                self.is_online = True
                self.carregar_tudo()
                return
            if not online:
                self.is_online = False

        if (self.is_online and not self.is_loading and self._ultimo_refresh is not None
                and agora - self._ultimo_refresh >= Config.INTERVALO_REFRESH):
            self.carregar_produtos(self.current_page)

    # --- grupos ---

    def criar_grupo(self, nome):
        nome = (nome or '').strip()
        if not nome:
            raise ErroCliente('Nome do grupo é obrigatório')
        response = self.api.request('/grupos', method='POST', json={'nome': nome})
        if response is None or response.status_code != 201:
            raise ErroCliente(mensagem_de_erro(response, 'Erro ao criar grupo'))
        novo = response.json()
        self.grupos.append({'codigo': novo['codigo'], 'nome': novo['nome']})
        self.grupos.sort(key=lambda g: g['codigo'])
        return novo

    def excluir_grupo(self, grupo_codigo):
        response = self.api.request(
            f'/grupos/{grupo_codigo}', method='DELETE',
            params={'confirmar': 'true'}, timeout=self.api.timeout * 2
        )
        if response is None or response.status_code != 200:
            raise ErroCliente(mensagem_de_erro(response, 'Erro ao excluir grupo'))
        self.grupos = [g for g in self.grupos if g['codigo'] != grupo_codigo]
        if self.grupo_codigo == grupo_codigo:
            self.grupo_codigo = None
        self.carregar_produtos(1)
        return response.json()['deletedCount']

    # --- produtos ---

    def salvar_produto(self, dados, produto_id=None):
        """Cadastra (sem produto_id) ou atualiza um produto e recarrega a lista."""
        if produto_id is None:
            response = self.api.request('/estoque', method='POST', json=dados, timeout=self.api.timeout * 2)
            esperado = 201
        else:
            response = self.api.request(
                f'/estoque/{produto_id}', method='PUT', json=dados, timeout=self.api.timeout * 2
            )
            esperado = 200
        if response is None or response.status_code != esperado:
            raise ErroCliente(mensagem_de_erro(response, 'Erro ao salvar'))

        salvo = response.json()
        if produto_id is None and not any(g['codigo'] == salvo['grupo_codigo'] for g in self.grupos):
            self.grupos.append({'codigo': salvo['grupo_codigo'], 'nome': salvo['grupo_nome']})
            self.grupos.sort(key=lambda g: g['codigo'])

        self.carregar_produtos(self.current_page if produto_id else 1)
        return salvo

    def excluir_produto(self, produto_id):
        response = self.api.request(f'/estoque/{produto_id}', method='DELETE')
        if response is None or response.status_code != 204:
            raise ErroCliente(mensagem_de_erro(response, 'Erro ao excluir produto'))
        self.carregar_produtos(self.current_page)

    def _movimentar(self, produto_id, tipo, quantidade):
        if not isinstance(quantidade, int) or quantidade <= 0:
            raise ErroCliente('Quantidade inválida')
        response = self.api.request(
            f'/estoque/{produto_id}/{tipo}', method='POST',
            json={'quantidade': quantidade}, timeout=self.api.timeout * 2
        )
        if response is None or response.status_code != 200:
            raise ErroCliente(mensagem_de_erro(response))
        produto = response.json()
        self.carregar_produtos(self.current_page)
        return produto

    def entrada(self, produto_id, quantidade):
        return self._movimentar(produto_id, 'entrada', quantidade)

    def saida(self, produto_id, quantidade):
        return self._movimentar(produto_id, 'saida', quantidade)
