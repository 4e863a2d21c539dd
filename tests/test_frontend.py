import pytest
import requests

from conftest import TOKEN_VALIDO
from frontend.config import Config
from frontend.estado import ErroCliente, EstadoEstoque
from frontend.utils import ClienteApi, mensagem_de_erro


class RelogioFake:
    def __init__(self):
        self.agora = 0.0

    def __call__(self):
        return self.agora


@pytest.fixture
def relogio():
    return RelogioFake()


@pytest.fixture
def estado(client, relogio):
    api = ClienteApi(base_url="http://testserver/api/v1", session_token=TOKEN_VALIDO, http=client)
    return EstadoEstoque(api, page_size=5, relogio=relogio)


def _produto(grupo, n):
    return {
        "codigo_fornecedor": f"F-{n}",
        "marca": "acme",
        "descricao": f"item {n}",
        "quantidade": 10,
        "valor_unitario": 1,
        "grupo_codigo": grupo["codigo"],
        "grupo_nome": grupo["nome"],
    }


def test_carregar_tudo(estado):
    grupo = estado.criar_grupo("Ferragens")
    for n in range(7):
        estado.salvar_produto(_produto(grupo, n))

    estado.carregar_tudo()

    assert estado.grupos == [{"codigo": 10000, "nome": "FERRAGENS"}]
    assert estado.total_records == 7
    assert estado.total_pages == 2
    assert len(estado.produtos) == 5
    assert estado.is_online


def test_grupos_ficam_ordenados(estado):
    estado.criar_grupo("B")
    estado.criar_grupo("A")
    assert [g["codigo"] for g in estado.grupos] == [10000, 20000]

    with pytest.raises(ErroCliente, match="já existe"):
        estado.criar_grupo("a")
    with pytest.raises(ErroCliente):
        estado.criar_grupo("  ")


def test_filtros_e_paginacao(estado):
    a = estado.criar_grupo("A")
    b = estado.criar_grupo("B")
    for n in range(3):
        estado.salvar_produto(_produto(a, n))
    estado.salvar_produto(_produto(b, 99))

    estado.filtrar_por_grupo(b["codigo"])
    assert [p["codigo_fornecedor"] for p in estado.produtos] == ["F-99"]

    estado.filtrar_por_grupo(None)
    estado.buscar(" f-1 ")
    assert [p["codigo_fornecedor"] for p in estado.produtos] == ["F-1"]

    estado.buscar("")
    assert estado.total_records == 4
    assert not estado.ir_para_pagina(2)


def test_paginas_visiveis(estado):
    estado.total_pages = 10
    estado.current_page = 1
    assert estado.paginas_visiveis() == [1, 2, 3, 4, 5]
    estado.current_page = 6
    assert estado.paginas_visiveis() == [4, 5, 6, 7, 8]
    estado.current_page = 10
    assert estado.paginas_visiveis() == [6, 7, 8, 9, 10]


def test_entrada_saida_e_erro_de_estoque(estado):
    grupo = estado.criar_grupo("A")
    produto = estado.salvar_produto(_produto(grupo, 1))

    assert estado.entrada(produto["id"], 5)["quantidade"] == 15
    assert estado.saida(produto["id"], 15)["quantidade"] == 0
    with pytest.raises(ErroCliente, match="Quantidade insuficiente"):
        estado.saida(produto["id"], 1)
    with pytest.raises(ErroCliente, match="Quantidade inválida"):
        estado.entrada(produto["id"], 0)


def test_editar_e_excluir_produto(estado):
    grupo = estado.criar_grupo("A")
    produto = estado.salvar_produto(_produto(grupo, 1))

    editado = estado.salvar_produto({"descricao": "novo nome", "valor_unitario": 2}, produto_id=produto["id"])
    assert editado["descricao"] == "NOVO NOME"

    estado.excluir_produto(produto["id"])
    assert estado.produtos == []
    with pytest.raises(ErroCliente, match="Produto não encontrado"):
        estado.excluir_produto(produto["id"])


def test_excluir_grupo_limpa_filtro(estado):
    grupo = estado.criar_grupo("A")
    estado.salvar_produto(_produto(grupo, 1))
    estado.filtrar_por_grupo(grupo["codigo"])

    assert estado.excluir_grupo(grupo["codigo"]) == 1
    assert estado.grupos == []
    assert estado.grupo_codigo is None
    assert estado.produtos == []


def test_houve_mudanca_e_expiracao_do_hash(estado, relogio):
    resultado = {"data": [], "total": 0}
    assert estado.houve_mudanca(resultado) is True
    assert estado.houve_mudanca(resultado) is False

    relogio.agora += Config.INTERVALO_HASH
    assert estado.houve_mudanca(resultado) is True


def test_ciclo_de_conexao_e_refresh(estado, relogio, client):
    grupo = estado.criar_grupo("A")

    estado.executar_ciclo(agora=0)
    assert estado.is_online
    assert estado.total_records == 0

    # outro cliente cadastra; a recarga automática só acontece após o intervalo
    client.post("/api/v1/estoque", json=_produto(grupo, 1))
    relogio.agora = Config.INTERVALO_REFRESH - 1
    estado.executar_ciclo(agora=relogio.agora)
    assert estado.total_records == 0

    relogio.agora = Config.INTERVALO_REFRESH
    estado.executar_ciclo(agora=relogio.agora)
    assert estado.total_records == 1


def test_sessao_expirada(client, relogio):
    api = ClienteApi(base_url="http://testserver/api/v1", session_token="expirado", http=client)
    estado = EstadoEstoque(api, relogio=relogio)

    assert estado.verificar_conexao() is False
    assert estado.sessao_expirada

    estado.executar_ciclo(agora=0)
    assert not estado.is_online


class HttpForaDoAr:
    def request(self, *args, **kwargs):
        raise requests.exceptions.ConnectionError("sem rede")


def test_api_fora_do_ar():
    api = ClienteApi(base_url="http://localhost:1/api/v1", session_token="x", http=HttpForaDoAr())
    estado = EstadoEstoque(api)

    assert api.request("/estoque") is None
    assert estado.carregar_produtos(1) is False
    assert estado.is_online is False
    assert mensagem_de_erro(None) == "Sem conexão com o servidor"
    with pytest.raises(ErroCliente, match="Sem conexão"):
        estado.criar_grupo("A")
