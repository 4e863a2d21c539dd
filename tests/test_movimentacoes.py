import random
import threading

import pytest

from estoque.erros import EstoqueInsuficienteError, NaoEncontradoError, ValidacaoError
from estoque.models.movimentacao import Movimentacao
from estoque.models.produto import Produto
from estoque.services.movimentacoes import aplicar_movimentacao, conferir_razao, listar_movimentacoes


def test_saida_maior_que_o_estoque_e_recusada(db, novo_produto):
    produto = novo_produto(quantidade=10)

    with pytest.raises(EstoqueInsuficienteError):
        aplicar_movimentacao(db, produto.id, "saida", 15)

    db.expire_all()
    assert db.get(Produto, produto.id).quantidade == 10
    assert db.query(Movimentacao).count() == 0


def test_entrada_soma_e_registra_movimentacao(db, novo_produto):
    produto = novo_produto(quantidade=10)

    atualizado = aplicar_movimentacao(db, produto.id, "entrada", 5, usuario="operador")

    assert atualizado.quantidade == 15
    movimentacoes = db.query(Movimentacao).all()
    assert len(movimentacoes) == 1
    mov = movimentacoes[0]
    assert (mov.tipo, mov.quantidade) == ("entrada", 5)
    assert (mov.quantidade_anterior, mov.quantidade_posterior) == (10, 15)
    assert mov.codigo == produto.codigo
    assert mov.marca == "ACME"
    assert mov.codigo_fornecedor == produto.codigo_fornecedor
    assert mov.usuario == "operador"


def test_saida_ate_zerar(db, novo_produto):
    produto = novo_produto(quantidade=3)
    assert aplicar_movimentacao(db, produto.id, "saida", 3).quantidade == 0


def test_movimentacao_atualiza_timestamp(db, novo_produto):
    produto = novo_produto(quantidade=1)
    antes = produto.timestamp
    atualizado = aplicar_movimentacao(db, produto.id, "entrada", 1)
    assert atualizado.timestamp >= antes


@pytest.mark.parametrize("quantidade", [0, -1, True, 2.5, None, 10**20])
def test_quantidade_invalida(db, novo_produto, quantidade):
    produto = novo_produto(quantidade=5)
    with pytest.raises(ValidacaoError):
        aplicar_movimentacao(db, produto.id, "saida", quantidade)
    assert db.query(Movimentacao).count() == 0


def test_tipo_invalido(db, novo_produto):
    produto = novo_produto()
    with pytest.raises(ValidacaoError):
        aplicar_movimentacao(db, produto.id, "ajuste", 1)


def test_produto_inexistente(db, novo_produto):
    novo_produto()
    with pytest.raises(NaoEncontradoError):
        aplicar_movimentacao(db, 9999, "entrada", 1)
    with pytest.raises(NaoEncontradoError):
        aplicar_movimentacao(db, 9999, "saida", 1)


def test_sequencia_aleatoria_nunca_fica_negativa_e_fecha_o_razao(db, novo_produto):
    produto = novo_produto(quantidade=5)
    aleatorio = random.Random(42)
    esperado = 5

    for _ in range(200):
        tipo = aleatorio.choice(["entrada", "saida"])
        quantidade = aleatorio.randint(1, 8)
        if tipo == "saida" and quantidade > esperado:
            with pytest.raises(EstoqueInsuficienteError):
                aplicar_movimentacao(db, produto.id, tipo, quantidade)
            continue
        atual = aplicar_movimentacao(db, produto.id, tipo, quantidade).quantidade
        esperado += quantidade if tipo == "entrada" else -quantidade
        assert atual == esperado >= 0

    conferencia = conferir_razao(db, produto.id)
    assert conferencia["consistente"]
    assert conferencia["quantidade_atual"] == esperado
    assert (
        conferencia["quantidade_inicial"] + conferencia["total_entradas"] - conferencia["total_saidas"]
        == esperado
    )


def test_conferencia_detecta_quantidade_alterada_fora_do_razao(db, novo_produto):
    produto = novo_produto(quantidade=10)
    aplicar_movimentacao(db, produto.id, "saida", 4)

    db.query(Produto).filter(Produto.id == produto.id).update({Produto.quantidade: 99})
    db.commit()

    conferencia = conferir_razao(db, produto.id)
    assert conferencia["quantidade_esperada"] == 6
    assert not conferencia["consistente"]


def test_saidas_concorrentes_apenas_uma_passa(session_factory, db, novo_produto):
    produto = novo_produto(quantidade=10)
    barreira = threading.Barrier(2)
    resultados = []

    def retirar():
        session = session_factory()
        try:
            barreira.wait()
            aplicar_movimentacao(session, produto.id, "saida", 10)
            resultados.append("ok")
        except EstoqueInsuficienteError:
            resultados.append("insuficiente")
        finally:
            session.close()

    threads = [threading.Thread(target=retirar) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(resultados) == ["insuficiente", "ok"]
    db.expire_all()
    assert db.get(Produto, produto.id).quantidade == 0
    assert db.query(Movimentacao).filter(Movimentacao.tipo == "saida").count() == 1


def test_ler_calcular_gravar_sem_guarda_perde_atualizacao(session_factory, db, novo_produto):
    """
    Mostra por que a baixa é um UPDATE condicional: duas sessões que leem o
    saldo, calculam em memória e gravam vendem 20 unidades de um estoque de 10.
    """
    produto = novo_produto(quantidade=10)
    a, b = session_factory(), session_factory()

    saldo_a = a.get(Produto, produto.id).quantidade
    saldo_b = b.get(Produto, produto.id).quantidade
    assert saldo_a >= 10 and saldo_b >= 10  # as duas "validam" a saída

    a.query(Produto).filter(Produto.id == produto.id).update({Produto.quantidade: saldo_a - 10})
    a.commit()
    b.query(Produto).filter(Produto.id == produto.id).update({Produto.quantidade: saldo_b - 10})
    b.commit()

    db.expire_all()
    assert db.get(Produto, produto.id).quantidade == 0  # 20 saíram, o saldo só caiu 10
    a.close()
    b.close()

    # Com a guarda, a mesma sequência de leituras não permite a segunda baixa
    db.query(Produto).filter(Produto.id == produto.id).update({Produto.quantidade: 10})
    db.commit()
    a, b = session_factory(), session_factory()
    a.get(Produto, produto.id)
    b.get(Produto, produto.id)
    aplicar_movimentacao(a, produto.id, "saida", 10)
    with pytest.raises(EstoqueInsuficienteError):
        aplicar_movimentacao(b, produto.id, "saida", 10)
    a.close()
    b.close()


def test_listar_movimentacoes_recentes_primeiro_e_filtro_por_tipo(db, novo_produto):
    produto = novo_produto(quantidade=10)
    aplicar_movimentacao(db, produto.id, "entrada", 1)
    aplicar_movimentacao(db, produto.id, "saida", 2)
    aplicar_movimentacao(db, produto.id, "entrada", 3)

    todas = listar_movimentacoes(db)
    assert [m.quantidade for m in todas["data"]] == [3, 2, 1]
    assert todas["total"] == 3
    assert todas["page"] == 1
    assert todas["totalPages"] == 1

    entradas = listar_movimentacoes(db, tipo="entrada")
    assert [m.quantidade for m in entradas["data"]] == [3, 1]

    with pytest.raises(ValidacaoError):
        listar_movimentacoes(db, tipo="ajuste")


def test_listar_movimentacoes_paginado_por_produto(db, novo_produto):
    produto = novo_produto(quantidade=0)
    outro = novo_produto(quantidade=0)
    for i in range(1, 8):
        aplicar_movimentacao(db, produto.id, "entrada", i)
    aplicar_movimentacao(db, outro.id, "entrada", 100)

    pagina = listar_movimentacoes(db, produto_id=produto.id, page=2, limit=3)
    assert pagina["total"] == 7
    assert pagina["totalPages"] == 3
    assert [m.quantidade for m in pagina["data"]] == [4, 3, 2]

    with pytest.raises(NaoEncontradoError):
        listar_movimentacoes(db, produto_id=9999)
