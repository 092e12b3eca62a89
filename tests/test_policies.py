from datetime import date

from hortifruti.domain.policies import (
    itens_sem_estoque,
    lotes_a_vencer,
    ordenar_fifo,
    planejar_deducao_fifo,
)


def _lote(id, qtd, recebido, validade=None):
    return {"id": id, "quantidade": qtd, "recebido_em": recebido, "data_validade": validade}


def test_ordem_fifo_por_recebimento_e_id():
    lotes = [
        _lote(3, 1, "2025-01-02T08:00:00"),
        _lote(2, 1, "2025-01-01T08:00:00"),
        _lote(1, 1, "2025-01-02T08:00:00"),
    ]
    assert [l["id"] for l in ordenar_fifo(lotes)] == [2, 1, 3]


def test_planejamento_consome_o_mais_antigo_primeiro():
    lotes = [
        _lote(2, 5.0, "2025-01-02T08:00:00"),
        _lote(1, 3.0, "2025-01-01T08:00:00"),
        _lote(3, 4.0, "2025-01-03T08:00:00"),
    ]
    atualizacoes, restante = planejar_deducao_fifo(lotes, 6.0)
    assert restante == 0.0
    assert [(u["id"], u["deduzido"], u["quantidade"]) for u in atualizacoes] == [
        (1, 3.0, 0.0),
        (2, 3.0, 2.0),
    ]
    # lote 3 não foi tocado
    assert sum(u["deduzido"] for u in atualizacoes) == 6.0


def test_planejamento_parcial_informa_o_que_faltou():
    atualizacoes, restante = planejar_deducao_fifo([_lote(1, 2.0, "2025-01-01")], 5.0)
    assert restante == 3.0
    assert atualizacoes[0]["quantidade"] == 0.0


def test_planejamento_sem_lotes():
    assert planejar_deducao_fifo([], 1.0) == ([], 1.0)


def test_lotes_a_vencer_janela():
    hoje = date(2025, 3, 10)
    lotes = [
        _lote(1, 1, "x", "2025-03-09"),   # vencido
        _lote(2, 1, "x", "2025-03-10"),
        _lote(3, 1, "x", "2025-03-13"),
        _lote(4, 1, "x", "2025-03-14"),   # fora da janela
        _lote(5, 0, "x", "2025-03-11"),   # sem saldo
        _lote(6, 1, "x", None),
    ]
    assert [l["id"] for l in lotes_a_vencer(lotes, 3, hoje=hoje)] == [2, 3]
    assert [l["id"] for l in lotes_a_vencer(lotes, 3, hoje=hoje, incluir_vencidos=True)] == [1, 2, 3]


def test_itens_sem_estoque_soma_linhas_do_mesmo_produto():
    faltas = itens_sem_estoque([(1, 2.0), (2, 1.0), (1, 2.0)], {1: 3.0, 2: 5.0})
    assert faltas == [{"produto_id": 1, "solicitado": 4.0, "disponivel": 3.0}]
