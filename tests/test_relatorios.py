from datetime import date, timedelta
from math import isclose

import pytest

from hortifruti.domain.errors import ValidacaoError
from hortifruti.domain.models import ItemCarrinho
from hortifruti.infra.repositories import LoteRepo
from hortifruti.usecases.fechamento_pedido import FechamentoPedido
from hortifruti.usecases.pedidos_compra import criar_pedido, enviar_pedido
from hortifruti.usecases.registrar_quebra import registrar_quebra
from hortifruti.usecases.registrar_venda import registrar_venda
from hortifruti.usecases.relatorios import (
    relatorio_estoque_baixo,
    relatorio_fechamento,
    relatorio_quebras,
    relatorio_vencimentos,
    relatorio_vendas_dia,
)


def test_relatorio_vencimentos(db_path, produtos):
    hoje = date.today()
    repo = LoteRepo(db_path)
    amanha = repo.adicionar(produtos["tomate"], 2.0, 4.0, (hoje + timedelta(days=1)).isoformat())
    ontem = repo.adicionar(produtos["banana"], 1.0, 3.0, (hoje - timedelta(days=1)).isoformat())
    repo.adicionar(produtos["banana"], 1.0, 3.0, (hoje + timedelta(days=30)).isoformat())

    res = relatorio_vencimentos(3, db_path=db_path)
    assert [(r["id"], r["dias_restantes"]) for r in res] == [(ontem, -1), (amanha, 1)]
    assert [r["id"] for r in relatorio_vencimentos(3, db_path=db_path, incluir_vencidos=False)] == [amanha]


def test_relatorio_estoque_baixo(db_path, produtos):
    # tomate: mínimo 5; banana: mínimo 0
    LoteRepo(db_path).adicionar(produtos["tomate"], 3.0, 4.0)
    LoteRepo(db_path).adicionar(produtos["banana"], 2.0, 3.0)
    res = relatorio_estoque_baixo(db_path)
    assert [r["nome"] for r in res] == ["Tomate Italiano"]
    assert res[0]["estoque_total"] == 3.0

    LoteRepo(db_path).adicionar(produtos["tomate"], 3.0, 4.0)
    assert relatorio_estoque_baixo(db_path) == []


def test_relatorio_quebras_por_motivo(db_path, produtos):
    LoteRepo(db_path).adicionar(produtos["tomate"], 10.0, 4.0)
    registrar_quebra(produtos["tomate"], 1.0, "vencido", db_path=db_path)
    registrar_quebra(produtos["tomate"], 2.0, "vencido", db_path=db_path)
    registrar_quebra(produtos["tomate"], 0.5, "furto", db_path=db_path)

    res = relatorio_quebras(7, db_path=db_path)
    assert len(res["quebras"]) == 3
    assert res["total_perda"] == 14.0
    assert res["por_motivo"] == {"Amadureceu Demais": 12.0, "Furto": 2.0}


def test_relatorio_vendas_dia_lucro_real(db_path, produtos):
    LoteRepo(db_path).adicionar(produtos["tomate"], 10.0, 4.0)
    registrar_venda([ItemCarrinho(produtos["tomate"], 2.0, 8.0)], db_path=db_path)
    # banana sem lote: custo 0
    registrar_venda([ItemCarrinho(produtos["banana"], 1.0, 6.0)], db_path=db_path)

    res = relatorio_vendas_dia(db_path=db_path)
    assert res["vendas"] == 2
    assert res["faturamento"] == 22.0
    assert res["custo_real"] == 8.0
    assert res["lucro_real"] == 14.0

    ontem = relatorio_vendas_dia(date.today() - timedelta(days=1), db_path=db_path)
    assert ontem["vendas"] == 0
    assert ontem["faturamento"] == 0


def test_relatorio_fechamento(db_path, produtos):
    pedido = criar_pedido(
        None,
        [
            {"plu": "00123", "quantidade": 1, "peso_estimado_kg": 10.0, "custo_unitario_estimado": 50.0},
            {"plu": "00456", "quantidade": 1, "peso_estimado_kg": 30.0, "custo_unitario_estimado": 90.0},
        ],
        db_path=db_path,
    )
    with pytest.raises(ValidacaoError):
        relatorio_fechamento(pedido["id"], db_path=db_path)

    enviar_pedido(pedido["id"], db_path=db_path)
    t, b = [i["id"] for i in pedido["itens"]]
    sessao = FechamentoPedido(pedido["id"], db_path=db_path)
    sessao.definir_margem(t, 50)
    sessao.definir_margem(b, 70)
    sessao.definir_frete(12.0)
    sessao.aprovar()

    res = relatorio_fechamento(pedido["id"], db_path=db_path)
    assert [i["produto"] for i in res["itens"]] == ["Tomate Italiano", "Banana Prata"]
    assert res["valor_frete"] == 12.0
    assert isclose(res["itens"][0]["custo_real_kg"], 5.0 + 12.0 / 40.0)
    assert isclose(res["margem_media"], 65.0)
    assert res["observacoes"].startswith("Frete: R$ 12.00")
