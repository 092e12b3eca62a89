"""
Testes do estoque de lotes: repositório, entrada manual e baixa FIFO.
"""

from datetime import date, timedelta

import pytest

from hortifruti.domain.errors import ValidacaoError
from hortifruti.infra.repositories import LoteRepo
from hortifruti.usecases.deduzir_fifo import deduzir_fifo
from hortifruti.usecases.registrar_lote import run_lote_unico
from hortifruti.usecases.verificar_estoque import (
    estoque_produto,
    listar_lotes,
    lotes_a_vencer,
    resumo_estoque,
)


def _tres_lotes(db_path, produto_id):
    repo = LoteRepo(db_path)
    return [
        repo.adicionar(produto_id, 5.0, 3.0, "2025-01-20", "2025-01-02T08:00:00"),
        repo.adicionar(produto_id, 3.0, 2.5, "2025-01-10", "2025-01-01T08:00:00"),
        repo.adicionar(produto_id, 4.0, 3.5, None, "2025-01-03T08:00:00"),
    ]


def test_adicionar_valida_quantidade_e_custo(db_path, produtos):
    repo = LoteRepo(db_path)
    with pytest.raises(ValidacaoError):
        repo.adicionar(produtos["tomate"], 0, 1.0)
    with pytest.raises(ValidacaoError):
        repo.adicionar(produtos["tomate"], 1.0, -1.0)
    lote_id = repo.adicionar(produtos["tomate"], 2.5, 4.0)
    lote = repo.get(lote_id)
    assert lote["quantidade"] == 2.5
    assert lote["recebido_em"]


def test_consultas_de_lotes(db_path, produtos):
    a, b, c = _tres_lotes(db_path, produtos["tomate"])
    repo = LoteRepo(db_path)

    assert [l["id"] for l in repo.por_produto(produtos["tomate"])] == [b, a, c]
    # por validade, sem validade por último
    assert [l["id"] for l in listar_lotes(db_path)] == [b, a, c]
    assert estoque_produto(produtos["tomate"], db_path) == 12.0
    assert estoque_produto(produtos["banana"], db_path) == 0.0

    repo.definir_quantidade(b, 0)
    assert [l["id"] for l in repo.por_produto(produtos["tomate"])] == [a, c]
    assert repo.total_produto(produtos["tomate"]) == 9.0


def test_definir_quantidade_nunca_negativa(db_path, produtos):
    repo = LoteRepo(db_path)
    lote_id = repo.adicionar(produtos["tomate"], 2.0, 1.0)
    repo.definir_quantidade(lote_id, -3)
    assert repo.get(lote_id)["quantidade"] == 0.0


def test_deducao_fifo_conserva_quantidade(db_path, produtos):
    a, b, c = _tres_lotes(db_path, produtos["tomate"])
    res = deduzir_fifo(produtos["tomate"], 6.0, db_path=db_path)

    assert res.atendido
    assert res.primeiro_lote_id == b
    repo = LoteRepo(db_path)
    assert repo.get(b)["quantidade"] == 0.0
    assert repo.get(a)["quantidade"] == 2.0
    assert repo.get(c)["quantidade"] == 4.0
    assert repo.total_produto(produtos["tomate"]) == 12.0 - 6.0


def test_deducao_fifo_parcial_nao_falha(db_path, produtos):
    _tres_lotes(db_path, produtos["tomate"])
    res = deduzir_fifo(produtos["tomate"], 15.0, db_path=db_path)
    assert not res.atendido
    assert res.restante == 3.0
    assert res.deduzido == 12.0
    assert estoque_produto(produtos["tomate"], db_path) == 0.0


def test_deducao_com_decremento_atomico(db_path, produtos):
    a, b, c = _tres_lotes(db_path, produtos["tomate"])
    res = deduzir_fifo(produtos["tomate"], 7.5, db_path=db_path, decremento_atomico=True)
    assert res.atendido
    assert [u["id"] for u in res.atualizacoes] == [b, a]
    repo = LoteRepo(db_path)
    assert repo.get(a)["quantidade"] == 0.5
    # decremento condicional recusa retirar mais que o saldo
    assert repo.decrementar(a, 1.0) is False
    assert repo.get(a)["quantidade"] == 0.5


def test_lotes_a_vencer_e_resumo(db_path, produtos):
    hoje = date.today()
    repo = LoteRepo(db_path)
    vence = repo.adicionar(produtos["tomate"], 2.0, 4.0, (hoje + timedelta(days=2)).isoformat())
    vencido = repo.adicionar(produtos["tomate"], 1.0, 4.0, (hoje - timedelta(days=1)).isoformat())
    repo.adicionar(produtos["tomate"], 3.0, 4.0, (hoje + timedelta(days=10)).isoformat())
    repo.adicionar(produtos["banana"], 6.0, 3.0)

    assert [l["id"] for l in lotes_a_vencer(3, db_path=db_path)] == [vence]
    assert [l["id"] for l in lotes_a_vencer(3, db_path=db_path, incluir_vencidos=True)] == [vencido, vence]

    resumo = {r["produto"]: r for r in resumo_estoque(db_path)}
    assert resumo["Tomate Italiano"]["quantidade_total"] == 6.0
    assert resumo["Tomate Italiano"]["lotes"] == 3
    assert resumo["Tomate Italiano"]["vencendo"] == 3.0
    assert resumo["Banana Prata"]["validade_mais_proxima"] is None


def test_run_lote_unico_por_plu(db_path, produtos):
    rec = run_lote_unico("00456", 12.0, 2.8, "2030-01-01", db_path=db_path)
    assert rec["produto_id"] == produtos["banana"]
    assert rec["quantidade"] == 12.0
    with pytest.raises(ValidacaoError):
        run_lote_unico("99999", 1.0, 1.0, db_path=db_path)


def test_datas_do_lote_gravadas_em_iso(db_path, produtos):
    antigo = run_lote_unico("00123", 5.0, 3.0, recebido_em="2025-01-01T08:00:00", db_path=db_path)
    novo = run_lote_unico("00123", 5.0, 4.0, "25/12/2026", "05/01/2025", db_path=db_path)
    assert novo["data_validade"] == "2026-12-25"
    assert novo["recebido_em"] == "2025-01-05T00:00:00.000000"

    # recebido depois, consumido depois
    res = deduzir_fifo(produtos["tomate"], 2.0, db_path=db_path)
    assert res.primeiro_lote_id == antigo["id"]

    hoje = date(2026, 12, 23)
    assert [l["id"] for l in lotes_a_vencer(3, db_path=db_path, hoje=hoje)] == [novo["id"]]


@pytest.mark.parametrize("datas", [{"data_validade": "31/02/2026"}, {"recebido_em": "ontem"}])
def test_data_invalida_nao_grava_lote(db_path, produtos, datas):
    with pytest.raises(ValidacaoError):
        run_lote_unico("00123", 1.0, 2.0, db_path=db_path, **datas)
    assert LoteRepo(db_path).total_produto(produtos["tomate"]) == 0.0
