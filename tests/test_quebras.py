import sqlite3

import pytest

from hortifruti.domain.errors import ValidacaoError
from hortifruti.infra.repositories import LoteRepo, QuebraRepo
from hortifruti.usecases import registrar_quebra as uc
from hortifruti.usecases.registrar_quebra import (
    quebras_recentes,
    registrar_quebra,
    total_perdas,
)


def test_quebra_no_lote_informado_congela_o_custo(db_path, produtos):
    repo = LoteRepo(db_path)
    lote_id = repo.adicionar(produtos["tomate"], 10.0, 4.0)

    q = registrar_quebra(produtos["tomate"], 2.0, "danificado", lote_id=lote_id, db_path=db_path)
    assert q["custo_unitario"] == 4.0
    assert q["total_perda"] == 8.0
    assert q["lote_id"] == lote_id
    assert repo.get(lote_id)["quantidade"] == 8.0

    # mudar o custo do lote depois não altera a quebra gravada
    with sqlite3.connect(db_path) as c:
        c.execute("UPDATE lote_estoque SET custo_unitario = 9.0 WHERE id = ?", (lote_id,))
    assert QuebraRepo(db_path).get(q["id"])["total_perda"] == 8.0


def test_quebra_sem_lote_usa_o_mais_antigo(db_path, produtos):
    repo = LoteRepo(db_path)
    antigo = repo.adicionar(produtos["tomate"], 1.0, 3.0, recebido_em="2025-01-01T08:00:00")
    novo = repo.adicionar(produtos["tomate"], 5.0, 5.0, recebido_em="2025-01-05T08:00:00")

    q = registrar_quebra(produtos["tomate"], 2.0, "vencido", db_path=db_path)
    assert q["lote_id"] == antigo
    assert q["custo_unitario"] == 3.0
    # o saldo do lote nunca fica negativo e os demais lotes não mudam
    assert repo.get(antigo)["quantidade"] == 0.0
    assert repo.get(novo)["quantidade"] == 5.0


def test_quebra_sem_estoque_registra_com_custo_zero(db_path, produtos):
    q = registrar_quebra(produtos["banana"], 1.5, "furto", db_path=db_path)
    assert q["lote_id"] is None
    assert q["custo_unitario"] == 0.0
    assert q["total_perda"] == 0.0


@pytest.mark.parametrize(
    "quantidade,motivo",
    [(0, "vencido"), (-1, "vencido"), (1, "roubado")],
)
def test_quebra_invalida(db_path, produtos, quantidade, motivo):
    with pytest.raises(ValidacaoError):
        registrar_quebra(produtos["tomate"], quantidade, motivo, db_path=db_path)
    assert QuebraRepo(db_path).listar() == []


def test_quebra_em_lote_de_outro_produto(db_path, produtos):
    lote_banana = LoteRepo(db_path).adicionar(produtos["banana"], 3.0, 2.0)
    with pytest.raises(ValidacaoError):
        registrar_quebra(produtos["tomate"], 1.0, "outro", lote_id=lote_banana, db_path=db_path)
    with pytest.raises(ValidacaoError):
        registrar_quebra(produtos["tomate"], 1.0, "outro", lote_id=999, db_path=db_path)


def _falha_ao_inserir(self, row):
    raise sqlite3.OperationalError("disco cheio")


def test_quebra_atomica_desfaz_baixa_do_lote(db_path, produtos, monkeypatch):
    lote_id = LoteRepo(db_path).adicionar(produtos["tomate"], 10.0, 4.0)
    monkeypatch.setattr(QuebraRepo, "inserir", _falha_ao_inserir)
    with pytest.raises(sqlite3.OperationalError):
        registrar_quebra(produtos["tomate"], 2.0, "vencido", lote_id=lote_id, db_path=db_path, atomico=True)
    assert LoteRepo(db_path).get(lote_id)["quantidade"] == 10.0


def test_quebra_nao_atomica_mantem_baixa_do_lote(db_path, produtos, monkeypatch):
    lote_id = LoteRepo(db_path).adicionar(produtos["tomate"], 10.0, 4.0)
    monkeypatch.setattr(QuebraRepo, "inserir", _falha_ao_inserir)
    with pytest.raises(sqlite3.OperationalError):
        registrar_quebra(produtos["tomate"], 2.0, "vencido", lote_id=lote_id, db_path=db_path)
    assert LoteRepo(db_path).get(lote_id)["quantidade"] == 8.0


def test_listagens_e_total(db_path, produtos):
    LoteRepo(db_path).adicionar(produtos["tomate"], 10.0, 4.0)
    primeira = registrar_quebra(produtos["tomate"], 1.0, "vencido", db_path=db_path)
    segunda = registrar_quebra(produtos["tomate"], 0.5, "erro_operacional", observacao="caiu", db_path=db_path)

    recentes = quebras_recentes(7, db_path=db_path)
    assert [q["id"] for q in recentes] == [segunda["id"], primeira["id"]]
    assert recentes[0]["observacao"] == "caiu"
    assert total_perdas(db_path) == 6.0
    assert uc.listar_quebras(db_path)[0]["produto"] == "Tomate Italiano"
