from hortifruti.infra.db import connect, transacao
from hortifruti.infra.migrations import apply_migrations
from hortifruti.infra.repositories import LoteRepo


def _colunas(db_path, tabela):
    with connect(db_path) as c:
        return {r[1] for r in c.execute(f"PRAGMA table_info({tabela});").fetchall()}


def test_migracoes_idempotentes(db_path):
    apply_migrations(db_path)
    with connect(db_path) as c:
        assert c.execute("PRAGMA user_version;").fetchone()[0] == 3
        views = {r[0] for r in c.execute("SELECT name FROM sqlite_master WHERE type = 'view'")}
    assert {"vw_lotes_detalhe", "vw_estoque_consolidado"} <= views

    assert "lote_id" in _colunas(db_path, "venda_item")
    assert {"valor_frete", "outros_custos", "peso_balanca"} <= _colunas(db_path, "pedido_compra")
    assert {"peso_liquido", "custo_real_kg", "preco_venda", "margem"} <= _colunas(db_path, "pedido_compra_item")


def test_transacao_compartilha_conexao_e_desfaz_no_erro(db_path, produtos):
    try:
        with transacao(db_path) as conn:
            LoteRepo(db_path, conn=conn).adicionar(produtos["tomate"], 1.0, 1.0)
            assert LoteRepo(db_path, conn=conn).total_produto(produtos["tomate"]) == 1.0
            raise RuntimeError("aborta")
    except RuntimeError:
        pass
    assert LoteRepo(db_path).total_produto(produtos["tomate"]) == 0.0

    with transacao(db_path) as conn:
        LoteRepo(db_path, conn=conn).adicionar(produtos["tomate"], 2.0, 1.0)
    assert LoteRepo(db_path).total_produto(produtos["tomate"]) == 2.0
