# hortifruti/infra/views.py
"""
Criação de views auxiliares para consultas frequentes.

Views criadas:
- vw_lotes_detalhe:        lotes com o nome do produto (útil para depuração e listagens).
- vw_estoque_consolidado:  estoque por produto (total, nº de lotes com saldo, validade mais próxima).

Obs.:
- As views assumem que as migrações já foram aplicadas.
- Um conjunto de índices úteis também é criado, caso não existam.
"""

from __future__ import annotations

from .db import connect


def create_views(db_path: str) -> None:
    with connect(db_path) as c:
        c.executescript(
            """
            DROP VIEW IF EXISTS vw_lotes_detalhe;
            CREATE VIEW vw_lotes_detalhe AS
            SELECT
                l.id,
                l.produto_id,
                p.plu,
                p.nome AS produto,
                l.quantidade,
                l.custo_unitario,
                date(l.data_validade) AS data_validade,
                l.recebido_em
            FROM lote_estoque l
            JOIN produto p ON p.id = l.produto_id;

            ---------------------------
            -- Estoque consolidado (por produto)
            -- Lotes zerados somam 0 mas não contam como lote ativo.
            ---------------------------
            DROP VIEW IF EXISTS vw_estoque_consolidado;
            CREATE VIEW vw_estoque_consolidado AS
            SELECT
                p.id                                   AS produto_id,
                p.plu,
                p.nome,
                p.estoque_minimo,
                p.ativo,
                COALESCE(SUM(l.quantidade), 0.0)       AS estoque_total,
                COALESCE(SUM(CASE WHEN l.quantidade > 0 THEN 1 ELSE 0 END), 0) AS lotes_ativos,
                MIN(CASE WHEN l.quantidade > 0 THEN l.data_validade END)      AS validade_mais_proxima
            FROM produto p
            LEFT JOIN lote_estoque l ON l.produto_id = p.id
            GROUP BY p.id;
            """
        )

        c.executescript(
            """
            CREATE INDEX IF NOT EXISTS idx_lote_produto    ON lote_estoque(produto_id, recebido_em);
            CREATE INDEX IF NOT EXISTS idx_lote_validade   ON lote_estoque(data_validade);
            CREATE INDEX IF NOT EXISTS idx_quebra_data     ON quebra(criado_em);
            CREATE INDEX IF NOT EXISTS idx_venda_data      ON venda(criado_em);
            CREATE INDEX IF NOT EXISTS idx_venda_item_venda ON venda_item(venda_id);
            CREATE INDEX IF NOT EXISTS idx_pedido_item     ON pedido_compra_item(pedido_id);
            """
        )
