# hortifruti/infra/migrations.py
"""
Migrações de schema usando PRAGMA user_version.

V1: tabelas base (produtos, lotes, quebras, vendas, pedidos de compra)
V2: lote de origem no item de venda (custo real da venda)
V3: valores do fechamento (frete, outros custos, peso balança e a projeção
    de preço de cada item no momento da aprovação)
"""

from __future__ import annotations

from typing import List
from .db import connect


SCHEMA_V1: List[str] = [
    # Parâmetros K/V
    """
    CREATE TABLE IF NOT EXISTS params (
        chave TEXT PRIMARY KEY,
        valor TEXT
    );
    """,
    # Cadastro de produtos
    """
    CREATE TABLE IF NOT EXISTS produto (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        plu TEXT UNIQUE,
        nome TEXT NOT NULL,
        categoria TEXT DEFAULT 'outros', -- frutas | verduras | legumes | temperos | outros
        unidade TEXT DEFAULT 'kg',
        preco REAL DEFAULT 0,
        custo_compra REAL DEFAULT 0,
        estoque_minimo REAL DEFAULT 0,
        shelf_life INTEGER DEFAULT 7,
        ativo INTEGER DEFAULT 1,
        criado_em TEXT,
        atualizado_em TEXT
    );
    """,
    # Lotes de estoque (uma entrada de mercadoria)
    """
    CREATE TABLE IF NOT EXISTS lote_estoque (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        produto_id INTEGER NOT NULL,
        quantidade REAL NOT NULL CHECK (quantidade >= 0),
        custo_unitario REAL NOT NULL DEFAULT 0,
        data_validade TEXT,
        recebido_em TEXT NOT NULL,
        criado_em TEXT,
        FOREIGN KEY (produto_id) REFERENCES produto(id)
    );
    """,
    # Quebras (perdas)
    """
    CREATE TABLE IF NOT EXISTS quebra (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        produto_id INTEGER NOT NULL,
        lote_id INTEGER,
        quantidade REAL NOT NULL,
        custo_unitario REAL NOT NULL DEFAULT 0,
        total_perda REAL NOT NULL DEFAULT 0,
        motivo TEXT NOT NULL, -- vencido | danificado | furto | erro_operacional | outro
        observacao TEXT,
        criado_em TEXT NOT NULL,
        FOREIGN KEY (produto_id) REFERENCES produto(id),
        FOREIGN KEY (lote_id) REFERENCES lote_estoque(id)
    );
    """,
    # Vendas
    """
    CREATE TABLE IF NOT EXISTS venda (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        total REAL NOT NULL,
        itens_count INTEGER NOT NULL,
        criado_em TEXT NOT NULL
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS venda_item (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        venda_id INTEGER NOT NULL,
        produto_id INTEGER NOT NULL,
        quantidade REAL NOT NULL,
        preco_unitario REAL NOT NULL,
        total REAL NOT NULL,
        criado_em TEXT NOT NULL,
        FOREIGN KEY (venda_id) REFERENCES venda(id) ON DELETE CASCADE,
        FOREIGN KEY (produto_id) REFERENCES produto(id)
    );
    """,
    # Pedidos de compra
    """
    CREATE TABLE IF NOT EXISTS pedido_compra (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        fornecedor TEXT,
        status TEXT NOT NULL DEFAULT 'rascunho', -- rascunho | enviado | recebido | cancelado | fechado
        total_estimado REAL DEFAULT 0,
        total_recebido REAL,
        observacoes TEXT,
        criado_em TEXT NOT NULL,
        recebido_em TEXT,
        editado_em TEXT
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS pedido_compra_item (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        pedido_id INTEGER NOT NULL,
        produto_id INTEGER NOT NULL,
        quantidade REAL NOT NULL,
        unidade TEXT DEFAULT 'caixa',
        peso_estimado_kg REAL DEFAULT 0,
        custo_unitario_estimado REAL,
        custo_unitario_real REAL,
        quantidade_recebida REAL,
        tara_total REAL DEFAULT 0,
        FOREIGN KEY (pedido_id) REFERENCES pedido_compra(id) ON DELETE CASCADE,
        FOREIGN KEY (produto_id) REFERENCES produto(id)
    );
    """,
]


def _ensure_column(conn, table: str, column: str, ddl: str) -> None:
    """Adiciona coluna se não existir."""
    cur = conn.execute(f"PRAGMA table_info({table});")
    cols = [r[1] for r in cur.fetchall()]  # r[1] é o nome da coluna
    if column not in cols:
        conn.execute(f"ALTER TABLE {table} ADD COLUMN {ddl};")


def _apply_v1(conn) -> None:
    for sql in SCHEMA_V1:
        conn.execute(sql)


def _apply_v2(conn) -> None:
    # venda_item: lote mais antigo consumido pela linha
    _ensure_column(conn, "venda_item", "lote_id", "lote_id INTEGER REFERENCES lote_estoque(id)")


def _apply_v3(conn) -> None:
    for col, ddl in (
        ("valor_frete", "valor_frete REAL DEFAULT 0"),
        ("outros_custos", "outros_custos REAL DEFAULT 0"),
        ("peso_balanca", "peso_balanca REAL"),
    ):
        _ensure_column(conn, "pedido_compra", col, ddl)
    # projeção congelada na aprovação
    for col in ("peso_liquido", "custo_real_kg", "preco_venda", "margem"):
        _ensure_column(conn, "pedido_compra_item", col, f"{col} REAL")


def apply_migrations(db_path: str) -> None:
    """Aplica migrações incrementais de acordo com PRAGMA user_version."""
    with connect(db_path) as conn:
        ver = conn.execute("PRAGMA user_version;").fetchone()[0] or 0

        if ver < 1:
            _apply_v1(conn)
            conn.execute("PRAGMA user_version = 1;")
            ver = 1

        if ver < 2:
            _apply_v2(conn)
            conn.execute("PRAGMA user_version = 2;")
            ver = 2

        if ver < 3:
            _apply_v3(conn)
            conn.execute("PRAGMA user_version = 3;")
            ver = 3
