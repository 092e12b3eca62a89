# hortifruti/infra/db.py
"""
Utilidades de conexão SQLite.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from typing import Iterator, Optional


@contextmanager
def connect(db_path: str) -> Iterator[sqlite3.Connection]:
    """
    Context manager para abrir conexão SQLite com:
    - foreign_keys ON
    - row_factory = sqlite3.Row
    - commit ao sair (rollback em caso de exceção)
    """
    conn = sqlite3.connect(db_path)
    try:
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON;")
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


@contextmanager
def transacao(db_path: str) -> Iterator[sqlite3.Connection]:
    """
    Abre uma única transação (BEGIN IMMEDIATE) para uma sequência de passos.

    Repositórios criados com ``conn=`` desta conexão não fazem commit
    próprio: tudo é confirmado ao sair do bloco, ou desfeito se algum
    passo levantar exceção.
    """
    with connect(db_path) as conn:
        conn.execute("BEGIN IMMEDIATE;")
        yield conn


@contextmanager
def sessao(db_path: str, conn: Optional[sqlite3.Connection] = None) -> Iterator[sqlite3.Connection]:
    """Reusa ``conn`` quando informada; caso contrário abre uma conexão própria."""
    if conn is not None:
        yield conn
        return
    with connect(db_path) as c:
        yield c
