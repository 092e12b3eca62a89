# hortifruti/infra/repositories.py
"""
Repositórios (DAO) para acesso e manipulação de dados no SQLite.

Classes:
- ParamsRepo
- ProdutoRepo
- LoteRepo
- QuebraRepo
- VendaRepo
- PedidoCompraRepo

Todos recebem o caminho do banco no construtor. Quando ``conn`` é
informado (ver ``infra.db.transacao``), as operações usam essa conexão e
não fazem commit próprio.
"""

from __future__ import annotations

import sqlite3
from dataclasses import asdict, is_dataclass
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .db import sessao
from hortifruti.domain.errors import ValidacaoError
from hortifruti.domain.policies import lotes_a_vencer


# -------------------------
# Helpers
# -------------------------

def _as_dict(row: Any) -> Dict[str, Any]:
    if isinstance(row, dict):
        return dict(row)
    if is_dataclass(row):
        return asdict(row)
    raise TypeError("row must be dict or dataclass")


def _fetch_all(cur) -> List[Dict[str, Any]]:
    cols = [d[0] for d in cur.description]
    return [dict(zip(cols, row)) for row in cur.fetchall()]


def _fetch_one(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    if row is None:
        return None
    cols = [d[0] for d in cur.description]
    return dict(zip(cols, row))


def agora_iso() -> str:
    return datetime.now().isoformat(timespec="microseconds")


_FORMATOS_BR = ("%d/%m/%Y %H:%M:%S", "%d/%m/%Y %H:%M", "%d/%m/%Y", "%d-%m-%Y", "%d/%m/%y")


def _para_datetime(val: Any, campo: str) -> datetime:
    """Aceita ISO ou dd/mm/aaaa (com hora opcional); ValidacaoError se não reconhecer."""
    if isinstance(val, datetime):
        return val
    if isinstance(val, date):
        return datetime.combine(val, datetime.min.time())
    s = str(val).strip()
    try:
        return datetime.fromisoformat(s)
    except ValueError:
        pass
    for fmt in _FORMATOS_BR:
        try:
            return datetime.strptime(s, fmt)
        except ValueError:
            continue
    raise ValidacaoError(f"{campo} inválida: {val!r}")


def data_iso(val: Any, campo: str = "Data") -> Optional[str]:
    """Normaliza para YYYY-MM-DD (None/vazio continua None)."""
    if val is None or not str(val).strip():
        return None
    return _para_datetime(val, campo).date().isoformat()


def momento_iso(val: Any, campo: str = "Data") -> Optional[str]:
    """Normaliza para timestamp ISO com microssegundos, o formato de ``agora_iso``."""
    if val is None or not str(val).strip():
        return None
    return _para_datetime(val, campo).isoformat(timespec="microseconds")


class _Repo:
    def __init__(self, db_path: str, conn: Optional[sqlite3.Connection] = None):
        self.db_path = db_path
        self.conn = conn

    def _sessao(self):
        return sessao(self.db_path, self.conn)


# -------------------------
# Params
# -------------------------

class ParamsRepo(_Repo):
    def set_many(self, items: Iterable[Tuple[str, str]]) -> None:
        with self._sessao() as c:
            c.executemany(
                """
                INSERT INTO params (chave, valor)
                VALUES (?, ?)
                ON CONFLICT(chave) DO UPDATE SET valor=excluded.valor
                """,
                list(items),
            )

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        with self._sessao() as c:
            row = c.execute("SELECT valor FROM params WHERE chave = ?", (key,)).fetchone()
            return row[0] if row else default

    def get_float(self, key: str, default: float) -> float:
        v = self.get(key, None)
        if v is None:
            return default
        try:
            return float(v)
        except ValueError:
            return default


# -------------------------
# Produto
# -------------------------

_PRODUTO_COLS = (
    "plu", "nome", "categoria", "unidade", "preco", "custo_compra",
    "estoque_minimo", "shelf_life", "ativo",
)


class ProdutoRepo(_Repo):
    def inserir(self, row: Any) -> int:
        r = _as_dict(row)
        r.pop("id", None)
        payload = {k: r.get(k) for k in _PRODUTO_COLS}
        payload["criado_em"] = agora_iso()
        with self._sessao() as c:
            cur = c.execute(
                """
                INSERT INTO produto
                    (plu, nome, categoria, unidade, preco, custo_compra,
                     estoque_minimo, shelf_life, ativo, criado_em)
                VALUES
                    (:plu, :nome, COALESCE(:categoria, 'outros'), COALESCE(:unidade, 'kg'),
                     COALESCE(:preco, 0), COALESCE(:custo_compra, 0),
                     COALESCE(:estoque_minimo, 0), COALESCE(:shelf_life, 7),
                     COALESCE(:ativo, 1), :criado_em)
                """,
                payload,
            )
            return int(cur.lastrowid)

    def upsert(self, rows: Iterable[Any]) -> None:
        """Insere ou atualiza produtos pelo PLU."""
        for r in (_as_dict(x) for x in rows):
            existente = self.get_por_plu(str(r.get("plu")))
            if existente is None:
                self.inserir(r)
                continue
            with self._sessao() as c:
                c.execute(
                    """
                    UPDATE produto SET
                        nome = COALESCE(:nome, nome),
                        categoria = COALESCE(:categoria, categoria),
                        unidade = COALESCE(:unidade, unidade),
                        preco = COALESCE(:preco, preco),
                        custo_compra = COALESCE(:custo_compra, custo_compra),
                        estoque_minimo = COALESCE(:estoque_minimo, estoque_minimo),
                        shelf_life = COALESCE(:shelf_life, shelf_life),
                        ativo = COALESCE(:ativo, ativo),
                        atualizado_em = :agora
                    WHERE id = :id
                    """,
                    {**{k: r.get(k) for k in _PRODUTO_COLS}, "id": existente["id"], "agora": agora_iso()},
                )

    def get(self, produto_id: int) -> Optional[Dict[str, Any]]:
        with self._sessao() as c:
            return _fetch_one(c.execute("SELECT * FROM produto WHERE id = ?", (produto_id,)))

    def get_por_plu(self, plu: str) -> Optional[Dict[str, Any]]:
        with self._sessao() as c:
            return _fetch_one(c.execute("SELECT * FROM produto WHERE plu = ?", (plu,)))

    def get_all(self) -> List[Dict[str, Any]]:
        with self._sessao() as c:
            return _fetch_all(c.execute("SELECT * FROM produto ORDER BY nome"))

    def resolver(self, ref: Any) -> Dict[str, Any]:
        """Busca por id (int) ou PLU (str, com fallback para id numérico)."""
        encontrado = None
        if isinstance(ref, int):
            encontrado = self.get(ref)
        else:
            encontrado = self.get_por_plu(str(ref).strip())
            if encontrado is None and str(ref).strip().isdigit():
                encontrado = self.get(int(ref))
        if encontrado is None:
            raise ValidacaoError(f"Produto não encontrado: {ref}")
        return encontrado

    def atualizar_preco_custo(self, produto_id: int, preco: float, custo_compra: float) -> None:
        with self._sessao() as c:
            c.execute(
                "UPDATE produto SET preco = ?, custo_compra = ?, atualizado_em = ? WHERE id = ?",
                (float(preco), float(custo_compra), agora_iso(), produto_id),
            )


# -------------------------
# Lotes de estoque
# -------------------------

class LoteRepo(_Repo):
    def adicionar(
        self,
        produto_id: int,
        quantidade: float,
        custo_unitario: float,
        data_validade: Optional[str] = None,
        recebido_em: Optional[str] = None,
    ) -> int:
        if quantidade is None or float(quantidade) <= 0:
            raise ValidacaoError("Quantidade do lote deve ser maior que zero")
        if custo_unitario is None or float(custo_unitario) < 0:
            raise ValidacaoError("Custo unitário não pode ser negativo")
        # ordem FIFO e alertas de validade comparam estes campos como texto ISO
        data_validade = data_iso(data_validade, "Data de validade")
        recebido_em = momento_iso(recebido_em, "Data de recebimento")
        agora = agora_iso()
        with self._sessao() as c:
            cur = c.execute(
                """
                INSERT INTO lote_estoque
                    (produto_id, quantidade, custo_unitario, data_validade, recebido_em, criado_em)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (produto_id, float(quantidade), float(custo_unitario), data_validade, recebido_em or agora, agora),
            )
            return int(cur.lastrowid)

    def get(self, lote_id: int) -> Optional[Dict[str, Any]]:
        with self._sessao() as c:
            return _fetch_one(c.execute("SELECT * FROM lote_estoque WHERE id = ?", (lote_id,)))

    def listar(self) -> List[Dict[str, Any]]:
        """Lotes com saldo, por validade crescente (sem validade por último)."""
        with self._sessao() as c:
            return _fetch_all(
                c.execute(
                    """
                    SELECT l.*, p.nome AS produto
                    FROM lote_estoque l
                    JOIN produto p ON p.id = l.produto_id
                    WHERE l.quantidade > 0
                    ORDER BY l.data_validade IS NULL, l.data_validade, l.id
                    """
                )
            )

    def por_produto(self, produto_id: int) -> List[Dict[str, Any]]:
        """Lotes com saldo do produto, do recebimento mais antigo ao mais novo (FIFO)."""
        with self._sessao() as c:
            return _fetch_all(
                c.execute(
                    """
                    SELECT * FROM lote_estoque
                    WHERE produto_id = ? AND quantidade > 0
                    ORDER BY recebido_em, id
                    """,
                    (produto_id,),
                )
            )

    def total_produto(self, produto_id: int) -> float:
        with self._sessao() as c:
            row = c.execute(
                "SELECT COALESCE(SUM(quantidade), 0.0) FROM lote_estoque WHERE produto_id = ?",
                (produto_id,),
            ).fetchone()
            return float(row[0])

    def a_vencer(
        self,
        dias: int,
        hoje: Optional[date] = None,
        incluir_vencidos: bool = False,
    ) -> List[Dict[str, Any]]:
        return lotes_a_vencer(self.listar(), dias, hoje=hoje, incluir_vencidos=incluir_vencidos)

    def definir_quantidade(self, lote_id: int, quantidade: float) -> None:
        """Sobrescreve a quantidade (valor absoluto, não é decremento)."""
        with self._sessao() as c:
            c.execute(
                "UPDATE lote_estoque SET quantidade = ? WHERE id = ?",
                (max(0.0, float(quantidade)), lote_id),
            )

    def decrementar(self, lote_id: int, quantidade: float) -> bool:
        """Decremento condicional no banco; False se o saldo atual não comporta."""
        with self._sessao() as c:
            cur = c.execute(
                """
                UPDATE lote_estoque
                SET quantidade = quantidade - :q
                WHERE id = :id AND quantidade >= :q
                """,
                {"id": lote_id, "q": float(quantidade)},
            )
            return cur.rowcount == 1


# -------------------------
# Quebras
# -------------------------

class QuebraRepo(_Repo):
    def inserir(self, row: Any) -> int:
        r = _as_dict(row)
        with self._sessao() as c:
            cur = c.execute(
                """
                INSERT INTO quebra
                    (produto_id, lote_id, quantidade, custo_unitario, total_perda,
                     motivo, observacao, criado_em)
                VALUES
                    (:produto_id, :lote_id, :quantidade, :custo_unitario, :total_perda,
                     :motivo, :observacao, :criado_em)
                """,
                {
                    "produto_id": r["produto_id"],
                    "lote_id": r.get("lote_id"),
                    "quantidade": float(r["quantidade"]),
                    "custo_unitario": float(r["custo_unitario"]),
                    "total_perda": float(r["total_perda"]),
                    "motivo": r["motivo"],
                    "observacao": r.get("observacao"),
                    "criado_em": r.get("criado_em") or agora_iso(),
                },
            )
            return int(cur.lastrowid)

    def get(self, quebra_id: int) -> Optional[Dict[str, Any]]:
        with self._sessao() as c:
            return _fetch_one(c.execute("SELECT * FROM quebra WHERE id = ?", (quebra_id,)))

    def listar(self, desde: Optional[str] = None) -> List[Dict[str, Any]]:
        """Quebras da mais recente para a mais antiga (opcionalmente a partir de `desde`)."""
        sql = """
            SELECT q.*, p.nome AS produto
            FROM quebra q
            JOIN produto p ON p.id = q.produto_id
        """
        params: Tuple = ()
        if desde:
            sql += " WHERE q.criado_em >= ?"
            params = (desde,)
        sql += " ORDER BY q.criado_em DESC, q.id DESC"
        with self._sessao() as c:
            return _fetch_all(c.execute(sql, params))

    def total_perdas(self) -> float:
        with self._sessao() as c:
            return float(c.execute("SELECT COALESCE(SUM(total_perda), 0.0) FROM quebra").fetchone()[0])


# -------------------------
# Vendas
# -------------------------

class VendaRepo(_Repo):
    def inserir_venda(self, total: float, itens_count: int, criado_em: Optional[str] = None) -> int:
        with self._sessao() as c:
            cur = c.execute(
                "INSERT INTO venda (total, itens_count, criado_em) VALUES (?, ?, ?)",
                (float(total), int(itens_count), criado_em or agora_iso()),
            )
            return int(cur.lastrowid)

    def inserir_item(self, venda_id: int, row: Any, criado_em: Optional[str] = None) -> int:
        r = _as_dict(row)
        with self._sessao() as c:
            cur = c.execute(
                """
                INSERT INTO venda_item
                    (venda_id, produto_id, quantidade, preco_unitario, total, lote_id, criado_em)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    venda_id,
                    r["produto_id"],
                    float(r["quantidade"]),
                    float(r["preco_unitario"]),
                    float(r["total"]),
                    r.get("lote_id"),
                    criado_em or agora_iso(),
                ),
            )
            return int(cur.lastrowid)

    def definir_lote_item(self, item_id: int, lote_id: int) -> None:
        with self._sessao() as c:
            c.execute("UPDATE venda_item SET lote_id = ? WHERE id = ?", (lote_id, item_id))

    def get(self, venda_id: int) -> Optional[Dict[str, Any]]:
        with self._sessao() as c:
            venda = _fetch_one(c.execute("SELECT * FROM venda WHERE id = ?", (venda_id,)))
            if venda is None:
                return None
            venda["itens"] = _fetch_all(
                c.execute("SELECT * FROM venda_item WHERE venda_id = ? ORDER BY id", (venda_id,))
            )
            return venda

    def listar(self, desde: Optional[str] = None) -> List[Dict[str, Any]]:
        sql = "SELECT * FROM venda"
        params: Tuple = ()
        if desde:
            sql += " WHERE criado_em >= ?"
            params = (desde,)
        sql += " ORDER BY criado_em DESC, id DESC"
        with self._sessao() as c:
            return _fetch_all(c.execute(sql, params))

    def itens_com_custo(self, desde: str) -> List[Dict[str, Any]]:
        """Itens vendidos desde `desde` com o custo do lote de origem (0 se não houver)."""
        with self._sessao() as c:
            return _fetch_all(
                c.execute(
                    """
                    SELECT vi.*, COALESCE(l.custo_unitario, 0.0) AS custo_unitario
                    FROM venda_item vi
                    LEFT JOIN lote_estoque l ON l.id = vi.lote_id
                    WHERE vi.criado_em >= ?
                    ORDER BY vi.id
                    """,
                    (desde,),
                )
            )


# -------------------------
# Pedidos de compra
# -------------------------

class PedidoCompraRepo(_Repo):
    def criar(
        self,
        fornecedor: Optional[str],
        itens: Iterable[Any],
        observacoes: Optional[str] = None,
        status: str = "rascunho",
    ) -> int:
        itens = [_as_dict(i) for i in itens]
        total_estimado = sum(
            float(i.get("quantidade") or 0.0) * float(i.get("custo_unitario_estimado") or 0.0) for i in itens
        )
        with self._sessao() as c:
            cur = c.execute(
                """
                INSERT INTO pedido_compra (fornecedor, status, total_estimado, observacoes, criado_em)
                VALUES (?, ?, ?, ?, ?)
                """,
                (fornecedor, status, total_estimado, observacoes, agora_iso()),
            )
            pedido_id = int(cur.lastrowid)
            for i in itens:
                c.execute(
                    """
                    INSERT INTO pedido_compra_item
                        (pedido_id, produto_id, quantidade, unidade, peso_estimado_kg,
                         custo_unitario_estimado, tara_total)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        pedido_id,
                        i["produto_id"],
                        float(i["quantidade"]),
                        i.get("unidade") or "caixa",
                        float(i.get("peso_estimado_kg") or 0.0),
                        i.get("custo_unitario_estimado"),
                        float(i.get("tara_total") or 0.0),
                    ),
                )
            return pedido_id

    def get(self, pedido_id: int) -> Optional[Dict[str, Any]]:
        """Pedido com seus itens (e dados do produto de cada item)."""
        with self._sessao() as c:
            pedido = _fetch_one(c.execute("SELECT * FROM pedido_compra WHERE id = ?", (pedido_id,)))
            if pedido is None:
                return None
            pedido["itens"] = _fetch_all(
                c.execute(
                    """
                    SELECT i.*, p.nome AS produto, p.preco AS produto_preco,
                           p.shelf_life AS produto_shelf_life
                    FROM pedido_compra_item i
                    JOIN produto p ON p.id = i.produto_id
                    WHERE i.pedido_id = ?
                    ORDER BY i.id
                    """,
                    (pedido_id,),
                )
            )
            return pedido

    def listar(self, status: Optional[str] = None) -> List[Dict[str, Any]]:
        sql = "SELECT * FROM pedido_compra"
        params: Tuple = ()
        if status:
            sql += " WHERE status = ?"
            params = (status,)
        sql += " ORDER BY criado_em DESC, id DESC"
        with self._sessao() as c:
            return _fetch_all(c.execute(sql, params))

    def atualizar_status(self, pedido_id: int, status: str) -> None:
        with self._sessao() as c:
            c.execute(
                "UPDATE pedido_compra SET status = ?, editado_em = ? WHERE id = ?",
                (status, agora_iso(), pedido_id),
            )

    def atualizar_item_recebimento(
        self,
        item_id: int,
        quantidade_recebida: float,
        custo_unitario_real: float,
        tara_total: Optional[float] = None,
        projecao: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Grava o recebido e, quando informada, a projeção de preço do item."""
        p = projecao or {}
        with self._sessao() as c:
            c.execute(
                """
                UPDATE pedido_compra_item
                SET quantidade_recebida = :qtd,
                    custo_unitario_real = :custo,
                    tara_total = COALESCE(:tara, tara_total),
                    peso_liquido = COALESCE(:peso_liquido, peso_liquido),
                    custo_real_kg = COALESCE(:custo_real_kg, custo_real_kg),
                    preco_venda = COALESCE(:preco_venda, preco_venda),
                    margem = COALESCE(:margem, margem)
                WHERE id = :id
                """,
                {
                    "id": item_id,
                    "qtd": float(quantidade_recebida),
                    "custo": float(custo_unitario_real),
                    "tara": tara_total,
                    "peso_liquido": p.get("peso_liquido"),
                    "custo_real_kg": p.get("custo_real_kg"),
                    "preco_venda": p.get("preco_venda"),
                    "margem": p.get("margem"),
                },
            )

    def finalizar_recebimento(
        self,
        pedido_id: int,
        total_recebido: float,
        observacoes: Optional[str],
        status: str = "recebido",
        recebido_em: Optional[str] = None,
        valor_frete: float = 0.0,
        outros_custos: float = 0.0,
        peso_balanca: Optional[float] = None,
    ) -> None:
        with self._sessao() as c:
            c.execute(
                """
                UPDATE pedido_compra
                SET status = ?, total_recebido = ?, recebido_em = ?, observacoes = ?,
                    valor_frete = ?, outros_custos = ?, peso_balanca = ?
                WHERE id = ?
                """,
                (
                    status, float(total_recebido), recebido_em or agora_iso(), observacoes,
                    float(valor_frete), float(outros_custos), peso_balanca, pedido_id,
                ),
            )
