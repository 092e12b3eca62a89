# hortifruti/usecases/verificar_estoque.py
"""
Caso de uso: consultar o estoque de lotes.

- listar_lotes: lotes com saldo, por validade (sem validade por último).
- lotes_do_produto: lotes com saldo de um produto em ordem FIFO.
- estoque_produto: saldo total de um produto.
- lotes_a_vencer: lotes com validade dentro da janela.
- resumo_estoque: consolidado por produto (total, lotes, validade mais
  próxima e quanto vence dentro da janela de alerta).
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Dict, List, Optional

from hortifruti.config import DB_PATH, DEFAULTS
from hortifruti.infra.repositories import LoteRepo, ParamsRepo, ProdutoRepo


def listar_lotes(db_path: str = DB_PATH) -> List[Dict]:
    return LoteRepo(db_path).listar()


def lotes_do_produto(produto_id: int, db_path: str = DB_PATH) -> List[Dict]:
    return LoteRepo(db_path).por_produto(produto_id)


def estoque_produto(produto_id: int, db_path: str = DB_PATH) -> float:
    return LoteRepo(db_path).total_produto(produto_id)


def dias_alerta(db_path: str = DB_PATH) -> int:
    """Janela de alerta de vencimento (params com fallback para DEFAULTS)."""
    return int(ParamsRepo(db_path).get_float("dias_alerta_vencimento", DEFAULTS.dias_alerta_vencimento))


def lotes_a_vencer(
    dias: Optional[int] = None,
    db_path: str = DB_PATH,
    hoje: Optional[date] = None,
    incluir_vencidos: bool = False,
) -> List[Dict]:
    if dias is None:
        dias = dias_alerta(db_path)
    return LoteRepo(db_path).a_vencer(dias, hoje=hoje, incluir_vencidos=incluir_vencidos)


def resumo_estoque(db_path: str = DB_PATH, hoje: Optional[date] = None) -> List[Dict]:
    """Consolida os lotes com saldo por produto."""
    repo = LoteRepo(db_path)
    lotes = repo.listar()
    vencendo = {l["id"] for l in repo.a_vencer(dias_alerta(db_path), hoje=hoje, incluir_vencidos=True)}
    nomes = {p["id"]: p["nome"] for p in ProdutoRepo(db_path).get_all()}

    resumo: Dict[int, Dict] = {}
    por_produto = defaultdict(list)
    for l in lotes:
        por_produto[l["produto_id"]].append(l)

    for produto_id, itens in por_produto.items():
        validades = [l["data_validade"] for l in itens if l.get("data_validade")]
        resumo[produto_id] = {
            "produto_id": produto_id,
            "produto": nomes.get(produto_id, "Produto"),
            "quantidade_total": sum(float(l["quantidade"]) for l in itens),
            "lotes": len(itens),
            "validade_mais_proxima": min(validades) if validades else None,
            "vencendo": sum(float(l["quantidade"]) for l in itens if l["id"] in vencendo),
        }

    return sorted(resumo.values(), key=lambda r: r["produto"])
