# hortifruti/usecases/registrar_venda.py
"""
UC: Registrar VENDA do PDV com baixa FIFO do estoque.

Fluxo (registrar_venda):
1) Valida o carrinho (não vazio, quantidade > 0, preço >= 0).
2) Insere a venda com total = soma dos itens e a contagem de itens.
3) Insere os itens da venda.
4) Para cada item, na ordem do carrinho, deduz o estoque em FIFO e grava no
   item o primeiro lote tocado (usado no custo real do relatório do dia).

Obs.:
- A venda NUNCA é bloqueada por falta de estoque: o que faltar fica
  registrado no resultado (``atendido=False`` no item).
- ``verificar_disponibilidade`` é a checagem prévia do caixa; entre ela e o
  registro outro caixa pode vender o mesmo produto.
- Com ``atomico=True`` os passos 2 a 4 rodam numa única transação.
"""

from __future__ import annotations

from contextlib import nullcontext
from typing import Any, Dict, Iterable, List, Optional, Sequence

from hortifruti.config import DB_PATH
from hortifruti.domain.errors import ValidacaoError
from hortifruti.domain.models import ItemCarrinho
from hortifruti.domain.policies import itens_sem_estoque
from hortifruti.adapters.parsers import parse_ean13_balanca, validar_ean13
from hortifruti.infra.db import transacao
from hortifruti.infra.repositories import LoteRepo, ProdutoRepo, VendaRepo
from hortifruti.usecases.deduzir_fifo import deduzir_fifo
from hortifruti.infra.logger import (
    log_transaction, log_venda, log_database_operation, log_system_event,
)


# -------------------------
# Montagem do carrinho
# -------------------------

def item_por_plu(
    plu: str,
    quantidade: float,
    preco_unitario: Optional[float] = None,
    db_path: str = DB_PATH,
) -> ItemCarrinho:
    """Monta um item do carrinho pelo PLU; sem preço usa o preço do cadastro."""
    prod = ProdutoRepo(db_path).get_por_plu(str(plu))
    if prod is None:
        raise ValidacaoError(f"Produto não encontrado para o PLU {plu}")
    preco = float(prod["preco"]) if preco_unitario is None else float(preco_unitario)
    return ItemCarrinho(produto_id=prod["id"], quantidade=float(quantidade), preco_unitario=preco)


def item_por_codigo_barras(codigo: str, db_path: str = DB_PATH) -> ItemCarrinho:
    """Converte uma etiqueta EAN-13 de balança em item do carrinho."""
    if not validar_ean13(codigo):
        raise ValidacaoError(f"Código de barras inválido: {codigo}")
    lido = parse_ean13_balanca(codigo)
    if lido is None:
        raise ValidacaoError(f"Código {codigo} não é uma etiqueta de balança")
    plu, peso_kg = lido
    prod = ProdutoRepo(db_path).get_por_plu(plu)
    if prod is None:
        # cadastros antigos guardam o PLU sem zeros à esquerda
        prod = ProdutoRepo(db_path).get_por_plu(plu.lstrip("0"))
    if prod is None:
        raise ValidacaoError(f"Produto não encontrado para o PLU {plu}")
    return ItemCarrinho(produto_id=prod["id"], quantidade=peso_kg, preco_unitario=float(prod["preco"]))


# -------------------------
# Checagem e registro
# -------------------------

def _validar_carrinho(itens: Sequence[ItemCarrinho]) -> None:
    if not itens:
        raise ValidacaoError("Carrinho vazio")
    for i in itens:
        if float(i.quantidade) <= 0:
            raise ValidacaoError(f"Quantidade inválida para o produto {i.produto_id}")
        if float(i.preco_unitario) < 0:
            raise ValidacaoError(f"Preço inválido para o produto {i.produto_id}")


def verificar_disponibilidade(itens: Iterable[ItemCarrinho], db_path: str = DB_PATH) -> List[Dict[str, Any]]:
    """Produtos do carrinho cuja quantidade supera o estoque total (vazio = tudo ok)."""
    itens = list(itens)
    repo = LoteRepo(db_path)
    estoque = {i.produto_id: repo.total_produto(i.produto_id) for i in itens}
    return itens_sem_estoque([(i.produto_id, i.quantidade) for i in itens], estoque)


def registrar_venda(
    itens: Sequence[ItemCarrinho],
    db_path: str = DB_PATH,
    atomico: bool = False,
    decremento_atomico: bool = False,
) -> Dict[str, Any]:
    """Grava a venda, seus itens e baixa o estoque em FIFO.

    Returns:
        ``{"venda_id", "total", "itens_count", "itens": [...], "atendida"}``
        onde cada item traz ``produto_id``, ``quantidade``, ``deduzido``,
        ``faltou``, ``lote_id`` e ``atendido``.
    """
    itens = list(itens)
    payload = {"itens": len(itens)}
    try:
        _validar_carrinho(itens)
        # cada item em centavos; o cabeçalho é a soma desses valores
        totais = [round(float(i.total), 2) for i in itens]
        total = round(sum(totais), 2)

        with (transacao(db_path) if atomico else nullcontext()) as conn:
            repo = VendaRepo(db_path, conn=conn)
            venda_id = repo.inserir_venda(total, len(itens))
            log_database_operation("venda", "INSERT", 1, venda_id=venda_id)

            item_ids = [
                repo.inserir_item(
                    venda_id,
                    {"produto_id": i.produto_id, "quantidade": i.quantidade,
                     "preco_unitario": i.preco_unitario, "total": t},
                )
                for i, t in zip(itens, totais)
            ]
            log_database_operation("venda_item", "INSERT", len(item_ids), venda_id=venda_id)

            resultados: List[Dict[str, Any]] = []
            for item_id, item in zip(item_ids, itens):
                res = deduzir_fifo(
                    item.produto_id,
                    item.quantidade,
                    db_path=db_path,
                    conn=conn,
                    decremento_atomico=decremento_atomico,
                )
                if res.primeiro_lote_id is not None:
                    repo.definir_lote_item(item_id, res.primeiro_lote_id)
                log_venda(
                    "item", item.produto_id, item.quantidade, res.primeiro_lote_id,
                    venda_id=venda_id, atendido=res.atendido,
                )
                resultados.append(
                    {
                        "item_id": item_id,
                        "produto_id": item.produto_id,
                        "quantidade": float(item.quantidade),
                        "deduzido": res.deduzido,
                        "faltou": res.restante,
                        "lote_id": res.primeiro_lote_id,
                        "atendido": res.atendido,
                    }
                )

        result = {
            "venda_id": venda_id,
            "total": total,
            "itens_count": len(itens),
            "itens": resultados,
            "atendida": all(r["atendido"] for r in resultados),
        }
        if not result["atendida"]:
            log_system_event(
                "venda_sem_estoque",
                {"venda_id": venda_id, "produtos": [r["produto_id"] for r in resultados if not r["atendido"]]},
                level="warning",
            )
        log_transaction("venda", payload, result={"venda_id": venda_id, "total": total})
        return result
    except Exception as e:
        log_transaction("venda", payload, error=str(e))
        log_system_event("venda_error", {"error": str(e)}, level="error")
        raise
