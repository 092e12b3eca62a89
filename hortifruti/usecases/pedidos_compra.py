# hortifruti/usecases/pedidos_compra.py
"""
UC: Criar e enviar PEDIDOS DE COMPRA ao fornecedor.

- criar_pedido(): itens informados por PLU (ou produto_id), status 'rascunho'.
- importar_pedido(path): mesmos itens lidos de uma planilha XLSX/CSV.
- enviar_pedido(): 'rascunho' -> 'enviado'; só pedidos enviados podem ser
  fechados no recebimento (usecases.fechamento_pedido).
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from hortifruti.config import DB_PATH
from hortifruti.adapters.planilhas import load_itens_pedido_from_planilha
from hortifruti.domain.errors import ValidacaoError
from hortifruti.infra.repositories import PedidoCompraRepo, ProdutoRepo
from hortifruti.infra.logger import (
    log_transaction, log_recebimento, log_database_operation,
    log_system_event, log_file_operation,
)


def _resolver_itens(itens: Iterable[Dict[str, Any]], db_path: str) -> List[Dict[str, Any]]:
    prod_repo = ProdutoRepo(db_path)
    out: List[Dict[str, Any]] = []
    for n, item in enumerate(itens, start=1):
        prod = None
        if item.get("produto_id") is not None:
            prod = prod_repo.get(int(item["produto_id"]))
        elif item.get("plu"):
            prod = prod_repo.get_por_plu(str(item["plu"]))
        if prod is None:
            raise ValidacaoError(f"Item {n}: produto não encontrado ({item.get('plu') or item.get('produto_id')})")
        qtd = item.get("quantidade")
        if qtd is None or float(qtd) <= 0:
            raise ValidacaoError(f"Item {n}: quantidade deve ser maior que zero")
        peso = item.get("peso_estimado_kg")
        if peso is not None and float(peso) < 0:
            raise ValidacaoError(f"Item {n}: peso não pode ser negativo")
        out.append(
            {
                "produto_id": prod["id"],
                "quantidade": float(qtd),
                "unidade": item.get("unidade"),
                "peso_estimado_kg": float(peso or 0.0),
                "custo_unitario_estimado": item.get("custo_unitario_estimado"),
                "tara_total": float(item.get("tara_total") or 0.0),
            }
        )
    if not out:
        raise ValidacaoError("Pedido sem itens")
    return out


def criar_pedido(
    fornecedor: Optional[str],
    itens: Iterable[Dict[str, Any]],
    observacoes: Optional[str] = None,
    db_path: str = DB_PATH,
) -> Dict[str, Any]:
    """Cria o pedido em rascunho e devolve o registro com os itens."""
    try:
        resolvidos = _resolver_itens(itens, db_path)
        repo = PedidoCompraRepo(db_path)
        pedido_id = repo.criar(fornecedor, resolvidos, observacoes)
        log_database_operation("pedido_compra", "INSERT", 1, pedido_id=pedido_id, itens=len(resolvidos))
        log_recebimento("criado", pedido_id, fornecedor=fornecedor, itens=len(resolvidos))
        log_transaction("pedido_criar", {"fornecedor": fornecedor, "itens": len(resolvidos)}, result=pedido_id)
        return repo.get(pedido_id)
    except Exception as e:
        log_transaction("pedido_criar", {"fornecedor": fornecedor}, error=str(e))
        log_system_event("pedido_criar_error", {"error": str(e)}, level="error")
        raise


def importar_pedido(
    path: str,
    fornecedor: Optional[str] = None,
    observacoes: Optional[str] = None,
    db_path: str = DB_PATH,
) -> Dict[str, Any]:
    """Cria um pedido com os itens de uma planilha."""
    log_system_event("pedido_planilha_start", {"file_path": path})
    rows = load_itens_pedido_from_planilha(path)
    log_file_operation("import", path, rows_processed=len(rows))
    return criar_pedido(fornecedor, rows, observacoes, db_path=db_path)


def enviar_pedido(pedido_id: int, db_path: str = DB_PATH) -> Dict[str, Any]:
    repo = PedidoCompraRepo(db_path)
    pedido = repo.get(pedido_id)
    if pedido is None:
        raise ValidacaoError(f"Pedido não encontrado: {pedido_id}")
    if pedido["status"] != "rascunho":
        raise ValidacaoError(f"Pedido {pedido_id} está '{pedido['status']}'; só rascunhos podem ser enviados")
    repo.atualizar_status(pedido_id, "enviado")
    log_recebimento("enviado", pedido_id)
    return repo.get(pedido_id)


def obter_pedido(pedido_id: int, db_path: str = DB_PATH) -> Dict[str, Any]:
    pedido = PedidoCompraRepo(db_path).get(pedido_id)
    if pedido is None:
        raise ValidacaoError(f"Pedido não encontrado: {pedido_id}")
    return pedido


def listar_pedidos(status: Optional[str] = None, db_path: str = DB_PATH) -> List[Dict[str, Any]]:
    return PedidoCompraRepo(db_path).listar(status)
