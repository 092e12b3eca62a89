# hortifruti/usecases/registrar_lote.py
"""
UC: Registrar LOTES de estoque por entrada manual (único e em planilha).

- run_lote_unico(): cria um lote para um produto (por id ou PLU).
- run_lote_planilha(path): lê XLSX/CSV com o adapter e cria um lote por linha.

Obs.:
- Lotes vindos de pedidos de compra são criados no fechamento do pedido
  (usecases.fechamento_pedido), não aqui.
- A validade é opcional; sem ela o lote vai para o fim da lista por validade.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from hortifruti.config import DB_PATH
from hortifruti.adapters.planilhas import load_lotes_from_planilha
from hortifruti.domain.errors import ValidacaoError
from hortifruti.infra.repositories import LoteRepo, ProdutoRepo
from hortifruti.infra.logger import (
    log_transaction, log_lote, log_database_operation,
    log_system_event, log_file_operation,
)


def run_lote_unico(
    produto: Any,
    quantidade: float,
    custo_unitario: float,
    data_validade: Optional[str] = None,
    recebido_em: Optional[str] = None,
    db_path: str = DB_PATH,
) -> Dict[str, Any]:
    """Cria um lote e devolve o registro gravado."""
    log_system_event("lote_unico_start", {"produto": produto})
    try:
        prod = ProdutoRepo(db_path).resolver(produto)
        repo = LoteRepo(db_path)
        lote_id = repo.adicionar(prod["id"], quantidade, custo_unitario, data_validade, recebido_em)
        log_database_operation("lote_estoque", "INSERT", 1, produto_id=prod["id"])
        log_lote("insert", prod["id"], quantidade, lote_id, custo_unitario=custo_unitario)

        rec = repo.get(lote_id)
        log_transaction("lote_unico", {"produto_id": prod["id"], "quantidade": quantidade}, result=lote_id)
        return rec
    except Exception as e:
        log_transaction("lote_unico", {"produto": produto}, error=str(e))
        log_system_event("lote_unico_error", {"error": str(e)}, level="error")
        raise


def run_lote_planilha(path: str, db_path: str = DB_PATH) -> Dict[str, Any]:
    """Lê a planilha de lotes e insere uma linha por lote.

    Linhas inválidas (produto inexistente, quantidade ausente ou <= 0) não
    interrompem a importação: são devolvidas em ``erros`` com o número da
    linha da planilha.
    """
    log_system_event("lote_planilha_start", {"file_path": path})
    log_file_operation("import", path)

    try:
        rows: List[Dict[str, Any]] = load_lotes_from_planilha(path)
        log_file_operation("import", path, rows_processed=len(rows))

        prod_repo = ProdutoRepo(db_path)
        repo = LoteRepo(db_path)
        sucessos = 0
        erros: List[Dict[str, Any]] = []
        for n, row in enumerate(rows, start=2):  # linha 1 = cabeçalho
            try:
                prod = prod_repo.resolver(row["plu"])
                lote_id = repo.adicionar(
                    prod["id"],
                    row.get("quantidade"),
                    row.get("custo_unitario") or 0.0,
                    row.get("data_validade"),
                    row.get("recebido_em"),
                )
                log_lote("batch_insert", prod["id"], row.get("quantidade"), lote_id)
                sucessos += 1
            except ValidacaoError as e:
                erros.append({"linha": n, "mensagem": str(e)})

        log_database_operation("lote_estoque", "INSERT_MANY", sucessos, file_path=path)
        result = {
            "tipo": "Lotes",
            "arquivo": path,
            "total": len(rows),
            "registros": sucessos,
            "sucessos": sucessos,
            "erros": erros,
        }
        log_transaction("lote_planilha", {"file": path, "rows_count": len(rows)}, result=result)
        return result
    except Exception as e:
        log_transaction("lote_planilha", {"file": path}, error=str(e))
        log_system_event("lote_planilha_error", {"file_path": path, "error": str(e)}, level="error")
        raise
