# hortifruti/usecases/registrar_quebra.py
"""
UC: Registrar QUEBRA (perda de mercadoria) e consultar as perdas.

Fluxo:
1) Valida motivo e quantidade.
2) Escolhe o lote de origem: o informado ou, na falta dele, o mais antigo
   com saldo (FIFO).
3) Tira um retrato do custo unitário do lote (0 se não houver lote).
4) Grava a nova quantidade do lote: max(0, saldo - quantidade).
5) Insere a quebra com custo_unitario e total_perda congelados.

Obs.:
- Sem lote com saldo a quebra é registrada assim mesmo, com custo 0.
- Os passos 4 e 5 são escritas separadas; com ``atomico=True`` rodam numa
  única transação.
"""

from __future__ import annotations

import sqlite3
from contextlib import nullcontext
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from hortifruti.config import DB_PATH, DEFAULTS
from hortifruti.domain.errors import ValidacaoError
from hortifruti.domain.models import MOTIVOS_QUEBRA, Quebra
from hortifruti.infra.db import transacao
from hortifruti.infra.repositories import LoteRepo, ParamsRepo, ProdutoRepo, QuebraRepo
from hortifruti.infra.logger import (
    log_transaction, log_quebra, log_database_operation, log_system_event,
)


def _validar(produto_id: int, quantidade: float, motivo: str, conn: Optional[sqlite3.Connection], db_path: str) -> None:
    if motivo not in MOTIVOS_QUEBRA:
        raise ValidacaoError(
            f"Motivo inválido: {motivo!r}. Use um de: {', '.join(MOTIVOS_QUEBRA)}"
        )
    if quantidade is None or float(quantidade) <= 0:
        raise ValidacaoError("Quantidade da quebra deve ser maior que zero")
    if ProdutoRepo(db_path, conn=conn).get(produto_id) is None:
        raise ValidacaoError(f"Produto não encontrado: {produto_id}")


def _lote_origem(
    repo: LoteRepo, produto_id: int, lote_id: Optional[int]
) -> Optional[Dict[str, Any]]:
    if lote_id is None:
        lotes = repo.por_produto(produto_id)
        return lotes[0] if lotes else None
    lote = repo.get(lote_id)
    if lote is None:
        raise ValidacaoError(f"Lote não encontrado: {lote_id}")
    if lote["produto_id"] != produto_id:
        raise ValidacaoError(f"Lote {lote_id} não pertence ao produto {produto_id}")
    return lote


def registrar_quebra(
    produto_id: int,
    quantidade: float,
    motivo: str,
    lote_id: Optional[int] = None,
    observacao: Optional[str] = None,
    db_path: str = DB_PATH,
    atomico: bool = False,
) -> Dict[str, Any]:
    """Registra a perda e baixa o saldo do lote de origem.

    Returns:
        A quebra gravada (dict da tabela ``quebra``).

    Raises:
        ValidacaoError: motivo desconhecido, quantidade <= 0, produto
            inexistente ou lote de outro produto.
    """
    payload = {"produto_id": produto_id, "quantidade": quantidade, "motivo": motivo, "lote_id": lote_id}
    try:
        with (transacao(db_path) if atomico else nullcontext()) as conn:
            _validar(produto_id, quantidade, motivo, conn, db_path)
            lotes = LoteRepo(db_path, conn=conn)
            quebras = QuebraRepo(db_path, conn=conn)

            lote = _lote_origem(lotes, produto_id, lote_id)
            custo = float(lote["custo_unitario"]) if lote else 0.0
            qtd = float(quantidade)

            if lote:
                novo_saldo = max(0.0, float(lote["quantidade"]) - qtd)
                lotes.definir_quantidade(lote["id"], novo_saldo)
                origem_id = lote["id"]
                log_database_operation("lote_estoque", "UPDATE", 1, lote_id=lote["id"], saldo=novo_saldo)
            else:
                origem_id = None
                log_quebra("sem_lote", produto_id, qtd)

            quebra_id = quebras.inserir(
                Quebra(
                    produto_id=produto_id,
                    quantidade=qtd,
                    custo_unitario=custo,
                    total_perda=qtd * custo,
                    motivo=motivo,
                    lote_id=origem_id,
                    observacao=observacao,
                )
            )
            log_database_operation("quebra", "INSERT", 1, produto_id=produto_id)
            rec = quebras.get(quebra_id)

        log_quebra("insert", produto_id, qtd, origem_id, motivo=motivo, total_perda=rec["total_perda"])
        log_transaction("quebra", payload, result=quebra_id)
        return rec
    except Exception as e:
        log_transaction("quebra", payload, error=str(e))
        log_system_event("quebra_error", {"error": str(e)}, level="error")
        raise


def listar_quebras(db_path: str = DB_PATH) -> List[Dict[str, Any]]:
    return QuebraRepo(db_path).listar()


def total_perdas(db_path: str = DB_PATH) -> float:
    return QuebraRepo(db_path).total_perdas()


def quebras_recentes(dias: Optional[int] = None, db_path: str = DB_PATH) -> List[Dict[str, Any]]:
    """Quebras dos últimos ``dias`` (params ``dias_quebras_recentes``, padrão 7)."""
    if dias is None:
        dias = int(ParamsRepo(db_path).get_float("dias_quebras_recentes", DEFAULTS.dias_quebras_recentes))
    desde = (datetime.now() - timedelta(days=int(dias))).isoformat(timespec="microseconds")
    return QuebraRepo(db_path).listar(desde=desde)
