# hortifruti/usecases/deduzir_fifo.py
"""
UC: Deduzir estoque de um produto consumindo os lotes em ordem FIFO.

Fluxo padrão:
1) Busca os lotes com saldo do produto, do recebimento mais antigo ao mais novo.
2) Planeja quanto retirar de cada lote (domain.policies.planejar_deducao_fifo).
3) Grava a nova quantidade de cada lote tocado, uma escrita por vez.
4) Informa se a quantidade pedida foi atendida por completo.

Obs.:
- Não falha por falta de estoque: deduz o que existe e devolve
  ``atendido=False`` com o que ficou faltando. Quem chama decide o que fazer.
- As escritas gravam valores absolutos calculados a partir da leitura do
  passo 1; dois processos simultâneos podem sobrescrever um ao outro.
  Com ``decremento_atomico=True`` cada escrita vira um decremento
  condicional no banco.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from hortifruti.config import DB_PATH
from hortifruti.domain.policies import planejar_deducao_fifo
from hortifruti.infra.repositories import LoteRepo
from hortifruti.infra.logger import log_lote, log_database_operation


@dataclass
class ResultadoDeducao:
    produto_id: int
    solicitado: float
    restante: float
    atualizacoes: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def atendido(self) -> bool:
        return self.restante <= 0

    @property
    def deduzido(self) -> float:
        return self.solicitado - self.restante

    @property
    def primeiro_lote_id(self) -> Optional[int]:
        return self.atualizacoes[0]["id"] if self.atualizacoes else None


def _deduzir_condicional(repo: LoteRepo, produto_id: int, quantidade: float) -> ResultadoDeducao:
    restante = float(quantidade)
    feitas: List[Dict[str, Any]] = []
    for lote in repo.por_produto(produto_id):
        if restante <= 0:
            break
        qtd_lote = float(lote["quantidade"])
        deduzir = min(qtd_lote, restante)
        if not repo.decrementar(lote["id"], deduzir):
            # outro processo mexeu no lote entre a leitura e a escrita: relê uma vez
            atual = repo.get(lote["id"])
            qtd_lote = float(atual["quantidade"]) if atual else 0.0
            deduzir = min(qtd_lote, restante)
            if deduzir <= 0 or not repo.decrementar(lote["id"], deduzir):
                continue
        feitas.append(
            {
                "id": lote["id"],
                "quantidade_anterior": qtd_lote,
                "deduzido": deduzir,
                "quantidade": qtd_lote - deduzir,
            }
        )
        restante -= deduzir
    return ResultadoDeducao(produto_id, float(quantidade), max(0.0, restante), feitas)


def deduzir_fifo(
    produto_id: int,
    quantidade: float,
    db_path: str = DB_PATH,
    conn: Optional[sqlite3.Connection] = None,
    decremento_atomico: bool = False,
) -> ResultadoDeducao:
    """Retira ``quantidade`` do produto, lote mais antigo primeiro."""
    repo = LoteRepo(db_path, conn=conn)

    if decremento_atomico:
        res = _deduzir_condicional(repo, produto_id, quantidade)
    else:
        atualizacoes, restante = planejar_deducao_fifo(repo.por_produto(produto_id), quantidade)
        for upd in atualizacoes:
            repo.definir_quantidade(upd["id"], upd["quantidade"])
        res = ResultadoDeducao(produto_id, float(quantidade), restante, atualizacoes)

    for upd in res.atualizacoes:
        log_lote("deducao_fifo", produto_id, upd["deduzido"], upd["id"], saldo=upd["quantidade"])
    log_database_operation("lote_estoque", "UPDATE", len(res.atualizacoes), produto_id=produto_id)
    if not res.atendido:
        log_lote("deducao_parcial", produto_id, quantidade, faltou=res.restante)

    return res
