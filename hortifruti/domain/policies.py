"""
Políticas de consumo de lotes e utilidades para o estoque.

Este módulo contém as regras de negócio puras sobre lotes: ordenação
FIFO, planejamento da dedução de uma quantidade entre lotes, ordenação
por validade e filtro de lotes a vencer. As funções aqui expostas são
utilizadas pela camada de aplicação, que busca os lotes no banco e
grava o resultado.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Optional, Tuple


def ordenar_fifo(lotes: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Ordena lotes do recebimento mais antigo para o mais novo.

    Empates em ``recebido_em`` são resolvidos pelo ``id`` (ordem de
    inserção).
    """
    return sorted(
        lotes,
        key=lambda l: (str(l.get("recebido_em") or ""), l.get("id") or 0),
    )


def ordenar_por_validade(lotes: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Ordena por data de validade crescente, lotes sem validade por último."""
    return sorted(
        lotes,
        key=lambda l: (l.get("data_validade") is None, str(l.get("data_validade") or "")),
    )


def planejar_deducao_fifo(
    lotes: Iterable[Dict[str, Any]],
    quantidade: float,
) -> Tuple[List[Dict[str, Any]], float]:
    """Planeja a retirada de ``quantidade`` consumindo os lotes em ordem FIFO.

    Percorre os lotes do mais antigo para o mais novo retirando de cada um
    ``min(lote.quantidade, restante)``. Nenhum lote posterior é tocado
    enquanto os anteriores não estiverem zerados.

    Args:
        lotes: Lotes do produto (dicts com ``id``, ``quantidade`` e
            ``recebido_em``). Lotes com quantidade <= 0 são ignorados.
        quantidade: Quantidade a retirar.

    Returns:
        Uma tupla ``(atualizacoes, restante)``. ``atualizacoes`` é a lista
        de escritas a fazer, cada uma com ``id``, ``quantidade_anterior``,
        ``deduzido`` e ``quantidade`` (o novo valor absoluto). ``restante``
        é o que não pôde ser atendido (0.0 quando a retirada foi completa).
    """
    restante = float(quantidade)
    atualizacoes: List[Dict[str, Any]] = []
    for lote in ordenar_fifo(lotes):
        if restante <= 0:
            break
        qtd_lote = float(lote.get("quantidade") or 0.0)
        if qtd_lote <= 0:
            continue
        deduzir = min(qtd_lote, restante)
        atualizacoes.append(
            {
                "id": lote["id"],
                "quantidade_anterior": qtd_lote,
                "deduzido": deduzir,
                "quantidade": qtd_lote - deduzir,
            }
        )
        restante -= deduzir
    return atualizacoes, max(0.0, restante)


def lotes_a_vencer(
    lotes: Iterable[Dict[str, Any]],
    dias: int,
    hoje: Optional[date] = None,
    incluir_vencidos: bool = False,
) -> List[Dict[str, Any]]:
    """Filtra lotes com saldo cuja validade cai em ``[hoje, hoje + dias]``.

    Com ``incluir_vencidos=True`` lotes já vencidos (validade < hoje)
    também entram. Lotes sem validade nunca entram.
    """
    hoje = hoje or date.today()
    limite = hoje + timedelta(days=int(dias))
    out: List[Dict[str, Any]] = []
    for lote in lotes:
        validade = lote.get("data_validade")
        if not validade or float(lote.get("quantidade") or 0.0) <= 0:
            continue
        d = date.fromisoformat(str(validade)[:10])
        if d > limite:
            continue
        if d < hoje and not incluir_vencidos:
            continue
        out.append(lote)
    return ordenar_por_validade(out)


def itens_sem_estoque(
    itens: Iterable[Tuple[Any, float]],
    estoque_por_produto: Dict[Any, float],
) -> List[Dict[str, Any]]:
    """Lista as linhas cujo acumulado por produto excede o estoque disponível.

    Args:
        itens: Pares ``(produto_id, quantidade)`` na ordem do carrinho.
        estoque_por_produto: Estoque total conhecido de cada produto.

    Returns:
        Um dict por produto em falta com ``produto_id``, ``solicitado`` e
        ``disponivel``.
    """
    solicitado: Dict[Any, float] = {}
    for produto_id, quantidade in itens:
        solicitado[produto_id] = solicitado.get(produto_id, 0.0) + float(quantidade)
    faltas: List[Dict[str, Any]] = []
    for produto_id, total in solicitado.items():
        disponivel = float(estoque_por_produto.get(produto_id, 0.0))
        if total > disponivel:
            faltas.append({"produto_id": produto_id, "solicitado": total, "disponivel": disponivel})
    return faltas
