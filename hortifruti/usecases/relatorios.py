# hortifruti/usecases/relatorios.py
"""
Relatórios do painel do hortifruti.

- relatorio_vencimentos: lotes que vencem dentro da janela de alerta.
- relatorio_estoque_baixo: produtos ativos com estoque <= estoque mínimo.
- relatorio_quebras: quebras recentes e o total perdido.
- relatorio_vendas_dia: vendas do dia, faturamento, custo real e lucro.
- relatorio_fechamento: itens de um pedido recebido com custo/kg, preço/kg,
  margem e a margem média ponderada.

Todos devolvem dicionários/listas prontos para exibição (a CLI monta as
tabelas com Rich).
"""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Any, Dict, List, Optional

from hortifruti.config import DB_PATH
from hortifruti.domain.errors import ValidacaoError
from hortifruti.domain.formulas import margem_media_ponderada
from hortifruti.domain.models import MOTIVOS_QUEBRA
from hortifruti.infra.db import connect
from hortifruti.infra.repositories import PedidoCompraRepo, VendaRepo
from hortifruti.usecases.registrar_quebra import quebras_recentes
from hortifruti.usecases.verificar_estoque import lotes_a_vencer


def relatorio_vencimentos(
    dias: Optional[int] = None,
    db_path: str = DB_PATH,
    hoje: Optional[date] = None,
    incluir_vencidos: bool = True,
) -> List[Dict[str, Any]]:
    """Lotes a vencer, com os dias restantes (negativo = já vencido)."""
    hoje = hoje or date.today()
    out = []
    for l in lotes_a_vencer(dias, db_path=db_path, hoje=hoje, incluir_vencidos=incluir_vencidos):
        validade = date.fromisoformat(str(l["data_validade"])[:10])
        out.append({**l, "dias_restantes": (validade - hoje).days})
    return out


def relatorio_estoque_baixo(db_path: str = DB_PATH) -> List[Dict[str, Any]]:
    with connect(db_path) as c:
        rows = c.execute(
            """
            SELECT produto_id, plu, nome, estoque_total, estoque_minimo, lotes_ativos
            FROM vw_estoque_consolidado
            WHERE ativo = 1 AND estoque_total <= estoque_minimo
            ORDER BY nome
            """
        ).fetchall()
    return [dict(r) for r in rows]


def relatorio_quebras(dias: Optional[int] = None, db_path: str = DB_PATH) -> Dict[str, Any]:
    quebras = quebras_recentes(dias, db_path=db_path)
    por_motivo: Dict[str, float] = {}
    for q in quebras:
        rotulo = MOTIVOS_QUEBRA.get(q["motivo"], q["motivo"])
        por_motivo[rotulo] = por_motivo.get(rotulo, 0.0) + float(q["total_perda"])
    return {
        "quebras": quebras,
        "total_perda": sum(float(q["total_perda"]) for q in quebras),
        "por_motivo": por_motivo,
    }


def relatorio_vendas_dia(dia: Optional[date] = None, db_path: str = DB_PATH) -> Dict[str, Any]:
    """Faturamento e lucro real do dia.

    O custo de cada item vem do lote de origem gravado na venda
    (quantidade * custo_unitario do lote); itens sem lote entram com custo 0.
    """
    dia = dia or date.today()
    desde = datetime.combine(dia, time.min).isoformat(timespec="microseconds")
    ate = datetime.combine(dia, time.max).isoformat(timespec="microseconds")

    repo = VendaRepo(db_path)
    vendas = [v for v in repo.listar(desde=desde) if v["criado_em"] <= ate]
    ids = {v["id"] for v in vendas}
    itens = [i for i in repo.itens_com_custo(desde) if i["venda_id"] in ids]

    faturamento = sum(float(v["total"]) for v in vendas)
    custo = sum(float(i["quantidade"]) * float(i["custo_unitario"]) for i in itens)
    return {
        "dia": dia.isoformat(),
        "vendas": len(vendas),
        "itens": len(itens),
        "faturamento": round(faturamento, 2),
        "custo_real": round(custo, 2),
        "lucro_real": round(faturamento - custo, 2),
    }


def relatorio_fechamento(pedido_id: int, db_path: str = DB_PATH) -> Dict[str, Any]:
    """Relatório de fechamento de um pedido já recebido."""
    pedido = PedidoCompraRepo(db_path).get(pedido_id)
    if pedido is None:
        raise ValidacaoError(f"Pedido não encontrado: {pedido_id}")
    if pedido["status"] not in ("recebido", "fechado"):
        raise ValidacaoError(f"Pedido {pedido_id} ainda não foi recebido")

    itens = [
        {
            "produto": i["produto"],
            "quantidade_recebida": i["quantidade_recebida"],
            "peso_liquido": float(i["peso_liquido"] or 0.0),
            "custo_real_kg": float(i["custo_real_kg"] or 0.0),
            "preco_venda": float(i["preco_venda"] or 0.0),
            "margem": float(i["margem"] or 0.0),
        }
        for i in pedido["itens"]
    ]
    return {
        "pedido_id": pedido_id,
        "fornecedor": pedido["fornecedor"],
        "recebido_em": pedido["recebido_em"],
        "total_recebido": pedido["total_recebido"],
        "valor_frete": pedido["valor_frete"],
        "outros_custos": pedido["outros_custos"],
        "observacoes": pedido["observacoes"],
        "itens": itens,
        "margem_media": margem_media_ponderada((i["margem"], i["peso_liquido"]) for i in itens),
    }
