# hortifruti/usecases/fechamento_pedido.py
"""
UC: Fechamento (recebimento) de um PEDIDO DE COMPRA com precificação.

A sessão ``FechamentoPedido`` guarda só o que o usuário digitou (recebido,
custo real, tara, frete, outros custos, peso da balança e a última edição de
margem OU preço de cada item). Tudo o mais é projetado de novo a cada
leitura de ``itens``:

    peso_bruto   = recebido * (peso_nota / pedido)   (peso_nota sem recebido)
    peso_liquido = max(0.1, peso_bruto - tara)
    taxa_kg      = (frete + outros) / soma(peso_liquido)
    custo_real   = (recebido * custo) / peso_liquido + taxa_kg
    preco        = custo_real / (1 - margem/100)

Aprovação (``aprovar``), nesta ordem e só a partir de 'enviado':
1) Itens: recebido, custo real e a projeção de preço.
2) Produtos: preço de venda e custo de compra dos itens que geram lote
   (item não recebido mantém o preço atual).
3) Lotes: um por item recebido com peso líquido real (bruto - tara > 0),
   validade = data do recebimento + shelf life do produto.
4) Pedido: status 'recebido', total recebido, data e observações.

Obs.:
- Sem ``atomico=True`` cada passo grava por conta própria; uma falha no
  meio deixa os passos anteriores gravados (e o erro é propagado).
"""

from __future__ import annotations

from contextlib import nullcontext
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

from hortifruti.config import DB_PATH, DEFAULTS
from hortifruti.domain import formulas as f
from hortifruti.domain.errors import ValidacaoError
from hortifruti.infra.db import transacao
from hortifruti.infra.repositories import LoteRepo, ParamsRepo, PedidoCompraRepo, ProdutoRepo
from hortifruti.infra.logger import (
    log_transaction, log_recebimento, log_lote, log_database_operation, log_system_event,
)


@dataclass
class ProjecaoItem:
    """Projeção de preço de um item (transitória até a aprovação)."""
    item_id: int
    produto_id: int
    produto: str
    qtd_volumes: float
    quantidade_recebida: float
    custo_unitario: float
    tara_total: float
    peso_bruto: float
    peso_liquido: float
    custo_total: float
    custo_real_kg: float
    margem: float
    preco_venda: float

    @property
    def gera_lote(self) -> bool:
        return self.quantidade_recebida > 0 and (self.peso_bruto - self.tara_total) > 0


class FechamentoPedido:
    """Sessão de fechamento de um pedido enviado."""

    def __init__(self, pedido_id: int, db_path: str = DB_PATH):
        self.db_path = db_path
        pedido = PedidoCompraRepo(db_path).get(pedido_id)
        if pedido is None:
            raise ValidacaoError(f"Pedido não encontrado: {pedido_id}")
        self.pedido = pedido
        self.pedido_id = pedido_id

        params = ParamsRepo(db_path)
        self.margem_padrao = params.get_float("margem_padrao", DEFAULTS.margem_padrao)
        self.shelf_life_padrao = int(params.get_float("shelf_life_padrao_dias", DEFAULTS.shelf_life_padrao_dias))
        self.tolerancia_peso = params.get_float("tolerancia_peso", DEFAULTS.tolerancia_peso)

        self.frete = 0.0
        self.outros_custos = 0.0
        self.descricao_custos = ""
        self.peso_balanca: Optional[float] = None

        self._itens = {i["id"]: i for i in pedido["itens"]}
        self._recebido: Dict[int, float] = {}
        self._custo: Dict[int, float] = {}
        self._tara: Dict[int, float] = {}
        # item_id -> ("margem" | "preco", valor digitado)
        self._edicao: Dict[int, Tuple[str, float]] = {}

    # -------------------------
    # Entradas do usuário
    # -------------------------

    def _item(self, item_id: int) -> Dict[str, Any]:
        if item_id not in self._itens:
            raise ValidacaoError(f"Item {item_id} não pertence ao pedido {self.pedido_id}")
        return self._itens[item_id]

    @staticmethod
    def _nao_negativo(valor: float, campo: str) -> float:
        if valor is None or float(valor) < 0:
            raise ValidacaoError(f"{campo} não pode ser negativo")
        return float(valor)

    def definir_recebido(self, item_id: int, quantidade: float) -> None:
        self._item(item_id)
        self._recebido[item_id] = self._nao_negativo(quantidade, "Quantidade recebida")

    def definir_custo_real(self, item_id: int, custo_unitario: float) -> None:
        self._item(item_id)
        self._custo[item_id] = self._nao_negativo(custo_unitario, "Custo unitário")

    def definir_tara(self, item_id: int, tara_total: float) -> None:
        self._item(item_id)
        self._tara[item_id] = self._nao_negativo(tara_total, "Tara")

    def definir_margem(self, item_id: int, margem: float) -> None:
        self._item(item_id)
        self._edicao[item_id] = ("margem", float(margem))

    def definir_preco(self, item_id: int, preco: float) -> None:
        self._item(item_id)
        self._edicao[item_id] = ("preco", self._nao_negativo(preco, "Preço"))

    def definir_frete(self, valor: float) -> None:
        self.frete = self._nao_negativo(valor, "Frete")

    def definir_outros_custos(self, valor: float, descricao: str = "") -> None:
        self.outros_custos = self._nao_negativo(valor, "Outros custos")
        self.descricao_custos = descricao or ""

    def definir_peso_balanca(self, peso_kg: Optional[float]) -> None:
        self.peso_balanca = None if not peso_kg else self._nao_negativo(peso_kg, "Peso da balança")

    # -------------------------
    # Projeção
    # -------------------------

    def _margem_preco(self, item_id: int, custo_real: float, preco_atual: float) -> Tuple[float, float]:
        """Deriva (margem, preço) da última edição; o outro campo é sempre calculado."""
        campo, valor = self._edicao.get(item_id, (None, None))
        if campo == "preco":
            margem = f.margem_por_preco(custo_real, valor)
            if margem != f.limitar_margem(margem):
                margem = f.limitar_margem(margem)
                preco = f.preco_por_margem(custo_real, margem)
            else:
                preco = valor
        else:
            if campo == "margem":
                margem = f.limitar_margem(valor)
            elif preco_atual > custo_real:
                margem = f.limitar_margem(f.margem_por_preco(custo_real, preco_atual))
            else:
                margem = f.limitar_margem(self.margem_padrao)
            preco = f.preco_por_margem(custo_real, margem)
        return round(margem, 1), round(preco, 2)

    @property
    def itens(self) -> List[ProjecaoItem]:
        brutos = []
        for item_id, i in self._itens.items():
            recebido = self._recebido.get(item_id)
            tara = self._tara.get(item_id, float(i.get("tara_total") or 0.0))
            bruto = f.peso_bruto_item(i.get("peso_estimado_kg") or 0.0, i["quantidade"], recebido)
            brutos.append((item_id, i, recebido, tara, bruto, f.peso_liquido(bruto, tara)))

        taxa = f.taxa_custo_por_kg(self.frete, self.outros_custos, [b[5] for b in brutos])

        out: List[ProjecaoItem] = []
        for item_id, i, recebido, tara, bruto, liquido in brutos:
            qtd = float(i["quantidade"]) if recebido is None else recebido
            custo = self._custo.get(item_id)
            if custo is None:
                custo = float(i.get("custo_unitario_real") or i.get("custo_unitario_estimado") or 0.0)
            custo_real = f.custo_real_kg(f.custo_base_unitario(qtd, custo, liquido), taxa)
            margem, preco = self._margem_preco(item_id, custo_real, float(i.get("produto_preco") or 0.0))
            out.append(
                ProjecaoItem(
                    item_id=item_id,
                    produto_id=i["produto_id"],
                    produto=i.get("produto") or "",
                    qtd_volumes=qtd,
                    quantidade_recebida=qtd,
                    custo_unitario=custo,
                    tara_total=tara,
                    peso_bruto=bruto,
                    peso_liquido=liquido,
                    custo_total=qtd * custo,
                    custo_real_kg=custo_real,
                    margem=margem,
                    preco_venda=preco,
                )
            )
        return out

    def peso_nota(self) -> float:
        return sum(float(i.get("peso_estimado_kg") or 0.0) for i in self._itens.values())

    def divergencia(self) -> Optional[dict]:
        return f.divergencia_peso(self.peso_nota(), self.peso_balanca, self.tolerancia_peso)

    def margem_media_ponderada(self, itens: Optional[List[ProjecaoItem]] = None) -> float:
        itens = self.itens if itens is None else itens
        return f.margem_media_ponderada((p.margem, p.peso_liquido) for p in itens)

    def resumo(self) -> Dict[str, Any]:
        itens = self.itens
        valor_produtos = sum(p.custo_total for p in itens)
        return {
            "pedido_id": self.pedido_id,
            "fornecedor": self.pedido.get("fornecedor"),
            "volumes": sum(p.qtd_volumes for p in itens),
            "valor_produtos": valor_produtos,
            "peso_nota": self.peso_nota(),
            "peso_liquido": sum(p.peso_liquido for p in itens),
            "frete": self.frete,
            "outros_custos": self.outros_custos,
            "valor_total": valor_produtos + self.frete + self.outros_custos,
            "margem_media": self.margem_media_ponderada(itens),
            "divergencia": self.divergencia(),
        }

    def observacoes(self) -> str:
        partes = [f"Frete: R$ {self.frete:.2f}"]
        outros = f"Outros: R$ {self.outros_custos:.2f}"
        if self.descricao_custos:
            outros += f" ({self.descricao_custos})"
        partes.append(outros)
        if self.peso_balanca:
            partes.append(f"Peso balança: {self.peso_balanca:.1f} kg")
        return " | ".join(partes)

    # -------------------------
    # Aprovação
    # -------------------------

    def aprovar(self, atomico: bool = False, recebido_em: Optional[datetime] = None) -> Dict[str, Any]:
        """Grava o fechamento (itens, produtos, lotes e pedido, nessa ordem).

        Returns:
            ``{"pedido_id", "total_recebido", "lotes", "margem_media"}``.

        Raises:
            ValidacaoError: pedido fora do status 'enviado'.
        """
        payload = {"pedido_id": self.pedido_id, "atomico": atomico}
        log_system_event("fechamento_start", payload)
        try:
            atual = PedidoCompraRepo(self.db_path).get(self.pedido_id)
            if atual is None or atual["status"] != "enviado":
                status = atual["status"] if atual else None
                raise ValidacaoError(
                    f"Pedido {self.pedido_id} está '{status}'; só pedidos enviados podem ser fechados"
                )

            itens = self.itens
            quando = recebido_em or datetime.now()
            dia: date = quando.date()
            total_recebido = sum(p.custo_total for p in itens) + self.frete + self.outros_custos
            lotes_criados: List[int] = []

            with (transacao(self.db_path) if atomico else nullcontext()) as conn:
                pedidos = PedidoCompraRepo(self.db_path, conn=conn)
                produtos = ProdutoRepo(self.db_path, conn=conn)
                lotes = LoteRepo(self.db_path, conn=conn)

                # 1) itens
                for p in itens:
                    pedidos.atualizar_item_recebimento(
                        p.item_id,
                        p.quantidade_recebida,
                        p.custo_unitario,
                        tara_total=p.tara_total,
                        projecao={
                            "peso_liquido": p.peso_liquido,
                            "custo_real_kg": p.custo_real_kg,
                            "preco_venda": p.preco_venda,
                            "margem": p.margem,
                        },
                    )
                log_database_operation("pedido_compra_item", "UPDATE", len(itens), pedido_id=self.pedido_id)

                # 2) produtos (só os que entram no estoque)
                recebidos = [p for p in itens if p.gera_lote]
                for p in recebidos:
                    produtos.atualizar_preco_custo(p.produto_id, p.preco_venda, p.custo_real_kg)
                    log_recebimento("preco", self.pedido_id, produto_id=p.produto_id,
                                    preco=p.preco_venda, custo=p.custo_real_kg, margem=p.margem)
                log_database_operation("produto", "UPDATE", len(recebidos), pedido_id=self.pedido_id)

                # 3) lotes
                for p in itens:
                    if not p.gera_lote:
                        continue
                    shelf = int(self._itens[p.item_id].get("produto_shelf_life") or self.shelf_life_padrao)
                    lote_id = lotes.adicionar(
                        p.produto_id,
                        p.peso_liquido,
                        p.custo_real_kg,
                        data_validade=(dia + timedelta(days=shelf)).isoformat(),
                        recebido_em=quando.isoformat(timespec="microseconds"),
                    )
                    lotes_criados.append(lote_id)
                    log_lote("recebimento", p.produto_id, p.peso_liquido, lote_id, pedido_id=self.pedido_id)
                log_database_operation("lote_estoque", "INSERT", len(lotes_criados), pedido_id=self.pedido_id)

                # 4) pedido
                pedidos.finalizar_recebimento(
                    self.pedido_id,
                    total_recebido,
                    self.observacoes(),
                    status="recebido",
                    recebido_em=quando.isoformat(timespec="microseconds"),
                    valor_frete=self.frete,
                    outros_custos=self.outros_custos,
                    peso_balanca=self.peso_balanca,
                )
                log_database_operation("pedido_compra", "UPDATE", 1, pedido_id=self.pedido_id)

            result = {
                "pedido_id": self.pedido_id,
                "total_recebido": total_recebido,
                "lotes": lotes_criados,
                "margem_media": self.margem_media_ponderada(itens),
            }
            log_recebimento("aprovado", self.pedido_id, total_recebido=total_recebido, lotes=len(lotes_criados))
            log_transaction("fechamento_pedido", payload, result=result)
            return result
        except Exception as e:
            log_transaction("fechamento_pedido", payload, error=str(e))
            log_system_event("fechamento_error", {"pedido_id": self.pedido_id, "error": str(e)}, level="error")
            raise
