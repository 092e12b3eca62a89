# hortifruti/domain/models.py
"""
Modelos (dataclasses) do domínio.

Observação importante:
- Os repositórios devolvem dicionários; as dataclasses servem para
  tipagem/clareza nos casos de uso e nos testes. Use-as quando fizer sentido.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


# Motivos de quebra e seus rótulos de exibição
MOTIVOS_QUEBRA = {
    "vencido": "Amadureceu Demais",
    "danificado": "Veio Estragado do Fornecedor",
    "furto": "Furto",
    "erro_operacional": "Erro Operacional",
    "outro": "Outro",
}

# Status do pedido de compra
STATUS_PEDIDO = {
    "rascunho": "Rascunho",
    "enviado": "Enviado",
    "recebido": "Recebido",
    "cancelado": "Cancelado",
    "fechado": "Fechado",
}


@dataclass
class Produto:
    """Cadastro de produto."""
    plu: str
    nome: str
    categoria: str = "outros"            # frutas | verduras | legumes | temperos | outros
    unidade: str = "kg"
    preco: float = 0.0
    custo_compra: float = 0.0
    estoque_minimo: float = 0.0
    shelf_life: int = 7                  # dias
    ativo: int = 1                       # 0/1
    id: Optional[int] = None


@dataclass
class Quebra:
    """Perda registrada. `custo_unitario` é um retrato do lote no momento da escrita."""
    produto_id: int
    quantidade: float
    custo_unitario: float
    total_perda: float
    motivo: str
    lote_id: Optional[int] = None
    observacao: Optional[str] = None
    criado_em: Optional[str] = None
    id: Optional[int] = None


@dataclass
class ItemCarrinho:
    """Linha do carrinho do PDV."""
    produto_id: int
    quantidade: float
    preco_unitario: float
    total: Optional[float] = None

    def __post_init__(self) -> None:
        if self.total is None:
            self.total = round(float(self.quantidade) * float(self.preco_unitario), 2)
