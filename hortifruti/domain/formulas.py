"""
Pricing formulas for purchase receiving and order closing.

These functions turn the figures of a purchase order (volumes, note
weight, tare, unit cost, freight) into the real cost per kilogram of
each item and into sale prices derived from a target margin. Margin is
always expressed over the sale price, not over the cost:

    margem = (preco - custo) / preco * 100

All functions are pure: they depend solely on their inputs and do
not modify any external state. This makes them safe to unit test
individually.
"""

from __future__ import annotations

from typing import Iterable, Optional, Tuple, Union

from hortifruti.config import DEFAULTS

Number = Union[int, float]


def peso_bruto_item(
    peso_estimado_kg: Number,
    quantidade_pedida: Number,
    quantidade_recebida: Optional[Number] = None,
) -> float:
    """Gross weight of an order line.

    When the received volume count is known the note weight is scaled
    proportionally (`recebida * peso_estimado / pedida`); otherwise the
    note weight is used as is.
    """
    peso = float(peso_estimado_kg or 0.0)
    if quantidade_recebida is None or not quantidade_pedida:
        return peso
    return float(quantidade_recebida) * (peso / float(quantidade_pedida))


def peso_liquido(
    peso_bruto: Number,
    tara_total: Number = 0.0,
    minimo: float = DEFAULTS.peso_liquido_min,
) -> float:
    """Net weight (gross minus packaging tare), never below `minimo`."""
    return max(float(minimo), float(peso_bruto) - float(tara_total or 0.0))


def taxa_custo_por_kg(frete: Number, outros_custos: Number, pesos_liquidos: Iterable[Number]) -> float:
    """Extra costs apportioned per kilogram.

    Freight and other costs are spread uniformly over the total net
    weight of the order (weight share, not value share).
    """
    total_peso = sum(float(p) for p in pesos_liquidos)
    if total_peso <= 0:
        return 0.0
    return (float(frete or 0.0) + float(outros_custos or 0.0)) / total_peso


def custo_base_unitario(quantidade_recebida: Number, custo_unitario: Number, peso_liquido_kg: Number) -> float:
    """Cost per kilogram of the goods alone: `(qtd * custo) / peso_liquido`."""
    peso = float(peso_liquido_kg)
    if peso <= 0:
        raise ValueError("peso_liquido_kg must be positive")
    return (float(quantidade_recebida) * float(custo_unitario)) / peso


def custo_real_kg(custo_base: Number, taxa_por_kg: Number) -> float:
    """Real cost per kilogram: goods cost plus apportioned extra costs."""
    return float(custo_base) + float(taxa_por_kg)


def limitar_margem(
    margem: Number,
    minimo: float = DEFAULTS.margem_min,
    maximo: float = DEFAULTS.margem_max,
) -> float:
    """Clamp a margin into `[minimo, maximo]` so `1 - m/100` never reaches zero."""
    return min(max(float(margem), minimo), maximo)


def preco_por_margem(custo: Number, margem: Number) -> float:
    """Sale price that yields `margem` percent over the price.

        preco = custo / (1 - margem / 100)

    The margin is clamped with :func:`limitar_margem` first.
    """
    m = limitar_margem(margem)
    return float(custo) / (1.0 - m / 100.0)


def margem_por_preco(custo: Number, preco: Number) -> float:
    """Margin (percent of price) implied by a sale price.

        margem = (1 - custo / preco) * 100

    Returns 0.0 for a non-positive price. A price below cost yields a
    negative margin; callers decide whether to clamp it.
    """
    p = float(preco)
    if p <= 0:
        return 0.0
    return (1.0 - float(custo) / p) * 100.0


def margem_media_ponderada(itens: Iterable[Tuple[Number, Number]]) -> float:
    """Weighted average margin over `(margem, peso_liquido)` pairs."""
    soma = 0.0
    peso_total = 0.0
    for margem, peso in itens:
        soma += float(margem) * float(peso)
        peso_total += float(peso)
    if peso_total <= 0:
        return 0.0
    return soma / peso_total


def divergencia_peso(
    peso_nota: Number,
    peso_balanca: Optional[Number],
    tolerancia: float = DEFAULTS.tolerancia_peso,
) -> Optional[dict]:
    """Compare the scale weight against the note weight.

    Returns ``None`` when no scale weight was entered. Otherwise a dict
    with the difference in kg, the difference as a percentage of the
    note weight and ``relevante`` (True when the absolute difference
    exceeds ``tolerancia`` of the note weight).
    """
    if not peso_balanca:
        return None
    nota = float(peso_nota or 0.0)
    diferenca = float(peso_balanca) - nota
    percentual = (diferenca / nota * 100.0) if nota > 0 else None
    return {
        "peso_nota": nota,
        "peso_balanca": float(peso_balanca),
        "diferenca_kg": diferenca,
        "diferenca_pct": percentual,
        "relevante": abs(diferenca) > nota * float(tolerancia),
    }
