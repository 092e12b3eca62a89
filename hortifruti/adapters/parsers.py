"""
Utilidades de parsing para valores digitados no caixa e nas planilhas.

Este módulo fornece funções para interpretar:
- números no formato brasileiro ("12,50", "1.234,5", "R$ 3,99");
- códigos de barras EAN-13 de balança (prefixo 2, PLU e peso em gramas);
- itens de carrinho e de pedido informados na linha de comando.
"""

from __future__ import annotations

import re
from typing import Optional, Tuple

_NUM_RE = re.compile(r"[-+]?\d[\d.,]*")


def parse_decimal_br(txt) -> Optional[float]:
    """Interpreta um número com vírgula ou ponto decimal.

    Exemplos:
        "12,50"     → 12.5
        "1.234,56"  → 1234.56
        "R$ 3,99"   → 3.99
        "7.5"       → 7.5

    Quando há ponto e vírgula juntos, o último separador é o decimal.
    Retorna None quando não há número reconhecível.
    """
    if txt is None:
        return None
    if isinstance(txt, (int, float)):
        return float(txt)
    s = str(txt).strip()
    if not s:
        return None
    m = _NUM_RE.search(s)
    if not m:
        return None
    num = m.group(0)
    if "," in num and "." in num:
        if num.rfind(",") > num.rfind("."):
            num = num.replace(".", "").replace(",", ".")
        else:
            num = num.replace(",", "")
    else:
        num = num.replace(",", ".")
    try:
        return float(num)
    except ValueError:
        return None


def validar_ean13(codigo: str) -> bool:
    """Confere o dígito verificador de um EAN-13."""
    digits = re.sub(r"\D", "", str(codigo or ""))
    if len(digits) != 13:
        return False
    soma = sum(int(d) if i % 2 == 0 else int(d) * 3 for i, d in enumerate(digits[:12]))
    return (10 - soma % 10) % 10 == int(digits[12])


def parse_ean13_balanca(codigo: str) -> Optional[Tuple[str, float]]:
    """Extrai PLU e peso de uma etiqueta de balança.

    Estrutura: ``2 PPPPP WWWWW X C``
        2      prefixo de item pesável
        PPPPP  PLU (5 dígitos)
        WWWWW  peso em gramas
        X      livre (ignorado)
        C      dígito verificador

    Returns:
        ``(plu, peso_kg)`` ou None se o código não for uma etiqueta de balança.
    """
    digits = re.sub(r"\D", "", str(codigo or ""))
    if len(digits) != 13 or digits[0] != "2":
        return None
    plu = digits[1:6]
    peso_kg = int(digits[6:11]) / 1000.0
    return plu, peso_kg


def parse_item_carrinho(txt: str) -> Tuple[str, float, Optional[float]]:
    """Interpreta "PLU:QTD" ou "PLU:QTD:PRECO" vindos da linha de comando.

    Raises:
        ValueError: quando o formato ou a quantidade são inválidos.
    """
    partes = [p.strip() for p in str(txt or "").split(":")]
    if len(partes) not in (2, 3) or not partes[0]:
        raise ValueError(f"Item inválido: {txt!r} (use PLU:QTD ou PLU:QTD:PRECO)")
    qtd = parse_decimal_br(partes[1])
    if qtd is None:
        raise ValueError(f"Quantidade inválida em {txt!r}")
    preco = parse_decimal_br(partes[2]) if len(partes) == 3 else None
    return partes[0], qtd, preco


def parse_item_pedido(txt: str) -> dict:
    """Interpreta "PLU:VOLUMES:PESO_KG[:CUSTO[:TARA]]" de um item de pedido.

    PESO_KG é o peso bruto total da linha, como vem na nota.

    Raises:
        ValueError: quando o formato ou algum número é inválido.
    """
    partes = [p.strip() for p in str(txt or "").split(":")]
    if not 3 <= len(partes) <= 5 or not partes[0]:
        raise ValueError(f"Item inválido: {txt!r} (use PLU:VOLUMES:PESO_KG[:CUSTO[:TARA]])")
    numeros = [parse_decimal_br(p) if p else None for p in partes[1:]]
    if numeros[0] is None or numeros[1] is None:
        raise ValueError(f"Volumes e peso são obrigatórios em {txt!r}")
    numeros += [None] * (4 - len(numeros))
    return {
        "plu": partes[0],
        "quantidade": numeros[0],
        "peso_estimado_kg": numeros[1],
        "custo_unitario_estimado": numeros[2],
        "tara_total": numeros[3] or 0.0,
    }
