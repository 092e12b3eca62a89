# hortifruti/adapters/planilhas.py
"""
Loaders para planilhas (XLSX ou CSV) de LOTES e de ITENS DE PEDIDO.

Essas funções:
- leem planilhas usando pandas;
- normalizam cabeçalhos (acentos, variações, sinônimos);
- convertem números no formato brasileiro ("12,50") e datas para ISO;
- retornam listas de dicionários com as chaves esperadas pelos casos de uso.

Observações:
- O produto é identificado pelo PLU; a resolução para `produto_id` é feita
  pelo caso de uso.
- Linhas sem PLU são descartadas.
"""

from __future__ import annotations

import re
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from hortifruti.adapters.parsers import parse_decimal_br


# ---------------------------
# utilitários de normalização
# ---------------------------

def _slug(s: str) -> str:
    """Normaliza cabeçalhos: minúsculas, sem acentos, sem não-alfanumérico."""
    if s is None:
        return ""
    s = str(s).strip().lower()
    acentos = dict(zip("áàâãäéèêëíìîïóòôõöúùûüç", "aaaaaeeeeiiiiooooouuuuc"))
    s = "".join(acentos.get(ch, ch) for ch in s)
    s = re.sub(r"[^a-z0-9]+", " ", s)
    s = re.sub(r"\s+", " ", s).strip()
    return s


def _safe_get(row, key):
    """Lê um valor da linha do pandas tratando NA como None."""
    val = row.get(key)
    if val is None or pd.isna(val):
        return None
    val = str(val).strip()
    return val or None


def _to_float(val: Any) -> Optional[float]:
    return parse_decimal_br(val)


def _to_date_iso(val: Any) -> Optional[str]:
    """Converte valor para data ISO (YYYY-MM-DD) se possível."""
    if val is None:
        return None
    s = str(val).strip()
    if not s:
        return None
    for fmt in ("%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y", "%d/%m/%y", "%Y-%m-%d %H:%M:%S"):
        try:
            return datetime.strptime(s, fmt).date().isoformat()
        except ValueError:
            continue
    d = pd.to_datetime(s, dayfirst=True, errors="coerce")
    if pd.isna(d):
        return None
    return d.date().isoformat()


_ALIASES = {
    "plu": "plu",
    "codigo": "plu",
    "cod": "plu",
    "codigo balanca": "plu",

    "produto": "produto",
    "nome": "produto",

    "quantidade": "quantidade",
    "qtde": "quantidade",
    "qtd": "quantidade",
    "volumes": "quantidade",
    "caixas": "quantidade",

    "custo": "custo_unitario",
    "custo unitario": "custo_unitario",
    "custo kg": "custo_unitario",
    "valor unitario": "custo_unitario",
    "preco": "custo_unitario",
    "preco unitario": "custo_unitario",

    "validade": "data_validade",
    "data validade": "data_validade",
    "data de validade": "data_validade",
    "vencimento": "data_validade",

    "recebido em": "recebido_em",
    "data entrada": "recebido_em",
    "data de entrada": "recebido_em",
    "entrada": "recebido_em",

    "peso": "peso_estimado_kg",
    "peso kg": "peso_estimado_kg",
    "peso nota": "peso_estimado_kg",
    "peso estimado": "peso_estimado_kg",

    "tara": "tara_total",
    "tara total": "tara_total",

    "unidade": "unidade",
    "embalagem": "unidade",
}


def _normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Renomeia colunas com base em sinônimos/variações."""
    new_cols = {}
    for col in df.columns:
        key = _slug(col)
        new_cols[col] = _ALIASES.get(key, key)  # se não houver alias, mantém slug
    return df.rename(columns=new_cols)


def _read(path: str) -> pd.DataFrame:
    if Path(path).suffix.lower() == ".csv":
        df = pd.read_csv(path, dtype="string", sep=None, engine="python")
    else:
        df = pd.read_excel(path, dtype="string")
    return _normalize_columns(df)


# ---------------------------
# loaders públicos
# ---------------------------

def load_lotes_from_planilha(path: str) -> List[Dict[str, Any]]:
    """Lê a planilha de entrada manual de LOTES.

    Campos de saída (chaves do dict por linha):
      - plu: str
      - quantidade: float | None
      - custo_unitario: float | None
      - data_validade: ISO date | None
      - recebido_em: ISO date | None
    """
    df = _read(path)
    out: List[Dict[str, Any]] = []
    for _, row in df.iterrows():
        plu = _safe_get(row, "plu")
        if not plu:
            continue
        out.append(
            {
                "plu": plu,
                "quantidade": _to_float(_safe_get(row, "quantidade")),
                "custo_unitario": _to_float(_safe_get(row, "custo_unitario")),
                "data_validade": _to_date_iso(_safe_get(row, "data_validade")),
                "recebido_em": _to_date_iso(_safe_get(row, "recebido_em")),
            }
        )
    return out


def load_itens_pedido_from_planilha(path: str) -> List[Dict[str, Any]]:
    """Lê a planilha de ITENS de um pedido de compra.

    Campos de saída (chaves do dict por linha):
      - plu: str
      - quantidade: float | None        (volumes pedidos)
      - unidade: str | None
      - peso_estimado_kg: float | None  (peso bruto total da linha)
      - custo_unitario_estimado: float | None
      - tara_total: float
    """
    df = _read(path)
    out: List[Dict[str, Any]] = []
    for _, row in df.iterrows():
        plu = _safe_get(row, "plu")
        if not plu:
            continue
        out.append(
            {
                "plu": plu,
                "quantidade": _to_float(_safe_get(row, "quantidade")),
                "unidade": _safe_get(row, "unidade"),
                "peso_estimado_kg": _to_float(_safe_get(row, "peso_estimado_kg")),
                "custo_unitario_estimado": _to_float(_safe_get(row, "custo_unitario")),
                "tara_total": _to_float(_safe_get(row, "tara_total")) or 0.0,
            }
        )
    return out
