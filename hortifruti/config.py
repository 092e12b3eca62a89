# hortifruti/config.py
"""
Configurações globais e valores padrão do sistema do hortifruti.
"""

import os
from dataclasses import dataclass


# Caminho padrão do banco de dados SQLite
DB_PATH = os.environ.get("HORTIFRUTI_DB") or os.path.join(os.getcwd(), "hortifruti.db")


@dataclass
class DefaultConfig:
    """Valores padrão para parâmetros do sistema."""
    margem_padrao: float = 30.0           # % sobre o preço de venda
    shelf_life_padrao_dias: int = 7       # validade quando o produto não informa
    dias_alerta_vencimento: int = 3
    dias_quebras_recentes: int = 7
    tolerancia_peso: float = 0.05         # 5% do peso da nota
    margem_min: float = 0.1
    margem_max: float = 99.9
    peso_liquido_min: float = 0.1         # kg; evita divisão por zero no custo/kg


# Instância global dos valores padrão
DEFAULTS = DefaultConfig()
