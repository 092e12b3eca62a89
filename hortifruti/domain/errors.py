# hortifruti/domain/errors.py
"""
Exceções do domínio.
"""


class ValidacaoError(ValueError):
    """Entrada inválida detectada antes de qualquer escrita no banco."""
