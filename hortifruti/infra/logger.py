# hortifruti/infra/logger.py
"""
Sistema de logging para as transações do hortifruti.

Este módulo configura e fornece loggers para registrar as operações
críticas do sistema: lotes, vendas, quebras, recebimentos de pedidos e
operações no banco de dados.
"""

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Dict, Any, Optional


# Flag global para habilitar/desabilitar logging
ENABLE_LOGGING = os.environ.get("HORTIFRUTI_LOG", "0").strip().lower() in {"1", "true", "sim"}
# Flag global para habilitar/desabilitar prints/output
ENABLE_OUTPUT = False

def print_system(*args, **kwargs):
    """Print controlado pelo ENABLE_OUTPUT."""
    if ENABLE_OUTPUT:
        print(*args, **kwargs)

# Configuração base dos loggers
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

def setup_logger(name: str, log_file: str, level: int = logging.INFO) -> logging.Logger:
    """
    Configura um logger específico com arquivo de saída.

    O arquivo só é aberto na primeira mensagem emitida (``delay=True``).

    Args:
        name: Nome do logger
        log_file: Caminho do arquivo de log
        level: Nível de logging (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        Logger configurado
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False

    while logger.handlers:
        logger.removeHandler(logger.handlers[0])

    file_handler = logging.FileHandler(log_file, encoding='utf-8', delay=True)
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    logger.addHandler(file_handler)

    return logger

# Diretório base para logs
LOGS_DIR = Path(os.environ.get("HORTIFRUTI_LOGS_DIR") or (Path(os.getcwd()) / "logs"))

LOG_FILES = {
    "transactions": LOGS_DIR / "transactions.log",
    "lotes": LOGS_DIR / "lotes.log",
    "vendas": LOGS_DIR / "vendas.log",
    "quebras": LOGS_DIR / "quebras.log",
    "recebimentos": LOGS_DIR / "recebimentos.log",
    "database": LOGS_DIR / "database.log",
    "system": LOGS_DIR / "system.log",
}

transaction_logger = setup_logger('hortifruti.transactions', str(LOG_FILES["transactions"]))
lote_logger = setup_logger('hortifruti.lotes', str(LOG_FILES["lotes"]))
venda_logger = setup_logger('hortifruti.vendas', str(LOG_FILES["vendas"]))
quebra_logger = setup_logger('hortifruti.quebras', str(LOG_FILES["quebras"]))
recebimento_logger = setup_logger('hortifruti.recebimentos', str(LOG_FILES["recebimentos"]))
database_logger = setup_logger('hortifruti.database', str(LOG_FILES["database"]))
system_logger = setup_logger('hortifruti.system', str(LOG_FILES["system"]))


def _ativo() -> bool:
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return False
    LOGS_DIR.mkdir(parents=True, exist_ok=True)
    return True


def log_transaction(operation: str, data: Dict[str, Any], result: Optional[Any] = None, error: Optional[str] = None) -> None:
    """
    Registra uma transação completa no log.

    Args:
        operation: Tipo de operação (venda, quebra, fechamento_pedido, ...)
        data: Dados da transação
        result: Resultado da operação (opcional)
        error: Mensagem de erro (opcional)
    """
    if not _ativo():
        return
    if error:
        transaction_logger.error(f"TRANSACTION_FAILED: {operation} - {error} - Data: {data}")
    else:
        transaction_logger.info(f"TRANSACTION_SUCCESS: {operation} - Result: {result} - Data: {data}")


def _log_movimento(logger: logging.Logger, prefixo: str, action: str, produto_id: Any, quantidade: Any, lote_id: Any = None, **kwargs) -> None:
    if not _ativo():
        return
    log_data = {
        "action": action,
        "produto_id": produto_id,
        "quantidade": quantidade,
        "lote_id": lote_id,
        **kwargs
    }
    logger.info(f"{prefixo}_{action.upper()}: {log_data}")


def log_lote(action: str, produto_id: Any, quantidade: Any, lote_id: Any = None, **kwargs) -> None:
    """Log específico para criação e movimentação de lotes (insert, deducao_fifo, ...)."""
    _log_movimento(lote_logger, "LOTE", action, produto_id, quantidade, lote_id, **kwargs)


def log_venda(action: str, produto_id: Any, quantidade: Any, lote_id: Any = None, **kwargs) -> None:
    """Log específico para itens de venda."""
    _log_movimento(venda_logger, "VENDA", action, produto_id, quantidade, lote_id, **kwargs)


def log_quebra(action: str, produto_id: Any, quantidade: Any, lote_id: Any = None, **kwargs) -> None:
    """Log específico para quebras."""
    _log_movimento(quebra_logger, "QUEBRA", action, produto_id, quantidade, lote_id, **kwargs)


def log_recebimento(action: str, pedido_id: Any, **kwargs) -> None:
    """Log específico para o fechamento/recebimento de pedidos de compra."""
    if not _ativo():
        return
    log_data = {"pedido_id": pedido_id, **kwargs}
    recebimento_logger.info(f"RECEBIMENTO_{action.upper()}: {log_data}")


def log_database_operation(table: str, operation: str, affected_rows: int = 0, **kwargs) -> None:
    """
    Log específico para operações no banco de dados.

    Args:
        table: Nome da tabela
        operation: Operação SQL (INSERT, UPDATE, DELETE, SELECT)
        affected_rows: Número de linhas afetadas
        **kwargs: Dados adicionais
    """
    if not _ativo():
        return
    log_data = {
        "table": table,
        "operation": operation,
        "affected_rows": affected_rows,
        **kwargs
    }
    database_logger.info(f"DB_{operation}: {log_data}")


def log_system_event(event: str, details: Dict[str, Any] = None, level: str = "info") -> None:
    """
    Log para eventos do sistema.

    Args:
        event: Descrição do evento
        details: Detalhes adicionais (opcional)
        level: Nível do log (info, warning, error)
    """
    if not _ativo():
        return
    log_data = {
        "event": event,
        "details": details or {}
    }
    log_method = getattr(system_logger, level.lower(), system_logger.info)
    log_method(f"SYSTEM_EVENT: {event} - {log_data}")


def log_file_operation(operation: str, file_path: str, rows_processed: int = 0, **kwargs) -> None:
    """Log para operações de arquivo (importação de planilhas)."""
    if not _ativo():
        return
    log_data = {
        "operation": operation,
        "file_path": file_path,
        "rows_processed": rows_processed,
        "timestamp": datetime.now().isoformat(),
        **kwargs
    }
    system_logger.info(f"FILE_{operation.upper()}: {log_data}")


def get_log_summary(log_type: str = "transactions", lines: int = 100) -> Optional[str]:
    """
    Obtém um resumo dos logs recentes.

    Args:
        log_type: Tipo de log (transactions, lotes, vendas, quebras, recebimentos, database, system)
        lines: Número de linhas a retornar

    Returns:
        Conteúdo do log como string (None com o logging desabilitado)
    """
    if not (ENABLE_LOGGING or ENABLE_OUTPUT):
        return None

    log_file = LOG_FILES.get(log_type)
    if not log_file or not log_file.exists():
        return f"Log {log_type} não encontrado."

    with open(log_file, 'r', encoding='utf-8') as f:
        all_lines = f.readlines()
    return ''.join(all_lines[-lines:])
