from hortifruti.infra import logger


def test_logging_desabilitado_nao_cria_arquivos(tmp_path, monkeypatch):
    logs = tmp_path / "logs"
    monkeypatch.setattr(logger, "ENABLE_LOGGING", False)
    monkeypatch.setattr(logger, "LOGS_DIR", logs)

    logger.log_transaction("venda", {"itens": 1}, result=1)
    logger.log_system_event("teste", {"x": 1})

    assert not logs.exists()
    assert logger.get_log_summary("transactions") is None


def test_log_transaction_grava_sucesso_e_falha(tmp_path, monkeypatch):
    arquivo = tmp_path / "transactions.log"
    monkeypatch.setattr(logger, "ENABLE_LOGGING", True)
    monkeypatch.setattr(logger, "LOGS_DIR", tmp_path)
    monkeypatch.setitem(logger.LOG_FILES, "transactions", arquivo)
    monkeypatch.setattr(
        logger, "transaction_logger", logger.setup_logger("hortifruti.test.transactions", str(arquivo))
    )

    logger.log_transaction("venda", {"itens": 1}, result=10)
    logger.log_transaction("venda", {"itens": 0}, error="Carrinho vazio")
    for h in logger.transaction_logger.handlers:
        h.flush()

    texto = logger.get_log_summary("transactions")
    assert "TRANSACTION_SUCCESS: venda" in texto
    assert "TRANSACTION_FAILED: venda - Carrinho vazio" in texto
    assert logger.get_log_summary("nao_existe") == "Log nao_existe não encontrado."


def test_log_de_movimento_e_recebimento(tmp_path, monkeypatch):
    lotes = tmp_path / "lotes.log"
    receb = tmp_path / "recebimentos.log"
    monkeypatch.setattr(logger, "ENABLE_LOGGING", True)
    monkeypatch.setattr(logger, "LOGS_DIR", tmp_path)
    monkeypatch.setattr(logger, "lote_logger", logger.setup_logger("hortifruti.test.lotes", str(lotes)))
    monkeypatch.setattr(
        logger, "recebimento_logger", logger.setup_logger("hortifruti.test.recebimentos", str(receb))
    )

    logger.log_lote("deducao_fifo", 1, 2.5, 7, saldo=0.5)
    logger.log_recebimento("aprovado", 3, total_recebido=130.0)
    for lg in (logger.lote_logger, logger.recebimento_logger):
        for h in lg.handlers:
            h.flush()

    assert "LOTE_DEDUCAO_FIFO" in lotes.read_text(encoding="utf-8")
    assert "'saldo': 0.5" in lotes.read_text(encoding="utf-8")
    assert "RECEBIMENTO_APROVADO: {'pedido_id': 3, 'total_recebido': 130.0}" in receb.read_text(encoding="utf-8")
