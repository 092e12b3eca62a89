import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from hortifruti.adapters.cli import app
from hortifruti.infra.repositories import (
    LoteRepo,
    ParamsRepo,
    PedidoCompraRepo,
    ProdutoRepo,
    QuebraRepo,
    VendaRepo,
)

runner = CliRunner()


@pytest.fixture
def db(tmp_path: Path) -> str:
    db_path = str(tmp_path / "hortifruti_test.sqlite")
    result = runner.invoke(app, ["migrate", "--db", db_path])
    assert result.exit_code == 0, result.output
    return db_path


def _invoke(db, *args):
    return runner.invoke(app, [*args, "--db", db])


def test_cli_migrate_and_params_show(db):
    result = _invoke(db, "params", "show", "--json")
    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["margem_padrao"] == "30.0"
    assert data["shelf_life_padrao_dias"] == "7"
    assert "tolerancia_peso" in data


def test_cli_params_set_and_get(db):
    result = _invoke(db, "params", "set", "--margem-padrao", "35", "--dias-alerta-vencimento", "2")
    assert result.exit_code == 0, result.output

    result = _invoke(db, "params", "get", "margem_padrao")
    assert result.exit_code == 0
    assert result.stdout.strip() == "35.0"
    assert ParamsRepo(db).get("dias_alerta_vencimento") == "2"

    # sem nenhum parâmetro: nada a alterar
    assert _invoke(db, "params", "set").exit_code == 1


def test_cli_produto_e_lote(db):
    result = _invoke(db, "produto", "add", "00123", "Tomate Italiano", "--preco", "8", "--custo", "4")
    assert result.exit_code == 0, result.output
    # PLU duplicado
    assert _invoke(db, "produto", "add", "00123", "Outro Tomate").exit_code == 1

    result = _invoke(db, "lote", "add", "00123", "10", "4.5", "--validade", "2030-01-31")
    assert result.exit_code == 0, result.output
    produto = ProdutoRepo(db).get_por_plu("00123")
    assert LoteRepo(db).total_produto(produto["id"]) == 10.0

    assert _invoke(db, "lote", "add", "99999", "1", "1").exit_code == 1

    for cmd in (["produto", "list"], ["lote", "list"], ["lote", "vencendo"], ["estoque", "resumo"]):
        assert _invoke(db, *cmd).exit_code == 0


def test_cli_venda_bloqueia_sem_estoque_e_aceita_forcar(db):
    _invoke(db, "produto", "add", "00123", "Tomate", "--preco", "8")
    _invoke(db, "lote", "add", "00123", "1", "4")

    result = _invoke(db, "venda", "registrar", "00123:2")
    assert result.exit_code == 1
    assert VendaRepo(db).listar() == []

    result = _invoke(db, "venda", "registrar", "00123:2", "--forcar")
    assert result.exit_code == 0, result.output
    vendas = VendaRepo(db).listar()
    assert len(vendas) == 1
    assert vendas[0]["total"] == 16.0

    produto = ProdutoRepo(db).get_por_plu("00123")
    assert LoteRepo(db).total_produto(produto["id"]) == 0.0


def test_cli_venda_por_codigo_de_barras(db):
    _invoke(db, "produto", "add", "00123", "Tomate", "--preco", "8")
    _invoke(db, "lote", "add", "00123", "5", "4")

    result = _invoke(db, "venda", "registrar", "--barcode", "2001230150006")
    assert result.exit_code == 0, result.output
    assert VendaRepo(db).listar()[0]["total"] == 12.0

    assert _invoke(db, "venda", "registrar", "--barcode", "7891234567895").exit_code == 1


def test_cli_quebra(db):
    _invoke(db, "produto", "add", "00123", "Tomate")
    _invoke(db, "lote", "add", "00123", "5", "4")

    assert _invoke(db, "quebra", "registrar", "00123", "1", "sumiu").exit_code == 1

    result = _invoke(db, "quebra", "registrar", "00123", "1.5", "danificado", "--obs", "caixa amassada")
    assert result.exit_code == 0, result.output
    quebras = QuebraRepo(db).listar()
    assert len(quebras) == 1
    assert quebras[0]["custo_unitario"] == 4.0
    assert _invoke(db, "quebra", "list").exit_code == 0


def test_cli_pedido_ate_fechamento(db):
    _invoke(db, "produto", "add", "00123", "Tomate", "--preco", "8", "--custo", "4", "--shelf-life", "5")

    result = _invoke(db, "pedido", "criar", "--item", "00123:2:20:50", "--fornecedor", "Ceasa")
    assert result.exit_code == 0, result.output
    assert ">> Pedido #1 criado" in result.stdout
    item_id = PedidoCompraRepo(db).get(1)["itens"][0]["id"]

    # rascunho ainda não pode ser fechado
    assert _invoke(db, "pedido", "fechar", "1", "--aprovar").exit_code == 1
    assert _invoke(db, "pedido", "enviar", "1").exit_code == 0

    result = _invoke(db, "pedido", "fechar", "1", "--margem", f"{item_id}=50")
    assert result.exit_code == 0, result.output
    assert PedidoCompraRepo(db).get(1)["status"] == "enviado"

    assert _invoke(db, "pedido", "fechar", "1", "--margem", "x=50").exit_code == 1

    result = _invoke(db, "pedido", "fechar", "1", "--margem", f"{item_id}=50", "--frete", "10", "--aprovar")
    assert result.exit_code == 0, result.output
    assert ">> Pedido #1 recebido" in result.stdout

    pedido = PedidoCompraRepo(db).get(1)
    assert pedido["status"] == "recebido"
    assert pedido["total_recebido"] == 110.0
    produto = ProdutoRepo(db).get_por_plu("00123")
    assert produto["preco"] == 11.0
    assert LoteRepo(db).total_produto(produto["id"]) == 20.0

    for cmd in (["pedido", "list"], ["pedido", "show", "1"], ["rel", "fechamento", "1"]):
        assert _invoke(db, *cmd).exit_code == 0


def test_cli_relatorios(db):
    _invoke(db, "produto", "add", "00123", "Tomate", "--estoque-minimo", "5")
    for cmd in (
        ["rel", "vencimentos"],
        ["rel", "estoque-baixo"],
        ["rel", "quebras", "--dias", "30"],
        ["rel", "vendas-dia"],
        ["rel", "vendas-dia", "--dia", "2025-01-15"],
    ):
        result = _invoke(db, *cmd)
        assert result.exit_code == 0, result.output

    assert _invoke(db, "rel", "fechamento", "42").exit_code == 1
