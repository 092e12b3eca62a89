# hortifruti/adapters/cli.py
"""
CLI do hortifruti (Typer).

Comandos principais:
- migrate                          -> aplica migrações e cria views
- params set/get/show              -> gerencia parâmetros globais
- produto add/list                 -> cadastro de produtos
- lote add/list/importar/vencendo  -> lotes de estoque (entrada manual e planilha)
- estoque resumo                   -> estoque consolidado por produto
- venda registrar ITEM...          -> PDV: registra venda com baixa FIFO
- quebra registrar/list            -> perdas de mercadoria
- pedido criar/importar/enviar/list/show/fechar -> pedidos de compra e recebimento
- rel ...                          -> relatórios do painel
"""

from __future__ import annotations

import functools
import json
import sqlite3
from typing import Optional, List, Dict, Any
from datetime import date, datetime

import typer
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich import box

from hortifruti.config import DB_PATH, DEFAULTS
from hortifruti.adapters.parsers import parse_decimal_br, parse_item_carrinho, parse_item_pedido
from hortifruti.domain.errors import ValidacaoError
from hortifruti.domain.models import MOTIVOS_QUEBRA, STATUS_PEDIDO, Produto
from hortifruti.infra.migrations import apply_migrations
from hortifruti.infra.views import create_views
from hortifruti.infra.repositories import ParamsRepo, ProdutoRepo
from hortifruti.usecases.verificar_estoque import listar_lotes, lotes_a_vencer, resumo_estoque
from hortifruti.usecases.registrar_lote import run_lote_unico, run_lote_planilha
from hortifruti.usecases.registrar_quebra import registrar_quebra, quebras_recentes
from hortifruti.usecases.registrar_venda import (
    item_por_codigo_barras,
    item_por_plu,
    registrar_venda,
    verificar_disponibilidade,
)
from hortifruti.usecases.pedidos_compra import (
    criar_pedido,
    enviar_pedido,
    importar_pedido,
    listar_pedidos,
    obter_pedido,
)
from hortifruti.usecases.fechamento_pedido import FechamentoPedido
from hortifruti.usecases.relatorios import (
    relatorio_estoque_baixo,
    relatorio_fechamento,
    relatorio_quebras,
    relatorio_vencimentos,
    relatorio_vendas_dia,
)


app = typer.Typer(help="Hortifruti - CLI")
console = Console()

PARAMS = (
    "margem_padrao",
    "shelf_life_padrao_dias",
    "dias_alerta_vencimento",
    "dias_quebras_recentes",
    "tolerancia_peso",
)


# -----------------------
# util
# -----------------------

def _print_json(obj) -> None:
    typer.echo(json.dumps(obj, ensure_ascii=False, indent=2, default=str))


def _fmt(val: Any) -> str:
    """Números no formato brasileiro (1.234,56); demais valores como texto."""
    if val is None:
        return ""
    if isinstance(val, (int, float)) and not isinstance(val, bool):
        return f"{val:,.2f}".replace(",", "X").replace(".", ",").replace("X", ".")
    if isinstance(val, datetime):
        return val.strftime("%d/%m/%Y %H:%M")
    return str(val)


def _display_table(data: List[Dict[str, Any]], title: str = "Resultado", columns: Optional[List[str]] = None) -> None:
    """Exibe uma lista de dicts como tabela Rich."""
    if not data:
        console.print(Panel("Nenhum dado encontrado", title=title, border_style="yellow"))
        return

    columns = columns or list(data[0].keys())
    table = Table(title=title, box=box.ROUNDED)
    for column in columns:
        if isinstance(data[0].get(column), (int, float)) and not isinstance(data[0].get(column), bool):
            table.add_column(column, justify="right")
        else:
            table.add_column(column)
    for row in data:
        table.add_row(*[_fmt(row.get(col)) for col in columns])
    console.print(table)


def _display_campos(data: Dict[str, Any], title: str) -> None:
    """Exibe um registro como tabela Campo/Valor."""
    table = Table(title=title, box=box.ROUNDED)
    table.add_column("Campo")
    table.add_column("Valor")
    for chave, valor in data.items():
        if isinstance(valor, (list, dict)):
            continue
        table.add_row(chave, _fmt(valor))
    console.print(table)


def _display_importacao(data: Dict[str, Any]) -> None:
    titulo = f"{data.get('tipo', 'Registros')} em Lote"
    panel_content = [
        f"Total de registros: {data['total']}",
        f"Processados com sucesso: {data.get('sucessos', 0)}",
    ]
    if data.get("erros"):
        panel_content.append(f"Erros: {len(data['erros'])}")
    console.print(Panel("\n".join(panel_content), title=titulo))

    if data.get("erros"):
        erro_table = Table(title="Erros Encontrados")
        erro_table.add_column("Linha")
        erro_table.add_column("Erro")
        for erro in data["erros"]:
            erro_table.add_row(str(erro.get("linha", "?")), erro.get("mensagem", "Erro desconhecido"))
        console.print(erro_table)


def _notificar_erros(func):
    """Converte erros de validação/banco em aviso vermelho e saída 1."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (ValidacaoError, ValueError) as e:
            console.print(Panel(str(e), title="Erro", border_style="red"))
            raise typer.Exit(code=1)
        except sqlite3.Error as e:
            console.print(Panel(f"Falha no banco de dados: {e}", title="Erro", border_style="red"))
            raise typer.Exit(code=1)
    return wrapper


def _pares(valores: Optional[List[str]], opcao: str) -> Dict[int, float]:
    """Converte ["ITEM_ID=VALOR", ...] em {item_id: valor}."""
    out: Dict[int, float] = {}
    for v in valores or []:
        chave, sep, valor = v.partition("=")
        num = parse_decimal_br(valor)
        if not sep or not chave.strip().isdigit() or num is None:
            raise ValidacaoError(f"{opcao}: use ITEM_ID=VALOR (recebido {v!r})")
        out[int(chave)] = num
    return out


# -----------------------
# comandos de infra
# -----------------------

@app.command("migrate")
def cmd_migrate(db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite")):
    """Aplica migrações e recria as views auxiliares."""
    apply_migrations(db_path)
    create_views(db_path)
    typer.echo(f">> Migrações aplicadas e views criadas em: {db_path}")


params_app = typer.Typer(help="Gerenciar parâmetros globais (margem, validade, alertas).")
app.add_typer(params_app, name="params")


@params_app.command("set")
def cmd_params_set(
    margem_padrao: Optional[float] = typer.Option(None, help="Margem padrão em % sobre o preço (ex.: 30)"),
    shelf_life_padrao_dias: Optional[int] = typer.Option(None, help="Validade padrão em dias (ex.: 7)"),
    dias_alerta_vencimento: Optional[int] = typer.Option(None, help="Janela do alerta de vencimento (ex.: 3)"),
    dias_quebras_recentes: Optional[int] = typer.Option(None, help="Janela das quebras recentes (ex.: 7)"),
    tolerancia_peso: Optional[float] = typer.Option(None, help="Tolerância da conferência de peso (ex.: 0.05)"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Define parâmetros globais (apenas os informados são alterados)."""
    valores = {
        "margem_padrao": margem_padrao,
        "shelf_life_padrao_dias": shelf_life_padrao_dias,
        "dias_alerta_vencimento": dias_alerta_vencimento,
        "dias_quebras_recentes": dias_quebras_recentes,
        "tolerancia_peso": tolerancia_peso,
    }
    items = [(k, str(v)) for k, v in valores.items() if v is not None]
    if not items:
        typer.echo("Nada a alterar. Informe pelo menos um parâmetro.")
        raise typer.Exit(code=1)
    ParamsRepo(db_path).set_many(items)
    typer.echo(">> Parâmetros atualizados.")


@params_app.command("get")
def cmd_params_get(
    chave: str = typer.Argument(..., help="Ex.: margem_padrao | dias_alerta_vencimento"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Mostra um parâmetro específico."""
    val = ParamsRepo(db_path).get(chave)
    typer.echo("(None)" if val is None else val)


@params_app.command("show")
def cmd_params_show(
    as_json: bool = typer.Option(False, "--json", help="Saída em JSON"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Exibe os parâmetros efetivos (com fallback para defaults)."""
    repo = ParamsRepo(db_path)
    out = {k: repo.get(k, str(getattr(DEFAULTS, k))) for k in PARAMS}
    if as_json:
        _print_json(out)
        return
    table = Table(title="Parâmetros do Sistema")
    table.add_column("Parâmetro")
    table.add_column("Valor Atual")
    table.add_column("Valor Padrão")
    for k in PARAMS:
        table.add_row(k, out[k], str(getattr(DEFAULTS, k)))
    console.print(table)
    console.print(f"[dim]Banco de dados: {db_path}[/dim]")


# -----------------------
# produtos
# -----------------------

produto_app = typer.Typer(help="Cadastro de produtos.")
app.add_typer(produto_app, name="produto")


@produto_app.command("add")
@_notificar_erros
def cmd_produto_add(
    plu: str = typer.Argument(..., help="Código PLU da balança"),
    nome: str = typer.Argument(...),
    preco: float = typer.Option(0.0, help="Preço de venda por unidade/kg"),
    custo: float = typer.Option(0.0, help="Custo de compra"),
    categoria: str = typer.Option("outros", help="frutas | verduras | legumes | temperos | outros"),
    unidade: str = typer.Option("kg"),
    estoque_minimo: float = typer.Option(0.0),
    shelf_life: int = typer.Option(7, help="Validade em dias"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Cadastra um produto."""
    if not nome.strip():
        raise ValidacaoError("Nome do produto é obrigatório")
    repo = ProdutoRepo(db_path)
    if repo.get_por_plu(plu) is not None:
        raise ValidacaoError(f"Já existe produto com PLU {plu}")
    produto_id = repo.inserir(
        Produto(
            plu=plu, nome=nome.strip(), categoria=categoria, unidade=unidade, preco=preco,
            custo_compra=custo, estoque_minimo=estoque_minimo, shelf_life=shelf_life,
        )
    )
    _display_campos(repo.get(produto_id), title="Produto Cadastrado")


@produto_app.command("list")
def cmd_produto_list(db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite")):
    """Lista os produtos cadastrados."""
    _display_table(
        ProdutoRepo(db_path).get_all(),
        title="Produtos",
        columns=["id", "plu", "nome", "categoria", "unidade", "preco", "custo_compra", "estoque_minimo", "shelf_life"],
    )


# -----------------------
# lotes e estoque
# -----------------------

lote_app = typer.Typer(help="Lotes de estoque.")
app.add_typer(lote_app, name="lote")

_COLS_LOTE = ["id", "produto", "quantidade", "custo_unitario", "data_validade", "recebido_em"]


@lote_app.command("add")
@_notificar_erros
def cmd_lote_add(
    produto: str = typer.Argument(..., help="PLU ou id do produto"),
    quantidade: float = typer.Argument(...),
    custo_unitario: float = typer.Argument(...),
    validade: Optional[str] = typer.Option(None, help="YYYY-MM-DD"),
    recebido_em: Optional[str] = typer.Option(None, help="Data/hora ISO do recebimento (padrão: agora)"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Registra um lote (entrada manual de mercadoria)."""
    rec = run_lote_unico(produto, quantidade, custo_unitario, validade, recebido_em, db_path=db_path)
    _display_campos(rec, title="Lote Registrado")


@lote_app.command("list")
def cmd_lote_list(db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite")):
    """Lista os lotes com saldo (por validade)."""
    _display_table(listar_lotes(db_path), title="Lotes em Estoque", columns=_COLS_LOTE)


@lote_app.command("importar")
@_notificar_erros
def cmd_lote_importar(
    path: str = typer.Argument(..., help="Caminho do XLSX/CSV de LOTES"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Registra lotes a partir de uma planilha."""
    _display_importacao(run_lote_planilha(path, db_path=db_path))


@lote_app.command("vencendo")
def cmd_lote_vencendo(
    dias: Optional[int] = typer.Option(None, help="Janela em dias (padrão: parâmetro dias_alerta_vencimento)"),
    incluir_vencidos: bool = typer.Option(False, help="Inclui lotes já vencidos"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Lotes com validade dentro da janela."""
    res = lotes_a_vencer(dias, db_path=db_path, incluir_vencidos=incluir_vencidos)
    _display_table(res, title="Lotes a Vencer", columns=_COLS_LOTE)


estoque_app = typer.Typer(help="Consultas de estoque.")
app.add_typer(estoque_app, name="estoque")


@estoque_app.command("resumo")
def cmd_estoque_resumo(db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite")):
    """Estoque consolidado por produto."""
    _display_table(resumo_estoque(db_path), title="Estoque por Produto")


# -----------------------
# vendas
# -----------------------

venda_app = typer.Typer(help="PDV: registro de vendas.")
app.add_typer(venda_app, name="venda")


@venda_app.command("registrar")
@_notificar_erros
def cmd_venda_registrar(
    itens: List[str] = typer.Argument(..., help="PLU:QTD[:PRECO] ou, com --barcode, etiquetas EAN-13"),
    barcode: bool = typer.Option(False, "--barcode", help="Itens são códigos de barras de balança"),
    forcar: bool = typer.Option(False, "--forcar", help="Registra mesmo sem estoque suficiente"),
    atomico: bool = typer.Option(False, "--atomico", help="Grava tudo numa única transação"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Registra uma venda e baixa o estoque em FIFO."""
    if barcode:
        carrinho = [item_por_codigo_barras(c, db_path=db_path) for c in itens]
    else:
        carrinho = []
        for txt in itens:
            plu, qtd, preco = parse_item_carrinho(txt)
            carrinho.append(item_por_plu(plu, qtd, preco, db_path=db_path))

    faltas = verificar_disponibilidade(carrinho, db_path=db_path)
    if faltas and not forcar:
        nomes = {p["id"]: p["nome"] for p in ProdutoRepo(db_path).get_all()}
        linhas = [
            f"{nomes.get(f['produto_id'], f['produto_id'])}: pedido {_fmt(f['solicitado'])}, disponível {_fmt(f['disponivel'])}"
            for f in faltas
        ]
        console.print(Panel("\n".join(linhas), title="Estoque insuficiente", border_style="red"))
        console.print("[dim]Use --forcar para registrar assim mesmo.[/dim]")
        raise typer.Exit(code=1)

    res = registrar_venda(carrinho, db_path=db_path, atomico=atomico)
    _display_table(res["itens"], title=f"Venda #{res['venda_id']}",
                   columns=["produto_id", "quantidade", "deduzido", "faltou", "lote_id"])
    console.print(f"[bold green]Total: R$ {_fmt(res['total'])}[/]")
    if not res["atendida"]:
        console.print("[bold yellow]Atenção: parte da venda não tinha estoque em lotes.[/]")


# -----------------------
# quebras
# -----------------------

quebra_app = typer.Typer(help="Quebras (perdas de mercadoria).")
app.add_typer(quebra_app, name="quebra")


@quebra_app.command("registrar")
@_notificar_erros
def cmd_quebra_registrar(
    produto: str = typer.Argument(..., help="PLU ou id do produto"),
    quantidade: float = typer.Argument(...),
    motivo: str = typer.Argument(..., help=" | ".join(MOTIVOS_QUEBRA)),
    lote: Optional[int] = typer.Option(None, help="Lote de origem (padrão: o mais antigo)"),
    obs: Optional[str] = typer.Option(None, help="Observação"),
    atomico: bool = typer.Option(False, "--atomico"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Registra uma quebra e baixa o lote."""
    prod = ProdutoRepo(db_path).resolver(produto)
    rec = registrar_quebra(prod["id"], quantidade, motivo, lote, obs, db_path=db_path, atomico=atomico)
    _display_campos(rec, title="Quebra Registrada")


@quebra_app.command("list")
def cmd_quebra_list(
    dias: Optional[int] = typer.Option(None, help="Janela em dias (padrão: dias_quebras_recentes)"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Quebras recentes (mais novas primeiro)."""
    res = [{**q, "motivo": MOTIVOS_QUEBRA.get(q["motivo"], q["motivo"])} for q in quebras_recentes(dias, db_path)]
    _display_table(res, title="Quebras Recentes",
                   columns=["id", "produto", "quantidade", "custo_unitario", "total_perda", "motivo", "criado_em"])


# -----------------------
# pedidos de compra
# -----------------------

pedido_app = typer.Typer(help="Pedidos de compra e fechamento do recebimento.")
app.add_typer(pedido_app, name="pedido")

_COLS_ITEM_PEDIDO = ["id", "produto", "quantidade", "unidade", "peso_estimado_kg",
                     "custo_unitario_estimado", "tara_total"]


@pedido_app.command("criar")
@_notificar_erros
def cmd_pedido_criar(
    item: List[str] = typer.Option(..., "--item", help="PLU:VOLUMES:PESO_KG[:CUSTO[:TARA]] (repetível)"),
    fornecedor: Optional[str] = typer.Option(None),
    obs: Optional[str] = typer.Option(None),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Cria um pedido em rascunho."""
    pedido = criar_pedido(fornecedor, [parse_item_pedido(i) for i in item], obs, db_path=db_path)
    typer.echo(f">> Pedido #{pedido['id']} criado ({STATUS_PEDIDO[pedido['status']]}).")
    _display_table(pedido["itens"], title="Itens do Pedido", columns=_COLS_ITEM_PEDIDO)


@pedido_app.command("importar")
@_notificar_erros
def cmd_pedido_importar(
    path: str = typer.Argument(..., help="Caminho do XLSX/CSV com os itens"),
    fornecedor: Optional[str] = typer.Option(None),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Cria um pedido com os itens de uma planilha."""
    pedido = importar_pedido(path, fornecedor, db_path=db_path)
    typer.echo(f">> Pedido #{pedido['id']} criado com {len(pedido['itens'])} itens.")


@pedido_app.command("enviar")
@_notificar_erros
def cmd_pedido_enviar(pedido_id: int = typer.Argument(...), db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite")):
    """Marca o pedido como enviado ao fornecedor."""
    enviar_pedido(pedido_id, db_path=db_path)
    typer.echo(f">> Pedido #{pedido_id} enviado.")


@pedido_app.command("list")
def cmd_pedido_list(
    status: Optional[str] = typer.Option(None, help=" | ".join(STATUS_PEDIDO)),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Lista os pedidos de compra."""
    _display_table(listar_pedidos(status, db_path), title="Pedidos de Compra",
                   columns=["id", "fornecedor", "status", "total_estimado", "total_recebido", "criado_em"])


@pedido_app.command("show")
@_notificar_erros
def cmd_pedido_show(pedido_id: int = typer.Argument(...), db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite")):
    """Mostra um pedido e seus itens."""
    pedido = obter_pedido(pedido_id, db_path=db_path)
    _display_campos(pedido, title=f"Pedido #{pedido_id}")
    _display_table(pedido["itens"], title="Itens", columns=_COLS_ITEM_PEDIDO)


@pedido_app.command("fechar")
@_notificar_erros
def cmd_pedido_fechar(
    pedido_id: int = typer.Argument(...),
    frete: float = typer.Option(0.0, help="Valor do frete (R$)"),
    outros: float = typer.Option(0.0, help="Outros custos (R$)"),
    descricao: str = typer.Option("", help="Descrição dos outros custos"),
    peso_balanca: Optional[float] = typer.Option(None, help="Peso conferido na balança (kg)"),
    recebido: Optional[List[str]] = typer.Option(None, help="ITEM_ID=VOLUMES recebidos (repetível)"),
    custo: Optional[List[str]] = typer.Option(None, help="ITEM_ID=CUSTO real por volume (repetível)"),
    tara: Optional[List[str]] = typer.Option(None, help="ITEM_ID=TARA total em kg (repetível)"),
    margem: Optional[List[str]] = typer.Option(None, help="ITEM_ID=MARGEM % (repetível)"),
    preco: Optional[List[str]] = typer.Option(None, help="ITEM_ID=PRECO por kg (repetível)"),
    aprovar: bool = typer.Option(False, "--aprovar", help="Grava o fechamento (sem isso só mostra a prévia)"),
    atomico: bool = typer.Option(False, "--atomico", help="Aprova numa única transação"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Prévia de precificação do recebimento e, com --aprovar, o fechamento."""
    sessao = FechamentoPedido(pedido_id, db_path=db_path)
    sessao.definir_frete(frete)
    sessao.definir_outros_custos(outros, descricao)
    sessao.definir_peso_balanca(peso_balanca)
    for item_id, v in _pares(recebido, "--recebido").items():
        sessao.definir_recebido(item_id, v)
    for item_id, v in _pares(custo, "--custo").items():
        sessao.definir_custo_real(item_id, v)
    for item_id, v in _pares(tara, "--tara").items():
        sessao.definir_tara(item_id, v)
    for item_id, v in _pares(margem, "--margem").items():
        sessao.definir_margem(item_id, v)
    for item_id, v in _pares(preco, "--preco").items():
        sessao.definir_preco(item_id, v)

    _display_table(
        [vars(p) for p in sessao.itens],
        title=f"Fechamento do Pedido #{pedido_id}",
        columns=["item_id", "produto", "qtd_volumes", "peso_liquido", "custo_real_kg", "margem", "preco_venda"],
    )
    resumo = sessao.resumo()
    div = resumo["divergencia"]
    linhas = [
        f"Volumes: {_fmt(resumo['volumes'])}",
        f"Valor produtos: R$ {_fmt(resumo['valor_produtos'])}",
        f"Peso nota: {_fmt(resumo['peso_nota'])} kg | Peso líquido: {_fmt(resumo['peso_liquido'])} kg",
        f"Total com custos: R$ {_fmt(resumo['valor_total'])}",
        f"Margem média ponderada: {_fmt(resumo['margem_media'])}%",
    ]
    if div:
        cor = "red" if div["relevante"] else "green"
        linhas.append(f"[{cor}]Diferença balança: {div['diferenca_kg']:+.1f} kg[/]")
    console.print(Panel("\n".join(linhas), title="Resumo"))

    if not aprovar:
        console.print("[dim]Prévia apenas. Use --aprovar para gravar.[/dim]")
        return
    res = sessao.aprovar(atomico=atomico)
    typer.echo(
        f">> Pedido #{pedido_id} recebido: total R$ {_fmt(res['total_recebido'])}, "
        f"{len(res['lotes'])} lote(s) gerado(s)."
    )


# -----------------------
# relatórios
# -----------------------

rel_app = typer.Typer(help="Relatórios do painel")
app.add_typer(rel_app, name="rel")


@rel_app.command("vencimentos")
def rel_vencimentos(
    dias: Optional[int] = typer.Option(None, help="Dias até o vencimento (padrão: dias_alerta_vencimento)"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Lotes vencidos ou a vencer."""
    res = relatorio_vencimentos(dias, db_path=db_path)
    _display_table(res, title="Vencimentos", columns=["id", "produto", "quantidade", "data_validade", "dias_restantes"])


@rel_app.command("estoque-baixo")
def rel_estoque_baixo(db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite")):
    """Produtos ativos com estoque no mínimo ou abaixo."""
    _display_table(relatorio_estoque_baixo(db_path), title="Estoque Baixo")


@rel_app.command("quebras")
def rel_quebras(
    dias: Optional[int] = typer.Option(None, help="Janela em dias (padrão: dias_quebras_recentes)"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Quebras recentes e total perdido por motivo."""
    res = relatorio_quebras(dias, db_path=db_path)
    _display_table([{"motivo": k, "total_perda": v} for k, v in res["por_motivo"].items()], title="Quebras por Motivo")
    console.print(f"[bold red]Total perdido: R$ {_fmt(res['total_perda'])}[/]")


@rel_app.command("vendas-dia")
def rel_vendas_dia(
    dia: Optional[str] = typer.Option(None, help="YYYY-MM-DD (padrão: hoje)"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Faturamento, custo real e lucro do dia."""
    res = relatorio_vendas_dia(date.fromisoformat(dia) if dia else None, db_path=db_path)
    _display_campos(res, title="Vendas do Dia")


@rel_app.command("fechamento")
@_notificar_erros
def rel_fechamento(pedido_id: int = typer.Argument(...), db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite")):
    """Relatório de fechamento de um pedido recebido."""
    res = relatorio_fechamento(pedido_id, db_path=db_path)
    _display_table(res["itens"], title=f"Fechamento do Pedido #{pedido_id}")
    console.print(f"Margem média ponderada: {_fmt(res['margem_media'])}%")
    if res["observacoes"]:
        console.print(f"[dim]{res['observacoes']}[/dim]")


def main():
    app()


if __name__ == "__main__":
    main()
