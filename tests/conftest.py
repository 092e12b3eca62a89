import pytest

from hortifruti.domain.models import Produto
from hortifruti.infra.migrations import apply_migrations
from hortifruti.infra.repositories import ProdutoRepo
from hortifruti.infra.views import create_views


@pytest.fixture
def db_path(tmp_path):
    """Banco SQLite temporário já migrado."""
    path = str(tmp_path / "hortifruti_test.sqlite")
    apply_migrations(path)
    create_views(path)
    return path


@pytest.fixture
def produtos(db_path):
    """Dois produtos básicos: tomate (PLU 00123) e banana (PLU 00456)."""
    repo = ProdutoRepo(db_path)
    return {
        "tomate": repo.inserir(
            Produto(plu="00123", nome="Tomate Italiano", categoria="legumes",
                    preco=8.0, custo_compra=4.0, estoque_minimo=5, shelf_life=5)
        ),
        "banana": repo.inserir(
            Produto(plu="00456", nome="Banana Prata", categoria="frutas",
                    preco=6.0, custo_compra=3.0, estoque_minimo=0, shelf_life=4)
        ),
    }
