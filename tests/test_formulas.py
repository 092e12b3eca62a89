from math import isclose

import pytest

from hortifruti.domain.formulas import (
    custo_base_unitario,
    custo_real_kg,
    divergencia_peso,
    limitar_margem,
    margem_media_ponderada,
    margem_por_preco,
    peso_bruto_item,
    peso_liquido,
    preco_por_margem,
    taxa_custo_por_kg,
)


def test_preco_e_margem_sao_inversos():
    preco = preco_por_margem(10.0, 60)
    assert isclose(preco, 25.0, abs_tol=1e-9)
    assert isclose(margem_por_preco(10.0, 25.0), 60.0, abs_tol=1e-9)


@pytest.mark.parametrize("custo,margem", [(4.9, 0.2), (12.35, 45.5), (123.45, 99.8)])
def test_margem_recalculada_do_preco(custo, margem):
    preco = preco_por_margem(custo, margem)
    assert abs(margem_por_preco(custo, preco) - margem) <= 0.1
    # preço em centavos ainda devolve a margem dentro de 0,1
    assert abs(margem_por_preco(custo, round(preco, 2)) - margem) <= 0.1


def test_margem_limitada():
    assert limitar_margem(150) == 99.9
    assert limitar_margem(-5) == 0.1
    assert limitar_margem(42) == 42
    # margem 100% seria divisão por zero
    assert isclose(preco_por_margem(10.0, 100), 10.0 / 0.001)


def test_margem_por_preco_sem_preco_e_abaixo_do_custo():
    assert margem_por_preco(10.0, 0) == 0.0
    assert margem_por_preco(10.0, 8.0) < 0


def test_peso_bruto_proporcional_ao_recebido():
    assert peso_bruto_item(20.0, 4, 3) == 15.0
    assert peso_bruto_item(20.0, 4, None) == 20.0
    assert peso_bruto_item(20.0, 0, 3) == 20.0


def test_peso_liquido_nunca_abaixo_do_piso():
    assert peso_liquido(5.0, 8.0) == 0.1
    assert peso_liquido(5.0, 5.0) == 0.1
    assert isclose(peso_liquido(20.0, 1.5), 18.5)


def test_taxa_rateada_por_peso():
    assert isclose(taxa_custo_por_kg(30.0, 10.0, [10.0, 30.0]), 1.0)
    assert taxa_custo_por_kg(30.0, 10.0, []) == 0.0


def test_custo_real_kg():
    base = custo_base_unitario(2, 50.0, 20.0)
    assert isclose(base, 5.0)
    assert isclose(custo_real_kg(base, 0.75), 5.75)
    with pytest.raises(ValueError):
        custo_base_unitario(2, 50.0, 0)


def test_margem_media_ponderada():
    assert isclose(margem_media_ponderada([(50, 10), (70, 30)]), 65.0)
    assert margem_media_ponderada([]) == 0.0


def test_divergencia_peso_limite_de_cinco_por_cento():
    alta = divergencia_peso(100.0, 106.0)
    assert alta["relevante"] is True
    assert isclose(alta["diferenca_kg"], 6.0)
    assert isclose(alta["diferenca_pct"], 6.0)

    baixa = divergencia_peso(100.0, 104.0)
    assert baixa["relevante"] is False

    assert divergencia_peso(100.0, 94.0)["relevante"] is True
    assert divergencia_peso(100.0, None) is None
    assert divergencia_peso(100.0, 0) is None
