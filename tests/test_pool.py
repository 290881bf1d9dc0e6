import math

import pytest

from cnpools import exceptions as exc
from cnpools.soil import Pool, PoolName, PoolType


def test_new_pool_is_empty():
    pool = Pool(PoolName.Leaf, PoolType.SurfaceLitter)

    assert pool.carbon == 0.0
    assert pool.nitrogen == 0.0
    assert pool.fraction_lignin == 0.0
    assert pool.decay_value == 0.0
    assert math.isinf(pool.ratio_cn)
    assert "Leaf" in repr(pool)


def test_ratio_cn(structural_pool):
    assert structural_pool.ratio_cn == pytest.approx(20.0)


def test_adjust_lignin_is_carbon_weighted(make_pool):
    pool = make_pool(PoolName.Structural, PoolType.SoilLitter, 100.0, 5.0, 0.2)

    pool.adjust_lignin(300.0, 0.4)

    assert pool.fraction_lignin == pytest.approx(0.35)
    assert pool.carbon == 100.0


def test_adjust_lignin_without_carbon_is_a_noop():
    pool = Pool(PoolName.Structural, PoolType.SoilLitter)
    pool.adjust_lignin(0.0, 0.4)
    assert pool.fraction_lignin == 0.0


def test_adjust_decay_rate_is_carbon_weighted(make_pool):
    pool = make_pool(PoolName.Wood, PoolType.SurfaceLitter, 100.0, 1.0)
    pool.decay_value = 0.1

    pool.adjust_decay_rate(100.0, 0.3)

    assert pool.decay_value == pytest.approx(0.2)


def test_add_material(make_pool):
    pool = make_pool(PoolName.Structural, PoolType.SurfaceLitter, 100.0, 2.0, 0.1)

    pool.add_material(100.0, 1.0, fraction_lignin=0.3, decay_rate=0.5)

    assert pool.carbon == 200.0
    assert pool.nitrogen == 3.0
    assert pool.fraction_lignin == pytest.approx(0.2)
    assert pool.decay_value == pytest.approx(0.25)


def test_add_negative_material_raises(structural_pool):
    with pytest.raises(exc.InvalidArgumentError):
        structural_pool.add_material(-1.0, 0.0)
    assert structural_pool.carbon == 100.0


def test_reduce_mass(structural_pool):
    structural_pool.reduce_mass(0.25)

    assert structural_pool.carbon == pytest.approx(75.0)
    assert structural_pool.nitrogen == pytest.approx(3.75)


@pytest.mark.parametrize("fraction", [1.5, -0.1])
def test_reduce_mass_out_of_range(structural_pool, fraction):
    with pytest.raises(ValueError):
        structural_pool.reduce_mass(fraction)

    assert structural_pool.carbon == 100.0
    assert structural_pool.nitrogen == 5.0


def test_transfer_carbon_rounds_to_two_decimals(make_pool):
    pool = make_pool(PoolName.Structural, PoolType.SoilLitter, 10.456, 1.0)

    moved = pool.transfer_carbon(3.333)

    assert moved == 3.33
    assert pool.carbon == pytest.approx(7.13)


def test_transfer_carbon_is_clamped_to_pool(make_pool, caplog):
    pool = make_pool(PoolName.Structural, PoolType.SoilLitter, 10.0, 1.0)

    moved = pool.transfer_carbon(20.0)

    assert moved == 10.0
    assert pool.carbon == 0.0
    assert "flow is clamped" in caplog.text


def test_transfer_carbon_without_flow(structural_pool):
    assert structural_pool.transfer_carbon(0.0) == 0.0
    assert structural_pool.transfer_carbon(-1.0) == 0.0
    assert structural_pool.carbon == 100.0


def test_decompose_other_material_is_a_noop(site, make_pool):
    pool = make_pool(PoolName.Leaf, PoolType.SurfaceLitter, 100.0, 5.0)
    before = site.snapshot()

    assert pool.decompose(site) is False
    assert pool.carbon == 100.0
    assert site.snapshot() == before
