import logging

import pytest

import cnpools.soil.pool as pool_module
from cnpools.base import SiteContext
from cnpools.soil import PoolName, PoolType


def _site(params, **kwargs):
    kwargs.setdefault("soil_depth", 30.0)
    kwargs.setdefault("mineral_n", 50.0)
    return SiteContext(params, **kwargs)


class TestStructural:
    def test_nearly_empty_pool_is_unchanged(self, site, make_pool):
        pool = make_pool(PoolName.Structural, PoolType.SoilLitter, 1e-8, 1e-9, 0.2)
        before = site.snapshot()

        pool.decompose_structural(site)

        assert pool.carbon == 1e-8
        assert pool.nitrogen == 1e-9
        assert site.snapshot() == before

    def test_surface_litter_ignores_anaerobic_effect(self, params, make_pool):
        site_wet = _site(params, anaerobic_effect=0.5)
        site_dry = _site(params, anaerobic_effect=1.0)
        pool_wet = make_pool(PoolName.Structural, PoolType.SurfaceLitter, 1000.0, 20.0, 0.2)
        pool_dry = make_pool(PoolName.Structural, PoolType.SurfaceLitter, 1000.0, 20.0, 0.2)

        pool_wet.decompose_structural(site_wet)
        pool_dry.decompose_structural(site_dry)

        assert pool_wet.carbon < 1000.0
        assert pool_wet.carbon == pool_dry.carbon
        assert site_wet.snapshot() == site_dry.snapshot()

    def test_soil_litter_is_slowed_by_anaerobic_effect(self, params, make_pool):
        site_wet = _site(params, anaerobic_effect=0.5)
        site_dry = _site(params, anaerobic_effect=1.0)
        pool_wet = make_pool(PoolName.Structural, PoolType.SoilLitter, 1000.0, 20.0, 0.2)
        pool_dry = make_pool(PoolName.Structural, PoolType.SoilLitter, 1000.0, 20.0, 0.2)

        pool_wet.decompose_structural(site_wet)
        pool_dry.decompose_structural(site_dry)

        assert pool_dry.carbon < pool_wet.carbon < 1000.0

    def test_lignin_free_material_only_feeds_organic_horizon(self, site, make_pool):
        pool = make_pool(PoolName.Structural, PoolType.SoilLitter, 1000.0, 20.0, 0.0)

        pool.decompose_structural(site)

        assert site.mineral_soil.carbon == 0.0
        assert site.o_horizon.monthly_carbon_inputs > 0.0
        assert site.o_horizon.monthly_nitrogen_inputs > 0.0

    def test_carbon_is_conserved_within_rounding(self, site, make_pool):
        pool = make_pool(PoolName.Structural, PoolType.SoilLitter, 1234.56, 25.0, 0.3)

        pool.decompose_structural(site)

        removed = 1234.56 - pool.carbon
        received = (
            site.mineral_soil.carbon
            + site.o_horizon.monthly_carbon_inputs
            + site.monthly_other_resp.sum()
        )
        assert removed > 0.0
        assert removed == pytest.approx(received, abs=1.02)
        assert site.total_carbon() + pool.carbon == pytest.approx(1234.56, abs=2.02)


class TestLignin:
    def test_no_mineral_nitrogen_keeps_destinations_non_negative(self, params, make_pool):
        site = _site(params, mineral_n=0.0)
        pool = make_pool(PoolName.Structural, PoolType.SoilLitter, 1000.3, 0.02, 0.25)

        pool.decompose_structural(site)

        assert pool.carbon < 1000.3
        assert pool.nitrogen >= 0.0
        assert site.o_horizon.monthly_nitrogen_inputs >= 0.0
        assert site.mineral_soil.nitrogen >= 0.0

    def test_flow_partitioning(self, site, make_pool):
        pool = make_pool(PoolName.Structural, PoolType.SoilLitter, 1000.0, 20.0, 0.25)

        pool.decompose_lignin(100.0, site)

        # 25 to the mineral soil with 30% respired, 75 to the organic
        # horizon with 55% respired
        assert site.mineral_soil.carbon == pytest.approx(17.5)
        assert site.o_horizon.monthly_carbon_inputs == pytest.approx(33.75)
        assert site.monthly_other_resp[0] == pytest.approx(48.75)
        # pool and source/sink carbon are rounded at each respiration
        assert site.source_sink.carbon == 49.0
        assert pool.carbon == pytest.approx(899.25)

    def test_mineral_soil_nitrogen_receives_flow(self, site, make_pool):
        pool = make_pool(PoolName.Structural, PoolType.SoilLitter, 1000.0, 20.0, 0.25)

        pool.decompose_lignin(100.0, site)

        assert pool.nitrogen < 20.0
        assert site.o_horizon.monthly_nitrogen_inputs > 0.0
        assert site.mineral_soil.nitrogen > 50.0


class TestMetabolic:
    def test_decomposition(self, params, make_pool):
        site = _site(params, decay_factor=0.2)
        pool = make_pool(PoolName.Metabolic, PoolType.SoilLitter, 100.0, 5.0)

        pool.decompose_metabolic(site)

        total = 100.0 * 0.2 * 18.5 * params.MonthAdjust
        doc = total * params.FractionLitterDecayToDOC
        co2 = total * params.MetabolicToCO2Soil
        assert site.o_horizon.doc == pytest.approx(doc)
        # plenty of mineral N: material enters the horizon at the minimum C:N
        assert site.o_horizon.don == pytest.approx(doc / 8.0)
        assert site.monthly_other_resp[0] == pytest.approx(co2)
        assert site.o_horizon.monthly_carbon_inputs == pytest.approx(total - co2, abs=0.011)
        # the organic horizon takes everything for any soil depth
        assert site.mineral_soil.carbon == 0.0
        assert pool.carbon == pytest.approx(
            round(100.0 - doc - co2) - (total - co2), abs=0.011
        )

    def test_doc_is_exported_when_decomposition_is_blocked(self, params, make_pool):
        site = _site(params, mineral_n=0.0, decay_factor=0.2)
        pool = make_pool(PoolName.Metabolic, PoolType.SoilLitter, 100.0, 1.0)

        pool.decompose_metabolic(site)

        assert site.o_horizon.doc > 0.0
        # no mineral N: material enters the horizon at the maximum C:N
        assert site.o_horizon.don == pytest.approx(site.o_horizon.doc / 18.0)
        assert pool.carbon == pytest.approx(100.0 - site.o_horizon.doc)
        assert site.o_horizon.monthly_carbon_inputs == 0.0
        assert site.source_sink.carbon == 0.0
        assert site.monthly_other_resp.sum() == 0.0

    def test_surface_litter_uses_aboveground_ratio(self, site, make_pool):
        pool = make_pool(PoolName.Metabolic, PoolType.SurfaceLitter, 100.0, 1.0)
        site.decay_factor = 0.2

        pool.decompose_metabolic(site)

        assert site.o_horizon.don == pytest.approx(site.o_horizon.doc / 17.5)

    def test_only_soil_pools_feel_anaerobic_effect(self, params, make_pool):
        results = {}
        for pool_type in (PoolType.Soil, PoolType.SoilLitter):
            for anerb in (0.5, 1.0):
                site = _site(params, decay_factor=0.2, anaerobic_effect=anerb)
                pool = make_pool(PoolName.Metabolic, pool_type, 100.0, 5.0)
                pool.decompose_metabolic(site)
                results[pool_type, anerb] = site.o_horizon.doc

        assert results[PoolType.Soil, 0.5] == pytest.approx(0.5 * results[PoolType.Soil, 1.0])
        assert results[PoolType.SoilLitter, 0.5] == results[PoolType.SoilLitter, 1.0]

    def test_nearly_empty_pool_is_unchanged(self, site, make_pool):
        pool = make_pool(PoolName.Metabolic, PoolType.SoilLitter, 1e-8, 1e-9)
        before = site.snapshot()

        pool.decompose_metabolic(site)

        assert pool.carbon == 1e-8
        assert site.snapshot() == before

    def test_shallow_soil_is_reported_once(self, params, make_pool, caplog):
        pool = make_pool(PoolName.Metabolic, PoolType.SoilLitter, 100.0, 5.0)

        with caplog.at_level(logging.WARNING):
            site = _site(params, soil_depth=5.0, decay_factor=0.2)
            pool.decompose_metabolic(site)
            pool.decompose_metabolic(site)

        assert caplog.text.count("shallower than the organic horizon") == 1
        assert site.mineral_soil.carbon == 0.0
        assert site.o_horizon.monthly_carbon_inputs > 0.0

    def test_inverted_guard_skips_non_empty_pools(self, provider, make_pool, monkeypatch, caplog):
        monkeypatch.setattr(pool_module, "_inverted_guard_reported", False)
        provider.update_parameters({"InvertedMetabolicGuard": True})
        site = _site(provider.get_parameters())
        pool = make_pool(PoolName.Metabolic, PoolType.SoilLitter, 100.0, 5.0)
        before = site.snapshot()

        with caplog.at_level(logging.WARNING):
            pool.decompose_metabolic(site)
            pool.decompose_metabolic(site)

        assert pool.carbon == 100.0
        assert pool.nitrogen == 5.0
        assert site.snapshot() == before
        assert caplog.text.count("InvertedMetabolicGuard is enabled") == 1

    def test_dispatch(self, site, make_pool):
        site.decay_factor = 0.2
        pool = make_pool(PoolName.Metabolic, PoolType.SoilLitter, 100.0, 5.0)

        assert pool.decompose(site) is True
        assert pool.carbon < 100.0
