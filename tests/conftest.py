import pytest

from cnpools.base import SiteContext
from cnpools.fileinput import YAMLParameterProvider
from cnpools.soil import Pool, PoolName, PoolType


@pytest.fixture
def provider():
    return YAMLParameterProvider()


@pytest.fixture
def params(provider):
    return provider.get_parameters()


@pytest.fixture
def site(params):
    return SiteContext(params, soil_depth=30.0, mineral_n=50.0, site_id="test")


def _make_pool(name, type, carbon, nitrogen, fraction_lignin=0.0):
    pool = Pool(name, type)
    pool.carbon = carbon
    pool.nitrogen = nitrogen
    pool.fraction_lignin = fraction_lignin
    return pool


@pytest.fixture
def make_pool():
    return _make_pool


@pytest.fixture
def structural_pool(make_pool):
    return make_pool(PoolName.Structural, PoolType.SoilLitter, 100.0, 5.0)
