"""Decomposing carbon/nitrogen pools of litter, wood and soil organic matter."""
from .pool import Pool, PoolName, PoolType
from .decomposition_ratios import (
    decompose_possible,
    aboveground_decomposition_ratio,
    belowground_decomposition_ratio,
)
