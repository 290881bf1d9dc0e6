# -*- coding: utf-8 -*-
# Copyright (c) 2004-2018 Alterra, Wageningen-UR
# Allard de Wit (allard.dewit@wur.nl), April 2014
"""Base classes for parameter sets and the per-site shared state."""
from .states_rates import ParamTemplate
from .site import SiteContext, MineralSoil, OHorizon, SourceSink, MONTHS_PER_YEAR, O_HORIZON_DEPTH
