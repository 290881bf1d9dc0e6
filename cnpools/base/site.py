# -*- coding: utf-8 -*-
# Copyright (c) 2004-2018 Alterra, Wageningen-UR
# Allard de Wit (allard.dewit@wur.nl), April 2014
"""Per-site aggregates shared by all pools of a site.

A `SiteContext` is passed by reference into every pool operation. Pools of
the same site read and modify the same aggregates, so they must be
processed sequentially; different sites are independent.
"""
import logging

import numpy as np

from .. import exceptions as exc

MONTHS_PER_YEAR = 12
# Assumed thickness of the organic horizon (cm), the rest is mineral soil.
O_HORIZON_DEPTH = 10.0


class MineralSoil:
    """Mineral soil organic matter and the plant available mineral N of a site."""

    __slots__ = ["carbon", "nitrogen"]

    carbon: float  # g C m^-2
    nitrogen: float  # g N m^-2, mineral (plant available) nitrogen

    def __init__(self, carbon=0.0, nitrogen=0.0):
        self.carbon = carbon
        self.nitrogen = nitrogen

    def __repr__(self):
        return "%s(carbon=%.3f, nitrogen=%.3f)" % (
            self.__class__.__name__,
            self.carbon,
            self.nitrogen,
        )


class OHorizon:
    """Surface organic horizon receiving decomposed litter."""

    __slots__ = [
        "carbon",
        "nitrogen",
        "monthly_carbon_inputs",
        "monthly_nitrogen_inputs",
        "doc",
        "don",
    ]

    carbon: float  # g C m^-2
    nitrogen: float  # g N m^-2
    monthly_carbon_inputs: float  # g C m^-2 month^-1
    monthly_nitrogen_inputs: float  # g N m^-2 month^-1
    doc: float  # dissolved organic carbon, g C m^-2
    don: float  # dissolved organic nitrogen, g N m^-2

    def __init__(self, carbon=0.0, nitrogen=0.0, doc=0.0, don=0.0):
        self.carbon = carbon
        self.nitrogen = nitrogen
        self.monthly_carbon_inputs = 0.0
        self.monthly_nitrogen_inputs = 0.0
        self.doc = doc
        self.don = don

    def reset_monthly_inputs(self):
        self.monthly_carbon_inputs = 0.0
        self.monthly_nitrogen_inputs = 0.0

    def merge_monthly_inputs(self):
        """Add the inputs of the past month to the horizon and reset the accumulators."""
        self.carbon += self.monthly_carbon_inputs
        self.nitrogen += self.monthly_nitrogen_inputs
        self.reset_monthly_inputs()

    def __repr__(self):
        return (
            "%s(carbon=%.3f, nitrogen=%.3f, monthly_carbon_inputs=%.3f, "
            "monthly_nitrogen_inputs=%.3f, doc=%.3f, don=%.3f)"
        ) % (
            self.__class__.__name__,
            self.carbon,
            self.nitrogen,
            self.monthly_carbon_inputs,
            self.monthly_nitrogen_inputs,
            self.doc,
            self.don,
        )


class SourceSink:
    """Carbon released to the atmosphere by the site."""

    __slots__ = ["carbon"]

    carbon: float  # g C m^-2

    def __init__(self, carbon=0.0):
        self.carbon = carbon


class SiteContext:
    """Shared mutable state of a single site.

    :param parameters: the global parameter set (`Pool.Parameters`), read only
    :param soil_depth: depth of the soil (cm)
    :param decay_factor: combined temperature and moisture decay scalar
    :param anaerobic_effect: decay scalar for anaerobic (wet) soil conditions
    :param month: month index 0-11 of the current timestep
    :param mineral_n: initial mineral nitrogen (g N m^-2)
    :param site_id: identifier used in diagnostics

    The context holds the accumulators that pool operations write to: the
    mineral soil and its mineral nitrogen, the organic horizon, the carbon
    source/sink, the monthly respiration series and gross mineralization.
    """

    __slots__ = [
        "site_id",
        "parameters",
        "mineral_soil",
        "o_horizon",
        "source_sink",
        "monthly_mineral_soil_resp",
        "monthly_other_resp",
        "gross_mineralization",
        "decay_factor",
        "anaerobic_effect",
        "soil_depth",
        "_month",
    ]

    def __init__(
        self,
        parameters,
        soil_depth,
        decay_factor=1.0,
        anaerobic_effect=1.0,
        month=0,
        mineral_n=0.0,
        site_id=None,
    ):
        if soil_depth <= 0.0:
            msg = "Soil depth should be positive, got %r" % (soil_depth,)
            raise exc.InvalidArgumentError(msg)

        self.site_id = site_id
        self.parameters = parameters
        self.mineral_soil = MineralSoil(nitrogen=mineral_n)
        self.o_horizon = OHorizon()
        self.source_sink = SourceSink()
        self.monthly_mineral_soil_resp = np.zeros(MONTHS_PER_YEAR)
        self.monthly_other_resp = np.zeros(MONTHS_PER_YEAR)
        self.gross_mineralization = 0.0
        self.decay_factor = decay_factor
        self.anaerobic_effect = anaerobic_effect
        self.soil_depth = soil_depth
        self.month = month

        if soil_depth < O_HORIZON_DEPTH:
            self.logger.warning(
                "Soil depth %.2f cm on site %s is shallower than the organic horizon, "
                "all metabolic losses go to the organic horizon.",
                soil_depth,
                site_id,
            )

    @property
    def month(self):
        return self._month

    @month.setter
    def month(self, value):
        if not 0 <= value < MONTHS_PER_YEAR:
            msg = "Month index should be in the range 0-%i, got %r" % (
                MONTHS_PER_YEAR - 1,
                value,
            )
            raise exc.InvalidArgumentError(msg)
        self._month = int(value)

    def total_carbon(self):
        """Carbon held by the site aggregates, respired carbon included."""
        o = self.o_horizon
        return (
            self.mineral_soil.carbon
            + o.carbon
            + o.monthly_carbon_inputs
            + o.doc
            + self.source_sink.carbon
        )

    def total_nitrogen(self):
        """Nitrogen held by the site aggregates, mineral nitrogen included."""
        o = self.o_horizon
        return (
            self.mineral_soil.nitrogen
            + o.nitrogen
            + o.monthly_nitrogen_inputs
            + o.don
        )

    def snapshot(self):
        """Returns the current value of all site accumulators as a dict."""
        return {
            "site_id": self.site_id,
            "month": self.month,
            "mineral_soil_carbon": self.mineral_soil.carbon,
            "mineral_n": self.mineral_soil.nitrogen,
            "o_horizon_carbon": self.o_horizon.carbon,
            "o_horizon_nitrogen": self.o_horizon.nitrogen,
            "o_horizon_monthly_carbon_inputs": self.o_horizon.monthly_carbon_inputs,
            "o_horizon_monthly_nitrogen_inputs": self.o_horizon.monthly_nitrogen_inputs,
            "doc": self.o_horizon.doc,
            "don": self.o_horizon.don,
            "source_sink_carbon": self.source_sink.carbon,
            "mineral_soil_resp": self.monthly_mineral_soil_resp[self.month],
            "other_resp": self.monthly_other_resp[self.month],
            "gross_mineralization": self.gross_mineralization,
        }

    @property
    def logger(self):
        loggername = "%s.%s" % (self.__class__.__module__, self.__class__.__name__)
        return logging.getLogger(loggername)
