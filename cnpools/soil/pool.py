import math
from enum import Enum
import logging

from ..base import ParamTemplate, O_HORIZON_DEPTH
from ..util import LitterParameterTable, limit
from .. import exceptions as exc
from .decomposition_ratios import (
    decompose_possible,
    aboveground_decomposition_ratio,
    belowground_decomposition_ratio,
)

# Pools with less carbon than this do not decompose.
CARBON_EPSILON = 0.0000001
# Not enough C or N to respire below these amounts.
RESPIRATION_N_EPSILON = 0.000001
RESPIRATION_C_EPSILON = 0.00001
# Immobilization leaves at least this amount of mineral N.
MINERAL_N_FLOOR = 0.01
# N mineralization per call above which a diagnostic is reported.
LARGE_MINERALIZATION = 3.0

_inverted_guard_reported = False


class PoolName(Enum):
    """Material category of a pool."""

    Leaf = 0
    FineRoot = 1
    Wood = 2
    CoarseRoot = 3
    Metabolic = 4
    Structural = 5
    Mineral = 6
    Other = 7


class PoolType(Enum):
    """Structural context of a pool, selects the row of the litter parameter table."""

    SurfaceLitter = 0
    SoilLitter = 1
    Soil = 2
    Other = 3


class Pool:
    """A Century soil model carbon and nitrogen pool.

    :param name: material category (`PoolName`)
    :param type: structural context (`PoolType`)

    A pool holds the carbon and nitrogen of one material category at one
    site. It is created empty and modified by litter deposition and by the
    monthly decomposition operations below. The operations read and write
    the shared aggregates of the site through the `SiteContext` passed in.

    Carbon leaves a pool only through `respiration` (to the carbon
    source/sink) and `transfer_carbon` (to a destination); nitrogen only
    through `respiration`, `transfer_nitrogen` and the DOC/DON export of
    metabolic decomposition. Flows are clamped to the stock of the pool
    before they are subtracted.
    """

    __slots__ = [
        "name",
        "type",
        "carbon",
        "nitrogen",
        "decay_value",
        "fraction_lignin",
    ]

    name: PoolName
    type: PoolType
    carbon: float  # g C m^-2
    nitrogen: float  # g N m^-2
    decay_value: float  # pool decay rate
    fraction_lignin: float  # fraction of the carbon that is lignin

    class Parameters(ParamTemplate):
        """Global parameter tables of the decomposition model."""

        __slots__ = [
            "LitterParameters",
            "MaxStructuralC",
            "LigninDecayEffect",
            "MonthAdjust",
            "LigninRespirationRate",
            "StructuralToCO2Surface",
            "StructuralToCO2Soil",
            "MetabolicToCO2Surface",
            "MetabolicToCO2Soil",
            "FractionLitterDecayToDOC",
            "MinCNSurfMicrobes",
            "MaxCNSurfMicrobes",
            "MinNContentCNSurfMicrobes",
            "MinCNenterOHorizon",
            "MaxCNenterOHorizon",
            "MinContentN_OHorizon",
            "InvertedMetabolicGuard",
        ]

        LitterParameters: LitterParameterTable  # yr^-1, per pool type
        MaxStructuralC: float  # g C m^-2, maximum structural C decomposing
        LigninDecayEffect: float  # -, effect of lignin on structural decay
        MonthAdjust: float  # -, conversion of annual rates to a month
        LigninRespirationRate: float  # -, CO2 fraction of lignin to mineral soil
        StructuralToCO2Surface: float  # -
        StructuralToCO2Soil: float  # -
        MetabolicToCO2Surface: float  # -
        MetabolicToCO2Soil: float  # -
        FractionLitterDecayToDOC: float  # -
        MinCNSurfMicrobes: float  # -
        MaxCNSurfMicrobes: float  # -
        MinNContentCNSurfMicrobes: float  # -
        MinCNenterOHorizon: float  # -
        MaxCNenterOHorizon: float  # -
        MinContentN_OHorizon: float  # g N m^-2
        InvertedMetabolicGuard: bool  # skip metabolic decay unless C is ~0

    def __init__(self, name, type):
        self.name = name
        self.type = type
        self.carbon = 0.0
        self.nitrogen = 0.0
        self.decay_value = 0.0
        self.fraction_lignin = 0.0

    def __repr__(self):
        return "%s(%s, %s, carbon=%.3f, nitrogen=%.3f, fraction_lignin=%.3f)" % (
            self.__class__.__name__,
            self.name.name,
            self.type.name,
            self.carbon,
            self.nitrogen,
            self.fraction_lignin,
        )

    @property
    def logger(self):
        loggername = "%s.%s" % (self.__class__.__module__, self.__class__.__name__)
        return logging.getLogger(loggername)

    @property
    def ratio_cn(self):
        """C:N ratio of the pool, infinite when the pool holds no nitrogen."""
        if self.nitrogen <= 0.0:
            return math.inf
        return self.carbon / self.nitrogen

    def decompose(self, site):
        """Run the decomposition matching the material of this pool.

        :return: True if the pool is of a decomposing kind, False otherwise.
        """
        if self.name is PoolName.Structural:
            self.decompose_structural(site)
        elif self.name is PoolName.Metabolic:
            self.decompose_metabolic(site)
        else:
            return False
        return True

    def decompose_structural(self, site):
        """Decompose structural material, the flow is limited by its lignin content."""
        if self.carbon < CARBON_EPSILON:
            return

        p = site.parameters
        anerb = site.anaerobic_effect
        if self.type is PoolType.SurfaceLitter:
            anerb = 1.0  # No anaerobic effect on surface material

        # Compute total C flow out of structural in layer
        total_c_flow = (
            min(self.carbon, p.MaxStructuralC)
            * site.decay_factor
            * p.LitterParameters[self.type].DecayRateStrucC
            * anerb
            * math.exp(-1.0 * p.LigninDecayEffect * self.fraction_lignin)
            * p.MonthAdjust
        )

        # Decompose structural into SOC with CO2 loss.
        self.decompose_lignin(total_c_flow, site)

    def decompose_lignin(self, total_c_flow, site):
        """Partition a gross carbon flow between mineral soil and organic horizon.

        :param total_c_flow: gross carbon flow out of the pool (g C m^-2)
        :param site: `SiteContext` of the pool

        The lignin bound fraction of the flow goes to the mineral soil, the
        rest to the organic horizon, both with a respiration loss. If the pool
        cannot decompose this month the flow is forfeited.
        """
        p = site.parameters
        litter_c = self.carbon
        ratio_cn = self.ratio_cn

        # If it can't decompose to the mineral soil, it can't decompose at all.
        if not self.decompose_possible(ratio_cn, site.mineral_soil.nitrogen):
            self.logger.debug(
                "%s %s on site %s cannot decompose: mineral N=%.7f",
                self.name.name,
                self.type.name,
                site.site_id,
                site.mineral_soil.nitrogen,
            )
            return

        # Gross C flow to mineral soil
        carbon_to_mineral_soil = total_c_flow * self.fraction_lignin

        co2loss = carbon_to_mineral_soil * p.LigninRespirationRate
        self.respiration(co2loss, site)

        net_c_flow = carbon_to_mineral_soil - co2loss
        if net_c_flow > self.carbon:
            self._report_excess_flow("DecomposeLignin", net_c_flow)
            net_c_flow = self.carbon

        site.mineral_soil.carbon += self.transfer_carbon(net_c_flow)
        site.mineral_soil.nitrogen += self.transfer_nitrogen(
            net_c_flow, litter_c, ratio_cn, site
        )

        # Gross C flow to organic horizon
        carbon_to_o_horizon = total_c_flow - carbon_to_mineral_soil

        if self.type is PoolType.SurfaceLitter:
            co2loss = carbon_to_o_horizon * p.StructuralToCO2Surface
        else:
            co2loss = carbon_to_o_horizon * p.StructuralToCO2Soil
        self.respiration(co2loss, site)

        net_c_flow = carbon_to_o_horizon - co2loss
        if net_c_flow > self.carbon:
            self._report_excess_flow("DecomposeLignin", net_c_flow)
            net_c_flow = self.carbon

        site.o_horizon.monthly_carbon_inputs += self.transfer_carbon(net_c_flow)
        site.o_horizon.monthly_nitrogen_inputs += self.transfer_nitrogen(
            net_c_flow, litter_c, ratio_cn, site
        )

    def decompose_metabolic(self, site):
        """Decompose metabolic material into dissolved organic matter and the soils.

        The DOC/DON export happens every month, also when the decomposition
        itself is blocked by a lack of mineral N.
        """
        p = site.parameters
        litter_c = self.carbon

        if p.InvertedMetabolicGuard:
            _report_inverted_guard(self.logger)
            if litter_c > CARBON_EPSILON:
                return
        elif litter_c < CARBON_EPSILON:
            return

        # Shallow soils are reported once by the SiteContext
        fraction_o_horizon = limit(
            0.0, 1.0, max(O_HORIZON_DEPTH / site.soil_depth, 1.0)
        )
        fraction_mineral_soil = 1.0 - fraction_o_horizon

        # Determine C/N ratios for flows to the soils
        if self.type is PoolType.SurfaceLitter:
            ratio_cn_to_soils = aboveground_decomposition_ratio(
                self.nitrogen,
                litter_c,
                p.MinCNSurfMicrobes,
                p.MaxCNSurfMicrobes,
                p.MinNContentCNSurfMicrobes,
            )
        else:
            ratio_cn_to_soils = belowground_decomposition_ratio(
                site.mineral_soil.nitrogen,
                p.MinCNenterOHorizon,
                p.MaxCNenterOHorizon,
                p.MinContentN_OHorizon,
            )

        total_c_flow = (
            litter_c
            * site.decay_factor
            * p.LitterParameters[self.type].DecayRateMetabolicC
            * p.MonthAdjust
        )
        if self.type is PoolType.Soil:
            total_c_flow *= site.anaerobic_effect

        # Add DOC from litter to the organic horizon
        flow_to_doc = total_c_flow * p.FractionLitterDecayToDOC * fraction_o_horizon
        flow_to_don = flow_to_doc / ratio_cn_to_soils

        flow_to_doc = min(flow_to_doc, self.carbon)
        self.carbon -= flow_to_doc
        site.o_horizon.doc += flow_to_doc
        flow_to_don = min(flow_to_don, self.nitrogen)
        self.nitrogen -= flow_to_don
        site.o_horizon.don += flow_to_don

        # Make sure metabolic C does not go negative.
        if total_c_flow > self.carbon:
            total_c_flow = self.carbon

        if not self.decompose_possible(ratio_cn_to_soils, site.mineral_soil.nitrogen):
            self.logger.debug(
                "%s %s on site %s cannot decompose: C:N=%.3f, C:N to soils=%.3f",
                self.name.name,
                self.type.name,
                site.site_id,
                self.ratio_cn,
                ratio_cn_to_soils,
            )
            return

        if self.type is PoolType.SurfaceLitter:
            co2loss = total_c_flow * p.MetabolicToCO2Surface
        else:
            co2loss = total_c_flow * p.MetabolicToCO2Soil
        self.respiration(co2loss, site)

        carbon_to_soils = total_c_flow - co2loss
        if carbon_to_soils > self.carbon:
            self._report_excess_flow("DecomposeMetabolic", carbon_to_soils)
            carbon_to_soils = self.carbon

        c_flow = carbon_to_soils * fraction_o_horizon
        site.o_horizon.monthly_carbon_inputs += self.transfer_carbon(c_flow)
        site.o_horizon.monthly_nitrogen_inputs += self.transfer_nitrogen(
            c_flow, litter_c, ratio_cn_to_soils, site
        )

        # Some portion goes directly to the mineral soil, depending on soil depth.
        c_flow = carbon_to_soils * fraction_mineral_soil
        site.mineral_soil.carbon += self.transfer_carbon(c_flow)
        site.mineral_soil.nitrogen += self.transfer_nitrogen(
            c_flow, litter_c, ratio_cn_to_soils, site
        )

    def transfer_carbon(self, c_flow):
        """Remove a carbon flow from the pool.

        :param c_flow: carbon flow to a destination (g C m^-2)
        :return: the carbon to add to the destination, rounded to 2 decimals
        """
        if c_flow <= 0.0:
            return 0.0

        if c_flow > self.carbon:
            self._report_excess_flow("TransferCarbon", c_flow)
            c_flow = self.carbon

        # round these to avoid unexpected behavior
        c_flow = round(c_flow, 2)
        self.carbon = max(0.0, round(self.carbon - c_flow, 2))
        return c_flow

    def transfer_nitrogen(self, c_flow, total_c, ratio_cn_to_destination, site):
        """Move the nitrogen accompanying a carbon flow.

        :param c_flow: carbon flow to the destination (g C m^-2)
        :param total_c: carbon of the pool used to proportion the N flow
        :param ratio_cn_to_destination: C:N required by the destination
        :param site: `SiteContext` of the pool
        :return: the nitrogen to add to the destination (g N m^-2)

        The N flow is proportional to the C flow. If the C:N of the flow is
        higher than required by the destination, the missing N is immobilized
        from the mineral N of the site. Otherwise the excess N is mineralized.
        """
        if total_c <= 0.0:
            return 0.0

        # N flow is proportional to C flow.
        n_flow = self.nitrogen * c_flow / total_c

        if c_flow <= 0.0 or n_flow <= 0.0:
            return 0.0

        if n_flow > self.nitrogen:
            if (n_flow - self.nitrogen) > 0.01:
                self.logger.warning(
                    "Transfer N: N flow > source N. NFlow=%.3f, SourceN=%.3f, "
                    "CFlow=%.3f, totalC=%.3f, pool=%s %s, ratio CN to dest=%.3f",
                    n_flow,
                    self.nitrogen,
                    c_flow,
                    total_c,
                    self.name.name,
                    self.type.name,
                    ratio_cn_to_destination,
                )
            n_flow = self.nitrogen

        mineral_soil = site.mineral_soil

        # If C/N of the flow > C/N of new material entering the destination,
        # IMMOBILIZATION occurs:
        #   ratio_cn_to_destination = c_flow / (n_flow + immobile_n)
        # where immobile_n is the extra N needed from the mineral pool.
        if (c_flow / n_flow) > ratio_cn_to_destination:
            immobile_n = (c_flow / ratio_cn_to_destination) - n_flow

            self.nitrogen -= n_flow
            nitrogen_inputs = n_flow

            self.logger.debug(
                "TransferNitrogen: Before immobilization: MineralN=%.2f, ImmobileN=%.3f.",
                mineral_soil.nitrogen,
                immobile_n,
            )
            # Leave some small amount of mineral N, nothing is immobilized
            # once mineral N is at or below that amount
            immobile_n = max(
                0.0, min(immobile_n, mineral_soil.nitrogen - MINERAL_N_FLOOR)
            )
            mineral_soil.nitrogen -= immobile_n
            self.logger.debug(
                "TransferNitrogen: After immobilization: MineralN=%.2f.",
                mineral_soil.nitrogen,
            )

            nitrogen_inputs += immobile_n
            mineral_n_flow = -1 * immobile_n

        # MINERALIZATION occurs
        else:
            mineralized_n = c_flow / ratio_cn_to_destination

            self.nitrogen -= mineralized_n
            nitrogen_inputs = mineralized_n

            mineral_n_flow = n_flow - mineralized_n
            mineral_soil.nitrogen += mineral_n_flow
            self.logger.debug(
                "TransferNitrogen: mineralization: MineralNFlow=%.3f, SourceN=%.3f, "
                "CFlow=%.3f, totalC=%.3f, ratio CN to dest=%.3f",
                mineral_n_flow,
                self.nitrogen,
                c_flow,
                total_c,
                ratio_cn_to_destination,
            )
            if mineral_n_flow > LARGE_MINERALIZATION:
                self.logger.warning(
                    "TransferNitrogen: N Mineralization = %.2f on site %s",
                    mineral_n_flow,
                    site.site_id,
                )

        if mineral_n_flow > 0:
            site.gross_mineralization += mineral_n_flow

        return nitrogen_inputs

    def respiration(self, co2loss, site):
        """Compute flows associated with microbial respiration.

        :param co2loss: CO2 loss associated with decomposition (g C m^-2)
        :param site: `SiteContext` of the pool

        Mineralization associated with respiration is proportional to the N
        fraction of the pool.
        """
        if self.nitrogen < RESPIRATION_N_EPSILON or self.carbon < RESPIRATION_C_EPSILON:
            return

        mineral_n_flow = co2loss * self.nitrogen / self.carbon

        if mineral_n_flow > self.nitrogen:
            self.logger.warning(
                "RESPIRATION for pool %s %s: Mineral N flow exceeds pool nitrogen. "
                "MineralNFlow=%.3f, Nitrogen=%.3f, CO2 loss=%.3f, Carbon=%.3f, site=%s",
                self.name.name,
                self.type.name,
                mineral_n_flow,
                self.nitrogen,
                co2loss,
                self.carbon,
                site.site_id,
            )
            mineral_n_flow = self.nitrogen
            co2loss = self.carbon

        if co2loss > self.carbon:
            co2loss = self.carbon

        # round these to avoid unexpected behavior
        self.carbon = float(round(self.carbon - co2loss))
        site.source_sink.carbon = float(round(site.source_sink.carbon + co2loss))

        # Add loss CO2 to monthly heterotrophic respiration
        if self.type is PoolType.Soil:
            site.monthly_mineral_soil_resp[site.month] += co2loss
        else:
            site.monthly_other_resp[site.month] += co2loss

        self.nitrogen -= mineral_n_flow
        site.mineral_soil.nitrogen += mineral_n_flow
        if mineral_n_flow > LARGE_MINERALIZATION:
            self.logger.warning(
                "Respiration: N Mineralization = %.2f on site %s",
                mineral_n_flow,
                site.site_id,
            )
        self.logger.debug(
            "Respiration: pool=%s %s, MineralNflow=%.3f, co2loss=%.2f",
            self.name.name,
            self.type.name,
            mineral_n_flow,
            co2loss,
        )

        if mineral_n_flow > 0:
            site.gross_mineralization += mineral_n_flow

    def decompose_possible(self, ratio_cn_new, mineral_n):
        """Determine if this pool can decompose to material with C:N `ratio_cn_new`."""
        return decompose_possible(self.ratio_cn, ratio_cn_new, mineral_n)

    def adjust_lignin(self, input_c, input_fraction_lignin):
        """Adjust the fraction of lignin when new material is added.

        The new fraction is the carbon weighted average of the lignin in the
        existing and the new material.
        """
        total_c = self.carbon + input_c
        if total_c <= 0.0:
            return

        old_lignin = self.fraction_lignin * self.carbon
        new_lignin = input_fraction_lignin * input_c
        self.fraction_lignin = (old_lignin + new_lignin) / total_c

    def adjust_decay_rate(self, input_c, input_decay_rate):
        """Adjust the decay rate of the pool as the carbon weighted average when new material is added."""
        total_c = self.carbon + input_c
        if total_c <= 0.0:
            return

        old_decay_rate = self.decay_value * self.carbon
        new_decay_rate = input_decay_rate * input_c
        self.decay_value = (old_decay_rate + new_decay_rate) / total_c

    def add_material(self, input_c, input_n, fraction_lignin=None, decay_rate=None):
        """Deposit new material in the pool.

        Lignin fraction and decay rate are merged before the carbon is added.
        """
        if input_c < 0.0 or input_n < 0.0:
            msg = "Cannot add negative material to %s %s: C=%s, N=%s" % (
                self.name.name,
                self.type.name,
                input_c,
                input_n,
            )
            raise exc.InvalidArgumentError(msg)

        if fraction_lignin is not None:
            self.adjust_lignin(input_c, fraction_lignin)
        if decay_rate is not None:
            self.adjust_decay_rate(input_c, decay_rate)
        self.carbon += input_c
        self.nitrogen += input_n

    def reduce_mass(self, fraction_lost):
        """Reduces the pool's carbon and nitrogen by the given fraction (0-1)."""
        if fraction_lost < 0.0 or fraction_lost > 1.0:
            msg = "Fraction lost must be between 0 and 1, got %r" % (fraction_lost,)
            raise exc.InvalidArgumentError(msg)

        self.carbon = self.carbon * (1.0 - fraction_lost)
        self.nitrogen = self.nitrogen * (1.0 - fraction_lost)

    def _report_excess_flow(self, operation, c_flow):
        self.logger.warning(
            "%s: C flow=%.3f exceeds carbon=%.3f of pool %s %s, flow is clamped.",
            operation,
            c_flow,
            self.carbon,
            self.name.name,
            self.type.name,
        )


def _report_inverted_guard(logger):
    global _inverted_guard_reported
    if _inverted_guard_reported:
        return
    logger.warning(
        "InvertedMetabolicGuard is enabled: metabolic pools only decompose when "
        "their carbon is below %g, all non-empty metabolic pools are skipped.",
        CARBON_EPSILON,
    )
    _inverted_guard_reported = True
