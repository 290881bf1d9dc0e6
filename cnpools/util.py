# -*- coding: utf-8 -*-
# Copyright (c) 2004-2018 Alterra, Wageningen-UR
# Allard de Wit (allard.dewit@wur.nl), April 2014
"""Miscellaneous utilities for cnpools."""
from . import exceptions as exc


def limit(vmin, vmax, v):
    """limits the range of v between min and max"""

    if vmin > vmax:
        raise RuntimeError("Min value (%f) larger than max (%f)" % (vmin, vmax))

    if v < vmin:  # V below range: return min
        return vmin
    elif v < vmax:  # v within range: return v
        return v
    else:  # v above range: return max
        return vmax


def version_tuple(v):
    """Convert a version string to a tuple of integers, e.g. '1.0.2' -> (1, 0, 2)"""
    return tuple(map(int, (str(v).split("."))))


class LitterDecayRates:
    """Decay rates for one row of the litter parameter table."""

    __slots__ = ["DecayRateStrucC", "DecayRateMetabolicC"]

    def __init__(self, DecayRateStrucC, DecayRateMetabolicC):
        self.DecayRateStrucC = float(DecayRateStrucC)
        self.DecayRateMetabolicC = float(DecayRateMetabolicC)

    def __repr__(self):
        return "%s(DecayRateStrucC=%s, DecayRateMetabolicC=%s)" % (
            self.__class__.__name__,
            self.DecayRateStrucC,
            self.DecayRateMetabolicC,
        )


class LitterParameterTable:
    """Decay rates of structural and metabolic carbon keyed by pool type.

    The table is indexed with a `PoolType` member or its name::

        >>> table = LitterParameterTable.create(
        ...     {"SurfaceLitter": {"DecayRateStrucC": 3.9, "DecayRateMetabolicC": 14.8},
        ...      "SoilLitter": {"DecayRateStrucC": 4.9, "DecayRateMetabolicC": 18.5},
        ...      "Soil": {"DecayRateStrucC": 4.9, "DecayRateMetabolicC": 18.5},
        ...      "Other": {"DecayRateStrucC": 0.0, "DecayRateMetabolicC": 0.0}})
        >>> table["SurfaceLitter"].DecayRateStrucC
        3.9
    """

    row_names = ("SurfaceLitter", "SoilLitter", "Soil", "Other")

    def __init__(self, rows):
        self._rows = rows

    @classmethod
    def create(cls, value):
        if isinstance(value, LitterParameterTable):
            return value
        if not isinstance(value, dict):
            msg = "Litter parameter table should be a mapping of pool type to decay rates, got %r"
            raise exc.ParameterError(msg % (value,))

        rows = {}
        for name in cls.row_names:
            if name not in value:
                msg = "Litter parameters for pool type '%s' missing." % name
                raise exc.ParameterError(msg)
            row = value[name]
            try:
                rows[name] = LitterDecayRates(
                    row["DecayRateStrucC"], row["DecayRateMetabolicC"]
                )
            except (KeyError, TypeError) as err:
                msg = "Invalid litter parameters for pool type '%s': %s" % (name, err)
                raise exc.ParameterError(msg) from err
        return cls(rows)

    def __getitem__(self, key):
        name = getattr(key, "name", key)
        return self._rows[name]

    def to_dict(self):
        return {
            name: {
                "DecayRateStrucC": row.DecayRateStrucC,
                "DecayRateMetabolicC": row.DecayRateMetabolicC,
            }
            for name, row in self._rows.items()
        }
