# -*- coding: utf-8 -*-
# Copyright (c) 2004-2018 Alterra, Wageningen-UR
# Allard de Wit (allard.dewit@wur.nl), April 2014
import logging

from ..util import LitterParameterTable
from .. import exceptions as exc


def _is_private(name: str) -> bool:
    # Note that we just check the first character for underscore
    # since we know these are strings with length > 0 and it's much
    # faster than `startswith`
    return name[0] == "_"


class ParamTemplate:
    """Template for storing parameter values.

    This is meant to be subclassed by the actual class where the parameters
    are defined.

    example::

        >>> from cnpools.base import ParamTemplate
        >>>
        >>> class Parameters(ParamTemplate):
        ...     __slots__ = ["A", "B", "C"]
        ...     A: float
        ...     B: float
        ...     C: float
        ...
        >>> parvalues = {"A" :1., "B" :-99, "C":2.45}
        >>> params = Parameters(parvalues)
        >>> params.A
        1.0
        >>> params.B
        -99.0
        >>> parvalues = {"A" :1., "B" :-99}
        >>> params = Parameters(parvalues)
        Traceback (most recent call last):
          ...
        cnpools.exceptions.ParameterError: Value for parameter C missing.
    """

    __slots__ = []

    def __init__(self, parvalues):
        for parname in self.__slots__:
            # check if the parname is available in the dictionary of parvalues
            if parname not in parvalues:
                msg = "Value for parameter %s missing." % parname
                raise exc.ParameterError(msg)
            try:
                type_ = self.__annotations__[parname]
            except KeyError as err:
                raise RuntimeError(
                    f"Could not determine type for {parname}. All variables must have a type annotation"
                ) from err

            value = parvalues[parname]
            if type_ == LitterParameterTable:
                # table parameter keyed by pool type
                setattr(self, parname, LitterParameterTable.create(value))
            elif type_ == bool:
                if not isinstance(value, bool):
                    msg = "Value for parameter %s should be true or false, got %r." % (
                        parname,
                        value,
                    )
                    raise exc.ParameterError(msg)
                setattr(self, parname, value)
            elif type_ in (float, int):
                # Single value parameter
                try:
                    setattr(self, parname, type_(value))
                except (TypeError, ValueError) as err:
                    msg = "Value for parameter %s should be numeric, got %r." % (
                        parname,
                        value,
                    )
                    raise exc.ParameterError(msg) from err
            else:
                setattr(self, parname, value)

    def to_dict(self):
        """Returns the parameter values as a plain dictionary."""
        d = {}
        for parname in self.__slots__:
            if _is_private(parname):
                continue
            value = getattr(self, parname)
            if isinstance(value, LitterParameterTable):
                value = value.to_dict()
            d[parname] = value
        return d

    @property
    def logger(self):
        loggername = "%s.%s" % (self.__class__.__module__, self.__class__.__name__)
        return logging.getLogger(loggername)
