# -*- coding: utf-8 -*-
# Copyright (c) 2004-2018 Alterra, Wageningen-UR
# Allard de Wit (allard.dewit@wur.nl), April 2014
"""Exceptions raised by the carbon/nitrogen pool model."""


class CNPoolsError(Exception):
    """Base exception for all errors raised by cnpools."""


class ParameterError(CNPoolsError):
    """Raised when a parameter is missing or has an invalid value."""


class InvalidArgumentError(CNPoolsError, ValueError):
    """Raised when an operation receives an argument outside its valid range."""


class SimulationError(CNPoolsError):
    """Raised when the simulation of a site fails."""
