# -*- coding: utf-8 -*-
# Copyright (c) 2004-2018 Alterra, Wageningen-UR
# Allard de Wit (allard.dewit@wur.nl), April 2018
"""
cnpools simulates the decomposition of dead organic matter (litter, wood and
soil organic matter) as monthly carbon and nitrogen flows between pools of a
single site, following the Century soil biogeochemistry formulation.

A decomposing pool loses carbon to microbial respiration (CO2) and to the
organic horizon and mineral soil of its site. The nitrogen moving with that
carbon is either supplemented from the mineral nitrogen of the site
(immobilization) or released to it (mineralization).

The building blocks are:

* `cnpools.soil.Pool`: one carbon/nitrogen pool and its decomposition operations;
* `cnpools.base.SiteContext`: the shared per-site aggregates a pool writes to;
* `cnpools.fileinput.YAMLParameterProvider`: the global parameter tables;
* `cnpools.simulator`: drivers running pools per site and month.
"""
__license__ = "European Union Public License"
__stable__ = True
__version__ = "0.1.0"

# WARNING: Avoid heavy imports or side-effects at import time.
# Logging is configured lazily on first access of a submodule.

import logging
import logging.config
from importlib import import_module

__all__ = [
    "settings",
    "base",
    "soil",
    "fileinput",
    "simulator",
    "initialize",
]

# Internal guard to ensure one-time initialization
__initialized = False


def _ensure_initialized():
    global __initialized
    if __initialized:
        return

    try:
        from . import settings

        logging.config.dictConfig(settings.LOG_CONFIG)
    except (ValueError, TypeError, AttributeError, ImportError) as e:
        # If logging configuration fails, fall back to basicConfig
        logging.basicConfig(level=logging.WARNING)
        logging.getLogger(__name__).warning(
            "Failed to configure logging from settings: %s", e
        )
    finally:
        __initialized = True

    if not __stable__:
        print("Warning: You are running a cnpools development version:  %s" % __version__)


def initialize():
    """Initialize cnpools logging on demand."""
    _ensure_initialized()


# Lazy attribute access for submodules
def __getattr__(name):
    targets = {
        "settings": ".settings",
        "base": ".base",
        "soil": ".soil",
        "fileinput": ".fileinput",
        "simulator": ".simulator",
    }
    if name in targets:
        _ensure_initialized()
        return import_module(targets[name], package=__name__)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
