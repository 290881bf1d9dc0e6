# -*- coding: utf-8 -*-
# Copyright (c) 2004-2022 Wageningen Environmental Research, Wageningen-UR
# Allard de Wit (allard.dewit@wur.nl), August 2022
import logging
import os

import yaml
from cachetools import Cache, cachedmethod
from copy import deepcopy

from ..soil.pool import Pool
from .. import exceptions as exc
from ..util import version_tuple


_PARAMETER_CACHE = Cache(maxsize=30)

DEFAULT_PARAMETER_FILE = os.path.join(
    os.path.dirname(__file__), "data", "century_parameters.yaml"
)


class YAMLParameterProvider(dict):
    """A data provider for reading the decomposition parameter set stored in the YAML format.

        :param fpath: full path to the YAML file, if omitted the default
            parameter set shipped with cnpools is used.
        :param force_reload: clear the file cache before reading

    The parameter set is loaded once and then used for every site of a simulation:

        >>> from cnpools.fileinput import YAMLParameterProvider
        >>> p = YAMLParameterProvider()
        >>> p["LigninDecayEffect"]
        3.0
        >>> params = p.get_parameters()
        >>> params.LitterParameters["SurfaceLitter"].DecayRateStrucC
        3.9

    Values can be overridden, for example during calibration, with
    `update_parameters()`; `clear_overrides()` restores the values from the file.

    To increase performance of loading parameters, the YAMLParameterProvider
    will cache files in memory after the initial read.
    """

    # Compatibility of data provider with YAML parameter file version
    compatible_version = "1.0.0"

    def __init__(self, fpath=None, force_reload=False):
        dict.__init__(self)

        if force_reload:
            _PARAMETER_CACHE.clear()

        self.fpath = fpath if fpath is not None else DEFAULT_PARAMETER_FILE
        self._overrides = {}
        self._file_values = {}
        self.read_parameter_file(self.fpath)

    def _check_version(self, parameters, fname):
        """Checks the version of the parameter input with the version supported by this data provider.

        Raises an exception if the parameter set is incompatible.

        :param parameters: The parameter set loaded by YAML
        """
        try:
            v = parameters["Version"]
        except (KeyError, TypeError) as err:
            msg = f"Version check failed on parameter file: {fname}"
            raise exc.ParameterError(msg) from err

        if version_tuple(v) != version_tuple(self.compatible_version):
            msg = "Version supported by %s is %s, while parameter set version is %s!"
            raise exc.ParameterError(
                msg % (self.__class__.__name__, self.compatible_version, v)
            )

    @cachedmethod(lambda self: _PARAMETER_CACHE)
    def _read_parameter_yaml_file(self, yaml_fname):
        with open(yaml_fname) as fp:
            parameters = yaml.safe_load(fp)

        self._check_version(parameters, fname=yaml_fname)

        return parameters

    def read_parameter_file(self, fpath):
        """Reads the parameter YAML file on the local file system

        :param fpath: the location of the YAML file on the filesystem
        """
        if not os.path.exists(fpath):
            msg = "Cannot find parameter file at {f}".format(f=fpath)
            raise exc.ParameterError(msg)

        # Deepcopy just to ensure that nothing mutates them
        parameters = deepcopy(self._read_parameter_yaml_file(fpath))
        try:
            values = parameters["Parameters"]
        except KeyError as err:
            msg = "No 'Parameters' section in parameter file: %s" % fpath
            raise exc.ParameterError(msg) from err

        self._file_values = values
        self.clear()
        self.update(deepcopy(values))
        self.logger.debug("Read %i parameters from %s", len(values), fpath)

    def update_parameters(self, parvalues):
        """Override parameter values, e.g. for calibration or sensitivity analysis.

        :param parvalues: dict with parameter names and their new values
        """
        for parname, value in parvalues.items():
            if parname not in self._file_values:
                msg = "Cannot override unknown parameter '%s'" % parname
                raise exc.ParameterError(msg)
            self._overrides[parname] = value
            self[parname] = value

    def clear_overrides(self):
        """Restore all overridden parameters to the values read from file."""
        for parname in list(self._overrides):
            self[parname] = deepcopy(self._file_values[parname])
        self._overrides.clear()

    @property
    def overrides(self):
        return dict(self._overrides)

    def get_parameters(self):
        """Returns the parameter set as `Pool.Parameters`."""
        return Pool.Parameters(self)

    def __str__(self):
        msg = "%s - parameters read from '%s'\n" % (self.__class__.__name__, self.fpath)
        if self._overrides:
            msg += "Overridden parameters: %s\n" % self._overrides
        msg += "Available parameters:\n %s" % str(dict.__str__(self))
        return msg

    @property
    def logger(self):
        loggername = "%s.%s" % (self.__class__.__module__, self.__class__.__name__)
        return logging.getLogger(loggername)
