"""Readers for the parameter files of cnpools."""
from .yaml_parameterprovider import YAMLParameterProvider, DEFAULT_PARAMETER_FILE
