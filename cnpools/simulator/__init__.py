"""Drivers running the pools of one or many sites over monthly timesteps."""
from .simulator import (
    SiteSimulation,
    MultiSiteSimulator,
    SimulationStatus,
    check_mass_balance,
)
