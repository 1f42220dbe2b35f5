"""Exception hierarchy for the thermal loop simulation."""


class ThermalLoopError(Exception):
    """Base exception for all thermal_loop errors."""
    pass


class ConfigurationError(ThermalLoopError):
    """Raised when loop parameters are physically inconsistent.

    Only raised while building the loop geometry, never during a tick.
    """
    pass
