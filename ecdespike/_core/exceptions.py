# built-in modules

# 3rd party modules

# project modules


class DespikeError(Exception):
    """Base class for despiking errors."""


class ConfigurationError(DespikeError, ValueError):
    """Invalid treatment or control parameters, raised before processing."""


class InsufficientDataError(DespikeError):
    """A channel holds no valid sample, so no statistic can be computed."""


class DegenerateTrimError(DespikeError):
    """No row has valid values in every channel, nothing is left to trim to."""
