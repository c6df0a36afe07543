from .version import __version__
from ._core import (
    Treatment, Control, load_setup,
    rolling_window_stats, replicate_window_stats, interpolate_gaps, get_algorithm,
    despike_window, detect_spikes, filter_spike_groups, trim_incomplete_rows,
    DespikeError, ConfigurationError, InsufficientDataError, DegenerateTrimError,
)
