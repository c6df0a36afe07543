from .commons import *
from .exceptions import *
from .config import Treatment, Control, load_setup
from .windowstats import rolling_window_stats, replicate_window_stats, interpolate_gaps, get_algorithm
from .corrections import despike_window, detect_spikes, filter_spike_groups, trim_incomplete_rows
from . import plots
