# built-in modules
import logging

# 3rd party modules
import numpy as np

# project modules
from .commons import structuredData, update_nested_dicts
from .exceptions import ConfigurationError

logger = logging.getLogger('config')


##########################################
###     DEFAULTS
##########################################

ALGORITHM_CLASSES = ('mean', 'median')

# aliases accepted for the spike handling among iterations
NA_TREATMENTS = {'approx': 'approx', 'interpolate': 'approx',
                 'omit': 'omit', 'leave-as-missing': 'omit'}

TRT_DEFAULTS = {
    'AlgClss': 'median',   # de-spiking algorithm class [mean vs. median]
    'NumPtsWndw': 101,     # window size [data points] (must be odd for median / mad); mean:11, med:101
    'NumPtsSlid': 1,       # window sliding increment [data points]
    'ThshStd': 20,         # threshold for detecting data point as spike [sigma / MAD_sigma]; mean:3.5, med:20
    'NaFracMax': 0.1,      # maximum proportion of NAs within a window for reliable spike determination
    'Infl': 0,             # inflation per iteration [fraction of sigma / MAD_sigma]
    'IterMax': np.inf,     # maximum number of iterations [-]
    'NumPtsGrp': 10,       # minimum group size that is not considered as consecutive spikes; mean:4, med:10
    'NaTrt': 'omit',       # spike handling among iterations ["approx" or "omit"]
}

CNTL_DEFAULTS = {
    'NaOmit': False,       # delete leading / trailing NAs from dataset?
    'Prnt': True,          # print results?
    'Plot': False,         # plot results?
}


def _is_number(value):
    return isinstance(value, (int, float, np.integer, np.floating)) and not isinstance(value, (bool, np.bool_))


def _is_integer(value):
    if not _is_number(value):
        return False
    try:
        return float(value) == int(value)
    except (ValueError, OverflowError):
        return False


##########################################
###     TREATMENT & CONTROL
##########################################


class Treatment(structuredData):
    """
    Parameters of the window despiking algorithm.

    Keyword arguments follow the names of the original eddy4R routine
    (``AlgClss``, ``NumPtsWndw``, ``NumPtsSlid``, ``ThshStd``, ``NaFracMax``,
    ``Infl``, ``IterMax``, ``NumPtsGrp``, ``NaTrt``), missing ones take the
    values in ``TRT_DEFAULTS``. Invalid combinations raise
    ConfigurationError on creation.
    """
    defaults = TRT_DEFAULTS

    def __init__(self, **kwargs):
        unknown = [k for k in kwargs if k not in self.defaults]
        if unknown:
            raise ConfigurationError(f"Unknown treatment parameter(s): {', '.join(unknown)}.")
        super().__init__(**{**self.defaults, **{k: v for k, v in kwargs.items() if v is not None}})

        if kwargs.get('IterMax', 0) is None: self.IterMax = np.inf
        if kwargs.get('NumPtsGrp', 0) is None: self.NumPtsGrp = False
        self.NumPtsWndw = list(np.atleast_1d(self.NumPtsWndw).tolist())
        self.NaTrt = NA_TREATMENTS.get(str(self.NaTrt).lower(), self.NaTrt)
        self.validate()

    @classmethod
    def from_value(cls, value):
        if value is None: return cls()
        if isinstance(value, cls): return value
        if isinstance(value, dict): return cls(**value)
        raise ConfigurationError(f"Treatment must be a dict or Treatment, not {type(value).__name__}.")

    @property
    def group_enabled(self):
        return not (self.NumPtsGrp is False or self.NumPtsGrp == 0)

    def threshold(self, iteration):
        return self.ThshStd * (1 + (iteration - 1) * self.Infl)

    def validate(self, length=None):
        if self.AlgClss not in ALGORITHM_CLASSES:
            raise ConfigurationError(f"AlgClss must be one of {ALGORITHM_CLASSES}, got {self.AlgClss!r}.")
        if self.NaTrt not in NA_TREATMENTS.values():
            raise ConfigurationError(f"NaTrt must be one of {sorted(NA_TREATMENTS)}, got {self.NaTrt!r}.")

        if not self.NumPtsWndw:
            raise ConfigurationError("NumPtsWndw requires at least one window size.")
        for width in self.NumPtsWndw:
            if not _is_integer(width) or width < 1:
                raise ConfigurationError(f"Window size must be a positive integer, got {width!r}.")
            if self.AlgClss == 'median' and int(width) % 2 == 0:
                raise ConfigurationError(f"Window size must be odd for median / mad, got {width}.")
        self.NumPtsWndw = [int(w) for w in self.NumPtsWndw]

        if not _is_integer(self.NumPtsSlid) or self.NumPtsSlid < 1:
            raise ConfigurationError(f"NumPtsSlid must be a positive integer, got {self.NumPtsSlid!r}.")
        self.NumPtsSlid = int(self.NumPtsSlid)

        if not _is_number(self.ThshStd) or not np.isfinite(self.ThshStd) or self.ThshStd <= 0:
            raise ConfigurationError(f"ThshStd must be a positive number, got {self.ThshStd!r}.")
        if not _is_number(self.NaFracMax) or not 0 <= self.NaFracMax <= 1:
            raise ConfigurationError(f"NaFracMax must lie in [0, 1], got {self.NaFracMax!r}.")
        if not _is_number(self.Infl) or not self.Infl >= 0:
            raise ConfigurationError(f"Infl must be non-negative, got {self.Infl!r}.")
        if not (self.IterMax == np.inf or (_is_integer(self.IterMax) and self.IterMax >= 1)):
            raise ConfigurationError(f"IterMax must be a positive integer or infinite, got {self.IterMax!r}.")

        if self.NumPtsGrp is True or (self.group_enabled and (not _is_integer(self.NumPtsGrp) or self.NumPtsGrp < 1)):
            raise ConfigurationError(f"NumPtsGrp must be a positive integer or False, got {self.NumPtsGrp!r}.")
        if self.group_enabled:
            self.NumPtsGrp = int(self.NumPtsGrp)
            if length is not None and self.NumPtsGrp >= length:
                raise ConfigurationError(
                    f"NumPtsGrp ({self.NumPtsGrp}) must be smaller than the series length ({length}).")
        return self

    def to_dict(self):
        return {k: self.__dict__[k] for k in self.defaults}


class Control(structuredData):
    defaults = CNTL_DEFAULTS

    def __init__(self, **kwargs):
        unknown = [k for k in kwargs if k not in self.defaults]
        if unknown:
            raise ConfigurationError(f"Unknown control parameter(s): {', '.join(unknown)}.")
        super().__init__(**{**self.defaults, **{k: bool(v) for k, v in kwargs.items() if v is not None}})

    @classmethod
    def from_value(cls, value):
        if value is None: return cls()
        if isinstance(value, cls): return value
        if isinstance(value, dict): return cls(**value)
        raise ConfigurationError(f"Control must be a dict or Control, not {type(value).__name__}.")

    def to_dict(self):
        return {k: self.__dict__[k] for k in self.defaults}


def load_setup(*sources):
    """
    Merge setups (paths to yaml files or dicts) on top of the defaults.

    Later sources win. Returns a dict with ``Trt`` and ``Cntl`` holding
    Treatment and Control instances and the ``Vrbs`` switch.
    """
    setup = update_nested_dicts({'Trt': {}, 'Cntl': {}, 'Vrbs': False}, *sources)
    logger.debug(f'Setup loaded from {len(sources)} source(s): {setup}')
    return {'Trt': Treatment.from_value(setup['Trt']),
            'Cntl': Control.from_value(setup['Cntl']),
            'Vrbs': bool(setup['Vrbs'])}
