# built-in modules
import logging
import warnings

# 3rd party modules
import numpy as np
import pandas as pd
from numpy.lib.stride_tricks import sliding_window_view
from scipy.stats import median_abs_deviation

# project modules
from .commons import structuredData
from .exceptions import ConfigurationError

logger = logging.getLogger('windowstats')


##########################################
###     ALGORITHM CLASSES
##########################################


class MeanStd:
    """Gaussian statistics: arithmetic mean and standard deviation."""
    name = 'mean'

    def location(self, windows):
        return np.nanmean(windows, axis=-1)

    def scale(self, windows, width):
        return np.nanstd(windows, axis=-1, ddof=1)

    def rolling(self, roll, width):
        return roll.mean(), roll.std()


class MedianMad:
    """
    Distribution statistics: median and median absolute deviation.

    The MAD is made consistent with the standard deviation of a normal
    distribution and corrected for the small window size by w / (w - 0.8).
    """
    name = 'median'

    def location(self, windows):
        return np.nanmedian(windows, axis=-1)

    def scale(self, windows, width):
        mad = median_abs_deviation(windows, axis=-1, scale='normal', nan_policy='omit')
        return np.asarray(mad, dtype=float) * (width / (width - 0.8))

    def rolling(self, roll, width):
        mad = roll.apply(lambda w: median_abs_deviation(w, scale='normal'), raw=True)
        return roll.median(), mad * (width / (width - 0.8))


ALGORITHMS = {'mean': MeanStd, 'median': MedianMad}


def get_algorithm(name):
    if isinstance(name, (MeanStd, MedianMad)):
        return name
    try:
        return ALGORITHMS[name]()
    except KeyError:
        raise ConfigurationError(f"Unknown algorithm class {name!r}, use one of {list(ALGORITHMS)}.") from None


##########################################
###     WINDOW STATISTICS
##########################################


def interpolate_gaps(x):
    """
    Linearly interpolate missing values at every sample position.

    Only interior gaps are filled, leading and trailing missing values are
    not extrapolated.
    """
    return pd.Series(np.asarray(x, dtype=float)).interpolate(method='linear', limit_area='inside').to_numpy(copy=True)


def window_centers(length, width, slide=1):
    """Positions whose centered window [i - w//2, i + ceil(w/2) - 1] lies in the series."""
    half = width // 2
    return np.arange(half, length - (width - half) + 1, slide)


def rolling_window_stats(x, width, slide=1, algorithm='mean'):
    """
    Centered rolling location, scale and missing fraction.

    Parameters
    ----------
    x : array-like
        Series, NaN marks missing values.
    width : int
        Window size [data points].
    slide : int, default 1
        Statistics are only computed every `slide` window centers.
    algorithm : str, default 'mean'
        'mean' (mean / standard deviation) or 'median' (median / MAD).

    Returns
    -------
    structuredData
        ``location``, ``scale`` and ``nafrac`` arrays of the same length as
        `x`, NaN where no window was computed, plus the computed ``centers``.
    """
    alg = get_algorithm(algorithm)
    x = np.asarray(x, dtype=float)
    n = len(x)

    stats = structuredData(location=np.full(n, np.nan), scale=np.full(n, np.nan),
                           nafrac=np.full(n, np.nan), width=width, slide=slide,
                           centers=window_centers(n, width, slide))
    if stats.centers.size == 0:
        logger.debug(f'Window ({width}) wider than series ({n}), no statistics computed.')
        return stats

    if slide == 1 and not np.isnan(x).any():
        # pandas centered windows span the same [i - w//2, i + ceil(w/2) - 1]
        location, scale = alg.rolling(pd.Series(x).rolling(width, center=True, min_periods=width), width)
        stats.location[stats.centers] = location.to_numpy()[stats.centers]
        stats.scale[stats.centers] = scale.to_numpy()[stats.centers]
        stats.nafrac[stats.centers] = 0.
        return stats

    # row j of the view is the window starting at j, centered at j + width // 2
    windows = sliding_window_view(x, width)[stats.centers - width // 2]
    isna = np.isnan(windows)
    stats.nafrac[stats.centers] = isna.sum(axis=-1) / width

    # all-missing windows (or a single valid value for the standard deviation) give NaN
    hasdata = ~isna.all(axis=-1)
    with warnings.catch_warnings():
        warnings.simplefilter('ignore', RuntimeWarning)
        stats.location[stats.centers[hasdata]] = alg.location(windows[hasdata])
        stats.scale[stats.centers[hasdata]] = alg.scale(windows[hasdata], width)
    return stats


def replicate_window_stats(stats, direction='forward'):
    """
    Assign every position the statistics of the nearest computed window center.

    `direction` 'forward' takes the preceding center, 'backward' the
    following one. Positions before the first (after the last) center take
    the first (last) center in both directions.
    """
    n = len(stats.location)
    centers = stats.centers
    out = structuredData(**{**stats.__dict__})
    if centers.size == 0:
        return out

    sparse = pd.DataFrame({'location': stats.location[centers],
                           'scale': stats.scale[centers],
                           'nafrac': stats.nafrac[centers]}, index=centers)
    if direction == 'forward':
        filled = sparse.reindex(range(n), method='ffill')
        if centers[0] > 0:
            filled.iloc[:centers[0]] = sparse.iloc[0].to_numpy()
    elif direction == 'backward':
        filled = sparse.reindex(range(n), method='bfill')
        if centers[-1] < n - 1:
            filled.iloc[centers[-1] + 1:] = sparse.iloc[-1].to_numpy()
    else:
        raise ValueError(f"direction must be 'forward' or 'backward', got {direction!r}.")

    out.location = filled['location'].to_numpy()
    out.scale = filled['scale'].to_numpy()
    out.nafrac = filled['nafrac'].to_numpy()
    return out
