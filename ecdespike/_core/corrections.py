# built-in modules
import logging

# 3rd party modules
import numpy as np
import pandas as pd

# project modules
from .commons import structuredData, as_frame
from .config import Treatment, Control
from .exceptions import InsufficientDataError, DegenerateTrimError
from .windowstats import rolling_window_stats, replicate_window_stats, interpolate_gaps
from . import plots

logger = logging.getLogger('corrections')

EMPTY = np.array([], dtype=int)


##########################################
###     DESPIKING
##########################################


def __match_criteria__(x, stats, threshold, nafracmax):
    with np.errstate(divide='ignore', invalid='ignore'):
        crit = np.abs((x - stats.location) / stats.scale)
        spikes = np.flatnonzero(crit > threshold)
        unreliable = np.flatnonzero(stats.nafrac > nafracmax)
    # spikes found in windows with too many NAs cannot be evaluated
    na = np.intersect1d(spikes, unreliable)
    return np.setdiff1d(spikes, na), na, crit


def detect_spikes(x, Trt=None, Cntl=None, label=''):
    """
    Iteratively detect spikes in one series with window statistics.

    Each window size in ``Trt.NumPtsWndw`` is a pass over the series left
    by the previous one. Within a pass, spikes are removed (set to NaN)
    and statistics recomputed until an iteration finds no new spike or the
    pass has run ``Trt.IterMax`` iterations. The iteration count used for
    the threshold inflation and reported in ``iter`` runs across passes.

    Returns
    -------
    structuredData
        ``series`` (working series after the last iteration), ``spikes``
        (positions before group filtering), ``na`` (positions that could not
        be evaluated reliably), ``iter`` (number of iterations) and
        ``history`` (one record per iteration).
    """
    Trt = Treatment.from_value(Trt)
    Cntl = Control.from_value(Cntl)
    x = np.array(x, dtype=float)

    if np.isnan(x).all():
        raise InsufficientDataError(f'{label or "Series"} has no valid value ({len(x)} samples).')

    if Trt.NaTrt == 'approx':
        x = interpolate_gaps(x)

    spikes = EMPTY
    unreliable = EMPTY
    history = []
    iteration = 0

    for width in Trt.NumPtsWndw:
        iterpass = 0

        while True:
            iteration += 1
            iterpass += 1
            threshold = Trt.threshold(iteration)
            stats = rolling_window_stats(x, width, Trt.NumPtsSlid, Trt.AlgClss)

            if Trt.NumPtsSlid > 1:
                # statistics replicated to untreated positions from both sides, results combined
                fwd = __match_criteria__(x, replicate_window_stats(stats, 'forward'), threshold, Trt.NaFracMax)
                bwd = __match_criteria__(x, replicate_window_stats(stats, 'backward'), threshold, Trt.NaFracMax)
                new = np.union1d(fwd[0], bwd[0])
                new_na = np.union1d(fwd[1], bwd[1])
                crit = np.fmax(fwd[2], bwd[2])
            else:
                new, new_na, crit = __match_criteria__(x, stats, threshold, Trt.NaFracMax)

            x[new] = np.nan
            spikes = np.union1d(spikes, new)
            unreliable = np.union1d(unreliable, new_na)
            history += [structuredData(iteration=iteration, width=width, threshold=threshold,
                                       spikes=new, na=new_na)]
            logger.debug(f'{label}: iteration {iteration} (window {width}, threshold {threshold}), '
                         f'{len(new)} new spikes, {len(new_na)} unreliable.')

            if Cntl.Plot:
                plots.plot_criterion(crit, threshold, title=f'{label}, step {iteration}, window {width}')
            if Cntl.Prnt:
                print(f'{label}, iteration {iteration} is finished. '
                      f'{len(new)} new spikes, totally {len(spikes)} spikes.')

            if len(new) == 0 or iterpass >= Trt.IterMax: break

            if Trt.NaTrt == 'approx':
                x = interpolate_gaps(x)

    return structuredData(series=x, spikes=spikes, na=unreliable, iter=iteration, history=history)


def filter_spike_groups(spikes, length, group_size):
    """
    Drop runs of consecutive spikes of at least `group_size` points.

    Long runs are real transitions (steps, ramps) rather than spikes. A
    falsy `group_size` keeps every spike.
    """
    spikes = np.sort(np.asarray(spikes, dtype=int))
    if not group_size or spikes.size == 0:
        return spikes

    # both ends of every neighbouring pair
    adjacent = spikes[np.flatnonzero(np.diff(spikes) == 1)]
    neighbours = np.union1d(adjacent, adjacent + 1)
    if neighbours.size == 0:
        return spikes

    grp = pd.Series(np.zeros(length))
    grp.iloc[neighbours] = 1
    full = grp.rolling(group_size, center=True, min_periods=group_size).sum() == group_size
    centers = np.flatnonzero(full.to_numpy())
    if centers.size == 0:
        return spikes

    # same alignment as the centered window: [c - g//2, c + ceil(g/2) - 1]
    span = np.arange(group_size) - group_size // 2
    nons = np.unique((centers[:, None] + span).ravel())
    logger.debug(f'{len(nons)} consecutive points kept as signal.')
    return np.setdiff1d(spikes, nons)


def trim_incomplete_rows(data):
    """Keep the rows between the first and last row valid in every column."""
    valid = np.flatnonzero(data.notna().all(axis=1).to_numpy())
    if valid.size == 0:
        raise DegenerateTrimError('No row has valid values in every column, cannot trim leading / trailing NAs.')
    return data.iloc[valid[0]:valid[-1] + 1]


def despike_window(data, Trt=None, Cntl=None, Vrbs=False):
    """
    Determine spike locations using window-based statistics.

    Parameters
    ----------
    data : pd.DataFrame, pd.Series or array-like
        One column per channel, rows ordered by sample position.
    Trt : dict or Treatment, optional
        Despiking parameters, see Treatment.
    Cntl : dict or Control, optional
        ``NaOmit`` (trim leading / trailing rows with NAs), ``Prnt`` (print
        progress) and ``Plot`` (plot the criterion at every iteration).
    Vrbs : bool, default False
        Output flags [-1, 0, 1] the same size as `data` (``qfSpk``) rather
        than positions of failed and na values (``posSpk``).

    ``qfSpk`` and ``posSpk`` always refer to the rows of the input: with
    ``NaOmit`` only ``data`` is trimmed, so ``qfSpk`` may be taller than it.

    Returns
    -------
    structuredData
        ``data`` (despiked), ``smmy`` (rows iter, news, alls per channel)
        and either ``qfSpk`` or ``posSpk``.
    """
    Trt = Treatment.from_value(Trt)
    Cntl = Control.from_value(Cntl)
    mat = as_frame(data)
    n, numVar = mat.shape
    Trt.validate(length=n)

    despiked = mat.copy()
    posSpk = {}
    smmy = {}

    for idxVar, name in enumerate(mat.columns):
        label = f'Variable {idxVar + 1} of {numVar} ({name})'
        trns = mat[name].to_numpy(dtype=float)
        census = np.flatnonzero(np.isnan(trns))

        try:
            result = detect_spikes(trns, Trt, Cntl, label=label)
            iteration, prlm, unreliable = result.iter, result.spikes, result.na
        except InsufficientDataError as e:
            logger.warning(f'{e} All positions flagged as unable to evaluate.')
            iteration, prlm, unreliable = 0, EMPTY, np.arange(n)

        fail = filter_spike_groups(prlm, n, Trt.NumPtsGrp if Trt.group_enabled else False)
        # originally missing values are never spikes, and nothing is both spike and na
        fail = np.setdiff1d(fail, census)
        na = np.setdiff1d(np.union1d(census, unreliable), fail)

        column = trns.copy()
        column[fail] = np.nan
        despiked[name] = column
        posSpk[name] = {'fail': fail, 'na': na}
        smmy[name] = [iteration, len(fail), int(np.isnan(column).sum())]

        logger.info(f'{label} finished after {iteration} iteration(s), {len(fail)} spike(s), {len(na)} unable to evaluate.')
        if Cntl.Prnt:
            print(f'{label} is finished after {iteration} iteration(s). '
                  f'{len(fail)} spike(s) were detected, totally {smmy[name][2]} NAs.')

    smmy = pd.DataFrame(smmy, index=['iter', 'news', 'alls'], columns=mat.columns)

    # make sure there are no NAs in the first and last row of all columns (for interpolation)
    if Cntl.NaOmit:
        despiked = trim_incomplete_rows(despiked)

    rpt = structuredData(data=despiked, smmy=smmy)
    if Vrbs:
        qfSpk = pd.DataFrame(0, index=mat.index, columns=mat.columns)
        for idxVar, name in enumerate(mat.columns):
            qfSpk.iloc[posSpk[name]['na'], idxVar] = -1
            qfSpk.iloc[posSpk[name]['fail'], idxVar] = 1
        rpt.qfSpk = qfSpk
    else:
        rpt.posSpk = posSpk
    return rpt
