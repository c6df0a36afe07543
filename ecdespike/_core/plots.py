# built-in modules
import os

# 3rd party modules
import numpy as np
import matplotlib.pyplot as plt

# project modules
from .commons import mkdirs


##########################################
###     PLOT
##########################################


def plot_criterion(crit, threshold, title='', ax=None):
    """Normalised deviation (log10) of every sample against the spike threshold."""
    if ax is None:
        _, ax = plt.subplots(figsize=(8, 4))
    with np.errstate(divide='ignore', invalid='ignore'):
        ax.plot(np.log10(crit), '.', ms=2, color='k')
    ax.axhline(np.log10(threshold), color='r', lw=1)
    ax.set_ylim(-10, 10)
    ax.set_ylabel('log10(crit)')
    ax.set_xlabel('sample')
    ax.set_title(title)
    return ax


def save_open_figures(path, prefix='despike', close=True):
    saved = []
    for num in plt.get_fignums():
        figpath = os.path.join(path, f'{prefix}_{num:03d}.png')
        mkdirs(figpath)
        plt.figure(num).savefig(figpath, dpi=100)
        saved += [figpath]
    if close: plt.close('all')
    return saved
