# built-in modules
import os

# 3rd party modules
import yaml
import numpy as np
import pandas as pd

# project modules


##########################################
###     GENERIC FUNCTIONS
##########################################


class structuredData:
    def __init__(self, **kwargs):
        for k, v in kwargs.items(): self.__dict__[k]=v
        pass

    def __contains__(self, key):
        return key in self.__dict__

    def __getitem__(self, key):
        return self.__dict__[key]

    def keys(self):
        return self.__dict__.keys()


def yaml_to_dict(path):
    with open(path, 'r') as file:
        file = yaml.safe_load(file)
    return file if file is not None else {}


def mkdirs(filename):
    dirname = os.path.dirname(filename)
    if dirname: os.makedirs(dirname, exist_ok=True)


def update_nested_dict(d, u):
    for k, v in u.items():
        if isinstance(v, dict):
            d[k] = update_nested_dict(d.get(k, {}), v)
        elif v is not None:
            d[k] = v
    return d


def update_nested_dicts(*ds):
    r = {}
    for d in ds:
        if d is None: continue
        if isinstance(d, str):
            d = yaml_to_dict(d)
        r = update_nested_dict(r, d)
    return r


def to_builtin(obj):
    """
    Convert numpy containers and scalars into plain python objects so they
    can be dumped with yaml.safe_dump.
    """
    if isinstance(obj, dict):
        return {str(k): to_builtin(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_builtin(v) for v in obj]
    if isinstance(obj, np.ndarray):
        return [to_builtin(v) for v in obj.tolist()]
    if isinstance(obj, np.integer):
        return int(obj)
    if isinstance(obj, np.floating):
        return float(obj)
    if isinstance(obj, np.bool_):
        return bool(obj)
    return obj


def as_frame(data):
    """Return data as a float DataFrame, one column per channel."""
    if isinstance(data, pd.DataFrame):
        frame = data.copy()
    elif isinstance(data, pd.Series):
        frame = data.to_frame(name=data.name if data.name is not None else 0)
    else:
        mat = np.asarray(data, dtype=float)
        if mat.ndim == 1:
            mat = mat.reshape(-1, 1)
        assert mat.ndim == 2, f"Data must be one or two dimensional, got shape {mat.shape}."
        frame = pd.DataFrame(mat)
    return frame.astype(float)
