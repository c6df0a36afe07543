# built-in modules
import os

# 3rd party modules
import yaml
import pandas as pd

# project modules
from .commons import mkdirs, to_builtin


# Add-ons
READ_FUNCTIONS = {'csv': pd.read_csv,
                  'txt': pd.read_csv,
                  'xlsx': pd.read_excel,
                  'parquet': pd.read_parquet,
                  'json': pd.read_json}


def read_file(file_name, *a, **k):
    for file_ext, read in READ_FUNCTIONS.items():
        if str(file_name).endswith(file_ext):
            return read(file_name, *a, **k)
    raise ValueError(f'Unsupported file extension: {os.path.basename(str(file_name))}.')


def to_file(data, file_name, *a, **k):
    """Write a DataFrame (by extension) or any yaml-able object (.yml / .yaml)."""
    file_name = str(file_name)
    mkdirs(file_name)
    if file_name.endswith(('.yml', '.yaml')):
        with open(file_name, 'w+') as stp:
            yaml.safe_dump(to_builtin(data), stp, sort_keys=False)
        return file_name
    to_functions = {'csv': pd.DataFrame.to_csv,
                    'txt': pd.DataFrame.to_csv,
                    'xlsx': pd.DataFrame.to_excel,
                    'parquet': pd.DataFrame.to_parquet,
                    'json': pd.DataFrame.to_json}
    for file_ext, to in to_functions.items():
        if file_name.endswith(file_ext):
            to(data, file_name, *a, **k)
            return file_name
    raise ValueError(f'Unsupported file extension: {os.path.basename(file_name)}.')
