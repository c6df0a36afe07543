# standard modules
import os
import logging
import datetime
import argparse
# Project modules
from pandas.api.types import is_numeric_dtype
from ._core import mkdirs, load_setup, despike_window, plots
from ._core.addons import read_file, to_file

logger = logging.getLogger('handler')


def __setup_overrides__(algorithm=None, window=None, slide=None, threshold=None, nafracmax=None,
                        inflation=None, itermax=None, group=None, natrt=None,
                        naomit=None, quiet=None, plot=None, verbose=None, **kwargs):
    # command line values win over the configuration file, None leaves them untouched
    return {'Trt': {'AlgClss': algorithm,
                    'NumPtsWndw': window,
                    'NumPtsSlid': slide,
                    'ThshStd': threshold,
                    'NaFracMax': nafracmax,
                    'Infl': inflation,
                    'IterMax': itermax,
                    'NumPtsGrp': False if group == 0 else group,
                    'NaTrt': natrt},
            'Cntl': {'NaOmit': naomit,
                     'Prnt': None if quiet is None else not quiet,
                     'Plot': plot},
            'Vrbs': verbose}


def __select_variables__(data, variables=None, timecolumn=None):
    if variables:
        missing = [v for v in variables if v not in data.columns]
        assert len(missing) == 0, f'Variable(s) not found in input: {", ".join(missing)}.'
        return list(variables)
    return [c for c in data.columns if c != timecolumn and is_numeric_dtype(data[c])]


def main(inputpath, outputpath=None, config=None, variables=None, timecolumn=None, **kwargs):
    """
    Despike the channels of a table stored in `inputpath`.

    Treatment and control parameters come from the defaults, then the yaml
    `config` file, then the keyword overrides (algorithm, window, slide,
    threshold, nafracmax, inflation, itermax, group, natrt, naomit, quiet,
    plot, verbose). With an `outputpath`, the despiked data, the summary and
    the flags (verbose) or positions are written there, along with the run
    log and the setup used.
    """
    run_time = datetime.datetime.now()

    if outputpath is not None:
        logname = str(os.path.join(outputpath, f"log/current_{run_time.strftime('%y%m%dT%H%M%S')}.log"))
        mkdirs(logname)
        logging.basicConfig(filename=logname,
                            filemode='a',
                            format='%(asctime)s,%(msecs)d %(name)s %(levelname)s %(message)s',
                            datefmt='%Y-%m-%d %H:%M:%S',
                            level=logging.DEBUG,
                            force=True)

        logging.captureWarnings(True)
        logging.info("STARTING THE RUN")

    setup = load_setup(config, __setup_overrides__(**kwargs))

    data = read_file(str(inputpath))
    variables = __select_variables__(data, variables, timecolumn)
    logger.info(f'{os.path.basename(str(inputpath))}: despiking {", ".join(map(str, variables))} ({len(data)} rows).')

    result = despike_window(data[variables], **setup)

    if outputpath is None:
        return result

    name = os.path.splitext(os.path.basename(str(inputpath)))[0]
    outputname = str(os.path.join(outputpath, name + '_{}.{}'))

    despiked = result.data.copy()
    if timecolumn is not None:
        despiked.insert(0, timecolumn, data.loc[despiked.index, timecolumn])
    to_file(despiked, outputname.format('despiked', 'csv'), index=False)
    to_file(result.smmy, outputname.format('summary', 'csv'))

    if setup['Vrbs']:
        flags = result.qfSpk.copy()
        if timecolumn is not None:
            flags.insert(0, timecolumn, data[timecolumn])
        to_file(flags, outputname.format('flags', 'csv'), index=False)
    else:
        to_file(result.posSpk, outputname.format('positions', 'yml'))

    if setup['Cntl'].Plot:
        plots.save_open_figures(os.path.join(outputpath, 'plot'), prefix=name)

    # Save args for run
    to_file({'inputpath': str(inputpath), 'variables': variables, 'timecolumn': timecolumn,
             'Trt': setup['Trt'].to_dict(), 'Cntl': setup['Cntl'].to_dict(), 'Vrbs': setup['Vrbs']},
            os.path.join(outputpath, f'log/setup_{run_time.strftime("%Y%m%d%H%M%S%f")}.yml'))
    logging.info("RUN FINISHED")
    return result


def get_parser():
    parser = argparse.ArgumentParser(prog='ecdespike')
    parser.add_argument('-i', '--inputpath',  type=str)
    parser.add_argument('-o', '--outputpath', type=str)
    parser.add_argument('-c', '--config',     type=str)
    parser.add_argument('-v', '--variables',  type=str, nargs='+')
    parser.add_argument('-t', '--timecolumn', type=str)
    parser.add_argument('--algorithm', type=str, choices=['mean', 'median'])
    parser.add_argument('--window', type=int, nargs='+')
    parser.add_argument('--slide', type=int)
    parser.add_argument('--threshold', type=float)
    parser.add_argument('--nafracmax', type=float)
    parser.add_argument('--inflation', type=float)
    parser.add_argument('--itermax', type=int)
    parser.add_argument('--group', type=int)
    parser.add_argument('--natrt', type=str)
    parser.add_argument('--naomit', action='store_true', default=None)
    parser.add_argument('--verbose', action='store_true', default=None)
    parser.add_argument('--plot', action='store_true', default=None)
    parser.add_argument('--quiet', action='store_true', default=None)
    return parser


def cli(argv=None):
    args = get_parser().parse_args(argv)

    print('Start run w/')
    print('\n'.join([f'{k}:\t{v[:5] + "~" + v[-25:] if isinstance(v, str) and len(v) > 30 else v}' for k, v in vars(args).items() if v is not None]), end='\n\n')

    # Assert variables have been assigned
    missing_args = [f'`{k}`' for k in ['inputpath', 'outputpath'] if vars(args)[k] is None]
    assert len(missing_args) == 0, f'Missing argument in: {", ".join(missing_args)}.'

    return main(**vars(args))
