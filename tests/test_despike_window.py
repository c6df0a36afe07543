import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import pytest

from ecdespike import ConfigurationError, DegenerateTrimError, despike_window, trim_incomplete_rows

QUIET = {"Prnt": False}
MEAN_TRT = {"AlgClss": "mean", "NumPtsWndw": 21, "ThshStd": 3.5, "NumPtsGrp": 4, "NaTrt": "omit"}


def channels(n=400, seed=7):
    rng = np.random.default_rng(seed)
    data = pd.DataFrame({"u": rng.normal(0, 1, n), "w": rng.normal(0, 0.3, n), "ts": rng.normal(20, 0.5, n)})
    data.loc[[40, 200, 330], "u"] += [15.0, -12.0, 20.0]
    data.loc[[100, 101], "w"] += [5.0, 6.0]
    data.loc[[10, 11, 12, 250], "ts"] = np.nan
    data.loc[[150], "ts"] += 10.0
    return data


def step_signal():
    x = np.zeros(60)
    x[30:35] = 1000.0
    return pd.DataFrame({"step": x})


def test_summary_and_positions_per_channel():
    data = channels()

    rpt = despike_window(data, MEAN_TRT, QUIET)

    assert list(rpt.smmy.index) == ["iter", "news", "alls"]
    assert list(rpt.smmy.columns) == ["u", "w", "ts"]
    assert set(rpt.posSpk) == {"u", "w", "ts"}
    for name in data.columns:
        fail = rpt.posSpk[name]["fail"]
        assert rpt.smmy.loc["news", name] == len(fail)
        assert rpt.smmy.loc["alls", name] == rpt.data[name].isna().sum()
        assert rpt.data[name].iloc[fail].isna().all()
    assert {40, 200, 330} <= set(rpt.posSpk["u"]["fail"])
    assert 150 in rpt.posSpk["ts"]["fail"]
    assert rpt.data.shape == data.shape
    assert "qfSpk" not in rpt


def test_originally_missing_positions_are_unable_to_evaluate():
    data = channels()

    for natrt in ("approx", "omit"):
        rpt = despike_window(data, {**MEAN_TRT, "NaTrt": natrt}, QUIET)
        na, fail = rpt.posSpk["ts"]["na"], rpt.posSpk["ts"]["fail"]
        assert {10, 11, 12, 250} <= set(na)
        assert not {10, 11, 12, 250} & set(fail)


def test_no_position_is_both_spike_and_unable_to_evaluate():
    rng = np.random.default_rng(3)
    x = rng.normal(0, 1, 500)
    x[rng.choice(500, 60, replace=False)] = np.nan
    x[[25, 125, 260, 261, 400]] += 30.0
    data = pd.DataFrame({"co2": x})

    for natrt in ("approx", "omit"):
        rpt = despike_window(data, {**MEAN_TRT, "NaFracMax": 0.05, "NaTrt": natrt}, QUIET)
        assert np.intersect1d(rpt.posSpk["co2"]["fail"], rpt.posSpk["co2"]["na"]).size == 0


def test_despiking_output_again_finds_nothing_new():
    data = channels()
    trt = {"AlgClss": "mean", "NumPtsWndw": 21, "ThshStd": 3.5, "NumPtsGrp": False, "NaFracMax": 1,
           "NaTrt": "omit", "Infl": 0}

    first = despike_window(data, trt, QUIET)
    second = despike_window(first.data, trt, QUIET)

    assert (second.smmy.loc["news"] == 0).all()
    pd.testing.assert_frame_equal(first.data, second.data)


def test_step_is_protected_by_group_filter():
    trt = {"AlgClss": "median", "NumPtsWndw": 31, "ThshStd": 3, "NumPtsGrp": 5}

    protected = despike_window(step_signal(), trt, QUIET)
    flagged = despike_window(step_signal(), {**trt, "NumPtsGrp": False}, QUIET)

    assert protected.posSpk["step"]["fail"].size == 0
    assert (protected.data["step"].iloc[30:35] == 1000.0).all()
    np.testing.assert_array_equal(flagged.posSpk["step"]["fail"], [30, 31, 32, 33, 34])
    assert flagged.data["step"].iloc[30:35].isna().all()
    assert flagged.smmy.loc["news", "step"] == 5


def test_flag_matrix_matches_position_lists():
    data = channels()

    positions = despike_window(data, MEAN_TRT, QUIET, Vrbs=False)
    flags = despike_window(data, MEAN_TRT, QUIET, Vrbs=True)

    assert flags.qfSpk.shape == data.shape
    assert "posSpk" not in flags
    for name in data.columns:
        qf = flags.qfSpk[name].to_numpy()
        np.testing.assert_array_equal(np.flatnonzero(qf == 1), positions.posSpk[name]["fail"])
        np.testing.assert_array_equal(np.flatnonzero(qf == -1), positions.posSpk[name]["na"])
        assert set(np.unique(qf)) <= {-1, 0, 1}


def test_all_missing_channel_is_isolated():
    data = pd.DataFrame({"h2o": np.full(20, np.nan), "co2": np.linspace(0.0, 1.0, 20)})

    rpt = despike_window(data, {"AlgClss": "mean", "NumPtsWndw": 5, "ThshStd": 3, "NumPtsGrp": False}, QUIET)

    assert rpt.smmy.loc["iter", "h2o"] == 0
    assert rpt.smmy.loc["news", "h2o"] == 0
    assert rpt.smmy.loc["alls", "h2o"] == 20
    np.testing.assert_array_equal(rpt.posSpk["h2o"]["na"], np.arange(20))
    assert rpt.posSpk["h2o"]["fail"].size == 0
    assert rpt.smmy.loc["iter", "co2"] >= 1


def test_array_input_is_accepted():
    x = np.zeros(10)
    x[4] = 100.0

    rpt = despike_window(x, {"AlgClss": "median", "NumPtsWndw": 5, "ThshStd": 3, "NumPtsGrp": False,
                             "NaTrt": "approx"}, QUIET)

    np.testing.assert_array_equal(rpt.posSpk[0]["fail"], [4])
    assert np.isnan(rpt.data[0].iloc[4])
    assert rpt.smmy.loc["alls", 0] == 1


def test_group_size_must_be_smaller_than_series():
    with pytest.raises(ConfigurationError):
        despike_window(np.zeros(10), {"AlgClss": "mean", "NumPtsWndw": 5, "NumPtsGrp": 10}, QUIET)


def test_trimming_keeps_rows_valid_in_every_channel():
    data = pd.DataFrame({"a": [np.nan, 1.0, 2.0, np.nan, 4.0, 5.0], "b": [0.0, 1.0, 2.0, 3.0, 4.0, np.nan]})

    trimmed = trim_incomplete_rows(data)

    assert list(trimmed.index) == [1, 2, 3, 4]
    assert np.isnan(trimmed.loc[3, "a"])


def test_trimming_without_complete_row_is_an_error():
    data = pd.DataFrame({"a": [np.nan, 1.0, np.nan], "b": [0.0, np.nan, 2.0]})

    with pytest.raises(DegenerateTrimError):
        trim_incomplete_rows(data)


def test_na_omit_trims_output_but_not_flags():
    data = channels()
    data.loc[0, "u"] = np.nan
    data.loc[len(data) - 1, "w"] = np.nan

    rpt = despike_window(data, MEAN_TRT, {"Prnt": False, "NaOmit": True}, Vrbs=True)

    assert rpt.data.index[0] == 1
    assert rpt.data.index[-1] == len(data) - 2
    assert rpt.data.iloc[[0, -1]].notna().all().all()
    assert rpt.qfSpk.shape == data.shape
    assert rpt.qfSpk.index.equals(data.index)


def test_progress_is_printed(capsys):
    x = np.zeros(10)
    x[4] = 100.0

    despike_window(x, {"AlgClss": "median", "NumPtsWndw": 5, "ThshStd": 3, "NumPtsGrp": False}, {"Prnt": True})

    out = capsys.readouterr().out
    assert "iteration 1 is finished. 1 new spikes" in out
    assert "is finished after 2 iteration(s). 1 spike(s) were detected" in out


def test_plot_draws_one_figure_per_iteration():
    plt.close("all")
    x = np.zeros(10)
    x[4] = 100.0

    rpt = despike_window(x, {"AlgClss": "median", "NumPtsWndw": 5, "ThshStd": 3, "NumPtsGrp": False},
                         {"Prnt": False, "Plot": True})

    assert len(plt.get_fignums()) == rpt.smmy.loc["iter", 0]
    plt.close("all")
