from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from edsclass.errors import SpectrumFormatError
from edsclass.samples import sample_spectrum
from edsclass.spectrum import (
    PEAK_ELEMENTS,
    fit_background,
    local_minima,
    moving_mean,
    peak_intensity,
    peak_intensity_table,
    subtract_background,
)


def test_moving_mean_shrinks_at_edges() -> None:
    smoothed = moving_mean(np.array([1.0, 2.0, 3.0, 4.0, 5.0]), 3)
    assert np.allclose(smoothed, [1.5, 2.0, 3.0, 4.0, 4.5])


def test_local_minima() -> None:
    energy = np.arange(5, dtype=float)
    counts = np.array([3.0, 1.0, 3.0, 1.0, 3.0])
    assert local_minima(energy, counts, 0.5).tolist() == [1, 3]


def test_peak_intensity_reads_k_alpha_channels() -> None:
    spectrum = sample_spectrum()
    peaks = peak_intensity(spectrum)
    assert list(peaks.columns) == list(PEAK_ELEMENTS)
    assert len(peaks) == 1
    silicon = spectrum.loc[np.isclose(spectrum["keV"], 1.74), "Counts"].iloc[0]
    assert peaks.loc[0, "Si"] == silicon
    assert peaks.loc[0, "Si"] > peaks.loc[0, "Ti"]


def test_peak_intensity_needs_every_channel() -> None:
    short = pd.DataFrame({"keV": np.round(np.arange(100) * 0.01, 2), "Counts": np.ones(100)})
    with pytest.raises(SpectrumFormatError, match="Na"):
        peak_intensity(short)
    with pytest.raises(SpectrumFormatError):
        peak_intensity(pd.DataFrame({"energy": [1.0]}))


def test_peak_intensity_table() -> None:
    table = peak_intensity_table({"grain-1": sample_spectrum(1), "grain-2": sample_spectrum(2)})
    assert table.columns[0] == "spectrum"
    assert table["spectrum"].tolist() == ["grain-1", "grain-2"]
    assert list(peak_intensity_table({}).columns) == ["spectrum", *PEAK_ELEMENTS]


def test_background_fit_and_subtraction() -> None:
    spectrum = sample_spectrum()
    fit = fit_background(spectrum)
    assert len(fit.coefficients) == 11
    assert len(fit.background) == len(spectrum)
    assert np.all(fit.minima_kev <= 10.5)
    high = spectrum["keV"].to_numpy() >= 9.5
    assert np.all(fit.background[high] == 0.0)

    corrected = subtract_background(spectrum)
    assert list(corrected.columns) == ["keV", "Counts"]
    assert len(corrected) == len(spectrum)
    assert (corrected["Counts"] >= 0).all()


def test_negative_degree_is_used_as_positive() -> None:
    fit = fit_background(sample_spectrum(), degree=-3)
    assert len(fit.coefficients) == 4


@pytest.mark.parametrize(
    "kwargs",
    [{"degree": 0}, {"min_separation": 0.0}, {"smoothing": 1.0}],
)
def test_invalid_background_parameters(kwargs: dict[str, float]) -> None:
    with pytest.raises(ValueError):
        fit_background(sample_spectrum(), **kwargs)


def test_too_few_minima() -> None:
    ramp = pd.DataFrame({"keV": np.arange(20) * 0.01, "Counts": np.arange(20, dtype=float)})
    with pytest.raises(ValueError, match="local minima"):
        fit_background(ramp, degree=3, smoothing=3)
