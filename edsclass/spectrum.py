from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path
from typing import Mapping

import numpy as np
import pandas as pd
from scipy.signal import find_peaks

from edsclass.errors import SpectrumFormatError
from edsclass.io import SPECTRUM_COLUMNS, read_msa

logger = logging.getLogger(__name__)

PEAK_ELEMENTS = ("F", "Na", "Mg", "Al", "Si", "P", "S", "Cl", "K", "Ca", "Ti", "Cr", "Mn", "Fe")

# K-alpha line energies in keV.
K_ALPHA_KEV: dict[str, float] = dict(
    zip(
        PEAK_ELEMENTS,
        (
            0.6768,
            1.04098,
            1.2536,
            1.4867,
            1.73998,
            2.0137,
            2.30784,
            2.62239,
            3.3138,
            3.69168,
            4.51084,
            5.41472,
            5.89875,
            6.40384,
        ),
    )
)

FIT_LIMIT_KEV = 10.0
ZERO_FROM_KEV = 9.0


@dataclass(frozen=True)
class BackgroundFit:
    minima_kev: np.ndarray
    minima_counts: np.ndarray
    coefficients: np.ndarray
    smoothed: pd.DataFrame
    background: np.ndarray


def _round_half_up(values: np.ndarray | float, decimals: int = 0) -> np.ndarray:
    scale = 10.0**decimals
    return np.floor(np.asarray(values, dtype=float) * scale + 0.5) / scale


def moving_mean(values: np.ndarray, window: float) -> np.ndarray:
    """Centered moving average that shrinks at the edges."""
    size = max(int(round(window)), 1)
    before = size // 2
    after = size - 1 - before
    data = np.asarray(values, dtype=float)
    count = len(data)
    cumulative = np.concatenate([[0.0], np.cumsum(data)])
    positions = np.arange(count)
    low = np.clip(positions - before, 0, count)
    high = np.clip(positions + after + 1, 0, count)
    return (cumulative[high] - cumulative[low]) / (high - low)


def _as_spectrum(data: pd.DataFrame | str | Path) -> pd.DataFrame:
    if isinstance(data, (str, Path)):
        spectrum, _ = read_msa(data)
        return spectrum
    if not isinstance(data, pd.DataFrame) or not set(SPECTRUM_COLUMNS).issubset(data.columns):
        raise SpectrumFormatError("Spectrum must be a table with keV and Counts columns or an .msa path.")
    return data[SPECTRUM_COLUMNS].astype(float).reset_index(drop=True)


def local_minima(energy: np.ndarray, counts: np.ndarray, min_separation: float) -> np.ndarray:
    if len(energy) < 3:
        return np.array([], dtype=int)
    spacing = float(np.median(np.diff(energy)))
    distance = max(int(np.ceil(min_separation / spacing)), 1) if spacing > 0 else 1
    indices, _ = find_peaks(-counts, distance=distance)
    return indices


def fit_background(
    data: pd.DataFrame | str | Path,
    degree: int = 10,
    min_separation: float = 0.13,
    smoothing: float = 15,
) -> BackgroundFit:
    if degree < 0:
        logger.warning("Polynomial degree cannot be negative; using %d instead", abs(degree))
        degree = abs(degree)
    elif degree == 0:
        raise ValueError("Polynomial degree cannot be zero.")
    if min_separation <= 0:
        raise ValueError("min_separation must be greater than zero.")
    if smoothing <= 1:
        raise ValueError("smoothing must be greater than 1.")

    spectrum = _as_spectrum(data)
    energy = spectrum["keV"].to_numpy(dtype=float)
    counts = moving_mean(spectrum["Counts"].to_numpy(dtype=float), smoothing)
    smoothed = pd.DataFrame({"keV": energy, "Counts": counts}, columns=SPECTRUM_COLUMNS)

    minima = local_minima(energy, counts, min_separation)
    minima_kev = energy[minima]
    minima_counts = counts[minima]
    stop = np.flatnonzero(_round_half_up(minima_kev) == FIT_LIMIT_KEV)
    if stop.size:
        minima_kev = minima_kev[: stop[0] + 1]
        minima_counts = minima_counts[: stop[0] + 1]
    if minima_kev.size <= degree:
        raise ValueError(
            f"Found {minima_kev.size} local minima; a degree-{degree} background needs at least {degree + 1}."
        )

    coefficients = np.polyfit(minima_kev, minima_counts, degree)
    background = np.polyval(coefficients, energy)
    zero_from = np.flatnonzero(_round_half_up(energy) == ZERO_FROM_KEV)
    if zero_from.size:
        background[zero_from[0] :] = 0.0
    return BackgroundFit(minima_kev, minima_counts, coefficients, smoothed, background)


def subtract_background(
    data: pd.DataFrame | str | Path,
    degree: int = 10,
    min_separation: float = 0.13,
    smoothing: float = 15,
) -> pd.DataFrame:
    fit = fit_background(data, degree=degree, min_separation=min_separation, smoothing=smoothing)
    corrected = fit.smoothed["Counts"].to_numpy() - fit.background
    corrected[corrected < 0] = 0.0
    return pd.DataFrame({"keV": fit.smoothed["keV"].to_numpy(), "Counts": corrected}, columns=SPECTRUM_COLUMNS)


def peak_intensity(data: pd.DataFrame | str | Path) -> pd.DataFrame:
    spectrum = _as_spectrum(data)
    channels = _round_half_up(spectrum["keV"].to_numpy(dtype=float), 2)
    counts = spectrum["Counts"].to_numpy(dtype=float)
    row: dict[str, float] = {}
    for element, energy in K_ALPHA_KEV.items():
        matches = np.flatnonzero(np.isclose(channels, _round_half_up(energy, 2)))
        if not matches.size:
            raise SpectrumFormatError(f"No channel at {energy:.2f} keV for {element}.")
        row[element] = float(counts[matches[0]])
    return pd.DataFrame([row], columns=list(PEAK_ELEMENTS))


def peak_intensity_table(spectra: Mapping[str, pd.DataFrame | str | Path]) -> pd.DataFrame:
    rows = [peak_intensity(spectrum).assign(spectrum=name) for name, spectrum in spectra.items()]
    if not rows:
        return pd.DataFrame(columns=["spectrum", *PEAK_ELEMENTS])
    table = pd.concat(rows, ignore_index=True)
    return table[["spectrum", *PEAK_ELEMENTS]]
