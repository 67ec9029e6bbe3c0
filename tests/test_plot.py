from __future__ import annotations

import numpy as np
import pandas as pd

from edsclass import compare_algorithms, kandler_classification
from edsclass.plot import (
    build_background_figure,
    build_class_count_figure,
    build_comparison_figure,
    build_group_count_figure,
    build_score_heatmap,
    build_spectrum_figure,
    labels_frame,
)
from edsclass.samples import sample_atom_percent_data, sample_spectrum
from edsclass.spectrum import fit_background, subtract_background


def test_spectrum_figure_is_limited_to_energy_range() -> None:
    fig = build_spectrum_figure(sample_spectrum(), max_kev=5.0)
    assert len(fig.data) == 1
    assert float(np.max(fig.data[0].x)) <= 5.0
    assert fig.layout.title.text == "EDS Spectrum"


def test_background_figure_traces() -> None:
    spectrum = sample_spectrum()
    fig = build_background_figure(fit_background(spectrum), subtract_background(spectrum))
    names = [trace.name for trace in fig.data]
    assert names == ["Smoothed data", "Local minima", "Degree 10 background", "Background subtracted"]


def test_class_count_figure() -> None:
    fig = build_class_count_figure(pd.Series(["Ab", "Kln", "Ab"]), colors={"primary": "#000000"})
    assert list(fig.data[0].x) == ["Ab", "Kln"]
    assert list(fig.data[0].y) == [2, 1]
    assert fig.data[0].marker.color == "#000000"


def test_group_and_comparison_figures() -> None:
    frame = sample_atom_percent_data()
    groups = build_group_count_figure(kandler_classification(frame))
    assert {trace.name for trace in groups.data} == set(kandler_classification(frame)["class"])

    comparison = compare_algorithms(frame, ["panta", "kandler"])
    fig = build_comparison_figure(comparison)
    assert {trace.name for trace in fig.data} == {"panta", "kandler"}


def test_score_heatmap_shape() -> None:
    scores = pd.DataFrame([[0.9, 0.1], [0.2, 0.8]], columns=["Ab", "Kln"])
    fig = build_score_heatmap(scores)
    assert np.asarray(fig.data[0].z).shape == (2, 2)
    assert list(fig.data[0].x) == ["Ab", "Kln"]


def test_labels_frame() -> None:
    assert labels_frame(pd.Series(["Ab"], index=[5])).to_dict("records") == [{"mineral": "Ab"}]
    table = labels_frame(kandler_classification(sample_atom_percent_data()))
    assert list(table.columns) == ["class", "group", "refractive_index"]
