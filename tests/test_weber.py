from __future__ import annotations

from pathlib import Path

import joblib
import numpy as np
import pandas as pd
import pytest

from edsclass.errors import ModelUnavailableError
from edsclass.samples import sample_net_intensity_data
from edsclass.weber import (
    WEBER_CLASSES,
    WEBER_PREDICTORS,
    load_weber_model,
    net_intensity_ratios,
    weber_classification,
    weber_details,
)


class FakeClassifier:
    """Minimal stand-in for a fitted scikit-learn classifier."""

    def __init__(self, classes: list[str]) -> None:
        self.classes_ = np.array(classes)
        self.seen_columns: list[str] = []

    def predict_proba(self, predictors: pd.DataFrame) -> np.ndarray:
        self.seen_columns = list(predictors.columns)
        scores = np.full((len(predictors), len(self.classes_)), 0.1)
        for row in range(len(predictors)):
            scores[row, row % len(self.classes_)] = 0.8
        return scores


def test_predictor_table() -> None:
    frame = sample_net_intensity_data()
    predictors = net_intensity_ratios(frame)
    assert list(predictors.columns) == list(WEBER_PREDICTORS)
    assert len(WEBER_PREDICTORS) == 23
    row = frame.iloc[0]
    total = float(row[["Na", "Mg", "Al", "Si", "P", "K", "Ca", "Ti", "Fe"]].sum())
    assert np.isclose(predictors.loc[0, "|Si|"], row["Si"] / total)
    assert np.isclose(predictors.loc[0, "Al/Si"], row["Al"] / row["Si"])


def test_predictor_table_label_column() -> None:
    predictors = net_intensity_ratios(sample_net_intensity_data().head(2), label="Ab")
    assert predictors.columns[0] == "Mineral"
    assert predictors["Mineral"].tolist() == ["Ab", "Ab"]
    with pytest.raises(TypeError):
        net_intensity_ratios(sample_net_intensity_data().head(2), label=3)


def test_classifier_with_predict_proba() -> None:
    model = FakeClassifier(["Ab", "Kln", "Hbl", "Qz"])
    details = weber_details(sample_net_intensity_data().head(4), model=model)
    assert details.minerals.tolist() == ["Ab", "Kln", "Hbl", "Qz"]
    assert details.groups.tolist() == ["Feldspar", "Clay", "Amphibole", "Qz"]
    assert list(details.scores.columns) == ["Ab", "Kln", "Hbl", "Qz"]
    assert model.seen_columns == list(WEBER_PREDICTORS)


def test_callable_model() -> None:
    def model(predictors: pd.DataFrame) -> tuple[list[str], np.ndarray]:
        scores = np.zeros((len(predictors), len(WEBER_CLASSES)))
        scores[:, WEBER_CLASSES.index("Bt")] = 1.0
        return ["Bt"] * len(predictors), scores

    labels = weber_classification(sample_net_intensity_data().head(3), model=model)
    assert labels.tolist() == ["Bt", "Bt", "Bt"]
    details = weber_details(sample_net_intensity_data().head(3), model=model)
    assert list(details.scores.columns) == list(WEBER_CLASSES)
    assert details.groups.tolist() == ["Mica", "Mica", "Mica"]


def test_callable_with_wrong_score_width_raises() -> None:
    def model(predictors: pd.DataFrame) -> tuple[list[str], np.ndarray]:
        return ["Ab"] * len(predictors), np.zeros((len(predictors), 3))

    with pytest.raises(ValueError):
        weber_classification(sample_net_intensity_data().head(2), model=model)


def test_missing_model_raises() -> None:
    with pytest.raises(ModelUnavailableError):
        weber_classification(sample_net_intensity_data())
    with pytest.raises(ModelUnavailableError):
        weber_classification(sample_net_intensity_data(), model=object())


def test_load_model(tmp_path: Path) -> None:
    with pytest.raises(ModelUnavailableError):
        load_weber_model(tmp_path / "missing.joblib")
    path = tmp_path / "model.joblib"
    joblib.dump({"classes": list(WEBER_CLASSES)}, path)
    assert load_weber_model(path) == {"classes": list(WEBER_CLASSES)}
