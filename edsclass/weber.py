from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path
from typing import Any

import joblib
import numpy as np
import pandas as pd

from edsclass.elements import WEBER_ELEMENTS, normalize_columns
from edsclass.errors import ModelUnavailableError
from edsclass.ratios import compute_ratios
from edsclass.rules import assign_groups

logger = logging.getLogger(__name__)

WEBER_PREDICTORS = (
    "(Mg+Fe)/Al",
    "(Mg+Fe)/Si",
    "(Ca+Na)/Al",
    "K/(K+Na+Ca)",
    "K/(Al+Si)",
    "Al/Si",
    "Fe/Si",
    "Ca/Si",
    "K/Si",
    "K/Al",
    "Ca/Na",
    "P/Ca",
    "Ti/Fe",
    "Mg/Al",
    "|Na|",
    "|Mg|",
    "|Al|",
    "|Si|",
    "|P|",
    "|K|",
    "|Ca|",
    "|Ti|",
    "|Fe|",
)

WEBER_CLASSES = (
    "Ab", "Ap", "Aug", "Bt", "Chl", "En", "Hbl", "Kln", "Lab",
    "Mc", "Mnt", "Ms", "Olig", "Pgt", "Plg", "Spl", "Spn", "Vrm",
)

# Applied in order; labels outside every group keep their own code.
WEBER_GROUPS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Clay", ("Chl", "Kln", "Mnt", "Ms", "Plg", "Vrm")),
    ("Feldspar", ("Ab", "An", "Mc", "Lab", "Olig")),
    ("Pyroxene", ("Aug", "En", "Pgt")),
    ("Apatite", ("Ap",)),
    ("Amphibole", ("Hbl",)),
    ("Mica", ("Bt",)),
    ("Spinel", ("Spl",)),
    ("Titanite", ("Spn",)),
)


@dataclass(frozen=True)
class WeberResult:
    minerals: pd.Series
    groups: pd.Series
    scores: pd.DataFrame


def net_intensity_ratios(data: Any, label: str | None = None) -> pd.DataFrame:
    frame = normalize_columns(data, WEBER_ELEMENTS)
    ratios = compute_ratios(frame, WEBER_PREDICTORS, WEBER_ELEMENTS)
    if label is not None:
        if not isinstance(label, str):
            raise TypeError("label must be a string.")
        ratios.insert(0, "Mineral", label)
    return ratios


def load_weber_model(path: str | Path) -> Any:
    model_path = Path(path)
    if not model_path.is_file():
        raise ModelUnavailableError(f"Weber model file not found: {model_path}")
    logger.info("Loading Weber model from %s", model_path)
    return joblib.load(model_path)


def _score_frame(scores: Any, index: pd.Index, classes: list[str] | None) -> pd.DataFrame:
    if isinstance(scores, pd.DataFrame):
        frame = scores.copy()
        frame.index = index
        return frame
    values = np.asarray(scores, dtype=float)
    if values.ndim != 2 or values.shape[0] != len(index):
        raise ValueError("Model scores must be a 2-D array with one row per observation.")
    if classes is None:
        if values.shape[1] != len(WEBER_CLASSES):
            raise ValueError(f"Expected {len(WEBER_CLASSES)} score columns, got {values.shape[1]}.")
        classes = list(WEBER_CLASSES)
    return pd.DataFrame(values, index=index, columns=classes)


def predict_weber(model: Any, predictors: pd.DataFrame) -> tuple[pd.Series, pd.DataFrame]:
    if model is None:
        raise ModelUnavailableError(
            "The Weber algorithm needs a trained model. Pass model= or load one with load_weber_model()."
        )
    if hasattr(model, "predict_proba") and hasattr(model, "classes_"):
        classes = [str(item) for item in model.classes_]
        scores = _score_frame(model.predict_proba(predictors), predictors.index, classes)
        labels = scores.to_numpy().argmax(axis=1)
        minerals = pd.Series(np.asarray(classes, dtype=object)[labels], index=predictors.index, dtype=object)
    elif callable(model):
        raw_labels, raw_scores = model(predictors)
        scores = _score_frame(raw_scores, predictors.index, None)
        minerals = pd.Series([str(item) for item in raw_labels], index=predictors.index, dtype=object)
    else:
        raise ModelUnavailableError(
            f"Unsupported Weber model of type {type(model).__name__}: need predict_proba/classes_ or a callable."
        )
    return minerals.rename("mineral"), scores


def weber_details(data: Any, model: Any = None) -> WeberResult:
    predictors = net_intensity_ratios(data)
    minerals, scores = predict_weber(model, predictors)
    groups = assign_groups(minerals, WEBER_GROUPS)
    logger.info("Weber classified %d row(s)", len(minerals))
    return WeberResult(minerals=minerals, groups=groups, scores=scores)


def weber_classification(data: Any, model: Any = None) -> pd.Series:
    return weber_details(data, model=model).minerals
