from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Callable, Iterable

import pandas as pd

from edsclass.donarummo import DONARUMMO_VOCABULARY, donarummo_classification
from edsclass.elements import DONARUMMO_ELEMENTS, KANDLER_ELEMENTS, PANTA_ELEMENTS, WEBER_ELEMENTS
from edsclass.errors import UnsupportedSchemeError
from edsclass.kandler import KANDLER_CLASSES, UNKNOWN, kandler_classification
from edsclass.panta import PANTA_VOCABULARY, panta_classification
from edsclass.weber import WEBER_CLASSES, weber_classification

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SchemeSpec:
    name: str
    data_type: str
    elements: tuple[str, ...]
    classifier: Callable[..., Any]
    vocabulary: tuple[str, ...]
    reference: str


SCHEMES: dict[str, SchemeSpec] = {
    "weber": SchemeSpec(
        "weber",
        "net intensity",
        WEBER_ELEMENTS,
        weber_classification,
        WEBER_CLASSES,
        "Weber et al. (2024)",
    ),
    "donarummo": SchemeSpec(
        "donarummo",
        "net intensity",
        DONARUMMO_ELEMENTS,
        donarummo_classification,
        tuple(DONARUMMO_VOCABULARY.labels("abbreviation")),
        "Donarummo et al. (2003)",
    ),
    "kandler": SchemeSpec(
        "kandler",
        "atom percent",
        KANDLER_ELEMENTS,
        kandler_classification,
        tuple(KANDLER_CLASSES) + (UNKNOWN,),
        "Kandler et al. (2011)",
    ),
    "panta": SchemeSpec(
        "panta",
        "atom percent",
        PANTA_ELEMENTS,
        panta_classification,
        tuple(PANTA_VOCABULARY.labels("abbreviation")),
        "Panta et al. (2023)",
    ),
}


def resolve_scheme(algorithm: str) -> SchemeSpec:
    key = algorithm.strip().lower() if isinstance(algorithm, str) else None
    if key not in SCHEMES:
        raise UnsupportedSchemeError(algorithm, tuple(SCHEMES))
    return SCHEMES[key]


def eds_classification(data: Any, algorithm: str = "weber", **options: Any) -> pd.Series | pd.DataFrame:
    """Classify EDS rows with the selected scheme.

    Returns a Series of labels, except for ``kandler`` which returns a
    ``class``/``group``/``refractive_index`` table. Extra keyword arguments
    go to the scheme's classifier (``model`` for weber, ``method`` and
    ``label_style`` for donarummo, ``label_style`` for panta).
    """
    scheme = resolve_scheme(algorithm)
    logger.info("Classifying with %s (%s data)", scheme.name, scheme.data_type)
    return scheme.classifier(data, **options)


def class_labels(result: pd.Series | pd.DataFrame) -> pd.Series:
    if isinstance(result, pd.DataFrame):
        return result["class"]
    return result


def compare_algorithms(
    data: Any,
    algorithms: Iterable[str] = ("donarummo", "panta", "kandler"),
    true_column: str | None = None,
    options: dict[str, dict[str, Any]] | None = None,
) -> pd.DataFrame:
    frame = data if isinstance(data, pd.DataFrame) else pd.DataFrame(data)
    options = options or {}
    columns: dict[str, pd.Series] = {}
    if true_column is not None:
        columns["true_class"] = frame[true_column].astype(str)
    for algorithm in algorithms:
        scheme = resolve_scheme(algorithm)
        result = eds_classification(frame, scheme.name, **options.get(scheme.name, {}))
        columns[scheme.name] = class_labels(result)
    return pd.DataFrame(columns, index=frame.index)


def agreement_table(comparison: pd.DataFrame, true_column: str = "true_class") -> pd.DataFrame:
    if true_column not in comparison.columns:
        raise ValueError(f"Comparison table has no {true_column!r} column.")
    truth = comparison[true_column]
    rows = []
    for column in comparison.columns:
        if column == true_column:
            continue
        matches = comparison[column].astype(str) == truth
        rows.append(
            {
                "algorithm": column,
                "n": int(len(matches)),
                "matches": int(matches.sum()),
                "agreement": float(matches.mean()) if len(matches) else float("nan"),
            }
        )
    return pd.DataFrame(rows, columns=["algorithm", "n", "matches", "agreement"])


def summarize_classes(labels: pd.Series | pd.DataFrame) -> pd.DataFrame:
    series = class_labels(labels)
    counts = series.astype(str).value_counts(sort=True)
    summary = counts.rename_axis("class").reset_index(name="count")
    total = int(summary["count"].sum())
    summary["fraction"] = summary["count"] / total if total else 0.0
    return summary
