from __future__ import annotations

import pandas as pd
import pytest

from edsclass.elements import PANTA_ELEMENTS
from edsclass.errors import SchemaError
from edsclass.panta import PANTA_CHECKLIST, PANTA_RATIOS, PANTA_VOCABULARY, panta_classification, panta_ratios
from edsclass.samples import sample_atom_percent_data


def _row(**values: float) -> dict[str, float]:
    row = {symbol: 0.0 for symbol in PANTA_ELEMENTS}
    row.update(values)
    return row


def test_quartz_row() -> None:
    row = _row(Si=95.0, Al=3.0, Na=1.0, K=1.0)
    assert panta_classification([row]).tolist() == ["Qz"]
    assert panta_classification([row], label_style="name").tolist() == ["Quartz-like"]


def test_fluorine_is_left_out_of_the_total() -> None:
    ratios = panta_ratios([_row(Si=95.0, Al=3.0, Na=1.0, K=1.0, F=100.0)])
    assert ratios.loc[0, "Si/sum"] == pytest.approx(0.95)
    assert ratios.loc[0, "F/(F+Si)"] == pytest.approx(100.0 / 195.0)
    assert panta_classification([_row(Si=95.0, Al=3.0, Na=1.0, K=1.0, F=100.0)]).tolist() == ["Unknown"]


def test_sample_rows() -> None:
    frame = sample_atom_percent_data()
    labels = panta_classification(frame)
    expected = ["Qz", "Ab", "Kln", "Ilt", "Cal", "Complex sulfate", "Hl", "Hem"]
    assert labels.tolist() == expected


_ILLITE = {"Na": 0.5, "Mg": 2.0, "Al": 35.0, "Si": 52.0, "K": 8.0, "Ca": 0.5, "Fe": 2.0}


@pytest.mark.parametrize(
    ("overrides", "expected"),
    [
        ({}, "Ilt"),
        # Ilt bounds are exclusive, so a zero ratio falls back to the broader clay rule.
        ({"Mg": 0.0}, "Complex clay"),
        ({"Fe": 0.0}, "Complex clay"),
        ({"Na": 0.0, "Ca": 0.0}, "Complex clay"),
    ],
)
def test_illite_bounds_exclude_zero(overrides: dict[str, float], expected: str) -> None:
    row = _row(**{**_ILLITE, **overrides})
    assert panta_classification([row]).tolist() == [expected]


def test_illite_rule_uses_open_intervals() -> None:
    illite = next(item for item in PANTA_CHECKLIST if item.label == "Ilt")
    assert {bound.op for bound in illite.bounds} == {">", "<"}
    clay = next(item for item in PANTA_CHECKLIST if item.label == "Complex clay")
    assert {bound.op for bound in clay.bounds} == {">=", "<="}


def test_gypsum_is_overwritten_by_complex_sulfate() -> None:
    gypsum = sample_atom_percent_data().iloc[[5]]
    order = [item.label for item in PANTA_CHECKLIST]
    assert order.index("Complex sulfate") > order.index("Gp")
    assert panta_classification(gypsum).tolist() == ["Complex sulfate"]


def test_empty_composition_is_unknown() -> None:
    assert panta_classification([_row()]).tolist() == ["Unknown"]


def test_missing_fluorine_column_raises() -> None:
    row = _row(Si=95.0)
    row.pop("F")
    with pytest.raises(SchemaError, match="missing F"):
        panta_classification([row])


def test_rule_table_shape() -> None:
    assert len(PANTA_CHECKLIST) == 23
    assert {item.label for item in PANTA_CHECKLIST} == set(PANTA_VOCABULARY.codes)
    ratios = panta_ratios(pd.DataFrame([_row(Si=1.0)]))
    assert list(ratios.columns) == list(PANTA_RATIOS)
