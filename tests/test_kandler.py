from __future__ import annotations

from edsclass import kandler
from edsclass.elements import KANDLER_ELEMENTS
from edsclass.kandler import (
    GROUP_ORDER,
    KANDLER_CHECKLIST,
    KANDLER_CLASSES,
    OUTPUT_COLUMNS,
    kandler_classification,
    kandler_ratios,
)
from edsclass.samples import sample_atom_percent_data


def _row(**values: float) -> dict[str, float]:
    row = {symbol: 0.0 for symbol in KANDLER_ELEMENTS}
    row.update(values)
    return row


def test_output_columns_and_index() -> None:
    frame = sample_atom_percent_data()
    result = kandler_classification(frame)
    assert list(result.columns) == OUTPUT_COLUMNS
    assert result.index.equals(frame.index)


def test_sample_rows() -> None:
    result = kandler_classification(sample_atom_percent_data())
    assert result["class"].tolist() == ["Qz", "SiAlNa", "SiAl", "SiAlK", "Ca", "CaS", "NaCl", "Fe"]
    assert result["group"].tolist() == [
        "Quartz",
        "Silicates",
        "Silicates",
        "Silicates",
        "Carbonates",
        "Sulfates",
        "Chlorides",
        "Oxides/hydroxides",
    ]


def test_quartz_overwrites_silicate_mix() -> None:
    row = _row(Si=96.0, Al=2.0, Na=1.0, K=1.0)
    result = kandler_classification([row])
    assert KANDLER_CHECKLIST[0].label == "Silicate mix"
    assert KANDLER_CHECKLIST[0].mask(kandler_ratios([row]))[0]
    assert result.loc[0, "class"] == "Qz"
    assert result.loc[0, "refractive_index"] == KANDLER_CLASSES["Qz"].refractive_index


def test_unclassified_row() -> None:
    result = kandler_classification([_row()])
    assert result.iloc[0].tolist() == ["Unknown", "Unknown", "n/a"]


def test_every_rule_label_has_a_class() -> None:
    assert {item.label for item in KANDLER_CHECKLIST} == set(KANDLER_CLASSES)
    assert GROUP_ORDER[0] == "Silicates"
    assert set(GROUP_ORDER) == {item.group for item in KANDLER_CLASSES.values()}


def test_class_table_is_documented_as_reconstructed() -> None:
    assert "reconstruction" in kandler.__doc__
    assert "reconstructed" in kandler_classification.__doc__
