from __future__ import annotations

import logging

import numpy as np
import pandas as pd
import pytest

from edsclass.ratios import TOTAL, compute_ratios, element_total, parse_ratio


def test_parse_simple_and_grouped_ratios() -> None:
    simple = parse_ratio("Al/Si")
    assert simple.numerator == ((1.0, "Al"),)
    assert simple.denominator == ((1.0, "Si"),)

    grouped = parse_ratio("(Cl+2S)/(Al+Si)")
    assert grouped.numerator == ((1.0, "Cl"), (2.0, "S"))
    assert grouped.denominator == ((1.0, "Al"), (1.0, "Si"))
    assert grouped.elements == ("Cl", "S", "Al", "Si")

    fractional = parse_ratio("Cl/(Na+0.5Mg)")
    assert fractional.denominator == ((1.0, "Na"), (0.5, "Mg"))


def test_parse_abundance_shorthand_uses_total() -> None:
    spec = parse_ratio("|Si+Al|")
    assert spec.numerator == ((1.0, "Si"), (1.0, "Al"))
    assert spec.denominator == ((1.0, TOTAL),)
    assert spec.uses_total
    assert not parse_ratio("Al/Si").uses_total


def test_parse_rejects_malformed_ratios() -> None:
    with pytest.raises(ValueError):
        parse_ratio("AlSi")
    with pytest.raises(ValueError):
        parse_ratio("Al/si")


def test_compute_ratios_values_and_index() -> None:
    frame = pd.DataFrame(
        [{"Na": 2.0, "Mg": 4.0, "Cl": 4.0, "S": 1.0, "Al": 1.0, "Si": 2.0}],
        index=["spot-7"],
    )
    ratios = compute_ratios(frame, ["Al/Si", "(Cl+2S)/(Al+Si)", "Cl/(Na+0.5Mg)"])
    assert list(ratios.index) == ["spot-7"]
    assert np.isclose(ratios.loc["spot-7", "Al/Si"], 0.5)
    assert np.isclose(ratios.loc["spot-7", "(Cl+2S)/(Al+Si)"], 2.0)
    assert np.isclose(ratios.loc["spot-7", "Cl/(Na+0.5Mg)"], 1.0)


def test_compute_ratios_with_total() -> None:
    frame = pd.DataFrame([{"Si": 3.0, "Al": 1.0, "Fe": 0.0}])
    ratios = compute_ratios(frame, ["|Si|", "|Si+Al|", "|Fe|"], ("Si", "Al", "Fe"))
    assert np.isclose(ratios.loc[0, "|Si|"], 0.75)
    assert np.isclose(ratios.loc[0, "|Si+Al|"], 1.0)
    assert ratios.loc[0, "|Fe|"] == 0.0
    assert np.allclose(element_total(frame, ("Si", "Al", "Fe")), [4.0])


def test_compute_ratios_requires_total_elements() -> None:
    frame = pd.DataFrame([{"Si": 1.0}])
    with pytest.raises(ValueError, match="total"):
        compute_ratios(frame, ["|Si|"])


def test_division_by_zero_follows_ieee() -> None:
    frame = pd.DataFrame([{"Al": 1.0, "Si": 0.0}, {"Al": 0.0, "Si": 0.0}, {"Al": np.nan, "Si": 1.0}])
    ratios = compute_ratios(frame, ["Al/Si"])
    values = ratios["Al/Si"].to_numpy()
    assert np.isposinf(values[0])
    assert np.isnan(values[1])
    assert np.isnan(values[2])


def test_total_can_be_combined_with_elements() -> None:
    spec = parse_ratio("Na/(F+sum)")
    assert spec.denominator == ((1.0, "F"), (1.0, TOTAL))
    frame = pd.DataFrame([{"Na": 2.0, "F": 1.0, "Si": 3.0}])
    ratios = compute_ratios(frame, ["Na/(F+sum)"], ("Na", "Si"))
    assert np.isclose(ratios.loc[0, "Na/(F+sum)"], 2.0 / 6.0)


def test_undefined_ratio_rows_are_logged_at_debug(caplog: pytest.LogCaptureFixture) -> None:
    # Rows without Cl or S leave Cl/(Cl+S) undefined on almost every real analysis.
    frame = pd.DataFrame([{"Cl": 0.0, "S": 0.0, "Al": 1.0, "Si": 2.0}, {"Cl": 1.0, "S": 1.0, "Al": 1.0, "Si": 2.0}])
    with caplog.at_level(logging.DEBUG, logger="edsclass.ratios"):
        compute_ratios(frame, ["Cl/(Cl+S)", "Al/Si"])
    records = [record for record in caplog.records if record.name == "edsclass.ratios"]
    assert [record.levelno for record in records] == [logging.DEBUG]
    assert records[0].getMessage() == "1 of 2 row(s) have undefined or infinite ratios"
