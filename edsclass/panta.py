from __future__ import annotations

import logging
from typing import Any

import pandas as pd

from edsclass.elements import KANDLER_ELEMENTS, PANTA_ELEMENTS, normalize_columns
from edsclass.ratios import compute_ratios
from edsclass.rules import Rule, Vocabulary, apply_checklist, checklist_ratios, interval, rule, within

logger = logging.getLogger(__name__)

# F is excluded from the total; rules that need it add it explicitly.
PANTA_TOTAL_ELEMENTS = KANDLER_ELEMENTS

PANTA_VOCABULARY = Vocabulary(
    unknown="Unknown",
    names={
        "Hem": "Hematite-like",
        "Rt": "Rutile-like",
        "Ilm": "Illmenite-like",
        "Qz": "Quartz-like",
        "Complex Qz": "Complex quartz-like",
        "Mc": "Microcline-like",
        "Ab": "Albite-like",
        "Complex Fsp": "Feldspar-like",
        "Complex Fsp/clay mix": "Complex clay/feldspar mixture",
        "Mica": "Mica-like",
        "Complex clay": "Complex clay-mineral-like",
        "Ilt": "Illite-like",
        "Chl": "Chlorite-like",
        "Sme": "Smectite-like",
        "Kln": "Kaolinite-like",
        "Ca-rich silicate/Ca-Si-mix": "Ca-rich silicate/Ca-Si-mixture",
        "Cal": "Calcite-like",
        "Dol": "Dolomite-like",
        "Ap": "Apatite-like",
        "Gp": "Gypsum-like",
        "Alu": "Alunite-like",
        "Hl": "Halite-like",
        "Complex sulfate": "Complex sulfate",
    },
)

_SILICATE_TOTAL = "(Al+Si+Na+Mg+K+Ca+Fe)/sum"
_SALT_SILICATE = "(Na+Cl+2S)/(Al+Si)"
_SALT_NA = "(Cl+2S)/Na"
_SALT_FRAMEWORK = "(Cl+2S)/(Al+Si)"

_EACH_CATION_PER_SI = (
    within("Fe/Si", 0, 0.5),
    within("Ca/Si", 0, 0.5),
    within("K/Si", 0, 0.5),
    within("Mg/Si", 0, 0.5),
    within("Na/Si", 0, 0.5),
)

PANTA_CHECKLIST: tuple[Rule, ...] = (
    rule(
        "Hem",
        within("Fe/sum", 0.5, 0.98999),
        within("Cr/(Cr+Fe)", 0, 0.1),
        within("Cl/(Cl+Fe)", 0, 0.1),
        within("(F+Si)/(F+sum)", 0, 0.499),
        within("Ti/Fe", 0, 0.24999),
    ),
    rule("Rt", within("Ti/sum", 0.7, 1.01), within("Ca/(Ca+Ti)", 0, 0.3)),
    rule("Ilm", within("(Fe+Ti)/sum", 0.7, 1.01), within("Ti/Fe", 0.25, 4)),
    rule(
        "Qz",
        within("Si/sum", 0.7, 1.01),
        within("(Na+Mg+K+Ca+Al)/Si", 0, 0.2),
        within("F/(F+Si)", 0, 0.499),
    ),
    rule(
        "Complex Qz",
        within(_SILICATE_TOTAL, 0.7, 1.01),
        within("Al/Si", 0.05, 0.25),
        within("(Na+K+Ca)/Si", 0, 1),
        _EACH_CATION_PER_SI,
        within(_SALT_SILICATE, 0, 0.25),
    ),
    rule(
        "Mc",
        within("(K+Al+Si)/sum", 0.7, 1.01),
        within("Al/Si", 0.2, 0.45),
        within("K/Si", 0.15, 0.5),
        within("Ca/Si", 0, 0.1),
        within("Na/Si", 0, 0.1),
        within(_SALT_NA, 0, 0.3),
        within(_SALT_FRAMEWORK, 0, 0.125),
    ),
    rule(
        "Ab",
        within("(Na+Al+Si)/sum", 0.7, 1.01),
        within("Al/Si", 0.2, 0.45),
        within("Na/Si", 0.15, 0.5),
        within("Ca/Si", 0, 0.1),
        within("K/Si", 0, 0.1),
        within(_SALT_NA, 0, 0.3),
        within(_SALT_FRAMEWORK, 0, 0.125),
    ),
    rule(
        "Complex Fsp",
        within(_SILICATE_TOTAL, 0.7, 1.01),
        within("Al/Si", 0.25, 0.5),
        within("(Na+K+Ca)/Si", 0.125, 0.7),
        _EACH_CATION_PER_SI,
        within(_SALT_SILICATE, 0, 0.25),
    ),
    rule(
        "Complex Fsp/clay mix",
        within(_SILICATE_TOTAL, 0.7, 1.01),
        within("Al/Si", 0.25, 0.5),
        within("(Na+K+Ca)/Si", 0, 0.125),
        _EACH_CATION_PER_SI,
        within(_SALT_SILICATE, 0, 0.25),
    ),
    rule(
        "Mica",
        within("(Ca+Na+K+Fe+Mg+Al+Si)/sum", 0.7, 1.01),
        within("Al/Si", 0.2, 3),
        within("(Na+K+Ca+Mg+Fe)/Si", 0.5, 2.5),
        within(_SALT_NA, 0, 0.3),
        within(_SALT_FRAMEWORK, 0, 0.125),
    ),
    rule(
        "Complex clay",
        within(_SILICATE_TOTAL, 0.7, 1.01),
        within("Al/Si", 0.5, 1.5),
        within("(Mg+Fe+K)/Si", 0.1, 1.0),
        _EACH_CATION_PER_SI,
        within(_SALT_SILICATE, 0, 0.25),
    ),
    rule(
        "Ilt",
        interval("(K+Al+Si)/sum", 0.7, 1.01, closed="neither"),
        interval("Al/Si", 0.45, 1.5, closed="neither"),
        interval("Mg/(Al+Si)", 0, 0.2, closed="neither"),
        interval("Fe/(Al+Si)", 0, 0.2, closed="neither"),
        interval("(Na+Ca)/(Al+Si)", 0, 0.2, closed="neither"),
        interval("K/Si", 0.1, 1.01, closed="neither"),
        interval(_SALT_SILICATE, 0, 0.25, closed="neither"),
    ),
    rule(
        "Chl",
        within("(Mg+Fe+Al+Si)/sum", 0.7, 1.01),
        within("Al/Si", 0.5, 1.5),
        within("Fe/(Al+Si)", 0.2, 1.01),
        within("Ca/(Al+Si)", 0, 0.3),
        within(_SALT_SILICATE, 0, 0.25),
    ),
    rule(
        "Sme",
        within("(Mg+Al+Si)/sum", 0.7, 1.01),
        within("Al/Si", 0.5, 1.5),
        within("Fe/(Al+Si)", 0, 0.2),
        within("Mg/(Al+Si)", 0.2, 1.01),
        within("Ca/(Al+Si)", 0, 0.2),
        within("Na/(Al+Si)", 0, 0.2),
        within("K/Si", 0, 0.1),
        within(_SALT_SILICATE, 0, 0.25),
    ),
    rule(
        "Kln",
        within("(Al+Si)/sum", 0.7, 1.01),
        within("Al/Si", 0.5, 1.5),
        within("Fe/(Al+Si)", 0, 0.2),
        within("Mg/(Al+Si)", 0, 0.2),
        within("Ca/(Al+Si)", 0, 0.2),
        within("Na/(Al+Si)", 0, 0.15),
        within("K/Si", 0, 0.1),
        within(_SALT_SILICATE, 0, 0.25),
    ),
    rule(
        "Ca-rich silicate/Ca-Si-mix",
        within("(Ca+Al+Si)/sum", 0.7, 1.01),
        within("Ca/(Al+Si)", 0.3, 3.333),
        within(_SALT_SILICATE, 0, 0.25),
    ),
    rule(
        "Cal",
        within("Ca/sum", 0.7, 1.01),
        within("(Al+Si)/Ca", 0, 0.3),
        within("Mg/Ca", 0, 0.3),
        within("S/Ca", 0, 0.3),
        within("Cl/Ca", 0, 0.3),
        within("P/(Ca+P)", 0, 0.19),
        within("S/(Ca+S)", 0, 0.19),
    ),
    rule(
        "Dol",
        within("(Mg+Ca)/sum", 0.7, 1.01),
        within("Mg/Ca", 0.3, 3.0),
        within("S/Ca", 0, 0.3),
        within("Cl/Ca", 0, 0.3),
        within("(Al+Si)/Ca", 0, 0.3),
    ),
    rule(
        "Ap",
        within("(Ca+P)/sum", 0.7, 1.01),
        within("Mg/Ca", 0, 0.3),
        within("P/(Ca+P)", 0.2, 0.8),
        within("Cl/Ca", 0, 0.3),
        within("(Al+Si)/(P+Ca)", 0, 0.25),
    ),
    rule(
        "Gp",
        within("(Ca+S)/sum", 0.7, 1.01),
        within("Ca/(Ca+S)", 0.2, 0.8),
        within("Mg/Ca", 0, 0.3),
        within("Cl/Ca", 0, 0.3),
    ),
    rule(
        "Alu",
        within("(Al+K+S)/sum", 0.7, 1.01),
        within("Ca/(Ca+Al+K+S)", 0, 0.05),
        within("Si/(Si+Al+K+S)", 0, 0.1),
        within("K/(Al+K+S)", 0.05, 3.0),
        within("S/(Al+K+S)", 0.15, 0.5),
        within("Al/(Al+K+S)", 0.3, 0.8),
    ),
    rule(
        "Hl",
        within("(Na+Mg+Cl)/sum", 0.7, 1.01),
        within("Cl/(Na+0.5Mg)", 0.5, 2.0),
        within("Cl/(Cl+S)", 0.7, 1.01),
        within("S/(Na+0.5Mg)", 0, 0.2),
        within("K/Na", 0, 0.5),
        within("Ca/Na", 0, 0.5),
        within("Mg/Na", 0, 0.5),
        within("(Al+Si)/(Na+Cl+S)", 0, 0.25),
    ),
    rule(
        "Complex sulfate",
        within("(Na+Mg+K+Ca+S+Cl)/sum", 0.7, 1.01),
        within("(Al+Si)/S", 0, 0.25),
        within("Cl/(Cl+S)", 0, 0.3),
    ),
)

PANTA_RATIOS = checklist_ratios(PANTA_CHECKLIST)


def panta_ratios(data: Any) -> pd.DataFrame:
    frame = normalize_columns(data, PANTA_ELEMENTS)
    return compute_ratios(frame, PANTA_RATIOS, PANTA_TOTAL_ELEMENTS)


def panta_classification(data: Any, label_style: str = "abbreviation") -> pd.Series:
    """Classify atom-percent rows with the element-index criteria of Panta et al. (2023).

    Every rule is checked in order and a later match overwrites an earlier one.
    """
    ratios = panta_ratios(data)
    labels = apply_checklist(ratios, PANTA_CHECKLIST, PANTA_VOCABULARY.unknown)
    logger.info("Panta classified %d row(s)", len(labels))
    return PANTA_VOCABULARY.render(labels, label_style)
