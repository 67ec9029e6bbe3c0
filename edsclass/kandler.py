"""Kandler-style particle classes with groups and visible refractive indices.

The class table (thresholds and refractive indices) is a reconstruction from
the published class names, not values taken from Kandler et al.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any

import pandas as pd

from edsclass.elements import KANDLER_ELEMENTS, normalize_columns
from edsclass.ratios import compute_ratios
from edsclass.rules import Rule, apply_checklist, assign_groups, checklist_ratios, ge, interval, lt, rule, within

logger = logging.getLogger(__name__)

UNKNOWN = "Unknown"
UNKNOWN_REFRACTIVE_INDEX = "n/a"
OUTPUT_COLUMNS = ["class", "group", "refractive_index"]


@dataclass(frozen=True)
class KandlerClass:
    code: str
    group: str
    refractive_index: str
    description: str


KANDLER_CLASSES: dict[str, KandlerClass] = {
    item.code: item
    for item in [
        KandlerClass("Silicate mix", "Silicates", "1.57+0.002i", "Silicate, not otherwise specified"),
        KandlerClass("SiMg", "Silicates", "1.57+0i", "Mg silicate (talc/serpentine-like)"),
        KandlerClass("SiMgFe", "Silicates", "1.66+0.001i", "Mg-Fe silicate (olivine/pyroxene-like)"),
        KandlerClass("SiCa", "Silicates", "1.63+0i", "Ca silicate (wollastonite-like)"),
        KandlerClass("SiCaMg", "Silicates", "1.65+0i", "Ca-Mg silicate (diopside-like)"),
        KandlerClass("SiAl", "Silicates", "1.56+0.001i", "Al silicate (kaolinite-like)"),
        KandlerClass("SiAlK", "Silicates", "1.57+0.001i", "K-Al silicate (K-feldspar/illite-like)"),
        KandlerClass("SiAlNa", "Silicates", "1.53+0i", "Na-Al silicate (albite-like)"),
        KandlerClass("SiAlCa", "Silicates", "1.58+0i", "Ca-Al silicate (anorthite-like)"),
        KandlerClass("SiAlNaCa", "Silicates", "1.55+0i", "Na-Ca plagioclase-like"),
        KandlerClass("SiAlNaK", "Silicates", "1.54+0i", "Alkali feldspar-like"),
        KandlerClass("SiAlMg", "Silicates", "1.55+0.001i", "Mg-Al silicate (smectite-like)"),
        KandlerClass("SiAlFe", "Silicates", "1.60+0.005i", "Fe-Al silicate"),
        KandlerClass("SiAlMgFe", "Silicates", "1.59+0.003i", "Mg-Fe-Al silicate (chlorite-like)"),
        KandlerClass("SiAlKMgFe", "Silicates", "1.60+0.003i", "K-Mg-Fe-Al silicate (biotite-like)"),
        KandlerClass("Qz", "Quartz", "1.55+0i", "Quartz-like"),
        KandlerClass("Si-S", "Mixtures", "1.54+0.001i", "Silicate with sulfate"),
        KandlerClass("Si-Cl", "Mixtures", "1.55+0.001i", "Silicate with chloride"),
        KandlerClass("Ca-Si", "Mixtures", "1.58+0.001i", "Silicate with carbonate"),
        KandlerClass("Fe-Si", "Mixtures", "1.70+0.02i", "Silicate with iron oxide"),
        KandlerClass("Fe", "Oxides/hydroxides", "3.00+0.10i", "Hematite/goethite-like"),
        KandlerClass("FeTi", "Oxides/hydroxides", "2.40+0.10i", "Ilmenite-like"),
        KandlerClass("Ti", "Oxides/hydroxides", "2.70+0i", "Rutile/anatase-like"),
        KandlerClass("FeCr", "Oxides/hydroxides", "2.10+0.05i", "Chromite-like"),
        KandlerClass("Mn", "Oxides/hydroxides", "2.30+0.05i", "Mn oxide-like"),
        KandlerClass("Al", "Oxides/hydroxides", "1.65+0i", "Al oxide/hydroxide (gibbsite/corundum-like)"),
        KandlerClass("Ca", "Carbonates", "1.59+0i", "Calcite-like"),
        KandlerClass("CaMg", "Carbonates", "1.60+0i", "Dolomite-like"),
        KandlerClass("Mg", "Carbonates", "1.60+0i", "Mg carbonate (magnesite-like)"),
        KandlerClass("S", "Sulfates", "1.53+0i", "Ammonium sulfate-like"),
        KandlerClass("CaS", "Sulfates", "1.52+0i", "Gypsum-like"),
        KandlerClass("NaS", "Sulfates", "1.48+0i", "Na sulfate-like"),
        KandlerClass("KS", "Sulfates", "1.49+0i", "K sulfate-like"),
        KandlerClass("MgS", "Sulfates", "1.46+0i", "Mg sulfate-like"),
        KandlerClass("AlKS", "Sulfates", "1.57+0i", "Alunite-like"),
        KandlerClass("NaCl", "Chlorides", "1.54+0i", "Halite-like"),
        KandlerClass("NaClS", "Chlorides", "1.50+0i", "Aged sea salt (chloride with sulfate)"),
        KandlerClass("KCl", "Chlorides", "1.49+0i", "Sylvite-like"),
        KandlerClass("CaP", "Phosphates", "1.63+0i", "Apatite-like"),
        KandlerClass("P", "Phosphates", "1.55+0i", "Phosphate, not otherwise specified"),
        KandlerClass("Cr", "Other", "2.50+0.05i", "Cr-rich particle"),
    ]
}

GROUP_ORDER = list(dict.fromkeys(item.group for item in KANDLER_CLASSES.values()))

_FRAMEWORK = "|Si+Al|"
_SILICATE = (ge("|Si|", 0.3), lt("|Al|", 0.1))
_ALUMINOSILICATE = (ge(_FRAMEWORK, 0.6), within("Al/Si", 0.25, 1.5))

# General classes first; more specific classes later overwrite them.
KANDLER_CHECKLIST: tuple[Rule, ...] = (
    rule("Silicate mix", ge(_FRAMEWORK, 0.5)),
    rule("SiMg", *_SILICATE, ge("|Mg|", 0.2), lt("|Fe|", 0.1), lt("|Ca|", 0.1)),
    rule("SiMgFe", *_SILICATE, ge("|Mg|", 0.1), ge("|Fe|", 0.1), lt("|Ca|", 0.1)),
    rule("SiCa", *_SILICATE, ge("|Ca|", 0.2), lt("|Mg|", 0.1)),
    rule("SiCaMg", *_SILICATE, ge("|Ca|", 0.1), ge("|Mg|", 0.1)),
    rule("SiAl", ge(_FRAMEWORK, 0.8), within("Al/Si", 0.5, 1.5)),
    rule("SiAlK", *_ALUMINOSILICATE, ge("|K|", 0.05), lt("|Na|", 0.05), lt("|Ca|", 0.05)),
    rule("SiAlNa", *_ALUMINOSILICATE, within("Al/Si", 0.25, 0.6), ge("|Na|", 0.05), lt("|K|", 0.05), lt("|Ca|", 0.05)),
    rule("SiAlCa", *_ALUMINOSILICATE, within("Al/Si", 0.25, 1.2), ge("|Ca|", 0.05), lt("|Na|", 0.05), lt("|K|", 0.05)),
    rule("SiAlNaCa", *_ALUMINOSILICATE, within("Al/Si", 0.25, 1.2), ge("|Na|", 0.05), ge("|Ca|", 0.05), lt("|K|", 0.05)),
    rule("SiAlNaK", *_ALUMINOSILICATE, within("Al/Si", 0.25, 0.6), ge("|Na|", 0.05), ge("|K|", 0.05), lt("|Ca|", 0.05)),
    rule("SiAlMg", *_ALUMINOSILICATE, ge("|Mg|", 0.05), lt("|Fe|", 0.05)),
    rule("SiAlFe", *_ALUMINOSILICATE, ge("|Fe|", 0.05), lt("|Mg|", 0.05)),
    rule("SiAlMgFe", *_ALUMINOSILICATE, ge("|Mg|", 0.05), ge("|Fe|", 0.05), lt("|K|", 0.05)),
    rule("SiAlKMgFe", *_ALUMINOSILICATE, ge("|Mg|", 0.03), ge("|Fe|", 0.03), ge("|K|", 0.05)),
    rule("Qz", ge("|Si|", 0.8), lt("Al/Si", 0.1)),
    rule("Si-S", ge("|Si|", 0.3), ge("|S|", 0.1)),
    rule("Si-Cl", ge("|Si|", 0.3), ge("|Cl|", 0.1)),
    rule("Ca-Si", ge("|Ca+Si|", 0.7), within("Ca/Si", 1.0, 4.0), lt("|Al|", 0.05)),
    rule("Fe-Si", ge("|Fe|", 0.3), ge("|Si|", 0.2)),
    rule("Fe", ge("|Fe|", 0.7), lt("Ti/Fe", 0.25)),
    rule("FeTi", ge("|Fe+Ti|", 0.7), within("Ti/Fe", 0.25, 4.0)),
    rule("Ti", ge("|Ti|", 0.7)),
    rule("FeCr", ge("|Fe+Cr|", 0.7), interval("Cr/Fe", 0.1, 10.0)),
    rule("Mn", ge("|Mn|", 0.5)),
    rule("Al", ge("|Al|", 0.7), lt("Si/Al", 0.1)),
    rule("Ca", ge("|Ca|", 0.7), lt("S/Ca", 0.3), lt("P/Ca", 0.3), lt("Mg/Ca", 0.3)),
    rule("CaMg", ge("|Ca+Mg|", 0.7), within("Mg/Ca", 0.3, 3.0)),
    rule("Mg", ge("|Mg|", 0.7), lt("S/Mg", 0.3), lt("Cl/Mg", 0.3)),
    rule("S", ge("|S|", 0.5)),
    rule("CaS", ge("|Ca+S|", 0.7), within("S/Ca", 0.5, 2.0)),
    rule("NaS", ge("|Na+S|", 0.7), within("S/Na", 0.25, 1.5)),
    rule("KS", ge("|K+S|", 0.7), within("S/K", 0.25, 1.5)),
    rule("MgS", ge("|Mg+S|", 0.7), within("S/Mg", 0.5, 2.0)),
    rule("AlKS", ge("|Al+K+S|", 0.7), within("S/(Al+K+S)", 0.15, 0.5), within("K/(Al+K+S)", 0.05, 0.5)),
    rule("NaCl", ge("|Na+Cl|", 0.7), within("Cl/Na", 0.5, 2.0)),
    rule("NaClS", ge("|Na+Cl+S|", 0.7), within("Cl/(Cl+S)", 0.2, 0.8), ge("|Na|", 0.2)),
    rule("KCl", ge("|K+Cl|", 0.7), within("Cl/K", 0.5, 2.0)),
    rule("CaP", ge("|Ca+P|", 0.7), within("P/(Ca+P)", 0.2, 0.8)),
    rule("P", ge("|P|", 0.5)),
    rule("Cr", ge("|Cr|", 0.7)),
)

KANDLER_RATIOS = checklist_ratios(KANDLER_CHECKLIST)


def kandler_ratios(data: Any) -> pd.DataFrame:
    frame = normalize_columns(data, KANDLER_ELEMENTS)
    return compute_ratios(frame, KANDLER_RATIOS, KANDLER_ELEMENTS)


def kandler_classification(data: Any) -> pd.DataFrame:
    """Assign Kandler-style particle classes to atom-percent rows.

    Returns one row per input row with the class, its group and the complex
    refractive index at visible wavelengths. Thresholds and indices are
    reconstructed, so treat the indices as estimates rather than published values.
    """
    ratios = kandler_ratios(data)
    classes = apply_checklist(ratios, KANDLER_CHECKLIST, UNKNOWN, name="class")
    groups = assign_groups(
        classes,
        [(group, [code for code, item in KANDLER_CLASSES.items() if item.group == group]) for group in GROUP_ORDER],
    )
    refractive = classes.map(
        lambda code: KANDLER_CLASSES[code].refractive_index if code in KANDLER_CLASSES else UNKNOWN_REFRACTIVE_INDEX
    )
    logger.info("Kandler classified %d row(s)", len(classes))
    return pd.DataFrame(
        {"class": classes, "group": groups, "refractive_index": refractive},
        index=classes.index,
        columns=OUTPUT_COLUMNS,
    )
