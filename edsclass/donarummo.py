from __future__ import annotations

import logging
from typing import Any

import pandas as pd

from edsclass.elements import DONARUMMO_ELEMENTS, normalize_columns
from edsclass.ratios import compute_ratios
from edsclass.rules import (
    Rule,
    Vocabulary,
    apply_checklist,
    evaluate_tree,
    ge,
    gt,
    interval,
    le,
    lt,
    node,
    rule,
)

logger = logging.getLogger(__name__)

METHODS = ("tree", "checklist")

AL_SI = "Al/Si"
FE_SI = "Fe/Si"
K_AL = "K/Al"
MGFE_SI = "(Mg+Fe)/Si"
K_SI = "K/Si"
CA_SI = "Ca/Si"
K_ALKALI = "K/(K+Na+Ca)"
MGFE_AL = "(Mg+Fe)/Al"
CANA_AL = "(Ca+Na)/Al"
CA_NA = "Ca/Na"
K_ALSI = "K/(Al+Si)"

DONARUMMO_RATIOS = (
    AL_SI,
    FE_SI,
    K_AL,
    MGFE_SI,
    K_SI,
    CA_SI,
    K_ALKALI,
    MGFE_AL,
    CANA_AL,
    CA_NA,
    K_ALSI,
)

DONARUMMO_VOCABULARY = Vocabulary(
    unknown="Unknown",
    names={
        "Htr": "Hectorite",
        "Aug": "Augite",
        "U-A": "U-A",
        "Hbl": "Hornblende",
        "Ab": "Albite",
        "Olig/Ans": "Olig/Andesine",
        "Lab/Byt": "Lab/Bytownite",
        "U-B3": "U-B3",
        "U-B2": "U-B2",
        "Mnt": "Ca-Montmorillonite",
        "U-B1": "U-B1",
        "U-C1": "U-C1",
        "U-D2": "U-D2",
        "Afs": "Orthoclase",
        "U-D1": "U-D1",
        "U-D0": "U-D0",
        "U-D4": "U-D4",
        "Ilt/Sme": "I/S Mixed (70/30)",
        "Ilt": "Illite",
        "U-D3": "U-D3",
        "U-C2": "U-C2",
        "U-D5": "U-D5",
        "Bt": "Biotite",
        "Vrm": "K-Vermiculite",
        "Chl": "Chlorite",
        "U-E": "U-E",
        "Ms": "Muscovite",
        "Kln": "Kaolinite",
        "U-F": "U-F",
        "An": "Anorthite",
    },
)

_NODE_4C = node("4C", (lt(CA_SI, 0.05), "Kln"), (ge(CA_SI, 0.25), "An"), otherwise="U-F")
_NODE_3C = node("3C", (ge(K_SI, 0.1), "Ms"), otherwise=_NODE_4C)
_NODE_2C = node("2C", (ge(MGFE_SI, 0.9), "Chl"), (lt(MGFE_SI, 0.3), _NODE_3C), otherwise="U-E")

_NODE_3A = node("3A", (lt(K_AL, 0.3), "Aug"), (gt(K_AL, 0.49), "Hbl"), otherwise="U-A")
_NODE_2A = node("2A", (ge(FE_SI, 0.02), _NODE_3A), otherwise="Htr")

_NODE_5B1A1 = node(
    "5B1a1",
    (lt(CA_NA, 0.2), "Ab"),
    (ge(CA_NA, 10.0), "U-B3"),
    (interval(CA_NA, 0.2, 1.0, closed="left"), "Olig/Ans"),
    otherwise="Lab/Byt",
)
_NODE_4B1A = node("4B1a", (ge(CANA_AL, 0.23), _NODE_5B1A1), otherwise="U-B2")
_NODE_3B1 = node(
    "3B1",
    (lt(MGFE_AL, 0.3), _NODE_4B1A),
    (ge(MGFE_AL, 1.0), "U-C1"),
    (interval(MGFE_AL, 0.5, 1.0, closed="neither"), "U-B1"),
    otherwise="Mnt",
)

_NODE_5B2A1 = node(
    "5B2a1",
    (lt(AL_SI, 0.25), "U-D2"),
    (interval(AL_SI, 0.25, 0.35), "Afs"),
    (interval(AL_SI, 0.35, 0.7, closed="neither"), "U-D1"),
    otherwise="U-D5",
)
_NODE_5B2A2 = node(
    "5B2a2",
    (le(K_ALSI, 0.05), "U-D4"),
    (gt(K_ALSI, 0.25), "U-D3"),
    (interval(K_ALSI, 0.05, 0.1, closed="right"), "Ilt/Sme"),
    otherwise="Ilt",
)
_NODE_4B2A = node("4B2a", (ge(K_AL, 0.7), _NODE_5B2A1), otherwise=_NODE_5B2A2)
_NODE_4B2B = node(
    "4B2b",
    (le(K_AL, 0.1), "U-C2"),
    (gt(K_AL, 2.0), "Vrm"),
    (interval(K_AL, 0.1, 1.0, closed="neither"), "U-D5"),
    otherwise="Bt",
)
_NODE_3B2 = node("3B2", (lt(MGFE_AL, 0.55), _NODE_4B2A), otherwise=_NODE_4B2B)
_NODE_2B = node("2B", (lt(K_ALKALI, 0.35), _NODE_3B1), otherwise=_NODE_3B2)

DONARUMMO_TREE = node("1", (lt(AL_SI, 0.1), _NODE_2A), (ge(AL_SI, 0.7), _NODE_2C), otherwise=_NODE_2B)

_PATH_A = (lt(AL_SI, 0.1),)
_PATH_B = (interval(AL_SI, 0.1, 0.7, closed="left"), lt(K_ALKALI, 0.35))
_PATH_D = (interval(AL_SI, 0.1, 0.7, closed="left"), ge(K_ALKALI, 0.35), lt(MGFE_AL, 0.55))
_PATH_C = (ge(AL_SI, 0.7),)
_FELDSPAR = (*_PATH_B, lt(MGFE_AL, 0.3), ge(CANA_AL, 0.23))
_U_D1 = (*_PATH_D, ge(K_AL, 0.7), interval(AL_SI, 0.35, 0.7, closed="neither"))
_LOW_MAFIC = (*_PATH_C, lt(MGFE_SI, 0.3))

# The U-D2 entry reuses the U-D1 predicate, so U-D1 always overwrites it, and
# U-D0 contradicts its own Al/Si path. Both are kept as published in the
# flattened variant.
DONARUMMO_CHECKLIST: tuple[Rule, ...] = (
    rule("Htr", *_PATH_A, lt(FE_SI, 0.02)),
    rule("Aug", *_PATH_A, ge(FE_SI, 0.02), lt(K_AL, 0.3)),
    rule("U-A", *_PATH_A, ge(FE_SI, 0.02), interval(K_AL, 0.3, 0.49)),
    rule("Hbl", *_PATH_A, ge(FE_SI, 0.02), gt(K_AL, 0.49)),
    rule("Ab", *_FELDSPAR, lt(CA_NA, 0.2)),
    rule("Olig/Ans", *_FELDSPAR, interval(CA_NA, 0.2, 1.0, closed="left")),
    rule("Lab/Byt", *_FELDSPAR, interval(CA_NA, 1.0, 10.0, closed="left")),
    rule("U-B3", *_FELDSPAR, gt(CA_NA, 10.0)),
    rule("U-B2", *_PATH_B, lt(MGFE_AL, 0.3), lt(CANA_AL, 0.23)),
    rule("Mnt", *_PATH_B, interval(MGFE_AL, 0.3, 0.5)),
    rule("U-B1", *_PATH_B, interval(MGFE_AL, 0.5, 1.0, closed="neither")),
    rule("U-C1", *_PATH_B, ge(MGFE_AL, 1.0)),
    rule("U-D2", *_U_D1),
    rule("Afs", *_PATH_D, ge(K_AL, 0.7), interval(AL_SI, 0.25, 0.35, closed="left")),
    rule("U-D1", *_U_D1),
    rule("U-D0", *_PATH_D, ge(K_AL, 0.7), ge(AL_SI, 0.7)),
    rule("U-D4", *_PATH_D, lt(K_AL, 0.7), le(K_ALSI, 0.05)),
    rule("Ilt/Sme", *_PATH_D, lt(K_AL, 0.7), interval(K_ALSI, 0.05, 0.1, closed="right")),
    rule("Ilt", *_PATH_D, lt(K_AL, 0.7), interval(K_ALSI, 0.1, 0.25, closed="right")),
    rule("U-D3", *_PATH_D, lt(K_AL, 0.7), gt(K_ALSI, 0.25)),
    rule("U-C2", *_PATH_D, le(K_AL, 0.1)),
    rule("U-D5", *_PATH_D, interval(K_AL, 0.1, 1.0, closed="neither")),
    rule("Bt", *_PATH_D, interval(K_AL, 1.0, 2.0)),
    rule("Vrm", *_PATH_D, gt(K_AL, 2.0)),
    rule("Chl", *_PATH_C, ge(MGFE_SI, 0.9)),
    rule("U-E", *_PATH_C, interval(MGFE_SI, 0.3, 0.9, closed="left")),
    rule("Ms", *_LOW_MAFIC, ge(K_SI, 0.1)),
    rule("Kln", *_LOW_MAFIC, lt(K_SI, 0.1), lt(CA_SI, 0.05)),
    rule("U-F", *_LOW_MAFIC, lt(K_SI, 0.1), interval(CA_SI, 0.05, 0.25, closed="left")),
    rule("An", *_LOW_MAFIC, lt(K_SI, 0.1), ge(CA_SI, 0.25)),
)


def donarummo_ratios(data: Any) -> pd.DataFrame:
    frame = normalize_columns(data, DONARUMMO_ELEMENTS)
    return compute_ratios(frame, DONARUMMO_RATIOS)


def donarummo_classification(
    data: Any,
    method: str = "tree",
    label_style: str = "abbreviation",
) -> pd.Series:
    """Classify net-intensity rows with the Donarummo et al. (2003) scheme.

    ``method="tree"`` walks the nested decision tree (first true branch wins);
    ``method="checklist"`` folds the flattened rule list, where the last
    matching rule wins and unmatched rows stay ``Unknown``.
    """
    if method not in METHODS:
        raise ValueError(f"method must be one of {', '.join(METHODS)}, got {method!r}")
    ratios = donarummo_ratios(data)
    if method == "tree":
        labels = evaluate_tree(ratios, DONARUMMO_TREE)
    else:
        labels = apply_checklist(ratios, DONARUMMO_CHECKLIST, DONARUMMO_VOCABULARY.unknown)
    logger.info("Donarummo %s classified %d row(s)", method, len(labels))
    return DONARUMMO_VOCABULARY.render(labels, label_style)
