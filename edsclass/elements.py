from __future__ import annotations

from collections.abc import Mapping, Sequence
import logging
from typing import Any

import pandas as pd

from edsclass.errors import SchemaError

logger = logging.getLogger(__name__)

AliasTable = tuple[tuple[tuple[str, ...], str], ...]

WEBER_ELEMENTS = ("Na", "Mg", "Al", "Si", "P", "K", "Ca", "Ti", "Fe")
DONARUMMO_ELEMENTS = ("Na", "Mg", "Al", "Si", "K", "Ca", "Fe")
KANDLER_ELEMENTS = ("Na", "Mg", "Al", "Si", "P", "S", "Cl", "K", "Ca", "Ti", "Cr", "Mn", "Fe")
PANTA_ELEMENTS = ("F",) + KANDLER_ELEMENTS

# Declaration order matters: a column is renamed by the first entry it contains.
ELEMENT_ALIASES: AliasTable = (
    (("aluminum", "aluminium"), "Al"),
    (("silicon",), "Si"),
    (("iron",), "Fe"),
    (("sodium",), "Na"),
    (("magnesium",), "Mg"),
    (("phosphorus",), "P"),
    (("sulfur",), "S"),
    (("chlorine",), "Cl"),
    (("potassium",), "K"),
    (("calcium",), "Ca"),
    (("titanium",), "Ti"),
    (("chromium",), "Cr"),
    (("manganese",), "Mn"),
    (("fluorine",), "F"),
)


def aliases_for(elements: Sequence[str]) -> AliasTable:
    return tuple((patterns, symbol) for patterns, symbol in ELEMENT_ALIASES if symbol in elements)


def match_element_column(name: str, aliases: AliasTable, elements: Sequence[str]) -> str | None:
    lowered = str(name).lower()
    for patterns, symbol in aliases:
        if any(pattern in lowered for pattern in patterns):
            return symbol
    token = lowered.strip()
    for symbol in elements:
        if token == symbol.lower():
            return symbol
    return None


def as_frame(data: Any) -> pd.DataFrame:
    if isinstance(data, pd.DataFrame):
        return data.copy()
    if isinstance(data, Mapping):
        if all(pd.api.types.is_list_like(value) for value in data.values()):
            return pd.DataFrame(dict(data))
        return pd.DataFrame([dict(data)])
    if isinstance(data, Sequence) and not isinstance(data, (str, bytes)):
        rows = list(data)
        if rows and all(isinstance(row, Mapping) for row in rows):
            return pd.DataFrame(rows)
    raise SchemaError(
        f"Input must be a table of element values, got {type(data).__name__}."
    )


def normalize_columns(
    data: Any,
    elements: Sequence[str],
    aliases: AliasTable | None = None,
) -> pd.DataFrame:
    frame = as_frame(data)
    table = aliases_for(elements) if aliases is None else aliases

    renamed: list[str] = []
    for column in frame.columns:
        symbol = match_element_column(str(column), table, elements)
        if symbol is not None and str(column) != symbol:
            logger.debug("Renaming column %r to %s", column, symbol)
        renamed.append(symbol if symbol is not None else column)
    frame.columns = renamed

    present = [column for column in frame.columns if column in elements]
    if len(present) != len(elements):
        missing = [symbol for symbol in elements if symbol not in present]
        duplicated = sorted({symbol for symbol in present if present.count(symbol) > 1})
        details = []
        if missing:
            details.append("missing " + ", ".join(missing))
        if duplicated:
            details.append("duplicated " + ", ".join(duplicated))
        raise SchemaError(
            f"Input must contain exactly one column for each of {', '.join(elements)} "
            f"({'; '.join(details)}). Only full element names and abbreviations are valid."
        )

    for symbol in elements:
        original = frame[symbol]
        coerced = pd.to_numeric(original, errors="coerce")
        lost = int((coerced.isna() & original.notna()).sum())
        if lost:
            logger.warning("Column %s: %d non-numeric value(s) treated as missing", symbol, lost)
        frame[symbol] = coerced.astype(float)
    return frame
