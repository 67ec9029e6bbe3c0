from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
import logging
import re
from typing import Sequence

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

TOTAL = "sum"

_TERM = re.compile(r"^(\d+(?:\.\d+)?|\.\d+)?([A-Z][a-z]?|sum)$")

Term = tuple[float, str]


@dataclass(frozen=True)
class RatioSpec:
    name: str
    numerator: tuple[Term, ...]
    denominator: tuple[Term, ...]

    @property
    def elements(self) -> tuple[str, ...]:
        symbols = [symbol for _, symbol in self.numerator + self.denominator if symbol != TOTAL]
        return tuple(dict.fromkeys(symbols))

    @property
    def uses_total(self) -> bool:
        return any(symbol == TOTAL for _, symbol in self.numerator + self.denominator)


def _parse_terms(text: str, expression: str) -> tuple[Term, ...]:
    text = text.strip()
    if text.startswith("(") and text.endswith(")"):
        text = text[1:-1]
    terms: list[Term] = []
    for token in text.split("+"):
        match = _TERM.match(token.strip())
        if match is None:
            raise ValueError(f"Cannot parse term {token!r} in ratio {expression!r}.")
        coefficient, symbol = match.groups()
        terms.append((float(coefficient) if coefficient else 1.0, symbol))
    return tuple(terms)


def _split_quotient(expression: str) -> tuple[str, str]:
    depth = 0
    for position, char in enumerate(expression):
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        elif char == "/" and depth == 0:
            return expression[:position], expression[position + 1 :]
    raise ValueError(f"Ratio {expression!r} has no top-level '/'.")


@lru_cache(maxsize=None)
def parse_ratio(expression: str) -> RatioSpec:
    """Parse a ratio name such as ``(Cl+2S)/(Al+Si)`` or ``|Fe|``.

    ``|X|`` is shorthand for ``X/sum`` where ``sum`` is the scheme total.
    """
    text = expression.replace(" ", "")
    if text.startswith("|") and text.endswith("|"):
        return RatioSpec(expression, _parse_terms(text[1:-1], expression), ((1.0, TOTAL),))
    numerator, denominator = _split_quotient(text)
    return RatioSpec(expression, _parse_terms(numerator, expression), _parse_terms(denominator, expression))


def element_total(frame: pd.DataFrame, elements: Sequence[str]) -> np.ndarray:
    total = np.zeros(len(frame), dtype=float)
    for symbol in elements:
        total = total + frame[symbol].to_numpy(dtype=float)
    return total


def _evaluate_terms(frame: pd.DataFrame, terms: tuple[Term, ...], total: np.ndarray | None) -> np.ndarray:
    result: np.ndarray | None = None
    for coefficient, symbol in terms:
        if symbol == TOTAL:
            values = total
        else:
            values = frame[symbol].to_numpy(dtype=float)
        if coefficient != 1.0:
            values = coefficient * values
        result = values if result is None else result + values
    return result


def compute_ratios(
    frame: pd.DataFrame,
    expressions: Sequence[str],
    total_elements: Sequence[str] = (),
) -> pd.DataFrame:
    specs = [parse_ratio(expression) for expression in expressions]
    total: np.ndarray | None = None
    if any(spec.uses_total for spec in specs):
        if not total_elements:
            raise ValueError("A ratio uses the element total but no total elements were given.")
        total = element_total(frame, total_elements)

    columns: dict[str, np.ndarray] = {}
    with np.errstate(divide="ignore", invalid="ignore"):
        for spec in specs:
            numerator = _evaluate_terms(frame, spec.numerator, total)
            denominator = _evaluate_terms(frame, spec.denominator, total)
            columns[spec.name] = numerator / denominator

    ratios = pd.DataFrame(columns, index=frame.index, columns=[spec.name for spec in specs])
    if len(ratios) and len(specs):
        degenerate = int((~np.isfinite(ratios.to_numpy(dtype=float))).any(axis=1).sum())
        if degenerate:
            logger.debug("%d of %d row(s) have undefined or infinite ratios", degenerate, len(ratios))
    return ratios
