from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Callable, Iterable, Sequence, Union

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

LABEL_STYLES = ("abbreviation", "name")

_COMPARATORS: dict[str, Callable[[np.ndarray, float], np.ndarray]] = {
    "<": np.less,
    "<=": np.less_equal,
    ">": np.greater,
    ">=": np.greater_equal,
}

_CLOSED = {
    "both": (">=", "<="),
    "left": (">=", "<"),
    "right": (">", "<="),
    "neither": (">", "<"),
}


@dataclass(frozen=True)
class Bound:
    ratio: str
    op: str
    value: float

    def __post_init__(self) -> None:
        if self.op not in _COMPARATORS:
            raise ValueError(f"Unsupported comparison operator: {self.op!r}")

    def mask(self, ratios: pd.DataFrame) -> np.ndarray:
        values = ratios[self.ratio].to_numpy(dtype=float)
        with np.errstate(invalid="ignore"):
            return _COMPARATORS[self.op](values, self.value)

    def __str__(self) -> str:
        return f"{self.ratio} {self.op} {self.value:g}"


def lt(ratio: str, value: float) -> Bound:
    return Bound(ratio, "<", value)


def le(ratio: str, value: float) -> Bound:
    return Bound(ratio, "<=", value)


def gt(ratio: str, value: float) -> Bound:
    return Bound(ratio, ">", value)


def ge(ratio: str, value: float) -> Bound:
    return Bound(ratio, ">=", value)


def interval(ratio: str, low: float, high: float, closed: str = "both") -> tuple[Bound, Bound]:
    if closed not in _CLOSED:
        raise ValueError(f"closed must be one of {', '.join(_CLOSED)}")
    low_op, high_op = _CLOSED[closed]
    return Bound(ratio, low_op, low), Bound(ratio, high_op, high)


def within(ratio: str, low: float, high: float) -> tuple[Bound, Bound]:
    return interval(ratio, low, high, closed="both")


BoundLike = Union[Bound, Sequence[Bound]]


def _flatten(parts: Iterable[BoundLike]) -> tuple[Bound, ...]:
    bounds: list[Bound] = []
    for part in parts:
        if isinstance(part, Bound):
            bounds.append(part)
        else:
            bounds.extend(_flatten(part))
    return tuple(bounds)


def _conjunction(bounds: Sequence[Bound], ratios: pd.DataFrame) -> np.ndarray:
    mask = np.ones(len(ratios), dtype=bool)
    for bound in bounds:
        mask &= bound.mask(ratios)
    return mask


@dataclass(frozen=True)
class Rule:
    label: str
    bounds: tuple[Bound, ...]

    @property
    def ratios(self) -> tuple[str, ...]:
        return tuple(dict.fromkeys(bound.ratio for bound in self.bounds))

    def mask(self, ratios: pd.DataFrame) -> np.ndarray:
        return _conjunction(self.bounds, ratios)


def rule(label: str, *parts: BoundLike) -> Rule:
    return Rule(label, _flatten(parts))


def apply_checklist(
    ratios: pd.DataFrame,
    rules: Sequence[Rule],
    default: str,
    name: str = "mineral",
) -> pd.Series:
    """Evaluate every rule on every row; later matches overwrite earlier ones."""
    labels = np.full(len(ratios), default, dtype=object)
    hits = np.zeros(len(ratios), dtype=int)
    for item in rules:
        mask = item.mask(ratios)
        labels[mask] = item.label
        hits += mask
    overlapping = int((hits > 1).sum())
    if overlapping:
        logger.debug("%d row(s) matched more than one rule; the last match was kept", overlapping)
    return pd.Series(labels, index=ratios.index, name=name, dtype=object)


def rule_matches(ratios: pd.DataFrame, rules: Sequence[Rule]) -> pd.DataFrame:
    if not rules:
        return pd.DataFrame(index=ratios.index)
    masks = np.column_stack([item.mask(ratios) for item in rules])
    return pd.DataFrame(masks, index=ratios.index, columns=[item.label for item in rules])


def matched_labels(ratios: pd.DataFrame, rules: Sequence[Rule], separator: str = ", ") -> pd.Series:
    """Join, per row, the labels of every rule that holds, in checklist order."""
    matches = rule_matches(ratios, rules).to_numpy(dtype=bool)
    names = np.array([item.label for item in rules], dtype=object)
    joined = [separator.join(names[row]) for row in matches]
    return pd.Series(joined, index=ratios.index, name="matched rules", dtype=object)


@dataclass(frozen=True)
class Node:
    name: str
    branches: tuple[tuple[tuple[Bound, ...], "Node | str"], ...]
    otherwise: "Node | str"


def node(name: str, *branches: tuple[BoundLike, "Node | str"], otherwise: "Node | str") -> Node:
    return Node(name, tuple((_flatten([bounds]), target) for bounds, target in branches), otherwise)


def _send(target: Node | str, ratios: pd.DataFrame, rows: np.ndarray, labels: np.ndarray) -> None:
    if not rows.any():
        return
    if isinstance(target, Node):
        _descend(target, ratios, rows, labels)
    else:
        labels[rows] = target


def _descend(current: Node, ratios: pd.DataFrame, rows: np.ndarray, labels: np.ndarray) -> None:
    remaining = rows.copy()
    for bounds, target in current.branches:
        taken = remaining & _conjunction(bounds, ratios)
        _send(target, ratios, taken, labels)
        remaining &= ~taken
    _send(current.otherwise, ratios, remaining, labels)


def evaluate_tree(ratios: pd.DataFrame, root: Node, name: str = "mineral") -> pd.Series:
    """Walk a nested tree; the first true branch wins and ``otherwise`` takes the rest, NaN included."""
    labels = np.full(len(ratios), None, dtype=object)
    _send(root, ratios, np.ones(len(ratios), dtype=bool), labels)
    return pd.Series(labels, index=ratios.index, name=name, dtype=object)


def tree_labels(root: Node) -> list[str]:
    found: list[str] = []
    pending: list[Node | str] = [root]
    while pending:
        current = pending.pop(0)
        if isinstance(current, Node):
            pending.extend(target for _, target in current.branches)
            pending.append(current.otherwise)
        elif current not in found:
            found.append(current)
    return found


def assign_groups(
    labels: pd.Series,
    groups: Sequence[tuple[str, Iterable[str]]],
    name: str = "group",
) -> pd.Series:
    grouped = labels.astype(object).copy()
    for group, members in groups:
        grouped[labels.isin(list(members))] = group
    return grouped.rename(name)


@dataclass(frozen=True)
class Vocabulary:
    unknown: str
    names: dict[str, str] = field(default_factory=dict)

    @property
    def codes(self) -> list[str]:
        return list(self.names)

    def labels(self, label_style: str = "abbreviation") -> list[str]:
        check_label_style(label_style)
        values = list(self.names) if label_style == "abbreviation" else list(self.names.values())
        return values + [self.unknown]

    def render(self, labels: pd.Series, label_style: str = "abbreviation") -> pd.Series:
        check_label_style(label_style)
        if label_style == "abbreviation":
            return labels
        return labels.map(lambda code: self.names.get(code, code)).astype(object)


def check_label_style(label_style: str) -> None:
    if label_style not in LABEL_STYLES:
        raise ValueError(f"label_style must be one of {', '.join(LABEL_STYLES)}, got {label_style!r}")


def checklist_ratios(rules: Sequence[Rule]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(name for item in rules for name in item.ratios))
