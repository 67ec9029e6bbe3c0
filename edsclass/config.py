from __future__ import annotations

from dataclasses import dataclass, fields
import os
from typing import Any, Mapping

from edsclass.errors import ConfigError

MODEL_PATH_ENV = "EDSCLASS_WEBER_MODEL"

ALGORITHMS = ("weber", "donarummo", "kandler", "panta")


def default_model_path() -> str:
    return os.environ.get(MODEL_PATH_ENV, "")


@dataclass
class ClassificationConfig:
    algorithm: str = "weber"
    label_style: str = "abbreviation"
    donarummo_method: str = "tree"
    weber_model_path: str = ""
    background_degree: int = 10
    background_min_separation: float = 0.13
    background_smoothing: float = 15.0
    max_energy_kev: float = 10.0

    def __post_init__(self) -> None:
        if not self.weber_model_path:
            self.weber_model_path = default_model_path()

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "ClassificationConfig":
        known = {item.name for item in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")
        config = cls(**dict(values))
        config.validate()
        return config

    def classification_options(self) -> dict[str, Any]:
        algorithm = self.algorithm.lower()
        if algorithm == "donarummo":
            return {"method": self.donarummo_method, "label_style": self.label_style}
        if algorithm == "panta":
            return {"label_style": self.label_style}
        return {}

    def validate(self) -> None:
        if self.algorithm.lower() not in ALGORITHMS:
            raise ConfigError(f"algorithm must be one of: {', '.join(ALGORITHMS)}.")
        if self.label_style not in {"abbreviation", "name"}:
            raise ConfigError("label_style must be 'abbreviation' or 'name'.")
        if self.donarummo_method not in {"tree", "checklist"}:
            raise ConfigError("donarummo_method must be 'tree' or 'checklist'.")
        if self.background_degree == 0:
            raise ConfigError("background_degree must be non-zero.")
        if self.background_min_separation <= 0:
            raise ConfigError("background_min_separation must be positive.")
        if self.background_smoothing <= 1:
            raise ConfigError("background_smoothing must be greater than 1.")
        if self.max_energy_kev <= 0:
            raise ConfigError("max_energy_kev must be positive.")
