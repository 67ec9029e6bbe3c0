from __future__ import annotations

import pytest

from edsclass.config import MODEL_PATH_ENV, ClassificationConfig
from edsclass.errors import ConfigError


def test_defaults_are_valid(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(MODEL_PATH_ENV, raising=False)
    config = ClassificationConfig()
    config.validate()
    assert config.algorithm == "weber"
    assert config.weber_model_path == ""
    assert config.classification_options() == {}


def test_model_path_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(MODEL_PATH_ENV, "/models/weber.joblib")
    assert ClassificationConfig().weber_model_path == "/models/weber.joblib"
    assert ClassificationConfig(weber_model_path="local.joblib").weber_model_path == "local.joblib"


def test_from_mapping_builds_options() -> None:
    config = ClassificationConfig.from_mapping(
        {"algorithm": "Donarummo", "donarummo_method": "checklist", "label_style": "name"}
    )
    assert config.classification_options() == {"method": "checklist", "label_style": "name"}
    panta = ClassificationConfig.from_mapping({"algorithm": "panta"})
    assert panta.classification_options() == {"label_style": "abbreviation"}


def test_from_mapping_rejects_unknown_keys() -> None:
    with pytest.raises(ConfigError, match="polynomial"):
        ClassificationConfig.from_mapping({"polynomial": 3})


@pytest.mark.parametrize(
    "values",
    [
        {"algorithm": "neural"},
        {"label_style": "long"},
        {"donarummo_method": "forest"},
        {"background_degree": 0},
        {"background_min_separation": 0.0},
        {"background_smoothing": 1.0},
        {"max_energy_kev": -1.0},
    ],
)
def test_invalid_values_raise(values: dict[str, object]) -> None:
    with pytest.raises(ConfigError):
        ClassificationConfig.from_mapping(values)
