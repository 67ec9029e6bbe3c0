import logging

from edsclass.core import (
    SCHEMES,
    compare_algorithms,
    eds_classification,
    resolve_scheme,
    summarize_classes,
)
from edsclass.donarummo import donarummo_classification
from edsclass.errors import ModelUnavailableError, SchemaError, UnsupportedSchemeError
from edsclass.kandler import kandler_classification
from edsclass.panta import panta_classification
from edsclass.weber import load_weber_model, net_intensity_ratios, weber_classification, weber_details

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "SCHEMES",
    "eds_classification",
    "resolve_scheme",
    "compare_algorithms",
    "summarize_classes",
    "donarummo_classification",
    "panta_classification",
    "kandler_classification",
    "weber_classification",
    "weber_details",
    "net_intensity_ratios",
    "load_weber_model",
    "SchemaError",
    "UnsupportedSchemeError",
    "ModelUnavailableError",
]
