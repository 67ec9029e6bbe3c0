from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date, datetime
import logging
import math
from pathlib import Path

import numpy as np
from PIL import Image

logger = logging.getLogger(__name__)

# FEI/Thermo Fisher instruments store their settings as text in this TIFF tag.
FEI_METADATA_TAG = 34682
DEFAULT_SIGNAL = "BSE"


@dataclass(frozen=True)
class SemMetadata:
    date: date | None
    location: str
    acceleration_voltage: float
    spot_size: float
    horizontal_field_width: float
    working_distance: float
    beam_current: float
    pixel_width: float
    resolution_x: float
    resolution_y: float
    signal_type: str

    def as_dict(self) -> dict[str, object]:
        return asdict(self)


def _between(text: str, start: str, end: str) -> str | None:
    begin = text.find(start)
    if begin < 0:
        return None
    begin += len(start)
    finish = text.find(end, begin)
    if finish < 0:
        return None
    return text[begin:finish].replace("\n", "").replace("\r", "")


def _number_between(text: str, start: str, end: str) -> float:
    value = _between(text, start, end)
    if value is None:
        return math.nan
    try:
        return float(value.strip())
    except ValueError:
        return math.nan


def _date_between(text: str) -> date | None:
    value = _between(text, "Date=", "Time=")
    if not value:
        return None
    try:
        return datetime.strptime(value.strip(), "%m/%d/%Y").date()
    except ValueError:
        logger.warning("Unrecognized SEM acquisition date %r", value)
        return None


def parse_sem_metadata(text: str) -> SemMetadata:
    after_vfw = text.split("VFW=", 1)[1] if "VFW=" in text else ""
    signal = (_between(text, "Signal=", "Grid=") or "").strip()
    return SemMetadata(
        date=_date_between(text),
        location=(_between(text, "UserText=", "UserTextUnicode=") or "").strip(),
        acceleration_voltage=_number_between(text, "HV=", "Spot="),
        spot_size=_number_between(text, "Spot=", "StigmatorX"),
        horizontal_field_width=_number_between(text, "HFW=", "VFW="),
        working_distance=_number_between(after_vfw, "WD=", "BeamCurrent="),
        beam_current=_number_between(text, "BeamCurrent=", "TiltCorrectionIsOn="),
        pixel_width=_number_between(text, "PixelWidth=", "PixelHeight="),
        resolution_x=_number_between(text, "ResolutionX=", "ResolutionY="),
        resolution_y=_number_between(text, "ResolutionY=", "DriftCorrected="),
        signal_type=signal or DEFAULT_SIGNAL,
    )


def _decode(value: object) -> str | None:
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if isinstance(value, str):
        return value
    if isinstance(value, tuple) and value and isinstance(value[0], (str, bytes)):
        return _decode(value[0])
    return None


def read_sem_tags(filename: str | Path) -> tuple[str, int]:
    with Image.open(filename) as image:
        width = image.width
        tags = getattr(image, "tag_v2", None) or {}
        text = _decode(tags.get(FEI_METADATA_TAG))
        if text is None:
            for value in tags.values():
                candidate = _decode(value)
                if candidate and "HFW=" in candidate:
                    text = candidate
                    break
    if text is None:
        raise ValueError(f"{filename} has no SEM instrument metadata.")
    return text, width


def get_sem_metadata(filename: str | Path) -> SemMetadata:
    text, _ = read_sem_tags(filename)
    return parse_sem_metadata(text)


def pixel_size_from_metadata(text: str, width: int) -> float:
    hfw = _number_between(text, "HFW=", "VFW")
    return hfw * 1e6 / width


def sem_pixel_size(filename: str | Path) -> float:
    text, width = read_sem_tags(filename)
    size = pixel_size_from_metadata(text, width)
    logger.info("The pixel size of %s is %.4f um/pixel", filename, size)
    return size


def convergence_angle(aperture_diameter_um, working_distance_m):
    """Beam convergence half-angle in mrad."""
    radius_mm = np.asarray(aperture_diameter_um, dtype=float) * 0.5 / 1000.0
    distance_mm = np.asarray(working_distance_m, dtype=float) * 1000.0
    angle = np.arctan(radius_mm / distance_mm) * 1000.0
    return float(angle) if np.ndim(angle) == 0 else angle
