from __future__ import annotations

from io import BytesIO
import logging
from pathlib import Path
import re

import numpy as np
import pandas as pd

from edsclass.errors import SpectrumFormatError

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = {".csv", ".xlsx", ".xls"}
SPECTRUM_COLUMNS = ["keV", "Counts"]

_METADATA_LINE = re.compile(r"^#\s*([^:]+):\s*(.+)$")
_NUMBER_SPLIT = re.compile(r"[,\s;]+")


def read_uploaded_table(filename: str, data: bytes) -> pd.DataFrame:
    suffix = Path(filename).suffix.lower()
    if suffix not in SUPPORTED_EXTENSIONS:
        raise ValueError(f"Unsupported file type: {suffix}. Use CSV or Excel.")
    buffer = BytesIO(data)
    if suffix == ".csv":
        return pd.read_csv(buffer)
    return pd.read_excel(buffer)


def _msa_path(filename: str | Path) -> Path:
    path = Path(filename)
    if path.suffix.lower() != ".msa":
        path = path.with_name(path.name + ".msa")
    if not path.is_file():
        raise FileNotFoundError(f"The file {str(path)!r} does not exist.")
    return path


def parse_msa_metadata(lines: list[str]) -> list[tuple[str, str]]:
    metadata: list[tuple[str, str]] = []
    for line in lines:
        match = _METADATA_LINE.match(line.rstrip("\r\n"))
        if match:
            metadata.append((match.group(1).strip(), match.group(2).strip()))
    return metadata


def get_msa_metadata(filename: str | Path) -> list[tuple[str, str]]:
    path = _msa_path(filename)
    return parse_msa_metadata(path.read_text(errors="replace").splitlines())


def metadata_value(metadata: list[tuple[str, str]], key: str) -> str | None:
    wanted = key.upper()
    for name, value in metadata:
        if name.upper() == wanted:
            return value
    for name, value in metadata:
        if wanted in name.upper():
            return value
    return None


def _number(metadata: list[tuple[str, str]], key: str, default: float | None = None) -> float:
    value = metadata_value(metadata, key)
    if value is None:
        if default is None:
            raise SpectrumFormatError(f"MSA metadata is missing {key}.")
        return default
    try:
        return float(value.split()[0])
    except (ValueError, IndexError) as exc:
        raise SpectrumFormatError(f"MSA metadata {key} is not numeric: {value!r}") from exc


def _data_rows(lines: list[str]) -> list[list[float]]:
    rows: list[list[float]] = []
    for line in lines:
        text = line.strip()
        if not text or text.startswith("#"):
            continue
        values = []
        for token in _NUMBER_SPLIT.split(text):
            if not token:
                continue
            try:
                values.append(float(token))
            except ValueError:
                values.append(np.nan)
        if values:
            rows.append(values)
    return rows


def parse_msa(text: str) -> tuple[pd.DataFrame, list[tuple[str, str]]]:
    lines = text.splitlines()
    metadata = parse_msa_metadata(lines)
    datatype = (metadata_value(metadata, "DATATYPE") or "").strip().upper()
    xunits = (metadata_value(metadata, "XUNITS") or "").strip().lower()
    rows = _data_rows(lines)

    if datatype == "Y":
        npoints = int(_number(metadata, "NPOINTS"))
        offset = _number(metadata, "OFFSET")
        xperchan = _number(metadata, "XPERCHAN")
        choffset = int(_number(metadata, "CHOFFSET", default=0.0))
        energy = offset + np.arange(npoints) * xperchan
        if xunits != "kev":
            energy = energy / 1000.0
        counts = np.array([value for row in rows for value in row], dtype=float)
        counts = counts[~np.isnan(counts)]
        if counts.size != npoints:
            raise SpectrumFormatError(f"Expected {npoints} counts, found {counts.size}.")
        if choffset > 0:
            energy = energy[choffset:]
            counts = counts[choffset:]
    elif datatype == "XY":
        table = np.array([row[:2] for row in rows if len(row) >= 2], dtype=float).reshape(-1, 2)
        table = table[~np.isnan(table).any(axis=1)]
        energy = table[:, 0]
        counts = table[:, 1]
        if xunits != "kev":
            energy = energy / 1000.0
    else:
        raise SpectrumFormatError("MSA file has an unknown datatype.")

    spectrum = pd.DataFrame({"keV": energy, "Counts": counts}, columns=SPECTRUM_COLUMNS)
    logger.debug("Parsed %s spectrum with %d channels", datatype, len(spectrum))
    return spectrum, metadata


def read_msa(filename: str | Path) -> tuple[pd.DataFrame, list[tuple[str, str]]]:
    path = _msa_path(filename)
    return parse_msa(path.read_text(errors="replace"))
