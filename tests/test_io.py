from __future__ import annotations

from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from edsclass.errors import SpectrumFormatError
from edsclass.io import get_msa_metadata, metadata_value, parse_msa, read_msa, read_uploaded_table
from edsclass.samples import sample_msa_text, sample_spectrum


def _y_text(xunits: str, xperchan: str, counts: list[int], npoints: int | None = None, choffset: int = 0) -> str:
    header = [
        "#FORMAT      : EMSA/MAS Spectral Data File",
        f"#NPOINTS     : {npoints if npoints is not None else len(counts)}.",
        f"#XUNITS      : {xunits}",
        "#DATATYPE    : Y",
        f"#XPERCHAN    : {xperchan}",
        "#OFFSET      : 0.0",
        f"#CHOFFSET    : {choffset}",
        "#SPECTRUM    : Spectral Data Starts Here",
    ]
    body = [", ".join(str(value) for value in counts[index : index + 3]) + "," for index in range(0, len(counts), 3)]
    return "\n".join(header + body + ["#ENDOFDATA   : "])


def test_parse_sample_spectrum() -> None:
    spectrum, metadata = parse_msa(sample_msa_text())
    expected = sample_spectrum()
    assert list(spectrum.columns) == ["keV", "Counts"]
    assert len(spectrum) == 1024
    assert np.isclose(spectrum.loc[1, "keV"], 0.01)
    assert np.allclose(spectrum["Counts"], expected["Counts"])
    assert metadata_value(metadata, "OFFSET") == "0.0"
    assert metadata_value(metadata, "beamkv") == "20.0"


def test_y_data_in_electronvolts_and_channel_offset() -> None:
    spectrum, _ = parse_msa(_y_text("eV", "10", [5, 6, 7, 8, 9], choffset=2))
    assert spectrum["Counts"].tolist() == [7.0, 8.0, 9.0]
    assert np.allclose(spectrum["keV"], [0.02, 0.03, 0.04])


def test_y_data_with_wrong_point_count() -> None:
    with pytest.raises(SpectrumFormatError, match="Expected 6"):
        parse_msa(_y_text("keV", "0.01", [1, 2, 3, 4, 5], npoints=6))


def test_xy_data() -> None:
    text = "\n".join(
        [
            "#DATATYPE    : XY",
            "#XUNITS      : keV",
            "0.00, 10",
            "0.01, 12",
            "0.02, 11",
        ]
    )
    spectrum, _ = parse_msa(text)
    assert spectrum["keV"].tolist() == [0.0, 0.01, 0.02]
    assert spectrum["Counts"].tolist() == [10.0, 12.0, 11.0]


def test_unknown_datatype() -> None:
    with pytest.raises(SpectrumFormatError, match="unknown datatype"):
        parse_msa("#DATATYPE : Z\n1, 2, 3\n")


def test_read_msa_appends_extension(tmp_path: Path) -> None:
    (tmp_path / "grain.msa").write_text(sample_msa_text())
    spectrum, metadata = read_msa(tmp_path / "grain")
    assert len(spectrum) == 1024
    assert get_msa_metadata(tmp_path / "grain.msa") == metadata
    with pytest.raises(FileNotFoundError):
        read_msa(tmp_path / "missing")


def test_read_uploaded_table_csv() -> None:
    frame = pd.DataFrame([{"Na": 1.0, "Si": 2.0}])
    out = read_uploaded_table("grains.CSV", frame.to_csv(index=False).encode("utf-8"))
    assert out.to_dict("records") == [{"Na": 1.0, "Si": 2.0}]
    with pytest.raises(ValueError, match="Unsupported file type"):
        read_uploaded_table("grains.txt", b"Na,Si\n1,2\n")
