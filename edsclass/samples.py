from __future__ import annotations

import numpy as np
import pandas as pd

from edsclass.spectrum import K_ALPHA_KEV


def sample_net_intensity_data() -> pd.DataFrame:
    rows = [
        # Feldspars
        {"analysis": "NI-01", "ABBREVIATION": "Ab", "Na": 300, "Mg": 5, "Al": 400, "Si": 1000, "P": 5, "K": 10, "Ca": 20, "Ti": 5, "Fe": 5},
        {"analysis": "NI-02", "ABBREVIATION": "Lab/Byt", "Na": 100, "Mg": 10, "Al": 600, "Si": 1000, "P": 5, "K": 10, "Ca": 250, "Ti": 5, "Fe": 20},
        {"analysis": "NI-03", "ABBREVIATION": "Afs", "Na": 30, "Mg": 5, "Al": 300, "Si": 1000, "P": 5, "K": 350, "Ca": 5, "Ti": 5, "Fe": 5},
        # Clays and micas
        {"analysis": "NI-04", "ABBREVIATION": "Kln", "Na": 5, "Mg": 10, "Al": 950, "Si": 1000, "P": 5, "K": 10, "Ca": 5, "Ti": 10, "Fe": 20},
        {"analysis": "NI-05", "ABBREVIATION": "Chl", "Na": 5, "Mg": 500, "Al": 800, "Si": 1000, "P": 5, "K": 5, "Ca": 5, "Ti": 10, "Fe": 600},
        {"analysis": "NI-06", "ABBREVIATION": "Ms", "Na": 20, "Mg": 20, "Al": 900, "Si": 1000, "P": 5, "K": 300, "Ca": 5, "Ti": 10, "Fe": 50},
        {"analysis": "NI-07", "ABBREVIATION": "Ilt", "Na": 10, "Mg": 60, "Al": 600, "Si": 1000, "P": 5, "K": 250, "Ca": 10, "Ti": 10, "Fe": 80},
        {"analysis": "NI-08", "ABBREVIATION": "Bt", "Na": 10, "Mg": 400, "Al": 450, "Si": 1000, "P": 5, "K": 500, "Ca": 10, "Ti": 40, "Fe": 500},
        {"analysis": "NI-09", "ABBREVIATION": "Mnt", "Na": 40, "Mg": 100, "Al": 500, "Si": 1000, "P": 5, "K": 10, "Ca": 80, "Ti": 10, "Fe": 100},
        {"analysis": "NI-10", "ABBREVIATION": "Htr", "Na": 50, "Mg": 500, "Al": 50, "Si": 1000, "P": 5, "K": 5, "Ca": 10, "Ti": 5, "Fe": 10},
        # Chain silicates
        {"analysis": "NI-11", "ABBREVIATION": "Aug", "Na": 20, "Mg": 400, "Al": 50, "Si": 1000, "P": 5, "K": 2, "Ca": 600, "Ti": 15, "Fe": 200},
        {"analysis": "NI-12", "ABBREVIATION": "Hbl", "Na": 80, "Mg": 300, "Al": 90, "Si": 1000, "P": 5, "K": 60, "Ca": 400, "Ti": 30, "Fe": 350},
    ]
    return pd.DataFrame(rows)


def sample_atom_percent_data() -> pd.DataFrame:
    elements = ["F", "Na", "Mg", "Al", "Si", "P", "S", "Cl", "K", "Ca", "Ti", "Cr", "Mn", "Fe"]
    rows = [
        {"analysis": "AP-01", "ABBREVIATION": "Qz", "Na": 0.5, "Al": 2.0, "Si": 96.0, "K": 0.5, "Ca": 0.5, "Fe": 0.5},
        {"analysis": "AP-02", "ABBREVIATION": "Ab", "Na": 21.0, "Mg": 0.5, "Al": 19.0, "Si": 57.0, "K": 1.0, "Ca": 1.0, "Fe": 0.5},
        {"analysis": "AP-03", "ABBREVIATION": "Kln", "Na": 0.5, "Mg": 1.0, "Al": 44.0, "Si": 52.0, "K": 1.0, "Ca": 0.5, "Fe": 1.0},
        {"analysis": "AP-04", "ABBREVIATION": "Ilt", "Na": 0.5, "Mg": 2.0, "Al": 35.0, "Si": 52.0, "K": 8.0, "Ca": 0.5, "Fe": 2.0},
        {"analysis": "AP-05", "ABBREVIATION": "Cal", "Mg": 2.0, "Al": 1.0, "Si": 3.0, "S": 1.0, "Ca": 92.0, "Fe": 1.0},
        {"analysis": "AP-06", "ABBREVIATION": "Gp", "Mg": 1.0, "Si": 1.0, "S": 50.0, "Ca": 48.0},
        {"analysis": "AP-07", "ABBREVIATION": "Hl", "Na": 48.0, "Mg": 1.0, "S": 1.0, "Cl": 49.0, "K": 0.5, "Ca": 0.5},
        {"analysis": "AP-08", "ABBREVIATION": "Hem", "Al": 2.0, "Si": 5.0, "Ti": 1.0, "Cr": 1.0, "Mn": 1.0, "Fe": 90.0},
    ]
    frame = pd.DataFrame(rows)
    for element in elements:
        if element not in frame.columns:
            frame[element] = 0.0
    frame[elements] = frame[elements].fillna(0.0)
    return frame[["analysis", "ABBREVIATION", *elements]]


def sample_spectrum(seed: int = 7) -> pd.DataFrame:
    energy = np.round(np.arange(1024) * 0.01, 2)
    continuum = 1800.0 * np.exp(-energy / 1.8) * (1.0 - np.exp(-energy / 0.4)) + 40.0
    heights = {"Na": 900, "Mg": 300, "Al": 2200, "Si": 5200, "K": 1100, "Ca": 400, "Fe": 650}
    peaks = np.zeros_like(energy)
    for element, height in heights.items():
        peaks += height * np.exp(-0.5 * ((energy - K_ALPHA_KEV[element]) / 0.045) ** 2)
    rng = np.random.default_rng(seed)
    counts = rng.poisson(continuum + peaks).astype(float)
    return pd.DataFrame({"keV": energy, "Counts": counts})


def sample_msa_text(seed: int = 7) -> str:
    spectrum = sample_spectrum(seed)
    header = [
        "#FORMAT      : EMSA/MAS Spectral Data File",
        "#VERSION     : 1.0",
        "#TITLE       : Sample feldspar spectrum",
        "#NPOINTS     : 1024.",
        "#NCOLUMNS    : 1.",
        "#XUNITS      : keV",
        "#YUNITS      : counts",
        "#DATATYPE    : Y",
        "#XPERCHAN    : 0.01",
        "#OFFSET      : 0.0",
        "#CHOFFSET    : 0",
        "#BEAMKV      : 20.0",
        "#SPECTRUM    : Spectral Data Starts Here",
    ]
    body = [f"{int(value)}," for value in spectrum["Counts"]]
    return "\n".join(header + body + ["#ENDOFDATA   : "]) + "\n"
