from __future__ import annotations

import html
from io import BytesIO
import logging
import sys
import tempfile
from pathlib import Path

import joblib
import pandas as pd
import streamlit as st

ROOT = Path(__file__).resolve().parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from edsclass import SCHEMES, compare_algorithms, eds_classification, summarize_classes
from edsclass.config import ClassificationConfig
from edsclass.core import agreement_table, class_labels
from edsclass.donarummo import DONARUMMO_CHECKLIST, donarummo_ratios
from edsclass.errors import ModelUnavailableError
from edsclass.io import parse_msa, read_uploaded_table
from edsclass.kandler import KANDLER_CHECKLIST, kandler_ratios
from edsclass.panta import PANTA_CHECKLIST, panta_ratios
from edsclass.plot import (
    build_background_figure,
    build_class_count_figure,
    build_comparison_figure,
    build_group_count_figure,
    build_score_heatmap,
    build_spectrum_figure,
    labels_frame,
)
from edsclass.rules import matched_labels
from edsclass.samples import sample_atom_percent_data, sample_msa_text, sample_net_intensity_data
from edsclass.sem import convergence_angle, get_sem_metadata, sem_pixel_size
from edsclass.spectrum import fit_background, peak_intensity, subtract_background
from edsclass.weber import load_weber_model, weber_details

logger = logging.getLogger("edsclass_app")

PALETTE = {
    "background": "#f5f7f6",
    "sidebar": "#17324d",
    "primary": "#1f6f8b",
    "accent": "#e0a526",
    "text": "#14213d",
    "success": "#2a9d8f",
    "warning": "#d1495b",
}

INPUT_SOURCES = [
    "Upload EDS table",
    "Use built-in net intensity sample",
    "Use built-in atom percent sample",
]

CHECKLISTS = {
    "donarummo": (donarummo_ratios, DONARUMMO_CHECKLIST),
    "panta": (panta_ratios, PANTA_CHECKLIST),
    "kandler": (kandler_ratios, KANDLER_CHECKLIST),
}


def _to_csv_bytes(frame: pd.DataFrame) -> bytes:
    return frame.to_csv(index=False).encode("utf-8")


def _render_rule_overlaps(raw_frame: pd.DataFrame, algorithm: str) -> None:
    ratios_of, checklist = CHECKLISTS[algorithm]
    matched = matched_labels(ratios_of(raw_frame), checklist).reset_index(drop=True)
    overlaps = matched[matched.str.contains(",", regex=False)]
    with st.expander(f"Rule overlaps ({len(overlaps)} row(s))"):
        if overlaps.empty:
            st.caption("Every classified row matched at most one rule.")
            return
        st.caption("Rows where several rules held; the last one listed sets the label.")
        st.dataframe(overlaps.rename_axis("row").reset_index(), use_container_width=True, hide_index=True)


def _render_sample_box() -> None:
    with st.expander("Sample Data Box", expanded=False):
        st.caption("Try every algorithm without your own files. Built-in samples cover both data types and a spectrum.")
        st.download_button(
            "Download sample net intensity table",
            data=_to_csv_bytes(sample_net_intensity_data()),
            file_name="eds_sample_net_intensity.csv",
            mime="text/csv",
            key="dl_sample_net",
        )
        st.download_button(
            "Download sample atom percent table",
            data=_to_csv_bytes(sample_atom_percent_data()),
            file_name="eds_sample_atom_percent.csv",
            mime="text/csv",
            key="dl_sample_atom",
        )
        st.download_button(
            "Download sample EMSA spectrum",
            data=sample_msa_text().encode("utf-8"),
            file_name="eds_sample_spectrum.msa",
            mime="text/plain",
            key="dl_sample_msa",
        )


def _apply_theme() -> None:
    st.markdown(
        f"""
        <style>
        :root {{
            --eds-bg: {PALETTE["background"]};
            --eds-sidebar: {PALETTE["sidebar"]};
            --eds-primary: {PALETTE["primary"]};
            --eds-accent: {PALETTE["accent"]};
            --eds-text: {PALETTE["text"]};
            --eds-success: {PALETTE["success"]};
            --eds-warning: {PALETTE["warning"]};
        }}

        [data-testid="stAppViewContainer"] {{
            background-color: var(--eds-bg);
        }}

        div.stButton > button,
        div.stDownloadButton > button {{
            background-color: var(--eds-primary);
            color: #ffffff;
            border: none;
            border-radius: 4px;
        }}

        div.stButton > button:hover,
        div.stDownloadButton > button:hover {{
            background-color: var(--eds-accent);
            border-color: var(--eds-accent);
            color: var(--eds-text);
        }}

        [data-testid="stMetric"] {{
            background: #ffffff;
            border-top: 3px solid var(--eds-primary);
            border-radius: 4px;
            padding: 0.6rem 0.8rem;
        }}

        .eds-alert {{
            border-radius: 4px;
            padding: 0.6rem 0.8rem;
            margin: 0.5rem 0;
            font-weight: 500;
        }}

        .eds-alert.success {{
            background-color: rgba(42, 157, 143, 0.1);
            border-left: 4px solid var(--eds-success);
            color: var(--eds-text);
        }}

        .eds-alert.warning {{
            background-color: rgba(209, 73, 91, 0.1);
            border-left: 4px solid var(--eds-warning);
            color: var(--eds-text);
        }}
        </style>
        """,
        unsafe_allow_html=True,
    )


def _render_status(kind: str, message: str) -> None:
    if kind not in {"success", "warning"}:
        raise ValueError(f"Unsupported status kind: {kind}")
    safe = html.escape(message)
    st.markdown(f"<div class='eds-alert {kind}'>{safe}</div>", unsafe_allow_html=True)


def _init_state() -> None:
    for key in ("eds_result", "eds_algorithm", "eds_weber", "eds_checklist", "eds_comparison", "eds_peaks"):
        if key not in st.session_state:
            st.session_state[key] = None


def _load_table(key: str) -> pd.DataFrame | None:
    source = st.radio("Input source", options=INPUT_SOURCES, horizontal=True, key=f"{key}_source")
    if source == INPUT_SOURCES[1]:
        frame = sample_net_intensity_data()
        _render_status("success", f"Loaded built-in net intensity dataset ({len(frame)} analyses).")
        return frame
    if source == INPUT_SOURCES[2]:
        frame = sample_atom_percent_data()
        _render_status("success", f"Loaded built-in atom percent dataset ({len(frame)} analyses).")
        return frame
    uploaded = st.file_uploader("Upload EDS table", type=["csv", "xlsx", "xls"], key=f"{key}_upload")
    if uploaded is None:
        return None
    try:
        frame = read_uploaded_table(uploaded.name, uploaded.getvalue())
    except Exception as exc:
        st.error(f"Failed to read file: {exc}")
        return None
    _render_status("success", f"Loaded {uploaded.name} with {len(frame)} analyses.")
    return frame


def _load_weber_model(key: str) -> object | None:
    uploaded = st.file_uploader("Trained Weber model (joblib)", type=["joblib", "pkl"], key=key)
    if uploaded is not None:
        try:
            return joblib.load(BytesIO(uploaded.getvalue()))
        except Exception as exc:
            st.error(f"Failed to load model: {exc}")
            return None
    config = ClassificationConfig()
    if not config.weber_model_path:
        return None
    try:
        return load_weber_model(config.weber_model_path)
    except ModelUnavailableError as exc:
        st.error(str(exc))
        return None


def _render_classification() -> None:
    raw_frame = _load_table("classify")
    if raw_frame is None:
        st.info("Upload a table or choose a built-in sample to classify.")
        return
    st.dataframe(raw_frame.head(20), use_container_width=True, hide_index=True)

    st.subheader("Algorithm")
    names = list(SCHEMES)
    default_index = names.index("donarummo")
    algorithm = st.selectbox("Classification algorithm", options=names, index=default_index)
    scheme = SCHEMES[algorithm]
    st.caption(f"{scheme.reference}: {scheme.data_type} data with columns {', '.join(scheme.elements)}.")

    options: dict[str, object] = {}
    if algorithm == "donarummo":
        options["method"] = st.radio("Decision structure", options=["tree", "checklist"], horizontal=True)
    if algorithm in {"donarummo", "panta"}:
        options["label_style"] = st.radio("Labels", options=["abbreviation", "name"], horizontal=True)
    model = _load_weber_model("weber_model_upload") if algorithm == "weber" else None

    if st.button("Classify", type="primary"):
        try:
            if algorithm == "weber":
                details = weber_details(raw_frame, model=model)
                result = details.minerals
                st.session_state["eds_weber"] = details
            else:
                result = eds_classification(raw_frame, algorithm, **options)
                st.session_state["eds_weber"] = None
        except Exception as exc:
            st.error(f"Classification failed: {exc}")
        else:
            st.session_state["eds_result"] = result
            st.session_state["eds_algorithm"] = algorithm
            st.session_state["eds_checklist"] = (
                algorithm in CHECKLISTS and options.get("method", "checklist") == "checklist"
            )

    result = st.session_state.get("eds_result")
    if result is None or len(result) != len(raw_frame):
        return

    labels = class_labels(result)
    summary = summarize_classes(labels)
    unknown = labels.astype(str).str.startswith(("Unknown", "U-")).mean()

    metric_a, metric_b, metric_c = st.columns(3)
    with metric_a:
        st.metric("Analyses", int(len(labels)))
    with metric_b:
        st.metric("Classes", int(len(summary)))
    with metric_c:
        st.metric("Unknown", f"{100.0 * unknown:.1f}%")

    st.plotly_chart(
        build_class_count_figure(labels, PALETTE, title=f"{st.session_state['eds_algorithm'].title()} results"),
        use_container_width=True,
    )
    if isinstance(result, pd.DataFrame):
        st.plotly_chart(build_group_count_figure(result, PALETTE), use_container_width=True)
    table = pd.concat([raw_frame.reset_index(drop=True), labels_frame(result)], axis=1)
    details = st.session_state.get("eds_weber")
    if details is not None:
        table = table.assign(group=details.groups.reset_index(drop=True))
        st.plotly_chart(build_score_heatmap(details.scores, PALETTE), use_container_width=True)

    st.dataframe(table, use_container_width=True, hide_index=True)
    st.dataframe(summary, use_container_width=True, hide_index=True)
    if st.session_state.get("eds_checklist"):
        _render_rule_overlaps(raw_frame, st.session_state["eds_algorithm"])
    st.download_button(
        "Download classified table",
        data=_to_csv_bytes(table),
        file_name=f"eds_{st.session_state['eds_algorithm']}_classification.csv",
        mime="text/csv",
    )
    _render_status(
        "warning",
        "Rule-based schemes only recognise the minerals they were published for. "
        "Compare several algorithms before interpreting the results.",
    )


def _render_comparison() -> None:
    raw_frame = _load_table("compare")
    if raw_frame is None:
        st.info("Upload a table or choose a built-in sample to compare algorithms.")
        return

    algorithms = st.multiselect(
        "Algorithms",
        options=[name for name in SCHEMES if name != "weber"],
        default=["donarummo"],
    )
    truth_options = ["(none)"] + [str(column) for column in raw_frame.columns]
    truth_index = truth_options.index("ABBREVIATION") if "ABBREVIATION" in truth_options else 0
    truth = st.selectbox("True class column", options=truth_options, index=truth_index)

    if st.button("Compare", type="primary"):
        try:
            comparison = compare_algorithms(
                raw_frame,
                algorithms,
                true_column=None if truth == "(none)" else truth,
            )
        except Exception as exc:
            st.error(f"Comparison failed: {exc}")
        else:
            st.session_state["eds_comparison"] = comparison

    comparison = st.session_state.get("eds_comparison")
    if comparison is None or len(comparison) != len(raw_frame):
        return
    st.plotly_chart(build_comparison_figure(comparison, PALETTE), use_container_width=True)
    st.dataframe(comparison, use_container_width=True, hide_index=True)
    if "true_class" in comparison.columns:
        st.dataframe(agreement_table(comparison), use_container_width=True, hide_index=True)
    st.download_button(
        "Download comparison",
        data=_to_csv_bytes(comparison),
        file_name="eds_algorithm_comparison.csv",
        mime="text/csv",
    )


def _render_spectrum() -> None:
    source = st.radio(
        "Spectrum source",
        options=["Use built-in sample spectrum", "Upload EMSA (.msa) file"],
        horizontal=True,
        key="spectrum_source",
    )
    text: str | None = None
    if source == "Use built-in sample spectrum":
        text = sample_msa_text()
    else:
        uploaded = st.file_uploader("Upload spectrum", type=["msa", "txt"], key="spectrum_upload")
        if uploaded is not None:
            text = uploaded.getvalue().decode("utf-8", errors="replace")
    if text is None:
        st.info("Upload an EMSA spectrum to continue.")
        return

    try:
        spectrum, metadata = parse_msa(text)
    except Exception as exc:
        st.error(f"Failed to read spectrum: {exc}")
        return

    defaults = ClassificationConfig()
    st.plotly_chart(
        build_spectrum_figure(spectrum, PALETTE, max_kev=defaults.max_energy_kev), use_container_width=True
    )
    with st.expander("Metadata", expanded=False):
        st.dataframe(pd.DataFrame(metadata, columns=["key", "value"]), use_container_width=True, hide_index=True)

    col_a, col_b, col_c = st.columns(3)
    with col_a:
        degree = st.number_input("Polynomial degree", value=defaults.background_degree, step=1)
    with col_b:
        min_separation = st.number_input(
            "Minimum separation (keV)", value=defaults.background_min_separation, min_value=0.01, step=0.01
        )
    with col_c:
        smoothing = st.number_input("Smoothing window", value=defaults.background_smoothing, min_value=2.0, step=1.0)

    try:
        fit = fit_background(spectrum, degree=int(degree), min_separation=min_separation, smoothing=smoothing)
        corrected = subtract_background(
            spectrum, degree=int(degree), min_separation=min_separation, smoothing=smoothing
        )
        peaks = peak_intensity(corrected)
    except Exception as exc:
        st.error(f"Background subtraction failed: {exc}")
        return

    st.plotly_chart(build_background_figure(fit, corrected, PALETTE), use_container_width=True)
    st.subheader("Net peak intensities")
    st.dataframe(peaks, use_container_width=True, hide_index=True)
    try:
        label = eds_classification(peaks, "donarummo").iloc[0]
    except Exception as exc:
        st.error(f"Classification failed: {exc}")
    else:
        _render_status("success", f"Donarummo classification of this spectrum: {label}")
    st.download_button(
        "Download background-subtracted spectrum",
        data=_to_csv_bytes(corrected),
        file_name="eds_background_subtracted.csv",
        mime="text/csv",
    )


def _render_sem_tools() -> None:
    uploaded = st.file_uploader("Upload SEM micrograph (.tif)", type=["tif", "tiff"], key="sem_upload")
    if uploaded is not None:
        with tempfile.NamedTemporaryFile(suffix=".tif") as handle:
            handle.write(uploaded.getvalue())
            handle.flush()
            try:
                metadata = get_sem_metadata(handle.name)
                pixel = sem_pixel_size(handle.name)
            except Exception as exc:
                st.error(f"Failed to read SEM metadata: {exc}")
            else:
                st.metric("Pixel size", f"{pixel:.4f} µm/pixel")
                st.dataframe(
                    pd.DataFrame(list(metadata.as_dict().items()), columns=["field", "value"]).astype(str),
                    use_container_width=True,
                    hide_index=True,
                )

    st.subheader("Beam convergence angle")
    col_a, col_b = st.columns(2)
    with col_a:
        aperture = st.number_input("Aperture diameter (µm)", value=30.0, min_value=0.1)
    with col_b:
        working_distance = st.number_input("Working distance (m)", value=0.01, min_value=0.0001, format="%.4f")
    st.metric("Convergence angle", f"{convergence_angle(aperture, working_distance):.3f} mrad")


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s")
    st.set_page_config(page_title="EDS Mineral Classification", layout="wide")
    _init_state()
    _apply_theme()

    st.title("EDS Mineral Classification")
    st.caption("Classify SEM-EDS analyses with the Weber, Donarummo, Kandler and Panta schemes")
    st.markdown(
        """
        Upload CSV/Excel tables of net intensities or atom percents, run one or
        several classification algorithms, and export the labelled tables.
        """
    )
    _render_sample_box()

    tabs = st.tabs(["Classify", "Compare algorithms", "Spectrum tools", "SEM image tools"])
    with tabs[0]:
        _render_classification()
    with tabs[1]:
        _render_comparison()
    with tabs[2]:
        _render_spectrum()
    with tabs[3]:
        _render_sem_tools()


if __name__ == "__main__":
    main()
