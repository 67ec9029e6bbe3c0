from __future__ import annotations

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from edsclass.core import class_labels, summarize_classes
from edsclass.spectrum import BackgroundFit

DEFAULT_COLORS = {
    "background": "#f5f7f6",
    "primary": "#1f6f8b",
    "accent": "#e0a526",
    "text": "#14213d",
    "success": "#2a9d8f",
    "warning": "#d1495b",
}


def _palette(colors: dict[str, str] | None) -> dict[str, str]:
    palette = DEFAULT_COLORS.copy()
    if colors:
        palette.update(colors)
    return palette


def _apply_plot_style(fig: go.Figure, colors: dict[str, str] | None = None) -> go.Figure:
    palette = _palette(colors)
    fig.update_layout(
        paper_bgcolor=palette["background"],
        plot_bgcolor="#ffffff",
        font_color=palette["text"],
        legend_title_text="",
    )
    return fig


def build_spectrum_figure(
    spectrum: pd.DataFrame,
    colors: dict[str, str] | None = None,
    max_kev: float = 10.0,
    title: str = "EDS Spectrum",
) -> go.Figure:
    palette = _palette(colors)
    data = spectrum.loc[(spectrum["keV"] >= 0) & (spectrum["keV"] <= max_kev)]
    fig = px.area(data, x="keV", y="Counts", title=title)
    fig.update_traces(line={"color": palette["primary"], "width": 0.9})
    fig.update_xaxes(title="keV", range=[0, max_kev], gridcolor="#dddddd")
    fig.update_yaxes(title="Counts", gridcolor="#dddddd")
    return _apply_plot_style(fig, colors)


def build_background_figure(
    fit: BackgroundFit,
    corrected: pd.DataFrame,
    colors: dict[str, str] | None = None,
) -> go.Figure:
    palette = _palette(colors)
    fig = go.Figure()
    fig.add_trace(
        go.Scatter(
            x=fit.smoothed["keV"],
            y=fit.smoothed["Counts"],
            mode="lines",
            name="Smoothed data",
            line={"color": "#6b7280", "width": 1},
        )
    )
    fig.add_trace(
        go.Scatter(
            x=fit.minima_kev,
            y=fit.minima_counts,
            mode="markers",
            name="Local minima",
            marker={"color": palette["warning"], "size": 6},
        )
    )
    fig.add_trace(
        go.Scatter(
            x=fit.smoothed["keV"],
            y=fit.background,
            mode="lines",
            name=f"Degree {len(fit.coefficients) - 1} background",
            line={"color": palette["success"], "dash": "dash"},
        )
    )
    fig.add_trace(
        go.Scatter(
            x=corrected["keV"],
            y=corrected["Counts"],
            mode="lines",
            name="Background subtracted",
            fill="tozeroy",
            line={"color": palette["primary"], "width": 0.9},
        )
    )
    fig.update_layout(title="Background Subtraction")
    fig.update_xaxes(title="keV", range=[0, 15], gridcolor="#dddddd")
    fig.update_yaxes(title="Counts", gridcolor="#dddddd")
    return _apply_plot_style(fig, colors)


def build_class_count_figure(
    labels: pd.Series | pd.DataFrame,
    colors: dict[str, str] | None = None,
    title: str = "Mineral Classification",
) -> go.Figure:
    palette = _palette(colors)
    summary = summarize_classes(labels)
    fig = px.bar(
        summary,
        x="class",
        y="count",
        hover_data=["fraction"],
        title=title,
        color_discrete_sequence=[palette["primary"]],
    )
    fig.update_xaxes(title="", gridcolor="#dddddd")
    fig.update_yaxes(title="Count", gridcolor="#dddddd")
    return _apply_plot_style(fig, colors)


def build_group_count_figure(kandler_result: pd.DataFrame, colors: dict[str, str] | None = None) -> go.Figure:
    palette = _palette(colors)
    counts = kandler_result.groupby(["group", "class"]).size().reset_index(name="count")
    fig = px.bar(
        counts,
        x="group",
        y="count",
        color="class",
        title="Kandler Groups and Classes",
        color_discrete_sequence=[palette["primary"], palette["accent"], palette["success"], palette["warning"]],
    )
    fig.update_xaxes(title="", gridcolor="#dddddd")
    fig.update_yaxes(title="Count", gridcolor="#dddddd")
    return _apply_plot_style(fig, colors)


def build_comparison_figure(comparison: pd.DataFrame, colors: dict[str, str] | None = None) -> go.Figure:
    palette = _palette(colors)
    long = comparison.melt(var_name="algorithm", value_name="class")
    counts = long.groupby(["algorithm", "class"]).size().reset_index(name="count")
    fig = px.bar(
        counts,
        x="class",
        y="count",
        color="algorithm",
        barmode="group",
        title="Classification by Algorithm",
        color_discrete_sequence=[palette["primary"], palette["accent"], palette["success"], palette["warning"], "#6b7280"],
    )
    fig.update_xaxes(title="", gridcolor="#dddddd")
    fig.update_yaxes(title="Count", gridcolor="#dddddd")
    return _apply_plot_style(fig, colors)


def build_score_heatmap(scores: pd.DataFrame, colors: dict[str, str] | None = None) -> go.Figure:
    palette = _palette(colors)
    fig = px.imshow(
        scores.to_numpy(dtype=float),
        x=[str(column) for column in scores.columns],
        y=[str(index) for index in scores.index],
        zmin=0,
        zmax=1,
        aspect="auto",
        color_continuous_scale=["#ffffff", palette["primary"]],
        title="Probability Scores",
    )
    fig.update_yaxes(title="Observation")
    return _apply_plot_style(fig, colors)


def labels_frame(result: pd.Series | pd.DataFrame) -> pd.DataFrame:
    if isinstance(result, pd.DataFrame):
        return result.reset_index(drop=True)
    return class_labels(result).rename("mineral").reset_index(drop=True).to_frame()
