# frontend/utils/charts.py
import pandas as pd
import plotly.graph_objects as go

# large views are cut to a leading slice so the browser stays responsive
MAX_CHART_ROWS = 2000
CHART_SAMPLE_ROWS = 500
MAX_PIE_SLICES = 10


def chart_rows(config: dict, rows: list) -> list:
    """Rows actually drawn for a chart: a leading slice of big views, at most 10 pie slices."""
    if len(rows) > MAX_CHART_ROWS:
        rows = rows[:CHART_SAMPLE_ROWS]
    if config.get("type") == "PIE":
        rows = rows[:MAX_PIE_SLICES]
    return rows


def _to_frame(rows, x_key, y_key):
    df = pd.DataFrame.from_records(rows)
    if df.empty or x_key not in df or y_key not in df:
        return None
    df[y_key] = pd.to_numeric(df[y_key], errors="coerce")
    return df


def chart_figure(config: dict, rows: list):
    """
    Build a plotly figure for a ChartConfig dict (camelCase keys, as the API
    returns them). Returns None when the rows do not carry the chart's keys.
    """
    x_key, y_key = config.get("xKey"), config.get("yKey")
    df = _to_frame(chart_rows(config, rows), x_key, y_key)
    if df is None:
        return None

    chart_type = config.get("type", "BAR")
    category = config.get("categoryKey")

    if chart_type == "PIE":
        fig = go.Figure(data=[go.Pie(labels=df[x_key].astype(str), values=df[y_key], hole=0.3)])
    elif chart_type == "SCATTER":
        fig = go.Figure(data=[go.Scatter(x=df[x_key], y=df[y_key], mode="markers")])
    elif chart_type in ("LINE", "AREA"):
        fill = "tozeroy" if chart_type == "AREA" else None
        fig = go.Figure(data=[go.Scatter(x=df[x_key], y=df[y_key], mode="lines", fill=fill)])
    elif category and category in df:
        fig = go.Figure(data=[
            go.Bar(x=g[x_key], y=g[y_key], name=str(name)) for name, g in df.groupby(category, sort=False)
        ])
    else:
        fig = go.Figure(data=[go.Bar(x=df[x_key], y=df[y_key])])

    fig.update_layout(
        title=config.get("title", ""),
        height=380,
        margin=dict(l=0, r=0, t=40, b=10),
        xaxis_title=x_key,
        yaxis_title=y_key,
    )
    return fig


def correlation_heatmap(variables: list, matrix: list):
    heatmap = go.Heatmap(
        z=matrix,
        x=variables,
        y=variables,
        zmin=-1,
        zmax=1,
        text=matrix,
        texttemplate="%{text}",
        colorscale="RdBu",
        colorbar=dict(title="r"),
    )
    fig = go.Figure(data=[heatmap])
    fig.update_layout(height=500, width=None, margin=dict(l=0, r=0, t=10, b=10))
    return fig
