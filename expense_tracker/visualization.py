"""Plotly visualisation helpers for the expense tracker.

Each function accepts the output of the matching function in
:mod:`expense_tracker.aggregation` and returns a
``plotly.graph_objects.Figure`` that Streamlit renders via
``st.plotly_chart``.  Empty inputs produce an empty figure titled
"No data to display" rather than raising.
"""

from __future__ import annotations

from typing import Dict, Sequence

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from .aggregation import ComparisonRow
from .config import CATEGORIES

# Stable colour per known category; unknown categories fall back to Plotly's cycle
CATEGORY_COLORS: Dict[str, str] = dict(zip(CATEGORIES, px.colors.qualitative.D3))


def _empty_figure(title: str = "No data to display") -> go.Figure:
    fig = go.Figure()
    fig.update_layout(title=title)
    return fig


def create_monthly_bar_chart(monthly: Dict[str, float], title: str | None = None) -> go.Figure:
    """Bar chart of total spend per month.

    Parameters
    ----------
    monthly : dict
        Mapping of ``YYYY-MM`` to total, as returned by ``by_month``.
    title : str, optional
        Chart title.
    """
    if not monthly:
        return _empty_figure()
    df = pd.DataFrame(list(monthly.items()), columns=["Month", "Total"])
    fig = px.bar(df, x="Month", y="Total")
    fig.update_layout(
        title=title or "Monthly expenses",
        xaxis_title="Month",
        yaxis_title="Total",
        xaxis_type="category",
    )
    return fig


def create_daily_line_chart(daily: Dict[str, float], title: str | None = None) -> go.Figure:
    """Line chart of total spend per day, as returned by ``by_day``."""
    if not daily:
        return _empty_figure()
    df = pd.DataFrame(list(daily.items()), columns=["Day", "Total"])
    df["Day"] = pd.to_datetime(df["Day"])
    fig = px.line(df, x="Day", y="Total", markers=True)
    fig.update_layout(title=title or "Daily expenses", xaxis_title="Day", yaxis_title="Total")
    return fig


def create_category_pie_chart(categories: Dict[str, float], title: str | None = None) -> go.Figure:
    """Pie chart of the category breakdown returned by ``by_category``.

    Categories with a zero or negative net total (fully refunded) cannot
    be drawn as slices and are left out.
    """
    df = pd.DataFrame(list(categories.items()), columns=["Category", "Total"])
    df = df[df["Total"] > 0]
    if df.empty:
        return _empty_figure()
    fig = px.pie(
        df,
        names="Category",
        values="Total",
        color="Category",
        color_discrete_map=CATEGORY_COLORS,
    )
    fig.update_traces(textinfo="label+percent")
    fig.update_layout(title=title or "Expenses by category")
    return fig


def create_budget_comparison_chart(rows: Sequence[ComparisonRow], title: str | None = None) -> go.Figure:
    """Grouped bar chart of budgeted vs actual spend per category."""
    if not rows:
        return _empty_figure()
    df = pd.DataFrame([row.to_dict() for row in rows])
    long_df = df.melt(id_vars="category", value_vars=["budgeted", "actual"], var_name="Series", value_name="Amount")
    long_df["Series"] = long_df["Series"].str.capitalize()
    fig = px.bar(long_df, x="category", y="Amount", color="Series", barmode="group")
    fig.update_layout(
        title=title or "Budget vs actual",
        xaxis_title="Category",
        yaxis_title="Amount",
    )
    return fig
