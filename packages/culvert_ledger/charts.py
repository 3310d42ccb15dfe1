"""Chart.js configs and PNG rendering through QuickChart.

The builders return plain dicts (Chart.js v2/v3 line-chart configs) so they
can be inspected in tests; :class:`ChartRenderer` turns a config into PNG
bytes. ``None`` values in a dataset stay ``null`` in the JSON and render as
gaps.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

import requests

from .errors import UpstreamFailure
from .logging_setup import get_logger
from .models import MaybeValue

DEFAULT_QUICKCHART_URL = "https://quickchart.io/chart"

_BLUE = ("#2f80ed", "rgba(47, 128, 237, 0.15)")
_RED = ("#eb5757", "rgba(235, 87, 87, 0.15)")
_GREEN = ("#27ae60", "rgba(39, 174, 96, 0.15)")

_logger = get_logger("culvert_ledger.charts")


def _dataset(label: str, data: Sequence[MaybeValue], colors: tuple[str, str]) -> dict[str, Any]:
    border, background = colors
    return {
        "label": label,
        "data": list(data),
        "borderColor": border,
        "backgroundColor": background,
        "pointRadius": 3,
        "fill": False,
        "tension": 0.25,
    }


def _line_chart(
    labels: Sequence[str],
    datasets: list[dict[str, Any]],
    *,
    title: str,
    y_title: str,
    x_title: str,
    legend: bool,
) -> dict[str, Any]:
    return {
        "type": "line",
        "data": {"labels": list(labels), "datasets": datasets},
        "options": {
            "plugins": {
                "title": {"display": True, "text": title},
                "legend": {"display": legend},
            },
            "scales": {
                "y": {"title": {"display": True, "text": y_title}},
                "x": {"title": {"display": True, "text": x_title}},
            },
        },
    }


def user_progress_config(
    username: str, labels: Sequence[str], values: Sequence[float]
) -> dict[str, Any]:
    ds = _dataset(f"{username} Culvert", values, _BLUE)
    ds["pointHoverRadius"] = 4
    return _line_chart(
        labels,
        [ds],
        title=f"{username} Culvert Progression",
        y_title="Culvert Score",
        x_title="Date",
        legend=False,
    )


def compare_config(
    user_a: str,
    user_b: str,
    labels: Sequence[str],
    values_a: Sequence[MaybeValue],
    values_b: Sequence[MaybeValue],
) -> dict[str, Any]:
    return _line_chart(
        labels,
        [
            _dataset(f"{user_a} Culvert", values_a, _BLUE),
            _dataset(f"{user_b} Culvert", values_b, _RED),
        ],
        title=f"{user_a} vs {user_b} Culvert Progression",
        y_title="Culvert Score",
        x_title="Date",
        legend=True,
    )


def cumulative_config(labels: Sequence[str], values: Sequence[float]) -> dict[str, Any]:
    return _line_chart(
        labels,
        [_dataset("Cumulative Weekly Culvert", values, _GREEN)],
        title="Cumulative Weekly Culvert Scores",
        y_title="Total Score",
        x_title="Week Date",
        legend=False,
    )


@dataclass(slots=True)
class ChartRenderer:
    """Render chart configs to PNG via a QuickChart-compatible endpoint."""

    base_url: str = DEFAULT_QUICKCHART_URL
    timeout: float = 30.0
    session: requests.Session = field(default_factory=requests.Session)

    def render(self, config: dict[str, Any], *, width: int = 1100, height: int = 550) -> bytes:
        params = {
            "width": str(width),
            "height": str(height),
            "format": "png",
            "backgroundColor": "white",
            "c": json.dumps(config, separators=(",", ":")),
        }
        try:
            resp = self.session.get(self.base_url, params=params, timeout=self.timeout)
        except requests.RequestException as exc:
            raise UpstreamFailure(f"Failed to render chart image: {exc}") from exc
        if not 200 <= resp.status_code < 300:
            raise UpstreamFailure(
                f"Failed to render chart image (HTTP {resp.status_code})",
                status=resp.status_code,
            )
        _logger.debug("rendered chart %dx%d (%d bytes)", width, height, len(resp.content))
        return resp.content


__all__ = [
    "ChartRenderer",
    "DEFAULT_QUICKCHART_URL",
    "compare_config",
    "cumulative_config",
    "user_progress_config",
]
