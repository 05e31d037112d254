"""SVG status badge rendering."""

from __future__ import annotations

from .models import CheckStatus

BADGE_COLORS = {
    CheckStatus.UP: "#4ade80",
    CheckStatus.DEGRADED: "#fbbf24",
}
DOWN_COLOR = "#f87171"

_TEMPLATE = """<svg xmlns="http://www.w3.org/2000/svg" width="160" height="20">
  <rect width="60" height="20" fill="#555"/>
  <rect x="60" width="50" height="20" fill="{color}"/>
  <rect x="110" width="50" height="20" fill="#555"/>
  <text x="30" y="14" fill="#fff" font-family="Arial" font-size="11" text-anchor="middle">status</text>
  <text x="85" y="14" fill="#fff" font-family="Arial" font-size="11" text-anchor="middle">{label}</text>
  <text x="135" y="14" fill="#fff" font-family="Arial" font-size="11" text-anchor="middle">{uptime:.1f}%</text>
</svg>"""  # noqa: E501


def render_badge(status: str, uptime: float) -> str:
    return _TEMPLATE.format(
        color=BADGE_COLORS.get(status, DOWN_COLOR),
        label=str(status).upper(),
        uptime=uptime,
    )


__all__ = ["BADGE_COLORS", "DOWN_COLOR", "render_badge"]
