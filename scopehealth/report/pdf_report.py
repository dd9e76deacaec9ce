from __future__ import annotations

from pathlib import Path
from typing import Sequence

import pandas as pd
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from scopehealth.core.models import Alert, HealthStatus, SystemHealthOverview, UpcomingMaintenance


def _wrap_lines(c: canvas.Canvas, text: str, max_width: float, font_name: str, font_size: int) -> list[str]:
    c.setFont(font_name, font_size)
    words = (text or "").split()
    if not words:
        return [""]

    lines: list[str] = []
    current = words[0]
    for w in words[1:]:
        candidate = f"{current} {w}"
        if c.stringWidth(candidate, font_name, font_size) <= max_width:
            current = candidate
        else:
            lines.append(current)
            current = w
    lines.append(current)
    return lines


def _draw_wrapped(
    c: canvas.Canvas,
    x: float,
    y: float,
    text: str,
    max_width: float,
    line_height: int = 13,
    font_name: str = "Helvetica",
    font_size: int = 10,
) -> float:
    c.setFont(font_name, font_size)
    for line in _wrap_lines(c, text, max_width, font_name, font_size):
        c.drawString(x, y, line)
        y -= line_height
    return y


def _draw_sparkline(
    c: canvas.Canvas,
    x: float,
    y: float,
    w: float,
    h: float,
    values: list[float] | None,
) -> None:
    """
    Tiny score-history polyline, scaled to the 0..100 score range so rows
    are comparable at a glance.
    """
    if not values:
        return
    vals = [float(v) for v in values if isinstance(v, (int, float))]
    if len(vals) < 2:
        return

    y0 = y - (h * 0.6)
    dx = w / (len(vals) - 1)

    last_x = x
    last_y = y0 + (max(0.0, min(100.0, vals[0])) / 100.0) * h
    for i in range(1, len(vals)):
        xx = x + i * dx
        yy = y0 + (max(0.0, min(100.0, vals[i])) / 100.0) * h
        c.line(last_x, last_y, xx, yy)
        last_x, last_y = xx, yy


def _draw_footer(c: canvas.Canvas, page_w: float, y: float, text: str, left: float, right: float) -> None:
    c.setFont("Helvetica", 8)
    c.drawRightString(page_w - right, y, text)
    c.drawString(left, y, "ScopeHealth")


def _overview_line(o: SystemHealthOverview) -> str:
    return (
        f"Components: {o.total_components} | Healthy: {o.healthy_components} | "
        f"Warning: {o.warning_components} | Critical: {o.critical_components} | "
        f"Offline: {o.offline_components} | Score: {o.overall_score}/100 | "
        f"Active alerts: {o.active_alerts} | Upcoming maintenance: {o.upcoming_maintenance}"
    )


def _worst_alerts(latest: Sequence[HealthStatus], limit: int = 5) -> list[Alert]:
    active = [a for h in latest for a in h.active_alerts()]
    return sorted(active, key=lambda a: (-a.severity.rank, a.component_id))[:limit]


def write_pdf_report(
    out_path: str | Path,
    *,
    fleet_df: pd.DataFrame,
    verdict: str,
    overview: SystemHealthOverview,
    latest: Sequence[HealthStatus],
    upcoming: Sequence[UpcomingMaintenance],
    generated_at: str | None = None,
    notes: list[str] | None = None,
    decision_version: str | None = None,
) -> Path:
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    c = canvas.Canvas(str(out_path), pagesize=letter)
    page_w, page_h = letter

    left = 34
    right = 44
    max_width = page_w - left - right

    # Fleet table column widths (sum must stay <= max_width)
    COL_W = {
        "component": 74,
        "trend": 48,
        "score": 32,
        "level": 50,
        "risk": 40,
        "alert": 136,
        "action": 92,
        "maint": 58,
    }
    order = ["component", "trend", "score", "level", "risk", "alert", "action", "maint"]
    X = {}
    x = left
    for k in order:
        X[k] = x
        x += COL_W[k]

    footer_text = f"Generated {generated_at}" if generated_at else ""

    # ======================
    # PAGE 1 - EQUIPMENT OVERVIEW
    # ======================
    y = page_h - 60
    c.setFont("Helvetica-Bold", 18)
    c.drawString(left, y, "ScopeHealth Equipment Overview")
    y -= 26

    c.setFont("Helvetica", 10)
    if generated_at:
        c.drawString(left, y, f"Generated: {generated_at}")
        y -= 14
    if decision_version:
        c.drawString(left, y, f"Decision version: {decision_version}")
        y -= 14
    y = _draw_wrapped(c, left, y, _overview_line(overview), max_width, line_height=12)
    y -= 12

    c.setFont("Helvetica-Bold", 12)
    c.drawString(left, y, "Fleet Verdict")
    y -= 16
    y = _draw_wrapped(c, left, y, verdict, max_width, line_height=14, font_size=11)
    y -= 10

    alerts = _worst_alerts(latest)
    if alerts:
        c.setFont("Helvetica-Bold", 11)
        c.drawString(left, y, "Top Alerts")
        y -= 14
        for a in alerts:
            line = f"{a.component_id} [{a.severity.value.upper()}] {a.type.value}: {a.message}"
            y = _draw_wrapped(c, left, y, line, max_width, line_height=11, font_size=9)
            y -= 2
        y -= 6

    c.setFont("Helvetica-Bold", 9)
    c.drawString(X["component"], y, "Component")
    c.drawString(X["trend"], y, "Trend")
    c.drawString(X["score"], y, "Score")
    c.drawString(X["level"], y, "Level")
    c.drawString(X["risk"], y, "Risk")
    c.drawString(X["alert"], y, "Top Alert")
    c.drawString(X["action"], y, "Action")
    c.drawString(X["maint"], y, "Maint. due")
    y -= 14

    c.setFont("Helvetica", 9)
    if fleet_df.empty:
        c.drawString(left, y, "No fleet data available.")
        y -= 14
    else:
        for _, r in fleet_df.iterrows():
            if y < 96:
                _draw_footer(c, page_w, 24, footer_text, left, right)
                c.showPage()
                y = page_h - 60
                c.setFont("Helvetica-Bold", 12)
                c.drawString(left, y, "ScopeHealth Equipment Overview (cont.)")
                y -= 24
                c.setFont("Helvetica", 9)

            level = str(r["overall"])
            is_down = level in ("critical", "offline")
            label = f"! {r['component_id']}" if is_down else str(r["component_id"])

            y_comp = _draw_wrapped(
                c, X["component"], y, label,
                max_width=COL_W["component"] - 4, line_height=11,
                font_name="Helvetica-Bold" if is_down else "Helvetica", font_size=9,
            )
            c.setFont("Helvetica", 9)

            trend = r.get("trend", None)
            c.setLineWidth(0.6)
            _draw_sparkline(
                c, X["trend"], y,
                w=COL_W["trend"] - 6, h=10,
                values=trend if isinstance(trend, list) else None,
            )

            c.drawString(X["score"], y, str(int(r["score"])))
            c.drawString(X["level"], y, level)
            c.drawString(X["risk"], y, str(r["failure_risk"]))

            y_alert = _draw_wrapped(
                c, X["alert"], y, str(r.get("top_alert", "")),
                max_width=COL_W["alert"] - 4, line_height=11, font_size=9,
            )
            y_action = _draw_wrapped(
                c, X["action"], y, str(r.get("action", "")),
                max_width=COL_W["action"] - 4, line_height=10, font_size=8,
            )
            c.setFont("Helvetica", 9)
            c.drawString(X["maint"], y, str(r.get("next_maintenance", "")))

            y = min(y_comp, y_alert, y_action) - 8

    _draw_footer(c, page_w, 24, footer_text, left, right)

    # ==========================
    # PAGE 2 - COMPONENT DETAIL
    # ==========================
    c.showPage()
    y = page_h - 60
    c.setFont("Helvetica-Bold", 18)
    c.drawString(left, y, "Component Detail")
    y -= 30

    if not latest:
        c.setFont("Helvetica", 10)
        c.drawString(left, y, "No health records yet.")
    for h in latest:
        if y < 150:
            _draw_footer(c, page_w, 24, footer_text, left, right)
            c.showPage()
            y = page_h - 60

        m = h.metrics
        p = h.predictions
        perf = h.performance
        t = h.trends

        c.setFont("Helvetica-Bold", 11)
        c.drawString(left, y, f"{h.component.name} ({h.component.id})  {h.overall.value.upper()}  {h.score}/100")
        y -= 14

        lines = [
            f"Temperature {m.temperature:.1f}°C ({t.temperature.value}) | Power {m.power:.1f} W ({t.power.value}) | "
            f"Accuracy {m.accuracy:.2f}\" ({t.accuracy.value}) | Response {m.response_time:.0f} ms ({t.response_time.value})",
            f"Next maintenance {p.next_maintenance:%Y-%m-%d} | Next calibration {p.next_calibration:%Y-%m-%d} | "
            f"Life remaining {p.estimated_life_remaining:.0f} h | Failure risk {p.failure_risk.value}",
            f"Uptime {perf.uptime:.2f}% | Reliability {perf.reliability:.2f}% | "
            f"Efficiency {perf.efficiency:.2f}% | MTBF {perf.mtbf} h",
        ]
        if p.recommended_actions:
            lines.append("Actions: " + "; ".join(p.recommended_actions))

        for line in lines:
            y = _draw_wrapped(c, left + 14, y, line, max_width - 14, line_height=12, font_size=9)

        c.setLineWidth(0.3)
        c.line(left, y + 4, page_w - right, y + 4)
        y -= 14

    _draw_footer(c, page_w, 24, footer_text, left, right)

    # ======================
    # PAGE 3 - MAINTENANCE
    # ======================
    c.showPage()
    y = page_h - 60
    c.setFont("Helvetica-Bold", 14)
    c.drawString(left, y, "Upcoming Maintenance")
    y -= 22

    c.setFont("Helvetica", 10)
    if not upcoming:
        c.drawString(left, y, "Nothing scheduled.")
        y -= 14
    for u in upcoming:
        if y < 80:
            _draw_footer(c, page_w, 24, footer_text, left, right)
            c.showPage()
            y = page_h - 60
            c.setFont("Helvetica", 10)
        c.drawString(left, y, f"{u.due_date:%Y-%m-%d}  {u.type:<12} {u.component.name} ({u.component.id})")
        y -= 13

    if notes:
        y -= 14
        c.setFont("Helvetica-Bold", 12)
        c.drawString(left, y, "Data Notes")
        y -= 14
        for n in notes:
            y = _draw_wrapped(c, left, y, f"- {n}", max_width, line_height=13, font_size=10)

    _draw_footer(
        c, page_w, 24,
        f"Decision version {decision_version}" if decision_version else footer_text,
        left, right,
    )

    c.save()
    return out_path
