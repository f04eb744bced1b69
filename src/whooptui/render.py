"""Terminal charts for WHOOP profile, sleep, recovery, and strain data.

Records are vendor payloads passed through as plain dicts. Every field is
read defensively with :func:`dig`; anything missing or non-numeric renders
as ``-`` (or an empty bar) instead of raising.

All output goes to stdout through the global
:class:`~whooptui.output.OutputManager`. Callers print the raw payload
instead when JSON output is requested.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Any, Optional

from rich.markup import escape

from whooptui.output import get_output

BAR_WIDTH = 28
MAX_STRAIN = 21.0
MAX_IN_BED_HOURS = 12.0
MIN_HRV_SCALE = 60.0
MS_PER_HOUR = 3_600_000


# --- Value helpers ---


def dig(record: Any, *keys: str) -> Any:
    """Return ``record[k1][k2]...`` or ``None`` if any level is missing."""
    current = record
    for key in keys:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def as_number(value: Any) -> Optional[float]:
    """Coerce *value* to a finite float, or ``None``."""
    if isinstance(value, bool) or value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def bar(value: Optional[float], maximum: float, width: int = BAR_WIDTH, color: str = "white") -> str:
    """Return a Rich-markup bar of *width* cells filled to ``value / maximum``."""
    if maximum <= 0:
        maximum = 1.0
    safe = min(max(value or 0.0, 0.0), maximum)
    fill = round(safe / maximum * width)
    empty = max(0, width - fill)
    return f"[{color}]{'█' * fill}[/{color}][grey50]{'░' * empty}[/grey50]"


def ms_to_hours(ms: Any) -> str:
    number = as_number(ms)
    if not number:
        return "-"
    return f"{number / MS_PER_HOUR:.2f}h"


def _parse_iso(iso: Any) -> Optional[datetime]:
    if not isinstance(iso, str) or not iso:
        return None
    try:
        return datetime.fromisoformat(iso.replace("Z", "+00:00"))
    except ValueError:
        return None


def fmt_date(iso: Any) -> str:
    """Format an ISO timestamp in local time, or ``-``."""
    parsed = _parse_iso(iso)
    if parsed is None:
        return "-"
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone()
    return parsed.strftime("%Y-%m-%d %H:%M")


def day_label(iso: Any) -> str:
    """Short weekday label such as ``Mon, Mar 04``; ``unknown`` when absent."""
    parsed = _parse_iso(iso)
    if parsed is None:
        return "unknown"
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone()
    return parsed.strftime("%a, %b %d")


def _fmt(value: Optional[float], digits: int = 1, suffix: str = "") -> str:
    if value is None or value == 0:
        return "-"
    return f"{value:.{digits}f}{suffix}"


def _raw(value: Any) -> str:
    return "-" if value is None else escape(str(value))


# --- Renderers ---


def render_profile(profile: dict[str, Any]) -> None:
    output = get_output()
    name = " ".join(
        str(part) for part in (profile.get("first_name"), profile.get("last_name")) if part
    )
    output.print_markup("\n[bold]Profile[/bold]")
    output.print_markup(f"• {escape(name) or '-'}")
    output.print_markup(f"• {_raw(profile.get('email'))}")
    output.print_markup(f"• user_id: {_raw(profile.get('user_id'))}")


def render_sleep(records: list[dict[str, Any]]) -> None:
    """Sleep performance, efficiency, and time in bed per sleep."""
    output = get_output()
    output.print_markup(f"\n[bold]Sleep (last {len(records)})[/bold]")
    for r in records:
        perf = as_number(dig(r, "score", "sleep_performance_percentage")) or 0.0
        eff = as_number(dig(r, "score", "sleep_efficiency_percentage")) or 0.0
        in_bed_ms = as_number(dig(r, "score", "stage_summary", "total_in_bed_time_milli")) or 0.0
        in_bed_hours = in_bed_ms / MS_PER_HOUR
        nap = " (nap)" if r.get("nap") else ""

        output.print_markup(
            f"\n[cyan]{day_label(r.get('start'))}  {fmt_date(r.get('start'))} → "
            f"{fmt_date(r.get('end'))}{nap}[/cyan]"
        )
        output.print_markup(f"  perf  {bar(perf, 100, color='blue')} {perf:>3.0f}%")
        output.print_markup(f"  eff   {bar(eff, 100, color='green')} {eff:>3.0f}%")
        output.print_markup(
            f"  bed   {bar(in_bed_hours, MAX_IN_BED_HOURS, color='magenta')} {in_bed_hours:.1f}h"
        )
        awake = ms_to_hours(dig(r, "score", "stage_summary", "total_awake_time_milli"))
        disturbances = _raw(dig(r, "score", "stage_summary", "disturbance_count"))
        output.print_markup(f"  awake {awake} | disturbances: {disturbances}")


def render_recovery(records: list[dict[str, Any]]) -> None:
    """Recovery score and HRV per cycle; the HRV bar scales to the largest value shown."""
    output = get_output()
    hrv_values = [
        v for v in (as_number(dig(r, "score", "hrv_rmssd_milli")) for r in records) if v and v > 0
    ]
    hrv_max = max([MIN_HRV_SCALE, *hrv_values])

    output.print_markup(f"\n[bold]Recovery (last {len(records)})[/bold]")
    for r in records:
        rec = as_number(dig(r, "score", "recovery_score")) or 0.0
        hrv = as_number(dig(r, "score", "hrv_rmssd_milli"))

        output.print_markup(
            f"\n[cyan]{day_label(r.get('created_at'))}  {fmt_date(r.get('created_at'))}[/cyan]"
        )
        output.print_markup(f"  rec   {bar(rec, 100, color='green')} {rec:>3.0f}%")
        output.print_markup(f"  hrv   {bar(hrv, hrv_max, color='yellow')} {_fmt(hrv)} ms")
        rhr = _raw(dig(r, "score", "resting_heart_rate"))
        spo2 = _raw(dig(r, "score", "spo2_percentage"))
        output.print_markup(f"  RHR: {rhr} bpm | SpO2: {spo2}%")


def render_strain(records: list[dict[str, Any]]) -> None:
    """Day strain (0-21) and heart rate per cycle."""
    output = get_output()
    output.print_markup(f"\n[bold]Strain (last {len(records)} cycles)[/bold]")
    for r in records:
        strain = as_number(dig(r, "score", "strain"))
        output.print_markup(
            f"\n[cyan]{day_label(r.get('start'))}  {fmt_date(r.get('start'))}[/cyan]"
        )
        output.print_markup(f"  strain {bar(strain, MAX_STRAIN, color='red')} {_fmt(strain)}")
        avg_hr = _raw(dig(r, "score", "average_heart_rate"))
        max_hr = _raw(dig(r, "score", "max_heart_rate"))
        output.print_markup(f"  avg HR: {avg_hr} bpm | max HR: {max_hr} bpm")


def render_next_token(next_token: Optional[str]) -> None:
    """Tell the user how to fetch the next page, if there is one."""
    if next_token:
        get_output().suggest(f"More records available: --next {next_token}")
