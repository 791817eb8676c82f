"""
IOB / activity plots for the built-in insulin templates.

Generates one figure per template with a 1 U bolus, a 1 U extended bolus
over 1 h and a 200 % temp basal for 1 h (scheduled basal 1 U/h):
1. IOB per dose type
2. Activity per dose type

Requires the ``plot`` extra (matplotlib).
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List

import pandas as pd
import matplotlib.pyplot as plt

from insulin_logic import (
    Bolus,
    ExtendedDose,
    InsulinProfile,
    InsulinTemplate,
    TemporaryRate,
    iob_timeline,
)
from insulin_logic.config import MS_PER_HOUR, MS_PER_MINUTE

START = datetime(2025, 1, 1, 8, 0, tzinfo=timezone.utc)
TEMPLATES = [InsulinTemplate.RAPID_ACTING, InsulinTemplate.ULTRA_RAPID_ACTING, InsulinTemplate.LYUMJEV]


def build_series(profile: InsulinProfile) -> Dict[str, pd.DataFrame]:
    start_ms = int(START.timestamp() * 1000)
    end_ms = start_ms + profile.duration_of_action_ms + 2 * MS_PER_HOUR
    doses = {
        "Bolus 1 U": [Bolus(start_ms, 1.0, profile)],
        "Extended 1 U / 1 h": [ExtendedDose(start_ms, MS_PER_HOUR, 1.0, profile)],
        "Temp basal 200% / 1 h": [TemporaryRate(start_ms, MS_PER_HOUR, 200.0, False, profile)],
    }
    return {
        name: iob_timeline(events, start_ms, end_ms, 5 * MS_PER_MINUTE, basal_lookup=lambda ts: 1.0)
        for name, events in doses.items()
    }


def plot_template(profile: InsulinProfile, series: Dict[str, pd.DataFrame], out: Path):
    """IOB and activity panels for one profile."""

    fig = plt.figure(figsize=(12, 8))
    gs = fig.add_gridspec(2, 1, height_ratios=[1.5, 1.0], hspace=0.3)
    colors = ["purple", "green", "blue"]

    ax1 = fig.add_subplot(gs[0])
    for (name, df), color in zip(series.items(), colors):
        ax1.plot(df.index, df["iob"], color, linewidth=2.5, alpha=0.8, label=name)
    ax1.axvline(START, color="gray", linestyle=":", alpha=0.5, linewidth=1.5)
    ax1.set_ylabel("IOB (U)", fontsize=12, fontweight="bold")
    ax1.legend(loc="upper right", fontsize=10)
    ax1.grid(True, alpha=0.3)
    ax1.set_ylim(-0.05, 1.05)
    ax1.set_title(
        f"{profile.label}: peak {profile.peak_minutes} min, DIA {profile.dia_hours} h",
        fontsize=14,
        fontweight="bold",
    )

    ax2 = fig.add_subplot(gs[1], sharex=ax1)
    for (name, df), color in zip(series.items(), colors):
        ax2.plot(df.index, df["activity"], color, linewidth=2.0, alpha=0.8, label=name)
    ax2.set_ylabel("Activity (U/min)", fontsize=11, fontweight="bold")
    ax2.set_xlabel("Time (UTC)", fontsize=11)
    ax2.legend(loc="upper right", fontsize=9)
    ax2.grid(True, alpha=0.3)

    out.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(out, dpi=150, bbox_inches="tight")
    plt.close(fig)


def main():
    """Generate one plot per template."""
    out_dir = Path(__file__).parent / "iob_plots"
    profiles: List[InsulinProfile] = [InsulinProfile.from_template(t, dia_hours=6.0) for t in TEMPLATES]

    print("=" * 80)
    print("IOB CURVE PLOTS")
    print("=" * 80)
    print(f"\nTemplates: {len(profiles)}")
    print(f"Output: {out_dir}/")

    for profile in profiles:
        series = build_series(profile)
        peak_activity = {name: df["activity"].idxmax().strftime("%H:%M") for name, df in series.items()}
        print(f"\n {profile.label}")
        for name, ts in peak_activity.items():
            print(f"   Peak activity {name:<24} at {ts}")

        out = out_dir / f"iob_{profile.template.name.lower()}.png"
        plot_template(profile, series, out)
        print(f"     - {out.name}")

    print("\n" + "=" * 80)
    print("PLOTS COMPLETE!")
    print("=" * 80)


if __name__ == "__main__":
    main()
