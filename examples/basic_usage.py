"""
Basic usage example for the insulin IOB engine.

Demonstrates:
- Defining insulin profiles (U100 and U200)
- Recording a bolus, an extended bolus and a relative temp basal
- Computing IOB / activity at a point in time
- Showing pump amounts next to normalized units
"""

from datetime import datetime, timedelta, timezone
import logging

from concentration_ctx import convert_amount, format_for_display
from insulin_logic import (
    Bolus,
    ExerciseAdjustment,
    ExtendedDose,
    InsulinProfile,
    InsulinTemplate,
    TemporaryRate,
    compute_iob,
    iob_timeline,
)


def scheduled_basal(timestamp_ms: int) -> float:
    """0.8 U/h at night, 1.0 U/h during the day."""
    hour = datetime.fromtimestamp(timestamp_ms / 1000.0, tz=timezone.utc).hour
    return 1.0 if 6 <= hour < 22 else 0.8


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    print("=" * 60)
    print("Insulin IOB Engine - Basic Usage Example")
    print("=" * 60)

    # 1. Profiles
    print("\n1. Insulin profiles...")
    fiasp = InsulinProfile.from_template(InsulinTemplate.ULTRA_RAPID_ACTING, dia_hours=6.0, label="Fiasp")
    fiasp_u200 = fiasp.with_concentration(2.0)
    for p in (fiasp, fiasp_u200):
        print(f"   - {p.label}: peak {p.peak_minutes} min, DIA {p.dia_hours} h, factor {p.concentration_factor}")

    # 2. Dose history
    print("\n2. Dose history...")
    start = datetime(2025, 1, 1, 7, 0, tzinfo=timezone.utc)
    pump_bolus = convert_amount(2.5, fiasp_u200.concentration_factor)
    events = [
        Bolus(start, pump_bolus.normalized_units, fiasp_u200),
        ExtendedDose(start + timedelta(minutes=30), 2 * 3_600_000, 2.0, fiasp_u200),
        TemporaryRate(start + timedelta(hours=1), 3_600_000, 150.0, False, fiasp_u200),
    ]
    print(f"   - Bolus: {pump_bolus.concentrated_units} pump units = {pump_bolus.normalized_units} U")
    print(f"   - Extended: 2.0 U over 2 h")
    print(f"   - Temp basal: 150% for 1 h")

    # 3. IOB now
    print("\n3. IOB at 09:00...")
    now = start + timedelta(hours=2)
    total = compute_iob(now, events, basal_lookup=scheduled_basal)
    print(f"   - IOB: {total.iob_units:.2f} U (bolus {total.bolus_iob_units:.2f}, basal {total.basal_iob_units:.2f})")
    print(f"   - Activity: {total.activity_units_per_min:.4f} U/min")

    # same history during exercise with a 140 mg/dL temp target
    exercise = ExerciseAdjustment(exercise_mode=True, target_mgdl=140.0, is_temp_target=True)
    ex_total = compute_iob(now, events, basal_lookup=scheduled_basal, exercise=exercise)
    print(f"   - With exercise target: {ex_total.iob_units:.2f} U (ratio {exercise.sensitivity_ratio():.2f})")

    # 4. Display
    print("\n4. Display...")
    shown = format_for_display(total.iob_units, fiasp_u200, bolus_step=0.05)
    print(
        f"   - {shown.normalized_units:.2f} U "
        f"({shown.concentrated_units:.2f} pump units {shown.concentration_label}, {shown.volume_ul:.1f} µl)"
    )

    # 5. Timeline
    print("\n5. Hourly timeline...")
    df = iob_timeline(events, start, start + timedelta(hours=8), 3_600_000, basal_lookup=scheduled_basal)
    print("   Time  |  IOB  | Activity")
    print("   " + "-" * 28)
    for ts, row in df.iterrows():
        print(f"   {ts.strftime('%H:%M')} | {row['iob']:5.2f} | {row['activity']:.4f}")

    print("\n" + "=" * 60)
    print("Done!")
    print("=" * 60)


if __name__ == "__main__":
    main()
