"""Water intake tracking."""

DEFAULT_CUP_ML = 250
OVERFLOW_ML = 1000


def add_cup(
    consumed_ml: float, target_ml: float, cup_ml: float = DEFAULT_CUP_ML
) -> float:
    """Add one cup, capped at the target plus a fixed overflow."""
    return min(consumed_ml + cup_ml, target_ml + OVERFLOW_ML)


def remove_cup(consumed_ml: float, cup_ml: float = DEFAULT_CUP_ML) -> float:
    """Remove one cup, never going below zero."""
    return max(0.0, consumed_ml - cup_ml)


def progress_percent(consumed_ml: float, target_ml: float) -> float:
    """Share of the target consumed, capped at 100."""
    if target_ml <= 0:
        return 100.0
    return min(consumed_ml / target_ml * 100, 100.0)


def hourly_goal(
    target_ml: float, wake_time: str = "08:00", bed_time: str = "22:00"
) -> int:
    """Millilitres to drink per waking hour, wrapping past midnight."""
    start_hour = int(wake_time.split(":")[0])
    end_hour = int(bed_time.split(":")[0])
    if end_hour > start_hour:
        total_hours = end_hour - start_hour
    else:
        total_hours = 24 - start_hour + end_hour
    return round(target_ml / (total_hours if total_hours > 0 else 1))
