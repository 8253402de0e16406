import math
from collections import Counter
from datetime import datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.chat_experience import ChatExperience

DAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
BUSINESS_HOUR_BUCKETS = [
    ("9 AM - 12 PM", 9, 12),
    ("12 PM - 3 PM", 12, 15),
    ("3 PM - 6 PM", 15, 18),
    ("6 PM - 9 PM", 18, 21),
]


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def period_bounds(period: str, now: datetime) -> tuple[datetime, datetime, datetime]:
    """Return (current_start, previous_start, previous_end) for a period."""
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    if period == "day":
        return midnight, midnight - timedelta(days=1), midnight
    if period == "month":
        start = midnight.replace(day=1)
        previous_start = (start - timedelta(days=1)).replace(day=1)
        return start, previous_start, start
    start = midnight - timedelta(days=now.weekday())
    return start, start - timedelta(days=7), start


def format_hour(hour: int) -> str:
    display = hour % 12 or 12
    suffix = "AM" if hour < 12 else "PM"
    return f"{display}:00 {suffix}"


def percent_change(current: int, previous: int) -> float:
    if previous > 0:
        change = (current - previous) / previous * 100
    else:
        change = 100.0 if current > 0 else 0.0
    return round(change, 1)


def _peak(counter: Counter) -> tuple[int | None, int]:
    best_key, best_count = None, 0
    for key in sorted(counter):
        if counter[key] > best_count:
            best_key, best_count = key, counter[key]
    return best_key, best_count


def compute_dashboard_analytics(db: Session, period: str, *, now: datetime | None = None) -> dict:
    now = now or datetime.now(timezone.utc)
    start, previous_start, previous_end = period_bounds(period, now)

    current_rows = list(
        db.execute(
            select(ChatExperience).where(
                ChatExperience.created_at >= start,
                ChatExperience.created_at <= now,
            )
        ).scalars()
    )
    previous_total = len(
        db.execute(
            select(ChatExperience.id).where(
                ChatExperience.created_at >= previous_start,
                ChatExperience.created_at < previous_end,
            )
        ).all()
    )

    hour_counts: Counter = Counter()
    weekday_counts: Counter = Counter()
    mood_counts: Counter = Counter()
    type_counts: Counter = Counter()
    created = [_as_utc(row.created_at) for row in current_rows]
    for row, created_at in zip(current_rows, created):
        hour_counts[created_at.hour] += 1
        weekday_counts[created_at.weekday()] += 1
        if row.customer_mood:
            mood_counts[row.customer_mood] += 1
        if row.type:
            type_counts[row.type] += 1

    peak_hour, peak_hour_count = _peak(hour_counts)
    peak_hour_label = (
        f"{format_hour(peak_hour)} - {format_hour((peak_hour + 1) % 24)}"
        if peak_hour_count
        else "N/A"
    )
    peak_day, peak_day_count = _peak(weekday_counts)

    hourly_data: list[int] = []
    daily_data: list[int] = []
    weekly_data: list[int] = []
    if period == "day":
        hourly_data = [hour_counts.get(hour, 0) for hour in range(24)]
    elif period == "week":
        daily_data = [weekday_counts.get(day, 0) for day in range(7)]
    else:
        weekly_data = [0] * math.ceil(now.day / 7)
        for created_at in created:
            index = (created_at.day - 1) // 7
            if index < len(weekly_data):
                weekly_data[index] += 1

    buckets = []
    for label, first_hour, end_hour in BUSINESS_HOUR_BUCKETS:
        count = sum(hour_counts.get(hour, 0) for hour in range(first_hour, end_hour))
        buckets.append({"time": label, "count": count})
    in_range = sum(bucket["count"] for bucket in buckets)
    for bucket in buckets:
        bucket["percentage"] = round(bucket["count"] / in_range * 100) if in_range else 0

    max_day = max(list(weekday_counts.values()) + [1])
    weekly_performance = [round(weekday_counts.get(day, 0) / max_day * 100) for day in range(7)]

    return {
        "total_chats": len(current_rows),
        "previous_total": previous_total,
        "change": percent_change(len(current_rows), previous_total),
        "peak_hour": peak_hour_label,
        "peak_day": DAY_NAMES[peak_day] if peak_day_count else "N/A",
        "hourly_data": hourly_data,
        "daily_data": daily_data,
        "weekly_data": weekly_data,
        "mood_counts": dict(mood_counts),
        "type_counts": dict(type_counts),
        "hourly_distribution": buckets,
        "weekly_performance": weekly_performance,
    }
