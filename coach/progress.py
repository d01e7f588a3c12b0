"""
Progress statistics derived from session history.

The pure functions take plain sequences so they can be used on querysets or
in tests; :func:`progress_summary` loads a user's rows and combines them.
"""

from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Sequence

from django.contrib.auth.models import User
from django.utils import timezone

from .models import FocusSession, PracticeSession, UserProfile


def _local_date(moment: datetime) -> date:
    """Calendar date of ``moment`` in the active time zone."""
    if timezone.is_aware(moment):
        return timezone.localtime(moment).date()
    return moment.date()


def average_score(scores: Iterable[float]) -> int:
    """Arithmetic mean of ``scores`` rounded to the nearest integer; 0 if empty."""
    values = list(scores)
    if not values:
        return 0
    # halves round up (80.5 -> 81), unlike round()
    return int(sum(values) / len(values) + 0.5)


def day_label(day: date) -> str:
    """Short chart label such as ``"Oct 18"``."""
    return f"{day:%b} {day.day}"


def score_series(sessions: Iterable[Any]) -> List[Dict[str, Any]]:
    """
    Average score per calendar day, oldest first.

    Args:
        sessions: Objects with ``date`` (datetime) and ``score`` attributes

    Returns:
        ``[{'date': 'Oct 18', 'score': 80}, ...]`` ordered by timestamp
    """
    buckets: Dict[date, Dict[str, Any]] = {}
    for session in sessions:
        day = _local_date(session.date)
        bucket = buckets.setdefault(day, {'total': 0.0, 'count': 0, 'first': session.date})
        bucket['total'] += session.score
        bucket['count'] += 1
        bucket['first'] = min(bucket['first'], session.date)

    ordered = sorted(buckets.items(), key=lambda item: item[1]['first'])
    return [
        {'date': day_label(day), 'score': average_score([b['total'] / b['count']])}
        for day, b in ordered
    ]


def current_streak(practice_dates: Iterable[date], today: Optional[date] = None) -> int:
    """
    Consecutive practice days ending today or yesterday.

    The streak is 0 when the most recent practice day is older than
    yesterday; otherwise days are counted backward from that day until the
    first gap.
    """
    today = today or timezone.localdate()
    days = sorted(set(practice_dates), reverse=True)
    if not days:
        return 0
    if days[0] not in (today, today - timedelta(days=1)):
        return 0

    streak = 0
    expected = days[0]
    for day in days:
        if day != expected:
            break
        streak += 1
        expected = day - timedelta(days=1)
    return streak


def session_streak(sessions: Iterable[Any], today: Optional[date] = None) -> int:
    """Streak computed from session timestamps in local time."""
    return current_streak((_local_date(s.date) for s in sessions), today)


def focus_minutes_today(
    focus_sessions: Iterable[Any], today: Optional[date] = None
) -> int:
    """Minutes of focus sessions recorded on ``today``."""
    today = today or timezone.localdate()
    return sum(f.minutes for f in focus_sessions if _local_date(f.date) == today)


def summarize(
    sessions: Sequence[Any],
    focus_sessions: Sequence[Any],
    daily_goal: int,
    today: Optional[date] = None,
) -> Dict[str, Any]:
    """Combine every statistic into the payload served by the progress API."""
    minutes = focus_minutes_today(focus_sessions, today)
    return {
        'averageScore': average_score(s.score for s in sessions),
        'totalSessions': len(sessions),
        'streak': session_streak(sessions, today),
        'chart': score_series(sessions),
        'focusMinutesToday': minutes,
        'dailyGoal': daily_goal,
        'dailyGoalReached': daily_goal > 0 and minutes >= daily_goal,
    }


async def progress_summary(user: User, today: Optional[date] = None) -> Dict[str, Any]:
    """Load ``user``'s history and summarize it."""
    sessions = [s async for s in PracticeSession.objects.filter(user=user).only('date', 'score')]
    focus = [f async for f in FocusSession.objects.filter(user=user)]
    profile = await UserProfile.objects.filter(user=user).afirst()
    daily_goal = profile.daily_goal if profile else 15
    return summarize(sessions, focus, daily_goal, today)
