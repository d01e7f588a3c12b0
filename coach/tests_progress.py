"""Tests for progress statistics."""

from datetime import date, datetime, timedelta, timezone as dt_timezone
from types import SimpleNamespace

from django.contrib.auth.models import User
from django.test import SimpleTestCase, TransactionTestCase, override_settings

from .models import FocusSession, PracticeSession, UserProfile
from .progress import (
    average_score,
    current_streak,
    day_label,
    focus_minutes_today,
    progress_summary,
    score_series,
    summarize,
)

TODAY = date(2025, 10, 18)


def at(day: date, hour: int = 12) -> datetime:
    return datetime(day.year, day.month, day.day, hour, tzinfo=dt_timezone.utc)


def session(day: date, score: float, hour: int = 12) -> SimpleNamespace:
    return SimpleNamespace(date=at(day, hour), score=score)


@override_settings(TIME_ZONE='UTC')
class StreakTest(SimpleTestCase):
    def test_three_consecutive_days_ending_today(self) -> None:
        days = [TODAY, TODAY - timedelta(days=1), TODAY - timedelta(days=2)]
        self.assertEqual(current_streak(days, TODAY), 3)

    def test_streak_counts_from_yesterday(self) -> None:
        days = [TODAY - timedelta(days=1), TODAY - timedelta(days=2)]
        self.assertEqual(current_streak(days, TODAY), 2)

    def test_latest_practice_two_days_ago_breaks_streak(self) -> None:
        days = [TODAY - timedelta(days=2), TODAY - timedelta(days=3)]
        self.assertEqual(current_streak(days, TODAY), 0)

    def test_gap_stops_count_and_duplicates_collapse(self) -> None:
        days = [TODAY, TODAY, TODAY - timedelta(days=1), TODAY - timedelta(days=3)]
        self.assertEqual(current_streak(days, TODAY), 2)

    def test_no_practice(self) -> None:
        self.assertEqual(current_streak([], TODAY), 0)


class AverageTest(SimpleTestCase):
    def test_mean_of_three(self) -> None:
        self.assertEqual(average_score([70, 90, 80]), 80)

    def test_empty_is_zero(self) -> None:
        self.assertEqual(average_score([]), 0)

    def test_half_rounds_up(self) -> None:
        self.assertEqual(average_score([80, 81]), 81)


@override_settings(TIME_ZONE='UTC')
class SeriesTest(SimpleTestCase):
    def test_daily_buckets_in_timestamp_order(self) -> None:
        yesterday = TODAY - timedelta(days=1)
        sessions = [
            session(TODAY, 90, hour=9),
            session(yesterday, 60),
            session(TODAY, 70, hour=15),
        ]

        series = score_series(sessions)

        self.assertEqual(
            series,
            [{'date': 'Oct 17', 'score': 60}, {'date': 'Oct 18', 'score': 80}],
        )

    def test_day_label_has_no_leading_zero(self) -> None:
        self.assertEqual(day_label(date(2025, 3, 5)), 'Mar 5')

    def test_focus_minutes_only_today(self) -> None:
        focus = [
            SimpleNamespace(date=at(TODAY), minutes=10),
            SimpleNamespace(date=at(TODAY, 20), minutes=5),
            SimpleNamespace(date=at(TODAY - timedelta(days=1)), minutes=25),
        ]
        self.assertEqual(focus_minutes_today(focus, TODAY), 15)

    def test_summarize_daily_goal(self) -> None:
        summary = summarize(
            [session(TODAY, 80)],
            [SimpleNamespace(date=at(TODAY), minutes=15)],
            15,
            TODAY,
        )
        self.assertEqual(summary['averageScore'], 80)
        self.assertEqual(summary['totalSessions'], 1)
        self.assertEqual(summary['streak'], 1)
        self.assertTrue(summary['dailyGoalReached'])


@override_settings(TIME_ZONE='UTC')
class ProgressSummaryTest(TransactionTestCase):
    async def test_summary_from_stored_rows(self) -> None:
        user = await User.objects.acreate_user(username='learner@example.com')
        await UserProfile.objects.acreate(user=user, email='learner@example.com', daily_goal=20)
        for offset, score in ((0, 70), (1, 90), (2, 80)):
            await PracticeSession.objects.acreate(
                user=user,
                date=at(TODAY - timedelta(days=offset)),
                language='French',
                accent='fr-paris',
                skill_level='Beginner',
                flavor='Casual',
                mode='Read',
                prompt='Bonjour',
                score=score,
            )
        await FocusSession.objects.acreate(user=user, date=at(TODAY), minutes=10)

        summary = await progress_summary(user, TODAY)

        self.assertEqual(summary['averageScore'], 80)
        self.assertEqual(summary['streak'], 3)
        self.assertEqual(summary['totalSessions'], 3)
        self.assertEqual([point['date'] for point in summary['chart']], ['Oct 16', 'Oct 17', 'Oct 18'])
        self.assertEqual(summary['focusMinutesToday'], 10)
        self.assertEqual(summary['dailyGoal'], 20)
        self.assertFalse(summary['dailyGoalReached'])
