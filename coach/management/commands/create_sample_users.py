"""
Management command to create sample users with practice history for testing.

Each sample user gets a profile, a couple of weeks of scored sessions, some
saved passages and a small flashcard deck in different review states, so the
progress and study screens have something to show.
"""

import random
from datetime import timedelta

from django.contrib.auth.models import User
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from coach.constants import ACCENTS, FLAVORS, TONGUE_TWISTERS
from coach.models import Flashcard, FocusSession, PracticeSession, SavedPassage, UserProfile

SAMPLE_DOMAIN = 'example.com'

SAMPLE_WORDS = {
    'French': [
        ('boulangerie', 'bakery', 'noun'),
        ('se promener', 'to go for a walk', 'verb'),
        ('quotidien', 'daily, everyday', 'adjective'),
        ('pourtant', 'yet, however', 'adverb'),
        ('un rendez-vous', 'an appointment', 'phrase'),
    ],
    'Spanish': [
        ('madrugada', 'early morning hours', 'noun'),
        ('aprovechar', 'to make the most of', 'verb'),
        ('sobremesa', 'time spent talking after a meal', 'noun'),
        ('enseguida', 'right away', 'adverb'),
        ('¡qué padre!', 'how cool!', 'slang'),
    ],
}

# (language, skill level, sessions, streak of consecutive correct answers per card)
SAMPLE_PLANS = [
    ('French', 'Beginner', 6, [0, 1, 0, 2, 0]),
    ('Spanish', 'Intermediate', 14, [3, 2, 1, 0, 3]),
    ('French', 'Advanced', 25, [3, 3, 2, 3, 1]),
]


class Command(BaseCommand):
    help = "Create sample users with practice history for testing"

    def add_arguments(self, parser):
        parser.add_argument(
            '--count',
            type=int,
            default=3,
            help='Number of sample users to create (default: 3)',
        )
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Clear existing sample users before creating new ones',
        )

    def handle(self, *args, **options):
        if options['clear']:
            self.stdout.write('Clearing existing sample users...')
            User.objects.filter(username__startswith='sample_user_').delete()

        with transaction.atomic():
            for i in range(options['count']):
                self._create_sample_user(i + 1)

        total_users = User.objects.filter(username__startswith='sample_user_').count()
        total_sessions = PracticeSession.objects.filter(
            user__username__startswith='sample_user_'
        ).count()
        self.stdout.write(
            self.style.SUCCESS(
                f'Successfully created {total_users} sample users with {total_sessions} practice sessions!'
            )
        )

    def _create_sample_user(self, user_number: int):
        """Create one user following a plan, or a random one past the fixed plans."""
        email = f'sample_user_{user_number}@{SAMPLE_DOMAIN}'
        if User.objects.filter(username=email).exists():
            self.stdout.write(self.style.WARNING(f"Skipping existing user: {email}"))
            return

        if user_number <= len(SAMPLE_PLANS):
            language, level, session_count, streaks = SAMPLE_PLANS[user_number - 1]
        else:
            language = random.choice(list(ACCENTS))
            level = random.choice(['Novice', 'Beginner', 'Intermediate'])
            session_count = random.randint(3, 20)
            streaks = [random.randint(0, 3) for _ in SAMPLE_WORDS[language]]

        user = User.objects.create_user(username=email, email=email)
        user.set_unusable_password()
        user.save(update_fields=['password'])

        accent = random.choice(ACCENTS[language])
        UserProfile.objects.create(
            user=user,
            email=email,
            name=f'Sample User {user_number}',
            target_language=language,
            target_accent=accent['id'],
            skill_level=level,
            preferred_flavor=random.choice(FLAVORS),
        )
        self.stdout.write(f"Created user: {email}")

        self._create_history(user, language, accent['id'], level, session_count)
        self._create_flashcards(user, language, streaks)

    def _create_history(
        self, user: User, language: str, accent: str, level: str, session_count: int
    ):
        """Sessions spread over recent days with a gently rising score."""
        now = timezone.now()
        for i in range(session_count):
            days_ago = session_count - i - 1
            prompt = random.choice(TONGUE_TWISTERS[language])
            score = min(100, 55 + i * 2 + random.randint(-5, 5))
            PracticeSession.objects.create(
                user=user,
                date=now - timedelta(days=days_ago // 2, hours=random.randint(0, 6)),
                language=language,
                accent=accent,
                skill_level=level,
                flavor='Conversational',
                mode='TongueTwister',
                prompt=prompt,
                score=score,
                feedback={
                    'strengths': ['Clear vowels'],
                    'improvements': ['Link words more smoothly'],
                    'detailedAnalysis': '**Rhythm** is steady; keep the final syllables light.',
                },
            )
            if i % 4 == 0:
                SavedPassage.objects.create(user=user, text=prompt, language=language)

        FocusSession.objects.create(user=user, minutes=random.choice([5, 10, 15]))

    def _create_flashcards(self, user: User, language: str, streaks: list[int]):
        """Cards whose frequency follows from their streak."""
        for (word, definition, word_type), streak in zip(SAMPLE_WORDS[language], streaks):
            card = Flashcard(
                user=user,
                word=word,
                definition_en=definition,
                word_type=word_type,
                language=language,
            )
            for _ in range(streak):
                card.record_answer(True)
            card.save()
