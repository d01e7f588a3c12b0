"""Database models for the coach application.

Every row belongs to exactly one Django ``User``; the login email doubles as
the username. ``as_dict`` methods produce the camelCase payloads used by the
JSON API.
"""

import unicodedata
import uuid
from typing import Any, Dict

# ---------------------------------------------------------------------------
# Django
from django.contrib.auth.models import User
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils import timezone

from .constants import (
    ASSISTANT_LANGUAGE_CHOICES,
    DEFAULT_FREQUENCY,
    FLAVOR_CHOICES,
    LANGUAGE_CHOICES,
    MASTERED_STREAK,
    MODE_CHOICES,
    SKILL_LEVEL_CHOICES,
)


def generate_id() -> str:
    """Short random identifier used as primary key for user content."""
    return uuid.uuid4().hex[:12]


def _iso(value: Any) -> Any:
    return value.isoformat() if value else None


def fold_key(text: str) -> str:
    """Case-insensitive lookup key for words and slang terms, accents included."""
    return unicodedata.normalize('NFC', text.strip()).casefold()


class UserProfile(models.Model):
    """
    Practice configuration for a single user.

    Saved wholesale from the settings screen and never deleted in-app.
    """

    user = models.OneToOneField(
        User,
        on_delete=models.CASCADE,
        related_name="accent_profile",
        help_text="Associated user account",
    )
    email = models.EmailField(unique=True, help_text="Login email (identity key)")
    name = models.CharField(max_length=120, blank=True, default='')
    target_language = models.CharField(
        max_length=16, choices=LANGUAGE_CHOICES, default='French'
    )
    target_accent = models.CharField(
        max_length=32, default='fr-paris', help_text="Accent id from the catalog"
    )
    skill_level = models.CharField(
        max_length=16, choices=SKILL_LEVEL_CHOICES, default='Beginner'
    )
    preferred_flavor = models.CharField(
        max_length=16, choices=FLAVOR_CHOICES, default='Conversational'
    )
    daily_goal = models.PositiveIntegerField(
        default=15, help_text="Daily practice goal in minutes"
    )
    preferred_voice = models.CharField(max_length=16, default='Kore')
    assistant_language = models.CharField(
        max_length=8, choices=ASSISTANT_LANGUAGE_CHOICES, default='Target'
    )
    assistant_english_accent = models.CharField(max_length=16, default='American')
    is_live_assistant_enabled = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "User Profile"
        verbose_name_plural = "User Profiles"

    def __str__(self) -> str:
        return f"{self.email} ({self.target_language}, {self.skill_level})"

    def as_dict(self) -> Dict[str, Any]:
        return {
            'email': self.email,
            'name': self.name,
            'targetLanguage': self.target_language,
            'targetAccent': self.target_accent,
            'skillLevel': self.skill_level,
            'preferredFlavor': self.preferred_flavor,
            'dailyGoal': self.daily_goal,
            'preferredVoice': self.preferred_voice,
            'assistantLanguage': self.assistant_language,
            'assistantEnglishAccent': self.assistant_english_accent,
            'isLiveAssistantEnabled': self.is_live_assistant_enabled,
        }


class PracticeSession(models.Model):
    """
    One analysed recording.

    Details:
      • ``prompt`` – the literal text the user was asked to say
      • ``feedback`` – ``{strengths, improvements, detailedAnalysis}``
      • rows are append-only and never edited after creation
    """

    id = models.CharField(max_length=36, primary_key=True, default=generate_id)
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name="practice_sessions",
        help_text="Owner of this session",
    )
    date = models.DateTimeField(default=timezone.now)
    language = models.CharField(max_length=16, choices=LANGUAGE_CHOICES)
    accent = models.CharField(max_length=32)
    skill_level = models.CharField(max_length=16, choices=SKILL_LEVEL_CHOICES)
    flavor = models.CharField(max_length=16, choices=FLAVOR_CHOICES)
    mode = models.CharField(max_length=16, choices=MODE_CHOICES)
    prompt = models.TextField(help_text="Text shown to the user")
    score = models.FloatField(
        validators=[MinValueValidator(0.0), MaxValueValidator(100.0)],
        help_text="Overall score from 0 to 100",
    )
    assistant_response = models.TextField(blank=True, null=True)
    feedback = models.JSONField(
        default=dict, help_text="Strengths, improvements and detailed analysis"
    )

    class Meta:
        ordering = ["-date"]
        verbose_name = "Practice Session"
        verbose_name_plural = "Practice Sessions"
        indexes = [
            models.Index(fields=['user', 'date'], name='coach_pract_user_id_3f1c2a_idx')
        ]

    def __str__(self) -> str:
        friendly_date: str = self.date.strftime("%Y-%m-%d %H:%M")
        return f"{self.mode} {self.language} – {self.score:.0f} ({friendly_date})"

    def as_dict(self) -> Dict[str, Any]:
        data = {
            'id': self.id,
            'date': _iso(self.date),
            'language': self.language,
            'accent': self.accent,
            'skillLevel': self.skill_level,
            'flavor': self.flavor,
            'mode': self.mode,
            'prompt': self.prompt,
            'score': self.score,
            'feedback': self.feedback,
        }
        if self.assistant_response:
            data['assistantResponse'] = self.assistant_response
        return data


class SavedPassage(models.Model):
    """A Read-mode prompt kept for later re-practice."""

    id = models.CharField(max_length=36, primary_key=True, default=generate_id)
    user = models.ForeignKey(
        User, on_delete=models.CASCADE, related_name="saved_passages"
    )
    text = models.TextField()
    date = models.DateTimeField(default=timezone.now)
    language = models.CharField(max_length=16, choices=LANGUAGE_CHOICES)

    class Meta:
        ordering = ["-date"]
        verbose_name = "Saved Passage"
        verbose_name_plural = "Saved Passages"

    def __str__(self) -> str:
        text: str = str(self.text)
        return text[:50] + ("…" if len(text) > 50 else "")

    def as_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'text': self.text,
            'date': _iso(self.date),
            'language': self.language,
        }


class SlangTerm(models.Model):
    """A slang term from a Slang-mode prompt, at most once per language."""

    id = models.CharField(max_length=36, primary_key=True, default=generate_id)
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="slang_terms")
    term = models.CharField(max_length=200)
    term_key = models.CharField(
        max_length=200, editable=False, help_text="Case-folded term, set on save"
    )
    meaning = models.TextField()
    example = models.TextField(blank=True, default='')
    region = models.CharField(max_length=64, default='Universal')
    language = models.CharField(max_length=16, choices=LANGUAGE_CHOICES)
    date_learned = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["-date_learned"]
        verbose_name = "Slang Term"
        verbose_name_plural = "Slang Terms"
        constraints = [
            models.UniqueConstraint(
                fields=['user', 'language', 'term_key'],
                name='unique_slang_term_per_language',
            )
        ]

    def save(self, *args, **kwargs):
        self.term_key = fold_key(self.term)
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.term} ({self.region})"

    def as_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'term': self.term,
            'meaning': self.meaning,
            'example': self.example,
            'region': self.region,
            'language': self.language,
            'dateLearned': _iso(self.date_learned),
        }


class Flashcard(models.Model):
    """
    A vocabulary card with a streak-based review schedule.

    ``frequency`` runs from 1 (rarely shown, mastered) to 5 (shown most).
    A card is mastered once ``consecutive_correct`` reaches 3 and stays out
    of study runs until an incorrect answer resets the streak.
    """

    id = models.CharField(max_length=36, primary_key=True, default=generate_id)
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="flashcards")
    word = models.CharField(max_length=200)
    word_key = models.CharField(
        max_length=200, editable=False, help_text="Case-folded word, set on save"
    )
    definition_en = models.TextField(help_text="Definition in English")
    definition_target = models.TextField(
        blank=True,
        null=True,
        help_text="Definition translated into the card language, fetched on demand",
    )
    word_type = models.CharField(max_length=32, blank=True, default='')
    practice_count = models.PositiveIntegerField(default=0)
    consecutive_correct = models.PositiveIntegerField(default=0)
    frequency = models.PositiveSmallIntegerField(
        default=DEFAULT_FREQUENCY,
        validators=[MinValueValidator(1), MaxValueValidator(5)],
    )
    language = models.CharField(max_length=16, choices=LANGUAGE_CHOICES)
    date_added = models.DateTimeField(default=timezone.now)
    is_custom = models.BooleanField(
        default=False, help_text="Added by hand rather than extracted from a prompt"
    )

    class Meta:
        ordering = ["-date_added"]
        verbose_name = "Flashcard"
        verbose_name_plural = "Flashcards"
        constraints = [
            models.UniqueConstraint(
                fields=['user', 'language', 'word_key'],
                name='unique_flashcard_word_per_language',
            )
        ]
        indexes = [
            models.Index(fields=['user', 'language'], name='coach_flash_user_id_8b2d4e_idx')
        ]

    def save(self, *args, **kwargs):
        self.word_key = fold_key(self.word)
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.word} ({self.language}, streak {self.consecutive_correct})"

    def is_mastered(self) -> bool:
        return self.consecutive_correct >= MASTERED_STREAK

    def record_answer(self, is_correct: bool) -> None:
        """
        Update the review schedule after one study answer.

        Correct answers extend the streak and lower the review frequency by
        the new streak length (1 → 3, 2 → 2, 3+ → 1). An incorrect answer
        resets the streak and moves the card to the most frequent bucket.
        """
        self.practice_count += 1
        if is_correct:
            self.consecutive_correct += 1
            if self.consecutive_correct >= MASTERED_STREAK:
                self.frequency = 1
            elif self.consecutive_correct == 2:
                self.frequency = 2
            else:
                self.frequency = 3
        else:
            self.consecutive_correct = 0
            self.frequency = 5

    def as_dict(self) -> Dict[str, Any]:
        data = {
            'id': self.id,
            'word': self.word,
            'definitionEn': self.definition_en,
            'wordType': self.word_type,
            'practiceCount': self.practice_count,
            'consecutiveCorrect': self.consecutive_correct,
            'frequency': self.frequency,
            'language': self.language,
            'dateAdded': _iso(self.date_added),
            'isCustom': self.is_custom,
        }
        if self.definition_target:
            data['definitionTarget'] = self.definition_target
        return data


class FocusSession(models.Model):
    """A completed or expired focus timer."""

    id = models.CharField(max_length=36, primary_key=True, default=generate_id)
    user = models.ForeignKey(
        User, on_delete=models.CASCADE, related_name="focus_sessions"
    )
    date = models.DateTimeField(default=timezone.now)
    minutes = models.PositiveIntegerField()

    class Meta:
        ordering = ["-date"]
        verbose_name = "Focus Session"
        verbose_name_plural = "Focus Sessions"

    def __str__(self) -> str:
        return f"{self.minutes} min ({self.date:%Y-%m-%d})"

    def as_dict(self) -> Dict[str, Any]:
        return {'id': self.id, 'date': _iso(self.date), 'minutes': self.minutes}
