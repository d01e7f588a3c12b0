"""
coach.admin module.

Django-admin registrations for the accent coach.
"""

from django.contrib import admin

from .models import (
    Flashcard,
    FocusSession,
    PracticeSession,
    SavedPassage,
    SlangTerm,
    UserProfile,
)


@admin.register(UserProfile)
class UserProfileAdmin(admin.ModelAdmin):
    """Admin configuration for :class:`coach.models.UserProfile`."""

    list_display = (
        "email",
        "target_language",
        "target_accent",
        "skill_level",
        "daily_goal",
        "is_live_assistant_enabled",
    )
    list_filter = ("target_language", "skill_level", "is_live_assistant_enabled")
    search_fields = ("email", "name", "user__username")
    readonly_fields = ("created_at", "updated_at")


@admin.register(PracticeSession)
class PracticeSessionAdmin(admin.ModelAdmin):
    """Admin configuration for :class:`coach.models.PracticeSession`."""

    list_display = ("short_prompt", "user", "mode", "language", "accent", "score", "date")
    list_filter = ("mode", "language", "skill_level")
    search_fields = ("prompt", "user__username")
    ordering = ("-date",)

    @staticmethod
    def short_prompt(obj: "PracticeSession") -> str:
        prompt: str = str(obj.prompt)
        return prompt[:60] + ("…" if len(prompt) > 60 else "")


@admin.register(SavedPassage)
class SavedPassageAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "language", "date")
    list_filter = ("language",)
    search_fields = ("text",)
    ordering = ("-date",)


@admin.register(SlangTerm)
class SlangTermAdmin(admin.ModelAdmin):
    list_display = ("term", "region", "language", "user", "date_learned")
    list_filter = ("language", "region")
    search_fields = ("term", "meaning")
    ordering = ("-date_learned",)


@admin.register(Flashcard)
class FlashcardAdmin(admin.ModelAdmin):
    """Admin configuration for :class:`coach.models.Flashcard`."""

    list_display = (
        "word",
        "language",
        "user",
        "consecutive_correct",
        "frequency",
        "practice_count",
        "is_custom",
    )
    list_filter = ("language", "is_custom", "frequency")
    search_fields = ("word", "definition_en", "user__username")
    ordering = ("-frequency", "date_added")


@admin.register(FocusSession)
class FocusSessionAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "minutes", "date")
    ordering = ("-date",)
