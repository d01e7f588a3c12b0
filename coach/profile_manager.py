"""
Active and staged practice settings.

The *active* profile drives practice; the *staged* copy is what the settings
screen edits. Committing persists the staged copy and reports whether a core
field changed so a running practice can regenerate its prompt.
"""

import logging
from typing import Any, Dict, Literal, Optional

from django.contrib.auth.models import User
from pydantic import BaseModel, ConfigDict, Field, model_validator

from .constants import ACCENTS, ENGLISH_ACCENTS, accent_belongs_to, default_accent
from .models import UserProfile

logger = logging.getLogger(__name__)

# Changing any of these mid-practice invalidates the current prompt
CORE_FIELDS = ('target_language', 'target_accent', 'skill_level')


class ProfileData(BaseModel):
    """Validated profile payload, camelCase on the wire."""

    model_config = ConfigDict(populate_by_name=True)

    email: str = ''
    name: str = ''
    target_language: Literal['French', 'Spanish'] = Field('French', alias='targetLanguage')
    target_accent: str = Field('', alias='targetAccent')
    skill_level: Literal['Novice', 'Beginner', 'Intermediate', 'Advanced', 'Expert'] = Field(
        'Beginner', alias='skillLevel'
    )
    preferred_flavor: Literal[
        'Casual', 'Academic', 'Conversational', 'Professional', 'Creative'
    ] = Field('Conversational', alias='preferredFlavor')
    daily_goal: int = Field(15, ge=1, le=600, alias='dailyGoal')
    preferred_voice: str = Field('Kore', alias='preferredVoice')
    assistant_language: Literal['Target', 'English'] = Field(
        'Target', alias='assistantLanguage'
    )
    assistant_english_accent: str = Field('American', alias='assistantEnglishAccent')
    is_live_assistant_enabled: bool = Field(False, alias='isLiveAssistantEnabled')

    @model_validator(mode='after')
    def accent_matches_language(self) -> 'ProfileData':
        # an accent id is never paired with another language
        if not accent_belongs_to(self.target_language, self.target_accent):
            self.target_accent = default_accent(self.target_language)
        if self.assistant_english_accent not in ENGLISH_ACCENTS:
            self.assistant_english_accent = ENGLISH_ACCENTS[0]
        return self

    @classmethod
    def from_model(cls, profile: UserProfile) -> 'ProfileData':
        return cls.model_validate(profile.as_dict())

    def with_updates(self, updates: Dict[str, Any]) -> 'ProfileData':
        """
        Return a copy with ``updates`` (camelCase or snake_case keys) applied.

        A change of target language resets the accent to the new language's
        first accent; an accent sent in the same update is kept only if it
        belongs to the new language.
        """
        fields = type(self).model_fields
        normalized = {}
        for key, value in updates.items():
            field = fields.get(key)
            normalized[(field.alias if field and field.alias else key)] = value

        merged = {**self.model_dump(by_alias=True), **normalized, 'email': self.email}
        language = merged['targetLanguage']
        if language != self.target_language and language in ACCENTS and 'targetAccent' not in normalized:
            merged['targetAccent'] = default_accent(language)
        return ProfileData.model_validate(merged)

    def as_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)

    def accent_info(self) -> Dict[str, str]:
        for accent in ACCENTS[self.target_language]:
            if accent['id'] == self.target_accent:
                return accent
        return ACCENTS[self.target_language][0]


def core_changed(old: ProfileData, new: ProfileData) -> bool:
    """Whether language, accent or skill level differ."""
    return any(getattr(old, field) != getattr(new, field) for field in CORE_FIELDS)


async def load_profile(user: User) -> Optional[UserProfile]:
    return await UserProfile.objects.filter(user=user).afirst()


async def save_profile(user: User, data: ProfileData) -> UserProfile:
    """Write ``data`` as the user's whole profile (insert or replace)."""
    fields = data.model_dump(exclude={'email'})
    profile, created = await UserProfile.objects.aupdate_or_create(
        user=user,
        defaults={'email': user.email or user.username, **fields},
    )
    logger.info(
        "%s profile for %s", "Created" if created else "Updated", profile.email
    )
    return profile


class CommitResult(BaseModel):
    profile: ProfileData
    core_changed: bool


class SettingsManager:
    """Holds the active profile and the staged copy being edited."""

    def __init__(self, active: ProfileData, staged: Optional[ProfileData] = None) -> None:
        self.active = active
        self.staged = staged if staged is not None else active.model_copy()

    @classmethod
    def from_state(
        cls, active: ProfileData, staged_data: Optional[Dict[str, Any]]
    ) -> 'SettingsManager':
        staged = ProfileData.model_validate(staged_data) if staged_data else None
        return cls(active, staged)

    def stage(self, updates: Dict[str, Any]) -> ProfileData:
        """Apply ``updates`` to the staged copy only."""
        self.staged = self.staged.with_updates(updates)
        return self.staged

    def discard(self) -> ProfileData:
        self.staged = self.active.model_copy()
        return self.staged

    async def commit(self, user: User) -> CommitResult:
        """Persist the staged copy and make it active."""
        previous = self.active
        await save_profile(user, self.staged)
        self.active = self.staged.model_copy()
        return CommitResult(profile=self.active, core_changed=core_changed(previous, self.active))
