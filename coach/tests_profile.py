"""Tests for profile validation and the staged/active settings manager."""

from django.contrib.auth.models import User
from django.test import SimpleTestCase, TransactionTestCase
from pydantic import ValidationError

from .models import UserProfile
from .profile_manager import ProfileData, SettingsManager, core_changed, load_profile


class ProfileDataTest(SimpleTestCase):
    def test_defaults(self) -> None:
        profile = ProfileData(email='a@example.com')
        self.assertEqual(profile.target_language, 'French')
        self.assertEqual(profile.target_accent, 'fr-paris')
        self.assertEqual(profile.daily_goal, 15)
        self.assertEqual(profile.preferred_voice, 'Kore')
        self.assertFalse(profile.is_live_assistant_enabled)

    def test_language_change_resets_accent(self) -> None:
        profile = ProfileData(email='a@example.com', target_accent='fr-quebec')

        updated = profile.with_updates({'targetLanguage': 'Spanish'})

        self.assertEqual(updated.target_language, 'Spanish')
        self.assertTrue(updated.target_accent.startswith('es-'))
        self.assertEqual(updated.target_accent, updated.accent_info()['id'])

    def test_accent_from_other_language_is_normalised(self) -> None:
        profile = ProfileData.model_validate(
            {'email': 'a@example.com', 'targetLanguage': 'French', 'targetAccent': 'es-spain'}
        )
        self.assertEqual(profile.target_accent, 'fr-paris')

    def test_snake_case_updates_accepted(self) -> None:
        profile = ProfileData(email='a@example.com')
        updated = profile.with_updates({'skill_level': 'Expert', 'dailyGoal': 45})
        self.assertEqual(updated.skill_level, 'Expert')
        self.assertEqual(updated.daily_goal, 45)
        self.assertEqual(updated.email, 'a@example.com')

    def test_invalid_values_rejected(self) -> None:
        profile = ProfileData(email='a@example.com')
        with self.assertRaises(ValidationError):
            profile.with_updates({'skillLevel': 'Wizard'})
        with self.assertRaises(ValidationError):
            profile.with_updates({'targetLanguage': 'Klingon'})

    def test_core_changed(self) -> None:
        profile = ProfileData(email='a@example.com')
        self.assertFalse(core_changed(profile, profile.with_updates({'dailyGoal': 30})))
        self.assertTrue(core_changed(profile, profile.with_updates({'skillLevel': 'Novice'})))
        self.assertTrue(core_changed(profile, profile.with_updates({'targetAccent': 'fr-quebec'})))


class SettingsManagerTest(TransactionTestCase):
    async def test_stage_does_not_touch_active(self) -> None:
        manager = SettingsManager(ProfileData(email='a@example.com'))
        manager.stage({'targetLanguage': 'Spanish'})

        self.assertEqual(manager.active.target_language, 'French')
        self.assertEqual(manager.staged.target_language, 'Spanish')

        manager.discard()
        self.assertEqual(manager.staged.target_language, 'French')

    async def test_commit_persists_and_reports_core_change(self) -> None:
        user = await User.objects.acreate_user(
            username='a@example.com', email='a@example.com'
        )
        manager = SettingsManager(ProfileData(email=user.email))
        manager.stage({'targetLanguage': 'Spanish', 'name': 'Ana'})

        result = await manager.commit(user)

        self.assertTrue(result.core_changed)
        self.assertEqual(manager.active.target_language, 'Spanish')
        stored = await load_profile(user)
        self.assertEqual(stored.target_language, 'Spanish')
        self.assertEqual(stored.target_accent, result.profile.target_accent)
        self.assertEqual(stored.name, 'Ana')
        self.assertEqual(stored.email, 'a@example.com')

    async def test_second_commit_replaces_profile(self) -> None:
        user = await User.objects.acreate_user(username='a@example.com')
        manager = SettingsManager(ProfileData(email='a@example.com'))
        await manager.commit(user)
        manager.stage({'dailyGoal': 60})

        result = await manager.commit(user)

        self.assertFalse(result.core_changed)
        self.assertEqual(await UserProfile.objects.filter(user=user).acount(), 1)
        stored = await load_profile(user)
        self.assertEqual(stored.daily_goal, 60)
