"""
Tests for the practice-session state machine.

The generation service is replaced by a MagicMock whose methods are
AsyncMocks, so no test talks to Gemini.
"""

from unittest.mock import AsyncMock, MagicMock, patch

from django.contrib.auth.models import User
from django.core.cache import cache
from django.db import DatabaseError
from django.test import TransactionTestCase

from .analysis_models import (
    PracticePrompt,
    SlangBundle,
    SlangItem,
    SpeechAnalysis,
    VocabularyItem,
)
from .constants import TONGUE_TWISTERS
from .exceptions import GatewayError, InvalidTransition
from .models import Flashcard, PracticeSession, SavedPassage, SlangTerm
from .orchestrator import (
    PracticeState,
    SessionContext,
    SessionOrchestrator,
    WriteStatus,
    cap_words,
    save_slang_terms,
)
from .profile_manager import CommitResult, ProfileData

CAFE_PROMPT = "Je voudrais un café, s'il vous plaît."


def make_gateway() -> MagicMock:
    gateway = MagicMock()
    gateway.generate_prompt = AsyncMock(
        return_value=PracticePrompt(
            text=CAFE_PROMPT,
            translation="I would like a **coffee**, please.",
            vocabulary=[
                VocabularyItem(
                    word='café',
                    definition='coffee',
                    english_equivalent='coffee',
                    word_type='noun',
                )
            ],
        )
    )
    gateway.analyze_recording = AsyncMock(
        return_value=SpeechAnalysis(
            score=82,
            strengths=['Clear vowels'],
            improvements=['Soften the final consonant'],
            detailed_analysis='**Rhythm** is good.',
        )
    )
    gateway.generate_slang = AsyncMock()
    gateway.generate_encouragement = AsyncMock(return_value="Très bien, continue !")
    gateway.synthesize_speech = AsyncMock(return_value=b'\x00\x00' * 240)
    gateway.translate_text = AsyncMock()
    return gateway


class OrchestratorTestBase(TransactionTestCase):
    """Creates a user, a French beginner profile and a mocked gateway."""

    async def asetUp(self, **profile_fields) -> None:
        await cache.aclear()
        self.user = await User.objects.acreate_user(
            username='learner@example.com', email='learner@example.com'
        )
        self.profile = ProfileData(email=self.user.email, **profile_fields)
        self.gateway = make_gateway()
        self.orchestrator = SessionOrchestrator(
            self.user, self.profile, SessionContext(), gateway=self.gateway
        )


class ReadModeFlowTest(OrchestratorTestBase):
    async def test_read_prompt_through_feedback(self) -> None:
        """A generated Read prompt is saved, analysed and stored as a session."""
        await self.asetUp()
        context = await self.orchestrator.start_practice('Read')

        self.assertEqual(context.state, PracticeState.PROMPT_READY)
        self.assertEqual(context.prompt, CAFE_PROMPT)
        self.assertEqual(await SavedPassage.objects.filter(user=self.user).acount(), 1)

        card = await Flashcard.objects.aget(user=self.user, word='café')
        self.assertEqual(card.frequency, 3)
        self.assertEqual(card.consecutive_correct, 0)
        self.assertFalse(card.is_custom)

        self.orchestrator.begin_recording()
        self.assertEqual(context.state, PracticeState.RECORDING)

        result = await self.orchestrator.submit_recording(b'fake-webm', 'audio/webm')

        self.assertIsNotNone(result)
        self.assertEqual(context.state, PracticeState.FEEDBACK_READY)
        session = await PracticeSession.objects.aget(user=self.user)
        self.assertEqual(session.prompt, CAFE_PROMPT)
        self.assertEqual(session.score, 82)
        self.assertEqual(session.mode, 'Read')
        self.assertEqual(session.accent, 'fr-paris')
        self.assertEqual(session.feedback['detailedAnalysis'], '**Rhythm** is good.')
        self.assertIsNone(session.assistant_response)
        self.assertEqual(context.feedback['id'], session.id)

        await card.arefresh_from_db()
        self.assertEqual(card.practice_count, 1)

        self.gateway.analyze_recording.assert_called_once_with(
            b'fake-webm',
            'audio/webm',
            CAFE_PROMPT,
            'French',
            'Parisian Style French',
            'Read',
            'Beginner',
        )
        self.gateway.synthesize_speech.assert_not_called()
        self.assertTrue(all(w.status == WriteStatus.CONFIRMED for w in context.writes))

    async def test_submit_while_idle_is_rejected(self) -> None:
        await self.asetUp()
        with self.assertRaises(InvalidTransition):
            await self.orchestrator.submit_recording(b'fake-webm')

        self.assertEqual(self.orchestrator.context.state, PracticeState.IDLE)
        self.assertEqual(await PracticeSession.objects.acount(), 0)
        self.gateway.analyze_recording.assert_not_called()

    async def test_submit_directly_from_prompt_ready(self) -> None:
        await self.asetUp()
        await self.orchestrator.start_practice('Respond')
        result = await self.orchestrator.submit_recording(b'fake-webm')
        self.assertIsNotNone(result)
        self.assertEqual(await PracticeSession.objects.acount(), 1)

    async def test_empty_recording_is_rejected(self) -> None:
        await self.asetUp()
        await self.orchestrator.start_practice('Read')
        with self.assertRaises(ValueError):
            await self.orchestrator.submit_recording(b'')
        self.assertEqual(self.orchestrator.context.state, PracticeState.PROMPT_READY)

    async def test_respond_mode_does_not_save_passage(self) -> None:
        await self.asetUp()
        await self.orchestrator.start_practice('Respond')
        self.assertEqual(await SavedPassage.objects.acount(), 0)

    async def test_restart_clears_previous_feedback(self) -> None:
        await self.asetUp()
        context = await self.orchestrator.start_practice('Read')
        await self.orchestrator.submit_recording(b'fake-webm')
        self.orchestrator.toggle_translation()

        await self.orchestrator.start_practice('Read')

        self.assertEqual(context.state, PracticeState.PROMPT_READY)
        self.assertIsNone(context.feedback)
        self.assertFalse(context.show_translation)
        self.assertIsNone(context.selected_word)


class PromptGenerationTest(OrchestratorTestBase):
    async def test_explicit_text_skips_generation(self) -> None:
        await self.asetUp()
        context = await self.orchestrator.start_practice(
            'TongueTwister', explicit_text='Cinq chiens chassent six chats.'
        )
        self.assertEqual(context.state, PracticeState.PROMPT_READY)
        self.assertEqual(context.prompt, 'Cinq chiens chassent six chats.')
        self.gateway.generate_prompt.assert_not_called()

    async def test_tongue_twister_without_text_uses_builtin(self) -> None:
        await self.asetUp()
        context = await self.orchestrator.start_practice('TongueTwister')
        self.assertIn(context.prompt, TONGUE_TWISTERS['French'])
        self.gateway.generate_prompt.assert_not_called()

    async def test_prompt_failure_returns_to_idle(self) -> None:
        await self.asetUp()
        self.gateway.generate_prompt.side_effect = GatewayError("quota exceeded")

        context = await self.orchestrator.start_practice('Read')

        self.assertEqual(context.state, PracticeState.IDLE)
        self.assertEqual(context.prompt, '')
        self.assertIsNotNone(context.error)
        self.assertEqual(await SavedPassage.objects.acount(), 0)
        self.gateway.generate_prompt.assert_called_once()

    async def test_context_text_capped_at_twenty_words(self) -> None:
        await self.asetUp()
        long_context = ' '.join(f'word{i}' for i in range(30))

        await self.orchestrator.start_practice('Respond', context_text=long_context)

        args = self.gateway.generate_prompt.call_args[0]
        self.assertEqual(len(args[5].split()), 20)
        self.assertEqual(args[5].split()[-1], 'word19')

    async def test_priority_words_exclude_mastered_cards(self) -> None:
        await self.asetUp()
        await Flashcard.objects.acreate(
            user=self.user, word='chien', definition_en='dog', language='French', frequency=5
        )
        await Flashcard.objects.acreate(
            user=self.user,
            word='chat',
            definition_en='cat',
            language='French',
            frequency=1,
            consecutive_correct=3,
        )
        await Flashcard.objects.acreate(
            user=self.user, word='perro', definition_en='dog', language='Spanish', frequency=5
        )

        await self.orchestrator.start_practice('Read')

        self.assertEqual(self.gateway.generate_prompt.call_args[0][4], ['chien'])

    async def test_prompt_overtaken_by_other_request_is_discarded(self) -> None:
        """Another request for the same user starting a run drops this run's prompt."""
        await self.asetUp()
        other = SessionOrchestrator(
            self.user, self.profile, SessionContext(), gateway=make_gateway()
        )
        other.gateway.generate_prompt.return_value = PracticePrompt(
            text="Qu'as-tu mangé ce midi ?", translation='What did you eat for lunch?'
        )
        prompt = self.gateway.generate_prompt.return_value

        async def newer_run_started(*args, **kwargs):
            await other.start_practice('Respond')
            return prompt

        self.gateway.generate_prompt.side_effect = newer_run_started

        context = await self.orchestrator.start_practice('Read')

        self.assertTrue(context.superseded)
        self.assertEqual(context.prompt, '')
        self.assertNotIn('superseded', context.model_dump())
        self.assertFalse(other.context.superseded)
        self.assertEqual(other.context.state, PracticeState.PROMPT_READY)
        self.assertEqual(await SavedPassage.objects.acount(), 0)
        self.assertEqual(await Flashcard.objects.acount(), 0)

    async def test_end_practice_elsewhere_drops_pending_prompt(self) -> None:
        await self.asetUp()
        other = SessionOrchestrator(self.user, self.profile, SessionContext(), gateway=self.gateway)
        prompt = self.gateway.generate_prompt.return_value

        async def practice_ended(*args, **kwargs):
            await other.end_practice()
            return prompt

        self.gateway.generate_prompt.side_effect = practice_ended

        context = await self.orchestrator.start_practice('Read')

        self.assertTrue(context.superseded)
        self.assertEqual(await SavedPassage.objects.acount(), 0)
        self.assertEqual(other.context.state, PracticeState.IDLE)

    async def test_unknown_mode_is_rejected(self) -> None:
        await self.asetUp()
        with self.assertRaises(ValueError):
            await self.orchestrator.start_practice('Sing')

    def test_cap_words(self) -> None:
        self.assertEqual(cap_words('  a  b c ', 2), 'a b')
        self.assertEqual(cap_words(None), '')


class SlangModeTest(OrchestratorTestBase):
    async def test_slang_terms_saved_once_and_enrolled(self) -> None:
        await self.asetUp()
        self.gateway.generate_slang.return_value = SlangBundle(
            sentence="On se retrouve au **resto** ce soir ?",
            terms=[SlangItem(term='resto', meaning='restaurant')],
        )

        context = await self.orchestrator.start_practice('Slang')
        await self.orchestrator.start_practice('Slang')

        self.assertEqual(context.state, PracticeState.PROMPT_READY)
        self.assertEqual(context.slang_terms[0]['term'], 'resto')
        self.assertEqual(await SlangTerm.objects.filter(user=self.user).acount(), 1)
        slang = await SlangTerm.objects.aget(user=self.user)
        self.assertEqual(slang.region, 'France')
        card = await Flashcard.objects.aget(user=self.user, word='resto')
        self.assertEqual(card.word_type, 'slang')
        self.gateway.generate_slang.assert_called_with(
            'French', 'Parisian Style French', 'France', ''
        )
        self.gateway.generate_prompt.assert_not_called()


    async def test_slang_terms_fold_accented_capitals(self) -> None:
        await self.asetUp(target_language='Spanish')
        await save_slang_terms(
            self.user, 'Spanish', 'Mexico', [{'term': 'Órale', 'meaning': 'come on'}], ''
        )
        created = await save_slang_terms(
            self.user, 'Spanish', 'Mexico', [{'term': 'órale', 'meaning': 'come on'}], ''
        )

        self.assertEqual(created, [])
        terms = [t.term async for t in SlangTerm.objects.filter(user=self.user)]
        self.assertEqual(terms, ['Órale'])


class AnalysisTest(OrchestratorTestBase):
    async def test_analysis_failure_returns_to_prompt_ready(self) -> None:
        await self.asetUp()
        await self.orchestrator.start_practice('Read')
        self.gateway.analyze_recording.side_effect = GatewayError("bad output")

        result = await self.orchestrator.submit_recording(b'fake-webm')

        self.assertIsNone(result)
        self.assertEqual(self.orchestrator.context.state, PracticeState.PROMPT_READY)
        self.assertIsNotNone(self.orchestrator.context.error)
        self.assertEqual(await PracticeSession.objects.acount(), 0)

    async def test_live_assistant_response_and_audio(self) -> None:
        await self.asetUp(is_live_assistant_enabled=True, preferred_voice='Puck')
        await self.orchestrator.start_practice('Read')

        result = await self.orchestrator.submit_recording(b'fake-webm')

        session = await PracticeSession.objects.aget(user=self.user)
        self.assertEqual(session.assistant_response, "Très bien, continue !")
        self.assertTrue(result.assistant_audio.startswith(b'RIFF'))
        self.gateway.synthesize_speech.assert_called_once_with(
            "Très bien, continue !", 'Puck', 'Parisian Style French'
        )

    async def test_speech_failure_keeps_stored_session(self) -> None:
        await self.asetUp(is_live_assistant_enabled=True)
        await self.orchestrator.start_practice('Read')
        self.gateway.synthesize_speech.side_effect = GatewayError("tts down")

        result = await self.orchestrator.submit_recording(b'fake-webm')

        self.assertIsNone(result.assistant_audio)
        self.assertEqual(self.orchestrator.context.state, PracticeState.FEEDBACK_READY)
        self.assertEqual(await PracticeSession.objects.acount(), 1)

    async def test_encouragement_failure_is_swallowed(self) -> None:
        await self.asetUp(is_live_assistant_enabled=True)
        await self.orchestrator.start_practice('Read')
        self.gateway.generate_encouragement.side_effect = GatewayError("oops")

        result = await self.orchestrator.submit_recording(b'fake-webm')

        self.assertIsNone(result.session.assistant_response)
        self.assertIsNone(result.assistant_audio)
        self.gateway.synthesize_speech.assert_not_called()

    async def test_session_write_failure_is_recorded(self) -> None:
        await self.asetUp()
        await self.orchestrator.start_practice('Read')

        with patch.object(
            PracticeSession, 'asave', AsyncMock(side_effect=DatabaseError('disk full'))
        ):
            result = await self.orchestrator.submit_recording(b'fake-webm')

        context = self.orchestrator.context
        self.assertIsNotNone(result)
        self.assertEqual(context.state, PracticeState.FEEDBACK_READY)
        session_write = [w for w in context.writes if w.kind == 'session'][0]
        self.assertEqual(session_write.status, WriteStatus.FAILED)
        self.assertIn('disk full', session_write.error)


class RecordingAndViewFlagsTest(OrchestratorTestBase):
    async def test_abort_recording_returns_to_prompt_ready(self) -> None:
        await self.asetUp()
        await self.orchestrator.start_practice('Read')
        self.orchestrator.begin_recording()

        context = self.orchestrator.abort_recording('Microphone permission denied')

        self.assertEqual(context.state, PracticeState.PROMPT_READY)
        self.assertEqual(context.error, 'Microphone permission denied')

    async def test_begin_recording_requires_prompt(self) -> None:
        await self.asetUp()
        with self.assertRaises(InvalidTransition):
            self.orchestrator.begin_recording()

    async def test_select_word_and_translation(self) -> None:
        await self.asetUp()
        await self.orchestrator.start_practice('Read')

        self.assertEqual(self.orchestrator.select_word('CAFÉ')['definition'], 'coffee')
        self.assertIsNone(self.orchestrator.select_word('inconnu'))
        self.assertTrue(self.orchestrator.toggle_translation())
        self.assertFalse(self.orchestrator.toggle_translation())

    async def test_speak_prompt_returns_wav(self) -> None:
        await self.asetUp()
        await self.orchestrator.start_practice('Read')

        wav = await self.orchestrator.speak_prompt()

        self.assertEqual(wav[:4], b'RIFF')
        self.gateway.synthesize_speech.assert_called_once_with(
            CAFE_PROMPT, 'Kore', 'Parisian Style French'
        )

    async def test_context_survives_session_round_trip(self) -> None:
        await self.asetUp()
        await self.orchestrator.start_practice('Read')

        restored = SessionContext.model_validate(
            self.orchestrator.context.model_dump(mode='json')
        )

        self.assertEqual(restored.state, PracticeState.PROMPT_READY)
        self.assertEqual(restored.prompt, CAFE_PROMPT)


class SettingsRestartTest(OrchestratorTestBase):
    async def test_core_change_mid_practice_regenerates(self) -> None:
        await self.asetUp()
        await self.orchestrator.start_practice('Read')
        new_profile = self.profile.with_updates({'skillLevel': 'Advanced'})

        restarted = await self.orchestrator.apply_settings(
            CommitResult(profile=new_profile, core_changed=True)
        )

        self.assertTrue(restarted)
        self.assertEqual(self.gateway.generate_prompt.call_count, 2)
        self.assertEqual(self.gateway.generate_prompt.call_args[0][1], 'Advanced')
        self.assertEqual(self.orchestrator.context.mode, 'Read')

    async def test_non_core_change_keeps_prompt(self) -> None:
        await self.asetUp()
        await self.orchestrator.start_practice('Read')

        restarted = await self.orchestrator.apply_settings(
            CommitResult(profile=self.profile.with_updates({'dailyGoal': 30}), core_changed=False)
        )

        self.assertFalse(restarted)
        self.assertEqual(self.gateway.generate_prompt.call_count, 1)

    async def test_no_restart_outside_practice(self) -> None:
        await self.asetUp()
        restarted = await self.orchestrator.apply_settings(
            CommitResult(profile=self.profile.with_updates({'skillLevel': 'Expert'}), core_changed=True)
        )
        self.assertFalse(restarted)
        self.gateway.generate_prompt.assert_not_called()
