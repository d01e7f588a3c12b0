"""
Tests for the JSON API with async views.

The generation service is patched at ``coach.views.ai_service`` so no
request reaches Gemini.
"""

import asyncio
import json
from io import StringIO
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

from asgiref.sync import sync_to_async
from django.contrib.auth.models import User
from django.core.cache import cache
from django.core.files.uploadedfile import SimpleUploadedFile
from django.core.management import call_command
from django.core.management.base import CommandError
from django.http import HttpResponse
from django.template import Context, Template
from django.test import RequestFactory, SimpleTestCase, TestCase, TransactionTestCase
from django.test.client import AsyncClient
from django.urls import reverse
from django_ratelimit.exceptions import Ratelimited

from accentmaster.ratelimit_middleware import RateLimitMiddleware

from .analysis_models import PracticePrompt, SpeechAnalysis, VocabularyItem
from .exceptions import GatewayError
from .models import Flashcard, FocusSession, PracticeSession, SavedPassage, SlangTerm, UserProfile
from .rendering import markdown_to_html

PROMPT_TEXT = 'Le chat dort sur le canapé.'

SESSION_PAYLOAD = {
    'id': 'sess-1',
    'date': '2025-10-18T09:30:00+00:00',
    'language': 'French',
    'accent': 'fr-paris',
    'skillLevel': 'Beginner',
    'flavor': 'Casual',
    'mode': 'Read',
    'prompt': 'Bonjour tout le monde',
    'score': 78,
    'feedback': {
        'strengths': ['Clear r'],
        'improvements': ['Nasal vowels'],
        'detailedAnalysis': 'Work on **on** and **an**.',
    },
}


def configure_gateway(mock_ai_service: MagicMock) -> None:
    mock_ai_service.generate_prompt = AsyncMock(
        return_value=PracticePrompt(
            text=PROMPT_TEXT,
            translation='The cat sleeps on the **sofa**.',
            vocabulary=[
                VocabularyItem(
                    word='canapé', definition='sofa', english_equivalent='sofa'
                )
            ],
        )
    )
    mock_ai_service.analyze_recording = AsyncMock(
        return_value=SpeechAnalysis(
            score=88,
            strengths=['Good rhythm'],
            improvements=['Round the u'],
            detailed_analysis='The **u** in *sur* needs rounded lips.',
        )
    )
    mock_ai_service.synthesize_speech = AsyncMock(return_value=b'\x00\x00' * 100)
    mock_ai_service.generate_encouragement = AsyncMock(return_value='Bravo !')
    mock_ai_service.translate_text = AsyncMock(return_value='meuble pour s’asseoir')


class ApiTestCase(TransactionTestCase):
    """Shared helpers for API tests."""

    def setUp(self) -> None:
        self.client = AsyncClient()
        cache.clear()

    async def asetUp(self, with_profile: bool = True) -> None:
        self.user = await User.objects.acreate_user(
            username='learner@example.com', email='learner@example.com'
        )
        if with_profile:
            await UserProfile.objects.acreate(user=self.user, email=self.user.email)
        await sync_to_async(self.client.force_login)(self.user)

    async def post_json(self, name: str, data: Any = None, **kwargs: Any):
        return await self.client.post(
            reverse(name, kwargs=kwargs or None),
            data=json.dumps(data if data is not None else {}),
            content_type='application/json',
        )


class AuthTest(ApiTestCase):
    async def test_gated_routes_require_login(self) -> None:
        for name in ('profile', 'sessions', 'passages', 'slang', 'flashcards', 'progress', 'practice'):
            response = await self.client.get(reverse(name))
            self.assertEqual(response.status_code, 401, name)
            self.assertEqual(json.loads(response.content), {'message': 'Unauthorized'})

    async def test_login_requires_email(self) -> None:
        response = await self.post_json('login', {'email': ''})
        self.assertEqual(response.status_code, 400)

    async def test_login_creates_user_without_profile(self) -> None:
        response = await self.post_json('login', {'email': 'new@example.com'})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(json.loads(response.content), {'success': True, 'profile': None})
        user = await User.objects.aget(username='new@example.com')
        self.assertFalse(user.has_usable_password())

        me = await self.client.get(reverse('me'))
        self.assertEqual(json.loads(me.content), {'email': 'new@example.com'})

    async def test_login_returns_existing_profile(self) -> None:
        user = await User.objects.acreate_user(username='back@example.com', email='back@example.com')
        await UserProfile.objects.acreate(user=user, email='back@example.com', target_language='Spanish', target_accent='es-mexico')

        response = await self.post_json('login', {'email': 'back@example.com'})

        profile = json.loads(response.content)['profile']
        self.assertEqual(profile['targetLanguage'], 'Spanish')
        self.assertIs(profile['isLiveAssistantEnabled'], False)

    async def test_me_when_logged_out_is_null(self) -> None:
        response = await self.client.get(reverse('me'))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.content, b'null')

    async def test_logout(self) -> None:
        await self.asetUp()
        response = await self.post_json('logout')
        self.assertEqual(json.loads(response.content), {'success': True})
        response = await self.client.get(reverse('profile'))
        self.assertEqual(response.status_code, 401)


class StoredHistoryTest(ApiTestCase):
    async def test_profile_save_normalises_accent(self) -> None:
        await self.asetUp(with_profile=False)
        response = await self.client.get(reverse('profile'))
        self.assertEqual(response.content, b'null')

        response = await self.post_json(
            'profile',
            {
                'name': 'Léa',
                'targetLanguage': 'Spanish',
                'targetAccent': 'fr-quebec',
                'skillLevel': 'Intermediate',
                'preferredFlavor': 'Academic',
                'dailyGoal': 20,
                'preferredVoice': 'Puck',
                'assistantLanguage': 'English',
                'assistantEnglishAccent': 'British',
                'isLiveAssistantEnabled': True,
            },
        )

        self.assertEqual(json.loads(response.content), {'success': True})
        profile = json.loads((await self.client.get(reverse('profile'))).content)
        self.assertEqual(profile['targetAccent'], 'es-mexico')
        self.assertEqual(profile['email'], 'learner@example.com')
        self.assertTrue(profile['isLiveAssistantEnabled'])

    async def test_profile_rejects_invalid_level(self) -> None:
        await self.asetUp()
        response = await self.post_json('profile', {'skillLevel': 'Wizard'})
        self.assertEqual(response.status_code, 400)
        self.assertIn('errors', json.loads(response.content))

    async def test_sessions_round_trip_newest_first(self) -> None:
        await self.asetUp()
        await self.post_json('sessions', SESSION_PAYLOAD)
        await self.post_json(
            'sessions', {**SESSION_PAYLOAD, 'id': 'sess-2', 'date': '2025-10-19T09:30:00+00:00'}
        )

        sessions = json.loads((await self.client.get(reverse('sessions'))).content)

        self.assertEqual([s['id'] for s in sessions], ['sess-2', 'sess-1'])
        self.assertNotIn('assistantResponse', sessions[0])
        self.assertIn('<strong>on</strong>', sessions[0]['feedback']['detailedAnalysisHtml'])

    async def test_duplicate_session_id_conflicts(self) -> None:
        await self.asetUp()
        await self.post_json('sessions', SESSION_PAYLOAD)
        response = await self.post_json('sessions', SESSION_PAYLOAD)
        self.assertEqual(response.status_code, 409)
        self.assertEqual(await PracticeSession.objects.acount(), 1)

    async def test_session_without_id_gets_one(self) -> None:
        await self.asetUp()
        payload = {k: v for k, v in SESSION_PAYLOAD.items() if k != 'id'}
        response = await self.post_json('sessions', payload)
        self.assertTrue(json.loads(response.content)['id'])

    async def test_passages(self) -> None:
        await self.asetUp()
        await self.post_json('passages', {'id': 'p1', 'text': 'Il fait beau.', 'language': 'French'})
        passages = json.loads((await self.client.get(reverse('passages'))).content)
        self.assertEqual(passages[0]['text'], 'Il fait beau.')

    async def test_slang_deduplicated_case_insensitively(self) -> None:
        await self.asetUp()
        entry = {'term': 'Chévere', 'meaning': 'cool', 'region': 'Venezuela', 'language': 'Spanish'}
        await self.post_json('slang', entry)
        response = await self.post_json('slang', {**entry, 'term': 'chévere'})

        self.assertFalse(json.loads(response.content)['created'])
        self.assertEqual(await SlangTerm.objects.filter(user=self.user).acount(), 1)

    async def test_flashcards_full_replace(self) -> None:
        await self.asetUp()
        await Flashcard.objects.acreate(user=self.user, word='ancien', definition_en='old', language='French')

        response = await self.post_json(
            'flashcards',
            [
                {'id': 'c1', 'word': 'vite', 'definitionEn': 'fast', 'language': 'French', 'consecutiveCorrect': 3, 'frequency': 1},
                {'id': 'c2', 'word': 'lento', 'definitionEn': 'slow', 'language': 'Spanish'},
            ],
        )

        self.assertEqual(json.loads(response.content), {'success': True, 'count': 2})
        cards = json.loads((await self.client.get(reverse('flashcards'))).content)
        self.assertEqual(sorted(c['word'] for c in cards), ['lento', 'vite'])

    async def test_flashcards_post_requires_array(self) -> None:
        await self.asetUp()
        response = await self.post_json('flashcards', {'word': 'vite'})
        self.assertEqual(response.status_code, 400)

    async def test_add_custom_flashcard_uses_active_language(self) -> None:
        await self.asetUp()
        response = await self.post_json('add_flashcard', {'word': 'pourtant', 'definition': 'yet'})

        self.assertEqual(response.status_code, 201)
        card = json.loads(response.content)['card']
        self.assertEqual(card['language'], 'French')
        self.assertTrue(card['isCustom'])

    @patch('coach.views.ai_service')
    async def test_flashcard_translation_cached(self, mock_ai_service: MagicMock) -> None:
        await self.asetUp()
        configure_gateway(mock_ai_service)
        card = await Flashcard.objects.acreate(
            user=self.user, word='canapé', definition_en='sofa', language='French'
        )

        first = await self.post_json('flashcard_translation', card_id=card.id)
        second = await self.post_json('flashcard_translation', card_id=card.id)

        self.assertEqual(json.loads(first.content)['definitionTarget'], 'meuble pour s’asseoir')
        self.assertEqual(json.loads(second.content), json.loads(first.content))
        mock_ai_service.translate_text.assert_called_once()

    async def test_other_users_card_not_found(self) -> None:
        await self.asetUp()
        other = await User.objects.acreate_user(username='other@example.com')
        card = await Flashcard.objects.acreate(user=other, word='x', definition_en='x', language='French')
        response = await self.post_json('flashcard_translation', card_id=card.id)
        self.assertEqual(response.status_code, 404)

    async def test_focus_sessions(self) -> None:
        await self.asetUp()
        await self.post_json('focus_sessions', {'minutes': 15})
        response = await self.post_json('focus_sessions', {'minutes': 0})
        self.assertEqual(response.status_code, 400)
        focus = json.loads((await self.client.get(reverse('focus_sessions'))).content)
        self.assertEqual([f['minutes'] for f in focus], [15])
        self.assertEqual(await FocusSession.objects.acount(), 1)


class PracticeApiTest(ApiTestCase):
    @patch('coach.views.ai_service')
    async def test_read_practice_end_to_end(self, mock_ai_service: MagicMock) -> None:
        await self.asetUp()
        configure_gateway(mock_ai_service)

        response = await self.post_json('start_practice', {'mode': 'Read'})
        context = json.loads(response.content)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(context['state'], 'PromptReady')
        self.assertEqual(context['prompt'], PROMPT_TEXT)
        self.assertEqual(await SavedPassage.objects.acount(), 1)

        response = await self.post_json('begin_recording')
        self.assertEqual(json.loads(response.content)['state'], 'Recording')

        audio = SimpleUploadedFile('take.webm', b'fake-audio', content_type='audio/webm')
        response = await self.client.post(reverse('submit_recording'), {'audio': audio})

        self.assertEqual(response.status_code, 200)
        data = json.loads(response.content)
        self.assertEqual(data['context']['state'], 'FeedbackReady')
        self.assertEqual(data['session']['score'], 88)
        self.assertIn('<strong>u</strong>', data['session']['feedback']['detailedAnalysisHtml'])
        self.assertIsNone(data['assistantAudio'])

        session = await PracticeSession.objects.aget(user=self.user)
        self.assertEqual(session.prompt, PROMPT_TEXT)
        card = await Flashcard.objects.aget(user=self.user, word='canapé')
        self.assertEqual(card.practice_count, 1)

        state = json.loads((await self.client.get(reverse('practice'))).content)
        self.assertEqual(state['feedback']['id'], session.id)

    @patch('coach.views.ai_service')
    async def test_live_assistant_audio_returned_as_base64(self, mock_ai_service: MagicMock) -> None:
        await self.asetUp(with_profile=False)
        await UserProfile.objects.acreate(
            user=self.user, email=self.user.email, is_live_assistant_enabled=True
        )
        configure_gateway(mock_ai_service)
        await self.post_json('start_practice', {'mode': 'Read'})

        audio = SimpleUploadedFile('take.webm', b'fake-audio', content_type='audio/webm')
        data = json.loads((await self.client.post(reverse('submit_recording'), {'audio': audio})).content)

        self.assertEqual(data['session']['assistantResponse'], 'Bravo !')
        self.assertTrue(data['assistantAudio'].startswith('UklGR'))

    async def test_submit_without_prompt_conflicts(self) -> None:
        await self.asetUp()
        audio = SimpleUploadedFile('take.webm', b'fake-audio', content_type='audio/webm')

        response = await self.client.post(reverse('submit_recording'), {'audio': audio})

        self.assertEqual(response.status_code, 409)
        self.assertEqual(await PracticeSession.objects.acount(), 0)

    async def test_submit_without_audio_is_bad_request(self) -> None:
        await self.asetUp()
        response = await self.client.post(reverse('submit_recording'), {})
        self.assertEqual(response.status_code, 400)

    @patch('coach.views.ai_service')
    async def test_prompt_failure_returns_502(self, mock_ai_service: MagicMock) -> None:
        await self.asetUp()
        configure_gateway(mock_ai_service)
        mock_ai_service.generate_prompt.side_effect = GatewayError('quota')

        response = await self.post_json('start_practice', {'mode': 'Respond'})

        self.assertEqual(response.status_code, 502)
        context = json.loads(response.content)
        self.assertEqual(context['state'], 'Idle')
        self.assertTrue(context['error'])

    @patch('coach.views.ai_service')
    async def test_analysis_failure_returns_502_and_keeps_prompt(self, mock_ai_service: MagicMock) -> None:
        await self.asetUp()
        configure_gateway(mock_ai_service)
        mock_ai_service.analyze_recording.side_effect = GatewayError('bad output')
        await self.post_json('start_practice', {'mode': 'Read'})

        audio = SimpleUploadedFile('take.webm', b'fake-audio', content_type='audio/webm')
        response = await self.client.post(reverse('submit_recording'), {'audio': audio})

        self.assertEqual(response.status_code, 502)
        self.assertEqual(json.loads(response.content)['context']['state'], 'PromptReady')

    async def test_start_rejects_unknown_mode(self) -> None:
        await self.asetUp()
        response = await self.post_json('start_practice', {'mode': 'Sing'})
        self.assertEqual(response.status_code, 400)

    async def test_tongue_twister_with_text(self) -> None:
        await self.asetUp()
        response = await self.post_json(
            'start_practice', {'mode': 'TongueTwister', 'text': 'Cinq chiens chassent six chats.'}
        )
        self.assertEqual(json.loads(response.content)['prompt'], 'Cinq chiens chassent six chats.')

    @patch('coach.views.ai_service')
    async def test_speech_returns_wav(self, mock_ai_service: MagicMock) -> None:
        await self.asetUp()
        configure_gateway(mock_ai_service)
        await self.post_json('start_practice', {'mode': 'Read'})

        response = await self.post_json('speak_prompt')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response['Content-Type'], 'audio/wav')
        self.assertEqual(response.content[:4], b'RIFF')

    @patch('coach.views.ai_service')
    async def test_translation_and_word_selection(self, mock_ai_service: MagicMock) -> None:
        await self.asetUp()
        configure_gateway(mock_ai_service)
        await self.post_json('start_practice', {'mode': 'Read'})

        shown = json.loads((await self.post_json('toggle_translation')).content)
        selected = json.loads((await self.post_json('select_word', {'word': 'canapé'})).content)

        self.assertTrue(shown['showTranslation'])
        self.assertEqual(selected['selectedWord']['definition'], 'sofa')

    async def test_abort_recording(self) -> None:
        await self.asetUp()
        await self.post_json('start_practice', {'mode': 'TongueTwister'})
        await self.post_json('begin_recording')

        response = await self.post_json('abort_recording', {'reason': 'Microphone unavailable'})

        context = json.loads(response.content)
        self.assertEqual(context['state'], 'PromptReady')
        self.assertEqual(context['error'], 'Microphone unavailable')

    @patch('coach.views.ai_service')
    async def test_overlapping_starts_keep_only_newest_prompt(self, mock_ai_service: MagicMock) -> None:
        await self.asetUp()
        configure_gateway(mock_ai_service)
        first_call_started = asyncio.Event()
        release_first_call = asyncio.Event()
        calls = []

        async def generate_prompt(*args, **kwargs):
            calls.append(args)
            if len(calls) == 1:
                first_call_started.set()
                await release_first_call.wait()
                return PracticePrompt(text='OLD prompt', translation='old')
            return PracticePrompt(text='NEW prompt', translation='new')

        mock_ai_service.generate_prompt.side_effect = generate_prompt

        async def start_second_run():
            await first_call_started.wait()
            response = await self.post_json('start_practice', {'mode': 'Read'})
            release_first_call.set()
            return response

        old_response, new_response = await asyncio.gather(
            self.post_json('start_practice', {'mode': 'Read'}),
            start_second_run(),
        )

        self.assertEqual(old_response.status_code, 409)
        self.assertEqual(new_response.status_code, 200)
        self.assertEqual(json.loads(new_response.content)['prompt'], 'NEW prompt')
        passages = [p.text async for p in SavedPassage.objects.filter(user=self.user)]
        self.assertEqual(passages, ['NEW prompt'])
        state = json.loads((await self.client.get(reverse('practice'))).content)
        self.assertEqual(state['prompt'], 'NEW prompt')

    @patch('coach.views.ai_service')
    async def test_end_practice_resets_context(self, mock_ai_service: MagicMock) -> None:
        await self.asetUp()
        configure_gateway(mock_ai_service)
        await self.post_json('start_practice', {'mode': 'Read'})

        context = json.loads((await self.post_json('end_practice')).content)

        self.assertEqual(context['state'], 'Idle')
        self.assertIsNone(context['mode'])
        self.assertEqual(context['prompt'], '')



class SettingsApiTest(ApiTestCase):
    @patch('coach.views.ai_service')
    async def test_commit_core_change_restarts_practice(self, mock_ai_service: MagicMock) -> None:
        await self.asetUp()
        configure_gateway(mock_ai_service)
        await self.post_json('start_practice', {'mode': 'Read'})

        staged = json.loads((await self.post_json('settings', {'targetLanguage': 'Spanish'})).content)
        self.assertEqual(staged['staged']['targetAccent'], 'es-mexico')
        settings = json.loads((await self.client.get(reverse('settings'))).content)
        self.assertEqual(settings['active']['targetLanguage'], 'French')

        result = json.loads((await self.post_json('commit_settings')).content)

        self.assertTrue(result['coreChanged'])
        self.assertTrue(result['restarted'])
        self.assertEqual(mock_ai_service.generate_prompt.call_count, 2)
        self.assertEqual(mock_ai_service.generate_prompt.call_args[0][0], 'Spanish')
        profile = await UserProfile.objects.aget(user=self.user)
        self.assertEqual(profile.target_language, 'Spanish')

    async def test_invalid_staged_update(self) -> None:
        await self.asetUp()
        response = await self.post_json('settings', {'dailyGoal': 0})
        self.assertEqual(response.status_code, 400)


class StudyApiTest(ApiTestCase):
    async def test_study_run(self) -> None:
        await self.asetUp()
        for word in ('un', 'deux', 'trois'):
            await Flashcard.objects.acreate(user=self.user, word=word, definition_en=word, language='French')
        await Flashcard.objects.acreate(
            user=self.user, word='su', definition_en='known', language='French', consecutive_correct=3
        )

        started = json.loads((await self.post_json('start_study', {'maxCards': 5})).content)
        self.assertEqual(started['run']['total'], 3)

        first_id = started['card']['id']
        answer = json.loads(
            (await self.post_json('answer_study', {'cardId': first_id, 'isCorrect': False})).content
        )
        self.assertEqual(answer['card']['frequency'], 5)
        self.assertEqual(answer['run']['cursor'], 1)

        response = await self.post_json('answer_study', {'cardId': first_id, 'isCorrect': True})
        self.assertEqual(response.status_code, 409)

        current = json.loads((await self.client.get(reverse('study'))).content)
        self.assertEqual(current['card']['id'], answer['next']['id'])

    async def test_answer_without_run(self) -> None:
        await self.asetUp()
        response = await self.post_json('answer_study', {'cardId': 'x', 'isCorrect': True})
        self.assertEqual(response.status_code, 409)


class ProgressAndCatalogApiTest(ApiTestCase):
    async def test_progress(self) -> None:
        await self.asetUp()
        await self.post_json('sessions', {**SESSION_PAYLOAD, 'score': 80})
        data = json.loads((await self.client.get(reverse('progress'))).content)
        self.assertEqual(data['averageScore'], 80)
        self.assertEqual(data['totalSessions'], 1)
        self.assertEqual(data['dailyGoal'], 15)

    async def test_catalog(self) -> None:
        await self.asetUp()
        data = json.loads((await self.client.get(reverse('catalog'))).content)
        self.assertEqual(data['languages'], ['French', 'Spanish'])
        self.assertEqual(data['studySizes'], [5, 10, 15, 20])
        self.assertTrue(all(a['id'].startswith('fr-') for a in data['accents']['French']))
        self.assertEqual(data['voices'][0]['displayName'], 'Puck')

    async def test_catalog_voice_names_follow_accent(self) -> None:
        await self.asetUp()
        response = await self.client.get(reverse('catalog'), {'accent': 'fr-quebec'})
        voices = json.loads(response.content)['voices']
        self.assertEqual(voices[0], {'id': 'Puck', 'name': 'Voice 1', 'displayName': 'Félix'})
        self.assertEqual(voices[2]['displayName'], 'Rosalie')


class RenderingTest(TestCase):
    def test_render_markdown_filter(self) -> None:
        template = Template('{% load markdown_filters %}{{ text|render_markdown }}')
        html = template.render(Context({'text': 'Keep the **r** soft'}))
        self.assertIn('<strong>r</strong>', html)

    def test_empty_analysis_renders_empty(self) -> None:
        self.assertEqual(markdown_to_html(None), '')


class RateLimitResponseTest(SimpleTestCase):
    def setUp(self) -> None:
        self.middleware = RateLimitMiddleware(lambda request: HttpResponse())
        self.request = RequestFactory().post('/api/practice/submit')

    def test_ratelimited_becomes_json_429(self) -> None:
        response = self.middleware.process_exception(self.request, Ratelimited())

        self.assertEqual(response.status_code, 429)
        self.assertEqual(response['Retry-After'], '60')
        self.assertIn('Too many requests', json.loads(response.content)['message'])

    def test_other_exceptions_pass_through(self) -> None:
        self.assertIsNone(self.middleware.process_exception(self.request, ValueError('boom')))


class ManagementCommandTest(TransactionTestCase):
    def test_create_sample_users(self) -> None:
        out = StringIO()
        call_command('create_sample_users', count=2, stdout=out)

        self.assertIn('Successfully created 2 sample users', out.getvalue())
        user = User.objects.get(username='sample_user_1@example.com')
        self.assertEqual(user.accent_profile.target_language, 'French')
        self.assertTrue(PracticeSession.objects.filter(user=user).exists())
        mastered = Flashcard.objects.filter(user__username='sample_user_2@example.com', consecutive_correct__gte=3)
        self.assertTrue(all(card.frequency == 1 for card in mastered))

    def test_focus_timer_unknown_user(self) -> None:
        with self.assertRaises(CommandError):
            call_command('focus_timer', 'nobody@example.com', minutes=1, stdout=StringIO())

    def test_focus_timer_records_session(self) -> None:
        User.objects.create_user(username='focus@example.com')
        out = StringIO()

        with patch('coach.focus.TICK_SECONDS', 0):
            call_command('focus_timer', 'focus@example.com', minutes=1, stdout=out)

        self.assertEqual(FocusSession.objects.get().minutes, 1)
        self.assertIn('recorded', out.getvalue())
