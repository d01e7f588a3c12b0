"""
coach/views.py.

JSON API for the accent coach: stored history, the practice flow driven by
:class:`coach.orchestrator.SessionOrchestrator`, study runs and progress.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from django.conf import settings
from django.contrib.auth.models import User
from django.db import IntegrityError
from django.http import HttpRequest, HttpResponse, JsonResponse
from django_ratelimit.decorators import ratelimit
from pydantic import ValidationError

from .ai_service import ai_service
from .audio import wav_to_base64
from .auth_views import api_login_required
from .constants import (
    ACCENTS,
    ENGLISH_ACCENTS,
    FLAVORS,
    LANGUAGES,
    LEVEL_DESCRIPTIONS,
    MODES,
    QUICK_CONTEXTS,
    SKILL_LEVELS,
    STUDY_SIZES,
    TTS_VOICES,
    voice_display_name,
)
from .exceptions import GatewayError, InvalidTransition, StudyRunError
from .models import (
    Flashcard,
    FocusSession,
    PracticeSession,
    SavedPassage,
    SlangTerm,
    fold_key,
    generate_id,
)
from .orchestrator import SessionContext, SessionOrchestrator
from .profile_manager import ProfileData, SettingsManager, load_profile, save_profile
from .progress import progress_summary
from .rendering import with_rendered_analysis
from .schemas import (
    CustomCardIn,
    FocusSessionIn,
    PassageIn,
    SessionIn,
    SlangIn,
    StartPracticeIn,
    StudyAnswerIn,
)
from .spaced_repetition import (
    StudyRun,
    add_custom_card,
    normalize_study_size,
    record_answer,
    replace_flashcards,
    start_study_run,
    translate_card,
)

logger = logging.getLogger(__name__)

# Keys in request.session
PRACTICE_KEY = 'practice_context'
STAGED_SETTINGS_KEY = 'staged_settings'
STUDY_KEY = 'study_run'

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _error(message: str, status: int, **extra: Any) -> JsonResponse:
    return JsonResponse({'message': message, **extra}, status=status)


def _method_not_allowed(*methods: str) -> JsonResponse:
    return _error(f"Only {'/'.join(methods)} requests are allowed", 405)


def _invalid(exc: ValidationError) -> JsonResponse:
    errors = [
        {'field': '.'.join(str(part) for part in err['loc']), 'message': err['msg']}
        for err in exc.errors()
    ]
    return _error('Invalid request', 400, errors=errors)


def _json_body(request: HttpRequest) -> Any:
    """Decoded JSON body, ``{}`` for an empty body.

    Raises:
        ValueError: If the body is not valid JSON
    """
    if not request.body:
        return {}
    return json.loads(request.body)


async def _active_profile(user: User) -> ProfileData:
    profile = await load_profile(user)
    if profile is None:
        return ProfileData(email=user.email or user.username)
    return ProfileData.from_model(profile)


async def _orchestrator(request: HttpRequest, user: User) -> SessionOrchestrator:
    data = await request.session.aget(PRACTICE_KEY)
    context = SessionContext.model_validate(data) if data else SessionContext()
    profile = await _active_profile(user)
    return SessionOrchestrator(user, profile, context, gateway=ai_service)


async def _save_context(request: HttpRequest, context: SessionContext) -> None:
    if context.superseded:
        logger.info("Not storing a practice context replaced by a newer run")
        return
    await request.session.aset(PRACTICE_KEY, context.model_dump(mode='json'))


async def _card_payload(user: User, card_id: Optional[str]) -> Optional[Dict[str, Any]]:
    if not card_id:
        return None
    card = await Flashcard.objects.filter(pk=card_id, user=user).afirst()
    return card.as_dict() if card else None


# ---------------------------------------------------------------------------
# Stored history
# ---------------------------------------------------------------------------


@api_login_required
async def profile_view(request: HttpRequest) -> JsonResponse:
    """GET the saved profile (or null); POST a complete profile to replace it."""
    user = await request.auser()
    if request.method == 'GET':
        profile = await load_profile(user)
        return JsonResponse(profile.as_dict() if profile else None, safe=False)
    if request.method != 'POST':
        return _method_not_allowed('GET', 'POST')

    try:
        data = _json_body(request)
        if not isinstance(data, dict):
            return _error('Expected a JSON object', 400)
        profile_data = ProfileData.model_validate(
            {**data, 'email': user.email or user.username}
        )
    except ValidationError as e:
        return _invalid(e)
    except ValueError:
        return _error('Malformed JSON', 400)

    await save_profile(user, profile_data)
    await request.session.apop(STAGED_SETTINGS_KEY, None)
    return JsonResponse({'success': True})


@api_login_required
async def sessions_view(request: HttpRequest) -> JsonResponse:
    """Practice history, newest first, or append one session."""
    user = await request.auser()
    if request.method == 'GET':
        sessions = [
            with_rendered_analysis(s.as_dict())
            async for s in PracticeSession.objects.filter(user=user).order_by('-date')
        ]
        return JsonResponse(sessions, safe=False)
    if request.method != 'POST':
        return _method_not_allowed('GET', 'POST')

    try:
        payload = SessionIn.model_validate_json(request.body or b'{}')
    except ValidationError as e:
        return _invalid(e)

    try:
        session = await PracticeSession.objects.acreate(
            id=payload.id or generate_id(),
            user=user,
            date=payload.date,
            language=payload.language,
            accent=payload.accent,
            skill_level=payload.skill_level,
            flavor=payload.flavor,
            mode=payload.mode,
            prompt=payload.prompt,
            score=payload.score,
            feedback=payload.feedback.model_dump(by_alias=True),
            assistant_response=payload.assistant_response,
        )
    except IntegrityError:
        return _error('A session with this id already exists', 409)
    return JsonResponse({'success': True, 'id': session.id})


@api_login_required
async def passages_view(request: HttpRequest) -> JsonResponse:
    user = await request.auser()
    if request.method == 'GET':
        passages = [
            p.as_dict()
            async for p in SavedPassage.objects.filter(user=user).order_by('-date')
        ]
        return JsonResponse(passages, safe=False)
    if request.method != 'POST':
        return _method_not_allowed('GET', 'POST')

    try:
        payload = PassageIn.model_validate_json(request.body or b'{}')
    except ValidationError as e:
        return _invalid(e)

    try:
        passage = await SavedPassage.objects.acreate(
            id=payload.id or generate_id(),
            user=user,
            text=payload.text,
            date=payload.date,
            language=payload.language,
        )
    except IntegrityError:
        return _error('A passage with this id already exists', 409)
    return JsonResponse({'success': True, 'id': passage.id})


@api_login_required
async def slang_view(request: HttpRequest) -> JsonResponse:
    """Slang bank, newest first; posting a known term is a no-op."""
    user = await request.auser()
    if request.method == 'GET':
        terms = [
            t.as_dict()
            async for t in SlangTerm.objects.filter(user=user).order_by('-date_learned')
        ]
        return JsonResponse(terms, safe=False)
    if request.method != 'POST':
        return _method_not_allowed('GET', 'POST')

    try:
        payload = SlangIn.model_validate_json(request.body or b'{}')
    except ValidationError as e:
        return _invalid(e)

    try:
        term, created = await SlangTerm.objects.aget_or_create(
            user=user,
            language=payload.language,
            term_key=fold_key(payload.term),
            defaults={
                'id': payload.id or generate_id(),
                'term': payload.term,
                'meaning': payload.meaning,
                'example': payload.example,
                'region': payload.region,
                'date_learned': payload.date_learned,
            },
        )
    except IntegrityError:
        return _error('A slang entry with this id already exists', 409)
    return JsonResponse({'success': True, 'id': term.id, 'created': created})


@api_login_required
async def flashcards_view(request: HttpRequest) -> JsonResponse:
    """GET every card; POST a full array to replace the user's deck."""
    user = await request.auser()
    if request.method == 'GET':
        cards = [
            c.as_dict()
            async for c in Flashcard.objects.filter(user=user).order_by('date_added')
        ]
        return JsonResponse(cards, safe=False)
    if request.method != 'POST':
        return _method_not_allowed('GET', 'POST')

    try:
        data = _json_body(request)
    except ValueError:
        return _error('Malformed JSON', 400)
    if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
        return _error('Expected a JSON array of flashcards', 400)

    try:
        count = await replace_flashcards(user, data)
    except (TypeError, ValueError) as e:
        return _error(f'Invalid flashcard: {e}', 400)
    return JsonResponse({'success': True, 'count': count})


@api_login_required
async def add_flashcard(request: HttpRequest) -> JsonResponse:
    """Add one hand-written card in the given (or active) language."""
    if request.method != 'POST':
        return _method_not_allowed('POST')
    user = await request.auser()

    try:
        payload = CustomCardIn.model_validate_json(request.body or b'{}')
    except ValidationError as e:
        return _invalid(e)

    language = payload.language or (await _active_profile(user)).target_language
    card, created = await add_custom_card(
        user, language, payload.word, payload.definition, payload.word_type
    )
    return JsonResponse(
        {'success': True, 'created': created, 'card': card.as_dict()},
        status=201 if created else 200,
    )


@api_login_required
@ratelimit(key='ip', rate='30/m', method='POST')  # type: ignore
async def flashcard_translation(request: HttpRequest, card_id: str) -> JsonResponse:
    """Target-language definition of a card, translated once and cached."""
    if request.method != 'POST':
        return _method_not_allowed('POST')
    user = await request.auser()
    card = await Flashcard.objects.filter(pk=card_id, user=user).afirst()
    if card is None:
        return _error('Flashcard not found', 404)

    try:
        translation = await translate_card(card, ai_service)
    except GatewayError as e:
        return _error(str(e), 502)
    return JsonResponse({'cardId': card.id, 'definitionTarget': translation})


@api_login_required
async def focus_sessions_view(request: HttpRequest) -> JsonResponse:
    user = await request.auser()
    if request.method == 'GET':
        focus = [f.as_dict() async for f in FocusSession.objects.filter(user=user)]
        return JsonResponse(focus, safe=False)
    if request.method != 'POST':
        return _method_not_allowed('GET', 'POST')

    try:
        payload = FocusSessionIn.model_validate_json(request.body or b'{}')
    except ValidationError as e:
        return _invalid(e)

    try:
        focus_session = await FocusSession.objects.acreate(
            id=payload.id or generate_id(),
            user=user,
            date=payload.date,
            minutes=payload.minutes,
        )
    except IntegrityError:
        return _error('A focus session with this id already exists', 409)
    return JsonResponse({'success': True, 'id': focus_session.id})


# ---------------------------------------------------------------------------
# Practice flow
# ---------------------------------------------------------------------------


@api_login_required
async def practice_view(request: HttpRequest) -> JsonResponse:
    if request.method != 'GET':
        return _method_not_allowed('GET')
    data = await request.session.aget(PRACTICE_KEY)
    context = SessionContext.model_validate(data) if data else SessionContext()
    return JsonResponse(context.as_dict())


@api_login_required
@ratelimit(key='ip', rate='20/m', method='POST')  # type: ignore
@ratelimit(key='ip', rate='500/d', method='POST')  # type: ignore
async def start_practice(request: HttpRequest) -> JsonResponse:
    """
    Start a practice run.

    Body: ``{mode, text?, context?, flavor?}``. With ``text`` the prompt is
    used verbatim; otherwise one is generated. Responds 502 with the
    context when generation fails.
    """
    if request.method != 'POST':
        return _method_not_allowed('POST')
    user = await request.auser()

    try:
        payload = StartPracticeIn.model_validate_json(request.body or b'{}')
    except ValidationError as e:
        return _invalid(e)

    orchestrator = await _orchestrator(request, user)
    context = await orchestrator.start_practice(
        payload.mode, payload.text, payload.context, payload.flavor
    )
    if context.superseded:
        return _error('A newer practice run replaced this one', 409)
    await _save_context(request, context)
    status = 502 if context.error and not context.prompt else 200
    return JsonResponse(context.as_dict(), status=status)


@api_login_required
async def begin_recording(request: HttpRequest) -> JsonResponse:
    if request.method != 'POST':
        return _method_not_allowed('POST')
    user = await request.auser()
    orchestrator = await _orchestrator(request, user)
    try:
        context = orchestrator.begin_recording()
    except InvalidTransition as e:
        return _error(str(e), 409)
    await _save_context(request, context)
    return JsonResponse(context.as_dict())


@api_login_required
async def abort_recording(request: HttpRequest) -> JsonResponse:
    """Report a microphone or encoding failure; the prompt stays ready."""
    if request.method != 'POST':
        return _method_not_allowed('POST')
    user = await request.auser()
    try:
        data = _json_body(request)
    except ValueError:
        data = {}
    reason = str(data.get('reason') or '') if isinstance(data, dict) else ''

    orchestrator = await _orchestrator(request, user)
    try:
        context = orchestrator.abort_recording(reason)
    except InvalidTransition as e:
        return _error(str(e), 409)
    await _save_context(request, context)
    return JsonResponse(context.as_dict())


@api_login_required
@ratelimit(key='ip', rate='20/m', method='POST')  # type: ignore
@ratelimit(key='ip', rate='500/d', method='POST')  # type: ignore
async def submit_recording(request: HttpRequest) -> JsonResponse:
    """
    Analyse an uploaded recording of the current prompt.

    Expects multipart form data with an ``audio`` file. Returns the stored
    session (feedback markdown also rendered to HTML), optional assistant
    speech as base64 WAV, and the updated context.
    """
    if request.method != 'POST':
        return _method_not_allowed('POST')
    user = await request.auser()

    upload = request.FILES.get('audio')
    if upload is None or not upload.size:
        return _error('No audio recording received', 400)
    if upload.size > settings.MAX_RECORDING_BYTES:
        return _error('Recording is too large', 413)
    audio = upload.read()
    mime_type = upload.content_type or 'audio/webm'

    orchestrator = await _orchestrator(request, user)
    try:
        result = await orchestrator.submit_recording(audio, mime_type)
    except InvalidTransition as e:
        return _error(str(e), 409)
    except ValueError as e:
        return _error(str(e), 400)
    context = orchestrator.context
    await _save_context(request, context)

    if result is None:
        return JsonResponse(
            {'message': context.error, 'context': context.as_dict()}, status=502
        )
    return JsonResponse(
        {
            'session': with_rendered_analysis(result.session.as_dict()),
            'assistantAudio': (
                wav_to_base64(result.assistant_audio) if result.assistant_audio else None
            ),
            'context': context.as_dict(),
        }
    )


@api_login_required
@ratelimit(key='ip', rate='20/m', method='POST')  # type: ignore
async def speak_prompt(request: HttpRequest) -> HttpResponse:
    """The current prompt spoken in the configured voice, as ``audio/wav``."""
    if request.method != 'POST':
        return _method_not_allowed('POST')
    user = await request.auser()
    orchestrator = await _orchestrator(request, user)
    try:
        wav = await orchestrator.speak_prompt()
    except InvalidTransition as e:
        return _error(str(e), 409)
    except GatewayError as e:
        return _error(str(e), 502)
    return HttpResponse(wav, content_type='audio/wav')


@api_login_required
async def toggle_translation(request: HttpRequest) -> JsonResponse:
    if request.method != 'POST':
        return _method_not_allowed('POST')
    user = await request.auser()
    orchestrator = await _orchestrator(request, user)
    shown = orchestrator.toggle_translation()
    await _save_context(request, orchestrator.context)
    return JsonResponse({'showTranslation': shown})


@api_login_required
async def select_word(request: HttpRequest) -> JsonResponse:
    """Select a vocabulary word of the prompt by ``{word}``; null clears it."""
    if request.method != 'POST':
        return _method_not_allowed('POST')
    user = await request.auser()
    try:
        data = _json_body(request)
    except ValueError:
        return _error('Malformed JSON', 400)
    word = data.get('word') if isinstance(data, dict) else None

    orchestrator = await _orchestrator(request, user)
    selected = orchestrator.select_word(str(word) if word else None)
    await _save_context(request, orchestrator.context)
    return JsonResponse({'selectedWord': selected})


@api_login_required
async def end_practice(request: HttpRequest) -> JsonResponse:
    if request.method != 'POST':
        return _method_not_allowed('POST')
    user = await request.auser()
    orchestrator = await _orchestrator(request, user)
    context = await orchestrator.end_practice()
    await _save_context(request, context)
    return JsonResponse(context.as_dict())


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


async def _settings_manager(request: HttpRequest, user: User) -> SettingsManager:
    active = await _active_profile(user)
    staged = await request.session.aget(STAGED_SETTINGS_KEY)
    return SettingsManager.from_state(active, staged)


@api_login_required
async def settings_view(request: HttpRequest) -> JsonResponse:
    """GET the active and staged profiles; POST partial updates to the staged copy."""
    user = await request.auser()
    manager = await _settings_manager(request, user)
    if request.method == 'GET':
        return JsonResponse(
            {'active': manager.active.as_dict(), 'staged': manager.staged.as_dict()}
        )
    if request.method != 'POST':
        return _method_not_allowed('GET', 'POST')

    try:
        data = _json_body(request)
        if not isinstance(data, dict):
            return _error('Expected a JSON object', 400)
        staged = manager.stage(data)
    except ValidationError as e:
        return _invalid(e)
    except ValueError:
        return _error('Malformed JSON', 400)

    await request.session.aset(STAGED_SETTINGS_KEY, staged.as_dict())
    return JsonResponse({'staged': staged.as_dict()})


@api_login_required
@ratelimit(key='ip', rate='20/m', method='POST')  # type: ignore
async def commit_settings(request: HttpRequest) -> JsonResponse:
    """
    Save the staged profile as active.

    A running practice is regenerated in the same mode when language,
    accent or skill level changed.
    """
    if request.method != 'POST':
        return _method_not_allowed('POST')
    user = await request.auser()
    manager = await _settings_manager(request, user)
    result = await manager.commit(user)
    await request.session.apop(STAGED_SETTINGS_KEY, None)

    orchestrator = await _orchestrator(request, user)
    restarted = await orchestrator.apply_settings(result)
    await _save_context(request, orchestrator.context)
    return JsonResponse(
        {
            'profile': result.profile.as_dict(),
            'coreChanged': result.core_changed,
            'restarted': restarted,
            'context': orchestrator.context.as_dict(),
        }
    )


# ---------------------------------------------------------------------------
# Study runs
# ---------------------------------------------------------------------------


async def _load_run(request: HttpRequest) -> Optional[StudyRun]:
    data = await request.session.aget(STUDY_KEY)
    return StudyRun.model_validate(data) if data else None


@api_login_required
async def study_view(request: HttpRequest) -> JsonResponse:
    if request.method != 'GET':
        return _method_not_allowed('GET')
    user = await request.auser()
    run = await _load_run(request)
    if run is None:
        return JsonResponse({'run': None, 'card': None})
    return JsonResponse(
        {'run': run.as_dict(), 'card': await _card_payload(user, run.current_card_id)}
    )


@api_login_required
async def start_study(request: HttpRequest) -> JsonResponse:
    """Draw a new shuffled run of unmastered cards in the active language."""
    if request.method != 'POST':
        return _method_not_allowed('POST')
    user = await request.auser()
    try:
        data = _json_body(request)
    except ValueError:
        return _error('Malformed JSON', 400)
    max_cards = normalize_study_size(data.get('maxCards') if isinstance(data, dict) else None)

    profile = await _active_profile(user)
    run = await start_study_run(user, profile.target_language, max_cards)
    await request.session.aset(STUDY_KEY, run.model_dump(mode='json'))
    return JsonResponse(
        {'run': run.as_dict(), 'card': await _card_payload(user, run.current_card_id)}
    )


@api_login_required
async def answer_study(request: HttpRequest) -> JsonResponse:
    """Record ``{cardId, isCorrect}`` for the run's current card."""
    if request.method != 'POST':
        return _method_not_allowed('POST')
    user = await request.auser()
    try:
        payload = StudyAnswerIn.model_validate_json(request.body or b'{}')
    except ValidationError as e:
        return _invalid(e)

    run = await _load_run(request)
    if run is None:
        return _error('No study run in progress', 409)

    try:
        card = await record_answer(user, run, payload.card_id, payload.is_correct)
    except StudyRunError as e:
        return _error(str(e), 409)
    except Flashcard.DoesNotExist:
        return _error('Flashcard not found', 404)

    await request.session.aset(STUDY_KEY, run.model_dump(mode='json'))
    return JsonResponse(
        {
            'card': card.as_dict(),
            'run': run.as_dict(),
            'next': await _card_payload(user, run.current_card_id),
        }
    )


# ---------------------------------------------------------------------------
# Progress & catalog
# ---------------------------------------------------------------------------


@api_login_required
async def progress_view(request: HttpRequest) -> JsonResponse:
    if request.method != 'GET':
        return _method_not_allowed('GET')
    user = await request.auser()
    return JsonResponse(await progress_summary(user))


@api_login_required
async def catalog_view(request: HttpRequest) -> JsonResponse:
    """
    Static choices the client needs for onboarding and settings.

    With ``?accent=<id>`` each voice also carries its regional display name.
    """
    if request.method != 'GET':
        return _method_not_allowed('GET')
    levels: List[Dict[str, str]] = [
        {'id': level, 'description': LEVEL_DESCRIPTIONS[level]} for level in SKILL_LEVELS
    ]
    accent_id = request.GET.get('accent', '')
    voices = [
        {**voice, 'displayName': voice_display_name(voice['id'], accent_id)}
        for voice in TTS_VOICES
    ]
    return JsonResponse(
        {
            'languages': LANGUAGES,
            'accents': ACCENTS,
            'skillLevels': levels,
            'flavors': FLAVORS,
            'modes': MODES,
            'voices': voices,
            'englishAccents': ENGLISH_ACCENTS,
            'quickContexts': QUICK_CONTEXTS,
            'studySizes': STUDY_SIZES,
        }
    )
