"""
Practice-session state machine.

A practice run moves through::

    Idle -> PromptPending -> PromptReady -> Recording -> AnalysisPending -> FeedbackReady

with ``Failed`` reachable from either pending state. All view-level flags
(mode, prompt, translation visibility, last feedback, pending writes) live on
one :class:`SessionContext`, which the HTTP layer keeps in the Django session
between requests and hands back to a fresh :class:`SessionOrchestrator`.
"""

import logging
import random
from enum import Enum
from typing import Any, Awaitable, Dict, List, Optional

from django.contrib.auth.models import User
from django.core.cache import cache
from django.db import DatabaseError
from django.utils import timezone
from pydantic import BaseModel, Field

from .ai_service import ai_service
from .audio import pcm_to_wav
from .constants import CONTEXT_WORD_LIMIT, MODES, TONGUE_TWISTERS
from .exceptions import GatewayError, InvalidTransition
from .models import PracticeSession, SavedPassage, SlangTerm, fold_key, generate_id
from .profile_manager import CommitResult, ProfileData
from .spaced_repetition import enroll_words, mark_prompt_exposure, priority_words

logger = logging.getLogger(__name__)

RUN_COUNTER_KEY = 'coach:practice-run:{user_id}'


class PracticeState(str, Enum):
    """States of a single practice run."""

    IDLE = "Idle"
    PROMPT_PENDING = "PromptPending"
    PROMPT_READY = "PromptReady"
    RECORDING = "Recording"
    ANALYSIS_PENDING = "AnalysisPending"
    FEEDBACK_READY = "FeedbackReady"
    FAILED = "Failed"


class WriteStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"


class WriteRecord(BaseModel):
    """Outcome of one store write made during orchestration."""

    kind: str
    status: WriteStatus = WriteStatus.PENDING
    object_id: Optional[str] = None
    error: Optional[str] = None


class SessionContext(BaseModel):
    """Everything the practice screen needs to know about the current run."""

    state: PracticeState = PracticeState.IDLE
    mode: Optional[str] = None
    run_id: int = 0
    prompt: str = ''
    prompt_data: Optional[Dict[str, Any]] = None
    slang_terms: List[Dict[str, Any]] = Field(default_factory=list)
    flavor: Optional[str] = None
    context_text: str = ''
    show_translation: bool = False
    selected_word: Optional[Dict[str, Any]] = None
    feedback: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    writes: List[WriteRecord] = Field(default_factory=list)
    superseded: bool = Field(default=False, exclude=True)

    @property
    def in_practice(self) -> bool:
        """True while the practice screen is open, whatever the state."""
        return self.mode is not None

    @property
    def has_prompt(self) -> bool:
        return bool(self.prompt) and self.state in (
            PracticeState.PROMPT_READY,
            PracticeState.RECORDING,
        )

    def clear_run(self) -> None:
        """Forget everything produced by the previous run."""
        self.prompt = ''
        self.prompt_data = None
        self.slang_terms = []
        self.show_translation = False
        self.selected_word = None
        self.feedback = None
        self.error = None
        self.writes = []

    def as_dict(self) -> Dict[str, Any]:
        return {
            'state': self.state.value,
            'mode': self.mode,
            'prompt': self.prompt,
            'promptData': self.prompt_data,
            'slangTerms': self.slang_terms,
            'flavor': self.flavor,
            'showTranslation': self.show_translation,
            'selectedWord': self.selected_word,
            'feedback': self.feedback,
            'error': self.error,
            'writes': [w.model_dump(mode='json') for w in self.writes],
        }


class SubmissionResult(BaseModel):
    """Result of a successfully analysed recording."""

    model_config = {'arbitrary_types_allowed': True}

    session: PracticeSession
    assistant_audio: Optional[bytes] = None


def cap_words(text: Optional[str], limit: int = CONTEXT_WORD_LIMIT) -> str:
    """Keep at most ``limit`` whitespace-separated words of ``text``."""
    if not text:
        return ''
    return ' '.join(text.split()[:limit])


async def save_slang_terms(
    user: User,
    language: str,
    region: str,
    terms: List[Dict[str, Any]],
    example: str,
) -> List[SlangTerm]:
    """Add slang terms to the bank one at a time, skipping known ones."""
    created_terms = []
    for item in terms:
        term = (item.get('term') or '').strip()
        if not term:
            continue
        slang, created = await SlangTerm.objects.aget_or_create(
            user=user,
            language=language,
            term_key=fold_key(term),
            defaults={
                'id': generate_id(),
                'term': term,
                'meaning': item.get('meaning', ''),
                'example': example,
                'region': region or 'Universal',
            },
        )
        if created:
            created_terms.append(slang)
    return created_terms


async def next_run_id(user: User, floor: int = 0) -> int:
    """
    Bump the user's practice run counter and return the new value.

    The counter lives in the cache so every request of the user sees the
    same value. A missing counter starts again from ``floor``.
    """
    key = RUN_COUNTER_KEY.format(user_id=user.pk)
    await cache.aadd(key, floor, timeout=None)
    try:
        return await cache.aincr(key)
    except ValueError:
        # evicted between add and incr
        await cache.aset(key, floor + 1, timeout=None)
        return floor + 1


async def current_run_id(user: User) -> Optional[int]:
    return await cache.aget(RUN_COUNTER_KEY.format(user_id=user.pk))


class SessionOrchestrator:
    """
    Drives one user's practice flow.

    Args:
        user: The logged-in user owning every row written
        profile: Active practice settings
        context: Current run state (mutated in place)
        gateway: Generation service; defaults to the global ``ai_service``
    """

    def __init__(
        self,
        user: User,
        profile: ProfileData,
        context: Optional[SessionContext] = None,
        gateway: Any = None,
    ) -> None:
        self.user = user
        self.profile = profile
        self.context = context if context is not None else SessionContext()
        self.gateway = gateway if gateway is not None else ai_service

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @property
    def accent_name(self) -> str:
        return self.profile.accent_info()['name']

    def _transition(self, state: PracticeState) -> None:
        logger.debug("Practice %s -> %s", self.context.state.value, state.value)
        self.context.state = state

    async def _is_current(self, run_id: int) -> bool:
        """False once a newer run has started, in this request or another."""
        latest = await current_run_id(self.user)
        if self.context.run_id != run_id or (latest is not None and latest != run_id):
            self.context.superseded = True
            return False
        return True

    async def _persist(self, kind: str, write: Awaitable[Any], object_id: Optional[str] = None) -> bool:
        """Await a store write and record whether it was confirmed."""
        record = WriteRecord(kind=kind, object_id=object_id)
        self.context.writes.append(record)
        try:
            await write
        except DatabaseError as e:
            logger.error("Failed to save %s for %s: %s", kind, self.user.username, e)
            record.status = WriteStatus.FAILED
            record.error = str(e)
            return False
        record.status = WriteStatus.CONFIRMED
        return True

    # ------------------------------------------------------------------
    # Prompt generation
    # ------------------------------------------------------------------

    async def start_practice(
        self,
        mode: str,
        explicit_text: Optional[str] = None,
        context_text: Optional[str] = None,
        flavor: Optional[str] = None,
    ) -> SessionContext:
        """
        Begin (or restart) a practice run in ``mode``.

        With ``explicit_text`` the prompt is used as-is and no generation call
        is made. Gateway failures leave the context ``Idle`` with ``error``
        set; they are never retried automatically.

        Raises:
            ValueError: If ``mode`` is not a known practice mode
        """
        if mode not in MODES:
            raise ValueError(f"Unknown practice mode: {mode}")

        ctx = self.context
        ctx.clear_run()
        ctx.mode = mode
        ctx.superseded = False
        ctx.run_id = await next_run_id(self.user, floor=ctx.run_id)
        run_id = ctx.run_id
        if flavor:
            ctx.flavor = flavor
        ctx.context_text = cap_words(context_text)
        language = self.profile.target_language

        if not explicit_text and mode == 'TongueTwister':
            explicit_text = random.choice(TONGUE_TWISTERS[language])

        if explicit_text:
            ctx.prompt = explicit_text.strip()
            self._transition(PracticeState.PROMPT_READY)
            return ctx

        self._transition(PracticeState.PROMPT_PENDING)
        try:
            if mode == 'Slang':
                await self._generate_slang(run_id)
            else:
                await self._generate_prompt(mode, run_id)
        except GatewayError as e:
            if not await self._is_current(run_id):
                return ctx
            logger.warning("Prompt generation failed for %s: %s", self.user.username, e)
            self._transition(PracticeState.FAILED)
            ctx.error = "Could not generate a prompt. Please try again."
            ctx.prompt = ''
            self._transition(PracticeState.IDLE)
        return ctx

    async def _generate_prompt(self, mode: str, run_id: int) -> None:
        ctx = self.context
        language = self.profile.target_language
        hints = await priority_words(self.user, language)
        prompt = await self.gateway.generate_prompt(
            language,
            self.profile.skill_level,
            ctx.flavor or self.profile.preferred_flavor,
            mode,
            hints,
            ctx.context_text,
        )
        if not await self._is_current(run_id):
            logger.info("Discarding stale prompt for run %d", run_id)
            return

        ctx.prompt = prompt.text
        ctx.prompt_data = prompt.model_dump(by_alias=True)
        self._transition(PracticeState.PROMPT_READY)

        if mode == 'Read':
            passage = SavedPassage(user=self.user, text=prompt.text, language=language)
            await self._persist('passage', passage.asave(force_insert=True), passage.id)

        if not await self._is_current(run_id):
            return
        await self._persist(
            'flashcards',
            enroll_words(
                self.user,
                language,
                [
                    {'word': v.word, 'definition': v.definition, 'word_type': v.word_type}
                    for v in prompt.vocabulary
                ],
            ),
        )

    async def _generate_slang(self, run_id: int) -> None:
        ctx = self.context
        language = self.profile.target_language
        accent = self.profile.accent_info()
        bundle = await self.gateway.generate_slang(
            language, accent['name'], accent['region'], ctx.context_text
        )
        if not await self._is_current(run_id):
            logger.info("Discarding stale slang prompt for run %d", run_id)
            return

        ctx.prompt = bundle.sentence
        ctx.slang_terms = [t.model_dump(by_alias=True) for t in bundle.terms]
        self._transition(PracticeState.PROMPT_READY)

        await self._persist(
            'slang',
            save_slang_terms(
                self.user,
                language,
                accent['region'],
                [{'term': t.term, 'meaning': t.meaning} for t in bundle.terms],
                bundle.sentence,
            ),
        )
        if not await self._is_current(run_id):
            return
        await self._persist(
            'flashcards',
            enroll_words(
                self.user,
                language,
                [
                    {'word': t.term, 'definition': t.meaning, 'word_type': t.word_type}
                    for t in bundle.terms
                ],
            ),
        )

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def begin_recording(self) -> SessionContext:
        if self.context.state != PracticeState.PROMPT_READY or not self.context.prompt:
            raise InvalidTransition('start recording', self.context.state.value)
        self._transition(PracticeState.RECORDING)
        return self.context

    def abort_recording(self, reason: str = '') -> SessionContext:
        """Return to the pre-recording state after a media error."""
        if self.context.state != PracticeState.RECORDING:
            raise InvalidTransition('abort recording', self.context.state.value)
        if reason:
            logger.warning("Recording aborted for %s: %s", self.user.username, reason)
            self.context.error = reason
        self._transition(PracticeState.PROMPT_READY)
        return self.context

    async def submit_recording(
        self, audio: bytes, mime_type: str = 'audio/webm'
    ) -> Optional[SubmissionResult]:
        """
        Analyse a recording of the current prompt and store the session.

        The session row is written before any assistant speech is
        synthesised, so a playback failure never loses the result.

        Returns:
            The stored session and optional assistant WAV audio, or ``None``
            when analysis failed (``context.error`` explains why)

        Raises:
            InvalidTransition: If no prompt is ready
            ValueError: If ``audio`` is empty
        """
        ctx = self.context
        if not ctx.has_prompt:
            raise InvalidTransition('submit a recording', ctx.state.value)
        if not audio:
            raise ValueError("Recording is empty")

        run_id = ctx.run_id
        profile = self.profile
        accent_name = self.accent_name
        ctx.error = None
        self._transition(PracticeState.ANALYSIS_PENDING)

        try:
            analysis = await self.gateway.analyze_recording(
                audio,
                mime_type,
                ctx.prompt,
                profile.target_language,
                accent_name,
                ctx.mode,
                profile.skill_level,
            )
        except GatewayError as e:
            logger.warning("Analysis failed for %s: %s", self.user.username, e)
            self._transition(PracticeState.FAILED)
            ctx.error = "Analysis failed. Please try again."
            self._transition(PracticeState.PROMPT_READY)
            return None

        feedback = analysis.feedback()
        assistant_text = ''
        if profile.is_live_assistant_enabled:
            try:
                assistant_text = await self.gateway.generate_encouragement(
                    feedback,
                    analysis.score,
                    profile.assistant_language,
                    profile.target_language,
                    profile.assistant_english_accent,
                )
            except GatewayError as e:
                logger.warning("Assistant response generation failed: %s", e)

        session = PracticeSession(
            id=generate_id(),
            user=self.user,
            date=timezone.now(),
            language=profile.target_language,
            accent=profile.target_accent,
            skill_level=profile.skill_level,
            flavor=ctx.flavor or profile.preferred_flavor,
            mode=ctx.mode,
            prompt=ctx.prompt,
            score=analysis.score,
            assistant_response=assistant_text or None,
            feedback=feedback,
        )
        await self._persist('session', session.asave(force_insert=True), session.id)
        await self._persist(
            'practice_count',
            mark_prompt_exposure(self.user, profile.target_language, ctx.prompt),
        )

        if await self._is_current(run_id):
            ctx.feedback = session.as_dict()
            self._transition(PracticeState.FEEDBACK_READY)

        assistant_audio = None
        if assistant_text:
            try:
                pcm = await self.gateway.synthesize_speech(
                    assistant_text, profile.preferred_voice, accent_name
                )
                assistant_audio = pcm_to_wav(pcm)
            except GatewayError as e:
                logger.warning("Assistant speech failed: %s", e)

        return SubmissionResult(session=session, assistant_audio=assistant_audio)

    # ------------------------------------------------------------------
    # Prompt helpers
    # ------------------------------------------------------------------

    async def speak_prompt(self) -> bytes:
        """
        Synthesise the current prompt in the configured voice and accent.

        Raises:
            InvalidTransition: If there is no prompt
            GatewayError: If speech synthesis fails
        """
        if not self.context.prompt:
            raise InvalidTransition('play the prompt', self.context.state.value)
        pcm = await self.gateway.synthesize_speech(
            self.context.prompt, self.profile.preferred_voice, self.accent_name
        )
        return pcm_to_wav(pcm)

    def toggle_translation(self) -> bool:
        self.context.show_translation = not self.context.show_translation
        return self.context.show_translation

    def select_word(self, word: Optional[str]) -> Optional[Dict[str, Any]]:
        """Select a vocabulary word of the current prompt, or clear the selection."""
        selected = None
        if word and self.context.prompt_data:
            for item in self.context.prompt_data.get('vocabulary', []):
                if fold_key(item.get('word', '')) == fold_key(word):
                    selected = item
                    break
        self.context.selected_word = selected
        return selected

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    async def apply_settings(self, result: CommitResult) -> bool:
        """
        Switch to newly committed settings.

        Returns:
            True if a running practice was restarted because language,
            accent or skill level changed
        """
        self.profile = result.profile
        mode = self.context.mode
        if self.context.in_practice and result.core_changed and mode:
            logger.info("Core settings changed mid-practice; regenerating prompt")
            await self.start_practice(mode)
            return True
        return False

    async def end_practice(self) -> SessionContext:
        """Leave the practice screen; prompts still in flight are dropped."""
        self.context.clear_run()
        self.context.mode = None
        self.context.run_id = await next_run_id(self.user, floor=self.context.run_id)
        self._transition(PracticeState.IDLE)
        return self.context
