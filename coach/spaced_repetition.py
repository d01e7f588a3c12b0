"""
Flashcard review scheduling.

Cards carry a consecutive-correct streak and a 1-5 review frequency (see
:meth:`coach.models.Flashcard.record_answer`). A study run draws up to
``max_cards`` unmastered cards of the active language in random order and
walks them strictly in sequence.
"""

import logging
import random
from typing import Any, Dict, Iterable, List, Optional, Sequence

from asgiref.sync import sync_to_async
from django.contrib.auth.models import User
from django.db import transaction
from django.db.models import F
from django.utils import timezone
from django.utils.dateparse import parse_datetime
from pydantic import BaseModel, Field

from .constants import (
    DEFAULT_FREQUENCY,
    DEFAULT_STUDY_SIZE,
    MASTERED_STREAK,
    PRIORITY_WORD_LIMIT,
    STUDY_SIZES,
)
from .exceptions import GatewayError, StudyRunError
from .models import Flashcard, fold_key, generate_id

logger = logging.getLogger(__name__)


class StudyRun(BaseModel):
    """Sequential cursor over a shuffled list of flashcard ids."""

    language: str
    card_ids: List[str] = Field(default_factory=list)
    cursor: int = 0
    correct: int = 0
    answered: List[Dict[str, Any]] = Field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return self.cursor >= len(self.card_ids)

    @property
    def current_card_id(self) -> Optional[str]:
        if self.is_complete:
            return None
        return self.card_ids[self.cursor]

    def advance(self, card_id: str, is_correct: bool) -> None:
        """Move past ``card_id``, which must be the current card."""
        if self.is_complete:
            raise StudyRunError("Study run is already complete")
        if card_id != self.current_card_id:
            raise StudyRunError(
                f"Expected an answer for card {self.current_card_id}, got {card_id}"
            )
        self.answered.append({'cardId': card_id, 'isCorrect': is_correct})
        if is_correct:
            self.correct += 1
        self.cursor += 1

    def as_dict(self) -> Dict[str, Any]:
        return {
            'language': self.language,
            'cardIds': self.card_ids,
            'cursor': self.cursor,
            'total': len(self.card_ids),
            'correct': self.correct,
            'currentCardId': self.current_card_id,
            'isComplete': self.is_complete,
        }


def apply_answer(card: Flashcard, is_correct: bool) -> Flashcard:
    """Update ``card``'s schedule in memory; the caller saves it."""
    card.record_answer(is_correct)
    return card


def normalize_study_size(max_cards: Any) -> int:
    """Clamp a requested study size to one of the offered sizes."""
    try:
        size = int(max_cards)
    except (TypeError, ValueError):
        return DEFAULT_STUDY_SIZE
    return size if size in STUDY_SIZES else DEFAULT_STUDY_SIZE


def select_study_cards(
    cards: Iterable[Flashcard],
    language: str,
    max_cards: int = DEFAULT_STUDY_SIZE,
    rng: Optional[random.Random] = None,
) -> List[Flashcard]:
    """Pick up to ``max_cards`` unmastered cards of ``language`` in random order."""
    pool = [
        card
        for card in cards
        if card.language == language and card.consecutive_correct < MASTERED_STREAK
    ]
    (rng or random).shuffle(pool)
    return pool[:max_cards]


async def start_study_run(
    user: User,
    language: str,
    max_cards: int = DEFAULT_STUDY_SIZE,
    rng: Optional[random.Random] = None,
) -> StudyRun:
    """Build a new study run from the user's current cards."""
    cards = [card async for card in Flashcard.objects.filter(user=user, language=language)]
    chosen = select_study_cards(cards, language, max_cards, rng)
    return StudyRun(language=language, card_ids=[card.id for card in chosen])


async def record_answer(
    user: User, run: StudyRun, card_id: str, is_correct: bool
) -> Flashcard:
    """
    Apply one answer of a study run and persist the card.

    Raises:
        StudyRunError: If ``card_id`` is not the run's current card
        Flashcard.DoesNotExist: If the card was deleted meanwhile
    """
    if card_id != run.current_card_id:
        raise StudyRunError(
            f"Expected an answer for card {run.current_card_id}, got {card_id}"
        )
    card = await Flashcard.objects.aget(pk=card_id, user=user)
    apply_answer(card, is_correct)
    await card.asave(
        update_fields=['practice_count', 'consecutive_correct', 'frequency']
    )
    run.advance(card_id, is_correct)
    return card


async def priority_words(
    user: User, language: str, limit: int = PRIORITY_WORD_LIMIT
) -> List[str]:
    """Highest-frequency unmastered words, used as hints for prompt generation."""
    queryset = (
        Flashcard.objects.filter(
            user=user, language=language, consecutive_correct__lt=MASTERED_STREAK
        )
        .order_by('-frequency', 'date_added')
        .values_list('word', flat=True)[:limit]
    )
    return [word async for word in queryset]


async def enroll_words(
    user: User, language: str, items: Iterable[Dict[str, str]]
) -> List[Flashcard]:
    """
    Add generated vocabulary as flashcards, skipping words already on file.

    Matching is case-insensitive per (word, language); calling this twice
    with the same words never creates duplicates.

    Args:
        user: Card owner
        language: Language of the words
        items: Dicts with ``word``, ``definition`` and optional ``word_type``

    Returns:
        Only the newly created cards
    """
    created_cards = []
    seen = set()
    for item in items:
        word = (item.get('word') or '').strip()
        if not word or fold_key(word) in seen:
            continue
        seen.add(fold_key(word))
        card, created = await Flashcard.objects.aget_or_create(
            user=user,
            language=language,
            word_key=fold_key(word),
            defaults={
                'id': generate_id(),
                'word': word,
                'definition_en': item.get('definition', ''),
                'word_type': item.get('word_type', ''),
                'frequency': DEFAULT_FREQUENCY,
                'consecutive_correct': 0,
                'is_custom': False,
            },
        )
        if created:
            created_cards.append(card)
    if created_cards:
        logger.info(
            "Enrolled %d new %s flashcards for %s",
            len(created_cards),
            language,
            user.username,
        )
    return created_cards


async def add_custom_card(
    user: User,
    language: str,
    word: str,
    definition: str,
    word_type: str = '',
) -> tuple[Flashcard, bool]:
    """Add a hand-written card; returns the existing card if the word is on file."""
    return await Flashcard.objects.aget_or_create(
        user=user,
        language=language,
        word_key=fold_key(word),
        defaults={
            'id': generate_id(),
            'word': word.strip(),
            'definition_en': definition,
            'word_type': word_type,
            'is_custom': True,
        },
    )


async def mark_prompt_exposure(user: User, language: str, prompt_text: str) -> int:
    """
    Count one practice for every card whose word appears in ``prompt_text``.

    This is an exposure count: it does not depend on how well the prompt
    was pronounced.

    Returns:
        Number of cards updated
    """
    haystack = fold_key(prompt_text)
    matching_ids = [
        card_id
        async for card_id, word in Flashcard.objects.filter(
            user=user, language=language
        ).values_list('id', 'word')
        if word and fold_key(word) in haystack
    ]
    if not matching_ids:
        return 0
    return await Flashcard.objects.filter(pk__in=matching_ids).aupdate(
        practice_count=F('practice_count') + 1
    )


async def translate_card(card: Flashcard, gateway: Any) -> str:
    """
    Return the card's definition in its own language, translating at most once.

    Raises:
        GatewayError: If the translation call fails; nothing is cached then
    """
    if card.definition_target:
        return card.definition_target
    translation = await gateway.translate_text(card.definition_en, card.language)
    if not translation:
        raise GatewayError("Translation returned no text")
    card.definition_target = translation
    await card.asave(update_fields=['definition_target'])
    return translation


def _parse_date(value: Any) -> Any:
    if not value:
        return timezone.now()
    parsed = parse_datetime(str(value))
    return parsed or timezone.now()


def _replace_flashcards(user: User, cards_data: Sequence[Dict[str, Any]]) -> int:
    """Replace every card of ``user`` with ``cards_data`` in one transaction."""
    requested_ids = [str(data['id']) for data in cards_data if data.get('id')]
    foreign_ids = set(
        Flashcard.objects.filter(pk__in=requested_ids)
        .exclude(user=user)
        .values_list('id', flat=True)
    )
    rows = []
    seen = set()
    used_ids: set[str] = set()
    for data in cards_data:
        word = str(data.get('word') or '').strip()
        language = data.get('language')
        if not word or not language:
            continue
        key = (fold_key(word), language)
        if key in seen:
            continue
        seen.add(key)
        card_id = str(data.get('id') or '')
        if not card_id or card_id in foreign_ids or card_id in used_ids:
            card_id = generate_id()
        used_ids.add(card_id)
        frequency = int(data.get('frequency') or DEFAULT_FREQUENCY)
        rows.append(
            Flashcard(
                id=card_id,
                user=user,
                word=word,
                word_key=fold_key(word),
                definition_en=data.get('definitionEn', ''),
                definition_target=data.get('definitionTarget') or None,
                word_type=data.get('wordType') or '',
                practice_count=max(0, int(data.get('practiceCount') or 0)),
                consecutive_correct=max(0, int(data.get('consecutiveCorrect') or 0)),
                frequency=min(5, max(1, frequency)),
                language=language,
                date_added=_parse_date(data.get('dateAdded')),
                is_custom=bool(data.get('isCustom', False)),
            )
        )
    with transaction.atomic():
        Flashcard.objects.filter(user=user).delete()
        Flashcard.objects.bulk_create(rows)
    return len(rows)


replace_flashcards = sync_to_async(_replace_flashcards)
