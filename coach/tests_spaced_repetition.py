"""Tests for flashcard scheduling, study runs and vocabulary enrollment."""

import random
from unittest.mock import AsyncMock, MagicMock

from django.contrib.auth.models import User
from django.db import IntegrityError
from django.test import SimpleTestCase, TransactionTestCase

from .exceptions import GatewayError, StudyRunError
from .models import Flashcard
from .spaced_repetition import (
    StudyRun,
    add_custom_card,
    apply_answer,
    enroll_words,
    mark_prompt_exposure,
    normalize_study_size,
    priority_words,
    record_answer,
    replace_flashcards,
    select_study_cards,
    start_study_run,
    translate_card,
)


def card(word: str, language: str = 'French', streak: int = 0, **fields) -> Flashcard:
    return Flashcard(
        word=word,
        definition_en=f'{word} (en)',
        language=language,
        consecutive_correct=streak,
        **fields,
    )


class ApplyAnswerTest(SimpleTestCase):
    def test_correct_answers_lower_frequency_by_streak(self) -> None:
        flashcard = card('chien')
        expected = [(1, 3), (2, 2), (3, 1), (4, 1)]
        for streak, frequency in expected:
            apply_answer(flashcard, True)
            self.assertEqual(flashcard.consecutive_correct, streak)
            self.assertEqual(flashcard.frequency, frequency)
        self.assertEqual(flashcard.practice_count, 4)
        self.assertTrue(flashcard.is_mastered())

    def test_incorrect_answer_resets_streak(self) -> None:
        flashcard = card('chien', streak=2, frequency=2, practice_count=7)
        apply_answer(flashcard, False)
        self.assertEqual(flashcard.consecutive_correct, 0)
        self.assertEqual(flashcard.frequency, 5)
        self.assertEqual(flashcard.practice_count, 8)
        self.assertFalse(flashcard.is_mastered())


class SelectStudyCardsTest(SimpleTestCase):
    def test_mastered_and_other_language_cards_excluded(self) -> None:
        cards = [
            card('chien'),
            card('chat', streak=3),
            card('perro', language='Spanish'),
            card('oiseau', streak=2),
        ]
        chosen = select_study_cards(cards, 'French', 10, random.Random(1))
        self.assertEqual(sorted(c.word for c in chosen), ['chien', 'oiseau'])

    def test_limited_to_max_cards(self) -> None:
        cards = [card(f'mot{i}') for i in range(30)]
        chosen = select_study_cards(cards, 'French', 5, random.Random(7))
        self.assertEqual(len(chosen), 5)
        self.assertEqual(len({c.word for c in chosen}), 5)

    def test_normalize_study_size(self) -> None:
        self.assertEqual(normalize_study_size(15), 15)
        self.assertEqual(normalize_study_size('20'), 20)
        self.assertEqual(normalize_study_size(7), 10)
        self.assertEqual(normalize_study_size(None), 10)


class StudyRunTest(SimpleTestCase):
    def test_sequential_advance_to_completion(self) -> None:
        run = StudyRun(language='French', card_ids=['a', 'b'])
        self.assertEqual(run.current_card_id, 'a')

        run.advance('a', True)
        run.advance('b', False)

        self.assertTrue(run.is_complete)
        self.assertIsNone(run.current_card_id)
        self.assertEqual(run.correct, 1)
        self.assertEqual(run.as_dict()['total'], 2)

    def test_out_of_order_answer_rejected(self) -> None:
        run = StudyRun(language='French', card_ids=['a', 'b'])
        with self.assertRaises(StudyRunError):
            run.advance('b', True)
        self.assertEqual(run.cursor, 0)

    def test_answer_after_completion_rejected(self) -> None:
        run = StudyRun(language='French', card_ids=[])
        self.assertTrue(run.is_complete)
        with self.assertRaises(StudyRunError):
            run.advance('a', True)


class FlashcardStoreTest(TransactionTestCase):
    async def asetUp(self) -> None:
        self.user = await User.objects.acreate_user(username='learner@example.com')

    async def test_enroll_words_is_idempotent_and_case_insensitive(self) -> None:
        await self.asetUp()
        items = [
            {'word': 'Boulangerie', 'definition': 'bakery', 'word_type': 'noun'},
            {'word': 'boulangerie', 'definition': 'bakery'},
        ]

        created = await enroll_words(self.user, 'French', items)
        again = await enroll_words(
            self.user, 'French', [{'word': 'BOULANGERIE', 'definition': 'bakery'}]
        )

        self.assertEqual(len(created), 1)
        self.assertEqual(again, [])
        stored = await Flashcard.objects.aget(user=self.user)
        self.assertEqual(stored.frequency, 3)
        self.assertEqual(stored.consecutive_correct, 0)
        self.assertFalse(stored.is_custom)

    async def test_enroll_words_folds_accented_capitals(self) -> None:
        await self.asetUp()
        await enroll_words(self.user, 'French', [{'word': 'Été', 'definition': 'summer'}])
        again = await enroll_words(
            self.user, 'French', [{'word': 'été', 'definition': 'summer'}]
        )
        _, created = await add_custom_card(self.user, 'French', 'ÉTÉ', 'summer')

        self.assertEqual(again, [])
        self.assertFalse(created)
        words = [c.word async for c in Flashcard.objects.filter(user=self.user)]
        self.assertEqual(words, ['Été'])

    async def test_folded_word_is_unique_in_database(self) -> None:
        await self.asetUp()
        await Flashcard.objects.acreate(
            user=self.user, word='Órale', definition_en='ok', language='Spanish'
        )
        with self.assertRaises(IntegrityError):
            await Flashcard.objects.acreate(
                user=self.user, word='órale', definition_en='ok', language='Spanish'
            )

    async def test_same_word_allowed_in_other_language(self) -> None:
        await self.asetUp()
        await enroll_words(self.user, 'French', [{'word': 'pardon', 'definition': 'sorry'}])
        await enroll_words(self.user, 'Spanish', [{'word': 'pardon', 'definition': 'sorry'}])
        self.assertEqual(await Flashcard.objects.filter(user=self.user).acount(), 2)

    async def test_custom_card_uses_same_lifecycle(self) -> None:
        await self.asetUp()
        flashcard, created = await add_custom_card(self.user, 'French', ' pourtant ', 'yet')
        duplicate, created_again = await add_custom_card(self.user, 'French', 'Pourtant', 'yet')

        self.assertTrue(created)
        self.assertFalse(created_again)
        self.assertEqual(duplicate.id, flashcard.id)
        self.assertTrue(flashcard.is_custom)
        self.assertEqual(flashcard.word, 'pourtant')

    async def test_study_run_records_answers(self) -> None:
        await self.asetUp()
        await enroll_words(
            self.user,
            'French',
            [{'word': 'chien', 'definition': 'dog'}, {'word': 'chat', 'definition': 'cat'}],
        )
        run = await start_study_run(self.user, 'French', 10, random.Random(3))
        self.assertEqual(len(run.card_ids), 2)

        first_id = run.current_card_id
        updated = await record_answer(self.user, run, first_id, True)

        self.assertEqual(updated.consecutive_correct, 1)
        stored = await Flashcard.objects.aget(pk=first_id)
        self.assertEqual(stored.frequency, 3)
        self.assertEqual(stored.practice_count, 1)
        with self.assertRaises(StudyRunError):
            await record_answer(self.user, run, first_id, True)

    async def test_priority_words_order(self) -> None:
        await self.asetUp()
        await Flashcard.objects.acreate(
            user=self.user, word='rare', definition_en='', language='French', frequency=2
        )
        await Flashcard.objects.acreate(
            user=self.user, word='souvent', definition_en='', language='French', frequency=5
        )
        await Flashcard.objects.acreate(
            user=self.user,
            word='acquis',
            definition_en='',
            language='French',
            frequency=1,
            consecutive_correct=3,
        )

        words = await priority_words(self.user, 'French')

        self.assertEqual(words, ['souvent', 'rare'])

    async def test_mark_prompt_exposure_counts_substring_matches(self) -> None:
        await self.asetUp()
        await enroll_words(
            self.user,
            'French',
            [{'word': 'Café', 'definition': 'coffee'}, {'word': 'thé', 'definition': 'tea'}],
        )

        updated = await mark_prompt_exposure(self.user, 'French', 'Un café, SVP.')

        self.assertEqual(updated, 1)
        coffee = await Flashcard.objects.aget(user=self.user, word='Café')
        tea = await Flashcard.objects.aget(user=self.user, word='thé')
        self.assertEqual(coffee.practice_count, 1)
        self.assertEqual(tea.practice_count, 0)
        # exposure never changes the review schedule
        self.assertEqual(coffee.consecutive_correct, 0)

    async def test_translate_card_caches_result(self) -> None:
        await self.asetUp()
        [flashcard] = await enroll_words(
            self.user, 'Spanish', [{'word': 'madrugada', 'definition': 'early morning'}]
        )
        gateway = MagicMock()
        gateway.translate_text = AsyncMock(return_value='temprano en la mañana')

        first = await translate_card(flashcard, gateway)
        stored = await Flashcard.objects.aget(pk=flashcard.pk)
        second = await translate_card(stored, gateway)

        self.assertEqual(first, second)
        self.assertEqual(stored.definition_target, 'temprano en la mañana')
        gateway.translate_text.assert_called_once_with('early morning', 'Spanish')

    async def test_translate_failure_caches_nothing(self) -> None:
        await self.asetUp()
        [flashcard] = await enroll_words(
            self.user, 'Spanish', [{'word': 'sobremesa', 'definition': 'after-meal chat'}]
        )
        gateway = MagicMock()
        gateway.translate_text = AsyncMock(side_effect=GatewayError('down'))

        with self.assertRaises(GatewayError):
            await translate_card(flashcard, gateway)

        stored = await Flashcard.objects.aget(pk=flashcard.pk)
        self.assertIsNone(stored.definition_target)

    async def test_replace_flashcards_dedups_and_clamps(self) -> None:
        await self.asetUp()
        await enroll_words(self.user, 'French', [{'word': 'ancien', 'definition': 'old'}])

        count = await replace_flashcards(
            self.user,
            [
                {'id': 'card1', 'word': 'Nouveau', 'definitionEn': 'new', 'language': 'French', 'frequency': 9},
                {'id': 'card2', 'word': 'nouveau', 'definitionEn': 'new', 'language': 'French'},
                {'id': 'card1', 'word': 'nuevo', 'definitionEn': 'new', 'language': 'Spanish'},
                {'word': 'ÉCOLE', 'definitionEn': 'school', 'language': 'French'},
                {'word': 'école', 'definitionEn': 'school', 'language': 'French'},
                {'word': '', 'language': 'French'},
            ],
        )

        self.assertEqual(count, 3)
        words = sorted([c.word async for c in Flashcard.objects.filter(user=self.user)])
        self.assertEqual(words, ['Nouveau', 'nuevo', 'ÉCOLE'])
        nouveau = await Flashcard.objects.aget(pk='card1')
        self.assertEqual(nouveau.frequency, 5)
