import logging
import random

import pytest

from vocabquiz.models import VocabularyWord
from vocabquiz.quiz import (
    EmptyInputError,
    InsufficientWordsError,
    NoIncorrectWordsError,
    NoQuestionsGeneratedError,
    QuizSession,
    build_questions,
)


def _answer(session, word_by_text, correct):
    question = session.current_question
    word = word_by_text[question.word_text]
    index = question.correct_answer_index
    if not correct:
        index = (index + 1) % len(question.options)
    return session.submit_answer(index, word)


@pytest.fixture
def session(fixed_rng):
    return QuizSession(rng=fixed_rng)


def test_generate_quiz_with_no_words(session):
    assert session.generate_quiz([]) is False
    assert isinstance(session.generation_error, EmptyInputError)
    assert session.questions == []


def test_generate_quiz_with_one_word(session, words):
    assert session.generate_quiz(words[:1]) is False
    error = session.generation_error
    assert isinstance(error, InsufficientWordsError)
    assert (error.required, error.available) == (2, 1)
    assert "Currently have 1" in str(error)


def test_failed_generation_clears_stale_questions(session, words):
    assert session.generate_quiz(words)
    assert session.generate_quiz(words[:1]) is False
    assert session.questions == []


def test_generation_clears_previous_error(session, words):
    session.generate_quiz([])
    assert session.generation_error is not None
    assert session.generate_quiz(words)
    assert session.generation_error is None


@pytest.mark.parametrize("options,expected", [(4, 4), (2, 2), (10, 5)])
def test_question_count_and_option_count(words, options, expected):
    session = QuizSession(rng=random.Random(7))
    assert session.generate_quiz(words, number_of_options=options)
    assert len(session.questions) == len(words)
    for question in session.questions:
        assert len(question.options) == expected


@pytest.mark.parametrize("seed", range(10))
def test_correct_answer_index_points_to_definition(words, seed):
    session = QuizSession(rng=random.Random(seed))
    session.generate_quiz(words)
    definitions = {w.definition for w in words}
    for question in session.questions:
        assert 0 <= question.correct_answer_index < len(question.options)
        assert question.options[question.correct_answer_index] == question.correct_definition
        assert set(question.options) <= definitions
        assert len(set(question.options)) == len(question.options)


def test_every_word_gets_one_question(words):
    session = QuizSession(rng=random.Random(3))
    session.generate_quiz(words)
    assert sorted(q.word_text for q in session.questions) == sorted(w.word for w in words)
    assert {q.word_id for q in session.questions} == {w.id for w in words}


def test_distractors_are_taken_in_pool_order(session, words):
    session.generate_quiz(words, number_of_options=3)
    first = session.questions[0]
    assert first.word_text == "Abundant"
    assert first.options == [
        words[1].definition,
        words[2].definition,
        words[0].definition,
    ]
    assert first.correct_answer_index == 2


def test_question_order_is_shuffled(words, reverse_rng):
    questions = build_questions(words, 3, reverse_rng)
    assert [q.word_text for q in questions] == [w.word for w in reversed(words)]


def test_shared_definitions_are_distinct_pool_members(session):
    words = [
        VocabularyWord(word="Big", definition="Large"),
        VocabularyWord(word="Huge", definition="Large"),
        VocabularyWord(word="Tiny", definition="Small"),
    ]
    session.generate_quiz(words, number_of_options=3)
    question = session.questions[0]
    assert question.options == ["Large", "Small", "Large"]
    assert question.correct_answer_index == 0

    # correctness is decided by index, not by matching text
    assert session.submit_answer(2, words[0]) is False
    assert session.score == 0
    assert words[0].times_incorrect == 1


def test_submit_correct_answer(session, words):
    session.generate_quiz(words)
    by_text = {w.word: w for w in words}
    word = by_text[session.current_question.word_text]

    assert _answer(session, by_text, correct=True) is True
    assert session.score == 1
    assert word.times_correct == 1
    assert word.times_incorrect == 0
    assert session.incorrect_words == []
    assert session.current_question.user_answer_index == session.current_question.correct_answer_index
    assert session.current_question.is_correct


def test_submit_incorrect_answer(session, words):
    session.generate_quiz(words)
    by_text = {w.word: w for w in words}
    word = by_text[session.current_question.word_text]

    assert _answer(session, by_text, correct=False) is False
    assert session.score == 0
    assert word.times_incorrect == 1
    assert len(session.incorrect_words) == 1
    assert session.incorrect_words[0] is word


def test_submit_without_questions_is_noop(session, words):
    assert session.submit_answer(0, words[0]) is None
    assert words[0].times_correct == 0
    assert words[0].times_incorrect == 0


def test_next_question_and_completion(session, words):
    session.generate_quiz(words)
    for i in range(1, len(words)):
        session.next_question()
        assert session.current_question_index == i
        assert not session.is_complete

    session.next_question()
    assert session.is_complete
    assert session.current_question_index == len(words) - 1

    session.next_question()
    assert session.is_complete
    assert session.current_question_index == len(words) - 1


def test_generate_quiz_resets_progress(session, words):
    session.generate_quiz(words)
    by_text = {w.word: w for w in words}
    _answer(session, by_text, correct=True)
    session.next_question()
    _answer(session, by_text, correct=False)

    assert session.generate_quiz(words)
    assert session.current_question_index == 0
    assert session.score == 0
    assert session.incorrect_words == []
    assert not session.is_complete


def test_second_chance_without_incorrect_words(session, words):
    session.generate_quiz(words)
    assert session.start_second_chance_round() is False
    assert isinstance(session.generation_error, NoIncorrectWordsError)
    assert not session.is_second_chance_round


def test_second_chance_with_single_incorrect_word(session, words):
    session.generate_quiz(words)
    by_text = {w.word: w for w in words}
    _answer(session, by_text, correct=False)
    for _ in range(len(words) - 1):
        session.next_question()
        _answer(session, by_text, correct=True)
    session.next_question()

    assert session.is_complete
    assert session.can_start_second_chance
    assert session.start_second_chance_round() is False
    assert session.is_second_chance_round
    error = session.generation_error
    assert isinstance(error, InsufficientWordsError)
    assert (error.required, error.available) == (2, 1)
    assert session.questions == []


def test_second_chance_round_uses_incorrect_words(session, words):
    session.generate_quiz(words)
    by_text = {w.word: w for w in words}
    missed = []
    for i in range(len(words)):
        correct = i >= 2
        if not correct:
            missed.append(session.current_question.word_text)
        _answer(session, by_text, correct=correct)
        session.next_question()

    assert session.score_percentage == 60
    assert session.start_second_chance_round()
    assert session.is_second_chance_round
    assert not session.can_start_second_chance
    assert sorted(q.word_text for q in session.questions) == sorted(missed)
    assert all(len(q.options) == 2 for q in session.questions)
    assert session.score == 0
    assert session.incorrect_words == []
    assert not session.is_complete


def test_generate_does_not_touch_second_chance_flag(session, words):
    session.generate_quiz(words)
    by_text = {w.word: w for w in words}
    _answer(session, by_text, correct=False)
    session.next_question()
    _answer(session, by_text, correct=False)
    session.start_second_chance_round()
    assert session.is_second_chance_round

    session.generate_quiz(words)
    assert session.is_second_chance_round


def test_reset_keeps_word_statistics(session, words):
    session.generate_quiz(words)
    by_text = {w.word: w for w in words}
    _answer(session, by_text, correct=True)
    session.next_question()
    _answer(session, by_text, correct=False)
    totals = [(w.times_correct, w.times_incorrect) for w in words]

    session.reset()
    assert session.questions == []
    assert session.current_question_index == 0
    assert session.score == 0
    assert session.incorrect_words == []
    assert not session.is_complete
    assert not session.is_second_chance_round
    assert [(w.times_correct, w.times_incorrect) for w in words] == totals
    assert sum(c for c, _ in totals) == 1
    assert sum(i for _, i in totals) == 1


def test_subscribers_are_notified(session, words):
    seen = []
    unsubscribe = session.subscribe(lambda s: seen.append(s.current_question_index))
    session.generate_quiz(words)
    session.next_question()
    assert seen == [0, 1]

    unsubscribe()
    session.next_question()
    assert seen == [0, 1]


def test_state_snapshot(session, words):
    session.generate_quiz([])
    state = session.state()
    assert state.questions == []
    assert state.generation_error == str(session.generation_error)

    session.generate_quiz(words)
    state = session.state()
    assert len(state.questions) == len(words)
    assert state.generation_error is None

    session.submit_answer(0, words[0])
    assert state.questions[0].user_answer_index is None


def test_superseded_generation_is_discarded(words):
    others = [
        VocabularyWord(word="Fickle", definition="Changing frequently"),
        VocabularyWord(word="Gregarious", definition="Fond of company"),
    ]

    class InterleavingRandom(random.Random):
        triggered = False

        def shuffle(self, x, *args, **kwargs):
            if not self.triggered:
                self.triggered = True
                assert session.generate_quiz(others)

    session = QuizSession(rng=InterleavingRandom())
    assert session.generate_quiz(words) is False
    assert sorted(q.word_text for q in session.questions) == ["Fickle", "Gregarious"]
    assert session.generation_error is None


@pytest.mark.parametrize("options", [1, 0, -3])
def test_option_count_has_a_floor_of_two(words, fixed_rng, options):
    session = QuizSession(rng=fixed_rng)
    assert session.generate_quiz(words, number_of_options=options)
    assert all(len(q.options) == 2 for q in session.questions)


def test_zero_questions_keeps_published_quiz(words, caplog):
    class ClearingRandom(random.Random):
        clearing = False

        def shuffle(self, x, *args, **kwargs):
            if self.clearing:
                x.clear()

    rng = ClearingRandom()
    session = QuizSession(rng=rng)
    assert session.generate_quiz(words)
    published = session.questions

    rng.clearing = True
    with caplog.at_level(logging.WARNING, logger="vocabquiz.quiz"):
        assert session.generate_quiz(words) is False

    assert isinstance(session.generation_error, NoQuestionsGeneratedError)
    assert session.questions == published
    assert "Could not find correct answer in options for word: Abundant" in caplog.text
