import logging
import random
import threading
from typing import Callable, List, Optional, Sequence

from .models import QuizQuestion, QuizSessionState, VocabularyWord

logger = logging.getLogger(__name__)

MIN_QUIZ_WORDS = 2
DEFAULT_NUMBER_OF_OPTIONS = 4


# --- Exceptions ---
class QuizGenerationError(Exception):
    """Base class for recoverable quiz generation failures."""


class EmptyInputError(QuizGenerationError):
    def __init__(self):
        super().__init__("Cannot generate quiz: No vocabulary words available.")


class InsufficientWordsError(QuizGenerationError):
    def __init__(self, required: int, available: int):
        self.required = required
        self.available = available
        super().__init__(
            f"Cannot generate quiz: Need at least {required} vocabulary words. "
            f"Currently have {available}."
        )


class NoIncorrectWordsError(QuizGenerationError):
    def __init__(self):
        super().__init__("No incorrect words to review.")


class NoQuestionsGeneratedError(QuizGenerationError):
    def __init__(self):
        super().__init__("Failed to generate quiz questions. Please try again.")


# --- Generation ---
def effective_option_count(
    words: Sequence[VocabularyWord], number_of_options: int
) -> int:
    """Validate ``words`` and clamp the option count into [2, len(words)]."""
    if not words:
        raise EmptyInputError()
    if len(words) < MIN_QUIZ_WORDS:
        raise InsufficientWordsError(MIN_QUIZ_WORDS, len(words))

    effective = min(max(number_of_options, MIN_QUIZ_WORDS), len(words))
    if effective < number_of_options:
        logger.info(
            f"Adjusted quiz options from {number_of_options} to {effective} "
            "based on available words"
        )
    return effective


def build_questions(
    words: Sequence[VocabularyWord], number_of_options: int, rng: random.Random
) -> List[QuizQuestion]:
    """Build one multiple-choice question per word, in random order.

    Distractors are drawn from the definitions of the other words, compared by
    id, so two words sharing a definition still both contribute it.
    """
    questions = []
    for word in words:
        pool = [other.definition for other in words if other.id != word.id]
        rng.shuffle(pool)
        options = pool[: max(number_of_options - 1, 0)]
        options.append(word.definition)
        rng.shuffle(options)

        if word.definition not in options:
            logger.warning(
                f"Could not find correct answer in options for word: {word.word}"
            )
            continue

        questions.append(
            QuizQuestion(
                word_text=word.word,
                correct_definition=word.definition,
                options=options,
                correct_answer_index=options.index(word.definition),
                word_id=word.id,
            )
        )

    rng.shuffle(questions)
    return questions


# --- Session State Machine ---
class QuizSession:
    """A single quiz attempt: generation, answering, scoring and review.

    The session has one owner. Only ``generate_quiz`` may run off the owner's
    thread; its result is published in one step and a newer call supersedes
    an older one still in flight.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()
        self._lock = threading.Lock()
        self._ticket = 0
        self._listeners: List[Callable[["QuizSession"], None]] = []

        self._questions: List[QuizQuestion] = []
        self._current_question_index = 0
        self._score = 0
        self._incorrect_words: List[VocabularyWord] = []
        self._is_complete = False
        self._is_second_chance_round = False
        self._generation_error: Optional[QuizGenerationError] = None

    # --- Read-only state ---
    @property
    def questions(self) -> List[QuizQuestion]:
        return list(self._questions)

    @property
    def current_question_index(self) -> int:
        return self._current_question_index

    @property
    def current_question(self) -> Optional[QuizQuestion]:
        if 0 <= self._current_question_index < len(self._questions):
            return self._questions[self._current_question_index]
        return None

    @property
    def score(self) -> int:
        return self._score

    @property
    def incorrect_words(self) -> List[VocabularyWord]:
        return list(self._incorrect_words)

    @property
    def is_complete(self) -> bool:
        return self._is_complete

    @property
    def is_second_chance_round(self) -> bool:
        return self._is_second_chance_round

    @property
    def generation_error(self) -> Optional[QuizGenerationError]:
        return self._generation_error

    @property
    def score_percentage(self) -> int:
        total = len(self._questions)
        return int(self._score * 100 / total) if total else 0

    @property
    def can_start_second_chance(self) -> bool:
        return (
            self._is_complete
            and bool(self._incorrect_words)
            and not self._is_second_chance_round
        )

    def state(self) -> QuizSessionState:
        error = self._generation_error
        return QuizSessionState(
            questions=[q.model_copy() for q in self._questions],
            current_question_index=self._current_question_index,
            score=self._score,
            incorrect_words=list(self._incorrect_words),
            is_complete=self._is_complete,
            is_second_chance_round=self._is_second_chance_round,
            generation_error=str(error) if error else None,
        )

    # --- Observation ---
    def subscribe(
        self, listener: Callable[["QuizSession"], None]
    ) -> Callable[[], None]:
        """Call ``listener(session)`` after every state change."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self):
        for listener in list(self._listeners):
            listener(self)

    # --- Generation ---
    def generate_quiz(
        self,
        words: Sequence[VocabularyWord],
        number_of_options: int = DEFAULT_NUMBER_OF_OPTIONS,
    ) -> bool:
        words = list(words)
        with self._lock:
            self._ticket += 1
            ticket = self._ticket
            self._generation_error = None

        try:
            effective = effective_option_count(words, number_of_options)
        except QuizGenerationError as e:
            return self._fail(ticket, e, clear_questions=True)

        questions = build_questions(words, effective, self._rng)
        if not questions:
            return self._fail(ticket, NoQuestionsGeneratedError())

        with self._lock:
            if ticket != self._ticket:
                logger.info("Discarding quiz generation superseded by a newer one")
                return False
            self._questions = questions
            self._current_question_index = 0
            self._score = 0
            self._incorrect_words = []
            self._is_complete = False

        logger.info(
            f"Generated {len(questions)} questions with {effective} options each"
        )
        self._notify()
        return True

    def _fail(
        self, ticket: int, error: QuizGenerationError, clear_questions: bool = False
    ) -> bool:
        with self._lock:
            if ticket != self._ticket:
                return False
            self._generation_error = error
            if clear_questions:
                self._questions = []

        logger.warning(f"Quiz generation failed: {error}")
        self._notify()
        return False

    def start_second_chance_round(
        self, number_of_options: int = DEFAULT_NUMBER_OF_OPTIONS
    ) -> bool:
        """Regenerate the quiz from the words answered incorrectly.

        The round is marked as started before generation, so with a single
        missed word the flag is set even though generation then fails.
        """
        if not self._incorrect_words:
            self._generation_error = NoIncorrectWordsError()
            self._notify()
            return False

        self._is_second_chance_round = True
        return self.generate_quiz(self._incorrect_words, number_of_options)

    # --- Answering ---
    def submit_answer(
        self, answer_index: int, word: VocabularyWord
    ) -> Optional[bool]:
        """Record an answer for the current question.

        ``word`` must be the stored entity so its counters update everywhere.
        Returns whether the answer was correct, or None if there is no
        current question.
        """
        question = self.current_question
        if question is None:
            return None

        question.user_answer_index = answer_index
        if question.is_correct:
            self._score += 1
            word.times_correct += 1
        else:
            self._incorrect_words.append(word)
            word.times_incorrect += 1

        self._notify()
        return question.is_correct

    def next_question(self):
        if self._current_question_index < len(self._questions) - 1:
            self._current_question_index += 1
            self._notify()
        else:
            self.complete_quiz()

    def complete_quiz(self):
        if not self._is_complete:
            self._is_complete = True
            self._notify()

    def reset(self):
        self._current_question_index = 0
        self._questions = []
        self._score = 0
        self._incorrect_words = []
        self._is_complete = False
        self._is_second_chance_round = False
        self._notify()
