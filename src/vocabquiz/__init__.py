"""Vocabulary parsing and multiple-choice quizzes with a second-chance round."""

from .models import (
    QuizQuestion,
    QuizSessionState,
    VocabularySet,
    VocabularyWord,
    WordDefinitionPair,
)
from .parser import VocabularyParser, parse_vocabulary
from .quiz import (
    EmptyInputError,
    InsufficientWordsError,
    NoIncorrectWordsError,
    NoQuestionsGeneratedError,
    QuizGenerationError,
    QuizSession,
)
from .vocabulary import VocabularyManager

__all__ = [
    "QuizQuestion",
    "QuizSessionState",
    "VocabularySet",
    "VocabularyWord",
    "WordDefinitionPair",
    "VocabularyParser",
    "parse_vocabulary",
    "EmptyInputError",
    "InsufficientWordsError",
    "NoIncorrectWordsError",
    "NoQuestionsGeneratedError",
    "QuizGenerationError",
    "QuizSession",
    "VocabularyManager",
]
