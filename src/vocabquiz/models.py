import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, computed_field


class WordDefinitionPair(BaseModel):
    word: str
    definition: str


class VocabularyWord(BaseModel):
    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    word: str
    definition: str
    date_added: datetime = Field(default_factory=datetime.now)
    times_correct: int = 0
    times_incorrect: int = 0
    # Lookup only; the owning set controls the word's lifecycle.
    set_id: Optional[uuid.UUID] = None


class VocabularySet(BaseModel):
    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    name: str
    date_created: datetime = Field(default_factory=datetime.now)
    source_file_name: Optional[str] = None
    words: List[VocabularyWord] = Field(default_factory=list)

    @computed_field
    @property
    def total_attempts(self) -> int:
        return sum(w.times_correct + w.times_incorrect for w in self.words)

    @computed_field
    @property
    def accuracy_percentage(self) -> int:
        total = self.total_attempts
        if not total:
            return 0
        return int(sum(w.times_correct for w in self.words) * 100 / total)


class QuizQuestion(BaseModel):
    word_text: str
    correct_definition: str
    options: List[str]
    correct_answer_index: int
    user_answer_index: Optional[int] = None
    word_id: Optional[uuid.UUID] = None

    @property
    def is_correct(self) -> bool:
        if self.user_answer_index is None:
            return False
        return self.user_answer_index == self.correct_answer_index


class QuizSessionState(BaseModel):
    questions: List[QuizQuestion] = Field(default_factory=list)
    current_question_index: int = 0
    score: int = 0
    incorrect_words: List[VocabularyWord] = Field(default_factory=list)
    is_complete: bool = False
    is_second_chance_round: bool = False
    generation_error: Optional[str] = None
