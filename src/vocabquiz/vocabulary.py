import glob
import logging
import os
import uuid
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from .models import VocabularySet, VocabularyWord, WordDefinitionPair

logger = logging.getLogger(__name__)

SAMPLE_WORDS = [
    ("Abundant", "Present in great quantity"),
    ("Benevolent", "Well-meaning and kindly"),
    ("Candid", "Truthful and straightforward"),
    ("Diligent", "Having or showing care in one's work"),
    ("Eloquent", "Fluent and persuasive in speaking or writing"),
]


def default_set_name(now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    return f"Vocabulary Set {now.strftime('%b')} {now.day}, {now.year}"


class VocabularyManager:
    """Holds vocabulary sets in memory and loads them from CSV files.

    Each set owns its words: deleting a set deletes them. Words only keep the
    id of their set for lookup.
    """

    def __init__(self, directory: str):
        self.directory = directory
        self.vocab_sets: Dict[uuid.UUID, VocabularySet] = {}

    def load_all(self):
        self.vocab_sets = {}
        if not os.path.exists(self.directory):
            os.makedirs(self.directory, exist_ok=True)
            logger.warning(f"Created directory {self.directory}. Please add CSV files.")

        csv_files = sorted(glob.glob(os.path.join(self.directory, "*.csv")))
        for file_path in csv_files:
            self.load_csv(file_path)

        if not self.vocab_sets:
            logger.warning("No CSV files loaded. Loading sample set.")
            self.create_set(
                "Sample Set",
                [WordDefinitionPair(word=w, definition=d) for w, d in SAMPLE_WORDS],
            )

    def load_csv(self, file_path: str) -> Optional[VocabularySet]:
        file_name = os.path.splitext(os.path.basename(file_path))[0]
        try:
            df = pd.read_csv(file_path, encoding="utf-8", dtype=str)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to load {file_path}: {e}")
            return None

        if "word" not in df.columns or "definition" not in df.columns:
            logger.error(f"Skipping {file_name}: Missing columns.")
            return None

        df = df[["word", "definition"]].dropna()
        pairs = [
            WordDefinitionPair(word=row["word"].strip(), definition=row["definition"].strip())
            for row in df.to_dict("records")
            if row["word"].strip() and row["definition"].strip()
        ]
        vocab_set = self.create_set(
            file_name.replace("_", " ").title(),
            pairs,
            source_file_name=os.path.basename(file_path),
        )
        logger.info(f"Loaded {len(pairs)} words from {file_name}")
        return vocab_set

    # --- Sets ---
    def create_set(
        self,
        name: str,
        pairs: Iterable[WordDefinitionPair],
        source_file_name: Optional[str] = None,
    ) -> VocabularySet:
        vocab_set = VocabularySet(
            name=name.strip() or default_set_name(),
            source_file_name=source_file_name,
        )
        for pair in pairs:
            self._attach(vocab_set, pair.word, pair.definition)
        self.vocab_sets[vocab_set.id] = vocab_set
        logger.info(f"Created set '{vocab_set.name}' with {len(vocab_set.words)} words")
        return vocab_set

    def get_set(self, set_id: uuid.UUID) -> Optional[VocabularySet]:
        return self.vocab_sets.get(set_id)

    def get_sets(self) -> List[Dict[str, Any]]:
        sets = [
            {
                "id": str(s.id),
                "name": s.name,
                "count": len(s.words),
                "total_attempts": s.total_attempts,
                "accuracy_percentage": s.accuracy_percentage,
                "date_created": s.date_created.isoformat(),
                "source_file_name": s.source_file_name,
            }
            for s in self.vocab_sets.values()
        ]
        sets.sort(key=lambda x: x["name"])
        return sets

    def rename_set(self, set_id: uuid.UUID, name: str) -> VocabularySet:
        vocab_set = self._require(set_id)
        vocab_set.name = name.strip() or vocab_set.name
        return vocab_set

    def delete_set(self, set_id: uuid.UUID) -> bool:
        vocab_set = self.vocab_sets.pop(set_id, None)
        if vocab_set is None:
            return False
        vocab_set.words.clear()
        logger.info(f"Deleted set '{vocab_set.name}'")
        return True

    # --- Words ---
    def add_word(
        self, set_id: uuid.UUID, word: str, definition: str
    ) -> Optional[VocabularyWord]:
        vocab_set = self._require(set_id)
        if not word.strip() or not definition.strip():
            return None
        return self._attach(vocab_set, word.strip(), definition.strip())

    def update_word(
        self, set_id: uuid.UUID, word_id: uuid.UUID, word: str, definition: str
    ) -> Optional[VocabularyWord]:
        """Edit a word in place, keeping its id and answer counters.

        Returns None when the word is unknown or either side is blank.
        """
        self._require(set_id)
        if not word.strip() or not definition.strip():
            return None
        entry = self.find_word(set_id, word_id)
        if entry is None:
            return None
        entry.word = word.strip()
        entry.definition = definition.strip()
        return entry

    def delete_word(self, set_id: uuid.UUID, word_id: uuid.UUID) -> bool:
        vocab_set = self._require(set_id)
        for i, word in enumerate(vocab_set.words):
            if word.id == word_id:
                del vocab_set.words[i]
                return True
        return False

    def find_word(
        self, set_id: uuid.UUID, word_id: uuid.UUID
    ) -> Optional[VocabularyWord]:
        vocab_set = self.get_set(set_id)
        if vocab_set is None:
            return None
        return next((w for w in vocab_set.words if w.id == word_id), None)

    def get_words(self, set_id: uuid.UUID) -> List[VocabularyWord]:
        vocab_set = self.get_set(set_id)
        return list(vocab_set.words) if vocab_set else []

    def _attach(
        self, vocab_set: VocabularySet, word: str, definition: str
    ) -> VocabularyWord:
        entry = VocabularyWord(word=word, definition=definition, set_id=vocab_set.id)
        vocab_set.words.append(entry)
        return entry

    def _require(self, set_id: uuid.UUID) -> VocabularySet:
        vocab_set = self.get_set(set_id)
        if vocab_set is None:
            raise KeyError(f"Unknown vocabulary set: {set_id}")
        return vocab_set
