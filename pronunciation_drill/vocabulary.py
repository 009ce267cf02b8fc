"""
Vocabulary loading for the Pronunciation Drill.

Supports a built-in English to French word list as well as JSON and CSV
files with ``source``, ``target`` and ``category`` fields.
"""

import csv
import json
import logging
from pathlib import Path
from typing import List, Tuple, Dict, Any

from .config import Config
from .errors import VocabularyError, error_handler
from .models import WordPair


logger = logging.getLogger(__name__)

# Alternative column names accepted for each field
FIELD_ALIASES = {
    'source': ('source', 'en', 'english', 'front'),
    'target': ('target', 'fr', 'french', 'back'),
    'category': ('category', 'type', 'tag'),
}


DEFAULT_VOCABULARY: Tuple[WordPair, ...] = (
    WordPair("hello", "bonjour", "greeting"),
    WordPair("goodbye", "au revoir", "greeting"),
    WordPair("thank you", "merci", "greeting"),
    WordPair("please", "s'il vous plaît", "greeting"),
    WordPair("dog", "chien", "noun"),
    WordPair("cat", "chat", "noun"),
    WordPair("house", "maison", "noun"),
    WordPair("water", "eau", "noun"),
    WordPair("bread", "pain", "noun"),
    WordPair("cheese", "fromage", "noun"),
    WordPair("apple", "pomme", "noun"),
    WordPair("book", "livre", "noun"),
    WordPair("friend", "ami", "noun"),
    WordPair("school", "école", "noun"),
    WordPair("car", "voiture", "noun"),
    WordPair("tree", "arbre", "noun"),
    WordPair("to eat", "manger", "verb"),
    WordPair("to drink", "boire", "verb"),
    WordPair("to speak", "parler", "verb"),
    WordPair("to sleep", "dormir", "verb"),
    WordPair("to read", "lire", "verb"),
    WordPair("to write", "écrire", "verb"),
    WordPair("big", "grand", "adjective"),
    WordPair("small", "petit", "adjective"),
    WordPair("beautiful", "beau", "adjective"),
    WordPair("happy", "heureux", "adjective"),
    WordPair("fast", "rapide", "adjective"),
    WordPair("tomorrow", "demain", "adverb"),
    WordPair("always", "toujours", "adverb"),
    WordPair("slowly", "lentement", "adverb"),
)


def _pick_field(record: Dict[str, Any], field: str) -> str:
    """Return the first non-empty alias of ``field`` present in the record."""
    lowered = {str(k).strip().lower(): v for k, v in record.items() if k is not None}
    for alias in FIELD_ALIASES[field]:
        value = lowered.get(alias)
        if value is not None and str(value).strip():
            return str(value).strip()
    return ""


def _records_to_pairs(records: List[Dict[str, Any]], path: Path) -> List[WordPair]:
    pairs = []
    for row_number, record in enumerate(records, start=1):
        if not isinstance(record, dict):
            raise VocabularyError(error_handler.handle_vocabulary_error(
                "Malformed vocabulary entry",
                f"Entry {row_number} in {path} is not an object",
                str(path)
            ))

        source = _pick_field(record, 'source')
        target = _pick_field(record, 'target')
        if not source and not target:
            continue  # blank row
        if not source or not target:
            raise VocabularyError(error_handler.handle_vocabulary_error(
                "Incomplete vocabulary entry",
                f"Entry {row_number} in {path} needs both a source and a target word",
                str(path)
            ))

        pairs.append(WordPair(source, target, _pick_field(record, 'category')))
    return pairs


def load_vocabulary(file_path: str) -> List[WordPair]:
    """
    Load word pairs from a JSON or CSV file.

    Args:
        file_path: Path to a .json file (list of objects) or .csv file (with header)

    Returns:
        List of word pairs in file order

    Raises:
        VocabularyError: If the file is missing, unsupported, malformed or empty
    """
    path = Path(file_path)

    if not path.is_file():
        raise VocabularyError(error_handler.handle_vocabulary_error(
            "Vocabulary file not found",
            f"No file at {path}",
            str(path)
        ))

    suffix = path.suffix.lower()
    if suffix not in Config.VOCABULARY_FORMATS:
        raise VocabularyError(error_handler.handle_vocabulary_error(
            "Unsupported vocabulary format",
            f"{suffix or 'no extension'} is not one of {', '.join(Config.VOCABULARY_FORMATS)}",
            str(path)
        ))

    try:
        with open(path, 'r', encoding='utf-8') as f:
            if suffix == '.json':
                records = json.load(f)
                if isinstance(records, dict):
                    records = records.get('words', [])
            else:
                records = list(csv.DictReader(f))
    except (OSError, ValueError, csv.Error) as e:
        raise VocabularyError(error_handler.handle_vocabulary_error(
            "Could not read vocabulary file",
            f"{path}: {e}",
            str(path)
        ))

    if not isinstance(records, list):
        raise VocabularyError(error_handler.handle_vocabulary_error(
            "Malformed vocabulary file",
            f"{path} must contain a list of word pairs",
            str(path)
        ))

    pairs = _records_to_pairs(records, path)
    if not pairs:
        raise VocabularyError(error_handler.handle_vocabulary_error(
            "Vocabulary is empty",
            f"{path} contains no word pairs",
            str(path)
        ))

    logger.info(f"Loaded {len(pairs)} word pairs from {path}")
    return pairs
