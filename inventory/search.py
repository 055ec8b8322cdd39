# -*- coding: utf-8 -*-
"""
Recherche tolérante aux fautes de frappe sur le nom des médicaments.
"""
import logging
import unicodedata
from typing import Iterable, List

from fuzzywuzzy import fuzz

logger = logging.getLogger(__name__)


def normalize_text(text: str) -> str:
    """Minuscules, sans accents, espaces compactés."""
    if not text:
        return ''
    text = unicodedata.normalize('NFKD', text)
    text = ''.join(c for c in text if not unicodedata.combining(c))
    return ' '.join(text.lower().split())


def match_score(term: str, drug) -> int:
    """
    Score 0-100 between a search term and a drug.
    An exact batch number always wins.
    """
    term_normalized = normalize_text(term)
    if term_normalized and term_normalized == normalize_text(drug.batch_no):
        return 100

    name = normalize_text(drug.name)
    return max(
        fuzz.partial_ratio(term_normalized, name),
        fuzz.token_sort_ratio(term_normalized, name),
    )


def fuzzy_search(drugs: Iterable, term: str, min_score: int = 70) -> List:
    """Keeps drugs scoring at least `min_score`, best first; ties keep their order."""
    if not term or not term.strip():
        return list(drugs)

    scored = []
    for drug in drugs:
        score = match_score(term, drug)
        if score >= min_score:
            scored.append((score, drug))

    scored.sort(key=lambda item: item[0], reverse=True)
    logger.debug(f"Recherche '{term}': {len(scored)} médicament(s) retenu(s)")
    return [drug for _, drug in scored]
