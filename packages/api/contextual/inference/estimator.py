# This project was developed with assistance from AI tools.
"""Token and complexity heuristics for model selection.

Pure functions over text. Weights default to the constants below and can be
tuned through the ``selection`` section of config/models.yaml; callers pass
the relevant mapping in so these functions never touch the filesystem.
"""

import enum
import html
import math
import re
from collections.abc import Mapping
from typing import Any


class Complexity(str, enum.Enum):
    SIMPLE = "simple"
    MEDIUM = "medium"
    COMPLEX = "complex"


DEFAULT_TOKEN_WEIGHTS: dict[str, float] = {
    "words": 0.75,
    "punctuation": 0.5,
    "numbers": 0.3,
    "residual": 0.25,
    "chars_per_token": 3.5,
}

DEFAULT_COMPLEXITY_WEIGHTS: dict[str, int] = {
    "words_per_point": 10,
    "long_prompt_words": 50,
    "long_prompt_bonus": 2,
    "wh_window": 3,
    "wh_penalty": 1,
    "analytical_weight": 2,
    "connective_weight": 1,
    "sentence_weight": 1,
}

WH_WORDS = frozenset({"what", "when", "where", "who", "how"})
ANALYTICAL_VERBS = ("analyze", "compare", "explain", "describe", "evaluate", "critique")
CONNECTIVES = ("and", "or", "but", "however", "therefore", "moreover", "furthermore")

_TAG_RE = re.compile(r"<[^>]*>")
_COMMENT_RE = re.compile(r"<!--.*?-->", re.DOTALL)
_WS_RE = re.compile(r"\s+")
_WORD_RE = re.compile(r"[A-Za-z]+(?:'[A-Za-z]+)*")
_NUMBER_RE = re.compile(r"\d+(?:[.,:]\d+)*")
_PUNCT_RE = re.compile(r"[!-/:-@\[-`{-~]")
_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")
# "analysed", "explains", "comparing" all count as the verb.
_ANALYTICAL_RE = re.compile(
    r"\b(?:analy[sz]|compar|explain|describ|evaluat|critiqu)\w*\b", re.IGNORECASE
)
_CONNECTIVE_RE = re.compile(r"\b(?:" + "|".join(CONNECTIVES) + r")\b", re.IGNORECASE)


def strip_markup(text: str) -> str:
    """Remove HTML/block markup and collapse whitespace."""
    text = _COMMENT_RE.sub(" ", text)
    text = _TAG_RE.sub(" ", text)
    text = html.unescape(text)
    return _WS_RE.sub(" ", text).strip()


def _weights(overrides: Mapping[str, Any] | None, defaults: Mapping[str, Any]) -> dict[str, Any]:
    merged = dict(defaults)
    if overrides:
        merged.update({k: v for k, v in overrides.items() if k in defaults})
    return merged


def estimate_tokens(
    prompt: str,
    context: str = "",
    weights: Mapping[str, Any] | None = None,
) -> int:
    """Estimate the token count of prompt + context.

    Takes the larger of a weighted lexical estimate and a characters/3.5
    floor, so dense scripts without spaces are not underestimated.

    Returns:
        0 when both inputs are empty, otherwise at least 1.
    """
    prompt = prompt or ""
    context = context or ""
    if not prompt and not context:
        return 0

    w = _weights(weights, DEFAULT_TOKEN_WEIGHTS)
    text = strip_markup("\n\n".join(part for part in (prompt, context) if part))

    words = _WORD_RE.findall(text)
    numbers = _NUMBER_RE.findall(text)
    punctuation = _PUNCT_RE.findall(text)

    # Characters not covered by words, numbers or punctuation (non-Latin
    # scripts, symbols, emoji).
    covered = sum(len(x) for x in words) + sum(len(x) for x in numbers) + len(punctuation)
    non_space = len(text.replace(" ", ""))
    residual = max(0, non_space - covered)

    weighted = (
        len(words) * w["words"]
        + len(punctuation) * w["punctuation"]
        + len(numbers) * w["numbers"]
        + residual * w["residual"]
    )
    floor = len(text) / w["chars_per_token"]

    return max(1, math.ceil(max(weighted, floor)))


def _count_sentences(prompt: str) -> int:
    return sum(1 for part in _SENTENCE_SPLIT_RE.split(prompt) if part.strip())


def complexity_score(prompt: str, weights: Mapping[str, Any] | None = None) -> int:
    """Raw complexity score for a prompt. See ``analyze_complexity`` for buckets."""
    w = _weights(weights, DEFAULT_COMPLEXITY_WEIGHTS)
    prompt = (prompt or "").strip()
    if not prompt:
        return 0

    words = prompt.split()
    word_count = len(words)

    score = word_count // w["words_per_point"]
    if word_count > w["long_prompt_words"]:
        score += w["long_prompt_bonus"]

    leading = [re.sub(r"[^a-z]", "", word.lower()) for word in words[: w["wh_window"]]]
    if any(word in WH_WORDS for word in leading):
        score -= w["wh_penalty"]

    score += len(_ANALYTICAL_RE.findall(prompt)) * w["analytical_weight"]
    score += len(_CONNECTIVE_RE.findall(prompt)) * w["connective_weight"]
    score += max(0, _count_sentences(prompt) - 1) * w["sentence_weight"]
    return score


def analyze_complexity(
    prompt: str,
    context: str = "",
    weights: Mapping[str, Any] | None = None,
) -> Complexity:
    """Bucket a prompt into simple / medium / complex.

    ``context`` is accepted for signature symmetry with ``estimate_tokens``
    but never affects the result: only prompt structure is scored.
    """
    del context
    score = complexity_score(prompt, weights)
    if score <= 2:
        return Complexity.SIMPLE
    if score <= 5:
        return Complexity.MEDIUM
    return Complexity.COMPLEX
