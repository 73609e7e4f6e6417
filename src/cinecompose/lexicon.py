"""Per-language filler lexicon for caption grouping.

Function words ("de", "the", "né") are glued to a neighbouring content
word so captions read as short punchy units. Which words count as filler
depends on the transcript language, so the tables are keyed by language
code and combined into a Lexicon value that callers pass explicitly.
"""

import re
from dataclasses import dataclass, field


# ── Function-word tables ─────────────────────────────────────────

FILLER_WORDS = {
    "pt": frozenset({
        "a", "o", "e", "é", "de", "do", "da", "dos", "das", "que", "em",
        "um", "uma", "uns", "umas", "para", "pra", "pro", "com", "não",
        "no", "na", "nos", "nas", "os", "as", "se", "por", "mais", "como",
        "mas", "foi", "ao", "aos", "ele", "ela", "isso", "isto", "eu",
        "você", "vc", "nós", "eles", "elas", "aqui", "ali", "ser", "ter",
        "muito", "bem", "só", "já", "então", "vai", "vou", "pode", "tem",
        "né", "tipo", "bom", "aí", "lá", "meu", "minha", "seu", "sua",
        "nem", "ou", "pelo", "pela", "até", "sem", "também", "está", "tá",
    }),
    "en": frozenset({
        "a", "an", "the", "is", "are", "was", "were", "be", "and", "or",
        "but", "to", "of", "in", "on", "at", "for", "it", "its", "this",
        "that", "with", "from", "by", "as", "so", "do", "does", "i", "you",
        "we", "they", "he", "she", "my", "your", "our", "not", "just",
        "very", "um", "uh", "like", "well", "if", "then", "can", "will",
    }),
}

# Keyword -> emoji shown above a caption containing that word.
DEFAULT_EMOJI = {
    "cérebro": "🧠", "brain": "🧠",
    "dinheiro": "💰", "money": "💰",
    "ideia": "💡", "idea": "💡",
    "fogo": "🔥", "fire": "🔥",
    "foguete": "🚀", "rocket": "🚀",
    "coração": "❤️", "heart": "❤️",
    "tempo": "⏰", "time": "⏰",
    "mundo": "🌍", "world": "🌍",
    "sucesso": "🏆", "success": "🏆",
}

_PUNCT_RE = re.compile(r"[.,!?;:'\"()…\-]")


def normalize_word(word: str) -> str:
    """Lower-case and strip punctuation."""
    return _PUNCT_RE.sub("", word).strip().lower()


@dataclass(frozen=True)
class Lexicon:
    fillers: frozenset = frozenset()
    emoji: dict = field(default_factory=dict)

    def is_filler(self, word: str) -> bool:
        """A word is filler if listed, or two characters or shorter."""
        cleaned = normalize_word(word)
        return cleaned in self.fillers or len(cleaned) <= 2

    def emoji_for(self, words) -> str | None:
        for word in words:
            emoji = self.emoji.get(normalize_word(word))
            if emoji:
                return emoji
        return None


def build_lexicon(
    languages=("pt", "en"),
    extra=(),
    emoji: dict | None = None,
) -> Lexicon:
    """Combine the function-word tables for the given languages.

    Raises:
        ValueError: A language code with no table.
    """
    fillers = set()
    for lang in languages:
        if lang not in FILLER_WORDS:
            raise ValueError(
                f"Unknown caption language '{lang}'. "
                f"Valid: {sorted(FILLER_WORDS)}"
            )
        fillers |= FILLER_WORDS[lang]
    fillers |= {normalize_word(w) for w in extra}
    return Lexicon(
        fillers=frozenset(fillers),
        emoji=dict(DEFAULT_EMOJI if emoji is None else emoji),
    )
