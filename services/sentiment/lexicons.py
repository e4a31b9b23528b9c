"""Per-language sentiment lexicons and signal word lists."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Pattern, Tuple


@dataclass(frozen=True, slots=True)
class Lexicon:
    language: str
    positive: FrozenSet[str]
    negative: FrozenSet[str]
    intensifiers: FrozenSet[str]
    negations: FrozenSet[str]

    def polarity(self, token: str) -> int:
        if token in self.positive:
            return 1
        if token in self.negative:
            return -1
        return 0

    @property
    def words(self) -> FrozenSet[str]:
        return self.positive | self.negative | self.intensifiers | self.negations


DEFAULT_LANGUAGE = "en"

_EN = Lexicon(
    language="en",
    positive=frozenset(
        {
            "amazing", "awesome", "brilliant", "excellent", "fantastic", "great", "incredible",
            "love", "loved", "loves", "loving", "perfect", "wonderful", "outstanding", "superb",
            "magnificent", "phenomenal", "remarkable", "spectacular", "terrific", "marvelous",
            "fabulous", "delightful", "good", "nice", "best", "beautiful", "happy", "excited",
            "thrilled", "pleased", "glad", "enjoy", "enjoyed", "liked", "recommend",
            "impressive", "helpful", "fast", "reliable", "smooth", "win", "cool", "fun",
            "satisfied", "thanks", "thank", "favorite", "favourite",
        }
    ),
    negative=frozenset(
        {
            "awful", "terrible", "horrible", "disgusting", "hate", "hated", "hates", "worst",
            "pathetic", "useless", "worthless", "disappointing", "disappointed", "frustrating",
            "frustrated", "annoying", "annoyed", "ridiculous", "stupid", "dumb", "devastating",
            "tragic", "disaster", "bad", "poor", "sad", "angry", "mad", "upset", "depressed",
            "miserable", "broken", "broke", "crash", "crashed", "crashes", "fail", "failed",
            "failure", "bug", "buggy", "slow", "lag", "scam", "waste", "refund", "problem",
            "issue", "error", "outage", "down", "late", "delayed", "rude", "dirty", "scary",
            "afraid", "worried", "sick", "lost", "ugly",
        }
    ),
    intensifiers=frozenset(
        {
            "very", "extremely", "incredibly", "absolutely", "completely", "totally", "really",
            "so", "super", "utterly", "highly", "insanely", "ridiculously", "unbelievably",
            "quite", "truly",
        }
    ),
    negations=frozenset(
        {
            "not", "no", "never", "none", "nothing", "nobody", "nowhere", "neither", "nor",
            "hardly", "barely", "don't", "doesn't", "didn't", "won't", "can't", "cannot",
            "isn't", "wasn't", "aren't", "weren't", "shouldn't", "wouldn't", "dont", "doesnt",
            "didnt", "wont", "cant", "isnt",
        }
    ),
)

_ES = Lexicon(
    language="es",
    positive=frozenset(
        {
            "increíble", "increible", "fantástico", "fantastico", "excelente", "genial",
            "maravilloso", "maravillosa", "perfecto", "perfecta", "brillante", "amor", "amo",
            "encanta", "encantado", "encantada", "feliz", "contento", "contenta", "alegre",
            "emocionado", "bueno", "buena", "buenísimo", "mejor", "hermoso", "hermosa",
            "estupendo", "magnífico", "magnifico", "extraordinario", "gracias", "recomiendo",
            "rápido", "rapido", "fácil", "facil",
        }
    ),
    negative=frozenset(
        {
            "terrible", "horrible", "malo", "mala", "pésimo", "pesimo", "pésima", "pesima",
            "odio", "detesto", "asqueroso", "repugnante", "decepcionante", "decepcionado",
            "frustrante", "molesto", "ridículo", "ridiculo", "estúpido", "estupido", "inútil",
            "inutil", "desastre", "trágico", "tragico", "triste", "enojado", "furioso",
            "deprimido", "miserable", "peor", "fatal", "roto", "falla", "fallo", "error",
            "lento", "estafa", "problema", "caída", "caida",
        }
    ),
    intensifiers=frozenset(
        {
            "muy", "extremadamente", "increíblemente", "increiblemente", "absolutamente",
            "completamente", "totalmente", "súper", "super", "bastante", "tan", "re",
        }
    ),
    negations=frozenset(
        {"no", "nunca", "jamás", "jamas", "nada", "nadie", "ningún", "ninguna", "ninguno", "ni", "tampoco", "sin"}
    ),
)

_FR = Lexicon(
    language="fr",
    positive=frozenset(
        {
            "incroyable", "fantastique", "excellent", "excellente", "génial", "genial",
            "merveilleux", "parfait", "parfaite", "brillant", "amour", "adore", "heureux",
            "heureuse", "content", "contente", "bon", "bonne", "meilleur", "beau", "belle",
            "super", "magnifique", "extraordinaire", "merci", "aime",
        }
    ),
    negative=frozenset(
        {
            "terrible", "horrible", "mauvais", "mauvaise", "pire", "déteste", "deteste",
            "dégoûtant", "degoutant", "décevant", "decevant", "frustrant", "ennuyeux",
            "ridicule", "stupide", "inutile", "désastre", "desastre", "tragique", "triste",
            "fâché", "fache", "furieux", "déprimé", "deprime", "misérable", "nul", "panne",
            "lent", "arnaque", "problème", "probleme",
        }
    ),
    intensifiers=frozenset(
        {"très", "tres", "extrêmement", "incroyablement", "absolument", "complètement", "totalement", "vraiment", "tellement"}
    ),
    negations=frozenset({"ne", "pas", "non", "jamais", "rien", "personne", "aucun", "aucune", "ni", "sans"}),
)

_DE = Lexicon(
    language="de",
    positive=frozenset(
        {
            "unglaublich", "fantastisch", "ausgezeichnet", "großartig", "grossartig", "toll",
            "wunderbar", "perfekt", "brillant", "liebe", "glücklich", "gluecklich", "froh",
            "gut", "gute", "guter", "besser", "beste", "schön", "schoen", "super", "prima",
            "klasse", "danke", "empfehlen",
        }
    ),
    negative=frozenset(
        {
            "schrecklich", "furchtbar", "schlecht", "schlechte", "schlimm", "hasse",
            "ekelhaft", "enttäuschend", "enttaeuschend", "frustrierend", "nervig", "lächerlich",
            "laecherlich", "dumm", "nutzlos", "katastrophe", "tragisch", "traurig", "wütend",
            "wuetend", "deprimiert", "elend", "kaputt", "absturz", "langsam", "betrug",
            "problem", "fehler",
        }
    ),
    intensifiers=frozenset(
        {"sehr", "extrem", "unglaublich", "absolut", "völlig", "voellig", "total", "wirklich", "echt", "ziemlich"}
    ),
    negations=frozenset({"nicht", "kein", "keine", "keinen", "niemals", "nie", "nichts", "niemand", "ohne"}),
)

_IT = Lexicon(
    language="it",
    positive=frozenset(
        {
            "incredibile", "fantastico", "eccellente", "geniale", "meraviglioso", "perfetto",
            "brillante", "amore", "amo", "adoro", "felice", "contento", "buono", "buona",
            "migliore", "bello", "bella", "stupendo", "magnifico", "grazie", "ottimo",
        }
    ),
    negative=frozenset(
        {
            "terribile", "orribile", "cattivo", "pessimo", "odio", "disgustoso", "deludente",
            "frustrante", "fastidioso", "ridicolo", "stupido", "inutile", "disastro",
            "tragico", "triste", "arrabbiato", "furioso", "depresso", "peggiore", "rotto",
            "lento", "truffa",
        }
    ),
    intensifiers=frozenset({"molto", "estremamente", "incredibilmente", "assolutamente", "completamente", "totalmente"}),
    negations=frozenset({"non", "mai", "niente", "nessuno", "nessuna", "senza"}),
)

_PT = Lexicon(
    language="pt",
    positive=frozenset(
        {
            "incrível", "incrivel", "fantástico", "fantastico", "excelente", "genial",
            "maravilhoso", "perfeito", "brilhante", "amor", "amo", "adoro", "feliz", "contente",
            "alegre", "bom", "boa", "melhor", "lindo", "linda", "estupendo", "magnífico",
            "obrigado", "obrigada", "ótimo", "otimo",
        }
    ),
    negative=frozenset(
        {
            "terrível", "terrivel", "horrível", "horrivel", "ruim", "péssimo", "pessimo",
            "péssima", "odeio", "detesto", "nojento", "decepcionante", "frustrante",
            "irritante", "ridículo", "estúpido", "inútil", "inutil", "desastre", "trágico",
            "triste", "zangado", "irritado", "deprimido", "miserável", "furioso", "pior",
            "quebrado", "lento", "golpe",
        }
    ),
    intensifiers=frozenset({"muito", "extremamente", "incrivelmente", "absolutamente", "completamente", "totalmente"}),
    negations=frozenset({"não", "nao", "nunca", "jamais", "nada", "ninguém", "nenhum", "nenhuma", "sem"}),
)

LEXICONS: Dict[str, Lexicon] = {lex.language: lex for lex in (_EN, _ES, _FR, _DE, _IT, _PT)}

SUPPORTED_LANGUAGES: Tuple[str, ...] = tuple(LEXICONS)

# Relative lexicon coverage; the hybrid stage trusts the rule method less
# where coverage is lower.
LANGUAGE_COVERAGE: Dict[str, str] = {
    "en": "full",
    "es": "high",
    "fr": "partial",
    "de": "partial",
    "it": "partial",
    "pt": "partial",
}


def get_lexicon(language: str | None) -> Lexicon:
    """Return the lexicon for ``language`` falling back to English."""

    if not language:
        return LEXICONS[DEFAULT_LANGUAGE]
    return LEXICONS.get(language.lower()[:2], LEXICONS[DEFAULT_LANGUAGE])


EMOJI_POLARITY: Dict[str, float] = {
    "😀": 1.0, "😃": 1.0, "😄": 1.0, "😁": 1.0, "😊": 0.8, "😍": 1.0, "🥰": 1.0,
    "😂": 0.6, "🤣": 0.6, "🙂": 0.5, "😎": 0.7, "🎉": 0.8, "👍": 0.7, "👏": 0.7,
    "❤": 1.0, "❤️": 1.0, "💯": 0.7, "🔥": 0.5, "✨": 0.5,
    "😢": -1.0, "😭": -1.0, "😞": -0.8, "😔": -0.8, "😡": -1.0, "😠": -1.0,
    "🤬": -1.0, "👎": -0.7, "💔": -1.0, "😩": -0.8, "😫": -0.8, "🤮": -1.0,
    "😱": -0.7, "😨": -0.7, "😒": -0.6, "🙄": -0.6, "😤": -0.7,
}

EYE_ROLL_EMOJIS: FrozenSet[str] = frozenset({"😒", "🙄", "😏"})

# Words that commonly introduce the complaint in an ironic compliment.
NEGATIVE_CONTEXT_CUES: FrozenSet[str] = frozenset(
    {
        "another", "again", "yet", "more", "monday", "mondays", "stuck", "waiting", "wait",
        "otra", "otro", "otra vez", "encima", "encore", "schon", "wieder", "ancora", "outra", "mais",
    }
)

CONTRAST_WORDS: FrozenSet[str] = frozenset(
    {
        "but", "although", "though", "however", "yet", "while", "whereas",
        "pero", "aunque", "sin embargo", "mais", "cependant", "aber", "jedoch", "ma", "però", "mas", "porém",
    }
)

# High-arousal words used to gauge emotional intensity.
EMOTIONAL_WORDS: FrozenSet[str] = frozenset(
    {
        "love", "hate", "amazing", "terrible", "fantastic", "awful", "brilliant", "horrible",
        "excellent", "disgusting", "wonderful", "pathetic", "outstanding", "dreadful",
        "marvelous", "atrocious", "odio", "encanta", "increíble", "horrible", "génial",
        "déteste", "toll", "hasse",
    }
)

_SARCASM_SOURCES: Dict[str, List[str]] = {
    "en": [
        r"\boh\s+(great|wonderful|perfect|amazing|fantastic|awesome)",
        r"just\s+what\s+i\s+(needed|wanted)",
        r"how\s+(wonderful|lovely|nice)",
        r"really\s+know\s+how\s+to",
        r"exactly\s+what\s+i\s+wanted",
        r"\byeah[\s,]*right\b",
        r"\bas\s+if\b",
        r"thanks\s+(a\s+lot|so\s+much)\s+for",
        r"love\s+that\s+for\s+me",
        r"what\s+could\s+possibly\s+go\s+wrong",
        r"thanks\s+for\s+nothing",
        r"(nice|awesome|brilliant|great)\s*(\.\.\.|…)",
    ],
    "es": [
        r"\bqu[eé]\s+(maravilloso|genial|perfecto|lindo|bonito)\b",
        r"justo\s+lo\s+que\s+necesitaba",
        r"realmente\s+saben?\s+c[oó]mo",
        r"\bs[ií][\s,]*claro\b",
        r"gracias\s+por\s+nada",
        r"lo\s+que\s+me\s+faltaba",
        r"qu[eé]\s+podr[ií]a\s+salir\s+mal",
        r"(perfecto|genial|buen[ií]simo)\s*(\.\.\.|…)",
    ],
    "fr": [
        r"\boh\s+(g[ée]nial|parfait|merveilleux)",
        r"juste\s+ce\s+qu.?il\s+me\s+fallait",
        r"\boui[\s,]*bien\s+s[uû]r\b",
        r"merci\s+du\s+cadeau",
        r"[cç]a\s+promet",
        r"quelle\s+surprise",
    ],
    "de": [
        r"\boh\s+(toll|perfekt|wunderbar|klasse)",
        r"genau\s+was\s+ich\s+brauchte",
        r"\bja[\s,]*klar\b",
        r"\bna\s+(toll|prima)\b",
        r"danke\s+auch",
        r"was\s+kann\s+da\s+schiefgehen",
    ],
}

SARCASM_PATTERNS: Dict[str, Tuple[Pattern[str], ...]] = {
    lang: tuple(re.compile(src, re.IGNORECASE | re.UNICODE) for src in sources)
    for lang, sources in _SARCASM_SOURCES.items()
}


def sarcasm_patterns(language: str | None) -> Tuple[Pattern[str], ...]:
    lang = (language or DEFAULT_LANGUAGE).lower()[:2]
    return SARCASM_PATTERNS.get(lang, SARCASM_PATTERNS[DEFAULT_LANGUAGE])


EMOTION_CATEGORIES: Tuple[str, ...] = ("joy", "sadness", "anger", "fear", "surprise", "disgust")

EMOTION_LEXICON: Dict[str, Dict[str, FrozenSet[str]]] = {
    "en": {
        "joy": frozenset({"happy", "love", "loved", "glad", "great", "wonderful", "amazing", "excited", "thrilled", "delightful", "fun", "enjoy", "awesome"}),
        "sadness": frozenset({"sad", "depressed", "miserable", "lost", "tragic", "disappointed", "disappointing", "cry", "lonely", "sorry"}),
        "anger": frozenset({"angry", "mad", "furious", "hate", "hated", "annoyed", "annoying", "frustrated", "frustrating", "rude", "ridiculous"}),
        "fear": frozenset({"afraid", "scared", "scary", "worried", "anxious", "terrified", "panic", "nervous"}),
        "surprise": frozenset({"wow", "unexpected", "surprised", "shocked", "incredible", "unbelievable", "sudden"}),
        "disgust": frozenset({"disgusting", "gross", "awful", "horrible", "dirty", "nasty", "pathetic", "scam"}),
    },
    "es": {
        "joy": frozenset({"feliz", "alegre", "encanta", "amo", "contento", "contenta", "genial", "maravilloso"}),
        "sadness": frozenset({"triste", "deprimido", "decepcionado", "decepcionante", "miserable"}),
        "anger": frozenset({"enojado", "furioso", "odio", "molesto", "frustrante"}),
        "fear": frozenset({"miedo", "asustado", "preocupado", "nervioso"}),
        "surprise": frozenset({"sorpresa", "increíble", "increible", "inesperado"}),
        "disgust": frozenset({"asqueroso", "repugnante", "horrible", "estafa"}),
    },
}

EMOTION_EMOJIS: Dict[str, str] = {
    "😀": "joy", "😃": "joy", "😄": "joy", "😁": "joy", "😊": "joy", "😍": "joy", "🥰": "joy", "🎉": "joy",
    "😢": "sadness", "😭": "sadness", "😞": "sadness", "😔": "sadness", "💔": "sadness",
    "😡": "anger", "😠": "anger", "🤬": "anger", "😤": "anger",
    "😱": "fear", "😨": "fear",
    "😮": "surprise", "😲": "surprise",
    "🤮": "disgust",
}

STOP_PATTERNS: Dict[str, Pattern[str]] = {
    "en": re.compile(r"\b(the|and|or|but|in|on|at|to|for|of|with|by|is|are|was|this|that|it)\b"),
    "es": re.compile(r"\b(el|la|los|las|que|es|son|está|están|muy|pero|con|por|para|como|una|del)\b|ñ|[¿¡]"),
    "fr": re.compile(r"\b(le|les|une|des|du|est|sont|était|avec|pour|dans|sur|pas|très|mais|cette|ce)\b|[çèêàù]"),
    "de": re.compile(r"\b(der|die|das|den|dem|ein|eine|ist|sind|und|oder|aber|nicht|sehr|auch|mit|für)\b|[ßäöü]"),
    "it": re.compile(r"\b(il|gli|lo|di|che|non|è|sono|con|per|una|molto|questo|della)\b"),
    "pt": re.compile(r"\b(os|as|um|uma|em|com|para|não|é|são|muito|mas|isso|está|ção)\b|ã|õ"),
}


__all__ = [
    "Lexicon",
    "LEXICONS",
    "SUPPORTED_LANGUAGES",
    "LANGUAGE_COVERAGE",
    "DEFAULT_LANGUAGE",
    "get_lexicon",
    "EMOJI_POLARITY",
    "EYE_ROLL_EMOJIS",
    "NEGATIVE_CONTEXT_CUES",
    "CONTRAST_WORDS",
    "EMOTIONAL_WORDS",
    "SARCASM_PATTERNS",
    "sarcasm_patterns",
    "EMOTION_CATEGORIES",
    "EMOTION_LEXICON",
    "EMOTION_EMOJIS",
    "STOP_PATTERNS",
]
