"""Brand rewriting for model output.

Vendor and model names in generated text are replaced with the product
brand. The table is plain data so it can be inspected and enumerated;
entries are applied in order, case-insensitively, on word boundaries.
First-person phrases come first so "I'm ChatGPT" reads "I am <brand>"
rather than "I'm <brand>".

Replacements only ever insert the brand, so running the filter over its
own output changes nothing. A term split across two stream chunks is not
recognised when only the deltas are filtered.
"""
import re

from shared.constants import DEFAULT_BRAND_NAME

_FIRST_PERSON = (
    r"\bI(?: am|['’]m) "
    r"(?:Claude(?: Haiku)?|ChatGPT|GPT(?:-\d+(?:\.\d+)?o?)?|Gemini|an AI)\b"
)

SUBSTITUTIONS: tuple[tuple[str, str], ...] = (
    (_FIRST_PERSON, "I am {brand}"),
    (r"\bClaude Haiku\b", "{brand}"),
    (r"\bChatGPT\b", "{brand}"),
    (r"\bGPT-4o\b", "{brand}"),
    (r"\bGPT-4\b", "{brand}"),
    (r"\bGPT-5\b", "{brand}"),
    (r"\bOpenAI\b", "{brand}"),
    (r"\bAnthropic\b", "{brand}"),
    (r"\bGemini\b", "{brand}"),
    (r"\bGoogle\b", "{brand}"),
    (r"\bClaude\b", "{brand}"),
    (r"\bAI model\b", "{brand}"),
    (r"\ban AI assistant\b", "{brand}"),
    (r"\bAI assistant\b", "{brand}"),
)

_COMPILED = tuple((re.compile(pattern, re.IGNORECASE), template) for pattern, template in SUBSTITUTIONS)


def filter_content(text: str, brand: str = DEFAULT_BRAND_NAME) -> str:
    if not text:
        return text
    for pattern, template in _COMPILED:
        replacement = template.format(brand=brand)
        text = pattern.sub(lambda _match: replacement, text)
    return text


# Words that can sit next to a brand and complete a table term around it.
_LEADS = ("", "I am ", "I'm ", "I am an ", "an ", "the ")
_TERMS = (
    "Claude",
    "Claude Haiku",
    "ChatGPT",
    "GPT-4o",
    "GPT-4",
    "GPT-5",
    "OpenAI",
    "Anthropic",
    "Gemini",
    "Google",
    "AI model",
    "an AI assistant",
    "AI assistant",
)
_TAILS = ("", " model", " assistant", " Haiku")


def brand_is_stable(brand: str) -> bool:
    """Whether filtering stays idempotent when ``brand`` is the replacement.

    A brand can combine with surrounding words into a new table term, e.g.
    "AI" turns "I am an Google" into "I am an AI", which a second pass
    rewrites again.
    """
    for lead in _LEADS:
        for term in (*_TERMS, brand):
            for tail in _TAILS:
                once = filter_content(f"{lead}{term}{tail}", brand=brand)
                if filter_content(once, brand=brand) != once:
                    return False
    return True
