import re

import pytest

from warroom_client.content_filter import SUBSTITUTIONS, brand_is_stable, filter_content

BRAND = "SaintSal™"

SAMPLES = [
    "I am ChatGPT, powered by OpenAI",
    "I'm Claude, made by Anthropic.",
    "I’m Gemini from Google",
    "I am GPT-5.",
    "I am an AI assistant built on GPT-4o",
    "Claude Haiku answered before GPT-4 did",
    "This AI model is an AI assistant, like any AI assistant",
    "chatgpt and CLAUDE and gEmInI",
    "Nothing to see here",
    "",
]


def test_scenario_vendor_mentions_become_brand():
    assert filter_content("I am ChatGPT, powered by OpenAI") == f"I am {BRAND}, powered by {BRAND}"


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("I'm Claude", f"I am {BRAND}"),
        ("I am GPT-5.", f"I am {BRAND}."),
        ("I am an AI assistant", f"I am {BRAND} assistant"),
        ("Try GPT-4o today", f"Try {BRAND} today"),
        ("Claude Haiku", BRAND),
        ("chatgpt vs CLAUDE", f"{BRAND} vs {BRAND}"),
        ("an AI assistant", BRAND),
        ("the AI model", f"the {BRAND}"),
    ],
)
def test_replacements(raw, expected):
    assert filter_content(raw) == expected


@pytest.mark.parametrize("word", ["Claudette", "Googleplex", "OpenAIR", "ChatGPTish"])
def test_whole_words_only(word):
    assert filter_content(word) == word


def test_every_table_entry_is_exercised_and_cleared():
    for pattern, _template in SUBSTITUTIONS:
        compiled = re.compile(pattern, re.IGNORECASE)
        matching = [sample for sample in SAMPLES if compiled.search(sample)]
        assert matching, pattern
        for sample in matching:
            assert not compiled.search(filter_content(sample)), (pattern, sample)


@pytest.mark.parametrize("text", SAMPLES)
def test_idempotent(text):
    once = filter_content(text)
    assert filter_content(once) == once


def test_custom_brand():
    assert filter_content("Ask OpenAI", brand="Acme") == "Ask Acme"


def test_split_term_is_only_caught_on_full_text():
    deltas = ["Chat", "GPT says hi"]
    assert "".join(filter_content(d) for d in deltas) == "ChatGPT says hi"
    assert filter_content("".join(deltas)) == f"{BRAND} says hi"


@pytest.mark.parametrize("brand", [BRAND, "Acme", "SaintVision"])
def test_stable_brands(brand):
    assert brand_is_stable(brand)


def test_brand_that_completes_a_term_is_unstable():
    once = filter_content("I am an Google", brand="AI")
    assert once == "I am an AI"
    assert filter_content(once, brand="AI") == "I am AI"
    assert not brand_is_stable("AI")
