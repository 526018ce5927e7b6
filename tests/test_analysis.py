from __future__ import annotations

import pytest

from pulse.analysis import analyze_entry, detect_category, detect_mood, detect_sentiment


def test_positive_entry() -> None:
    tags = analyze_entry("I felt calm and happy after my walk.", "Great day")
    assert tags.sentiment == "positive"
    assert tags.mood == "very-low"
    # "calm" is a mindfulness keyword and that category is checked before exercise
    assert tags.category == "mindfulness"


def test_negative_entry() -> None:
    tags = analyze_entry("Stressed and anxious about the deadline, felt overwhelmed.", "Rough one")
    assert tags.sentiment == "negative"
    assert tags.mood == "high"
    assert tags.category == "general"


def test_neutral_entry_defaults() -> None:
    tags = analyze_entry("Went to the store.", "Notes")
    assert tags.as_dict() == {"sentiment": "neutral", "mood": "moderate", "category": "general"}


def test_sentiment_tie_is_neutral() -> None:
    assert detect_sentiment("good but bad") == "neutral"


def test_each_word_counts_once() -> None:
    assert detect_sentiment("sad sad sad but happy and calm") == "positive"


def test_very_high_mood() -> None:
    assert detect_mood("everything was terrible and i had a panic attack") == "very-high"


def test_mood_first_match_wins() -> None:
    # positive keyword beats the stress keyword because it is checked first
    assert detect_mood("stressed but grateful") == "very-low"


@pytest.mark.parametrize(
    "text, category",
    [
        ("i ran to the gym", "exercise"),
        ("read a book tonight", "learning"),
        ("meditation at the gym", "mindfulness"),
        ("wrote down my thoughts", "reflection"),
        ("saw the doctor", "health"),
    ],
)
def test_categories(text: str, category: str) -> None:
    assert detect_category(text) == category


def test_title_is_part_of_the_text() -> None:
    assert analyze_entry("nothing much", "Gym session").category == "exercise"
