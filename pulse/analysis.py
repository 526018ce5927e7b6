# pulse/analysis.py
"""
Keyword tagging for journal entries.

Every journal entry gets three tags derived from its title and content:
sentiment (positive / negative / neutral), mood on a stress scale
(very-low .. very-high) and a topical category. Matching is plain substring
matching on the lowercased text, so "calmly" counts as "calm".
"""
import re
from dataclasses import dataclass

from pulse.models import Category, Mood, Sentiment

POSITIVE_WORDS = [
    "good", "great", "awesome", "amazing", "happy", "joyful", "calm", "relaxed",
    "peaceful", "grateful", "better", "optimistic", "wonderful", "excellent", "fantastic",
]
NEGATIVE_WORDS = [
    "bad", "awful", "terrible", "horrible", "sad", "depressed", "anxious", "worried",
    "stressed", "overwhelmed", "frustrated", "angry", "upset", "disappointed",
]

# First match wins, so order matters.
MOOD_PATTERNS = [
    ("very-low", re.compile(r"great|awesome|fantastic|amazing|grateful|happy|joyful|calm|relaxed|peaceful|wonderful|excellent")),
    ("low", re.compile(r"good|fine|better|optimistic|content|satisfied|okay|alright")),
    ("high", re.compile(r"stressed|anxious|worried|tense|overwhelmed|frustrated|upset")),
    ("very-high", re.compile(r"awful|terrible|horrible|depressed|can't cope|panic|extreme|devastated")),
]

CATEGORY_PATTERNS = [
    ("mindfulness", re.compile(r"breathing|meditation|mindfulness|calm|relax|zen|present|aware")),
    ("exercise", re.compile(r"walk|run|exercise|workout|gym|sport|fitness|physical")),
    ("reflection", re.compile(r"journal|reflect|gratitude|writing|thoughts|feelings|emotions")),
    ("learning", re.compile(r"learn|read|study|class|course|skill|book|education")),
    ("health", re.compile(r"health|doctor|medicine|sick|pain|healing|recovery")),
]


@dataclass(frozen=True)
class EntryAnalysis:
    sentiment: Sentiment
    mood: Mood
    category: Category

    def as_dict(self) -> dict:
        return {"sentiment": self.sentiment, "mood": self.mood, "category": self.category}


def entry_text(title: str, content: str) -> str:
    return f"{title or ''} {content or ''}".lower()


def detect_sentiment(text: str) -> Sentiment:
    positive = sum(1 for w in POSITIVE_WORDS if w in text)
    negative = sum(1 for w in NEGATIVE_WORDS if w in text)
    if positive > negative:
        return "positive"
    if negative > positive:
        return "negative"
    return "neutral"


def detect_mood(text: str) -> Mood:
    for mood, pattern in MOOD_PATTERNS:
        if pattern.search(text):
            return mood
    return "moderate"


def detect_category(text: str) -> Category:
    for category, pattern in CATEGORY_PATTERNS:
        if pattern.search(text):
            return category
    return "general"


def analyze_entry(content: str, title: str) -> EntryAnalysis:
    text = entry_text(title, content)
    return EntryAnalysis(
        sentiment=detect_sentiment(text),
        mood=detect_mood(text),
        category=detect_category(text),
    )
