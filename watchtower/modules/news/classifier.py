from __future__ import annotations

from typing import NamedTuple, Tuple

from watchtower.core.types import ThreatLevel


class KeywordTier(NamedTuple):
    level: ThreatLevel
    category: str
    keywords: Tuple[str, ...]


# Scanned top to bottom; the first tier with a matching keyword wins.
THREAT_TIERS: Tuple[KeywordTier, ...] = (
    KeywordTier(
        ThreatLevel.CRITICAL,
        "conflict",
        (
            "nuclear",
            "missile strike",
            "war declared",
            "invasion",
            "airstrike kills",
            "coup",
            "assassination",
            "mass casualty",
            "chemical weapon",
            "dirty bomb",
            "martial law",
            "genocide",
        ),
    ),
    KeywordTier(
        ThreatLevel.HIGH,
        "security",
        (
            "attack",
            "bombing",
            "explosion",
            "shooting",
            "killed",
            "hostage",
            "terrorist",
            "conflict",
            "offensive",
            "troops deployed",
            "sanctions",
            "ceasefire",
            "escalation",
            "warship",
            "military exercises",
        ),
    ),
    KeywordTier(
        ThreatLevel.HIGH,
        "disaster",
        (
            "earthquake",
            "tsunami",
            "hurricane",
            "typhoon",
            "flood kills",
            "wildfire",
            "eruption",
            "catastrophic",
        ),
    ),
    KeywordTier(
        ThreatLevel.MEDIUM,
        "politics",
        (
            "election",
            "protest",
            "crisis",
            "emergency",
            "shutdown",
            "impeachment",
            "indicted",
            "arrested",
            "detained",
            "expelled",
            "diplomatic",
            "summit",
            "agreement",
        ),
    ),
    KeywordTier(
        ThreatLevel.MEDIUM,
        "economy",
        (
            "recession",
            "crash",
            "collapse",
            "default",
            "bankrupt",
            "inflation",
            "unemployment spike",
            "rate hike",
            "supply chain",
        ),
    ),
    KeywordTier(
        ThreatLevel.MEDIUM,
        "cyber",
        (
            "hack",
            "breach",
            "ransomware",
            "cyberattack",
            "data leak",
            "malware",
            "phishing campaign",
            "zero-day",
        ),
    ),
    KeywordTier(
        ThreatLevel.LOW,
        "general",
        (
            "trade deal",
            "policy",
            "reform",
            "budget",
            "statement",
            "meeting",
            "conference",
            "report",
        ),
    ),
)


def classify(title: str) -> Tuple[ThreatLevel, str]:
    lowered = title.lower()
    for tier in THREAT_TIERS:
        for keyword in tier.keywords:
            if keyword in lowered:
                return tier.level, tier.category
    return ThreatLevel.INFO, "general"
