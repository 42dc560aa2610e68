from __future__ import annotations

from typing import List, Sequence

from watchtower.core.types import NewsItem

MAX_HEADLINES = 40

BRIEF_INSTRUCTIONS = """You are a geopolitical intelligence analyst. Analyze these recent headlines and respond in EXACTLY this format with no extra text:

SUMMARY:
<3-4 sentences covering the most critical global developments right now>

THREATS:
• <threat 1, one line>
• <threat 2, one line>
• <threat 3, one line>
• <threat 4, one line>
• <threat 5, one line>

COUNTRY_RISKS:
{risk_rows}

Rules:
- SUMMARY: factual, analyst-toned, no fluff, max 3 sentences
- THREATS: exactly 5 bullets, one line each, most severe first
- COUNTRY_RISKS: exactly 8 countries most prominent in the news, score reflects current instability/risk (100=active war, 0=stable), pipe-separated, short reason (3-5 words max)
- No markdown, no extra formatting, no preamble

HEADLINES:
{headlines}"""

RISK_ROW_TEMPLATE = "<CountryName>|<score 0-100>|<one short reason phrase>"


def format_headlines(items: Sequence[NewsItem], limit: int = MAX_HEADLINES) -> str:
    lines: List[str] = []
    for idx, item in enumerate(items[:limit], start=1):
        lines.append(f"{idx}. [{item.threat_level.label}] {item.title} ({item.source})")
    return "\n".join(lines) + ("\n" if lines else "")


def build_brief_prompt(items: Sequence[NewsItem]) -> str:
    return BRIEF_INSTRUCTIONS.format(
        risk_rows="\n".join([RISK_ROW_TEMPLATE] * 8),
        headlines=format_headlines(items),
    )
