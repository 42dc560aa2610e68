"""Tolerant parser for the SUMMARY / THREATS / COUNTRY_RISKS reply format."""

from __future__ import annotations

from typing import Dict, List, Tuple

from watchtower.core.types import CountryRisk

SECTION_HEADERS = ("SUMMARY", "THREATS", "COUNTRY_RISKS")
BULLET_PREFIXES = ("•", "-", "*")


def split_sections(content: str) -> Dict[str, str]:
    sections: Dict[str, List[str]] = {}
    current = ""
    for line in content.splitlines():
        trimmed = line.strip()
        header, sep, remainder = trimmed.partition(":")
        if sep and header.upper() in SECTION_HEADERS:
            current = header.upper()
            sections[current] = [remainder] if remainder.strip() else []
            continue
        if current:
            sections[current].append(line)
    return {name: "\n".join(lines).strip() for name, lines in sections.items()}


def parse_threats(block: str) -> List[str]:
    threats: List[str] = []
    for line in block.splitlines():
        line = line.strip()
        for prefix in BULLET_PREFIXES:
            if line.startswith(prefix):
                line = line[len(prefix) :]
        line = line.strip()
        if line:
            threats.append(line)
    return threats


def parse_country_risks(block: str) -> List[CountryRisk]:
    risks: List[CountryRisk] = []
    for line in block.splitlines():
        line = line.strip()
        if not line:
            continue
        parts = line.split("|", 2)
        if len(parts) < 2:
            continue
        country = parts[0].strip()
        try:
            score = int(parts[1].strip())
        except ValueError:
            continue
        if not country:
            continue
        reason = parts[2].strip() if len(parts) == 3 else ""
        risks.append(CountryRisk(country=country, score=min(100, max(0, score)), reason=reason))
    return risks


def parse_brief_response(content: str) -> Tuple[str, List[str], List[CountryRisk]]:
    sections = split_sections(content)
    return (
        sections.get("SUMMARY", ""),
        parse_threats(sections.get("THREATS", "")),
        parse_country_risks(sections.get("COUNTRY_RISKS", "")),
    )
