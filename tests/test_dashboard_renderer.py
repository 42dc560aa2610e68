from __future__ import annotations

import unittest
from datetime import datetime, timedelta, timezone
from typing import List

from rich.console import Console

from watchtower.core.types import (
    Brief,
    CountryRisk,
    NewsItem,
    SourceId,
    ThreatLevel,
    WeatherConditions,
    WeatherReport,
)
from watchtower.modules.dashboard.renderer import (
    format_age,
    format_cache_age,
    render_frame,
    render_local_pane,
    render_news_item,
    render_news_pane,
    render_overview_pane,
    truncate,
)
from watchtower.modules.dashboard.state import DashboardState, Failed, Loaded, Pending

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _news(count: int, is_local: bool = False) -> List[NewsItem]:
    return [
        NewsItem(
            title=f"Headline number {idx}",
            source="Wire",
            published=NOW - timedelta(minutes=idx),
            url=f"https://news.example/{idx}",
            threat_level=ThreatLevel.MEDIUM,
            is_local=is_local,
        )
        for idx in range(count)
    ]


def _brief(risks: int) -> Brief:
    return Brief(
        summary="A long summary of the day's events.",
        key_threats=["One", "Two"],
        country_risks=[CountryRisk(country=f"Country {idx}", score=10 * idx, reason="Reason") for idx in range(risks)],
        generated_at=NOW - timedelta(minutes=5),
        model="m",
    )


def _state(width: int = 120, height: int = 40) -> DashboardState:
    return DashboardState(city="Oslo", width=width, height=height, llm_configured=True, llm_label="groq / m")


class FormattingTest(unittest.TestCase):
    def test_format_age(self):
        self.assertEqual(format_age(NOW - timedelta(seconds=30), NOW), "just now")
        self.assertEqual(format_age(NOW - timedelta(minutes=5), NOW), "5m ago")
        self.assertEqual(format_age(NOW - timedelta(hours=3), NOW), "3h ago")
        self.assertEqual(format_age(datetime(2024, 4, 2, tzinfo=timezone.utc), NOW), "Apr 02")

    def test_format_cache_age(self):
        self.assertEqual(format_cache_age(NOW, NOW), "")
        self.assertEqual(format_cache_age(NOW - timedelta(minutes=12), NOW), "  cached 12m ago")
        self.assertEqual(format_cache_age(NOW - timedelta(minutes=75), NOW), "  cached 1h15m ago")

    def test_truncate(self):
        self.assertEqual(truncate("abcdef", 10), "abcdef")
        self.assertEqual(truncate("abcdef", 4), "abc…")
        self.assertEqual(truncate("abcdef", 0), "")


class NewsPaneTest(unittest.TestCase):
    def test_news_item_is_three_lines(self):
        lines = render_news_item(_news(1)[0], selected=True, width=80, now=NOW)
        self.assertEqual(len(lines), 3)
        self.assertIn("MEDIUM", lines[0].plain)
        self.assertIn("Headline number 0", lines[1].plain)
        self.assertEqual(lines[2].plain, "")

    def test_header_lines_grow_with_risk_rows(self):
        state = _state()
        state.data[SourceId.GLOBAL_NEWS] = _news(5)
        without_brief = render_news_pane(state, NOW)

        state.data[SourceId.BRIEF] = _brief(risks=8)
        with_brief = render_news_pane(state, NOW)

        for pane in (without_brief, with_brief):
            self.assertEqual(len(pane.lines), pane.header_lines + 5 * 3)
            self.assertIn("ARTICLES", pane.lines[pane.header_lines - 2].plain)
        self.assertGreater(with_brief.header_lines, without_brief.header_lines)

    def test_error_line_is_counted_in_header(self):
        state = _state()
        state.data[SourceId.GLOBAL_NEWS] = _news(2)
        clean = render_news_pane(state, NOW)
        state.errors[SourceId.GLOBAL_NEWS] = "global news timed out after 20s"
        failed = render_news_pane(state, NOW)
        self.assertEqual(failed.header_lines, clean.header_lines + 2)
        self.assertEqual(len(failed.lines), failed.header_lines + 6)

    def test_global_items_are_capped(self):
        state = _state()
        state.data[SourceId.GLOBAL_NEWS] = _news(230)
        pane = render_news_pane(state, NOW)
        self.assertEqual(len(pane.lines), pane.header_lines + 200 * 3)

    def test_local_pane_header_lines(self):
        state = _state()
        state.data[SourceId.LOCAL_NEWS] = _news(4, is_local=True)
        state.data[SourceId.WEATHER] = WeatherReport(
            conditions=WeatherConditions(city="Oslo", temp_c=4.0, feels_like_c=1.0, updated_at=NOW)
        )
        pane = render_local_pane(state, NOW)
        self.assertEqual(len(pane.lines), pane.header_lines + 4 * 3)
        self.assertIn("WEATHER", pane.lines[0].plain)


class OverviewAndFrameTest(unittest.TestCase):
    def test_overview_renders_at_small_and_large_sizes(self):
        for width, height in ((60, 20), (160, 50)):
            state = _state(width, height)
            state.loading.update({SourceId.CRYPTO, SourceId.WEATHER})
            state.errors[SourceId.STOCKS] = "yahoo chart HTTP 500 for ^GSPC"
            state.data[SourceId.BRIEF] = _brief(risks=3)
            pane = render_overview_pane(state, NOW)
            self.assertEqual(pane.header_lines, 0)
            self.assertTrue(pane.lines)

    def test_frame_renders(self):
        state = _state()
        state.data[SourceId.GLOBAL_NEWS] = _news(3)
        state.status_message = "Opening: Headline number 0"
        state.status_expiry = NOW + timedelta(seconds=3)
        console = Console(width=120, height=40, record=True, force_terminal=True)
        console.print(render_frame(state, NOW))
        text = console.export_text()
        self.assertIn("WATCHTOWER", text)
        self.assertIn("Opening: Headline number 0", text)


class SourceResultTest(unittest.TestCase):
    def test_result_precedence(self):
        state = _state()
        self.assertEqual(state.result(SourceId.CRYPTO), Pending())
        state.data[SourceId.CRYPTO] = ["btc"]
        self.assertEqual(state.result(SourceId.CRYPTO), Loaded(["btc"]))
        state.errors[SourceId.CRYPTO] = "boom"
        self.assertEqual(state.result(SourceId.CRYPTO), Failed("boom"))
        state.loading.add(SourceId.CRYPTO)
        self.assertEqual(state.result(SourceId.CRYPTO), Pending())


if __name__ == "__main__":
    unittest.main()
