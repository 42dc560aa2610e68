"""Pure functions turning dashboard state into rich text."""

from __future__ import annotations

import io
from datetime import datetime, timedelta
from typing import List, NamedTuple, Sequence

from rich import box
from rich.console import Console, Group, RenderableType
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from watchtower.core.types import Brief, CountryRisk, NewsItem, SourceId
from watchtower.modules.dashboard import styles
from watchtower.modules.dashboard.state import DashboardState, Tab
from watchtower.modules.markets.formatting import format_change, format_price
from watchtower.modules.weather.providers.open_meteo_provider import wind_direction

MAX_GLOBAL_ITEMS = 200
MAX_LOCAL_ITEMS = 100

RISK_SCORE_WIDTH = 4
RISK_BAR_WIDTH = 14
RISK_GAP = 2
TWO_COLUMN_MIN_WIDTH = 100

TAB_NAMES = ("1 Overview", "2 Global News", "3 Local")
FOOTER_HINTS = {
    Tab.OVERVIEW: "  ↑↓/jk scroll  tab/←→ switch  1 overview  2 news  3 local  r refresh  b brief  q quit",
    Tab.NEWS: "  jk navigate  enter open in browser  d/u page  g/G top/bottom  tab switch  r refresh  b brief  q quit",
    Tab.LOCAL: "  jk navigate  enter open in browser  d/u page  g/G top/bottom  tab switch  r refresh  q quit",
}
ARTICLES_HEADER = " ARTICLES  ({count})  ·  j/k navigate  ·  enter to open in browser"


class RenderedPane(NamedTuple):
    lines: List[Text]
    header_lines: int


class OverviewLayout(NamedTuple):
    half_width: int
    top_height: int
    bottom_height: int
    top_inner: int
    bottom_inner: int
    quadrant_width: int


def format_age(published: datetime, now: datetime) -> str:
    delta = now - published
    if delta < timedelta(minutes=1):
        return "just now"
    if delta < timedelta(hours=1):
        return f"{int(delta.total_seconds() // 60)}m ago"
    if delta < timedelta(days=1):
        return f"{int(delta.total_seconds() // 3600)}h ago"
    return published.strftime("%b %d")


def format_cache_age(generated_at: datetime, now: datetime) -> str:
    elapsed = now - generated_at
    if elapsed <= timedelta(minutes=1):
        return ""
    minutes = int(elapsed.total_seconds() // 60)
    if minutes >= 60:
        return f"  cached {minutes // 60}h{minutes % 60}m ago"
    return f"  cached {minutes}m ago"


def truncate(value: str, limit: int) -> str:
    if limit <= 0:
        return ""
    if len(value) <= limit:
        return value
    return value[: limit - 1] + "…"


def pane_width(state: DashboardState) -> int:
    return max(20, state.width - 4)


def overview_layout(width: int, height: int) -> OverviewLayout:
    half_width = (width - 4) // 2
    content_height = max(10, height - 6)
    top_height = content_height * 4 // 10
    bottom_height = content_height - top_height - 3
    top_height = max(8, top_height)
    bottom_height = max(8, bottom_height)
    return OverviewLayout(
        half_width=half_width,
        top_height=top_height,
        bottom_height=bottom_height,
        top_inner=top_height - 2,
        bottom_inner=bottom_height - 2,
        # border plus one column of padding on each side
        quadrant_width=half_width - 5,
    )


def render_to_lines(renderable: RenderableType, width: int) -> List[Text]:
    console = Console(
        width=width,
        file=io.StringIO(),
        force_terminal=True,
        color_system="truecolor",
    )
    rendered = console.render_lines(renderable, console.options.update(width=width), pad=False)
    return [
        Text.assemble(*((segment.text, segment.style) for segment in line if not segment.control))
        for line in rendered
    ]


def _spinner(state: DashboardState) -> Text:
    frames = styles.SPINNER_FRAMES
    return Text(frames[state.spinner_frame % len(frames)], style=styles.SPINNER)


def _pending_line(state: DashboardState, label: str, indent: str = "  ") -> Text:
    return Text.assemble(indent, _spinner(state), f" {label}")


# News


def render_news_item(item: NewsItem, selected: bool, width: int, now: datetime) -> List[Text]:
    badge = Text(f" {item.threat_level.label:<8}", style=styles.THREAT_BADGES[item.threat_level])
    meta = Text.assemble(
        badge,
        " ",
        (item.source, styles.SOURCE),
        "  ",
        (format_age(item.published, now), styles.AGE),
    )
    if item.url:
        meta.append("  ↗", style=styles.MUTED)
    title = Text("  ")
    title.append(
        truncate(item.title, max(20, width - 4)),
        style=styles.SELECTED_TITLE if selected else styles.NEWS_TITLE,
    )
    if selected:
        meta.style = styles.SELECTED_ROW
        title.style = styles.SELECTED_ROW
    return [meta, title, Text("")]


def _risk_row(risk: CountryRisk, name_width: int, reason_width: int) -> List[Text]:
    filled = min(RISK_BAR_WIDTH, risk.score * RISK_BAR_WIDTH // 100)
    country = risk.country
    if len(country) > name_width:
        country = country[: name_width - 1] + "…"
    else:
        country = country.ljust(name_width)
    reason = risk.reason
    if len(reason) > reason_width:
        reason = reason[: reason_width - 3] + "..."
    first = Text.assemble(
        "  ",
        country,
        "  ",
        (f"{risk.score:3d}", styles.BRIEF_META),
        "  ",
        ("█" * filled, styles.risk_bar_style(risk.score)),
        ("░" * (RISK_BAR_WIDTH - filled), styles.MUTED),
    )
    second = Text.assemble("  ", (reason, styles.MUTED))
    return [first, second]


def render_country_risks(state: DashboardState, width: int) -> List[Text]:
    lines = [
        Text("🌡  COUNTRY RISK INDEX", style=styles.BRIEF_TITLE),
        Text("─" * min(width, 120), style=styles.DIVIDER),
    ]
    brief = state.brief
    if brief is None or not brief.country_risks:
        if SourceId.BRIEF in state.loading:
            lines.append(_pending_line(state, "Computing risks..."))
        elif not state.llm_configured:
            lines.append(Text("  Set llm.api_key to enable risk scores.", style=styles.MUTED))
        else:
            lines.append(Text("  Press [b] to generate risk scores.", style=styles.MUTED))
        return lines

    columns = 2 if width >= TWO_COLUMN_MIN_WIDTH else 1
    column_width = width // columns
    name_width = max(8, column_width - RISK_SCORE_WIDTH - RISK_BAR_WIDTH - RISK_GAP * 3 - 2)
    reason_width = name_width + RISK_SCORE_WIDTH + RISK_GAP
    rows = [_risk_row(risk, name_width, reason_width) for risk in brief.country_risks]
    for start in range(0, len(rows), columns):
        chunk = rows[start : start + columns]
        for line_idx in range(2):
            line = Text()
            for col, row in enumerate(chunk):
                part = row[line_idx]
                line.append_text(part)
                if col < len(chunk) - 1:
                    line.append(" " * max(0, column_width - part.cell_len))
            lines.append(line)
    return lines


def render_news_pane(state: DashboardState, now: datetime) -> RenderedPane:
    width = pane_width(state)
    lines: List[Text] = []
    error = state.errors.get(SourceId.GLOBAL_NEWS)
    if error:
        lines.extend([Text(f"⚠ Error: {error}", style=styles.ERROR), Text("")])

    items = state.global_news[:MAX_GLOBAL_ITEMS]
    if not items:
        if SourceId.GLOBAL_NEWS in state.loading:
            lines.append(_pending_line(state, "Fetching global news..."))
        else:
            lines.append(Text("  No news loaded. Press r to refresh."))
        return RenderedPane(lines, len(lines))

    lines.extend(render_country_risks(state, width))
    lines.extend(
        [
            Text(""),
            Text("─" * width, style=styles.DIVIDER),
            Text(""),
            Text(ARTICLES_HEADER.format(count=len(state.global_news)), style=styles.SECTION_HEADER),
            Text(""),
        ]
    )
    header_lines = len(lines)
    selected = state.selected[Tab.NEWS]
    for idx, item in enumerate(items):
        lines.extend(render_news_item(item, idx == selected, width, now))
    return RenderedPane(lines, header_lines)


# Local


def render_weather_block(state: DashboardState) -> List[Text]:
    report = state.weather
    if report is None:
        error = state.errors.get(SourceId.WEATHER)
        if error:
            return [Text(f"⚠ Weather error: {error}", style=styles.ERROR)]
        return [_pending_line(state, "Fetching weather...")]

    current = report.conditions
    lines = [
        Text(f" WEATHER  {current.city}", style=styles.SECTION_HEADER),
        Text(""),
        Text(
            f"  {current.icon}  {current.description}  {current.temp_c:.1f}°C  "
            f"(feels like {current.feels_like_c:.1f}°C)"
        ),
        Text(
            f"  💧 Humidity: {current.humidity}%   "
            f"💨 Wind: {current.wind_speed_kmh:.0f} km/h {wind_direction(current.wind_dir_deg)}   "
            f"👁 Visibility: {current.visibility_m / 1000:.0f} km   ☀ UV: {current.uv_index:.0f}"
        ),
        Text(""),
    ]
    if report.forecast:
        lines.append(
            Text(
                f"  {'DATE':<12} {'CONDITION':<16} {'MAX':>8} {'MIN':>8} {'RAIN':>10}",
                style=styles.TABLE_HEADER,
            )
        )
        lines.append(Text("─" * 60, style=styles.DIVIDER))
        for day in report.forecast:
            lines.append(
                Text(
                    f"  {day.date:%a %b %d}   {day.icon} {day.description:<12} "
                    f"{day.max_c:6.1f}°C {day.min_c:6.1f}°C {day.rain_mm:7.1f}mm"
                )
            )
        lines.append(Text(""))
    return lines


def render_local_pane(state: DashboardState, now: datetime) -> RenderedPane:
    width = pane_width(state)
    lines = render_weather_block(state)
    lines.extend([Text(""), Text(f" LOCAL NEWS  {state.city}", style=styles.SECTION_HEADER), Text("")])

    error = state.errors.get(SourceId.LOCAL_NEWS)
    if error:
        lines.append(Text(f"⚠ {error}", style=styles.ERROR))

    items = state.local_news[:MAX_LOCAL_ITEMS]
    if not items:
        if SourceId.LOCAL_NEWS in state.loading:
            lines.append(_pending_line(state, "Fetching local news..."))
        elif not error:
            lines.append(Text("  No local news loaded. Press r to refresh."))
        return RenderedPane(lines, len(lines))

    lines.extend(
        [
            Text(ARTICLES_HEADER.format(count=len(state.local_news)), style=styles.SECTION_HEADER),
            Text(""),
        ]
    )
    header_lines = len(lines)
    selected = state.selected[Tab.LOCAL]
    for idx, item in enumerate(items):
        lines.extend(render_news_item(item, idx == selected, width, now))
    return RenderedPane(lines, header_lines)


# Overview quadrants


def render_weather_quadrant(state: DashboardState, width: int, height: int) -> List[Text]:
    error = state.errors.get(SourceId.WEATHER)
    if error:
        return [Text(f"⚠ {error}", style=styles.ERROR)]
    report = state.weather
    if report is None:
        return [_pending_line(state, "fetching weather...", indent="")]

    current = report.conditions
    lines = [
        Text.assemble(f"{current.icon}  ", (f"{current.temp_c:.1f}°C", styles.WEATHER_TEMP)),
        Text(current.description, style=styles.WEATHER_DESC),
        Text(f"Feels like {current.feels_like_c:.1f}°C", style=styles.AGE),
        Text(""),
        Text(
            f"💧 {current.humidity}%   💨 {current.wind_speed_kmh:.0f} km/h "
            f"{wind_direction(current.wind_dir_deg)}   ☀ UV {current.uv_index:.0f}"
        ),
    ]
    if report.forecast:
        lines.append(Text(""))
        lines.append(
            Text(f"{'Day':<10}  {'':<4} {'Hi':>5} {'Lo':>5} {'Rain':>5}", style=styles.TABLE_HEADER)
        )
        lines.append(Text("─" * min(width, 36), style=styles.DIVIDER))
        max_rows = max(1, height - 8)
        for idx, day in enumerate(report.forecast[:max_rows]):
            label = "Today" if idx == 0 else f"{day.date:%a %d %b}"
            lines.append(
                Text(f"{label:<10}  {day.icon}  {day.max_c:4.0f}° {day.min_c:4.0f}° {day.rain_mm:3.0f}mm")
            )
    return lines


def _brief_body(brief: Brief, now: datetime) -> List[Text]:
    meta = f"{brief.generated_at.astimezone():%H:%M}  {brief.model}{format_cache_age(brief.generated_at, now)}"
    lines = [Text(meta, style=styles.BRIEF_META), Text(""), Text(brief.summary)]
    if brief.key_threats:
        lines.append(Text(""))
        lines.append(Text("KEY THREATS", style=styles.BRIEF_TITLE))
        for threat in brief.key_threats:
            lines.append(Text(f"● {threat}", style=styles.THREAT_ITEM))
    return lines


def render_brief_quadrant(state: DashboardState, now: datetime) -> List[Text]:
    if not state.llm_configured:
        return [
            Text("⚠  No LLM API key set.", style=styles.WARNING),
            Text(""),
            Text("Add llm.api_key to:", style=styles.MUTED),
            Text("~/.config/watchtower/config.yaml", style=styles.MUTED),
            Text("or export LLM_API_KEY.", style=styles.MUTED),
            Text(""),
            Text("Press [b] after adding key.", style=styles.MUTED),
        ]
    if SourceId.BRIEF in state.loading:
        return [
            _pending_line(state, "Generating brief...", indent=""),
            Text(""),
            Text(f"Calling {state.llm_label}...", style=styles.MUTED),
        ]

    lines: List[Text] = []
    brief = state.brief
    error = state.errors.get(SourceId.BRIEF)
    if error:
        lines.extend([Text(f"⚠ {error}", style=styles.ERROR), Text(""), Text("Press [b] to retry.", style=styles.MUTED)])
        if brief is not None:
            lines.append(Text(""))
    if brief is None:
        if not error:
            if state.global_news:
                lines.append(Text("Press [b] to generate AI brief.", style=styles.MUTED))
            else:
                lines.append(Text("Waiting for news to load...", style=styles.MUTED))
        return lines
    lines.extend(_brief_body(brief, now))
    return lines


def render_markets_quadrant(state: DashboardState, width: int) -> List[Text]:
    lines: List[Text] = []

    crypto_error = state.errors.get(SourceId.CRYPTO)
    if crypto_error:
        lines.append(Text(f"⚠ crypto: {crypto_error}", style=styles.ERROR))
    elif not state.crypto:
        lines.append(_pending_line(state, "fetching crypto...", indent=""))
    else:
        name_width = max(4, width - 5 - 11 - 8 - 4)
        lines.append(
            Text(f"{'SYM':<5} {'NAME':<{name_width}} {'PRICE':>11} {'24H%':>8}", style=styles.TABLE_HEADER)
        )
        lines.append(Text("─" * min(width - 1, 55), style=styles.DIVIDER))
        for price in state.crypto:
            lines.append(
                Text.assemble(
                    (f"{price.symbol:<5}", styles.SYMBOL),
                    f" {truncate(price.name, name_width):<{name_width}} {format_price(price.price_usd):>11} ",
                    (format_change(price.change_24h), styles.change_style(price.change_24h)),
                )
            )

    lines.append(Text(""))
    lines.append(Text(" INDICES", style=styles.SUBSECTION_HEADER))
    stocks_error = state.errors.get(SourceId.STOCKS)
    if stocks_error:
        lines.append(Text(f"⚠ {stocks_error}", style=styles.ERROR))
    elif not state.stocks:
        lines.append(_pending_line(state, "fetching..."))
    else:
        name_width = max(6, width - 22)
        for index in state.stocks:
            lines.append(
                Text.assemble(
                    f"{truncate(index.name, name_width):<{name_width}} {format_price(index.price):>11} ",
                    (format_change(index.change_pct), styles.change_style(index.change_pct)),
                )
            )

    lines.append(Text(""))
    lines.append(Text(" COMMODITIES", style=styles.SUBSECTION_HEADER))
    commodities_error = state.errors.get(SourceId.COMMODITIES)
    if commodities_error:
        lines.append(Text(f"⚠ {commodities_error}", style=styles.ERROR))
    elif not state.commodities:
        lines.append(_pending_line(state, "fetching..."))
    else:
        name_width = max(6, width - 27)
        for commodity in state.commodities:
            lines.append(
                Text.assemble(
                    f"{truncate(commodity.name, name_width):<{name_width}} {format_price(commodity.price):>9} ",
                    (f"{commodity.unit:<6}", styles.MUTED),
                    " ",
                    (format_change(commodity.change_pct), styles.change_style(commodity.change_pct)),
                )
            )
    return lines


def render_prediction_quadrant(state: DashboardState, width: int, height: int) -> List[Text]:
    error = state.errors.get(SourceId.PREDICTION_MARKETS)
    if error:
        return [Text(f"⚠ {error}", style=styles.ERROR)]
    if not state.prediction_markets:
        return [_pending_line(state, "fetching markets...", indent="")]

    title_width = max(10, width - 16)
    lines = [
        Text(f"{'QUESTION':<{title_width}} {'YES%':>6}  {'ENDS':>5}", style=styles.TABLE_HEADER),
        Text("─" * min(width - 1, 70), style=styles.DIVIDER),
    ]
    for market in state.prediction_markets[: max(1, height - 2)]:
        title = market.title
        if len(title) > title_width:
            title = title[: title_width - 3] + "..."
        ends = market.end_date[5:10] if len(market.end_date) >= 10 else market.end_date
        lines.append(
            Text.assemble(
                f"{title:<{title_width}} ",
                (f"{market.probability * 100:5.1f}%", styles.probability_style(market.probability)),
                f"  {ends:>5}",
            )
        )
    return lines


def _quadrant(title: str, body: Sequence[Text], width: int, height: int) -> RenderableType:
    title_bar = Text(title, style=styles.QUADRANT_TITLE, no_wrap=True, overflow="crop")
    title_bar.align("left", width)
    panel = Panel(
        Group(*body),
        box=box.ROUNDED,
        border_style=styles.QUADRANT_BORDER,
        width=width,
        height=height,
        padding=(0, 1),
    )
    return Group(title_bar, panel)


def render_overview_pane(state: DashboardState, now: datetime) -> RenderedPane:
    layout = overview_layout(state.width, state.height)
    box_width = max(10, layout.half_width - 1)
    quadrant_width = max(10, layout.quadrant_width)

    top = Table.grid(padding=(0, 1))
    top.add_column(width=box_width)
    top.add_column(width=box_width)
    top.add_row(
        _quadrant(
            f"🌤  WEATHER  {state.city}",
            render_weather_quadrant(state, quadrant_width, layout.top_inner),
            box_width,
            layout.top_height,
        ),
        _quadrant("🧠  INTEL BRIEF", render_brief_quadrant(state, now), box_width, layout.top_height),
    )

    bottom = Table.grid(padding=(0, 1))
    bottom.add_column(width=box_width)
    bottom.add_column(width=box_width)
    bottom.add_row(
        _quadrant(
            "₿  MARKETS & PRICES",
            render_markets_quadrant(state, quadrant_width),
            box_width,
            layout.bottom_height,
        ),
        _quadrant(
            "📊  PREDICTION MARKETS",
            render_prediction_quadrant(state, quadrant_width, layout.bottom_inner),
            box_width,
            layout.bottom_height,
        ),
    )
    lines = render_to_lines(Group(top, Text(""), bottom), pane_width(state))
    return RenderedPane(lines, 0)


def render_pane(tab: Tab, state: DashboardState, now: datetime) -> RenderedPane:
    if tab == Tab.NEWS:
        return render_news_pane(state, now)
    if tab == Tab.LOCAL:
        return render_local_pane(state, now)
    return render_overview_pane(state, now)


# Frame


def render_header(state: DashboardState) -> RenderableType:
    right = Text("real-time intelligence", style=styles.SUBTITLE)
    if state.loading:
        right.append("  ")
        right.append_text(_spinner(state))
        right.append(" loading...", style=styles.SUBTITLE)
    if state.last_refresh is not None:
        right.append(f"  updated {state.last_refresh.astimezone():%H:%M:%S}", style=styles.SUBTITLE)
    grid = Table.grid(expand=True)
    grid.style = styles.HEADER
    grid.add_column()
    grid.add_column(justify="right")
    grid.add_row(Text("🌍 WATCHTOWER", style=styles.TITLE), right)
    return grid


def render_tabs(state: DashboardState) -> Text:
    tabs = Text(no_wrap=True, overflow="crop")
    for tab, name in zip(Tab, TAB_NAMES):
        if tab != Tab.OVERVIEW:
            tabs.append(" ")
        if tab == state.active_tab:
            tabs.append(f"[ {name} ]", style=styles.ACTIVE_TAB)
        else:
            tabs.append(f"  {name}  ", style=styles.INACTIVE_TAB)
    return tabs


def render_footer(state: DashboardState, now: datetime) -> Text:
    if state.status_active(now):
        return Text(f"  ✓ {state.status_message}", style=styles.FOOTER_STATUS, no_wrap=True, overflow="ellipsis")
    return Text(FOOTER_HINTS[state.active_tab], style=styles.FOOTER, no_wrap=True, overflow="ellipsis")


def render_frame(state: DashboardState, now: datetime) -> RenderableType:
    if state.width == 0:
        return Text("Initializing Watchtower...")
    content_height = max(5, state.height - 6)
    body: List[Text] = []
    for line in state.viewports[state.active_tab].visible_lines():
        line = line.copy()
        line.no_wrap = True
        line.overflow = "ellipsis"
        body.append(line)
    pane = Panel(
        Group(*body),
        box=box.ROUNDED,
        border_style=styles.PANE_BORDER,
        width=state.width,
        height=content_height + 2,
        padding=(0, 1),
    )
    return Group(render_header(state), render_tabs(state), pane, render_footer(state, now))
