from __future__ import annotations

import asyncio
from typing import Optional, Tuple

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from watchtower.config import AppConfig
from watchtower.core.errors import ConfigError, WatchtowerError
from watchtower.core.registry import ProviderRegistry
from watchtower.infra.cache.brief_cache import BriefCache
from watchtower.infra.http.client import HttpClient
from watchtower.logging_setup import configure_logging
from watchtower.modules.dashboard.app import DashboardApp
from watchtower.modules.dashboard.orchestrator import fetch_params
from watchtower.modules.dashboard.sources import SourceCatalog
from watchtower.modules.dashboard.styles import risk_bar_style
from watchtower.modules.intel.schemas import BriefOutcome
from watchtower.modules.intel.service import IntelService
from watchtower.modules.news.providers.rss_provider import GlobalNewsProvider
from watchtower.modules.weather.providers.open_meteo_provider import geocode
from watchtower.services.config_store import ConfigStore
from watchtower.settings import AppSettings

app = typer.Typer(help="Watchtower terminal dashboard")
console = Console()

cache_app = typer.Typer(help="Manage the brief cache")
app.add_typer(cache_app, name="cache")


def _bootstrap() -> Tuple[AppSettings, ConfigStore]:
    settings = AppSettings()
    configure_logging(settings.log_file, settings.log_level)
    return settings, ConfigStore(config_path=settings.config_file)


def _load_config(settings: AppSettings, store: ConfigStore) -> AppConfig:
    try:
        config = store.load()
    except ConfigError as exc:
        console.print(f"[red]Config error:[/red] {exc}")
        raise typer.Exit(code=1) from exc
    if settings.llm_api_key:
        config = config.model_copy(
            update={"llm": config.llm.model_copy(update={"api_key": settings.llm_api_key})}
        )
    return config


@app.callback(invoke_without_command=True)
def main(ctx: typer.Context) -> None:
    if ctx.invoked_subcommand is None:
        run()


@app.command("run")
def run() -> None:
    settings, store = _bootstrap()
    config = _load_config(settings, store)
    dashboard = DashboardApp(config=config, cache=BriefCache(settings.brief_cache_file))
    try:
        asyncio.run(dashboard.run())
    except KeyboardInterrupt:
        pass


@app.command("init-config")
def init_config(
    city: Optional[str] = typer.Option(None, help="City to geocode for weather and local news."),
    country: Optional[str] = typer.Option(None, help="ISO country code, e.g. GB or US."),
) -> None:
    settings, store = _bootstrap()
    config = _load_config(settings, store)
    if city:
        country_code = (country or config.location.country).upper()
        location = asyncio.run(_geocode(config, city, country_code))
        if location is None:
            console.print(f"[red]Could not find coordinates for[/red] {city}, {country_code}")
            raise typer.Exit(code=1)
        config = store.patch({"location": location.model_dump()})
    else:
        config = store.save(config)
    console.print(f"[green]Config initialized:[/green] {store.config_path.resolve()}")
    loc = config.location
    console.print(
        f"[green]Location:[/green] {loc.city}, {loc.country} ({loc.latitude:.4f}, {loc.longitude:.4f})"
    )


async def _geocode(config: AppConfig, city: str, country: str):
    async with HttpClient(
        timeout_seconds=config.request_timeout_seconds, user_agent=config.user_agent
    ) as client:
        return await geocode(client, city, country)


@app.command("brief")
def brief(force: bool = typer.Option(False, help="Ignore the cached brief.")) -> None:
    settings, store = _bootstrap()
    config = _load_config(settings, store)
    try:
        outcome = asyncio.run(_generate_brief(config, BriefCache(settings.brief_cache_file), force))
    except WatchtowerError as exc:
        console.print(f"[red]Brief failed:[/red] {exc}")
        raise typer.Exit(code=1) from exc
    _print_brief(outcome)


async def _generate_brief(config: AppConfig, cache: BriefCache, force: bool) -> BriefOutcome:
    async with HttpClient(
        timeout_seconds=config.request_timeout_seconds, user_agent=config.user_agent
    ) as client:
        catalog = SourceCatalog(config=config, client=client, registry=ProviderRegistry())
        intel = IntelService(config=config, synthesizer=catalog.synthesizer(), cache=cache)
        if not force:
            cached = await intel.load_cached()
            if cached is not None:
                return BriefOutcome(brief=cached, from_cache=True)
        items = await GlobalNewsProvider(config=config, client=client).fetch(fetch_params(config))
        return await intel.get_brief(items, force=True)


def _print_brief(outcome: BriefOutcome) -> None:
    result = outcome.brief
    origin = "cache" if outcome.from_cache else "fresh"
    stamp = result.generated_at.astimezone().strftime("%Y-%m-%d %H:%M")
    console.print(
        Panel(result.summary or "(empty)", title=f"Intel brief · {result.model} · {stamp} · {origin}")
    )
    if result.key_threats:
        console.print("[bold]Key threats[/bold]")
        for threat in result.key_threats:
            console.print(f"• {threat}")
    if result.country_risks:
        table = Table(title="Country risk")
        table.add_column("Country")
        table.add_column("Score", justify="right")
        table.add_column("Reason")
        for risk in result.country_risks:
            table.add_row(risk.country, Text(str(risk.score), style=risk_bar_style(risk.score)), risk.reason)
        console.print(table)


@cache_app.command("clear")
def cache_clear() -> None:
    settings, _ = _bootstrap()
    BriefCache(settings.brief_cache_file).clear()
    console.print(f"[green]Brief cache cleared:[/green] {settings.brief_cache_file}")


if __name__ == "__main__":
    app()
