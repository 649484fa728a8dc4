# locator_heal/cli.py
from __future__ import annotations

"""Command-line interface
------------------------
Inspect configuration and registered strategies, record element info for
working selectors, and try healing a broken selector against a live page.
Thin wrapper around the manager and the Playwright adapter.
"""

import asyncio
import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import click

from locator_heal.browser.playwright_page import open_page
from locator_heal.core.manager import SelfHealingManager
from locator_heal.utils.config import get_settings
from locator_heal.utils.logger import bind, configure_logging, get_logger, unbind


# -------- helpers --------


def _echo_json(obj) -> None:
    click.echo(json.dumps(obj, indent=2, ensure_ascii=False, default=str))


def _manager(store_path: Optional[str]) -> SelfHealingManager:
    settings = get_settings()
    if store_path:
        settings = settings.model_copy(update={"STORE_PATH": Path(store_path).resolve()})
    return SelfHealingManager(settings)


store_option = click.option(
    "--store", "store_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Selector store file (.json/.yaml); overrides STORE_PATH",
)


# -------- CLI root --------


@click.group(context_settings=dict(help_option_names=["-h", "--help"]))
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    default=None,
    help="Override LOG_LEVEL from settings",
)
@click.version_option(package_name="locator-heal")
def cli(log_level: Optional[str]):
    _ = get_settings()
    if log_level:
        configure_logging(log_level, force=True)


# -------- commands --------


@cli.command("config")
def cmd_config():
    """Print effective configuration (after .env & env vars)."""
    s = get_settings()
    _echo_json(s.model_dump(mode="json"))


@cli.command("strategies")
def cmd_strategies():
    """List registered strategies in the order they are tried."""
    manager = SelfHealingManager(get_settings())
    for info in manager.list_strategies():
        state = "enabled" if info.enabled else "disabled"
        click.echo(f"{info.priority:>4}  {info.name:<14} {state}")


@cli.command("heal")
@click.argument("url")
@click.argument("selector")
@store_option
@click.option("--timeout-ms", type=int, default=None, help="Override HEAL_TIMEOUT_MS (0 = unbounded)")
@click.option("--cache/--no-cache", "use_cache", default=True, show_default=True, help="Try the remembered healed mapping first")
@click.option("--save/--no-save", default=False, show_default=True, help="Persist the healed element info and mapping under SELECTOR")
@click.option("--json", "as_json", is_flag=True, default=False, help="Print the outcome as JSON")
def cmd_heal(
    url: str,
    selector: str,
    store_path: Optional[str],
    timeout_ms: Optional[int],
    use_cache: bool,
    save: bool,
    as_json: bool,
):
    """
    Try to heal SELECTOR on the page at URL.

    Examples:
      locator-heal heal https://app.example/login "#submit" --store selectors.yaml
      locator-heal heal https://app.example/login "#submit" --save --json
    """
    manager = _manager(store_path)
    log = get_logger(__name__)
    bind(run_id=datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ"), url=url)

    async def _run() -> int:
        async with open_page(url, manager.settings) as page:
            if await page.find(selector):
                click.echo(f"OK  {selector!r} still matches; nothing to heal")
                return 0

            outcome = await manager.heal(selector, page, timeout_ms=timeout_ms, use_cache=use_cache)
            if as_json:
                _echo_json(outcome.model_dump(mode="json"))
            else:
                prefix = "OK " if outcome.resolved else "ERR"
                click.echo(f"{prefix} {outcome.summary()}")

            if outcome.resolved and save:
                info = await manager.propose_element_info(outcome, page)
                manager.remember(selector, info, outcome=outcome)
                log.info(f"Saved healed mapping for {selector!r} -> {outcome.selector!r}")
            return 0 if outcome.resolved else 1

    try:
        code = asyncio.run(_run())
    finally:
        unbind("run_id", "url")
    sys.exit(code)


@cli.command("capture")
@click.argument("url")
@click.argument("selector")
@store_option
def cmd_capture(url: str, selector: str, store_path: Optional[str]):
    """Record element info for a SELECTOR that currently works on URL."""
    manager = _manager(store_path)

    async def _run():
        async with open_page(url, manager.settings) as page:
            return await manager.capture_element_info(selector, page)

    info = asyncio.run(_run())
    if info is None:
        click.echo(f"ERR {selector!r} did not match exactly one element; nothing recorded")
        sys.exit(1)
    manager.remember(selector, info)
    click.echo(f"OK  recorded {selector!r}")
    _echo_json(info.to_record())


@cli.group("store")
def cmd_store():
    """Inspect the selector store."""


@cmd_store.command("list")
@store_option
def cmd_store_list(store_path: Optional[str]):
    """List recorded selectors."""
    manager = _manager(store_path)
    rows = list(manager.store.items())
    if not rows:
        click.echo("No selectors recorded.")
        return
    click.echo(f"Found {len(rows)} selector(s):\n")
    for sel, info in rows:
        signals = [k for k in ("test_id", "aria_label", "text") if getattr(info, k)]
        click.echo(f" - {sel}  [{info.tag_name or '?'}]  signals: {', '.join(signals) or 'none'}")
        mapping = manager.store.get_mapping(sel)
        if mapping is not None:
            click.echo(f"     healed -> {mapping.selector}  ({mapping.strategy}, used {mapping.use_count}x)")


@cmd_store.command("forget")
@click.argument("selector")
@store_option
def cmd_store_forget(selector: str, store_path: Optional[str]):
    """Remove a recorded selector."""
    manager = _manager(store_path)
    if manager.forget(selector):
        click.echo(f"OK  forgot {selector!r}")
        return
    click.echo(f"ERR {selector!r} is not recorded")
    sys.exit(1)


def main() -> None:
    cli(prog_name="locator-heal")


if __name__ == "__main__":
    main()
