"""CLI entry point for the intent_watch daemon."""

from __future__ import annotations

import asyncio
import logging
import sys

import click

from intent_watch.chain.catalog import supported_currencies
from intent_watch.clock import LoopClock
from intent_watch.config import load_config
from intent_watch.daemon import WatchDaemon, run_daemon
from intent_watch.errors import ConfigError
from intent_watch.models.config import WatchConfig
from intent_watch.storage.sqlite import SQLiteSubscriberStore


def _load(ctx: click.Context) -> WatchConfig:
    """Load config or exit with the error."""
    try:
        return load_config(ctx.obj["config_path"])
    except ConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


def _with_store(cfg: WatchConfig, action) -> None:
    async def _run():
        store = SQLiteSubscriberStore(cfg.db_path)
        await store.initialize()
        try:
            await action(store)
        finally:
            await store.close()

    asyncio.run(_run())


@click.group()
@click.option("-c", "--config", "config_path", default=None, help="Path to config TOML file")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """intent-watch - relay escrow intents and sniper alerts to subscribers."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose

    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


# ── Daemon ─────────────────────────────────────────────


@cli.command()
@click.pass_context
def run(ctx: click.Context) -> None:
    """Start the watcher."""
    cfg = _load(ctx)
    if not cfg.ws_url:
        click.echo("Error: No websocket URL configured.", err=True)
        click.echo("Set INTENT_WATCH_WS_URL env var or [chain] ws_url in config.", err=True)
        sys.exit(1)

    click.echo(f"Starting intent_watch ({len(cfg.contracts)} contracts)")
    asyncio.run(run_daemon(cfg))


# ── Info ───────────────────────────────────────────────


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show configuration and stored subscription counts."""
    cfg = _load(ctx)
    click.echo(f"WS URL:     {cfg.ws_url or '(not set)'}")
    for contract in cfg.contracts:
        click.echo(f"Contract:   {contract.id} {contract.address} ({contract.abi})")
    click.echo(f"Sniper:     {'enabled' if cfg.sniper.enabled else 'disabled'}"
               f" (default threshold {cfg.sniper.default_threshold}%)")
    click.echo(f"Telegram:   {'***configured***' if cfg.telegram.bot_token else '(not set)'}")
    click.echo(f"Discord:    {'configured' if cfg.discord.orders_webhook_url else '(not set)'}")
    click.echo(f"DB path:    {cfg.db_path}")

    async def _counts(store):
        counts = await store.get_counts()
        click.echo("")
        click.echo(f"Tracked deposits:   {counts['tracked_deposits']}")
        click.echo(f"Listening to all:   {counts['listen_all']}")
        click.echo(f"Sniper entries:     {counts['snipers']}")
        click.echo(f"Sniper alerts sent: {counts['sniper_alerts']}")
        click.echo(f"Notifications sent: {counts['notifications']}")

    _with_store(cfg, _counts)


@cli.command()
@click.argument("currencies", nargs=-1)
@click.pass_context
def rates(ctx: click.Context, currencies: tuple[str, ...]) -> None:
    """Fetch current market rates (per USD) for CURRENCIES."""
    cfg = _load(ctx)
    codes = [c.upper() for c in currencies] or supported_currencies()

    async def _rates():
        cfg.sniper.enabled = False
        daemon = WatchDaemon(cfg, clock=LoopClock())
        for code in codes:
            rate = await daemon.resolver.rate_for(code)
            shown = f"{rate:.4f}" if rate else "unavailable"
            click.echo(f"  {code}: {shown}")

    asyncio.run(_rates())


# ── Subscriptions ──────────────────────────────────────


@cli.command()
@click.argument("subscriber")
@click.argument("deposit_ids", nargs=-1)
@click.option("--remove", is_flag=True, help="Stop tracking instead")
@click.pass_context
def track(ctx: click.Context, subscriber: str, deposit_ids: tuple[str, ...], remove: bool) -> None:
    """Track DEPOSIT_IDS for SUBSCRIBER ("all" listens to every deposit)."""
    cfg = _load(ctx)

    async def _track(store):
        if not deposit_ids:
            deposits = await store.get_deposits(subscriber)
            listen_all = await store.get_listen_all(subscriber)
            click.echo(f"Listening to all: {'yes' if listen_all else 'no'}")
            for d in deposits:
                click.echo(f"  #{d.deposit_id} [{d.status}] last intent={d.last_intent_id or '-'}")
            return
        for raw in deposit_ids:
            if raw.lower() == "all":
                await store.set_listen_all(subscriber, not remove)
                click.echo(f"Listen-all {'disabled' if remove else 'enabled'} for {subscriber}")
                continue
            try:
                deposit_id = int(raw)
            except ValueError:
                click.echo(f"Skipping invalid deposit id: {raw}", err=True)
                continue
            if remove:
                await store.remove_deposit(subscriber, deposit_id)
            else:
                await store.add_deposit(subscriber, deposit_id)
        click.echo(f"{'Removed' if remove else 'Tracking'}: {', '.join(deposit_ids)}")

    _with_store(cfg, _track)


@cli.command()
@click.argument("subscriber")
@click.argument("currency", required=False)
@click.argument("platform", required=False)
@click.option("--remove", is_flag=True, help="Remove matching sniper entries")
@click.pass_context
def snipe(
    ctx: click.Context, subscriber: str, currency: str | None, platform: str | None,
    remove: bool,
) -> None:
    """Add a sniper for CURRENCY (optionally only on PLATFORM)."""
    cfg = _load(ctx)

    async def _snipe(store):
        if remove:
            await store.remove_sniper(subscriber, currency, platform)
            click.echo(f"Removed sniper entries for {subscriber}")
            return
        if currency is None:
            snipers = await store.get_snipers(subscriber)
            if not snipers:
                click.echo("No active snipers.")
            for s in snipers:
                click.echo(f"  {s.currency_code} on {s.platform or 'all platforms'}"
                           f" (since {s.created_at})")
            return
        if currency.upper() not in supported_currencies():
            click.echo(f"Error: unsupported currency {currency}", err=True)
            sys.exit(1)
        await store.add_sniper(subscriber, currency, platform)
        click.echo(f"Sniping {currency.upper()} on {platform or 'all platforms'}")

    _with_store(cfg, _snipe)


@cli.command()
@click.argument("subscriber")
@click.argument("percent", type=float, required=False)
@click.pass_context
def threshold(ctx: click.Context, subscriber: str, percent: float | None) -> None:
    """Show or set SUBSCRIBER's sniper threshold in PERCENT."""
    cfg = _load(ctx)

    async def _threshold(store):
        if percent is None:
            value = await store.get_user_threshold(subscriber)
            if value is None:
                click.echo(f"Threshold: {cfg.sniper.default_threshold}% (default)")
            else:
                click.echo(f"Threshold: {value}%")
            return
        await store.set_user_threshold(subscriber, percent)
        click.echo(f"Threshold set to {percent}%")

    _with_store(cfg, _threshold)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
