#!/usr/bin/env python3
"""
FeedRelay - Translated RSS Relay
================================

Main application entry point with CLI interface.

Usage:
    python main.py --help                    # Show all commands
    python main.py check-config              # Validate configuration
    python main.py run-once                  # Run the pipeline a single time
    python main.py service                   # Poll continuously until stopped
    python main.py status                    # Show the stored checkpoint
"""

import sys
import signal
import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table
from telegram import Bot
from telegram.error import TelegramError

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent))

from feedrelay.config.settings import FeedRelaySettings, load_settings
from feedrelay.delivery.message_sender import MessageSender
from feedrelay.ingestion.feed_fetcher import FeedFetcher
from feedrelay.models import RunResult
from feedrelay.processing.pipeline import NewItemPipeline
from feedrelay.scheduler.poll_scheduler import PollScheduler
from feedrelay.storage.checkpoint_store import CheckpointStore
from feedrelay.translation.chunked_translator import ChunkedTranslator
from feedrelay.translation.yandex_provider import YandexTranslateProvider
from feedrelay.utils.exceptions import ConfigurationError, FeedRelayError
from feedrelay.utils.logging import configure_application_logging
from feedrelay.utils.process_lock import lock_for_checkpoint

console = Console()
logger = logging.getLogger("feedrelay.main")


@dataclass
class RelayComponents:
    """Everything a pipeline run needs, wired from settings."""
    bot: Bot
    fetcher: FeedFetcher
    provider: YandexTranslateProvider
    sender: MessageSender
    pipeline: NewItemPipeline

    async def close(self) -> None:
        await self.fetcher.close()
        await self.provider.close()


def build_components(settings: FeedRelaySettings) -> RelayComponents:
    """Wire the pipeline and its collaborators from settings."""
    bot = Bot(token=settings.telegram.bot_token)
    fetcher = FeedFetcher(
        feed_url=settings.feed.url,
        user_agent=settings.feed.user_agent,
        timeout=settings.limits.request_timeout,
    )
    provider = YandexTranslateProvider(
        api_key=settings.translation.api_key,
        folder_id=settings.translation.folder_id,
        target_language=settings.translation.target_language,
        timeout=settings.limits.request_timeout,
        endpoint=settings.translation.endpoint,
    )
    sender = MessageSender(
        bot=bot,
        chat_id=settings.telegram.chat_id,
        max_message_length=settings.telegram.max_message_length,
        safety_margin=settings.telegram.safety_margin,
        segment_delay=settings.telegram.segment_delay_seconds,
    )
    pipeline = NewItemPipeline(
        settings=settings,
        fetcher=fetcher,
        checkpoint_store=CheckpointStore(settings.storage.checkpoint_path),
        translator=ChunkedTranslator(provider, settings.translation.max_chunk_size),
        sender=sender,
    )
    return RelayComponents(bot, fetcher, provider, sender, pipeline)


def _load_runtime_settings(ctx) -> FeedRelaySettings:
    """Load validated settings and configure logging, exiting on failure."""
    try:
        settings = load_settings()
    except ConfigurationError as e:
        console.print(f"[bold red]❌ {e.user_message}[/bold red]")
        sys.exit(1)

    if ctx.obj.get('debug'):
        settings.debug = True

    configure_application_logging(
        log_level=settings.get_effective_log_level(),
        log_file=settings.logging.file_path,
        enable_console=settings.logging.console_logging,
        structured_logging=settings.logging.structured_logging,
        max_file_size_mb=settings.logging.max_file_size_mb,
        backup_count=settings.logging.backup_count,
    )
    return settings


@click.group(invoke_without_command=True)
@click.option('--debug', is_flag=True, help='Enable debug mode')
@click.pass_context
def cli(ctx, debug):
    """FeedRelay - translated RSS to Telegram relay."""
    ctx.ensure_object(dict)
    ctx.obj['debug'] = debug

    if ctx.invoked_subcommand is None:
        # Show help if no subcommand provided
        click.echo(ctx.get_help())


@cli.command()
@click.pass_context
def check_config(ctx):
    """Validate environment variables and settings."""
    console.print("[bold blue]🔧 Checking FeedRelay Configuration[/bold blue]")

    try:
        settings = FeedRelaySettings()
    except ValueError as e:
        console.print(f"[bold red]❌ Configuration error: {e}[/bold red]")
        sys.exit(1)

    table = Table(title="Configuration Status")
    table.add_column("Component", style="cyan")
    table.add_column("Status", style="green")
    table.add_column("Details")

    checks = [
        ("Feed", _check_feed_config),
        ("Telegram", _check_telegram_config),
        ("Translation", _check_translation_config),
        ("Processing", _check_processing_config),
        ("Storage", _check_storage_config),
        ("Logging", _check_logging_config),
    ]

    all_passed = True
    for name, check_func in checks:
        status, details = check_func(settings)
        table.add_row(name, "✅ Valid" if status else "❌ Invalid", details)
        if not status:
            all_passed = False

    console.print(table)

    try:
        settings.validate_configuration()
    except ConfigurationError as e:
        console.print(f"[bold red]❌ {e.user_message}[/bold red]")
        all_passed = False

    if all_passed:
        console.print("[bold green]✅ All configuration checks passed![/bold green]")
        sys.exit(0)
    else:
        console.print("[bold red]❌ Configuration validation failed[/bold red]")
        sys.exit(1)


@cli.command()
@click.pass_context
def run_once(ctx):
    """Fetch the feed once and deliver new items."""
    settings = _load_runtime_settings(ctx)
    console.print(f"[bold blue]📡 Running FeedRelay once: {settings.feed.url}[/bold blue]")

    lock = lock_for_checkpoint(settings.storage.checkpoint_path)
    if not lock.acquire():
        console.print(f"[bold red]❌ Another FeedRelay instance (PID {lock.get_lock_holder_pid()}) is using this checkpoint[/bold red]")
        sys.exit(1)

    async def run_pipeline() -> RunResult:
        components = build_components(settings)
        try:
            async with components.bot:
                return await asyncio.wait_for(
                    components.pipeline.run_once(),
                    timeout=settings.limits.run_timeout_seconds,
                )
        finally:
            await components.close()

    try:
        result = asyncio.run(run_pipeline())
    except FeedRelayError as e:
        console.print(f"[bold red]❌ Run failed: {e}[/bold red]")
        sys.exit(1)
    except TelegramError as e:
        console.print(f"[bold red]❌ Telegram error: {e}[/bold red]")
        sys.exit(1)
    except asyncio.TimeoutError:
        console.print(f"[bold red]❌ Run exceeded {settings.limits.run_timeout_seconds:g}s[/bold red]")
        sys.exit(1)
    finally:
        lock.release()

    _print_run_result(result)


@cli.command()
@click.pass_context
def service(ctx):
    """Poll the feed continuously until SIGINT/SIGTERM."""
    settings = _load_runtime_settings(ctx)

    lock = lock_for_checkpoint(settings.storage.checkpoint_path)
    if not lock.acquire():
        console.print(f"[bold red]❌ FeedRelay is already running (PID {lock.get_lock_holder_pid()})[/bold red]")
        sys.exit(1)

    async def run_service() -> None:
        components = build_components(settings)
        scheduler = PollScheduler(
            pipeline=components.pipeline,
            interval_seconds=settings.processing.check_interval_seconds,
            notifier=components.sender,
            run_timeout=settings.limits.run_timeout_seconds,
            run_on_start=settings.processing.run_on_start,
            notify_on_failure=settings.telegram.notify_on_failure,
        )

        stop_event = asyncio.Event()
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, stop_event.set)

        for line in components.pipeline.describe():
            logger.info(line)

        try:
            async with components.bot:
                await scheduler.run_forever(stop_event)
        finally:
            await components.close()
            logger.info(
                f"Service stopped after {scheduler.run_count} runs "
                f"({scheduler.failure_count} failed)"
            )

    console.print("[bold green]🤖 FeedRelay service is running! Press Ctrl+C to stop.[/bold green]")
    try:
        asyncio.run(run_service())
    finally:
        lock.release()
    console.print("[yellow]👋 FeedRelay service stopped[/yellow]")


@cli.command()
@click.pass_context
def status(ctx):
    """Show the stored checkpoint."""
    try:
        settings = FeedRelaySettings()
    except ValueError as e:
        console.print(f"[bold red]❌ Configuration error: {e}[/bold red]")
        sys.exit(1)

    store = CheckpointStore(settings.storage.checkpoint_path)

    table = Table(title="FeedRelay Status")
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Feed", settings.feed.url)
    table.add_row("Checkpoint file", str(store.path))

    if not store.exists():
        table.add_row("Last delivered", "Nothing delivered yet")
    else:
        try:
            checkpoint = store.load()
            table.add_row("Last delivered", checkpoint.identifier)
            table.add_row("Fingerprint", checkpoint.fingerprint)
        except FeedRelayError as e:
            table.add_row("Last delivered", f"❌ {e}")

    holder = lock_for_checkpoint(settings.storage.checkpoint_path).get_lock_holder_pid()
    table.add_row("Service", f"Running (PID {holder})" if holder else "Not running")

    console.print(table)


def _print_run_result(result: RunResult) -> None:
    table = Table(title=f"Run {result.run_id}")
    table.add_column("#", style="dim")
    table.add_column("Title", style="cyan")
    table.add_column("Outcome")
    table.add_column("Details")

    for index, item in enumerate(result.items, 1):
        style = "green" if item.delivered else "red"
        details = item.error or (f"{item.segments_sent} segment(s)" if item.delivered else "")
        table.add_row(str(index), item.title[:60], f"[{style}]{item.outcome.value}[/{style}]", details)

    if result.items:
        console.print(table)

    console.print(
        f"Fetched {result.items_fetched} items, {result.new_items} new, "
        f"{result.delivered_count} delivered in {result.duration_seconds:.1f}s"
    )
    if result.stopped_at_checkpoint and not result.items:
        console.print("[yellow]No new items since the last run[/yellow]")


# Helper functions for configuration checks
def _check_feed_config(settings) -> tuple[bool, str]:
    """Check feed configuration."""
    return True, f"URL: {settings.feed.url}"


def _check_telegram_config(settings) -> tuple[bool, str]:
    """Check Telegram configuration."""
    if not settings.telegram.bot_token:
        return False, "Bot token not set"
    if not settings.telegram.chat_id:
        return False, "Chat ID not set"
    return True, f"Chat: {settings.telegram.chat_id}, segment length: {settings.telegram.segment_length}"


def _check_translation_config(settings) -> tuple[bool, str]:
    """Check translation service configuration."""
    if not settings.translation.api_key:
        return False, "API key not set"
    if not settings.translation.folder_id:
        return False, "Folder ID not set"
    return True, f"Target: {settings.translation.target_language}, chunk: {settings.translation.max_chunk_size}"


def _check_processing_config(settings) -> tuple[bool, str]:
    """Check processing configuration."""
    processing = settings.processing
    return True, (
        f"Every {processing.check_interval_seconds:g}s, "
        f"max {processing.max_articles_to_send} items per run"
    )


def _check_storage_config(settings) -> tuple[bool, str]:
    """Check checkpoint storage configuration."""
    try:
        checkpoint_path = Path(settings.storage.checkpoint_path)
        checkpoint_path.parent.mkdir(parents=True, exist_ok=True)
        return True, f"Checkpoint: {checkpoint_path}"
    except OSError as e:
        return False, str(e)


def _check_logging_config(settings) -> tuple[bool, str]:
    """Check logging configuration."""
    try:
        if settings.logging.file_path:
            log_path = Path(settings.logging.file_path)
            log_path.parent.mkdir(parents=True, exist_ok=True)
        return True, f"Level: {settings.logging.level.value}, Console: {settings.logging.console_logging}"
    except OSError as e:
        return False, str(e)


if __name__ == "__main__":
    try:
        cli()
    except KeyboardInterrupt:
        console.print("\n[yellow]👋 FeedRelay interrupted by user[/yellow]")
        sys.exit(130)
