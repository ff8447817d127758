#!/usr/bin/env python3
"""
Demonstration script for the treewatch polling monitor.

Watches a directory by re-scanning it at a fixed interval and prints every
create, change and delete it detects, followed by the scan statistics.

Usage:
    python examples/tree_monitoring_demo.py [--watch-dir PATH] [--interval SECONDS] [--duration SECONDS]
"""

import logging
import time
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, Progress, TextColumn, TimeElapsedColumn, track
from rich.table import Table

from treewatch.config import WatcherConfig, setup_logging
from treewatch.filters import build_filter_from_config
from treewatch.models import InitializationError
from treewatch.monitoring import FileAlterationListenerAdaptor, FileAlterationMonitor, FileAlterationObserver
from treewatch.storage import LocalStorageProvider

logger = logging.getLogger(__name__)

# Initialize rich console
console = Console()


class ConsoleListener(FileAlterationListenerAdaptor):
    """Prints every alteration to the rich console."""

    def on_directory_create(self, directory: Any) -> None:
        console.print(f"📁 [green]created[/green]  {directory}")

    def on_directory_change(self, directory: Any) -> None:
        console.print(f"📁 [yellow]changed[/yellow]  {directory}")

    def on_directory_delete(self, directory: Any) -> None:
        console.print(f"📁 [red]deleted[/red]  {directory}")

    def on_file_create(self, file: Any) -> None:
        console.print(f"📄 [green]created[/green]  {file}")

    def on_file_change(self, file: Any) -> None:
        console.print(f"📄 [yellow]changed[/yellow]  {file}")

    def on_file_delete(self, file: Any) -> None:
        console.print(f"📄 [red]deleted[/red]  {file}")


def create_monitoring_stats_table(stats: dict) -> Table:
    """Create a rich table for monitoring statistics."""
    table = Table(title="📊 Scan Statistics", show_header=True)
    table.add_column("Observed Root", style="cyan")
    table.add_column("Scans", style="white")
    table.add_column("Created", style="green")
    table.add_column("Changed", style="yellow")
    table.add_column("Deleted", style="red")
    table.add_column("Listing Failures", style="dim")

    for root, scan_stats in stats["observers"].items():
        table.add_row(
            root,
            str(scan_stats["scans"]),
            str(scan_stats["created"]),
            str(scan_stats["changed"]),
            str(scan_stats["deleted"]),
            str(scan_stats["listing_failures"]),
        )

    return table


def create_sample_files(directory: Path) -> None:
    """Create a few sample files so the first scan has something to find."""
    sample_files = {
        "README.md": "# Sample tree\n",
        "docs/getting-started.md": "# Getting Started\n",
        "docs/reference/api.md": "# API Reference\n",
    }

    for file_path, content in track(sample_files.items(), description="Creating files..."):
        full_path = directory / file_path
        full_path.parent.mkdir(parents=True, exist_ok=True)
        full_path.write_text(content, encoding='utf-8')

    console.print(f"✅ [bold green]Created {len(sample_files)} sample files in {directory}[/bold green]")


def run_demo(watch_directory: Path, interval: float, duration: int, config: WatcherConfig) -> None:
    """
    Watch a directory for the given duration.

    Args:
        watch_directory: Directory to monitor for changes
        interval: Seconds between two scans
        duration: How long to run the demo (in seconds)
        config: Watcher configuration (filters, stop timeout)
    """
    storage = LocalStorageProvider()
    observer = FileAlterationObserver(
        watch_directory,
        storage=storage,
        path_filter=build_filter_from_config(config, storage),
        listing_error_policy=config.listing_error_policy,
    )
    observer.add_listener(ConsoleListener())
    monitor = FileAlterationMonitor(interval, observer, config=config)

    console.print(
        Panel.fit(
            f"📁 Watching: [cyan]{watch_directory}[/cyan] | "
            f"🔁 Interval: [yellow]{interval}s[/yellow] | "
            f"⏱️  Duration: [yellow]{duration}s[/yellow]\n\n"
            "[dim]Create, modify or delete files below the directory and watch the events appear.[/dim]",
            title="treewatch Polling Demo",
            border_style="blue",
        )
    )

    monitor.start()
    try:
        with Progress(
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TimeElapsedColumn(),
            console=console,
        ) as progress:
            task = progress.add_task("⏱️  Monitoring active", total=duration)
            start_time = time.monotonic()
            while (elapsed := time.monotonic() - start_time) < duration:
                time.sleep(0.5)
                progress.update(task, completed=elapsed)
    finally:
        console.print("\n🛑 [yellow]Stopping monitor...[/yellow]")
        monitor.stop()

    console.print(create_monitoring_stats_table(monitor.get_monitoring_stats()))


@click.command()
@click.option(
    '--watch-dir',
    '-d',
    type=click.Path(path_type=Path),
    default=Path('./watched_tree'),
    help='Directory to monitor (will be created if it doesn\'t exist)',
)
@click.option('--interval', '-i', type=float, default=None, help='Seconds between two scans')
@click.option('--duration', '-t', type=int, default=60, help='Duration to run the demo in seconds')
@click.option('--ignore', '-x', multiple=True, help='fnmatch pattern of paths to ignore (repeatable)')
@click.option('--create-samples', '-s', is_flag=True, help='Create sample files before watching')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
def main(watch_dir: Path, interval: float | None, duration: int, ignore: tuple[str, ...], create_samples: bool, verbose: bool):
    """
    Run the treewatch polling monitor demonstration.

    Example usage:

        # Watch ./watched_tree for a minute with the configured interval
        python examples/tree_monitoring_demo.py

        # Scan /path/to/share every 2 seconds for 5 minutes, ignoring temp files
        python examples/tree_monitoring_demo.py -d /path/to/share -i 2 -t 300 -x '*.tmp'
    """
    config = WatcherConfig(debug_mode=verbose, ignored_patterns=list(ignore))
    setup_logging(config)

    try:
        watch_dir.mkdir(parents=True, exist_ok=True)
        if create_samples:
            create_sample_files(watch_dir)

        run_demo(watch_dir, interval or config.poll_interval_seconds, duration, config)

    except KeyboardInterrupt:
        console.print("\n⚡ [yellow]Demo interrupted by user[/yellow]")
    except InitializationError as e:
        console.print(f"❌ [red]Cannot watch {watch_dir}:[/red] {e}")
        return 1

    console.print("\n🎉 [bold green]Demo completed successfully![/bold green]")
    return 0


if __name__ == '__main__':
    exit(main())
