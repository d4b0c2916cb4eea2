"""
Command-line interface for the asset toolkit.
Provides commands for scanning, installing, portrait export and motif activation.
"""

import sys
import os
import json
import logging
from importlib import metadata
from pathlib import Path
from typing import Optional
import typer
from rich.console import Console
from rich.table import Table
from rich.progress import Progress, SpinnerColumn, TextColumn

from . import __version__
from .config import AssetConfig
from .errors import AssetError, CapabilityDenied, OperationCancelled
from .storage import StorageRoot, open_root, select_root
from .scanner import AssetKind, scan as scan_root
from .installer import ArchiveInstaller, BrowserHandoff, DownloadHandoff, Failed, WrittenPath
from .portrait import get_portrait
from .engine_config import build_motif_record, read_engine_config, set_active_motif
from .utils.image import ImageUtils

# Initialize typer app and rich console
app = typer.Typer(
    name="ikemen-assets",
    help="Asset toolkit for IKEMEN GO - scan, install and preview characters, stages and screenpacks",
    add_completion=False,
    rich_markup_mode="rich",
    epilog="""
[bold]Examples:[/bold]
  [cyan]ikemen-assets scan chars[/cyan]                                 List installed characters
  [cyan]ikemen-assets scan stages --kind stage --snapshot[/cyan]        Scan a read-only snapshot
  [cyan]ikemen-assets portrait chars kfm/kfm.def -o kfm.png[/cyan]      Export a portrait
  [cyan]ikemen-assets install https://example.com/ryu.zip chars[/cyan]  Install a character
  [cyan]ikemen-assets motif . data/mymotif/system.def[/cyan]             Activate a screenpack

[bold]Environment Variables:[/bold]
  Use [cyan]ikemen-assets config --env-vars[/cyan] to see all available variables.
    """
)
console = Console()


def _setup_logging(verbose: bool = False) -> logging.Logger:
    """Set up logging for the toolkit."""
    logger = logging.getLogger("ikemen_assets")
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def _choose_root(path: Optional[Path], snapshot: bool) -> StorageRoot:
    """Open the root given on the command line, or ask for one."""
    if path is not None:
        return open_root(path, snapshot=snapshot)

    def picker() -> Optional[str]:
        try:
            return typer.prompt("Root directory (leave empty to cancel)", default="", show_default=False)
        except typer.Abort:
            return None

    return select_root(picker, snapshot=snapshot)


@app.command()
def scan(
    root: Optional[Path] = typer.Argument(None, help="Directory to scan"),
    kind: AssetKind = typer.Option(AssetKind.CHARACTER, "--kind", "-k", help="Asset kind to look for"),
    snapshot: bool = typer.Option(False, "--snapshot", help="Scan a read-only snapshot of the directory"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file path"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging")
):
    """List definition files of one asset kind."""
    _setup_logging(verbose)

    try:
        config = _load_config(config_file)
        storage_root = _choose_root(root, snapshot)
        results = scan_root(storage_root, kind, config)
    except OperationCancelled:
        console.print("[yellow]Cancelled.[/yellow]")
        raise typer.Exit(1)
    except AssetError as e:
        console.print(f"[red]Error scanning:[/red] {e}")
        raise typer.Exit(1)

    table = Table(title=f"{kind.value.title()} definitions in {storage_root.name}")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Path", style="cyan")
    for number, path in enumerate(results, start=1):
        table.add_row(str(number), path)

    console.print(table)
    console.print(f"[green]✓[/green] Found {len(results)} {kind.value} definitions")


@app.command()
def portrait(
    root: Path = typer.Argument(..., help="Characters directory"),
    definition: str = typer.Argument(..., help="Definition file relative to the root, e.g. kfm/kfm.def"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="PNG file to write"),
    scale: float = typer.Option(1.0, "--scale", help="Nearest-neighbour scale factor"),
    data_url: bool = typer.Option(False, "--data-url", help="Print a data: URL instead of writing a file"),
    snapshot: bool = typer.Option(False, "--snapshot", help="Read from a snapshot of the directory"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file path"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging")
):
    """Decode a character portrait and save it as PNG."""
    _setup_logging(verbose)

    try:
        config = _load_config(config_file)
        storage_root = open_root(root, snapshot=snapshot)
    except AssetError as e:
        console.print(f"[red]Error opening root:[/red] {e}")
        raise typer.Exit(1)

    decoded = get_portrait(definition, storage_root, config)
    if decoded is None:
        console.print(f"[yellow]No portrait found for {definition}[/yellow]")
        raise typer.Exit(1)

    try:
        image = ImageUtils.scale(decoded.to_image(), scale)
    except ValueError as e:
        console.print(f"[red]Invalid scale:[/red] {e}")
        raise typer.Exit(1)

    if data_url:
        console.print(ImageUtils.to_data_url(image), soft_wrap=True)
        return

    if output is None:
        output = Path(f"{Path(definition).stem}_portrait.png")
    ImageUtils.save_image(image, output)
    console.print(f"[green]✓[/green] Saved {image.width}×{image.height} portrait to {output}")


@app.command()
def install(
    url: str = typer.Argument(..., help="Direct download URL of a zip archive"),
    root: Optional[Path] = typer.Argument(None, help="Directory to install into"),
    kind: AssetKind = typer.Option(AssetKind.CHARACTER, "--kind", "-k", help="Asset kind being installed"),
    snapshot: bool = typer.Option(False, "--snapshot", help="Treat the root as read-only (download only)"),
    activate: bool = typer.Option(False, "--activate", help="Activate an installed screenpack as the motif"),
    engine_root: Optional[Path] = typer.Option(None, "--engine-root", help="Engine directory holding save/config.json"),
    downloads: Optional[Path] = typer.Option(None, "--downloads", help="Where archives are saved when not installed"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file path"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging")
):
    """Download an archive and install it."""
    _setup_logging(verbose)

    try:
        config = _load_config(config_file)
        storage_root = _choose_root(root, snapshot)
    except OperationCancelled:
        console.print("[yellow]Cancelled.[/yellow]")
        raise typer.Exit(1)
    except AssetError as e:
        console.print(f"[red]Error opening root:[/red] {e}")
        raise typer.Exit(1)

    installer = ArchiveInstaller(config=config, handoff=BrowserHandoff(downloads or config.downloads_dir))

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console
    ) as progress:
        task = progress.add_task("Starting...", total=None)
        outcome = installer.install(
            url, storage_root, kind,
            progress=lambda label: progress.update(task, description=label)
        )

    if isinstance(outcome, Failed):
        console.print(f"[red]✗ Installation failed:[/red] {outcome.reason}")
        if outcome.files:
            console.print(f"[dim]{len(outcome.files)} files were written before the failure[/dim]")
        raise typer.Exit(1)

    if isinstance(outcome, DownloadHandoff):
        console.print("[yellow]Archive handed off for manual install[/yellow]")
        if outcome.archive_name:
            console.print(f"  Saved as: {outcome.archive_name}")
        if outcome.guessed_path:
            console.print(f"  Expected path: [cyan]{outcome.guessed_path}[/cyan]")
        return

    console.print(f"[green]✓[/green] Installed {len(outcome.files)} files")
    console.print(f"  Registered: [cyan]{outcome.path}[/cyan]")

    if activate and kind is AssetKind.SCREENPACK and isinstance(outcome, WrittenPath):
        _activate_motif(engine_root or (root.parent if root else Path(".")), outcome.path, config, downloads)


@app.command()
def motif(
    root: Path = typer.Argument(..., help="Engine directory holding save/config.json"),
    motif_path: str = typer.Argument(..., help="Motif path, e.g. data/mymotif/system.def"),
    snapshot: bool = typer.Option(False, "--snapshot", help="Treat the root as read-only"),
    downloads: Optional[Path] = typer.Option(None, "--downloads", help="Where the config is saved when it cannot be written"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file path"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging")
):
    """Activate a screenpack in the engine config."""
    _setup_logging(verbose)
    config = _load_config(config_file)
    _activate_motif(root, motif_path, config, downloads, snapshot=snapshot)


def _activate_motif(root: Path, motif_path: str, config: AssetConfig,
                    downloads: Optional[Path], snapshot: bool = False) -> None:
    """Write the motif into the engine config, or save a copy to hand over."""
    try:
        engine_root = open_root(root, snapshot=snapshot)
        set_active_motif(engine_root, motif_path, config)
        console.print(f"[green]✓[/green] Activated motif {motif_path}")
        return
    except CapabilityDenied as e:
        console.print(f"[yellow]Cannot write engine config ({e.reason}), saving a copy instead[/yellow]")
        existing = read_engine_config(engine_root, config)
    except AssetError as e:
        console.print(f"[red]Error activating motif:[/red] {e}")
        raise typer.Exit(1)

    target = Path(downloads or config.downloads_dir) / "config.json"
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(json.dumps(build_motif_record(motif_path, existing), indent=2))
    console.print(f"[green]✓[/green] Saved config with motif {motif_path} to {target}")


@app.command()
def config(
    show: bool = typer.Option(False, "--show", help="Show current configuration"),
    validate_config: bool = typer.Option(False, "--validate", help="Validate configuration file"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file path"),
    env_vars: bool = typer.Option(False, "--env-vars", help="Show available environment variables")
):
    """Manage toolkit configuration."""
    if env_vars:
        _display_env_vars()
        return

    if not (show or validate_config):
        console.print("Use --show to display configuration, --validate to check it, or --env-vars to see environment variables.")
        return

    config = _load_config(config_file)

    if show:
        _display_config(config)

    if validate_config:
        errors = config.validate()
        if errors:
            console.print("[red]Configuration validation errors:[/red]")
            for error in errors:
                console.print(f"  • {error}")
            raise typer.Exit(1)
        console.print("[green]✓ Configuration is valid[/green]")


@app.command()
def version():
    """Show toolkit version information."""
    console.print("[bold]IKEMEN asset toolkit[/bold]")
    console.print(f"Version: {__version__}")
    console.print("Python: " + sys.version.split()[0])

    deps_status = []
    for name in ("Pillow", "numpy", "requests", "typer", "rich"):
        try:
            deps_status.append((name, metadata.version(name), "✓"))
        except metadata.PackageNotFoundError:
            deps_status.append((name, "Not installed", "✗"))

    console.print("\n[bold]Dependencies:[/bold]")
    table = Table(show_header=False)
    table.add_column("Status", width=3)
    table.add_column("Package", style="cyan")
    table.add_column("Version", style="green")

    for name, dep_version, status in deps_status:
        color = "green" if status == "✓" else "red"
        table.add_row(f"[{color}]{status}[/{color}]", name, dep_version)

    console.print(table)


def _load_config(config_file: Optional[Path]) -> AssetConfig:
    """Load configuration, exiting with a message when a file or override is malformed."""
    try:
        return _read_config(config_file)
    except (OSError, ValueError) as e:
        console.print(f"[red]Error loading configuration:[/red] {e}")
        raise typer.Exit(1)


def _read_config(config_file: Optional[Path]) -> AssetConfig:
    """Load configuration from file or use defaults with environment variable support."""
    config = None

    if config_file:
        if not config_file.exists():
            console.print(f"[red]Configuration file not found:[/red] {config_file}")
            raise typer.Exit(1)
        config = AssetConfig.from_file(config_file)
        console.print(f"[dim]Using configuration: {config_file}[/dim]")
    else:
        # Try to find default config files
        default_configs = [
            Path("ikemen_assets.toml"),
            Path("ikemen_assets.json"),
            Path("scripts/ikemen_assets.toml"),
            Path("scripts/ikemen_assets.json")
        ]

        for config_path in default_configs:
            if config_path.exists():
                console.print(f"[dim]Using configuration: {config_path}[/dim]")
                config = AssetConfig.from_file(config_path)
                break

        if config is None:
            config = AssetConfig()

    # Apply environment variable overrides
    config = AssetConfig._apply_env_overrides(config)

    env_vars_used = [key for key in os.environ if key.startswith('IKEMEN_ASSETS_')]
    if env_vars_used:
        console.print(f"[dim]Environment overrides applied: {len(env_vars_used)} variables[/dim]")

    return config


def _display_config(config: AssetConfig) -> None:
    """Display configuration in a formatted table."""
    table = Table(title="Asset Toolkit Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Definition Extension", config.definition_extension)
    table.add_row("Motif Filename", config.motif_filename)
    table.add_row("Reserved Definitions", ", ".join(config.reserved_definitions))
    table.add_row("Stages Prefix", config.stages_prefix)
    table.add_row("Data Prefix", config.data_prefix)
    table.add_row("Portrait", f"{config.portrait_group},{config.portrait_index} "
                              f"(fallback {config.portrait_group},{config.portrait_fallback_index})")
    table.add_row("Max Subfiles", str(config.max_subfiles))
    table.add_row("Max Image Dimension", str(config.max_image_dimension))
    table.add_row("User Agent", config.user_agent)
    table.add_row("Download Timeout", "none" if config.download_timeout is None else f"{config.download_timeout}s")
    table.add_row("Downloads Directory", config.downloads_dir)
    table.add_row("Engine Config", config.engine_config_path)

    console.print(table)


def _display_env_vars() -> None:
    """Display available environment variables for configuration."""
    table = Table(title="Asset Toolkit Environment Variables")
    table.add_column("Environment Variable", style="cyan", no_wrap=True)
    table.add_column("Description", style="white")
    table.add_column("Example", style="green")

    env_vars = [
        ("IKEMEN_ASSETS_DEFINITION_EXTENSION", "Definition file extension", ".def"),
        ("IKEMEN_ASSETS_RESERVED_DEFINITIONS", "Comma-separated reserved file names", "intro.def,ending.def"),
        ("IKEMEN_ASSETS_PORTRAIT_GROUP", "Sprite group holding portraits", "9000"),
        ("IKEMEN_ASSETS_MAX_SUBFILES", "Subfile traversal limit", "3000"),
        ("IKEMEN_ASSETS_MAX_IMAGE_DIMENSION", "Largest accepted sprite side", "2000"),
        ("IKEMEN_ASSETS_USER_AGENT", "User agent for downloads", "IKEMEN-Assets/0.1"),
        ("IKEMEN_ASSETS_DOWNLOAD_TIMEOUT", "Download timeout in seconds", "30"),
        ("IKEMEN_ASSETS_DOWNLOADS_DIR", "Where handed-off archives are saved", "downloads"),
        ("IKEMEN_ASSETS_ENGINE_CONFIG", "Engine config path inside the engine root", "save/config.json"),
    ]

    for var_name, description, example in env_vars:
        table.add_row(var_name, description, example)

    console.print(table)
    console.print("\n[dim]Set these environment variables to override configuration file settings.[/dim]")
    console.print("[dim]Example: export IKEMEN_ASSETS_DOWNLOAD_TIMEOUT=30[/dim]")


if __name__ == "__main__":
    app()
