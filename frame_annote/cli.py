# frame_annote/cli.py
"""Console script for frame_annote."""
from __future__ import annotations

import logging
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from . import __version__
from .config import ClientConfig, ServerConfig
from .domain import Video
from .store import AnnotationStore

app = typer.Typer(help="Capture, annotate and store video frames.")
console = Console()

SAMPLE_VIDEO = Video(
    id="sample-video-1",
    title="Sample Video - Big Buck Bunny",
    url="https://commondatastorage.googleapis.com/gtv-videos-bucket/sample/BigBuckBunny.mp4",
    duration_ms=596458,
)


def setup_logging(verbose: bool = False):
    """Configure logging with Rich handler."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_time=True)],
    )


@app.command()
def version():
    """Display version information."""
    typer.echo(f"frame_annote v{__version__}")
    raise typer.Exit()


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port"),
    data_dir: Optional[str] = typer.Option(None, "--data-dir", "-d", help="Directory for db.json and storage/"),
    api_prefix: Optional[str] = typer.Option(None, "--api-prefix", help="Prefix for JSON routes, e.g. /api"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Run the annotation HTTP server."""
    setup_logging(verbose)
    from .server import run_server

    cfg = ServerConfig.from_env().with_overrides(
        host=host, port=port, data_dir=data_dir, api_prefix=api_prefix,
    )
    run_server(cfg)


@app.command()
def seed(
    data_dir: Optional[str] = typer.Option(None, "--data-dir", "-d", help="Directory for db.json and storage/"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Register the sample video so the desktop client has something to open."""
    setup_logging(verbose)
    logger = logging.getLogger(__name__)

    cfg = ServerConfig.from_env().with_overrides(data_dir=data_dir)
    store = AnnotationStore(cfg.data_dir, url_prefix=cfg.storage_url_prefix)
    video = store.add_video(Video(**SAMPLE_VIDEO.to_dict()))
    logger.info(f"Seeded video {video.id}: {video.title}")
    console.print(f"[green]Database seeded:[/green] {store.db_path}")


@app.command()
def gui(
    api_url: Optional[str] = typer.Option(None, "--api-url", help="Annotation server base URL"),
    video: Optional[str] = typer.Option(None, "--video", help="Local video file or http(s) URL to open"),
    video_id: Optional[str] = typer.Option(None, "--video-id", help="Video id annotations are stored under"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Open the desktop player and annotation editor."""
    setup_logging(verbose)
    from .app import run_app

    cfg = ClientConfig.from_env()
    if api_url:
        cfg.api_url = api_url.rstrip("/")
    raise typer.Exit(run_app(cfg, video=video, video_id=video_id))


if __name__ == "__main__":
    app()
