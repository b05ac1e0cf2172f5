"""
CLI entrypoint for kgs-poller.
"""
import sys
import typer
import asyncio
from loguru import logger

from kgs_poller.client.session import PollingSession
from kgs_poller.client.visualizer import Visualizer
from kgs_poller.shared.config import settings

app = typer.Typer(help="Long-polling client for the KGS access API")

def configure_logging(level: str, log_file: str | None) -> None:
    """Route the library's log records to a file, or to stderr when no dashboard is drawn."""
    logger.remove()
    if log_file:
        logger.add(log_file, level=level.upper())
    else:
        logger.add(sys.stderr, level=level.upper())
    logger.enable("kgs_poller")

@app.command()
def server(port: int = typer.Option(settings.PORT, help="Port to serve the emulator on")):
    """Start the access API emulator using Uvicorn."""
    import uvicorn
    configure_logging(settings.LOG_LEVEL, None)
    typer.echo(f"Starting access API emulator on port {port}...")
    uvicorn.run("kgs_poller.server.main:app", host="0.0.0.0", port=port, log_level=settings.LOG_LEVEL.lower())

@app.command()
def watch(
    name: str = typer.Option(..., help="Account name to log in with"),
    password: str = typer.Option(..., prompt=True, hide_input=True, help="Account password"),
    url: str = typer.Option(settings.ACCESS_URL, help="Access API endpoint"),
    duration: float = typer.Option(60.0, help="Seconds to watch before logging out"),
    locale: str = typer.Option("en_US", help="Locale sent with the LOGIN message"),
    log_file: str | None = typer.Option(None, help="Write debug logs here instead of hiding them"),
    log_level: str = typer.Option(settings.LOG_LEVEL, help="Log level for --log-file"),
):
    """Log in and show inbound messages on the rich dashboard."""
    if log_file:
        configure_logging(log_level, log_file)

    login = {"type": "LOGIN", "name": name, "password": password, "locale": locale}

    async def main():
        async with PollingSession(url=url) as session:
            visualizer = Visualizer(session)
            await visualizer.run(login, duration)
            return visualizer.last_error

    try:
        error = asyncio.run(main())
    except KeyboardInterrupt:
        return
    if error is not None:
        typer.echo(f"Polling stopped: {error}", err=True)
        raise typer.Exit(1)

if __name__ == "__main__":
    app()
