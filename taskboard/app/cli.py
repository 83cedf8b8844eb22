import json
from typing import Any, Optional

import typer

from taskboard.services.realtime.factory import build_realtime_services


app = typer.Typer(help="Task board real-time update inspection CLI")


def _echo(data: Any) -> None:
    typer.echo(json.dumps(data, ensure_ascii=False, indent=2))


@app.command()
def updates(board_id: int, since: Optional[int] = typer.Option(None, "--since", min=0, help="Cursor: last consumed event id")):
    """Print the events a polling client would receive for BOARD_ID."""
    services = build_realtime_services()
    try:
        _echo(services.event_log.fetch(board_id, since).to_wire())
    finally:
        services.close()


@app.command()
def snapshot(board_id: int):
    """Print the cached snapshot of BOARD_ID."""
    services = build_realtime_services()
    try:
        data = services.snapshots.get(board_id)
    finally:
        services.close()
    if data is None:
        typer.echo(f"no snapshot for board {board_id}", err=True)
        raise typer.Exit(code=1)
    _echo(data)


@app.command()
def status(board_id: Optional[int] = typer.Argument(None)):
    """Show the Redis connection state and, optionally, BOARD_ID's log size and cursor."""
    services = build_realtime_services()
    try:
        services.connection.get_client()
        info = services.connection.describe()
        if board_id is not None:
            info["board"] = {
                "boardId": board_id,
                "storedEvents": services.event_log.length(board_id),
                "latestId": services.counter.current(board_id),
            }
    finally:
        services.close()
    _echo(info)


if __name__ == "__main__":
    app()
