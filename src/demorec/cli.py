from __future__ import annotations

from collections import Counter
from pathlib import Path

import typer

from .config import DEFAULT_OUTPUT_DIR, SessionConfig, resolve_output_dir
from .equipment import WEAPON_NONE, WeaponId
from .events import EventStreamError, iter_events_file
from .log import configure_logging
from .rec.codec import RecCodecError, load_rec
from .session import Session
from .storage import OutputLayout

app = typer.Typer(add_completion=False)


def _weapon_label(value: int) -> str:
    try:
        return WeaponId(int(value)).name.lower()
    except ValueError:
        return str(int(value))


@app.command("encode")
def cmd_encode(
    events_file: Path = typer.Argument(..., help="decoded match events (.jsonl, optionally gzipped)"),
    output_dir: Path | None = typer.Option(
        None,
        "--output-dir",
        help=f"output root (default: $DEMOREC_OUTPUT_DIR or ./{DEFAULT_OUTPUT_DIR})",
    ),
    tick_rate: float | None = typer.Option(
        None,
        "--tick-rate",
        min=1.0,
        help="nominal tick rate when the stream has no match_start event (default: 128)",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="debug logging"),
) -> None:
    """Rebuild per-round .rec recordings and economy data from an event stream."""
    configure_logging(verbose=verbose)
    if not events_file.is_file():
        typer.echo(f"events file not found: {events_file}", err=True)
        raise typer.Exit(code=1)

    root = output_dir if output_dir is not None else resolve_output_dir()
    config = SessionConfig(output_dir=root)
    if tick_rate is not None:
        config = config.with_tick_rate(tick_rate)
    layout = OutputLayout.for_stream(config.output_dir, events_file)
    session = Session(layout, config)
    try:
        summary = session.run(iter_events_file(events_file))
    except EventStreamError as exc:
        typer.echo(f"invalid event stream {events_file}: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    typer.echo(
        f"rounds={summary.rounds_completed} recordings={summary.recordings_written} "
        f"failures={summary.write_failures} output={summary.output_root}"
    )
    if summary.frame_rate is not None:
        report = summary.frame_rate
        typer.echo(
            f"frame_rate={report.frame_rate:.1f} tick_rate={report.tick_rate:.1f} "
            f"interpolated={'yes' if report.interpolate else 'no'}"
        )


@app.command("inspect")
def cmd_inspect(
    rec_file: Path = typer.Argument(..., help=".rec file path"),
) -> None:
    """Print header fields and frame statistics of a .rec file."""
    try:
        recording = load_rec(rec_file)
    except FileNotFoundError:
        typer.echo(f"rec file not found: {rec_file}", err=True)
        raise typer.Exit(code=1)
    except RecCodecError as exc:
        typer.echo(f"invalid rec file {rec_file}: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    header = recording.header
    frames = recording.frames
    pos = header.initial_position
    ang = header.initial_angles
    typer.echo(f"name={header.name} version={header.version} timestamp={header.timestamp}")
    typer.echo(f"initial_position=({pos.x:.2f}, {pos.y:.2f}, {pos.z:.2f}) initial_angles=({ang.pitch:.2f}, {ang.yaw:.2f})")
    keyframes = sum(1 for frame in frames if frame.fields)
    switches = [frame.weapon for frame in frames if frame.weapon != WEAPON_NONE]
    typer.echo(f"ticks={len(frames)} keyframes={keyframes} weapon_switches={len(switches)}")
    if switches:
        counts = Counter(_weapon_label(value) for value in switches)
        typer.echo("weapons: " + ", ".join(f"{name}={count}" for name, count in sorted(counts.items())))


def main(argv: list[str] | None = None) -> None:
    app(prog_name="demorec", args=argv)


if __name__ == "__main__":
    main()
