"""Command-line interface for yin_tuner."""

import sys
from typing import Any, Dict, Optional

import click

from ..logging_config import get_logger, setup_logging
from ..core.config import ConfigManager
from ..core.factory import ComponentFactory
from ..services.audio_providers import AudioInputError, load_sounddevice
from ..ui.console import ConsoleDisplay, render_reading

logger = get_logger(__name__)


def _tuning_overrides(reference: Optional[float], flats: bool) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    if reference is not None:
        overrides["reference_frequency"] = reference
    if flats:
        overrides["use_flats"] = True
    return overrides


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging.")
@click.option(
    "--config-dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Directory holding the JSON configuration (default: ~/.config/yin_tuner).",
)
@click.pass_context
def main(ctx: click.Context, debug: bool, config_dir: Optional[str]) -> None:
    """yin-tuner - real-time YIN pitch detection and tuning."""
    setup_logging("DEBUG" if debug else None)
    ctx.ensure_object(dict)
    ctx.obj["config_dir"] = config_dir


def _factory(ctx: click.Context) -> ComponentFactory:
    return ComponentFactory(ConfigManager(ctx.obj["config_dir"]))


@main.command()
@click.option("--device", type=int, default=None, help="Audio input device ID.")
@click.option("--sample-rate", type=int, default=None, help="Audio sample rate in Hz.")
@click.option("--frame-size", type=int, default=None, help="Samples per analysis frame.")
@click.option("--reference", type=float, default=None, help="Reference frequency of A4 in Hz.")
@click.option("--flats", is_flag=True, help="Use flat notes instead of sharps.")
@click.option("--duration", type=float, default=None, help="Stop after this many seconds.")
@click.pass_context
def listen(
    ctx: click.Context,
    device: Optional[int],
    sample_rate: Optional[int],
    frame_size: Optional[int],
    reference: Optional[float],
    flats: bool,
    duration: Optional[float],
) -> None:
    """Tune live from the microphone (Ctrl+C to stop)."""
    factory = _factory(ctx)

    audio_overrides: Dict[str, Any] = {}
    if device is not None:
        audio_overrides["device_id"] = device
    if sample_rate is not None:
        audio_overrides["sample_rate"] = sample_rate
    if frame_size is not None:
        audio_overrides["frame_size"] = frame_size

    try:
        frequency_service = factory.create_frequency_service(
            **_tuning_overrides(reference, flats)
        )
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--reference")

    provider = factory.create_live_audio_provider(**audio_overrides)
    session = factory.create_session(provider, frequency_service=frequency_service)

    display = ConsoleDisplay()
    session.events.on_reading(display.update)

    try:
        session.run(duration=duration)
    except AudioInputError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    finally:
        display.close()


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--frame-size", type=int, default=None, help="Samples per analysis frame.")
@click.option("--hop-size", type=int, default=None, help="Samples between frame starts.")
@click.option("--reference", type=float, default=None, help="Reference frequency of A4 in Hz.")
@click.option("--flats", is_flag=True, help="Use flat notes instead of sharps.")
@click.pass_context
def analyze(
    ctx: click.Context,
    file: str,
    frame_size: Optional[int],
    hop_size: Optional[int],
    reference: Optional[float],
    flats: bool,
) -> None:
    """Run the tuner over an audio file, one line per frame."""
    factory = _factory(ctx)

    provider_kwargs: Dict[str, Any] = {"hop_size": hop_size}
    if frame_size is not None:
        provider_kwargs["frame_size"] = frame_size

    try:
        frequency_service = factory.create_frequency_service(
            **_tuning_overrides(reference, flats)
        )
        provider = factory.create_file_audio_provider(file, **provider_kwargs)
    except ValueError as e:
        raise click.BadParameter(str(e))
    except AudioInputError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    session = factory.create_session(provider, frequency_service=frequency_service)
    session.start()

    frames = 0
    notes = 0
    while provider.is_running:
        timestamp = provider.position_seconds
        reading = session.process_frame(timestamp=timestamp)
        if reading is None:
            continue
        frames += 1
        if reading.note is not None:
            notes += 1
        click.echo(f"{timestamp:8.3f}s  {render_reading(reading.note)}")

    session.stop()
    click.echo(f"{frames} frames, {notes} with a note")


@main.command()
def devices() -> None:
    """List audio input devices."""
    try:
        sd = load_sounddevice()
    except OSError as e:
        click.echo(f"Error: audio backend unavailable: {e}", err=True)
        sys.exit(1)

    click.echo("Available audio input devices:")
    click.echo("-" * 70)

    for i, device in enumerate(sd.query_devices()):
        if device["max_input_channels"] > 0:
            click.echo(
                f"{i}: {device['name']} (inputs: {device['max_input_channels']}, "
                f"rate: {device['default_samplerate']}Hz)"
            )

    click.echo(f"Default input device: {sd.default.device[0]}")


if __name__ == "__main__":
    main()
