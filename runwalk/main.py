from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from runwalk.config import AppConfig, load_config
from runwalk.core.classifier import ClassifierAdapter
from runwalk.core.errors import PipelineError
from runwalk.core.events import ActivityChange
from runwalk.core.features import FEATURE_COUNT
from runwalk.data.replay import ReplayRunner, load_recording
from runwalk.utils.logging import setup_logging


app = typer.Typer(add_completion=False)


def _resolve_assets(cfg: AppConfig, model: Optional[Path], scaler: Optional[Path]) -> tuple[Path, Path]:
    return (model or cfg.assets.model_path, scaler or cfg.assets.scaler_path)


@app.command("check-assets")
def check_assets(
    model: Optional[Path] = typer.Option(None, help="Run/walk model (.tflite or .onnx)"),
    scaler: Optional[Path] = typer.Option(None, help="Scaler parameters (JSON or YAML)"),
    config: Optional[Path] = typer.Option(None, help="Optional config.yaml"),
) -> None:
    """Load model and scaler and report whether they fit the feature layout."""
    cfg = load_config(config)
    setup_logging(cfg.env.LOG_LEVEL)
    model_path, scaler_path = _resolve_assets(cfg, model, scaler)

    classifier = ClassifierAdapter()
    try:
        classifier.initialize(model_path, scaler_path)
    except PipelineError as exc:
        typer.echo(f"asset check failed: {exc}", err=True)
        raise typer.Exit(code=1)
    n = classifier.normalizer.size
    typer.echo(f"model: {model_path}")
    typer.echo(f"scaler: {scaler_path} ({n} features)")
    if n != FEATURE_COUNT:
        typer.echo(f"note: rolling-window features have {FEATURE_COUNT} values; this scaler only fits latest_sample mode")


@app.command()
def replay(
    recording: Path = typer.Argument(..., help="CSV with acceleration_x..gyro_z columns"),
    model: Optional[Path] = typer.Option(None, help="Run/walk model (.tflite or .onnx)"),
    scaler: Optional[Path] = typer.Option(None, help="Scaler parameters (JSON or YAML)"),
    config: Optional[Path] = typer.Option(None, help="Optional config.yaml"),
    log_level: str = typer.Option("WARNING"),
) -> None:
    """Replay a recorded session through the pipeline on a simulated clock.

    Uses the same windowing, scaling, classifier and state machine as live
    tracking; one prediction per tick period of recorded samples.
    """
    cfg = load_config(config)
    setup_logging(log_level)
    model_path, scaler_path = _resolve_assets(cfg, model, scaler)

    classifier = ClassifierAdapter()
    try:
        classifier.initialize(model_path, scaler_path)
        samples = load_recording(recording)
    except PipelineError as exc:
        typer.echo(f"cannot replay: {exc}", err=True)
        raise typer.Exit(code=1)

    runner = ReplayRunner(cfg, classifier)

    def echo_change(change: ActivityChange) -> None:
        typer.echo(
            f"t={change.timestamp:8.2f}s {change.old_label.value} -> {change.new_label.value} "
            f"(confidence {change.confidence:.1%})"
        )

    runner.notifier.subscribe_changes(echo_change)
    result = runner.run(samples)
    st = result.stats
    typer.echo(
        f"samples={len(samples)} predictions={st.total_samples} degraded={st.degraded} "
        f"running={st.running_percentage:.1f}% walking={st.walking_percentage:.1f}% "
        f"dominant={st.dominant_activity.value}"
    )


if __name__ == "__main__":
    app()
