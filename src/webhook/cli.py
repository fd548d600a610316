from __future__ import annotations

import json
import logging
import random
from pathlib import Path
from typing import Any, Dict, Optional

import typer
import uvicorn
import yaml

from src.admission.models import PostureConflict
from src.admission.policy import evaluate
from src.admission.view import ViewDecodeError, pod_view_from_manifest
from src.common.jsonpatch_guard import PatchError, apply_patches, patch_document

from .server import create_app
from .settings import WebhookSettings, normalise_log_level

app = typer.Typer(help="Pod security defaults admission webhook.")

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, help="Interface to bind (default: WEBHOOK_HOST)."),
    port: Optional[int] = typer.Option(None, help="Port to bind (default: WEBHOOK_PORT)."),
    tls_cert: Optional[Path] = typer.Option(None, "--tls-cert", help="PEM certificate served to the API server."),
    tls_key: Optional[Path] = typer.Option(None, "--tls-key", help="PEM private key for --tls-cert."),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level (default: WEBHOOK_LOG_LEVEL)."),
) -> None:
    try:
        settings = WebhookSettings.from_env()
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    if host is not None:
        settings.host = host
    if port is not None:
        settings.port = port
    if tls_cert is not None:
        settings.tls_cert = str(tls_cert)
    if tls_key is not None:
        settings.tls_key = str(tls_key)
    if log_level is not None:
        try:
            settings.log_level = normalise_log_level(log_level)
        except ValueError as exc:
            raise typer.BadParameter(str(exc)) from exc
    if bool(settings.tls_cert) != bool(settings.tls_key):
        raise typer.BadParameter("--tls-cert and --tls-key must be given together")

    configure_logging(settings.log_level)
    logger.info(
        "serving on %s:%d (tls=%s, ignored namespaces=%s)",
        settings.host,
        settings.port,
        settings.tls_enabled,
        ",".join(settings.ignored_namespaces) or "-",
    )
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        ssl_certfile=settings.tls_cert if settings.tls_enabled else None,
        ssl_keyfile=settings.tls_key if settings.tls_enabled else None,
        log_level=settings.log_level,
    )


@app.command("evaluate")
def evaluate_manifest(
    manifest: Path = typer.Argument(..., help="Pod manifest (YAML or JSON)."),
    apply: bool = typer.Option(False, "--apply", help="Print the patched manifest instead of the patch."),
    seed: Optional[int] = typer.Option(None, "--seed", help="Seed for the synthesized runAsUser."),
) -> None:
    """Evaluate a Pod manifest offline and print the resulting JSON patch."""

    pod = _load_manifest(manifest)
    rng = random.Random(seed) if seed is not None else None
    try:
        patches = evaluate(pod_view_from_manifest(pod), rng)
    except (PostureConflict, ViewDecodeError) as exc:
        typer.echo(f"denied: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    if not apply:
        typer.echo(json.dumps(patch_document(patches), indent=2))
        return
    try:
        patched = apply_patches(pod, patches)
    except PatchError as exc:
        typer.echo(f"failed to apply patch: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    typer.echo(yaml.safe_dump(patched, sort_keys=False), nl=False)


def _load_manifest(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise typer.BadParameter(f"Failed to read manifest {path}: {exc}") from exc
    try:
        documents = [doc for doc in yaml.safe_load_all(text) if doc is not None]
    except yaml.YAMLError as exc:
        raise typer.BadParameter(f"Manifest {path} is not valid YAML: {exc}") from exc
    if not documents:
        raise typer.BadParameter(f"Manifest {path} is empty")
    pod = documents[0]
    if not isinstance(pod, dict):
        raise typer.BadParameter(f"Manifest {path} must contain a mapping")
    if pod.get("kind", "Pod") != "Pod":
        raise typer.BadParameter(f"Manifest {path} is a {pod.get('kind')}, expected a Pod")
    return pod


if __name__ == "__main__":  # pragma: no cover
    app()
