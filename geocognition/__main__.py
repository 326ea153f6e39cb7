"""Command line entry point for the GeoCognition pipeline."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path

from . import AnalysisRequest, GeolocationPipeline, Language, SettingsStore, TrustedLocation
from .config import AppConfig, ConfigurationError
from .io.images import UnsupportedImageError, detect_mime_type, read_gps_location
from .models.base import ErrorCode, PipelinePhase
from .models.registry import BackendRegistry
from .utils.paths import collect_images

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="GeoCognition image geolocation")
    parser.add_argument(
        "--input",
        "-i",
        type=Path,
        help="Image file or directory of images to analyse.",
    )
    parser.add_argument(
        "--language",
        "-l",
        choices=[language.value for language in Language],
        help="Language of the generated report.",
    )
    parser.add_argument("--lat", type=float, help="Trusted latitude of the photo.")
    parser.add_argument("--lon", type=float, help="Trusted longitude of the photo.")
    parser.add_argument(
        "--trust-exif-gps",
        action="store_true",
        help="Treat GPS coordinates embedded in the image EXIF data as ground truth.",
    )
    parser.add_argument(
        "--recursive",
        action="store_true",
        help="Descend into sub-directories when --input is a directory.",
    )
    parser.add_argument("--model", help="Override the configured remote model identifier.")
    parser.add_argument("--config", type=Path, help="Settings file to use instead of the default.")
    parser.add_argument(
        "--list-backends",
        action="store_true",
        help="Print available inference backends and exit.",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Log progress to stderr.")
    return parser


def _print_json(payload: object) -> None:
    json.dump(payload, sys.stdout, indent=2, ensure_ascii=False)
    sys.stdout.write("\n")


def _load_config(args: argparse.Namespace) -> AppConfig:
    store = SettingsStore(path=args.config) if args.config else SettingsStore()
    config = store.load()
    if args.model:
        config = config.model_copy(update={"remote_model": args.model})
    return config


def _build_request(
    path: Path,
    args: argparse.Namespace,
    config: AppConfig,
    trusted: TrustedLocation | None = None,
) -> AnalysisRequest:
    if trusted is None and args.trust_exif_gps:
        trusted = read_gps_location(path)
    return AnalysisRequest(
        image=path.read_bytes(),
        mime_type=detect_mime_type(path),
        language=args.language or config.language,
        trusted_location=trusted,
    )


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(
            level=logging.INFO,
            format="[%(asctime)s] %(levelname)s in %(name)s: %(message)s",
        )

    if args.list_backends:
        payload = []
        for info in BackendRegistry.list_backend_infos():
            data = asdict(info)
            data["capabilities"] = [cap.value for cap in info.capabilities]
            data["tags"] = list(info.tags)
            payload.append(data)
        _print_json(payload)
        return 0

    if args.input is None:
        parser.error("--input is required.")
    if (args.lat is None) != (args.lon is None):
        parser.error("--lat and --lon must be given together.")
    trusted: TrustedLocation | None = None
    if args.lat is not None:
        try:
            trusted = TrustedLocation(latitude=args.lat, longitude=args.lon)
        except ValueError as exc:
            parser.error(str(exc))

    config = _load_config(args)
    try:
        pipeline = GeolocationPipeline(config)
    except ConfigurationError as exc:
        parser.error(str(exc))

    results: list[dict[str, object]] = []
    requests: list[AnalysisRequest] = []
    paths: list[Path] = []
    for path in collect_images(args.input, recursive=args.recursive):
        try:
            requests.append(_build_request(path, args, config, trusted))
            paths.append(path)
        except (UnsupportedImageError, ValueError, OSError) as exc:
            logger.warning("Skipping %s: %s", path, exc)
            results.append(
                {
                    "path": str(path),
                    "report": None,
                    "error": ErrorCode.GENERIC_ERROR.value,
                    "message": str(exc),
                }
            )

    def _on_phase(index: int, phase: PipelinePhase) -> None:
        logger.info("%s: %s", paths[index].name, phase.value)

    for path, outcome in zip(paths, pipeline.analyze_many(requests, on_phase=_on_phase)):
        results.append(
            {
                "path": str(path),
                "report": outcome.report.to_payload() if outcome.report else None,
                "error": outcome.error.code.value if outcome.error else None,
                "message": str(outcome.error) if outcome.error else None,
            }
        )

    results.sort(key=lambda item: str(item["path"]))
    _print_json(results)
    return 1 if any(item["error"] for item in results) else 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
