"""Command line entry point: classify one image and print the predictions."""

import argparse
import asyncio
import logging
import sys
from dataclasses import replace
from pathlib import Path

from dental_classifier.client.classifier_options import ClassifierOptions
from dental_classifier.client.models import (
    ControllerState,
    ImageCandidate,
    SubmissionSnapshot,
)
from dental_classifier.client.submission_controller import (
    SubmissionController,
)


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="dental-classifier",
        description="Classify a dental image with the remote service.",
    )
    _ = parser.add_argument("image", type=Path, help="JPEG or PNG image")
    _ = parser.add_argument("--base-url", help="Classification service URL")
    _ = parser.add_argument(
        "--timeout", type=float, help="Seconds allowed per attempt"
    )
    _ = parser.add_argument(
        "--max-attempts", type=int, help="Attempts per submission"
    )
    _ = parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    return parser.parse_args(argv)


def _log_snapshot(logger: logging.Logger, snapshot: SubmissionSnapshot) -> None:
    logger.debug(
        "%s phase=%s attempt=%d progress=%d%%",
        snapshot.state.value,
        snapshot.phase.value if snapshot.phase else "-",
        snapshot.attempt_number,
        snapshot.progress_percent,
    )


async def run(args: argparse.Namespace) -> int:
    """Classify ``args.image`` and log the outcome."""
    logger = logging.getLogger("dental_classifier")
    options = ClassifierOptions.from_env()
    overrides = {
        "base_url": args.base_url,
        "timeout": args.timeout,
        "max_attempts": args.max_attempts,
    }
    options = replace(
        options, **{k: v for k, v in overrides.items() if v is not None}
    )

    async with SubmissionController(options) as controller:
        _ = controller.subscribe(lambda s: _log_snapshot(logger, s))

        result = await controller.select_file(
            ImageCandidate.from_path(args.image)
        )
        if not result.accepted:
            logger.error("%s", controller.snapshot.error_message)
            return 1

        logger.info("Submitting %s to %s", args.image, options.classify_url)
        snapshot = await controller.submit()

    if snapshot.state is not ControllerState.SUCCEEDED or not snapshot.result:
        logger.error("%s", snapshot.error_message)
        return 1

    for prediction in snapshot.result:
        logger.info(
            "%-20s %7s  (%s)",
            prediction.class_name,
            prediction.confidence_percent,
            prediction.confidence_level.value,
        )
    return 0


def main(argv: list[str] | None = None) -> int:
    """Run the command line interface."""
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s.%(msecs)03d %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
