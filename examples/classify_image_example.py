#!/usr/bin/env python3
"""Example script driving a SubmissionController the way a UI would."""

import asyncio
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from dental_classifier.client.classifier_options import ClassifierOptions
from dental_classifier.client.models import (
    ControllerState,
    ImageCandidate,
    SubmissionSnapshot,
)
from dental_classifier.client.submission_controller import (
    SubmissionController,
)


def render(logger: logging.Logger, snapshot: SubmissionSnapshot) -> None:
    """Stand in for a rendering layer by logging each snapshot."""
    if snapshot.state is ControllerState.SUBMITTING:
        label = (
            "Starting server..."
            if snapshot.server_starting
            else "Analyzing dental image..."
        )
        logger.info(
            "%s attempt %d, %d%%",
            label,
            snapshot.attempt_number,
            snapshot.progress_percent,
        )
    elif snapshot.error_message:
        logger.warning("Alert: %s", snapshot.error_message)


async def main() -> int:
    """Classify the image named by TEST_IMAGE_PATH."""
    logger = logging.getLogger(__name__)
    load_dotenv()

    image_path = os.getenv("TEST_IMAGE_PATH")
    if not image_path or not Path(image_path).exists():
        logger.error("TEST_IMAGE_PATH must point to a JPEG or PNG image")
        return 1

    options = ClassifierOptions.from_env()
    logger.info("Using %s", options.classify_url)

    async with SubmissionController(options) as controller:
        _ = controller.subscribe(lambda snapshot: render(logger, snapshot))

        result = await controller.select_file(
            ImageCandidate.from_path(image_path)
        )
        if not result.accepted:
            return 1

        snapshot = await controller.submit()

    if snapshot.result is None:
        return 1

    logger.info("Analysis Results")
    for prediction in snapshot.result:
        logger.info(
            "  %s: %s (%s)",
            prediction.class_name,
            prediction.confidence_percent,
            prediction.confidence_level.value,
        )
    return 0


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s.%(msecs)03d %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    sys.exit(asyncio.run(main()))
