import pytest

from dental_classifier.client.classifier_options import ClassifierOptions


@pytest.fixture
def options() -> ClassifierOptions:
    return ClassifierOptions(
        base_url="https://classifier.test",
        timeout=2.0,
        max_attempts=3,
        initial_delay=0.01,
        max_delay=0.04,
        progress_interval=0.005,
    )
