"""Single point of truth for the version of the dental_classifier package."""

import importlib.metadata

__version__ = importlib.metadata.version("dental-classifier-client")
