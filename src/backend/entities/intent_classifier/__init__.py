"""Intent Classifier package for labelling user turns."""

from .classifier import IntentClassifier, parse_intent

__all__ = ["IntentClassifier", "parse_intent"]
