# Domain Review Package
from .models import QualityScore, ReviewState, ReviewStats
from .ports import KeyValueStore, ProgressTracker

__all__ = ["ReviewState", "ReviewStats", "QualityScore", "KeyValueStore", "ProgressTracker"]
