"""Centralized constants for vibedeck.

All magic numbers and storage keys live here so every layer
imports from a single source of truth.
"""

# ---------- Scheduler (SM-2) ----------
DEFAULT_EASE = 2.5
MIN_EASE = 1.3
LAPSE_EASE_PENALTY = 0.2
EASY_EASE_BONUS = 0.15
GOOD_EASE_BONUS = 0.0
FIRST_INTERVAL = 1  # days
SECOND_INTERVAL = 6  # days
LAPSE_INTERVAL = 1  # days
PASSING_QUALITY = 2
MIN_QUALITY = 0
MAX_QUALITY = 3

# ---------- Quality ----------
LOW_TIER_CEILING = 55
MEDIUM_TIER_CEILING = 75
HIGH_QUALITY_THRESHOLD = 72

# ---------- Feedback ----------
MCQ_CORRECT_QUALITY = 3
MCQ_WRONG_QUALITY = 0
SOLVE_KNOWN_QUALITY = 3
SOLVE_NEEDS_WORK_QUALITY = 1

# ---------- Storage keys ----------
REVIEW_DATA_KEY = "spaced-repetition-data"
TOTAL_REVIEWS_KEY = "spaced-repetition-total-reviews"
STREAK_KEY = "spaced-repetition-streak"
SESSION_KEY = "vibe-learning-session-v1"
PROGRESS_KEY = "dsa-prep-progress"

# ---------- Session ----------
ITEM_KINDS = ("flashcard", "mcq", "solve")
CATEGORIES = ("dsa", "hld")
DIFFICULTIES = ("Easy", "Medium", "Hard")
QUALITY_MODES = ("high", "all")
PROBLEM_STATUSES = ("unseen", "attempted", "solved", "mastered")
