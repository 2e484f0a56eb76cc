"""Enumerations used across the options journal."""

from enum import Enum


class OptionType(str, Enum):
    CALL = "call"
    PUT = "put"
    NONE = "none"


class BreakoutType(str, Enum):
    """Chart pattern that triggered the entry."""

    VERTICAL = "vertical"      # Momentum breakout
    HORIZONTAL = "horizontal"  # Range breakout
    NONE = "none"


class NiftyRange(str, Enum):
    """Index day classification relative to the previous session's range."""

    INSIDE_DAY = "inside_day"
    OUTSIDE_BULLISH = "outside_bullish"
    OUTSIDE_BEARISH = "outside_bearish"


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    SUCCESS = "success"


class InsightType(str, Enum):
    PERFORMANCE = "performance"
    DISCIPLINE = "discipline"
    MISTAKES = "mistakes"
    TIMING = "timing"
    PSYCHOLOGY = "psychology"
    RISK = "risk"
    BREAKOUT_ANALYSIS = "breakout_analysis"


class TagCategory(str, Enum):
    ENTRY = "entry"
    EXIT = "exit"
    POSITION = "position"
    PSYCHOLOGY = "psychology"
    PLAN = "plan"
    RISK = "risk"
    CUSTOM = "custom"


class ExportFormat(str, Enum):
    CSV = "csv"
    JSON = "json"
