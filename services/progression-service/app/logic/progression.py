"""
Progression rules for progression-service

Pure functions only (no state, no clock reads):
- XP and leveling curve
- Energy cost with hunger penalty
- Hunger decay over elapsed time
- Daily streak transition
- Accuracy rate
"""
from typing import Dict, Optional, Tuple
from datetime import date, datetime, timedelta
import logging

from app.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)

# Hard bounds of the player state
MAX_ENERGY = 100
MAX_HUNGER = 100
MAX_REPUTATION = 5


def clamp(value: int, lower: int, upper: int) -> int:
    """Saturate value into [lower, upper]"""
    return max(lower, min(upper, value))


# ============= XP AND LEVELING =============

def calculate_level(xp: int) -> int:
    """
    Calculate level based on total XP

    Formula: level = 1 + (xp // XP_PER_LEVEL)

    Args:
        xp: Total XP

    Returns:
        Current level
    """
    if xp < 0:
        return 1

    return 1 + (xp // settings.XP_PER_LEVEL)


def xp_for_level(level: int) -> int:
    """
    Calculate total XP required to reach a level

    Args:
        level: Target level

    Returns:
        Total XP required
    """
    if level <= 1:
        return 0

    return (level - 1) * settings.XP_PER_LEVEL


def xp_progress_in_level(xp: int) -> Dict[str, int]:
    """
    Calculate progress within current level

    Args:
        xp: Total XP

    Returns:
        Dict with current_level, xp_in_level, xp_needed_for_next
    """
    current_level = calculate_level(xp)
    xp_in_level = xp - xp_for_level(current_level)

    return {
        'current_level': current_level,
        'xp_in_level': xp_in_level,
        'xp_needed_for_next': settings.XP_PER_LEVEL - xp_in_level,
        'xp_per_level': settings.XP_PER_LEVEL,
    }


# ============= ENERGY AND HUNGER =============

def is_hungry(hunger: int) -> bool:
    """Hunger above the penalty threshold (also the UI red-bar threshold)"""
    return hunger > settings.HUNGER_PENALTY_THRESHOLD


def energy_cost(base_cost: int, hunger: int) -> int:
    """
    Effective energy cost of an activity

    Formula: base_cost * (HUNGER_COST_MULTIPLIER if hunger > threshold else 1)

    Examples:
        >>> energy_cost(10, 75)
        20
        >>> energy_cost(10, 70)
        10
    """
    multiplier = settings.HUNGER_COST_MULTIPLIER if is_hungry(hunger) else 1
    return base_cost * multiplier


def hunger_increase(elapsed_minutes: float) -> int:
    """
    Hunger accumulated after elapsed_minutes

    Only full intervals count: 5 * floor(elapsed / 30) with default settings.
    Negative durations (clock skew) accumulate nothing.
    """
    if elapsed_minutes <= 0:
        return 0
    intervals = int(elapsed_minutes // settings.HUNGER_INTERVAL_MINUTES)
    return intervals * settings.HUNGER_PER_INTERVAL


def next_rest_at(last_rest_at: Optional[datetime], now: datetime) -> Optional[datetime]:
    """When the rest cooldown ends, None if resting is allowed at `now`"""
    if last_rest_at is None:
        return None
    available_at = last_rest_at + timedelta(minutes=settings.REST_COOLDOWN_MINUTES)
    return available_at if available_at > now else None


# ============= STREAK =============

def calculate_streak(
    current_streak: int,
    last_played_on: Optional[date],
    today: date,
    played_today: bool = False
) -> Tuple[int, bool]:
    """
    Calculate new streak value for activity on `today`

    Args:
        current_streak: Streak before the activity
        last_played_on: Last day the player played (None = never)
        today: Current day, supplied by the caller's clock
        played_today: Caller already knows the player played today

    Returns:
        Tuple of (new_streak, streak_changed)

    Logic:
        - Never played: start at 1 (even if flagged as played today)
        - Already played today: no change
        - Last played yesterday: streak + 1
        - Gap of 2+ days: reset to 1
    """
    if last_played_on is None:
        logger.info("First activity ever, starting streak at 1")
        return 1, True

    if played_today or last_played_on == today:
        logger.debug(f"Activity on same day {today}, streak maintained at {current_streak}")
        return current_streak, False

    if today - last_played_on == timedelta(days=1):
        new_streak = current_streak + 1
        logger.info(f"Consecutive day activity: streak incremented from {current_streak} to {new_streak}")
        return new_streak, True

    logger.info(f"Streak broken: last activity {last_played_on}, current day {today}")
    return 1, True


# ============= STATS =============

def accuracy_rate(total_correct_answers: int, quizzes_taken: int) -> int:
    """
    Percentage of correct answers, rounded half up

    Assumes QUESTIONS_PER_QUIZ questions per quiz. No quizzes -> 0.
    """
    total_questions = quizzes_taken * settings.QUESTIONS_PER_QUIZ
    if total_questions <= 0:
        return 0
    return int(total_correct_answers * 100 / total_questions + 0.5)
