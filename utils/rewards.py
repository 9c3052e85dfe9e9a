from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

BASE_COINS = 10
STREAK_STEP = 5
STREAK_BONUS_CAP = 25
COMPLETION_BONUS = 50
MAX_ATTEMPTS = 3
ATTEMPT_MULTIPLIERS: Tuple[float, ...] = (1.0, 0.66, 0.33)

DEFAULT_REWARD_RULES = {
    "base_coins": BASE_COINS,
    "streak_step": STREAK_STEP,
    "streak_cap": STREAK_BONUS_CAP,
    "completion_bonus": COMPLETION_BONUS,
    "max_attempts": MAX_ATTEMPTS,
}


@dataclass(frozen=True)
class Reward:
    coins_earned: int
    new_streak: int


def reward_rules(config: Optional[Dict[str, Any]] = None) -> Dict[str, int]:
    rules = DEFAULT_REWARD_RULES.copy()
    if config:
        rules.update({key: int(value) for key, value in config.get("rewards", {}).items() if key in rules})
    return rules


def attempt_multiplier(attempt_number: int) -> float:
    index = max(1, attempt_number) - 1
    if index >= len(ATTEMPT_MULTIPLIERS):
        return ATTEMPT_MULTIPLIERS[-1]
    return ATTEMPT_MULTIPLIERS[index]


def reward(
    is_correct: bool,
    current_streak: int,
    attempt_number: int = 1,
    rules: Optional[Dict[str, int]] = None,
) -> Reward:
    """Coins for one answer and the streak that follows it.

    A correct answer extends the streak and pays the base plus a streak bonus
    of 5 coins per streak step, capped at 25; a wrong answer pays nothing and
    resets the streak. Later attempts at the same question are scaled down.
    """
    rules = rules or DEFAULT_REWARD_RULES
    if not is_correct:
        return Reward(coins_earned=0, new_streak=0)
    new_streak = max(0, current_streak) + 1
    bonus = min(new_streak * rules["streak_step"], rules["streak_cap"])
    coins = rules["base_coins"] + bonus
    if attempt_number > 1:
        coins = int(math.floor(coins * attempt_multiplier(attempt_number) + 0.5))
    return Reward(coins_earned=coins, new_streak=new_streak)


def potential_reward(attempt_number: int, rules: Optional[Dict[str, int]] = None) -> int:
    """What a correct answer on the given attempt would pay after a streak reset."""
    return reward(True, 0, attempt_number, rules).coins_earned


def hint_cost(potential: int) -> int:
    return max(1, potential // 2)
