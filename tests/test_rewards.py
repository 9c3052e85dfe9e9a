from utils.rewards import (
    attempt_multiplier,
    hint_cost,
    potential_reward,
    reward,
    reward_rules,
)


def test_correct_answers_grow_with_streak_and_cap_at_35():
    streak = 0
    earned = []
    for _ in range(7):
        result = reward(True, streak)
        earned.append(result.coins_earned)
        streak = result.new_streak
    assert earned == [15, 20, 25, 30, 35, 35, 35]
    assert streak == 7


def test_wrong_answer_pays_nothing_and_resets_streak():
    result = reward(False, 4)
    assert result.coins_earned == 0
    assert result.new_streak == 0


def test_later_attempts_are_scaled_down():
    assert attempt_multiplier(1) == 1.0
    assert attempt_multiplier(2) == 0.66
    assert attempt_multiplier(3) == 0.33
    assert attempt_multiplier(9) == 0.33
    assert reward(True, 0, attempt_number=2).coins_earned == 10
    assert reward(True, 0, attempt_number=3).coins_earned == 5
    assert reward(True, 0, attempt_number=2).new_streak == 1


def test_scaled_rewards_round_half_up():
    assert reward(True, 2, attempt_number=2).coins_earned == 17
    assert reward(True, 4, attempt_number=2).coins_earned == 23
    assert reward(True, 4, attempt_number=3).coins_earned == 12


def test_potential_reward_and_hint_cost():
    assert potential_reward(1) == 15
    assert potential_reward(2) == 10
    assert hint_cost(potential_reward(2)) == 5
    assert hint_cost(potential_reward(3)) == 2
    assert hint_cost(1) == 1
    assert hint_cost(0) == 1


def test_reward_rules_take_config_overrides():
    rules = reward_rules({"rewards": {"base_coins": 20, "streak_cap": 10, "unknown": 3}})
    assert rules["base_coins"] == 20
    assert "unknown" not in rules
    assert reward(True, 5, rules=rules).coins_earned == 30
