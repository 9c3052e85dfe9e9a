from utils.answers import (
    evaluate_answer,
    is_answerable,
    normalize_answer,
    parse_options,
    validate_multiple_choice,
)


def test_normalize_answer_treats_format_variants_as_equal():
    assert normalize_answer("(5, 6)") == "5.6"
    assert normalize_answer("5,6") == "5.6"
    assert normalize_answer(" 5.6 ") == "5.6"
    assert normalize_answer("50%") == "50"
    assert normalize_answer("  Hello World ") == "helloworld"
    assert normalize_answer(None) == ""


def test_parse_options_reports_malformed_data_without_raising():
    assert parse_options('["A: 1", "B: 2"]').options == ["A: 1", "B: 2"]
    assert parse_options(["A", "B"]).is_ok
    assert parse_options("not json").error == "options are not valid JSON"
    assert parse_options('{"a": 1}').error == "options are not a list"
    assert not parse_options(None).is_ok


def test_is_answerable_requires_two_options_for_multiple_choice():
    assert is_answerable("multiple_choice", '["A: yes", "B: no"]')
    assert not is_answerable("multiple_choice", '["A: only"]')
    assert not is_answerable("multiple_choice", "[]")
    assert not is_answerable("multiple_choice", None)
    assert not is_answerable("multiple_choice", "{broken")
    assert is_answerable("number", None)
    assert is_answerable("text", "{broken")
    assert is_answerable(None, None)


def test_validate_multiple_choice_accepts_letter_only():
    options = ["A: Yes", "B: No"]
    assert validate_multiple_choice("B", options) is None
    assert validate_multiple_choice(" b ", options) is None
    error = validate_multiple_choice("B: No", options)
    assert error == 'correct_answer "B: No" does not match any option (A, B)'
    assert validate_multiple_choice("C", options) is not None
    assert validate_multiple_choice("A", ["A: lonely"]) == "Question has no options configured"


def test_evaluate_multiple_choice_compares_first_letter():
    assert evaluate_answer("multiple_choice", "B", "b").correct
    assert evaluate_answer("multiple_choice", "B", " B: No").correct
    assert evaluate_answer("multiple_choice", "B", "\n\t b) No").correct
    assert not evaluate_answer("multiple_choice", "B", "A").correct
    assert not evaluate_answer("multiple_choice", "B", "").correct


def test_evaluate_free_text_uses_normalized_equality():
    assert evaluate_answer("number", "5.6", "5,6").correct
    assert evaluate_answer("number", "(3, 4)", "3.4").correct
    assert evaluate_answer("text", "New York", "new york").correct
    assert not evaluate_answer("number", "12", "18").correct
    assert evaluate_answer(None, "7", " 7 ").correct
    result = evaluate_answer("number", "12", "18")
    assert result.correct_answer == "12"
