from __future__ import annotations

import pytest

from derivedforms.typing.enums import FieldType, RuleType
from derivedforms.typing.models import DerivedConfig, FormField, ValidationRule
from derivedforms.validation import check_rule, has_validation_errors, is_absent, validate_field, validate_form


def _rule(rule_type: RuleType, value: object = None, message: str | None = None) -> ValidationRule:
    return ValidationRule(type=rule_type, value=value, message=message or rule_type.value)


def _text_field(*rules: ValidationRule, field_id: str = "name") -> FormField:
    return FormField(id=field_id, type=FieldType.TEXT, label="Name", validation_rules=list(rules))


@pytest.mark.parametrize(
    ("value", "absent"),
    [(None, True), ("", True), ([], True), (" ", False), (0, False), (False, False), (["a"], False)],
)
def test_is_absent(value, absent: bool) -> None:  # noqa: FBT001
    assert is_absent(value) is absent


def test_required_rule() -> None:
    rule = _rule(RuleType.REQUIRED)

    assert not check_rule(rule, None)
    assert not check_rule(rule, "")
    assert not check_rule(rule, [])
    assert check_rule(rule, 0)
    assert check_rule(rule, "x")


def test_required_rule_disabled_by_false_value() -> None:
    assert check_rule(_rule(RuleType.REQUIRED, value=False), None)


def test_not_empty_rule_only_rejects_whitespace() -> None:
    rule = _rule(RuleType.NOT_EMPTY)

    assert not check_rule(rule, "   ")
    assert check_rule(rule, "")
    assert check_rule(rule, " a ")
    assert check_rule(rule, None)


def test_length_rules() -> None:
    min_rule = _rule(RuleType.MIN_LENGTH, 3)
    max_rule = _rule(RuleType.MAX_LENGTH, 3)

    assert not check_rule(min_rule, "ab")
    assert check_rule(min_rule, "abc")
    assert check_rule(min_rule, "")
    assert check_rule(min_rule, 12)
    assert not check_rule(max_rule, "abcd")
    assert check_rule(max_rule, "abc")


@pytest.mark.parametrize(
    ("value", "valid"),
    [("ada@example.com", True), ("ada@example", False), ("ada example@x.io", False), ("@x.io", False), ("", True)],
)
def test_email_rule(value: str, valid: bool) -> None:  # noqa: FBT001
    assert check_rule(_rule(RuleType.EMAIL), value) is valid


@pytest.mark.parametrize(
    ("value", "valid"),
    [("secret123", True), ("secret12", True), ("secret1", False), ("secretpassword", False), ("", True)],
)
def test_password_rule(value: str, valid: bool) -> None:  # noqa: FBT001
    assert check_rule(_rule(RuleType.PASSWORD), value) is valid


def test_rules_are_independent_and_ordered() -> None:
    form_field = _text_field(
        _rule(RuleType.MIN_LENGTH, 5, "Too short"),
        _rule(RuleType.EMAIL, message="Invalid email"),
    )

    assert validate_field(form_field, "a") == ["Too short", "Invalid email"]


def test_presence_gating_of_optional_fields() -> None:
    form_field = _text_field(
        _rule(RuleType.MIN_LENGTH, 5, "Too short"),
        _rule(RuleType.EMAIL, message="Invalid email"),
        _rule(RuleType.PASSWORD, message="Weak password"),
    )

    assert validate_field(form_field, "") == []
    assert validate_field(form_field, None) == []


def test_required_flag_alone_adds_no_rule() -> None:
    form_field = FormField(id="name", type=FieldType.TEXT, label="Name", required=True)

    assert validate_field(form_field, "") == []


def test_validate_form_skips_derived_and_valid_fields() -> None:
    name = _text_field(_rule(RuleType.REQUIRED, message="Name is required"))
    email = _text_field(_rule(RuleType.EMAIL, message="Invalid email"), field_id="email")
    derived = FormField(
        id="total",
        type=FieldType.TEXT,
        label="Total",
        is_derived=True,
        derived_config=DerivedConfig(formula="1"),
        validation_rules=[_rule(RuleType.REQUIRED)],
    )

    errors = validate_form([name, email, derived], {"email": "ada@example.com", "total": None})

    assert errors == {"name": ["Name is required"]}
    assert has_validation_errors(errors)
    assert not has_validation_errors({"name": []})
