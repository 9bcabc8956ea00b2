import pytest

from core.errors import ValidationFailedError
from core.validator import InputValidator, normalize_email, sanitize_field


@pytest.fixture
def validator():
    return InputValidator()


def test_sanitize_strips_markup():
    assert sanitize_field('<b>Alice</b>') == 'Alice'
    assert '<' not in sanitize_field('<img src=x onerror=alert(1)>Bob')


def test_sanitize_keeps_literal_text():
    assert sanitize_field('  Tom & Jerry  ') == 'Tom & Jerry'
    assert sanitize_field('a < b') == 'a < b'


def test_sanitize_folds_line_breaks_in_single_line_fields():
    assert sanitize_field('Eve\r\nBcc: victim@example.com') == 'Eve Bcc: victim@example.com'


def test_sanitize_keeps_line_breaks_in_message():
    assert sanitize_field('line one\r\nline two', multiline=True) == 'line one\nline two'


def test_sanitize_drops_control_characters():
    assert sanitize_field('Al\x00ice\x07') == 'Alice'


def test_sanitize_treats_non_strings_as_empty():
    assert sanitize_field(None) == ''
    assert sanitize_field(42) == ''
    assert sanitize_field(['Alice']) == ''


def test_normalize_email_lowercases():
    assert normalize_email('Alice@Example.COM') == 'alice@example.com'


@pytest.mark.parametrize('value', ['', 'plainaddress', 'a@b', '@example.com', 'alice@', 'alice@@example.com'])
def test_normalize_email_rejects_invalid(value):
    assert normalize_email(value) is None


def test_validate_returns_clean_submission(validator):
    submission = validator.validate({
        'name': '  Alice  ',
        'email': 'Alice@Example.com',
        'message': '  <p>Hello</p>\nthere  ',
    })

    assert submission.name == 'Alice'
    assert submission.email == 'alice@example.com'
    assert submission.message == 'Hello\nthere'


def test_validate_collects_every_failure(validator):
    with pytest.raises(ValidationFailedError) as exc_info:
        validator.validate({'name': '', 'email': 'nope', 'message': ''})

    assert exc_info.value.fields == ['name', 'email', 'message']
    assert exc_info.value.to_dict()['errors'][0] == {'field': 'name', 'message': 'Name is required.'}


def test_markup_only_name_counts_as_empty(validator):
    with pytest.raises(ValidationFailedError) as exc_info:
        validator.validate({'name': '<b></b>', 'email': 'alice@example.com', 'message': 'Hi'})

    assert exc_info.value.fields == ['name']


@pytest.mark.parametrize('payload', [None, [], 'text', 3])
def test_non_mapping_payload_is_treated_as_empty(validator, payload):
    with pytest.raises(ValidationFailedError) as exc_info:
        validator.validate(payload)

    assert exc_info.value.fields == ['name', 'email', 'message']


def test_normalize_email_rejects_internationalized_local_part():
    assert normalize_email('ñame@example.com') is None


def test_validation_error_carries_its_status_code():
    with pytest.raises(ValidationFailedError) as exc_info:
        InputValidator().validate({})

    assert exc_info.value.status_code == 400
