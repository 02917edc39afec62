import pytest

from task_api.errors import ValidationError
from task_api.models import TaskStatus
from task_api.validation import message_for, translate_errors, validate


class TestValidate:
    def test_register_returns_normalized_model(self):
        data = validate(
            "register",
            {"name": "  Test User ", "email": " t@x.com ", "password": " password123 "},
        )
        assert data.name == "Test User"
        assert data.email == "t@x.com"
        # passwords are kept byte for byte
        assert data.password == " password123 "

    def test_empty_strings_count_as_missing(self):
        with pytest.raises(ValidationError) as info:
            validate("create-task", {"title": "   ", "description": "", "due_date": "2022-07-24"})
        assert info.value.errors == {
            "title": ["The title field is required."],
            "description": ["The description field is required."],
        }

    def test_all_violations_are_collected(self):
        with pytest.raises(ValidationError) as info:
            validate("register", {"name": "n" * 256, "email": "nope", "password": "1234567"})
        assert info.value.errors == {
            "name": ["The name field must not be greater than 255 characters."],
            "email": ["The email field must be a valid email address."],
            "password": ["The password field must be at least 8 characters."],
        }
        assert info.value.status_code == 422
        assert info.value.to_envelope()["message"] == "Request Failed"

    def test_password_longer_than_bcrypt_limit(self):
        with pytest.raises(ValidationError) as info:
            validate("register", {"name": "A", "email": "a@example.com", "password": "p" * 73})
        assert info.value.errors == {"password": ["The password field must not be greater than 72 bytes."]}

    def test_password_limit_counts_bytes_not_characters(self):
        # 19 characters, 76 bytes in UTF-8
        with pytest.raises(ValidationError) as info:
            validate("register", {"name": "A", "email": "a@example.com", "password": "\U0001F600" * 19})
        assert info.value.errors == {"password": ["The password field must not be greater than 72 bytes."]}

    def test_unique_email_merged_with_other_errors(self):
        seen = []

        def taken(email):
            seen.append(email)
            return True

        with pytest.raises(ValidationError) as info:
            validate("register", {"email": " dup@example.com ", "password": "password123"}, email_taken=taken)
        assert info.value.errors == {
            "name": ["The name field is required."],
            "email": ["The email has already been taken."],
        }
        assert seen == ["dup@example.com"]

    def test_uniqueness_not_checked_for_malformed_email(self):
        def taken(email):
            raise AssertionError("lookup should not run")

        with pytest.raises(ValidationError) as info:
            validate("register", {"name": "A", "email": "bad", "password": "password123"}, email_taken=taken)
        assert info.value.errors == {"email": ["The email field must be a valid email address."]}

    def test_none_payload_is_an_empty_payload(self):
        with pytest.raises(ValidationError) as info:
            validate("login", None)
        assert set(info.value.errors) == {"email", "password"}

    def test_update_accepts_partial_payload(self):
        data = validate("update-task", {"status": "In Progress"})
        assert data.model_dump(exclude_unset=True) == {"status": TaskStatus.IN_PROGRESS}

    def test_update_rejects_explicit_null(self):
        with pytest.raises(ValidationError) as info:
            validate("update-task", {"title": None})
        assert info.value.errors == {"title": ["The title field must be a string."]}

    def test_unknown_keys_are_ignored(self):
        data = validate("update-task", {"owner_id": 99, "date_completed": "2020-01-01"})
        assert data.model_dump(exclude_unset=True) == {}

    @pytest.mark.parametrize(
        "value",
        ["2022-13-01", "tomorrow", "24/07/2022"],
    )
    def test_invalid_dates(self, value):
        with pytest.raises(ValidationError) as info:
            validate("create-task", {"title": "T", "description": "0123456789", "due_date": value})
        assert info.value.errors["due_date"] == [
            "The due date field must be a valid date.",
            "The due date field must match the format Y-m-d.",
        ]

    def test_iso_datetime_is_not_a_plain_date(self):
        with pytest.raises(ValidationError) as info:
            validate("create-task", {"title": "T", "description": "0123456789", "due_date": "2022-07-24T10:00:00"})
        assert info.value.errors["due_date"] == ["The due date field must match the format Y-m-d."]


class TestTranslateErrors:
    def test_field_taken_from_location(self):
        errors = [{"loc": ("query", "per_page"), "type": "less_than_equal", "ctx": {"le": 100}, "input": "500"}]
        assert translate_errors(errors) == {"per_page": ["The per page field must not be greater than 100."]}

    def test_whole_body_errors(self):
        errors = [{"loc": ("body",), "type": "dict_type", "input": []}]
        assert translate_errors(errors) == {"body": ["The body field is invalid."]}

    def test_duplicate_messages_collapsed(self):
        errors = [
            {"loc": ("title",), "type": "missing", "input": {}},
            {"loc": ("title",), "type": "missing", "input": {}},
        ]
        assert translate_errors(errors) == {"title": ["The title field is required."]}

    def test_message_for_unknown_type(self):
        assert message_for("something_new", "due_date") == "The due date field is invalid."
