"""
Validation and error handling tests.
Covers input validators, error helpers and edge cases.
"""
import pytest
from fastapi import HTTPException

from backend.jobportal.utils.validation import (
    clean_string_list,
    password_strength,
    sanitize_filename,
    validate_application_status,
    validate_cover_letter,
    validate_display_name,
    validate_email,
    validate_experience_level,
    validate_integer_field,
    validate_job_status,
    validate_job_type,
    validate_password,
    validate_role,
    validate_string_field,
    SIGNUP_ROLES,
)
from backend.jobportal.utils.error_handlers import (
    ConflictError,
    FileUploadError,
    NotFoundError,
    StorageError,
    ValidationError,
    create_error_response,
    get_error_message,
    handle_database_error,
)


class TestEmailValidation:
    def test_valid_email(self):
        assert validate_email("test@example.com") == "test@example.com"
        assert validate_email("USER@EXAMPLE.COM") == "user@example.com"
        assert validate_email("  test@example.com  ") == "test@example.com"

    def test_invalid_email_format(self):
        with pytest.raises(HTTPException) as exc:
            validate_email("invalid")
        assert exc.value.status_code == 400
        assert exc.value.detail == "Please enter a valid email address"

    def test_email_missing_at(self):
        with pytest.raises(HTTPException) as exc:
            validate_email("testexample.com")
        assert exc.value.status_code == 400

    def test_email_too_long(self):
        long_email = "a" * 250 + "@test.com"
        with pytest.raises(HTTPException) as exc:
            validate_email(long_email)
        assert exc.value.status_code == 400
        assert "too long" in str(exc.value.detail).lower()

    def test_empty_email(self):
        with pytest.raises(HTTPException) as exc:
            validate_email("")
        assert exc.value.status_code == 400


class TestPasswordValidation:
    def test_valid_password(self):
        validate_password("Password123")
        validate_password("Abcdefg1")  # Minimum 8 chars

    def test_password_too_short(self):
        with pytest.raises(HTTPException) as exc:
            validate_password("Abc123")
        assert exc.value.status_code == 400
        assert "at least 8 characters" in str(exc.value.detail)

    def test_password_too_long(self):
        with pytest.raises(HTTPException) as exc:
            validate_password("Aa1" * 34)
        assert exc.value.status_code == 400
        assert "less than 100" in str(exc.value.detail)

    def test_missing_character_classes_are_all_listed(self):
        with pytest.raises(HTTPException) as exc:
            validate_password("abcdefgh")
        assert exc.value.detail == "Password must contain at least one uppercase letter, number"

        with pytest.raises(HTTPException) as exc:
            validate_password("ABCDEFGH")
        assert exc.value.detail == "Password must contain at least one lowercase letter, number"

    def test_empty_password(self):
        with pytest.raises(HTTPException) as exc:
            validate_password("")
        assert exc.value.status_code == 400


class TestPasswordStrength:
    def test_empty(self):
        assert password_strength("") == {"score": 0, "label": ""}

    def test_scores(self):
        assert password_strength("abc") == {"score": 1, "label": "Very Weak"}
        assert password_strength("abcdefgh") == {"score": 2, "label": "Weak"}
        assert password_strength("Abcdefgh") == {"score": 3, "label": "Fair"}
        assert password_strength("Abcdefg1") == {"score": 4, "label": "Strong"}
        assert password_strength("Abcdef1!") == {"score": 5, "label": "Very Strong"}


class TestDisplayName:
    def test_trimmed(self):
        assert validate_display_name("  Ada Lovelace ") == "Ada Lovelace"

    def test_required(self):
        with pytest.raises(HTTPException) as exc:
            validate_display_name("   ")
        assert exc.value.detail == "Full name is required"

    def test_length_bounds(self):
        with pytest.raises(HTTPException):
            validate_display_name("A")
        with pytest.raises(HTTPException):
            validate_display_name("A" * 51)


class TestStringFieldValidation:
    def test_valid_string(self):
        result = validate_string_field("Test Title", "Title", min_length=2, max_length=50)
        assert result == "Test Title"

    def test_string_too_short(self):
        with pytest.raises(HTTPException) as exc:
            validate_string_field("A", "Title", min_length=2)
        assert exc.value.status_code == 400
        assert "at least 2 characters" in str(exc.value.detail)

    def test_string_too_long(self):
        with pytest.raises(HTTPException) as exc:
            validate_string_field("A" * 51, "Title", max_length=50)
        assert exc.value.status_code == 400
        assert "not exceed 50 characters" in str(exc.value.detail)

    def test_optional_field_none(self):
        assert validate_string_field(None, "Optional", required=False) is None
        assert validate_string_field("   ", "Optional", required=False) is None

    def test_required_field_none(self):
        with pytest.raises(HTTPException) as exc:
            validate_string_field(None, "Required", required=True)
        assert exc.value.status_code == 400
        assert "is required" in str(exc.value.detail)


class TestIntegerFieldValidation:
    def test_valid_integer(self):
        assert validate_integer_field(42, "Count", min_value=1, max_value=100) == 42

    def test_integer_bounds(self):
        with pytest.raises(HTTPException) as exc:
            validate_integer_field(0, "Count", min_value=1)
        assert "at least 1" in str(exc.value.detail)
        with pytest.raises(HTTPException) as exc:
            validate_integer_field(101, "Count", max_value=100)
        assert "not exceed 100" in str(exc.value.detail)

    def test_string_to_integer_conversion(self):
        assert validate_integer_field("42", "Count") == 42

    def test_invalid_string_to_integer(self):
        with pytest.raises(HTTPException) as exc:
            validate_integer_field("abc", "Count")
        assert "valid integer" in str(exc.value.detail)


class TestChoiceValidation:
    def test_roles(self):
        assert validate_role("RECRUITER") == "recruiter"
        assert validate_role("admin") == "admin"
        with pytest.raises(HTTPException) as exc:
            validate_role("admin", SIGNUP_ROLES)
        assert "Invalid role" in str(exc.value.detail)

    def test_job_status_defaults_to_draft(self):
        assert validate_job_status(None) == "draft"
        assert validate_job_status("") == "draft"
        assert validate_job_status("ACTIVE") == "active"
        with pytest.raises(HTTPException):
            validate_job_status("archived")

    def test_optional_job_enums(self):
        assert validate_job_type(None) is None
        assert validate_job_type("Internship") == "internship"
        assert validate_experience_level("") is None
        assert validate_experience_level("senior") == "senior"
        with pytest.raises(HTTPException):
            validate_job_type("freelance")
        with pytest.raises(HTTPException):
            validate_experience_level("guru")

    def test_application_status(self):
        assert validate_application_status("Accepted") == "accepted"
        with pytest.raises(HTTPException):
            validate_application_status(None)
        with pytest.raises(HTTPException):
            validate_application_status("hired")


class TestCoverLetter:
    def test_trimmed_length_is_checked(self):
        with pytest.raises(HTTPException) as exc:
            validate_cover_letter("x" * 49 + "     ")
        assert exc.value.detail == "Cover letter must be at least 50 characters long"

    def test_exact_boundaries(self):
        assert validate_cover_letter("  " + "x" * 50 + "  ") == "x" * 50
        assert len(validate_cover_letter("x" * 5000)) == 5000
        with pytest.raises(HTTPException):
            validate_cover_letter("x" * 5001)

    def test_empty(self):
        with pytest.raises(HTTPException):
            validate_cover_letter(None)


class TestStringLists:
    def test_dedupes_case_insensitively(self):
        assert clean_string_list([" Python", "python", "", "SQL "], "Skills") == ["Python", "SQL"]

    def test_none_and_non_list(self):
        assert clean_string_list(None, "Skills") == []
        with pytest.raises(HTTPException):
            clean_string_list("Python", "Skills")


class TestFilenameSanitization:
    def test_valid_filename(self):
        assert sanitize_filename("resume.pdf") == "resume.pdf"
        assert sanitize_filename("my_resume.docx") == "my_resume.docx"

    def test_directory_traversal(self):
        result = sanitize_filename("../../etc/passwd.pdf")
        assert ".." not in result
        assert "/" not in result
        assert "\\" not in result

    def test_remove_path_separators(self):
        assert sanitize_filename("path/to/file.pdf") == "path_to_file.pdf"

    def test_remove_null_bytes(self):
        assert "\x00" not in sanitize_filename("file\x00.pdf")

    def test_remove_leading_dots(self):
        assert sanitize_filename(".hidden_file.pdf") == "hidden_file.pdf"

    def test_empty_filename(self):
        with pytest.raises(HTTPException) as exc:
            sanitize_filename("")
        assert exc.value.status_code == 400

    def test_filename_too_long(self):
        with pytest.raises(HTTPException) as exc:
            sanitize_filename("a" * 256 + ".pdf")
        assert exc.value.status_code == 400


class TestErrorMessages:
    def test_get_predefined_message(self):
        assert get_error_message("wrong_password") == "Incorrect password."
        assert get_error_message("already_applied") == "You have already applied to this job."

    def test_get_default_message(self):
        assert "went wrong" in get_error_message("nonexistent_key").lower()
        assert get_error_message("nonexistent_key", "Custom") == "Custom"


class TestAppErrors:
    def test_status_codes(self):
        assert ValidationError("bad").status_code == 400
        assert NotFoundError().status_code == 404
        assert ConflictError("dup").status_code == 409
        assert StorageError().status_code == 502
        assert FileUploadError("big", status_code=413).status_code == 413

    def test_error_response_shape(self):
        response = create_error_response(409, "Duplicate", {"code": "X"})
        assert response.status_code == 409
        assert response.body == b'{"success":false,"error":"Duplicate","status_code":409,"details":{"code":"X"}}'

        bare = create_error_response(404, "Gone")
        assert b"details" not in bare.body


class TestDatabaseErrorHandler:
    def test_handle_duplicate_error(self):
        result = handle_database_error(Exception("Duplicate entry for key 'email'"), "creating user")
        assert isinstance(result, HTTPException)
        assert result.status_code == 409
        assert "already exists" in result.detail

    def test_handle_foreign_key_error(self):
        result = handle_database_error(Exception("foreign key constraint failed"), "creating record")
        assert result.status_code == 400

    def test_handle_connection_error(self):
        result = handle_database_error(Exception("connection refused"), "query")
        assert result.status_code == 503

    def test_handle_unknown_error(self):
        assert handle_database_error(Exception("weird"), "query").status_code == 500


class TestEdgeCases:
    def test_boundary_values(self):
        validate_password("Abcdefg1")
        validate_string_field("AB", "Field", min_length=2, max_length=2)
        validate_integer_field(1, "Count", min_value=1, max_value=1)

    def test_unicode_and_special_chars(self):
        assert "@" in validate_email("test+tag@example.co.uk")
        assert "🎉" in validate_string_field("Title with émojis 🎉", "Title", max_length=100)

    def test_case_insensitivity(self):
        assert validate_email("TeSt@ExAmPlE.cOm") == "test@example.com"
        assert validate_role("RECRUITER") == "recruiter"
        assert validate_job_status("ACTIVE") == "active"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
