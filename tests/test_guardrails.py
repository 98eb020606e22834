"""Tests for owner input validation."""

from qrmenu.guardrails import InputValidator


class TestInputValidator:
    """Tests for the InputValidator."""

    def test_validate_empty_name(self):
        """Test validation of empty names."""
        is_valid, error = InputValidator.validate_name("   ", "Item name")
        assert is_valid is False
        assert error == "Item name cannot be empty."

    def test_validate_too_long_name(self):
        """Test validation of excessively long names."""
        is_valid, error = InputValidator.validate_name("x" * 500)
        assert is_valid is False
        assert "too long" in error.lower()

    def test_validate_suspicious_patterns(self):
        """Test detection of markup in names."""
        suspicious_inputs = [
            "<script>alert('xss')</script>",
            "javascript:void(0)",
            "Samosa onerror=alert(1)",
        ]

        for value in suspicious_inputs:
            is_valid, error = InputValidator.validate_name(value)
            assert is_valid is False
            assert "suspicious" in error.lower()

    def test_validate_normal_name(self):
        """Test validation of normal names."""
        is_valid, error = InputValidator.validate_name("Paneer Tikka")
        assert is_valid is True
        assert error is None

    def test_validate_price(self):
        """Test price validation."""
        for value in [0, "3.50", 999]:
            is_valid, error = InputValidator.validate_price(value)
            assert is_valid is True, f"Failed for {value}: {error}"

        is_valid, error = InputValidator.validate_price("abc")
        assert is_valid is False
        assert error == "Enter a valid price."

        is_valid, _error = InputValidator.validate_price(-1)
        assert is_valid is False

    def test_validate_restaurant_id(self):
        """Test restaurant identifier validation."""
        for value in ["ajwa", "spice-garden", "cafe_2"]:
            is_valid, error = InputValidator.validate_restaurant_id(value)
            assert is_valid is True, f"Failed for {value}: {error}"

        for value in ["", "bad id", "../etc", "-leading"]:
            is_valid, _error = InputValidator.validate_restaurant_id(value)
            assert is_valid is False, value
