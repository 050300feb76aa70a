"""Shared request validators."""

import pytest

from coachhub.exceptions.exceptions import ValidationError
from coachhub.utils.validation.validation_utils import ValidationUtils


def test_number_range_accepts_numeric_strings():
    assert ValidationUtils.validate_number_range("40", 0, 100, "progress") == 40
    assert ValidationUtils.validate_number_range(2.5, 1, 5, "rating") == 2.5


@pytest.mark.parametrize("value", [float("nan"), "nan", "NaN", float("inf"), "-inf", True, None, "ten"])
def test_number_range_rejects_non_finite_and_non_numbers(value):
    with pytest.raises(ValidationError):
        ValidationUtils.validate_number_range(value, 0, 100, "grade")
