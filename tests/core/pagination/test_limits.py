"""Tests for limit/page sanitization."""

import pytest

from docrepo.core.exceptions import PageOutOfRange
from docrepo.core.pagination.config import PaginationConfig
from docrepo.core.pagination.limits import (
    calculate_skip,
    calculate_total_pages,
    should_warn_deep_pagination,
    validate_limit,
    validate_page,
)

CONFIG = PaginationConfig(default_limit=10, max_limit=100, max_page=10000)


class TestValidateLimit:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (20, 20),
            ("25", 25),
            (50.7, 50),
            (200, 100),
            (0, 10),
            (-5, 10),
            ("abc", 10),
            (None, 10),
            (float("nan"), 10),
            (float("inf"), 10),
            (10**400, 10),
            (-(10**400), 10),
            (True, 10),
            ([5], 10),
        ],
    )
    def test_values(self, value, expected):
        assert validate_limit(value, CONFIG) == expected

    def test_result_always_in_range(self):
        for value in (1, 99, 100, 101, 10**9, "7", 0.5):
            assert 1 <= validate_limit(value, CONFIG) <= CONFIG.max_limit


class TestValidatePage:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (1, 1),
            ("3", 3),
            (2.9, 2),
            (0, 1),
            (-4, 1),
            ("x", 1),
            (None, 1),
            (10000, 10000),
            (10**400, 1),
            (-(10**400), 1),
        ],
    )
    def test_values(self, value, expected):
        assert validate_page(value, CONFIG) == expected

    def test_rejects_page_over_max(self):
        with pytest.raises(PageOutOfRange) as exc_info:
            validate_page(10001, CONFIG)
        assert str(exc_info.value) == "Page 10001 exceeds maximum 10000"
        assert exc_info.value.kind == "page_out_of_range"


class TestHelpers:
    def test_deep_pagination_threshold_is_exclusive(self):
        assert not should_warn_deep_pagination(100, 100)
        assert should_warn_deep_pagination(101, 100)

    def test_skip(self):
        assert calculate_skip(1, 10) == 0
        assert calculate_skip(3, 10) == 20

    def test_total_pages(self):
        assert calculate_total_pages(0, 10) == 0
        assert calculate_total_pages(10, 10) == 1
        assert calculate_total_pages(11, 10) == 2
