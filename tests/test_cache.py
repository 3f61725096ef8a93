"""
Tests for If-Modified-Since validation.
"""

import pytest

from staticserve.cache import is_not_modified, parse_http_date
from staticserve.exceptions import InvalidDateHeader

# Sun, 06 Nov 1994 08:49:37 GMT
KNOWN_MTIME = 784111777

KNOWN_DATE = "Sun, 06 Nov 1994 08:49:37 GMT"


class TestParse:
    """Test HTTP date parsing."""

    def test_rfc1123(self):
        assert parse_http_date(KNOWN_DATE) == KNOWN_MTIME

    def test_missing_zone_is_utc(self):
        assert parse_http_date("Sun, 06 Nov 1994 08:49:37 -0000") == KNOWN_MTIME

    @pytest.mark.parametrize("value", ["yesterday", "Sun, 99 Foo 1994", "12345"])
    def test_garbage(self, value):
        with pytest.raises(InvalidDateHeader):
            parse_http_date(value)

    def test_invalid_is_value_error(self):
        with pytest.raises(ValueError):
            parse_http_date("not a date")


class TestIsNotModified:
    """Test the second-granularity comparison."""

    def test_absent_header(self):
        assert is_not_modified(None, KNOWN_MTIME) is False

    def test_empty_header(self):
        assert is_not_modified("", KNOWN_MTIME) is False

    def test_same_second(self):
        assert is_not_modified(KNOWN_DATE, KNOWN_MTIME) is True

    def test_sub_second_mtime_ignored(self):
        assert is_not_modified(KNOWN_DATE, KNOWN_MTIME + 0.999) is True

    def test_older_file(self):
        assert is_not_modified(KNOWN_DATE, KNOWN_MTIME - 1) is False

    def test_newer_file(self):
        assert is_not_modified(KNOWN_DATE, KNOWN_MTIME + 60) is False

    def test_unparseable_propagates(self):
        with pytest.raises(InvalidDateHeader):
            is_not_modified("whenever", KNOWN_MTIME)
