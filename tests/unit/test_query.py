import pytest

from loopback_oauth.query import decode_query
from loopback_oauth.utils import MalformedRedirectError


class TestDecodeQuery:
    """Tests for decoding the redirect query string."""

    def test_code_and_state(self):
        assert decode_query("code=abc&state=xyz") == {"code": "abc", "state": "xyz"}

    def test_percent_escapes_are_decoded(self):
        assert decode_query("code=a%20b") == {"code": "a b"}

    def test_plus_is_not_a_space(self):
        assert decode_query("code=a+b") == {"code": "a+b"}

    def test_first_duplicate_wins(self):
        assert decode_query("a=1&a=2") == {"a": "1"}

    def test_missing_value_maps_to_none(self):
        result = decode_query("flag&code=1")
        assert result == {"flag": None, "code": "1"}
        assert "flag" in result

    def test_empty_value_is_not_none(self):
        assert decode_query("code=") == {"code": ""}

    def test_empty_query_string(self):
        assert decode_query("") == {}
        assert decode_query(None) == {}

    def test_leading_question_mark(self):
        assert decode_query("?code=abc") == {"code": "abc"}

    def test_empty_segments_are_skipped(self):
        assert decode_query("a=1&&b=2&") == {"a": "1", "b": "2"}

    def test_value_keeps_extra_equal_signs(self):
        """
        Base64 padding must survive decoding.
        """
        assert decode_query("state=YWJj%3D&token=YWJj==") == {"state": "YWJj=", "token": "YWJj=="}
        assert decode_query("a=b=c") == {"a": "b=c"}

    def test_keys_are_verbatim(self):
        assert decode_query("a%20b=1") == {"a%20b": "1"}

    def test_error_response(self):
        result = decode_query("error=access_denied&error_description=The%20user%20denied%20access")
        assert result == {
            "error": "access_denied",
            "error_description": "The user denied access",
        }

    def test_undecodable_value_is_dropped(self, caplog):
        result = decode_query("code=abc&state=%FF%FE")
        assert result == {"code": "abc"}
        assert "state" in caplog.text

    def test_undecodable_value_strict(self):
        with pytest.raises(MalformedRedirectError) as exc_info:
            decode_query("code=abc&state=%FF%FE", strict=True)

        assert "state" in str(exc_info.value)
