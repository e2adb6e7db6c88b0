"""
Tests for N-Triples string escaping.
"""

import pytest

from rdf_mptstore.errors import ParseError, ParseErrorKind
from rdf_mptstore.escaping import escape, unescape


class TestEscape:
    """Escaping to 7-bit N-Triples text."""

    def test_control_and_supplementary_characters(self):
        assert escape("A\u0001\u007F\U0001F600") == "A\\u0001\\u007F\\U0001F600"

    def test_short_escapes(self):
        assert escape('a"b\\c\nd\re\tf') == 'a\\"b\\\\c\\nd\\re\\tf'

    def test_latin_characters_use_four_digit_escape(self):
        assert escape("café") == "caf\\u00E9"

    def test_printable_ascii_unchanged(self):
        text = "Hello, World! <http://example.org/> 42 ~"
        assert escape(text) == text

    def test_output_is_ascii(self):
        text = "".join(chr(cp) for cp in range(0, 0x3000, 7)) + "\U0010FFFF"
        assert all(ord(c) <= 0x7E for c in escape(text))


class TestUnescape:
    """Unescaping N-Triples text."""

    def test_basic(self):
        assert unescape("a\\tb\\n\\u0041") == "a\tb\nA"

    def test_no_backslash_is_identity(self):
        assert unescape("plain text") == "plain text"

    def test_long_escape(self):
        assert unescape("\\U0001F600!") == "\U0001F600!"

    def test_lowercase_hex_digits(self):
        assert unescape("\\u00e9") == "é"

    @pytest.mark.parametrize("text", [
        "",
        "tab\there",
        'quote " and \\ backslash',
        "\u0000\u0008\u000b\u000c\u001f\u007f",
        "中文 \U0001F600 \U0010FFFF",
    ])
    def test_reverses_escape(self, text):
        assert unescape(escape(text)) == text


class TestUnescapeErrors:
    """Error kinds and offsets reported by unescape."""

    def test_non_ascii(self):
        with pytest.raises(ParseError) as exc:
            unescape("café")
        assert exc.value.kind is ParseErrorKind.NON_ASCII_CHAR
        assert exc.value.offset == 3

    def test_trailing_backslash(self):
        with pytest.raises(ParseError) as exc:
            unescape("abc\\")
        assert exc.value.kind is ParseErrorKind.UNESCAPED_BACKSLASH
        assert exc.value.offset == 3

    def test_unknown_escape(self):
        with pytest.raises(ParseError) as exc:
            unescape("ok\\x41")
        assert exc.value.kind is ParseErrorKind.UNESCAPED_BACKSLASH
        assert exc.value.offset == 2

    def test_incomplete_escape(self):
        with pytest.raises(ParseError) as exc:
            unescape("\\u12")
        assert exc.value.kind is ParseErrorKind.INCOMPLETE_ESCAPE
        assert exc.value.offset == 0

    def test_non_hex_digit(self):
        with pytest.raises(ParseError) as exc:
            unescape("x\\u004g")
        assert exc.value.kind is ParseErrorKind.ILLEGAL_ESCAPE
        assert exc.value.offset == 1

    def test_codepoint_out_of_range(self):
        with pytest.raises(ParseError) as exc:
            unescape("\\U00110000")
        assert exc.value.kind is ParseErrorKind.ILLEGAL_ESCAPE

    def test_message_mentions_offset(self):
        with pytest.raises(ParseError, match="offset 3"):
            unescape("abc\\")
