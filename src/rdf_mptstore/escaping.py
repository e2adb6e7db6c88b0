"""
N-Triples string escaping.

N-Triples documents are 7-bit ASCII. Characters outside that range, and
control characters, are written as Unicode escapes:

  \\t \\r \\n \\" \\\\          short escapes
  \\uXXXX                  codepoints up to U+FFFF
  \\UXXXXXXXX              codepoints U+10000 to U+10FFFF

Reference: https://www.w3.org/TR/rdf-testcases/#ntrip_strings
"""

from rdf_mptstore.errors import ParseError, ParseErrorKind

_SHORT_UNESCAPES = {
    "t": "\t",
    "r": "\r",
    "n": "\n",
    '"': '"',
    "\\": "\\",
}

_SHORT_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}

_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")

MAX_CODEPOINT = 0x10FFFF


def _needs_short_u(cp: int) -> bool:
    return (
        0x0 <= cp <= 0x8
        or cp == 0xB or cp == 0xC
        or 0xE <= cp <= 0x1F
        or 0x7F <= cp <= 0xFFFF
    )


def escape(s: str) -> str:
    """
    Escape a string to N-Triples literal format.

    The output contains only printable ASCII (codepoints up to 0x7E).

    Args:
        s: Any Unicode string

    Returns:
        The escaped, pure-ASCII form
    """
    out = []
    for c in s:
        short = _SHORT_ESCAPES.get(c)
        if short is not None:
            out.append(short)
            continue
        cp = ord(c)
        if _needs_short_u(cp):
            out.append(f"\\u{cp:04X}")
        elif 0x10000 <= cp <= MAX_CODEPOINT:
            out.append(f"\\U{cp:08X}")
        else:
            out.append(c)
    return "".join(out)


def unescape(s: str) -> str:
    """
    Unescape an N-Triples-escaped string.

    All input characters must be 7-bit ASCII. Unicode escapes must be
    complete and hold only hex digits.

    Args:
        s: Escaped string

    Returns:
        The string with every escape sequence restored

    Raises:
        ParseError: With the offset of the offending character or backslash
    """
    for i, c in enumerate(s):
        if ord(c) > 127:
            raise ParseError(ParseErrorKind.NON_ASCII_CHAR, i)

    backslash = s.find("\\")
    if backslash == -1:
        return s

    length = len(s)
    pos = 0
    buf = []

    while backslash != -1:
        buf.append(s[pos:backslash])

        if backslash + 1 >= length:
            raise ParseError(ParseErrorKind.UNESCAPED_BACKSLASH, backslash)

        c = s[backslash + 1]
        short = _SHORT_UNESCAPES.get(c)
        if short is not None:
            buf.append(short)
            pos = backslash + 2
        elif c == "u" or c == "U":
            width = 4 if c == "u" else 8
            start = backslash + 2
            if start + width > length:
                raise ParseError(ParseErrorKind.INCOMPLETE_ESCAPE, backslash)
            digits = s[start:start + width]
            if not all(d in _HEX_DIGITS for d in digits):
                raise ParseError(ParseErrorKind.ILLEGAL_ESCAPE, backslash)
            cp = int(digits, 16)
            if cp > MAX_CODEPOINT:
                raise ParseError(ParseErrorKind.ILLEGAL_ESCAPE, backslash)
            buf.append(chr(cp))
            pos = start + width
        else:
            raise ParseError(ParseErrorKind.UNESCAPED_BACKSLASH, backslash)

        backslash = s.find("\\", pos)

    buf.append(s[pos:])
    return "".join(buf)
