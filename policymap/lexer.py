# (c) Copyright 2025 by Coinkite Inc. This file is covered by license found in COPYING-CC.
#
# lexer.py - Keywords, wrapper letters, numbers and hex strings of the policy language.
#
from enum import Enum
from binascii import unhexlify as a2b_hex
from .public_constants import MAX_DECIMAL
from .exceptions import PolicySyntaxError, PolicyRangeError


class Token(Enum):
    # top-level / descriptor functions
    SH = "sh"
    WSH = "wsh"
    PKH = "pkh"
    WPKH = "wpkh"
    MULTI = "multi"
    SORTEDMULTI = "sortedmulti"
    TR = "tr"

    # miniscript fragments (except wrappers)
    JUST_0 = "0"
    JUST_1 = "1"
    PK = "pk"
    PK_K = "pk_k"
    PK_H = "pk_h"
    OLDER = "older"
    AFTER = "after"
    SHA256 = "sha256"
    HASH256 = "hash256"
    RIPEMD160 = "ripemd160"
    HASH160 = "hash160"
    ANDOR = "andor"
    AND_V = "and_v"
    AND_B = "and_b"
    AND_N = "and_n"
    OR_B = "or_b"
    OR_C = "or_c"
    OR_D = "or_d"
    OR_I = "or_i"
    THRESH = "thresh"

    # wrappers: only ever produced by read_wrappers()
    A = "a:"
    S = "s:"
    C = "c:"
    T = "t:"
    D = "d:"
    V = "v:"
    J = "j:"
    N = "n:"
    L = "l:"
    U = "u:"

    INVALID = ""

    @property
    def is_wrapper(self):
        return self.value.endswith(':')


WRAPPER_LETTERS = "acdjlnstuv"

KNOWN_TOKENS = {t.value: t for t in Token if t.value and not t.is_wrapper}
WRAPPER_TOKENS = {letter: Token(letter + ':') for letter in WRAPPER_LETTERS}

# longest keyword: "sortedmulti"
MAX_TOKEN_LENGTH = max(len(k) for k in KNOWN_TOKENS)

DIGITS = "0123456789"
LOWER_HEX = b"0123456789abcdef"


def is_alphanumeric(c):
    return c is not None and c.isascii() and c.isalnum()

def is_token_char(c):
    return is_alphanumeric(c) or c == '_'

def consume_character(s, expected):
    return s.consume(expected)

def expect_character(s, expected):
    # the next character must be `expected`
    if not s.consume(expected):
        got = s.peek()
        raise PolicySyntaxError("Expected '%s', got %s"
                                    % (expected, repr(got) if got else 'end of input'))

def read_token(s, max_len=MAX_TOKEN_LENGTH):
    # up to max_len chars of [a-zA-Z0-9_]
    word = ''
    while len(word) < max_len and is_token_char(s.peek()):
        word += s.peek()
        s.seek_cur(1)
    return word

def parse_token(s):
    # next word, as one of the known keywords, or Token.INVALID
    word = read_token(s)
    if not word:
        return Token.INVALID
    return KNOWN_TOKENS.get(word, Token.INVALID)

def read_wrappers(s):
    # Lookahead for a run of wrapper letters followed by ':'. Only then are the
    # letters (and the colon) consumed; otherwise nothing is, and the letters
    # will be read again as part of a keyword.
    n = 0
    while True:
        c = s.peek_n(n)
        if c is not None and c in WRAPPER_LETTERS:
            n += 1
        else:
            break

    if c != ':':
        return []

    if n == 0:
        raise PolicySyntaxError("Expected wrapper letters before ':'")

    rv = [WRAPPER_TOKENS[c] for c in s.read_str(n)]
    s.seek_cur(1)       # skip ":"
    return rv

def parse_unsigned_decimal(s):
    # Digits up to the first non-digit. Leading zeros are not allowed.
    result = 0
    digits_read = 0
    while s.peek() is not None and s.peek() in DIGITS:
        digits_read += 1
        if digits_read == 2 and result == 0:
            # if the first digit was a 0, then it should be the only digit
            raise PolicySyntaxError("Leading zeros not allowed")

        result = 10 * result + int(s.peek())
        if result > MAX_DECIMAL:
            raise PolicyRangeError("Number too large")

        s.seek_cur(1)

    if not digits_read:
        raise PolicySyntaxError("Expected a number")

    return result

def read_hex_hash(s, n):
    # exactly 2*n lowercase hex digits, as n bytes
    if not s.can_read(2 * n):
        raise PolicyRangeError("Expected %d hex digits" % (2 * n))

    raw = s.read(2 * n)
    if any(c not in LOWER_HEX for c in raw):
        raise PolicyRangeError("Expected %d lowercase hex digits" % (2 * n))

    return a2b_hex(raw)

# EOF
