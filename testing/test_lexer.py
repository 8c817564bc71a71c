# (c) Copyright 2025 by Coinkite Inc. This file is covered by license found in COPYING-CC.
#
# Tokens, numbers, hex strings; and the Cursor/Arena they work on.
#
import pytest
from policymap.cursor import Cursor
from policymap.arena import Arena, align_to
from policymap.lexer import (Token, parse_token, read_token, read_wrappers, expect_character,
                             parse_unsigned_decimal, read_hex_hash, KNOWN_TOKENS, MAX_TOKEN_LENGTH)
from policymap.miniscript import Just0, Pkh, KeyPlaceholder
from policymap.exceptions import PolicySyntaxError, PolicyRangeError, CapacityExceeded
from constants import H32, H20


@pytest.mark.parametrize("word", sorted(KNOWN_TOKENS))
def test_known_tokens(word):
    s = Cursor(word + "(")
    assert parse_token(s) == KNOWN_TOKENS[word]
    assert s.peek() == '('

def test_token_table():
    assert MAX_TOKEN_LENGTH == len("sortedmulti")
    assert not any(t.is_wrapper for t in KNOWN_TOKENS.values())
    assert Token.V.is_wrapper
    assert "" not in KNOWN_TOKENS

@pytest.mark.parametrize("text", ["foo(@0)", "PKH(@0)", "(@0)", "", "pk_x(@0)", "multi2(1,@0)"])
def test_unknown_tokens(text):
    assert parse_token(Cursor(text)) == Token.INVALID

def test_token_length_limit():
    s = Cursor("sortedmultisig(")
    assert read_token(s) == "sortedmulti"
    assert s.offset == MAX_TOKEN_LENGTH

@pytest.mark.parametrize("text, expect, offset", [
    ("vc:pk_k(@0)", [Token.V, Token.C], 3),
    ("sln:older(12960)", [Token.S, Token.L, Token.N], 4),
    ("pk(@0)", [], 0),
    ("and_v(v:pk(@0),1)", [], 0),
    ("sha256(ab)", [], 0),
    ("x:pk(@0)", [], 0),
    ("0", [], 0),
    ("", [], 0),
])
def test_read_wrappers(text, expect, offset):
    s = Cursor(text)
    assert read_wrappers(s) == expect
    assert s.offset == offset

def test_wrappers_need_letters():
    with pytest.raises(PolicySyntaxError):
        read_wrappers(Cursor(":pk(@0)"))

@pytest.mark.parametrize("text, value, offset", [
    ("0", 0, 1),
    ("7)", 7, 1),
    ("123,@0", 123, 3),
    ("4294967295", 0xffffffff, 10),
    ("12960)", 12960, 5),
])
def test_decimal(text, value, offset):
    s = Cursor(text)
    assert parse_unsigned_decimal(s) == value
    assert s.offset == offset

@pytest.mark.parametrize("text, err", [
    ("01", PolicySyntaxError),
    ("00", PolicySyntaxError),
    ("", PolicySyntaxError),
    ("x1", PolicySyntaxError),
    ("-1", PolicySyntaxError),
    ("4294967296", PolicyRangeError),
    ("99999999999999999999", PolicyRangeError),
])
def test_decimal_fails(text, err):
    with pytest.raises(err):
        parse_unsigned_decimal(Cursor(text))

def test_hex_hash():
    s = Cursor(H32 + ")")
    assert read_hex_hash(s, 32) == bytes.fromhex(H32)
    assert s.peek() == ')'

    assert read_hex_hash(Cursor(H20), 20) == bytes.fromhex(H20)

@pytest.mark.parametrize("text, n", [
    (H32.upper(), 32),      # upper case not accepted
    (H32[:-1], 32),         # short
    (H20[:-2] + "zz", 20),
    ("", 20),
])
def test_hex_hash_fails(text, n):
    with pytest.raises(PolicyRangeError):
        read_hex_hash(Cursor(text), n)

def test_expect_character():
    s = Cursor("(,")
    expect_character(s, '(')
    with pytest.raises(PolicySyntaxError, match=r"Expected '\)'"):
        expect_character(s, ')')
    expect_character(s, ',')
    with pytest.raises(PolicySyntaxError, match="end of input"):
        expect_character(s, ')')


def test_cursor():
    s = Cursor(b"abc")
    assert len(s) == 3 and s.remaining == 3
    assert s.peek() == 'a'
    assert s.peek_n(2) == 'c'
    assert s.peek_n(3) is None
    assert s.read(2) == b"ab"
    assert s.rest() == b"c"
    assert s.read_u8() == ord('c')
    assert s.exhausted
    assert s.peek() is None

    with pytest.raises(PolicySyntaxError):
        s.read(1)

def test_cursor_input():
    assert Cursor("pk(@0)").rest() == b"pk(@0)"
    assert Cursor(bytearray(b"1")).read_str(1) == "1"

    with pytest.raises(PolicySyntaxError):
        Cursor("pk(@0)€")


@pytest.mark.parametrize("n, expect", [(0, 0), (1, 4), (4, 4), (5, 8), (12, 12), (13, 16)])
def test_align(n, expect):
    assert align_to(n) == expect

def test_arena():
    a = Arena(24)
    h = a.alloc(Just0())
    assert h == 0 and a.used == 8 and a.free == 16
    h2 = a.alloc(Pkh(KeyPlaceholder(0)))
    assert h2 == 1 and a.free == 4
    assert isinstance(a[h2], Pkh)
    assert len(a) == 2

    with pytest.raises(CapacityExceeded):
        a.alloc(Just0())
    # failed allocation changes nothing
    assert len(a) == 2 and a.free == 4

    with pytest.raises(IndexError):
        a[2]

    a.reset()
    assert len(a) == 0 and a.free == 24

# EOF
