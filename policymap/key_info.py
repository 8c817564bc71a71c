# (c) Copyright 2025 by Coinkite Inc. This file is covered by license found in COPYING-CC.
#
# key_info.py - One entry of the key information vector of a wallet policy:
#
#   [d34db33f/44'/0'/0']xpub6ERApfZw.../**
#
# The key origin is optional, as is the trailing wildcard. Only extended
# public keys are accepted (no hex pubkeys), and only with "'" as the
# hardened marker: descriptors are expected to be normalized by the client.
#
import logging
from .cursor import Cursor
from .lexer import (consume_character, expect_character, parse_unsigned_decimal,
                    read_hex_hash, is_alphanumeric)
from .public_constants import (HARDENED, MAX_BIP32_PATH_STEPS,
                               MIN_SERIALIZED_PUBKEY_LENGTH, MAX_SERIALIZED_PUBKEY_LENGTH)
from .exceptions import PolicyError, PolicySyntaxError, PolicyRangeError
from .utils import B2A, keypath_to_str

logger = logging.getLogger(__name__)

WILDCARD_SUFFIX = b"/**"


class KeyInfo:
    def __init__(self, ext_pubkey, fingerprint=None, derivation=None, has_wildcard=False):
        self.ext_pubkey = ext_pubkey
        self.master_key_fingerprint = fingerprint
        self.master_key_derivation = list(derivation or [])
        self.has_wildcard = has_wildcard

    @property
    def has_key_origin(self):
        return self.master_key_fingerprint is not None

    def __eq__(self, other):
        if not isinstance(other, KeyInfo):
            return NotImplemented
        return self.to_string() == other.to_string()

    def __hash__(self):
        return hash(self.to_string())

    def __repr__(self):
        return '<KeyInfo %s>' % self.to_string()

    def derivation_steps(self):
        # [(index, hardened), ...]
        return [(i & (HARDENED - 1), bool(i & HARDENED))
                    for i in self.master_key_derivation]

    def origin_string(self):
        if not self.has_key_origin:
            return ''
        rv = B2A(self.master_key_fingerprint)
        if self.master_key_derivation:
            rv += keypath_to_str(self.master_key_derivation, prefix='/')
        return '[%s]' % rv

    def to_string(self):
        rv = self.origin_string() + self.ext_pubkey
        if self.has_wildcard:
            rv += WILDCARD_SUFFIX.decode()
        return rv

    __str__ = to_string

    @classmethod
    def from_string(cls, s):
        try:
            return parse_key_info(Cursor(s))
        except PolicyError as exc:
            logger.debug("rejected key info %r: %s", s, exc)
            raise


def read_derivation_step(s):
    # decimal step, with the symbol ' to mark if hardened (h is not supported)
    step = parse_unsigned_decimal(s)
    if step >= HARDENED:
        raise PolicyRangeError("Derivation step too large: %d" % step)

    if consume_character(s, "'"):
        step |= HARDENED

    return step


def parse_key_info(s):
    fingerprint = None
    derivation = []

    if consume_character(s, '['):
        if not s.can_read(9):
            # at least 8 hex digits + (closing bracket or '/')
            raise PolicyRangeError("Truncated key origin")

        fingerprint = read_hex_hash(s, 4)

        while consume_character(s, '/'):
            if len(derivation) >= MAX_BIP32_PATH_STEPS:
                raise PolicyRangeError("Too many derivation steps")

            derivation.append(read_derivation_step(s))

        expect_character(s, ']')

    # the rest of the buffer is the pubkey, except possibly the final "/**"
    xpub = ''
    while len(xpub) <= MAX_SERIALIZED_PUBKEY_LENGTH and is_alphanumeric(s.peek()):
        xpub += s.peek()
        s.seek_cur(1)

    if not (MIN_SERIALIZED_PUBKEY_LENGTH <= len(xpub) <= MAX_SERIALIZED_PUBKEY_LENGTH):
        # loose sanity check; extended pubkeys are 111 or 112 characters long
        raise PolicyRangeError("Invalid extended pubkey length: %d" % len(xpub))

    has_wildcard = False
    if not s.exhausted:
        # only the final "/**" suffix may be left, and nothing after it
        if s.rest() != WILDCARD_SUFFIX:
            raise PolicySyntaxError("Unexpected text after extended pubkey: %r"
                                        % s.rest().decode('ascii', 'replace'))
        s.seek_cur(len(WILDCARD_SUFFIX))
        has_wildcard = True

    return KeyInfo(xpub, fingerprint, derivation, has_wildcard)

# EOF
