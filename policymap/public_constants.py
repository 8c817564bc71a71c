# (c) Copyright 2025 by Coinkite Inc. This file is covered by license found in COPYING-CC.
#
# public_constants.py - Limits and magic values shared by the parser and the wallet codec.
#
# A host build may raise these, but every one of them must stay finite.
#

# first byte of a serialized wallet policy
WALLET_POLICY_VERSION_V1 = 0x01         # template text carried inline
WALLET_POLICY_VERSION_V2 = 0x02         # only sha256(template) is carried

KNOWN_WALLET_POLICY_VERSIONS = (WALLET_POLICY_VERSION_V1, WALLET_POLICY_VERSION_V2)

MAX_WALLET_NAME_LENGTH = 16
MAX_POLICY_MAP_STR_LENGTH = 256

# varint key counts above this would need more than one byte
MAX_POLICY_MAP_KEYS = 252

# keys in a multi() or sortedmulti()
MAX_POLICY_MAP_COSIGNERS = 5

# steps inside a key origin [xfp/a'/b'/...]
MAX_BIP32_PATH_STEPS = 8

# BIP-32
HARDENED = 0x80000000

# base58 xpub/tpub are 111 chars, a few exotic version bytes give 112
MIN_SERIALIZED_PUBKEY_LENGTH = 111
MAX_SERIALIZED_PUBKEY_LENGTH = 112

# nesting of SCRIPT expressions, independent of what the grammar allows
MAX_POLICY_DEPTH = 32

# bytes available to the AST of one policy
POLICY_MAP_ARENA_SIZE = 1024

# largest value parse_unsigned_decimal() will produce (a 32-bit size_t on device)
MAX_DECIMAL = 0xffffffff

# older(n) / after(n) must be below this
MAX_TIMELOCK = 0x80000000

# EOF
