# (c) Copyright 2025 by Coinkite Inc. This file is covered by license found in COPYING-CC.
#
# desc_utils.py - Descriptor checksum, and expansion of a policy template into a descriptor.
#
import re
from .exceptions import PolicySyntaxError, PolicyRangeError
from .key_info import KeyInfo

INPUT_CHARSET = "0123456789()[],'/*abcdefgh@:$%{}IJKLMNOPQRSTUVWXYZ&+-.;<=>?!^_|~ijklmnopqrstuvwxyzABCDEFGH`#\"\\ "
CHECKSUM_CHARSET = "qpzry9x8gf2tvdw0s3jn54khce6mua7l"

PLACEHOLDER_RE = re.compile(r"@(\d+)(/\*\*)?")


def polymod(c, val):
    c0 = c >> 35
    c = ((c & 0x7ffffffff) << 5) ^ val
    if (c0 & 1):
        c ^= 0xf5dee51989
    if (c0 & 2):
        c ^= 0xa9fdca3312
    if (c0 & 4):
        c ^= 0x1bab10e32d
    if (c0 & 8):
        c ^= 0x3706b1677a
    if (c0 & 16):
        c ^= 0x644d626ffd

    return c

def descriptor_checksum(desc):
    c = 1
    cls = 0
    clscount = 0
    for ch in desc:
        pos = INPUT_CHARSET.find(ch)
        if pos == -1:
            raise PolicySyntaxError("Invalid character in descriptor: %r" % ch)

        c = polymod(c, pos & 31)
        cls = cls * 3 + (pos >> 5)
        clscount += 1
        if clscount == 3:
            c = polymod(c, cls)
            cls = 0
            clscount = 0

    if clscount > 0:
        c = polymod(c, cls)
    for j in range(0, 8):
        c = polymod(c, 0)
    c ^= 1

    return ''.join(CHECKSUM_CHARSET[(c >> (5 * (7 - j))) & 31] for j in range(8))

def append_checksum(desc):
    return desc + "#" + descriptor_checksum(desc)

def policy_to_descriptor(desc_tmplt, keys_info, checksum=False):
    # Replace each @i by the origin and xpub of keys_info[i]. Only the
    # template decides the derivation: @i/** becomes .../<0;1>/*, and a
    # key's own /** suffix is never copied.
    def key_text(m):
        i = int(m.group(1))
        if i >= len(keys_info):
            raise PolicyRangeError("Key placeholder @%d but only %d keys" % (i, len(keys_info)))

        ki = keys_info[i]
        if not isinstance(ki, KeyInfo):
            ki = KeyInfo.from_string(ki)

        rv = ki.origin_string() + ki.ext_pubkey
        if m.group(2):
            rv += "/<0;1>/*"
        return rv

    rv = PLACEHOLDER_RE.sub(key_text, desc_tmplt)
    return append_checksum(rv) if checksum else rv

# EOF
