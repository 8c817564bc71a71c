# (c) Copyright 2025 by Coinkite Inc. This file is covered by license found in COPYING-CC.
#
# utils.py - Small helpers for rendering fingerprints, paths and names.
#
from binascii import hexlify as b2a_hex
from .public_constants import HARDENED


def B2A(x):
    # bytes to lowercase hex string
    return b2a_hex(x).decode('ascii')

def xfp2str(xfp):
    # Standardized way to show a key fingerprint: 4 bytes, in the order
    # they appear in key origins, upper case.
    return b2a_hex(bytes(xfp)).decode().upper()

def keypath_to_str(bin_path, prefix='m/', hardened="'"):
    # take binary path, like from a key origin and convert into text notation
    rv = prefix + '/'.join(str(i & (HARDENED - 1)) + (hardened if i & HARDENED else "")
                            for i in bin_path)
    return 'm' if rv == 'm/' else rv

def is_printable_ascii(s):
    # wallet names are shown on the device: 0x20..0x7e only
    return all(32 <= ord(ch) < 127 for ch in s)

# EOF
