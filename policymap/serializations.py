# (c) Copyright 2025 by Coinkite Inc. This file is covered by license found in COPYING-CC.
#
# serializations.py - Bitcoin "compact size" integers, as used by the wallet policy record.
#
import struct


def ser_compact_size(l):
    if l < 253:
        return struct.pack("B", l)
    elif l < 0x10000:
        return struct.pack("<BH", 253, l)
    elif l < 0x100000000:
        return struct.pack("<BI", 254, l)
    else:
        return struct.pack("<BQ", 255, l)

def deser_compact_size(f):
    # f is a Cursor; short reads raise
    nit = f.read_u8()
    if nit == 253:
        nit = struct.unpack("<H", f.read(2))[0]
    elif nit == 254:
        nit = struct.unpack("<I", f.read(4))[0]
    elif nit == 255:
        nit = struct.unpack("<Q", f.read(8))[0]
    return nit


def ser_string(s):
    return ser_compact_size(len(s)) + s


# EOF
