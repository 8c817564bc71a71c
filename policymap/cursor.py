# (c) Copyright 2025 by Coinkite Inc. This file is covered by license found in COPYING-CC.
#
# cursor.py - Read-only window over a byte string, with a read position.
#
# The parsers only ever move forward; peek/peek_n never consume.
#
from .exceptions import PolicySyntaxError


class Cursor:
    def __init__(self, data):
        if isinstance(data, str):
            try:
                data = data.encode('ascii')
            except UnicodeEncodeError:
                raise PolicySyntaxError('non-ASCII input')
        self.data = memoryview(data).cast('B')
        self.offset = 0

    def __len__(self):
        return len(self.data)

    def __repr__(self):
        return '<Cursor %d/%d>' % (self.offset, len(self.data))

    @property
    def remaining(self):
        return len(self.data) - self.offset

    @property
    def exhausted(self):
        return self.offset >= len(self.data)

    def can_read(self, n):
        return self.remaining >= n

    def peek(self):
        # next byte as a 1-char string, or None at the end
        return self.peek_n(0)

    def peek_n(self, n):
        # n bytes ahead of the read position, or None past the end
        pos = self.offset + n
        if pos >= len(self.data):
            return None
        return chr(self.data[pos])

    def seek_cur(self, n):
        assert 0 <= n <= self.remaining
        self.offset += n

    def read(self, n):
        if not self.can_read(n):
            raise PolicySyntaxError('unexpected end of data: need %d bytes, have %d'
                                        % (n, self.remaining))
        rv = bytes(self.data[self.offset:self.offset+n])
        self.offset += n
        return rv

    def read_u8(self):
        return self.read(1)[0]

    def read_str(self, n):
        return self.read(n).decode('ascii')

    def consume(self, expected):
        # take one byte if it is the expected character
        if self.peek() != expected:
            return False
        self.offset += 1
        return True

    def rest(self):
        # everything not read yet, without consuming it
        return bytes(self.data[self.offset:])

# EOF
