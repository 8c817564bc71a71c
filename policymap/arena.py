# (c) Copyright 2025 by Coinkite Inc. This file is covered by license found in COPYING-CC.
#
# arena.py - Fixed-size bump allocator that holds the nodes of one parsed policy.
#
# Nodes are referenced by integer handles. Nothing is freed one at a time: the
# whole arena is reset (or dropped) between independent parses.
#
from .public_constants import POLICY_MAP_ARENA_SIZE
from .exceptions import CapacityExceeded

# every record starts on a word boundary
ALIGNMENT = 4


def align_to(n, alignment=ALIGNMENT):
    # align to # of bytes (a power of two)
    return (n + alignment - 1) & ~(alignment-1)


class Arena:
    def __init__(self, capacity=POLICY_MAP_ARENA_SIZE):
        assert capacity > 0
        self.capacity = capacity
        self.reset()

    def reset(self):
        self.nodes = []
        self.used = 0

    @property
    def free(self):
        return self.capacity - self.used

    def __len__(self):
        return len(self.nodes)

    def __getitem__(self, handle):
        if not (0 <= handle < len(self.nodes)):
            raise IndexError('bad node handle: %r' % handle)
        return self.nodes[handle]

    def alloc(self, node):
        # charge the node's on-device record size; all or nothing
        size = align_to(node.record_size())
        if size > self.free:
            raise CapacityExceeded('out of memory: need %d bytes, %d left of %d'
                                        % (size, self.free, self.capacity))
        self.used += size
        self.nodes.append(node)
        return len(self.nodes) - 1

# EOF
