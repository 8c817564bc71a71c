# (c) Copyright 2025 by Coinkite Inc. This file is covered by license found in COPYING-CC.
#
# exceptions.py - Exceptions defined by us.
#
# Every one of these rejects the whole input: there is no partial result.
#

# base class, so callers can catch any rejected policy with one clause
class PolicyError(ValueError):
    pass

# unexpected character, missing delimiter, unknown keyword, truncated data
class PolicySyntaxError(PolicyError):
    pass

# a number or a length outside what we accept
class PolicyRangeError(PolicyError):
    pass

# operator used somewhere it may not appear (sh inside wsh, etc)
class NestingError(PolicyError):
    pass

# miniscript type rules not met
class MiniscriptTypeError(PolicyError):
    def __init__(self, fragment, msg):
        self.fragment = fragment
        super().__init__('%s: %s' % (fragment, msg))

# out of arena space, or nested too deeply
class CapacityExceeded(PolicyError):
    pass

# EOF
