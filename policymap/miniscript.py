# (c) Copyright 2025 by Coinkite Inc. This file is covered by license found in COPYING-CC.
#
# Copyright (c) 2020 Stepan Snigirev MIT License embit/miniscript.py
#
# miniscript.py - Policy nodes, and the miniscript type system they obey.
#
# Every node carries TypeFlags: a base type (B, K, V or W) and the five
# modifiers z, o, n, d, u. Leaves have fixed flags; the flags of every other
# node are computed from its children's flags, never chosen, and a node
# cannot be built when its children don't meet the fragment's requirements.
#
# Nodes live in an Arena and refer to their children by handle.
#
from collections import namedtuple
from binascii import hexlify as b2a_hex
from .exceptions import MiniscriptTypeError

BASE_TYPES = "BKVW"
MODIFIERS = "zondu"


class TypeFlags(namedtuple('TypeFlags', 'is_miniscript type z o n d u')):
    __slots__ = ()

    @classmethod
    def miniscript(cls, type, props=''):
        # TypeFlags.miniscript('B', 'zdu')
        assert type in BASE_TYPES
        assert all(p in MODIFIERS for p in props), props
        return cls(True, type, *[p in props for p in MODIFIERS])

    @property
    def props(self):
        return ''.join(p for p in MODIFIERS if getattr(self, p))

    def has(self, props):
        return all(getattr(self, p) for p in props)

    def __str__(self):
        if not self.is_miniscript:
            return '-'
        return '%s/%s' % (self.type, self.props)


NOT_MINISCRIPT = TypeFlags(False, None, False, False, False, False, False)


# @i, an index into the key information vector
class KeyPlaceholder(namedtuple('KeyPlaceholder', 'index has_wildcard')):
    __slots__ = ()

    def __new__(cls, index, has_wildcard=False):
        return super().__new__(cls, index, has_wildcard)

    def to_string(self):
        return '@%d%s' % (self.index, '/**' if self.has_wildcard else '')


class Node:
    # keyword in the policy language
    NAME = None
    # bytes used by the equivalent record on the device
    SIZE = 8
    # fixed flags of leaves
    FLAGS = NOT_MINISCRIPT

    def __init__(self):
        self.flags = self.FLAGS

    def record_size(self):
        return self.SIZE

    @property
    def type(self):
        return self.flags.type

    @property
    def props(self):
        return self.flags.props

    @property
    def is_miniscript(self):
        return self.flags.is_miniscript

    def children(self):
        # handles of the child scripts, in order
        return ()

    def args_strings(self, arena):
        return [arena[h].to_string(arena) for h in self.children()]

    def to_string(self, arena):
        return '%s(%s)' % (self.NAME, ','.join(self.args_strings(arena)))

    def __repr__(self):
        return '<%s %s>' % (type(self).__name__, self.flags)

    @classmethod
    def fail(cls, msg):
        raise MiniscriptTypeError(cls.NAME, msg)

    @classmethod
    def require_miniscript(cls, *flags):
        for f in flags:
            if not f.is_miniscript:
                cls.fail("children must be miniscript")


########### Constants and leaves ##############


class Just0(Node):
    NAME = "0"
    FLAGS = TypeFlags.miniscript("B", "zdu")

    def to_string(self, arena):
        return self.NAME


class Just1(Just0):
    NAME = "1"
    FLAGS = TypeFlags.miniscript("B", "zu")


class WithKey(Node):
    # pk(KP), pkh(KP), pk_k(KP), pk_h(KP), wpkh(KP), tr(KP)
    SIZE = 12

    def __init__(self, key):
        super().__init__()
        self.key = key

    @property
    def key_index(self):
        return self.key.index

    def args_strings(self, arena):
        return [self.key.to_string()]


class Pk(WithKey):
    # pk(key) == c:pk_k(key)
    NAME = "pk"
    FLAGS = TypeFlags.miniscript("B", "ondu")


class Pkh(WithKey):
    # pkh(key) == c:pk_h(key)
    NAME = "pkh"
    FLAGS = TypeFlags.miniscript("B", "ndu")


class PkK(WithKey):
    NAME = "pk_k"
    FLAGS = TypeFlags.miniscript("K", "ondu")


class PkH(WithKey):
    NAME = "pk_h"
    FLAGS = TypeFlags.miniscript("K", "ndu")


class Wpkh(WithKey):
    # not valid in miniscript
    NAME = "wpkh"


class Tr(WithKey):
    # key path only, x-only internal key
    NAME = "tr"


class Sha256(Node):
    NAME = "sha256"
    LEN = 32
    SIZE = 8 + 32
    FLAGS = TypeFlags.miniscript("B", "zodu")

    def __init__(self, h):
        super().__init__()
        assert len(h) == self.LEN
        self.h = bytes(h)

    def args_strings(self, arena):
        return [b2a_hex(self.h).decode()]


class Hash256(Sha256):
    NAME = "hash256"


class Ripemd160(Sha256):
    NAME = "ripemd160"
    LEN = 20
    SIZE = 8 + 20


class Hash160(Ripemd160):
    NAME = "hash160"


class Older(Node):
    # <n> CHECKSEQUENCEVERIFY
    NAME = "older"
    SIZE = 12
    FLAGS = TypeFlags.miniscript("B", "z")

    def __init__(self, n):
        super().__init__()
        self.n = n

    def args_strings(self, arena):
        return ["%d" % self.n]


class After(Older):
    # <n> CHECKLOCKTIMEVERIFY
    NAME = "after"


class Multi(Node):
    # <k> <key1> ... <keyn> <n> CHECKMULTISIG
    NAME = "multi"
    SIZE = 20
    FLAGS = TypeFlags.miniscript("B", "ndu")

    def __init__(self, k, keys):
        super().__init__()
        self.k = k
        self.keys = tuple(keys)

    @property
    def n(self):
        return len(self.keys)

    @property
    def key_indexes(self):
        return [kp.index for kp in self.keys]

    def record_size(self):
        # one size_t per key index
        return self.SIZE + 4 * len(self.keys)

    def m_n(self):
        return self.k, self.n

    def args_strings(self, arena):
        return ["%d" % self.k] + [kp.to_string() for kp in self.keys]


class Sortedmulti(Multi):
    # not valid in miniscript
    NAME = "sortedmulti"
    FLAGS = NOT_MINISCRIPT


########### Script wrappers: sh() and wsh() ##############


class Sh(Node):
    NAME = "sh"
    SIZE = 12

    def __init__(self, script):
        super().__init__()
        self.script = script

    def children(self):
        return (self.script,)


class Wsh(Sh):
    NAME = "wsh"


########### Combinators ##############


class Combinator(Node):
    # fixed number of child scripts
    NARGS = 2
    SIZE = 16

    def __init__(self, scripts, child_flags):
        super().__init__()
        assert len(scripts) == len(child_flags) == self.NARGS
        self.require_miniscript(*child_flags)
        self.scripts = tuple(scripts)
        self.flags = self.type_check(*child_flags)

    def children(self):
        return self.scripts

    @classmethod
    def type_check(cls, *args):
        raise NotImplementedError


class AndOr(Combinator):
    # [X] NOTIF [Z] ELSE [Y] ENDIF
    NAME = "andor"
    NARGS = 3
    SIZE = 20

    @classmethod
    def type_check(cls, X, Y, Z):
        # X is Bdu; Y and Z are both B, K, or V
        if X.type != "B" or not X.has("du"):
            cls.fail("X should be Bdu")
        if Y.type != Z.type:
            cls.fail("Y and Z should have the same type")
        if Y.type == "W":
            cls.fail("Y and Z should be B, K or V")

        return TypeFlags(
            True, Y.type,
            z=X.z and Y.z and Z.z,
            o=(X.z and Y.o and Z.o) or (X.o and Y.z and Z.z),
            n=False,
            d=Z.d,
            u=Y.u and Z.u,
        )


class AndV(Combinator):
    # [X] [Y]
    NAME = "and_v"

    @classmethod
    def type_check(cls, X, Y):
        # X is V; Y is B, K, or V
        if X.type != "V":
            cls.fail("X should be V")
        if Y.type == "W":
            cls.fail("Y should be B, K or V")

        return TypeFlags(
            True, Y.type,
            z=X.z and Y.z,
            o=(X.z and Y.o) or (X.o and Y.z),
            n=X.n or (X.z and Y.n),
            d=False,
            u=Y.u,
        )


class AndB(Combinator):
    # [X] [Y] BOOLAND
    NAME = "and_b"

    @classmethod
    def type_check(cls, X, Y):
        # X is B; Y is W
        if X.type != "B" or Y.type != "W":
            cls.fail("X should be B and Y should be W")

        return TypeFlags(
            True, "B",
            z=X.z and Y.z,
            o=(X.z and Y.o) or (X.o and Y.z),
            n=X.n or (X.z and Y.n),
            d=X.d and Y.d,
            u=Y.u,
        )


class AndN(Combinator):
    # [X] NOTIF 0 ELSE [Y] ENDIF
    # and_n(X,Y) == andor(X,Y,1)
    NAME = "and_n"

    @classmethod
    def type_check(cls, X, Y):
        # X is Bdu; Y is B
        if X.type != "B" or not X.has("du"):
            cls.fail("X should be Bdu")
        if Y.type != "B":
            cls.fail("Y should be B")

        return TypeFlags(
            True, "B",
            z=X.z and Y.z,
            o=X.o and Y.z,
            n=False,
            d=True,
            u=Y.u,
        )


class OrB(Combinator):
    # [X] [Z] BOOLOR
    NAME = "or_b"

    @classmethod
    def type_check(cls, X, Z):
        # X is Bd; Z is Wd
        if X.type != "B" or not X.d:
            cls.fail("X should be Bd")
        if Z.type != "W" or not Z.d:
            cls.fail("Z should be Wd")

        return TypeFlags(
            True, "B",
            z=X.z and Z.z,
            o=(X.z and Z.o) or (X.o and Z.z),
            n=False,
            d=True,
            u=True,
        )


class OrC(Combinator):
    # [X] NOTIF [Z] ENDIF
    NAME = "or_c"

    @classmethod
    def type_check(cls, X, Z):
        # X is Bdu; Z is V
        if X.type != "B" or not X.has("du"):
            cls.fail("X should be Bdu")
        if Z.type != "V":
            cls.fail("Z should be V")

        return TypeFlags(
            True, "V",
            z=X.z and Z.z,
            o=X.o and Z.o,
            n=False,
            d=False,
            u=False,
        )


class OrD(Combinator):
    # [X] IFDUP NOTIF [Z] ENDIF
    NAME = "or_d"

    @classmethod
    def type_check(cls, X, Z):
        # X is Bdu; Z is B
        if X.type != "B" or not X.has("du"):
            cls.fail("X should be Bdu")
        if Z.type != "B":
            cls.fail("Z should be B")

        return TypeFlags(
            True, "B",
            z=X.z and Z.z,
            o=X.o and Z.o,
            n=False,
            d=Z.d,
            u=Z.u,
        )


class OrI(Combinator):
    # IF [X] ELSE [Z] ENDIF
    NAME = "or_i"

    @classmethod
    def type_check(cls, X, Z):
        # both are B, K, or V
        if X.type == "W":
            cls.fail("X and Z should be B, K or V")
        if X.type != Z.type:
            cls.fail("X and Z should be the same type")

        return TypeFlags(
            True, X.type,
            z=False,
            o=X.z and Z.z,
            n=False,
            d=X.d or Z.d,
            u=X.u and Z.u,
        )


class Thresh(Node):
    # [X1] [X2] ADD ... [Xn] ADD ... <k> EQUAL
    NAME = "thresh"
    SIZE = 20

    def __init__(self, k, scripts, child_flags):
        super().__init__()
        assert len(scripts) == len(child_flags)
        self.k = k
        self.scripts = tuple(scripts)
        self.flags = self.type_check(child_flags)

    @property
    def n(self):
        return len(self.scripts)

    def children(self):
        return self.scripts

    def record_size(self):
        # one list cell (script, next) per child
        return self.SIZE + 8 * len(self.scripts)

    def args_strings(self, arena):
        return ["%d" % self.k] + super().args_strings(arena)

    @classmethod
    def check_child(cls, i, X):
        # X1 is Bdu; others are Wdu
        cls.require_miniscript(X)
        if i == 0 and X.type != "B":
            cls.fail("X1 should be B")
        if i > 0 and X.type != "W":
            cls.fail("X%d should be W" % (i + 1))
        if not X.has("du"):
            cls.fail("X%d should be du" % (i + 1))

    @classmethod
    def type_check(cls, child_flags):
        count_z = count_o = 0
        for i, X in enumerate(child_flags):
            cls.check_child(i, X)
            count_z += X.z
            count_o += X.o

        n = len(child_flags)
        return TypeFlags(
            True, "B",
            z=(count_z == n),
            o=(count_z == n - 1 and count_o == 1),
            n=False,
            d=False,
            u=False,
        )


OPERATORS = [
    Just0, Just1,
    Sh, Wsh, Pkh, Wpkh, Tr, Multi, Sortedmulti,
    Pk, PkK, PkH,
    Older, After,
    Sha256, Hash256, Ripemd160, Hash160,
    AndOr, AndV, AndB, AndN, OrB, OrC, OrD, OrI, Thresh,
]
OPERATOR_NAMES = [cls.NAME for cls in OPERATORS]


########### Wrappers (single letters before a colon) ##############


class Wrapper(Node):
    SIZE = 12

    def __init__(self, script, x_flags):
        super().__init__()
        self.require_miniscript(x_flags)
        self.script = script
        self.flags = self.type_check(x_flags)

    @property
    def op(self):
        return type(self).__name__.lower()

    @property
    def NAME(self):
        return self.op + ':'

    @classmethod
    def fail(cls, msg):
        raise MiniscriptTypeError(cls.__name__.lower() + ':', msg)

    def children(self):
        return (self.script,)

    def to_string(self, arena):
        inner = arena[self.script]
        # more wrappers follow
        if isinstance(inner, Wrapper):
            return self.op + inner.to_string(arena)
        # we are the last wrapper
        return self.op + ":" + inner.to_string(arena)


class A(Wrapper):
    # TOALTSTACK [X] FROMALTSTACK
    @classmethod
    def type_check(cls, X):
        if X.type != "B":
            cls.fail("X should be B")
        return TypeFlags(True, "W", False, False, False, X.d, X.u)


class S(Wrapper):
    # SWAP [X]
    @classmethod
    def type_check(cls, X):
        if X.type != "B" or not X.o:
            cls.fail("X should be Bo")
        return TypeFlags(True, "W", False, False, False, X.d, X.u)


class C(Wrapper):
    # [X] CHECKSIG
    @classmethod
    def type_check(cls, X):
        if X.type != "K":
            cls.fail("X should be K")
        return TypeFlags(True, "B", False, X.o, X.n, X.d, True)


class T(Wrapper):
    # [X] 1
    # t:X == and_v(X,1)
    @classmethod
    def type_check(cls, X):
        if X.type != "V":
            cls.fail("X should be V")
        return TypeFlags(True, "B", X.z, X.o, X.n, False, True)


class D(Wrapper):
    # DUP IF [X] ENDIF
    @classmethod
    def type_check(cls, X):
        if X.type != "V" or not X.z:
            cls.fail("X should be Vz")
        return TypeFlags(True, "B", False, True, True, True, False)


class V(Wrapper):
    # [X] VERIFY (or VERIFY version of last opcode in [X])
    @classmethod
    def type_check(cls, X):
        if X.type != "B":
            cls.fail("X should be B")
        return TypeFlags(True, "V", X.z, X.o, X.n, False, False)


class J(Wrapper):
    # SIZE 0NOTEQUAL IF [X] ENDIF
    @classmethod
    def type_check(cls, X):
        if X.type != "B" or not X.n:
            cls.fail("X should be Bn")
        return TypeFlags(True, "B", False, X.o, True, True, X.u)


class N(Wrapper):
    # [X] 0NOTEQUAL
    @classmethod
    def type_check(cls, X):
        if X.type != "B":
            cls.fail("X should be B")
        return TypeFlags(True, "B", X.z, X.o, X.n, X.d, True)


class L(Wrapper):
    # IF 0 ELSE [X] ENDIF
    # l:X == or_i(0,X)
    @classmethod
    def type_check(cls, X):
        if X.type != "B":
            cls.fail("X should be B")
        return TypeFlags(True, "B", False, X.z, False, True, X.u)


class U(L):
    # IF [X] ELSE 0 ENDIF
    # u:X == or_i(X,0)
    pass


WRAPPERS = [A, S, C, T, D, V, J, N, L, U]
WRAPPER_NAMES = [cls.__name__.lower() for cls in WRAPPERS]

# EOF
