# (c) Copyright 2025 by Coinkite Inc. This file is covered by license found in COPYING-CC.
#
# policy.py - Recursive-descent parser for wallet policy templates.
#
#   SCRIPT := sh(SCRIPT) | wsh(SCRIPT) | pkh(KP) | wpkh(KP) | tr(KP)
#           | multi(k,KP,...) | sortedmulti(k,KP,...) | <miniscript>
#   KP     := @<digits>[/**]
#
# Nodes are type-checked bottom-up as they are completed, so a template that
# parses is also a well-typed one. Any problem rejects the whole template.
#
import logging
from .cursor import Cursor
from .arena import Arena
from .lexer import (Token, parse_token, read_wrappers, expect_character, consume_character,
                    parse_unsigned_decimal, read_hex_hash)
from .miniscript import (KeyPlaceholder, WithKey, Multi,
                         Just0, Just1, Sh, Wsh, Pkh, Wpkh, Tr, Sortedmulti, Pk, PkK, PkH,
                         Older, After, Sha256, Hash256, Ripemd160, Hash160,
                         AndOr, AndV, AndB, AndN, OrB, OrC, OrD, OrI, Thresh,
                         A, S, C, T, D, V, J, N, L, U)
from .public_constants import MAX_POLICY_DEPTH, MAX_POLICY_MAP_COSIGNERS, MAX_TIMELOCK
from .exceptions import (PolicyError, PolicySyntaxError, PolicyRangeError, NestingError,
                         CapacityExceeded)

logger = logging.getLogger(__name__)

CONTEXT_WITHIN_SH = 1       # parsing a direct child of sh()
CONTEXT_WITHIN_WSH = 2      # parsing a direct child of wsh()

LEAF_CLASSES = {
    Token.JUST_0: Just0,
    Token.JUST_1: Just1,
    Token.SHA256: Sha256,
    Token.HASH256: Hash256,
    Token.RIPEMD160: Ripemd160,
    Token.HASH160: Hash160,
    Token.OLDER: Older,
    Token.AFTER: After,
}

KEY_CLASSES = {
    Token.PK: Pk,
    Token.PKH: Pkh,
    Token.PK_K: PkK,
    Token.PK_H: PkH,
    Token.WPKH: Wpkh,
    Token.TR: Tr,
}

COMBINATOR_CLASSES = {
    Token.ANDOR: AndOr,
    Token.AND_V: AndV,
    Token.AND_B: AndB,
    Token.AND_N: AndN,
    Token.OR_B: OrB,
    Token.OR_C: OrC,
    Token.OR_D: OrD,
    Token.OR_I: OrI,
}

WRAPPER_CLASSES = {
    Token.A: A, Token.S: S, Token.C: C, Token.T: T, Token.D: D,
    Token.V: V, Token.J: J, Token.N: N, Token.L: L, Token.U: U,
}


class PolicyMap:
    # Result of a successful parse: the arena and the handle of the root node.
    def __init__(self, arena, root):
        self.arena = arena
        self.root = root

    def __getitem__(self, handle):
        return self.arena[handle]

    def __repr__(self):
        return '<PolicyMap %s>' % self.to_string()

    @property
    def root_node(self):
        return self.arena[self.root]

    @property
    def flags(self):
        return self.root_node.flags

    def to_string(self):
        return self.root_node.to_string(self.arena)

    def walk(self):
        # (depth, node) pairs, parents before children, left to right
        stack = [(0, self.root)]
        while stack:
            depth, h = stack.pop()
            node = self.arena[h]
            yield depth, node
            stack.extend((depth + 1, c) for c in reversed(node.children()))

    def key_placeholders(self):
        # every @i, in the order they appear in the template
        rv = []
        for _, node in self.walk():
            if isinstance(node, WithKey):
                rv.append(node.key)
            elif isinstance(node, Multi):
                rv.extend(node.keys)
        return rv


def parse_key_placeholder(s):
    if not consume_character(s, '@'):
        raise PolicySyntaxError("Expected key placeholder '@'")

    index = parse_unsigned_decimal(s)

    has_wildcard = False
    if consume_character(s, '/'):
        # TODO: accept /<M;N>/* once the key derivation side supports it
        if not (consume_character(s, '*') and consume_character(s, '*')):
            raise PolicySyntaxError("Only /** may follow a key placeholder")
        has_wildcard = True

    return KeyPlaceholder(index, has_wildcard)


def parse_key_argument(s, token):
    # the single key placeholder of pk(), wpkh(), tr(), etc
    if s.peek() != '@':
        # a script where a key belongs is a nesting problem, not a typo
        where = s.offset
        inner = parse_token(s)
        called = (s.peek() == '(')
        s.offset = where
        if inner != Token.INVALID and called:
            raise NestingError("%s cannot contain %s" % (token.value, inner.value))

    return parse_key_placeholder(s)


def parse_child_scripts(s, arena, depth, n_children, max_depth):
    # fixed number of comma-separated SCRIPTs
    rv = []
    for i in range(n_children):
        rv.append(parse_script(s, arena, depth + 1, 0, max_depth))

        # the next character must be a comma (except after the last child)
        if i < n_children - 1:
            expect_character(s, ',')

    return rv


def parse_thresh(s, arena, depth, max_depth):
    k = parse_unsigned_decimal(s)

    # the next character must be a comma
    expect_character(s, ',')

    if k < 1:
        raise PolicyRangeError("Threshold must be at least 1")

    scripts = []
    flags = []
    while True:
        h = parse_script(s, arena, depth + 1, 0, max_depth)
        x_flags = arena[h].flags
        Thresh.check_child(len(scripts), x_flags)

        scripts.append(h)
        flags.append(x_flags)

        if not consume_character(s, ','):
            # no more scripts to parse
            break

    if k > len(scripts):
        raise PolicyRangeError("Threshold %d larger than the %d sub-scripts" % (k, len(scripts)))

    return arena.alloc(Thresh(k, scripts, flags))


def parse_multisig(s, arena, token):
    k = parse_unsigned_decimal(s)

    keys = []
    while True:
        # If the next character is a ')', we exit and leave it in the buffer
        if s.peek() == ')':
            break

        # otherwise, there must be a comma
        expect_character(s, ',')
        keys.append(parse_key_placeholder(s))

        if len(keys) > MAX_POLICY_MAP_COSIGNERS:
            raise PolicyRangeError("Too many keys in %s (max %d)"
                                        % (token.value, MAX_POLICY_MAP_COSIGNERS))

    # check integrity of k and n
    if not (1 <= k <= len(keys) <= MAX_POLICY_MAP_COSIGNERS):
        raise PolicyRangeError("Invalid k and/or n: %d of %d" % (k, len(keys)))

    cls = Sortedmulti if token == Token.SORTEDMULTI else Multi
    return arena.alloc(cls(k, keys))


def parse_script(s, arena, depth, context_flags, max_depth=MAX_POLICY_DEPTH):
    # Parse one SCRIPT expression, allocating its nodes in the arena.
    # Returns the handle of the (outermost) node.
    if depth > max_depth:
        raise CapacityExceeded("Policy nested too deeply (max %d)" % max_depth)

    # look ahead to find out if the buffer starts with wrappers, followed by a colon
    wrappers = read_wrappers(s)

    where = s.offset
    token = parse_token(s)
    if token == Token.INVALID:
        raise PolicySyntaxError("Unknown token at offset %d" % where)

    # all tokens but '0' and '1' have opening and closing parentheses
    has_parentheses = token not in (Token.JUST_0, Token.JUST_1)
    if has_parentheses:
        expect_character(s, '(')

    if token in (Token.JUST_0, Token.JUST_1):
        parsed = arena.alloc(LEAF_CLASSES[token]())

    elif token == Token.SH:
        if depth != 0:
            raise NestingError("sh can only be a top-level function")

        child = parse_script(s, arena, depth + 1, CONTEXT_WITHIN_SH, max_depth)
        parsed = arena.alloc(Sh(child))

    elif token == Token.WSH:
        if depth != 0 and not (context_flags & CONTEXT_WITHIN_SH):
            raise NestingError("wsh can only be top-level or inside sh")

        child = parse_script(s, arena, depth + 1, CONTEXT_WITHIN_WSH, max_depth)
        parsed = arena.alloc(Wsh(child))

    elif token in (Token.SHA256, Token.HASH256, Token.RIPEMD160, Token.HASH160):
        cls = LEAF_CLASSES[token]
        parsed = arena.alloc(cls(read_hex_hash(s, cls.LEN)))

    elif token in COMBINATOR_CLASSES:
        cls = COMBINATOR_CLASSES[token]
        scripts = parse_child_scripts(s, arena, depth, cls.NARGS, max_depth)
        parsed = arena.alloc(cls(scripts, [arena[h].flags for h in scripts]))

    elif token == Token.THRESH:
        parsed = parse_thresh(s, arena, depth, max_depth)

    elif token in KEY_CLASSES:
        if token == Token.WPKH:
            if depth != 0 and not (context_flags & CONTEXT_WITHIN_SH):
                raise NestingError("wpkh can only be top-level or inside sh")
        elif token == Token.TR:
            if depth > 1:
                raise NestingError("tr can only be top-level")

        parsed = arena.alloc(KEY_CLASSES[token](parse_key_argument(s, token)))

    elif token in (Token.OLDER, Token.AFTER):
        n = parse_unsigned_decimal(s)
        if not (1 <= n < MAX_TIMELOCK):
            raise PolicyRangeError("n must satisfy 1 <= n < 2^31 in %s" % token.value)

        parsed = arena.alloc(LEAF_CLASSES[token](n))

    elif token in (Token.MULTI, Token.SORTEDMULTI):
        if token == Token.SORTEDMULTI:
            # stricter than checking for sh and wsh at once, which never matches
            if not (context_flags & (CONTEXT_WITHIN_SH | CONTEXT_WITHIN_WSH)):
                raise NestingError("sortedmulti can only be directly under sh or wsh")

        parsed = parse_multisig(s, arena, token)

    else:
        raise PolicySyntaxError("Unexpected token: %s" % token.value)

    if has_parentheses:
        expect_character(s, ')')

    if depth == 0 and not s.exhausted:
        raise PolicySyntaxError("Input buffer too long: %d unexpected bytes at offset %d"
                                    % (s.remaining, s.offset))

    # Wrap the parsed node, innermost wrapper first; each wrapper's flags
    # follow from those of the node it wraps.
    for tok in reversed(wrappers):
        parsed = arena.alloc(WRAPPER_CLASSES[tok](parsed, arena[parsed].flags))

    return parsed


def parse_policy_map(template, arena=None, max_depth=MAX_POLICY_DEPTH):
    # Parse a whole template (str, bytes or Cursor). The arena, if given, is
    # reset first and belongs to the result; on error it is left empty.
    s = template if isinstance(template, Cursor) else Cursor(template)

    if arena is None:
        arena = Arena()
    else:
        arena.reset()

    try:
        root = parse_script(s, arena, 0, 0, max_depth)
    except PolicyError as exc:
        arena.reset()
        logger.debug("rejected policy at offset %d: %s", s.offset, exc)
        raise

    return PolicyMap(arena, root)

# EOF
