# (c) Copyright 2025 by Coinkite Inc. This file is covered by license found in COPYING-CC.
#
# Parsing descriptor templates: structure, nesting rules, limits.
#
import pytest
from policymap.arena import Arena
from policymap.policy import parse_policy_map, PolicyMap
from policymap.miniscript import (NOT_MINISCRIPT, Sh, Wsh, Pkh, Wpkh, Tr, Multi, Sortedmulti,
                                  Thresh, OrD, AndV, V, Older, Pk, Sha256, Ripemd160)
from policymap.public_constants import MAX_POLICY_DEPTH
from policymap.exceptions import (PolicyError, PolicySyntaxError, PolicyRangeError,
                                  NestingError, MiniscriptTypeError, CapacityExceeded)
from constants import H32, H20

# from BIP-388, and what Liana and other wallets register
BIP388_TEMPLATES = [
    "pkh(@0/**)",
    "sh(wpkh(@0/**))",
    "wpkh(@0/**)",
    "tr(@0/**)",
    "sh(multi(1,@0/**,@1/**))",
    "sh(sortedmulti(1,@0/**,@1/**))",
    "wsh(sortedmulti(2,@0/**,@1/**))",
    "sh(wsh(sortedmulti(2,@0/**,@1/**,@2/**)))",
    "wsh(multi(2,@0/**,@1/**,@2/**,@3/**,@4/**))",
    "wsh(thresh(3,pk(@0/**),s:pk(@1/**),s:pk(@2/**),sln:older(12960)))",
    "wsh(or_d(pk(@0/**),and_v(v:pkh(@1/**),older(65535))))",
    "wsh(or_d(multi(2,@0/**,@1/**),and_v(v:thresh(1,pkh(@2/**),a:pkh(@3/**)),older(65535))))",
    "wsh(andor(pk(@0/**),older(1000),pk(@1/**)))",
    "wsh(or_i(and_v(v:pkh(@0/**),older(52560)),pk(@1/**)))",
    "sh(wsh(and_v(v:pk(@0/**),or_d(pk(@1/**),older(12960)))))",
    "wsh(and_v(v:pk(@0/**),after(1700000000)))",
    "wsh(and_v(v:pk(@0),sha256(%s)))" % H32,
    "wsh(and_v(v:pk(@0),hash160(%s)))" % H20,
    "wsh(or_b(pk(@0),a:hash256(%s)))" % H32,
    "wsh(andor(pk(@0),ripemd160(%s),and_n(pk(@1),older(144))))" % H20,
    "wsh(t:or_c(pk(@0),v:pk(@1)))",
    "wsh(and_b(pk(@0),s:pk(@1)))",
    "wsh(c:pk_k(@0))",
    "wsh(c:pk_h(@0))",
    "wsh(j:pkh(@0))",
    "wsh(n:pk(@0))",
    "wsh(or_i(pk(@0),pk(@1)))",
    "wsh(or_i(l:pk(@0),u:pk(@1)))",
    "wsh(dv:older(144))",
    "wsh(and_v(v:1,pk(@0)))",
    "wsh(or_d(0,pk(@0)))",
]


def test_pkh(parse):
    pm = parse("pkh(@0)")
    node = pm.root_node
    assert isinstance(node, Pkh)
    assert node.key_index == 0
    assert not node.key.has_wildcard
    assert node.type == "B"
    assert node.props == "ndu"
    assert str(pm.flags) == "B/ndu"

def test_sh_wpkh(parse):
    pm = parse("sh(wpkh(@0))")
    assert isinstance(pm.root_node, Sh)
    inner = pm[pm.root_node.script]
    assert isinstance(inner, Wpkh)
    assert inner.key_index == 0
    assert inner.flags == NOT_MINISCRIPT
    assert not pm.root_node.is_miniscript

def test_multi(parse):
    pm = parse("wsh(multi(2,@0,@1,@2))")
    ms = pm[pm.root_node.script]
    assert isinstance(ms, Multi)
    assert ms.k == 2
    assert ms.n == 3
    assert ms.m_n() == (2, 3)
    assert ms.key_indexes == [0, 1, 2]
    assert str(ms.flags) == "B/ndu"

def test_sortedmulti(parse):
    for t in ["sh(sortedmulti(2,@0,@1))", "wsh(sortedmulti(2,@0,@1))",
                "sh(wsh(sortedmulti(2,@0,@1)))"]:
        pm = parse(t)
        ms = [n for _, n in pm.walk() if isinstance(n, Sortedmulti)]
        assert len(ms) == 1
        assert ms[0].flags == NOT_MINISCRIPT
        assert ms[0].key_indexes == [0, 1]

@pytest.mark.parametrize("template", BIP388_TEMPLATES)
def test_canonical(parse, template):
    pm = parse(template)
    assert pm.to_string() == template

    # and again
    pm2 = parse(pm.to_string())
    assert pm2.to_string() == template
    assert [type(n) for _, n in pm2.walk()] == [type(n) for _, n in pm.walk()]
    assert pm2.flags == pm.flags

def test_bytes_input(parse):
    assert parse(b"wpkh(@0/**)").to_string() == "wpkh(@0/**)"

def test_walk(parse):
    pm = parse("wsh(or_d(pk(@0),and_v(v:pkh(@1),older(100))))")
    got = [(d, type(n)) for d, n in pm.walk()]
    assert got == [(0, Wsh), (1, OrD), (2, Pk), (2, AndV), (3, V), (4, Pkh), (3, Older)]

    assert [kp.index for kp in pm.key_placeholders()] == [0, 1]

def test_thresh(parse):
    pm = parse("thresh(2,pk(@0),s:pk(@1),s:pk(@2))")
    th = pm.root_node
    assert isinstance(th, Thresh)
    assert th.k == 2 and th.n == 3
    assert [kp.index for kp in pm.key_placeholders()] == [0, 1, 2]

def test_hash_values(parse):
    pm = parse("and_v(v:pk(@0),sha256(%s))" % H32)
    h = [n for _, n in pm.walk() if isinstance(n, Sha256)][0]
    assert h.h == bytes.fromhex(H32)

    pm = parse("and_v(v:pk(@0),ripemd160(%s))" % H20)
    h = [n for _, n in pm.walk() if isinstance(n, Ripemd160)][0]
    assert h.h == bytes.fromhex(H20)

@pytest.mark.parametrize("template, depth", [
    ("tr(@0)", 0),
    ("sh(tr(@0))", 1),
])
def test_tr(parse, template, depth):
    pm = parse(template)
    assert [d for d, n in pm.walk() if isinstance(n, Tr)] == [depth]

@pytest.mark.parametrize("template", [
    "wpkh(sh(@0))",
    "wpkh(pkh(@0))",
    "pkh(wpkh(@0))",
    "sh(sh(pkh(@0)))",
    "wsh(sh(pkh(@0)))",
    "wsh(wsh(pkh(@0)))",
    "sh(wsh(wsh(pkh(@0))))",
    "wsh(wpkh(@0))",
    "sh(wsh(wpkh(@0)))",
    "or_d(pk(@0),wpkh(@1))",
    "wsh(and_v(v:pk(@0),tr(@1)))",
    "sortedmulti(2,@0,@1)",
    "wsh(or_d(sortedmulti(1,@0,@1),pk(@2)))",
    "sh(wpkh(sortedmulti(1,@0,@1)))",
])
def test_nesting_errors(parse, template):
    with pytest.raises(NestingError):
        parse(template)

@pytest.mark.parametrize("template", [
    "multi(4,@0,@1,@2)",
    "multi(0,@0,@1)",
    "multi(2)",
    "multi(1,@0,@1,@2,@3,@4,@5)",
    "wsh(sortedmulti(3,@0,@1))",
    "thresh(0,pk(@0))",
    "thresh(2,pk(@0))",
    "thresh(4,pk(@0),s:pk(@1),s:pk(@2))",
    "older(0)",
    "after(0)",
    "older(2147483648)",
    "after(4294967295)",
    "older(4294967296)",
    "pk(@4294967296)",
    "sha256(%s)" % H32.upper(),
    "sha256(%s)" % H20,
    "ripemd160(%s)" % H20[:-1],
])
def test_range_errors(parse, template):
    with pytest.raises(PolicyRangeError):
        parse(template)

@pytest.mark.parametrize("template", [
    "",
    "foo(@0)",
    "pkh(@0)x",
    "pkh(@0))",
    "pkh(@0",
    "pkh@0",
    "pkh(x)",
    "pkh(@)",
    "pkh(@01)",
    "pkh( @0)",
    "pkh(@0/*)",
    "pkh(@0/***)",
    "pkh(@0/<0;1>/*)",
    "pkh(@0/0/*)",
    "pk(0)",
    "pk(1)",
    "pkh(0)",
    "multi(2,@0,@1",
    "multi(2 ,@0,@1)",
    "wsh(pk(@0),pk(@1))",
    "and_v(v:pk(@0))",
    "older(01)",
    "older()",
    ":pk(@0)",
    "0()",
    "1x",
    "PKH(@0)",
    "wsh(multi(2,@0,@1)) ",
])
def test_syntax_errors(parse, template):
    with pytest.raises(PolicySyntaxError):
        parse(template)

def test_error_hierarchy(parse):
    # one clause catches them all, and they are ValueErrors
    for t in ["pkh(@0", "wpkh(sh(@0))", "older(0)", "c:pk(@0)"]:
        with pytest.raises(PolicyError):
            parse(t)
        with pytest.raises(ValueError):
            parse(t)

def nested(n):
    # n levels of or_i() around a constant
    return "or_i(0," * n + "0" + ")" * n

def test_depth_limit(parse):
    pm = parse(nested(MAX_POLICY_DEPTH))
    assert max(d for d, _ in pm.walk()) == MAX_POLICY_DEPTH

    with pytest.raises(CapacityExceeded):
        parse(nested(MAX_POLICY_DEPTH + 1))

    parse(nested(3), max_depth=3)
    with pytest.raises(CapacityExceeded):
        parse(nested(4), max_depth=3)

def test_arena_capacity(parse, small_arena):
    arena = small_arena(16)
    pm = parse("pkh(@0)", arena=arena)
    assert pm.arena is arena
    assert arena.used == 12

    # needs 24 bytes
    with pytest.raises(CapacityExceeded):
        parse("wsh(pkh(@0))", arena=arena)
    # nothing partial is left behind
    assert len(arena) == 0 and arena.used == 0

    # records are word aligned: multi(1,@0) is 24, thresh with 2 children 36
    arena = small_arena(1024)
    parse("multi(1,@0)", arena=arena)
    assert arena.used == 24
    parse("thresh(1,pk(@0),s:pk(@1))", arena=arena)
    assert arena.used == 36 + 12 + 12 + 12

def test_arena_reuse():
    arena = Arena()
    pm = parse_policy_map("wpkh(@0)", arena=arena)
    assert len(arena) == 1
    pm = parse_policy_map("wsh(multi(1,@0,@1))", arena=arena)
    assert len(arena) == 2
    assert isinstance(pm, PolicyMap)
    assert pm.to_string() == "wsh(multi(1,@0,@1))"

def test_type_errors_reported(parse):
    with pytest.raises(MiniscriptTypeError) as ee:
        parse("wsh(vv:pk(@0))")
    assert ee.value.fragment == 'v:'
    assert 'v:' in str(ee.value)

    with pytest.raises(MiniscriptTypeError) as ee:
        parse("wsh(and_v(pk(@0),pk(@1)))")
    assert ee.value.fragment == 'and_v'

# EOF
