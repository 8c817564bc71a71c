# (c) Copyright 2025 by Coinkite Inc. This file is covered by license found in COPYING-CC.
#
import pytest
from policymap.arena import Arena
from policymap.policy import parse_policy_map
from policymap.wallet import WalletPolicy
from constants import XPUBS


@pytest.fixture
def parse():
    # parse a template into a fresh arena, return the PolicyMap
    def doit(template, **kws):
        return parse_policy_map(template, **kws)
    return doit

@pytest.fixture
def small_arena():
    def doit(capacity):
        return Arena(capacity)
    return doit

@pytest.fixture
def origin_keys():
    # key information vector: n keys, each with a distinct key origin
    def doit(n):
        return ["[%08x/48'/0'/0'/2']%s" % (0x0f056943 + i, XPUBS[i % len(XPUBS)])
                    for i in range(n)]
    return doit

@pytest.fixture
def make_policy(origin_keys):
    def doit(template, n_keys, name='Test'):
        return WalletPolicy(name, template, origin_keys(n_keys))
    return doit

# EOF
