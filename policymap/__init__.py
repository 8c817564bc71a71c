# (c) Copyright 2025 by Coinkite Inc. This file is covered by license found in COPYING-CC.
#
# policymap - Wallet policy templates: parser, miniscript type checker and
# registration record.
#
__version__ = '1.0'

from .exceptions import (PolicyError, PolicySyntaxError, PolicyRangeError, NestingError,
                         MiniscriptTypeError, CapacityExceeded)
from .cursor import Cursor
from .arena import Arena
from .miniscript import TypeFlags, NOT_MINISCRIPT, KeyPlaceholder
from .policy import PolicyMap, parse_policy_map
from .key_info import KeyInfo, parse_key_info
from .wallet import WalletPolicyHeader, WalletPolicy
