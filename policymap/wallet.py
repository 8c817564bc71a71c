# (c) Copyright 2025 by Coinkite Inc. This file is covered by license found in COPYING-CC.
#
# wallet.py - Wallet policy registration record, and its identifier.
#
# Serialized header (version 2):
#
#   version:u8=0x02 | name_len:u8 | name | template_len:varint
#       | sha256(template):32 | n_keys:varint | keys_info_merkle_root:32
#
# Version 1 records carry the template text itself where version 2 has its
# hash. The wallet id is sha256 over exactly these bytes.
#
# The Merkle root over the key information vector is computed elsewhere;
# here it is only stored and hashed.
#
import logging
from hashlib import sha256
from .cursor import Cursor
from .key_info import KeyInfo
from .policy import parse_policy_map
from .desc_utils import policy_to_descriptor
from .serializations import ser_compact_size, deser_compact_size, ser_string
from .utils import is_printable_ascii
from .public_constants import (WALLET_POLICY_VERSION_V1, WALLET_POLICY_VERSION_V2,
                               KNOWN_WALLET_POLICY_VERSIONS, MAX_WALLET_NAME_LENGTH,
                               MAX_POLICY_MAP_STR_LENGTH, MAX_POLICY_MAP_KEYS)
from .exceptions import PolicyError, PolicySyntaxError, PolicyRangeError

logger = logging.getLogger(__name__)

HASH_LEN = 32


def check_name(name):
    if len(name) > MAX_WALLET_NAME_LENGTH:
        raise PolicyRangeError("Wallet name too long: %d > %d" % (len(name), MAX_WALLET_NAME_LENGTH))
    if not is_printable_ascii(name):
        raise PolicyRangeError("Wallet name must be printable ASCII")


class WalletPolicyHeader:
    def __init__(self, name, policy_map_hash, n_keys, keys_info_merkle_root,
                 policy_map_len=None, policy_map=None, version=WALLET_POLICY_VERSION_V2):
        self.version = version
        self.name = name
        self.policy_map = policy_map
        self.policy_map_len = len(policy_map) if policy_map_len is None else policy_map_len
        self.policy_map_hash = bytes(policy_map_hash)
        self.n_keys = n_keys
        self.keys_info_merkle_root = bytes(keys_info_merkle_root)

        self.validate()

    def validate(self):
        if self.version not in KNOWN_WALLET_POLICY_VERSIONS:
            raise PolicySyntaxError("Unknown wallet policy version: 0x%02x" % self.version)

        check_name(self.name)

        if self.policy_map_len > MAX_POLICY_MAP_STR_LENGTH:
            raise PolicyRangeError("Policy template too long: %d > %d"
                                        % (self.policy_map_len, MAX_POLICY_MAP_STR_LENGTH))

        if self.version == WALLET_POLICY_VERSION_V1 and self.policy_map is None:
            raise PolicySyntaxError("Version 1 records need the template text")

        if self.policy_map is not None:
            if not self.policy_map.isascii():
                raise PolicyRangeError("Policy template must be ASCII")
            if len(self.policy_map) != self.policy_map_len:
                raise PolicyRangeError("Policy template length mismatch: %d != %d"
                                            % (len(self.policy_map), self.policy_map_len))
            if sha256(self.policy_map.encode()).digest() != self.policy_map_hash:
                raise PolicyRangeError("Policy template does not match its hash")

        if not (0 <= self.n_keys <= MAX_POLICY_MAP_KEYS):
            raise PolicyRangeError("Too many keys: %d" % self.n_keys)

        if len(self.policy_map_hash) != HASH_LEN or len(self.keys_info_merkle_root) != HASH_LEN:
            raise PolicyRangeError("Hashes must be 32 bytes")

    @property
    def name_len(self):
        return len(self.name)

    def __eq__(self, other):
        if not isinstance(other, WalletPolicyHeader):
            return NotImplemented
        return self.serialize() == other.serialize()

    def __hash__(self):
        return hash(self.serialize())

    def __repr__(self):
        return '<WalletPolicyHeader v%d %r keys=%d>' % (self.version, self.name, self.n_keys)

    @classmethod
    def from_template(cls, name, policy_map, n_keys, keys_info_merkle_root,
                      version=WALLET_POLICY_VERSION_V2):
        return cls(name, sha256(policy_map.encode()).digest(), n_keys, keys_info_merkle_root,
                   policy_map=policy_map, version=version)

    def serialize(self):
        rv = bytes([self.version])
        rv += ser_string(self.name.encode())
        if self.version == WALLET_POLICY_VERSION_V1:
            rv += ser_string(self.policy_map.encode())
        else:
            rv += ser_compact_size(self.policy_map_len)
            rv += self.policy_map_hash
        rv += ser_compact_size(self.n_keys)
        rv += self.keys_info_merkle_root
        return rv

    def wallet_id(self):
        return sha256(self.serialize()).digest()

    @classmethod
    def deserialize(cls, s):
        version = s.read_u8()
        if version not in KNOWN_WALLET_POLICY_VERSIONS:
            raise PolicySyntaxError("Unknown wallet policy version: 0x%02x" % version)

        name_len = s.read_u8()
        if name_len > MAX_WALLET_NAME_LENGTH:
            raise PolicyRangeError("Wallet name too long: %d" % name_len)
        name = s.read(name_len)
        if not name.isascii():
            raise PolicyRangeError("Wallet name must be printable ASCII")
        name = name.decode()

        policy_map_len = deser_compact_size(s)
        if policy_map_len > MAX_POLICY_MAP_STR_LENGTH:
            raise PolicyRangeError("Policy template too long: %d" % policy_map_len)

        policy_map = None
        if version == WALLET_POLICY_VERSION_V1:
            raw = s.read(policy_map_len)
            if not raw.isascii():
                raise PolicySyntaxError("Policy template must be ASCII")
            policy_map = raw.decode()
            policy_map_hash = sha256(raw).digest()
        else:
            policy_map_hash = s.read(HASH_LEN)

        n_keys = deser_compact_size(s)
        if n_keys > MAX_POLICY_MAP_KEYS:
            raise PolicyRangeError("Too many keys: %d" % n_keys)

        keys_info_merkle_root = s.read(HASH_LEN)

        return cls(name, policy_map_hash, n_keys, keys_info_merkle_root,
                   policy_map_len=policy_map_len, policy_map=policy_map, version=version)

    @classmethod
    def from_bytes(cls, data):
        # whole record, with nothing after it
        s = Cursor(data)
        try:
            rv = cls.deserialize(s)
            if not s.exhausted:
                raise PolicySyntaxError("%d unexpected bytes after wallet policy" % s.remaining)
        except PolicyError as exc:
            logger.debug("rejected wallet policy header: %s", exc)
            raise
        return rv


class WalletPolicy:
    # A named descriptor template together with its key information vector.
    def __init__(self, name, descriptor_template, keys_info):
        self.name = name
        self.descriptor_template = descriptor_template
        self.keys_info = [k if isinstance(k, KeyInfo) else KeyInfo.from_string(k)
                            for k in keys_info]

    def __repr__(self):
        return '<WalletPolicy %r %s>' % (self.name, self.descriptor_template)

    @property
    def n_keys(self):
        return len(self.keys_info)

    def parse(self, arena=None):
        return parse_policy_map(self.descriptor_template, arena=arena)

    def validate(self, arena=None):
        check_name(self.name)

        if len(self.descriptor_template) > MAX_POLICY_MAP_STR_LENGTH:
            raise PolicyRangeError("Policy template too long: %d" % len(self.descriptor_template))

        if self.n_keys > MAX_POLICY_MAP_KEYS:
            raise PolicyRangeError("Too many keys: %d" % self.n_keys)

        policy = self.parse(arena)

        # placeholders: first uses must be @0, @1, ... in order, and every key used
        seen = []
        for kp in policy.key_placeholders():
            if kp.index not in seen:
                seen.append(kp.index)

        if seen != list(range(len(seen))):
            raise PolicyRangeError("Key placeholders out of order: %s"
                                        % ','.join('@%d' % i for i in seen))
        if len(seen) != self.n_keys:
            raise PolicyRangeError("Template uses %d keys, but %d given" % (len(seen), self.n_keys))

        return policy

    def header(self, keys_info_merkle_root, version=WALLET_POLICY_VERSION_V2):
        return WalletPolicyHeader.from_template(self.name, self.descriptor_template,
                                                self.n_keys, keys_info_merkle_root,
                                                version=version)

    def wallet_id(self, keys_info_merkle_root):
        return self.header(keys_info_merkle_root).wallet_id()

    def to_descriptor(self, checksum=True):
        return policy_to_descriptor(self.descriptor_template, self.keys_info, checksum=checksum)

# EOF
