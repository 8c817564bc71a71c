# (c) Copyright 2025 by Coinkite Inc. This file is covered by license found in COPYING-CC.
#
# cli.py - Check wallet policy templates and registration records from the command line.
#
# To use this, install with:
#
#   pip install --editable .
#
import logging
import click
from binascii import a2b_hex, b2a_hex
from .exceptions import PolicyError
from .key_info import KeyInfo
from .policy import parse_policy_map
from .wallet import WalletPolicy, WalletPolicyHeader
from .miniscript import Wrapper
from .public_constants import WALLET_POLICY_VERSION_V1, WALLET_POLICY_VERSION_V2
from .utils import B2A, xfp2str, keypath_to_str

logger = logging.getLogger(__name__)


def decode_hash(value, what='hash'):
    try:
        rv = a2b_hex(value)
    except ValueError:
        raise click.BadParameter('%s must be hex' % what)
    if len(rv) != 32:
        raise click.BadParameter('%s must be 32 bytes' % what)
    return rv

def fail(exc):
    # one line, non-zero exit
    raise click.ClickException('%s: %s' % (type(exc).__name__, exc))


# Options we want for all commands
@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Log details of rejected input')
def main(verbose):
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING,
                        format='%(levelname)s %(name)s: %(message)s')


@main.command('parse')
@click.argument('template')
def show_policy(template):
    "Parse and type-check a descriptor template"
    try:
        policy = parse_policy_map(template)
    except PolicyError as exc:
        fail(exc)

    for depth, node in policy.walk():
        if isinstance(node, Wrapper):
            label = node.NAME
        else:
            label = node.to_string(policy.arena) if not node.children() else node.NAME
        click.echo('%s%-*s %s' % ('  ' * depth, 40 - 2 * depth, label, node.flags))

    click.echo('Canonical: %s' % policy.to_string())
    click.echo('Arena: %d nodes, %d of %d bytes' % (len(policy.arena), policy.arena.used,
                                                    policy.arena.capacity))


@main.command('key-info')
@click.argument('key')
def show_key_info(key):
    "Parse one key information expression"
    try:
        ki = KeyInfo.from_string(key)
    except PolicyError as exc:
        fail(exc)

    if ki.has_key_origin:
        click.echo('Fingerprint: %s' % xfp2str(ki.master_key_fingerprint))
        click.echo('Derivation: %s' % keypath_to_str(ki.master_key_derivation))
    else:
        click.echo('No key origin')
    click.echo('Extended pubkey: %s' % ki.ext_pubkey)
    click.echo('Wildcard: %s' % ('yes' if ki.has_wildcard else 'no'))


@main.command('register')
@click.option('--name', '-n', required=True, help='Wallet name (up to 16 chars)')
@click.option('--template', '-t', required=True, help='Descriptor template, like wsh(multi(2,@0/**,@1/**))')
@click.option('--key', '-k', 'keys', multiple=True, help='Key information, in order (repeat)')
@click.option('--keys-root', required=True, help='Merkle root of the key information vector (hex)')
@click.option('--v1', is_flag=True, help='Version 1 record: carry the template text')
def register(name, template, keys, keys_root, v1):
    "Build the registration record of a wallet policy"
    root = decode_hash(keys_root, 'keys root')
    try:
        wp = WalletPolicy(name, template, keys)
        wp.validate()
        hdr = wp.header(root, version=WALLET_POLICY_VERSION_V1 if v1 else WALLET_POLICY_VERSION_V2)
    except PolicyError as exc:
        fail(exc)

    logger.info("registered %r with %d keys", name, wp.n_keys)

    click.echo('Header: %s' % B2A(hdr.serialize()))
    click.echo('Wallet ID: %s' % B2A(hdr.wallet_id()))
    if keys:
        click.echo('Descriptor: %s' % wp.to_descriptor())


@main.command('decode')
@click.argument('hexdata')
def decode(hexdata):
    "Decode a serialized wallet policy header"
    try:
        raw = a2b_hex(hexdata.strip())
    except ValueError:
        raise click.BadParameter('must be hex')

    try:
        hdr = WalletPolicyHeader.from_bytes(raw)
    except PolicyError as exc:
        fail(exc)

    click.echo('Version: %d' % hdr.version)
    click.echo('Name: %s' % hdr.name)
    if hdr.policy_map is not None:
        click.echo('Template: %s' % hdr.policy_map)
    click.echo('Template length: %d' % hdr.policy_map_len)
    click.echo('Template hash: %s' % b2a_hex(hdr.policy_map_hash).decode())
    click.echo('Keys: %d' % hdr.n_keys)
    click.echo('Keys root: %s' % b2a_hex(hdr.keys_info_merkle_root).decode())
    click.echo('Wallet ID: %s' % B2A(hdr.wallet_id()))


if __name__ == '__main__':
    main()

# EOF
