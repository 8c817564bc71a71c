# (c) Copyright 2025 by Coinkite Inc. This file is covered by license found in COPYING-CC.
#
# based on <http://click.pocoo.org/5/setuptools/#setuptools-integration>
#
# To use this, install with:
#
#   pip install --editable .
#
# and for the test suite:
#
#   pip install --editable '.[tests]'

from setuptools import setup, find_packages

setup(
    name='policymap',
    version='1.0',
    description='Wallet policy template parser and miniscript type checker',
    python_requires='>=3.8',
    packages=find_packages(include=['policymap', 'policymap.*']),
    install_requires=[
        'Click',
    ],
    extras_require={
        'tests': ['pytest'],
    },
    entry_points='''
        [console_scripts]
        policymap=policymap.cli:main
    ''',
)
