"""vault_deposit package root.

Prepare validated ERC-4626 vault deposit transactions.

- :py:func:`vault_deposit.deposit.deposit` is the entry point
- :py:mod:`vault_deposit.reader` and :py:mod:`vault_deposit.encoder` define the chain access seams

"""

import sys


#: Minimum required Python version to run this package
MIN_PYTHON_VERSION = (3, 10)


def _check_python_version():
    """Try early abort if the Python version is too old."""

    # Use Python tuple comparison for version numbers
    # https://stackoverflow.com/a/1093331/315168
    if sys.version_info < MIN_PYTHON_VERSION:
        raise RuntimeError(f"web3-vault-deposit needs Python {MIN_PYTHON_VERSION[0]}.{MIN_PYTHON_VERSION[1]} or later")


_check_python_version()
