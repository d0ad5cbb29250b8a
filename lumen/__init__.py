"""
lumen: a command line wallet on top of microstellar.

Accounts, assets and plain variables are kept in a key-value store
(memory, JSON file or Redis) under a namespace, so commands can refer to
them by name:

    lumen account new alice
    lumen asset set usd USD issuer-name
    lumen pay alice bob 10 --asset usd --memotext "rent"
"""

__version__ = "0.1.0"
