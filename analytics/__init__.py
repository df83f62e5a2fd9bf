"""
Monad network analytics backend.

Periodically generates (or fetches) network, transaction, validator and
dapp data, keeps it in a durable store and serves it through a cached
read API.
"""

__version__ = "1.0.0"
