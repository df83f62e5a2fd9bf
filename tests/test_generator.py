"""Tests for synthetic record generation and settings."""
import re

from analytics.config import AnalyticsSettings
from analytics.core.types import EntityKind
from analytics.generator import DAPP_CATALOG, VALIDATOR_NAMES

HEX_ADDRESS = re.compile(r"^0x[0-9a-f]{40}$")
HEX_HASH = re.compile(r"^0x[0-9a-f]{64}$")


def test_transaction_shape(generator, clock):
    tx = generator.transaction()
    assert HEX_HASH.match(tx.hash)
    assert HEX_ADDRESS.match(tx.from_address)
    assert HEX_ADDRESS.match(tx.to_address)
    assert re.match(r"^\d+\.\d{6}$", tx.value)
    assert 21_000 <= tx.gas_used <= 120_999
    assert tx.status in ("success", "failed")
    assert tx.timestamp == clock()


def test_transaction_batch_has_unique_hashes(generator):
    batch = generator.transactions(50)
    assert len({tx.hash for tx in batch}) == 50


def test_validators(generator):
    validators = generator.validators()
    assert [v.name for v in validators] == VALIDATOR_NAMES
    assert all(95 <= v.uptime <= 100 for v in validators)
    assert all(v.is_active for v in validators)
    assert generator.validators(10)[9].name == "Validator10"


def test_dapps(generator):
    dapps = generator.dapps()
    assert [d.name for d in dapps] == [name for name, _, _ in DAPP_CATALOG]
    assert dapps[0].website == "https://monadswap.monad.xyz"
    assert dapps[0].category == "DeFi"


def test_network_snapshot(generator):
    snapshot = generator.network_snapshot()
    assert 5_000_000 <= snapshot.block_height <= 5_999_999
    assert snapshot.network_hashrate.endswith(" TH/s")


def test_settings_defaults_and_env(monkeypatch):
    monkeypatch.setenv("CACHE_TTL_SECONDS", "5")
    monkeypatch.setenv("VALIDATOR_REFRESH_SECONDS", "60")
    settings = AnalyticsSettings(_env_file=None)

    assert settings.CACHE_TTL_SECONDS == 5
    assert not settings.upstream_enabled
    intervals = settings.get_refresh_intervals()
    assert intervals[EntityKind.NETWORK] == 10
    assert intervals[EntityKind.TRANSACTIONS] == 5
    assert intervals[EntityKind.VALIDATORS] == 60
    assert intervals[EntityKind.DAPPS] == 120
