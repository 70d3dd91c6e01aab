import os

import pytest
from eth_account import Account

from scripts.utils import json_file
from scripts.utils.migration import Migration
from scripts.utils.migration_helpers import TEST_PRIVATE_KEY, get_account


class Recorder:
    """Stands in for a contract function: counts calls and records the sender."""

    def __init__(self, fail_times=0):
        self.calls = []
        self.fail_times = fail_times

    def __call__(self, value, sender=None):
        if self.fail_times > 0:
            self.fail_times -= 1
            raise RuntimeError("execution reverted")
        self.calls.append((value, sender))
        return value * 2


@pytest.fixture
def createMigration(createDeployArgs, history_dir):
    def createMigration(_timestamp="5", _ignoreLogs=True):
        return Migration(createDeployArgs(_ignoreLogs=_ignoreLogs), {}, _timestamp, None, str(history_dir))
    yield createMigration


def read_log(history_dir, timestamp="5"):
    return json_file.load(str(history_dir / f"{timestamp}-log.json"))["transactions"]


def test_execute_sends_from_deployer(createMigration, deployer_account, history_dir):
    migration = createMigration()
    fn = Recorder()

    assert migration.execute(fn, 21) == 42
    assert fn.calls == [(21, deployer_account.address)]

    transactions = read_log(history_dir)
    assert len(transactions) == 1
    assert transactions[0]["result"] == 42


def test_execute_failure_propagates(createMigration, history_dir):
    migration = createMigration()
    migration.execute(Recorder(), 1)

    with pytest.raises(RuntimeError, match="execution reverted"):
        migration.execute(Recorder(fail_times=1), 2)

    # the failed step is not recorded
    assert len(read_log(history_dir)) == 1


def test_execute_retries_when_asked(createMigration, monkeypatch):
    monkeypatch.setattr("scripts.utils.migration_helpers.RETRY_DELAY", 0)
    migration = createMigration()
    fn = Recorder(fail_times=2)

    assert migration.execute(fn, 3, max_attempts=3) == 6
    assert len(fn.calls) == 1


def test_execute_gives_up_after_max_attempts(createMigration, monkeypatch):
    monkeypatch.setattr("scripts.utils.migration_helpers.RETRY_DELAY", 0)
    migration = createMigration()

    with pytest.raises(RuntimeError):
        migration.execute(Recorder(fail_times=5), 3, max_attempts=2)


def test_rerun_skips_logged_transactions(createMigration, history_dir):
    migration = createMigration()
    migration.execute(Recorder(), 1)
    migration.execute(Recorder(), 2)
    with pytest.raises(RuntimeError):
        migration.execute(Recorder(fail_times=1), 3)

    retry = createMigration(_ignoreLogs=False)
    skipped = Recorder()
    assert retry.execute(skipped, 1) == 2
    assert retry.execute(skipped, 2) == 4
    assert skipped.calls == []

    fn = Recorder()
    assert retry.execute(fn, 3) == 6
    assert len(fn.calls) == 1
    assert len(read_log(history_dir)) == 3


def test_ignore_logs_runs_everything_again(createMigration):
    migration = createMigration()
    migration.execute(Recorder(), 1)

    fn = Recorder()
    createMigration(_ignoreLogs=True).execute(fn, 1)
    assert len(fn.calls) == 1


def test_end_removes_log(createMigration, history_dir):
    migration = createMigration()
    migration.execute(Recorder(), 1)
    assert os.path.exists(history_dir / "5-log.json")

    assert migration.end() == 0
    assert not os.path.exists(history_dir / "5-log.json")


def test_include_contract(createMigration, history_dir):
    migration = createMigration()
    migration.include_contract("Owner", "0xeFfe75B1574Bdd2FE0Bc955b57e4f82A2BAD6bF9")

    assert migration.get_address("Owner") == "0xeFfe75B1574Bdd2FE0Bc955b57e4f82A2BAD6bF9"
    current = json_file.load(str(history_dir / "current-manifest.json"))
    assert current["contracts"]["Owner"]["address"] == "0xeFfe75B1574Bdd2FE0Bc955b57e4f82A2BAD6bF9"


def test_migration_exposes_deploy_args(createMigration, deployer_account):
    migration = createMigration()

    assert migration.account == deployer_account
    assert migration.chain == "local"
    assert migration.rpc == "boa"
    assert migration.blueprint.PARAMS["PLATFORM_FEE"] == 100
    assert migration.getArgument("chain") == "local"


def test_blueprint_defaults_to_chain_prefix(createDeployArgs):
    assert createDeployArgs(_chain="eth-sepolia", _rpc="http://localhost:8545").blueprint.blueprint == "eth"
    assert createDeployArgs(_chain="local").blueprint.blueprint == "local"

    with pytest.raises(ValueError):
        createDeployArgs(_blueprint="base")


def test_skipped_transaction_returns_same_value(createMigration):
    def pair(value, sender=None):
        return (value, True, None)

    fresh = createMigration(_ignoreLogs=False).execute(pair, 7)
    assert fresh == (7, True, None)

    # replayed from the log with json-native values
    assert createMigration(_ignoreLogs=False).execute(pair, 7) == [7, True, None]


# deployer account


def test_get_account_from_env(monkeypatch):
    key = "0x59c6995e998f97a5a0044966f0945389dc9e86dae88c7a8412f4603b6b78690d"
    monkeypatch.setenv("DEPLOYER_PRIVATE_KEY", key)

    assert get_account("DEPLOYER").address == Account.from_key(key).address


def test_get_account_test_key_only_when_allowed(monkeypatch):
    monkeypatch.delenv("DEPLOYER_PRIVATE_KEY", raising=False)

    with pytest.raises(ValueError, match="DEPLOYER_PRIVATE_KEY"):
        get_account("DEPLOYER")

    assert get_account("DEPLOYER", allow_test_key=True).address == Account.from_key(TEST_PRIVATE_KEY).address
