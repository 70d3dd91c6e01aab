import os

import boa
from mergedeep import merge
from scripts.utils import log
from scripts.utils import json_file
from scripts.utils.deploy_args import DeployArgs
from scripts.utils.migration_helpers import (deployed_contracts_manifest,
                                             execute_transaction)


class Migration:
    """
    Context handed to the `migrate` function of a migration script.

    Every deployment and transaction goes through `_run`, which records it
    in `<timestamp>-log.json`. When a migration is rerun without
    `ignore_logs`, the steps found in that log are skipped and the
    migration continues from the first step that never completed.
    """

    def __init__(self, deploy_args: DeployArgs, files, timestamp, previous_timestamp, history_path):
        self._files = files
        self._timestamp = timestamp
        self._previous_timestamp = previous_timestamp
        self._history_path = history_path
        self._deploy_args = deploy_args
        self._count = 0
        self._transactions = []
        self._contracts = {}
        self._contract_files = {}
        self._args = {}
        self.gas = 0

        filename = self._manifest_filename('current')
        log.h3(f"Loading previous manifest {filename}")
        self._previous_manifest = json_file.load_or_default(filename)

        if self._load_log_file():
            log.h3(f"Log file {self._log_filename()} loaded ({len(self._transactions)} steps)")
        else:
            log.h3(f"No previous log file: {self._log_filename()}")

    @property
    def rpc(self):
        return self._deploy_args.rpc

    @property
    def account(self):
        return self._deploy_args.sender

    @property
    def chain(self):
        return self._deploy_args.chain

    @property
    def blueprint(self):
        return self._deploy_args.blueprint

    @property
    def log(self):
        return log

    def execute(self, transaction, *args, **kwargs):
        """
        Executes a transaction from the deployer account or skips it if it was
        already executed. Returns the function result; a skipped transaction
        returns the result recorded in the log (tuples come back as lists,
        values json cannot hold come back as strings).
        """
        kwargs.setdefault('sender', self.account.address)
        return self._run('', transaction, *args, **kwargs)

    def deploy(self, name, *args, **kwargs):
        """
        Deploys contract with given name and args or skips if already deployed
        Returns the deployed contract.
        """
        label = kwargs.pop("label", name)

        def deploy_wrapper(*args, **kwargs):
            with boa.env.prank(self.account.address):
                return boa.load(self._files[name], *args, name=label, **kwargs)

        contract = self._run(name, deploy_wrapper, *args, label=label, **kwargs)
        return self._register_contract(name, label, contract, args)

    def get_address(self, name):
        return self._previous_manifest["contracts"][name]["address"]

    def get_contract(self, name, address=None):
        file = self._previous_manifest["contracts"][name]["file"]
        return boa.load_partial(file).at(address or self.get_address(name))

    def include_contract(self, name, address):
        self._contracts[name] = address
        self._append_manifest(name)

    def end(self):
        """
        Ends the migration: the log is removed so a later run starts fresh.
        """
        if os.path.exists(self._log_filename()):
            os.remove(self._log_filename())

        log.info(f"Gas spent for migration: {self.gas}")

        return self.gas

    def _register_contract(self, name, label, contract, args):
        self._contract_files[label] = name
        self._contracts[label] = contract
        self._args[label] = args
        self._append_manifest(label)
        return contract

    def _curr_transaction(self):
        # recorded step at the current position, if the previous run got that far
        if self._count >= len(self._transactions):
            return None
        return self._transactions[self._count]

    def _describe(self, transaction, args):
        fn_ast = getattr(transaction, "fn_ast", None)
        contract = getattr(transaction, "contract", None)
        if fn_ast is not None and contract is not None:
            contract_name = getattr(contract, "contract_name", None) or "contract"
            return f"{contract_name}.{fn_ast.name} - {args}"
        return str(transaction)

    def _loggable(self, result):
        # json-native copy of a call result for the transaction log
        if result is None or isinstance(result, (bool, int, float)):
            return result
        if isinstance(result, str):
            return str(result)
        if isinstance(result, (list, tuple)):
            return [self._loggable(item) for item in result]
        return str(result)

    def _gas_used(self, contract):
        computation = getattr(contract, "_computation", None)
        if computation is None:
            return 0
        return computation.get_gas_used()

    def _run(self, contract_name, transaction, *args, **kwargs):
        next_transaction = self._count + 1
        label = kwargs.pop("label", contract_name)
        if contract_name != '':
            message = f"Deploying {label}"
        else:
            message = self._describe(transaction, args)

        log.h2(
            f"Transaction {next_transaction} for migration with timestamp {self._timestamp} - {message}"
        )

        recorded = self._curr_transaction()
        self._count += 1

        if recorded is not None:
            log.h3(f"Skipping transaction {next_transaction}")
            if contract_name != '':
                return boa.load_partial(self._files[contract_name]).at(recorded["address"])
            return recorded.get("result")

        result = execute_transaction(transaction, *args, **kwargs)

        if contract_name != '':
            self.gas += self._gas_used(result)
            log.h3(f"Contract {label} deployed at {result.address}")
            self._transactions.append({"name": message, "address": str(result.address)})
        else:
            self.gas += self._gas_used(getattr(transaction, "contract", None))
            log.h3("Transaction confirmed")
            self._transactions.append({
                "name": message,
                "result": self._loggable(result),
            })

        self._save_log_file()
        return result

    def _log_filename(self):
        return os.path.join(self._history_path, f"{self._timestamp}-log.json")

    def _manifest_filename(self, name):
        return os.path.join(self._history_path, f"{name}-manifest.json")

    def _append_manifest(self, contract_name):
        contracts = {contract_name: self._contracts[contract_name]}

        current_manifest = json_file.load_or_default(self._manifest_filename(self._timestamp))
        manifest = deployed_contracts_manifest(contracts, self._contract_files, self._args, self._files)
        merged_manifest = merge({}, self._previous_manifest, manifest)
        current_manifest = merge({}, current_manifest, manifest)
        self._previous_manifest = merged_manifest

        json_file.save(self._manifest_filename(self._timestamp), current_manifest)
        json_file.save(self._manifest_filename("current"), merged_manifest)

        log.h3(f"{contract_name} added to manifest")
        return merged_manifest

    def _load_log_file(self):
        if self._deploy_args.ignore_logs:
            return False
        try:
            logs = json_file.load(self._log_filename())
        except FileNotFoundError:
            return False
        self._transactions = logs["transactions"]
        return True

    def _save_log_file(self):
        json_file.save(
            self._log_filename(),
            {
                "timestamp": self._timestamp,
                "transactions": self._transactions,
            },
        )

    def getArgument(self, name):
        return self._deploy_args[name]
