import json
import os
import time
from scripts.utils import log
from eth_account import Account
import subprocess
from eth_abi.abi import encode
import dotenv

dotenv.load_dotenv()

# Define constants for directories
CONTRACTS_DIR = "./contracts"
INTERFACES_DIR = "./interfaces"


TEST_PRIVATE_KEY = '0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80'

RETRY_DELAY = 3


def load_vyper_files(directories=[CONTRACTS_DIR, INTERFACES_DIR]):
    """
    Load all Vyper files from the specified directories and their subdirectories.
    Returns a `{contract name: relative path}` mapping.
    """
    vyper_files = {}

    for directory in directories:
        if not os.path.exists(directory):
            continue

        for root, _, files in os.walk(directory):
            for file in files:
                if file.endswith('.vy'):
                    rel_path = os.path.relpath(os.path.join(root, file))
                    vyper_files[file[:-3]] = rel_path

    return vyper_files


def get_account(accountName, allow_test_key=False):
    """
    Loads the deployer from `<accountName>_PRIVATE_KEY`. The public test key is
    only used as a fallback when `allow_test_key` is set (local chain or fork).
    """
    log.h1(f'Connecting to deployer account {accountName}')

    accountKey = os.environ.get(f'{accountName}_PRIVATE_KEY')
    if not accountKey:
        if not allow_test_key:
            raise ValueError(
                f'`{accountName}_PRIVATE_KEY` is not set; the public test key is only allowed on the local chain or a fork')
        log.info(f'`{accountName}_PRIVATE_KEY` not set, using local test key')
    account = Account.from_key(
        accountKey if accountKey else TEST_PRIVATE_KEY)
    log.h2(f'Deployer account {accountName} connected')

    return account


def execute_transaction(transaction, *args, **kwargs):
    """
    Calls `transaction` and returns its result. A single attempt is made
    unless `max_attempts` is given; the last exception is re-raised.
    """
    max_attempts = kwargs.pop("max_attempts", 1)
    attempts = 0

    while True:
        attempts += 1
        try:
            return transaction(*args, **kwargs)

        except Exception as exception:
            log.info(
                "\tTransaction Failed "
                + str(attempts)
                + " time"
                + ("s" if attempts > 1 else "")
                + (f" (Trying again in {RETRY_DELAY} seconds)" if attempts < max_attempts else "")
            )
            log.error(f"\tException: {str(exception)}\n")
            if attempts >= max_attempts:
                raise

            time.sleep(RETRY_DELAY)


def execute_vyper_json_command(file_path, command):
    cmd = ["vyper", file_path, "-f", command]
    result = subprocess.run(cmd, capture_output=True, text=True)
    if result.returncode != 0:
        raise Exception(f"Vyper compilation failed: {result.stderr}")
    try:
        return json.loads(result.stdout)
    except json.JSONDecodeError as e:
        raise Exception(f"Failed to parse JSON output from vyper: {str(e)}")


def get_vyper_abi(file_path):
    return execute_vyper_json_command(file_path, "abi")


def get_contract_abi(contract_name, contract, files):
    if getattr(contract, "abi", None):
        return contract.abi
    return get_vyper_abi(files[contract_name])


def encode_constructor_args(abi: list, args: list) -> str:
    """
    Encode constructor arguments based on the contract's ABI
    Returns hex string without '0x' prefix
    """
    constructor = next(
        (item for item in abi if item.get('type') == 'constructor'), None)
    if not constructor or not args:
        return ""

    input_types = [input_['type'] for input_ in constructor['inputs']]

    # contracts are passed by address
    processed_args = []
    for arg in args:
        if hasattr(arg, 'address'):
            processed_args.append(str(arg.address))
        else:
            processed_args.append(arg)

    encoded = encode(input_types, processed_args)
    return encoded.hex()


def deployed_contracts_manifest(contracts: dict, contract_files: dict, args: dict, files: dict):
    """
    Generate manifest file that maps each deployed contract to its address.
    """
    manifest = {}

    for contract_name, contract in contracts.items():
        if not hasattr(contract, "address"):
            manifest[contract_name] = {
                "address": contract,
            }
            continue

        file = files[contract_files[contract_name]]
        abi = get_contract_abi(contract_files[contract_name], contract, files)
        deployer = getattr(contract, "deployer", None)
        manifest[contract_name] = {
            "address": str(contract.address),
            "abi": abi,
            "solc_json": getattr(deployer, "solc_json", None),
            "args": encode_constructor_args(abi, args.get(contract_name, [])),
            "file": file,
        }

    return {"contracts": manifest}
