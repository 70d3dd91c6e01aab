import json
import time

import requests
import vyper

from scripts.utils import log

api_url = "https://api.etherscan.io/v2/api"

# must match the compiler that produced the deployed bytecode
COMPILER_VERSION = f"vyper:{vyper.__version__.split('+')[0]}"
POLL_ATTEMPTS = 10
POLL_INTERVAL = 5

chain_ids = {
    "eth-mainnet": 1,
    "eth-sepolia": 11155111,
}


contract_base_url = {
    "eth-mainnet": "https://etherscan.io/address/",
    "eth-sepolia": "https://sepolia.etherscan.io/address/",
}


def is_contract_verified(api_key: str, contract_address: str, chain: str) -> bool:
    """Check if contract is already verified"""
    params = {
        "chainid": chain_ids[chain],
        "apikey": api_key,
        "module": "contract",
        "action": "getabi",
        "address": contract_address,
    }

    response = requests.get(api_url, params=params)
    result = response.json()

    return result.get("status") == "1"


def verify_from_manifest(api_key: str, contract_name: str, manifest_data: dict, chain: str) -> bool:
    """Verify contract using manifest data"""
    address = manifest_data["address"]
    log.info(f"Address: {address} url: {contract_base_url[chain]}{address}")

    if is_contract_verified(api_key, address, chain):
        return True

    solc_json = manifest_data.get("solc_json")
    if not solc_json:
        log.error(f"No solc_json recorded for {contract_name}")
        return False

    contract_file = next(iter(solc_json["sources"].keys()))

    chain_id = chain_ids[chain]
    params = {
        "apikey": api_key,
        "module": "contract",
        "action": "verifysourcecode",
        "sourceCode": json.dumps(solc_json),
        "contractaddress": address,
        "codeformat": "vyper-json",
        # contractfile.vy:contractname
        "contractname": f"{contract_file}:{contract_name}",
        "compilerversion": COMPILER_VERSION,
        "constructorArguements": manifest_data.get("args", ""),
        "optimizationUsed": "1",
        "runs": "200",
        "evmversion": ""
    }

    response = requests.post(api_url, params={"chainid": chain_id}, data=params)
    result = response.json()

    if result["status"] != "1":
        log.error(f"Verification submission failed: {result['result']}")
        return False

    guid = result["result"]
    log.info(f"Verification submitted. GUID: {guid}")

    check_params = {
        "chainid": chain_id,
        "apikey": api_key,
        "module": "contract",
        "action": "checkverifystatus",
        "guid": guid,
    }

    for _ in range(POLL_ATTEMPTS):
        time.sleep(POLL_INTERVAL)
        check_result = requests.get(api_url, params=check_params).json()

        if check_result["result"] == "Pass - Verified":
            log.h3(f"{contract_name} verified successfully!")
            return True
        elif check_result["result"] != "Pending in queue":
            log.error(f"Verification failed: {check_result['result']}")
            if "message" in check_result:
                log.error(f"Error message: {check_result['message']}")
            return False

    log.error("Verification timed out")
    return False
