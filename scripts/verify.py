import os
import sys
import time

import click

from scripts.migrate import param_prompt, CLICK_PROMPTS, MIGRATION_HISTORY_DIR
from scripts.utils import json_file, log
from scripts.utils.verify_etherscan import chain_ids, verify_from_manifest


@click.command()
@click.option("--silent", is_flag=True, default=False, is_eager=True, help="Run command without prompts.")
@click.option(
    "--environment",
    default=CLICK_PROMPTS["environment"]["default"],
    help=CLICK_PROMPTS["environment"]["help"],
    callback=param_prompt,
)
@click.option(
    "--chain",
    default="eth-mainnet",
    type=click.Choice(list(chain_ids.keys()), case_sensitive=False),
    help="Chain the contracts were deployed to.",
)
@click.option(
    "--manifest",
    default=CLICK_PROMPTS["manifest"]["default"],
    help=CLICK_PROMPTS["manifest"]["help"],
    callback=param_prompt,
)
@click.option("--history-dir", default=MIGRATION_HISTORY_DIR, show_default=True)
def cli(silent, environment, chain, manifest, history_dir):
    """Verify deployed contracts on Etherscan"""
    manifest_path = os.path.join(history_dir, chain, environment, f"{manifest}-manifest.json")
    log.h1(f"Verifying contracts from {manifest_path}")
    if not os.path.exists(manifest_path):
        log.error(f"No manifest found at {manifest_path}")
        sys.exit(1)

    api_key = os.getenv("ETHERSCAN_API_KEY")
    if not api_key:
        log.error("ETHERSCAN_API_KEY environment variable not set")
        sys.exit(1)

    contracts = json_file.load(manifest_path)["contracts"]

    failed = []
    for contract_name, contract_data in contracts.items():
        log.h2(f"Verifying {contract_name}...")
        if verify_from_manifest(
            api_key=api_key,
            contract_name=contract_name,
            manifest_data=contract_data,
            chain=chain
        ):
            log.h3(f"✅ {contract_name} verified successfully")
        else:
            log.error(f"❌ {contract_name} verification failed")
            failed.append(contract_name)

        # etherscan rate limit
        time.sleep(1)

    if failed:
        sys.exit(1)


if __name__ == "__main__":
    cli()
