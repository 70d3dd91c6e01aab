import os
import sys

import boa
import boa.deployments
import click
from boa.environment import Env

from scripts.utils import log
from scripts.utils.migration_helpers import get_account, load_vyper_files
from scripts.utils.migration_runner import MigrationRunner
from scripts.utils.deploy_args import DeployArgs


MIGRATION_SCRIPTS_DIR = "./migrations"
MIGRATION_HISTORY_DIR = "./migration_history"

CHAINS = ["local", "eth-mainnet", "eth-sepolia"]

FORK_FUNDING = 10 * 10 ** 18


CLICK_PROMPTS = {
    "rpc": {
        "prompt": "What is the desired rpc?",
        "default": "",
        "help": "RPC url for the chain to deploy to. Defaults to ``.",
    },
    "environment": {
        "prompt": "Inform the environment name",
        "default": "v1",
        "help": "Environment of manifests that are written and read by migration scripts to pass state from previous migrations. Defaults to `v1`.",
    },
    "start_timestamp": {
        "prompt": "Start timestamp",
        "default": "",
        "help": "Timestamp at which to start running migrations. If none is provided, migrations resume after the latest manifest.",
    },
    "single": {
        "prompt": "Is single migration?",
        "default": False,
        "help": "Runs only the specified migration. If false, runs all the migrations starting from the specified timestamp."
    },
    "end_timestamp": {
        "prompt": "End timestamp",
        "default": "0",
        "help": "Last timestamp migration that will run. If none is provided, every later migration runs.",
        "depends": {
            "single": False
        }
    },
    "blueprint": {
        "prompt": "Blueprint",
        "default": "",
        "help": "Blueprint to use for the migration. Defaults to the chain prefix (`local` for the local chain).",
    },
    "chain": {
        "prompt": "Chain name",
        "default": "local",
        "help": "Chain name for custom configuration on the deployment (ex: eth-mainnet, eth-sepolia). Defaults to `local`",
        "type": click.Choice(CHAINS, case_sensitive=False),
    },
    "account": {
        "prompt": "Deployer account name",
        "default": "DEPLOYER",
        "help": "Account name for deployment, read from `<ACCOUNT>_PRIVATE_KEY`. Defaults to `DEPLOYER`"
    },
    "is_retry": {
        "prompt": "Reuse current logs (skip transactions already executed)?",
        "help": "Resume from the log of an unfinished migration",
        "default": False,
    },
    "manifest": {
        "prompt": "Manifest",
        "default": "current",
        "help": "Manifest to use. Defaults to `current`.",
    },
}


def param_prompt(ctx, param, value):
    param_config = CLICK_PROMPTS.get(param.name)

    if param_config is None:
        return value

    default_val = param_config.get("default")
    prompt = param_config.get("prompt")
    optional = param_config.get("optional", default_val is not None)

    if value != default_val:
        return value

    if prompt is None or (ctx.params.get("silent") and optional):
        return value

    depends = param_config.get("depends")
    if depends is not None:
        should_prompt = any(ctx.params.get(key) == expected for key, expected in depends.items())
        if not should_prompt:
            return value

    return click.prompt(
        f"{prompt} --{param.name.replace('_', '-')}",
        default=default_val,
        type=param_config.get("type"),
    )


def resolve_rpc(rpc, chain):
    if rpc:
        return rpc
    if chain == "local":
        return "boa"
    return f"https://{chain}.g.alchemy.com/v2/{os.environ.get('WEB3_ALCHEMY_API_KEY')}"


def run_migrations(migrations, deploy_args, rpc, fork, start_timestamp, end_timestamp, continue_running):
    sender = deploy_args.sender

    if rpc == 'boa':
        with boa.set_env(Env()):
            return migrations.run(
                deploy_args, start_timestamp, end_timestamp, continue_running)

    if fork:
        with boa.fork(rpc, allow_dirty=True) as env:
            env.set_balance(sender.address, FORK_FUNDING)
            log.h2('Deployer wallet funded with 10 ETH')
            return migrations.run(
                deploy_args, start_timestamp, end_timestamp, continue_running)

    with boa.set_network_env(rpc) as env:
        env.add_account(sender, force_eoa=True)
        return migrations.run(
            deploy_args, start_timestamp, end_timestamp, continue_running)


@click.command()
@click.option("--silent", is_flag=True, default=False, is_eager=True, help="Run command without prompts.")
@click.option("--fork", is_flag=True, default=False, help="Declare that the migration is running on a fork.")
@click.option(
    "--rpc",
    default=CLICK_PROMPTS["rpc"]["default"],
    help=CLICK_PROMPTS["rpc"]["help"],
    callback=param_prompt,
)
@click.option(
    "--environment",
    default=CLICK_PROMPTS["environment"]["default"],
    help=CLICK_PROMPTS["environment"]["help"],
    callback=param_prompt,
)
@click.option(
    "--start-timestamp", "-t",
    default=CLICK_PROMPTS["start_timestamp"]["default"],
    help=CLICK_PROMPTS["start_timestamp"]["help"],
    callback=param_prompt,
)
@click.option(
    "--single", "-s",
    is_flag=True,
    default=CLICK_PROMPTS["single"]["default"],
    help=CLICK_PROMPTS["single"]["help"],
    callback=param_prompt,
)
@click.option(
    "--end-timestamp", "-e",
    default=CLICK_PROMPTS["end_timestamp"]["default"],
    help=CLICK_PROMPTS["end_timestamp"]["help"],
    callback=param_prompt,
)
@click.option(
    "--chain", "-f",
    default=CLICK_PROMPTS["chain"]["default"],
    help=CLICK_PROMPTS["chain"]["help"],
    callback=param_prompt,
)
@click.option(
    "--blueprint", "-b",
    default=CLICK_PROMPTS["blueprint"]["default"],
    help=CLICK_PROMPTS["blueprint"]["help"],
    callback=param_prompt,
)
@click.option(
    "--account", "-a",
    default=CLICK_PROMPTS["account"]["default"],
    help=CLICK_PROMPTS["account"]["help"],
    callback=param_prompt,
)
@click.option(
    "--is-retry",
    is_flag=True,
    default=CLICK_PROMPTS["is_retry"]["default"],
    help=CLICK_PROMPTS["is_retry"]["help"],
    callback=param_prompt,
)
@click.option(
    "--history-dir",
    default=MIGRATION_HISTORY_DIR,
    show_default=True,
    help="Directory where manifests and transaction logs are written.",
)
def cli(
    silent,
    fork,
    is_retry,
    rpc,
    single,
    environment,
    start_timestamp,
    end_timestamp,
    chain,
    blueprint,
    account,
    history_dir,
):
    """
    Deploys the YFIAG marketplace contracts by running migration scripts.

    Migration scripts are located in `./migrations/<chain>/<environment>`.
    Their filenames are prefixed with a numeric timestamp that sets the
    order in which they run and which script to continue from in future
    runs.

    Every deployed contract is recorded in a JSON manifest under
    `<history-dir>/<chain>/<environment>`. Later migrations read the
    addresses of earlier deployments from `current-manifest.json`.

    A migration that fails leaves its transaction log behind. Running
    again with `--is-retry` skips the transactions it already executed.

    Exits with status 1 if any step fails.
    """
    try:
        final_rpc = resolve_rpc(rpc, chain)
        sender = get_account(account, allow_test_key=chain == "local" or fork)

        deploy_args = DeployArgs(
            sender, chain, ignore_logs=not is_retry, blueprint=blueprint, rpc=final_rpc)

        log.h1("Contract Migration")
        log.info(f"Connected to rpc `{final_rpc}`.")
        log.info(f"Deployer account `{sender.address}`.")
        log.info(f"Manifests are stored in `{environment}`.")
        log.info(f"Deployment arguments: {deploy_args}")
        log.info(f"Running migrations starting with timestamp {start_timestamp or '(resume)'}.")
        log.info(f"Chain: {chain}.")
        log.info(f"Fork: {fork}.")
        log.info("")
        vyper_files = load_vyper_files()
        log.info(f"Loaded {len(vyper_files)} Vyper files.")
        log.h2("Running migrations...")

        migrations = MigrationRunner(
            os.path.join(MIGRATION_SCRIPTS_DIR, chain, environment),
            os.path.join(history_dir, chain, environment),
            vyper_files
        )

        boa.deployments.set_deployments_db(
            boa.deployments.DeploymentsDB(":memory:"))

        total_gas = run_migrations(
            migrations,
            deploy_args,
            final_rpc,
            fork,
            start_timestamp or None,
            end_timestamp,
            not single,
        )
    except Exception as exception:
        log.error(f"Migration failed: {exception}")
        if exception.__cause__ is not None:
            log.error(f"Caused by: {exception.__cause__!r}")
        sys.exit(1)

    log.info(f'Total gas used: {total_gas}')

    log.info("Done.")
    log.info("")


if __name__ == "__main__":
    cli()
