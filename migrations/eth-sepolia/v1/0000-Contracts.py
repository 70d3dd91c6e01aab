from scripts.utils.migration import Migration


def migrate(migration: Migration):
    migration.log.h2("Marketplace, LaunchPad, Multicall")

    marketplace = migration.deploy("YFIAGNftMarketplace")
    migration.log.info(f"YFIAGNftMarketplace deployed to: {marketplace.address}")

    launch_pad = migration.deploy("YFIAGLaunchPad")

    multicall = migration.deploy("Multicall")
    migration.log.info(f"Multicall deployed to: {multicall.address}")

    migration.log.info(f"Launchpad deployed to: {launch_pad.address}")
