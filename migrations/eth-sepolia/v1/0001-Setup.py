from scripts.utils.migration import Migration


def migrate(migration: Migration):
    migration.log.h2("Wire marketplace + launchpad, hand over ownership")
    owner = migration.blueprint.INTEGRATION_ADDYS["OWNER"]

    marketplace = migration.get_contract("YFIAGNftMarketplace")
    launch_pad = migration.get_contract("YFIAGLaunchPad")

    migration.execute(launch_pad.setAddressMarketplace, marketplace.address)
    migration.execute(launch_pad.transferOwnership, owner)

    migration.execute(marketplace.setPlatformFee, migration.blueprint.PARAMS["PLATFORM_FEE"])
    migration.execute(marketplace.setLaunchPad, launch_pad.address)
    migration.execute(marketplace.transferOwnership, owner)
    # deployer stays admin after the ownership transfer, so this still goes through
    migration.execute(marketplace.setAdmin, owner, True)
