import boa

from conf_utils import filter_logs
from constants import ZERO_ADDRESS, HUNDRED_PERCENT, OWNER, PLATFORM_FEE


def test_marketplace_deployment(marketplace, deploy3r):
    assert marketplace.owner() == deploy3r
    assert marketplace.admins(deploy3r)
    assert marketplace.platformFee() == 0
    assert marketplace.launchPad() == ZERO_ADDRESS


# platform fee


def test_set_platform_fee(marketplace, deploy3r):
    marketplace.setPlatformFee(PLATFORM_FEE, sender=deploy3r)

    log = filter_logs(marketplace, "PlatformFeeSet")[0]
    assert log.platformFee == PLATFORM_FEE
    assert marketplace.platformFee() == PLATFORM_FEE


def test_set_platform_fee_bounds(marketplace, deploy3r):
    marketplace.setPlatformFee(HUNDRED_PERCENT, sender=deploy3r)
    assert marketplace.platformFee() == HUNDRED_PERCENT

    with boa.reverts("invalid fee"):
        marketplace.setPlatformFee(HUNDRED_PERCENT + 1, sender=deploy3r)


def test_set_platform_fee_no_perms(marketplace, bob):
    with boa.reverts("no perms"):
        marketplace.setPlatformFee(PLATFORM_FEE, sender=bob)


# launchpad


def test_set_launch_pad(marketplace, launch_pad, deploy3r):
    marketplace.setLaunchPad(launch_pad, sender=deploy3r)

    log = filter_logs(marketplace, "LaunchPadSet")[0]
    assert log.launchPad == launch_pad.address
    assert marketplace.launchPad() == launch_pad.address


def test_set_launch_pad_invalid(marketplace, launch_pad, deploy3r, bob):
    with boa.reverts("invalid launchpad"):
        marketplace.setLaunchPad(ZERO_ADDRESS, sender=deploy3r)

    with boa.reverts("no perms"):
        marketplace.setLaunchPad(launch_pad, sender=bob)


# ownership


def test_transfer_ownership(marketplace, deploy3r):
    marketplace.transferOwnership(OWNER, sender=deploy3r)

    log = filter_logs(marketplace, "OwnershipTransferred")[0]
    assert log.previousOwner == deploy3r
    assert log.newOwner == OWNER
    assert marketplace.owner() == OWNER

    # previous owner lost owner-only permissions
    with boa.reverts("no perms"):
        marketplace.setPlatformFee(PLATFORM_FEE, sender=deploy3r)
    with boa.reverts("no perms"):
        marketplace.transferOwnership(deploy3r, sender=deploy3r)

    marketplace.setPlatformFee(PLATFORM_FEE, sender=OWNER)
    assert marketplace.platformFee() == PLATFORM_FEE


def test_transfer_ownership_invalid(marketplace, deploy3r, bob):
    with boa.reverts("invalid owner"):
        marketplace.transferOwnership(ZERO_ADDRESS, sender=deploy3r)

    with boa.reverts("no perms"):
        marketplace.transferOwnership(bob, sender=bob)


# admins


def test_set_admin(marketplace, deploy3r, bob):
    assert not marketplace.admins(bob)

    marketplace.setAdmin(bob, True, sender=deploy3r)

    log = filter_logs(marketplace, "AdminSet")[0]
    assert log.admin == bob
    assert log.isAdmin
    assert marketplace.admins(bob)

    # admins manage other admins
    marketplace.setAdmin(deploy3r, False, sender=bob)
    assert not marketplace.admins(deploy3r)


def test_set_admin_after_ownership_transfer(marketplace, deploy3r):
    marketplace.transferOwnership(OWNER, sender=deploy3r)

    # deployer is still an admin
    marketplace.setAdmin(OWNER, True, sender=deploy3r)
    assert marketplace.admins(OWNER)


def test_set_admin_no_perms(marketplace, deploy3r, bob, alice):
    with boa.reverts("no perms"):
        marketplace.setAdmin(alice, True, sender=bob)

    with boa.reverts("invalid admin"):
        marketplace.setAdmin(ZERO_ADDRESS, True, sender=deploy3r)
