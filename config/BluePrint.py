# platform fee (basis points)
HUNDRED_PERCENT = 100_00
ONE_PERCENT = HUNDRED_PERCENT // 100


PARAMS = {
    "eth": {
        # marketplace
        "PLATFORM_FEE": 1 * ONE_PERCENT,
    },
    "local": {
        # marketplace
        "PLATFORM_FEE": 1 * ONE_PERCENT,
    },
}


INTEGRATION_ADDYS = {
    "eth": {
        # receives marketplace + launchpad ownership, marketplace admin
        "OWNER": "0xeFfe75B1574Bdd2FE0Bc955b57e4f82A2BAD6bF9",
    },
    "local": {
        "OWNER": "0xeFfe75B1574Bdd2FE0Bc955b57e4f82A2BAD6bF9",
    },
}
