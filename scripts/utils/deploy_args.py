from config.BluePrint import PARAMS, INTEGRATION_ADDYS


class BluePrint:
    def __init__(self, blueprint):
        if blueprint not in PARAMS:
            raise ValueError(f"Unknown blueprint `{blueprint}`. Available: {', '.join(PARAMS.keys())}")
        self.blueprint = blueprint
        self.PARAMS = PARAMS[blueprint]
        self.INTEGRATION_ADDYS = INTEGRATION_ADDYS[blueprint]

    def __repr__(self):
        return f"BluePrint({self.blueprint})"


def default_blueprint(chain):
    # `eth-mainnet` -> `eth`
    return "local" if chain == "local" else chain.split("-")[0]


class DeployArgs:
    def __init__(self, sender, chain, ignore_logs, blueprint, rpc):
        self.sender = sender
        self.chain = chain
        self.ignore_logs = ignore_logs
        self.blueprint = BluePrint(blueprint or default_blueprint(chain))
        self.rpc = rpc

    def __getitem__(self, name):
        return getattr(self, name)

    def __repr__(self):
        return f"DeployArgs(chain={self.chain}, blueprint={self.blueprint.blueprint}, rpc={self.rpc}, ignore_logs={self.ignore_logs})"
