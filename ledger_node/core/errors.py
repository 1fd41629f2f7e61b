class LedgerError(Exception):
    """Base class for every failure raised by the ledger core."""


class MalformedInput(LedgerError, ValueError):
    # unparseable transaction, block or peer address
    pass


class PeerUnreachable(LedgerError):
    def __init__(self, address: str, reason: str):
        super().__init__(f"peer {address} unreachable: {reason}")
        self.address = address
        self.reason = reason


class InvalidChain(LedgerError):
    def __init__(self, reason: str, index: int = 0):
        super().__init__(reason)
        self.reason = reason
        self.index = index


class EmptyChain(InvalidChain):
    def __init__(self):
        super().__init__("chain has no blocks")
