from .mocks import (
    OTHER_PRIVATE_KEY,
    PRIVATE_KEY,
    FakeResponse,
    FakeSession,
    MockClient,
    make_cell,
    make_script,
    rpc_result,
)

__all__ = [
    "OTHER_PRIVATE_KEY",
    "PRIVATE_KEY",
    "FakeResponse",
    "FakeSession",
    "MockClient",
    "make_cell",
    "make_script",
    "rpc_result",
]
