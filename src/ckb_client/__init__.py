"""
CKB Python SDK

Client SDK for the CKB cell ledger: build transactions, balance them against
the payer's cells, sign them with CKB, Bitcoin-style or Ethereum-style keys and
submit them to a node over JSON-RPC.
"""

# Core model and codec
from .enums import *
from .ckb import *
from .codec import Hasher, HasherFinalizedError, blake160, ckb_hash, molecule
from .address import Address

# Runtime components
from .runtime.errors import *
from .runtime.codec import bytes_from, hex_from, num_from, num_to_hex
from .config import ClientConfig

# Clients
from .client import *

# Transaction completion and signing
from .tx import *
from .signers import *

__version__ = "0.1.0"
