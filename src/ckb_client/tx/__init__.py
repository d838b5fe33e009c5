"""
Transaction completion: input collection, fee and change.
"""

from .balance import ChangeFunction, TransactionBalancer

__all__ = ["ChangeFunction", "TransactionBalancer"]
