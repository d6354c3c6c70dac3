"""
BlueCarbon Registry - Chain Package
=====================================
Interazione blockchain simulata.
"""

from blue_carbon.chain.simulator import ChainSimulator, WalletConnection

__all__ = [
    "ChainSimulator",
    "WalletConnection",
]
