"""AptoMizer: portfolio, yield and chat backend for Aptos DeFi wallets."""

__version__ = "0.1.0"
