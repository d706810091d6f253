"""Raydium sniper bot: discover, validate, buy and sell one Solana token at a time."""

__version__ = "0.1.0"
