"""
Wallets app - balances and their ledger trail.

Models:
    - Wallet: Per-user balance in a single currency
    - Transaction: One record per completed money movement
    - LedgerEntry: Append-only balance_before/balance_after audit row

Services:
    - WalletService: The only writer of Wallet.balance

Note:
    Models are NOT imported here to avoid AppRegistryNotReady errors.
    Import from wallets.models and wallets.services directly.
"""
