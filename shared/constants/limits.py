from __future__ import annotations

# Daraja caps a single STK push at KES 250,000; also keeps amounts inside a Postgres INTEGER.
MAX_TRANSACTION_AMOUNT = 250_000
