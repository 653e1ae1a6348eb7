"""Per-epoch measurement modules: average TPS, confirmation latency and per-transaction details."""