"""Domain core: entities, ports, exceptions and the pure ledger services."""
