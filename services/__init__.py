"""Domain services: catalog writes, card queries, imports, pricing and auth."""
