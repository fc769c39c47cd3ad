"""Generation core: configuration, errors, logging, clients and providers."""
