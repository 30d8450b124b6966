"""admin/ -- Operator commands run against the store configuration (migrate, seed, genkey)."""
