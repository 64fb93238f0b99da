"""Domain layer: repository protocols and identity/marker ports."""
