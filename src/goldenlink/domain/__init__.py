"""Domain layer: model, ports and MDM services."""
