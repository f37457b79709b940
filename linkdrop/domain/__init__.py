"""Domain layer: entities, value objects, policy and domain services."""
