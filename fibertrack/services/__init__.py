"""Service layer: business logic and derived computations."""
