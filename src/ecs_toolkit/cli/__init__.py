"""Command line interface for the ECS toolkit."""
