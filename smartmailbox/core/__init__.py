"""Configuration, logging and resilience primitives."""
