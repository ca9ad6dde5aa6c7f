"""Core configuration, rules and dependencies."""
