"""
Infrastructure layer - external service integrations.

Each subdirectory wraps an external dependency:
- anthropic: Claude API client
- redis: Key-value store for cached messages, profiles and runs

These wrappers translate between external formats and our domain models.
"""
