"""
Core business logic for running coaching.

This module is framework-agnostic - it doesn't import FastAPI, Redis,
or any infrastructure concerns. This separation means we can test the
caching and coaching logic in isolation and swap providers if needed.
"""
