"""
Unit Tests

Tests for individual components: normalization, fetching, composition,
storage, orchestration and configuration.
"""
