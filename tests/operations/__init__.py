"""Test suite for the storefront services."""
