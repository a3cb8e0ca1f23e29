"""Test suite for the storefront favorites service."""
