"""Storefront favorites service."""
