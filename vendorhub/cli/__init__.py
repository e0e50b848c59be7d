"""Command-line tooling for VendorHub access control."""
