"""User records consulted by access control."""
