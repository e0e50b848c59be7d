"""Resource-based access control for pages and components."""
