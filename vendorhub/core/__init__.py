"""Cross-cutting helpers shared by VendorHub features."""
