"""HTTP surface for the analytics router."""
