"""HTTP surface for Matrix actions."""
