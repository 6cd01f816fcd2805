"""HTTP surface for the Daily Brief backend."""
