"""Data types, classification, path encoding and the graph store."""
