"""Receipt, manifest and verification primitives."""
