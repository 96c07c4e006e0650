"""Synapse: collaborative study rooms backend."""
