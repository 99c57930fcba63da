"""Model-specific front ends."""
