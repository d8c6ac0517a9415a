"""HTTP surface for the PowerLink consumer management core."""
