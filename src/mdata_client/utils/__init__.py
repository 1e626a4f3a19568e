"""Small helpers shared by the protocol layer."""
