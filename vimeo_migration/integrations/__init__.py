"""Remote hosting integrations."""
