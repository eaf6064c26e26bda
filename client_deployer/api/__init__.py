"""HTTP surface for client_deployer."""
