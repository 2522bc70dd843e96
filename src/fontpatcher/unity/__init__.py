"""Unity Editor discovery, version detection and provisioning."""
