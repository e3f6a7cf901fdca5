"""Foundation: errors, configuration and test helpers."""
