"""Foundation layer: error taxonomy and configuration."""
