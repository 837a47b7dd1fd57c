"""Settings and structured logging shared by the adapter."""
