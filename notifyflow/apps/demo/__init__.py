"""Multi-channel delivery demo."""
