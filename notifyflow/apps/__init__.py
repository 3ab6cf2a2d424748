"""Demo applications for NotifyFlow."""
