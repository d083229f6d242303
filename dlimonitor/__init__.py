"""DLI training catalog monitor."""
