"""Unix-style shell, core utilities, grep and memory, page-table and virtio models."""

__version__ = "0.1.0"