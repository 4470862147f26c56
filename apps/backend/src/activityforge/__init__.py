"""ActivityForge: template-driven Journey Builder custom activity generation."""

__version__ = "0.1.0"
