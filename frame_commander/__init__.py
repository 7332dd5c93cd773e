"""frame-commander - drive a coding-agent CLI from a desktop shell."""

__version__ = "0.1.0"
__logo__ = "▣"
