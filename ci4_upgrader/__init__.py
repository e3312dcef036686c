"""Text-based CodeIgniter 3 -> CodeIgniter 4 project upgrader."""

__version__ = '0.1.0'
