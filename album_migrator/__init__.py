"""album-migrator: move library songs between versions of the same album."""

__version__ = "0.1.0"
