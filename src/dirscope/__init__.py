"""DirScope: concurrent directory-size explorer."""

__version__ = "1.0.0"
