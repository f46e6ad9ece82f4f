"""Parts of an Emacs-style text editor: command table, screen image, redisplay, echo line, file I/O and key-binding interpreter."""

__version__ = "0.1.0"