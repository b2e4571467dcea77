"""Blog platform service: accounts, sessions, posts and comments."""

__version__ = "0.1.0"
