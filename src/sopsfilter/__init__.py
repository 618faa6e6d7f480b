"""sopsfilter — git filter driver for sops-encrypted files."""

__version__ = "0.1.0"
