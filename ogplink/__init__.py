"""OGP Link Generator: collect links, preview their OGP metadata and publish them as rooms."""

__version__ = "0.1.0"
