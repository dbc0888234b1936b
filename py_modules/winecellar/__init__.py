# Wine Cellar backend package
# Steam metadata (steam), compatibility tool queue (cask), frontend transport (server).

__version__ = "0.1.0"
