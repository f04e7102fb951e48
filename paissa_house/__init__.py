"""PaissaHouse: browse open FFXIV housing plots from PaissaDB in Discord."""
