"""Archive Miner: mine archived snapshots of freshly published articles."""

__version__ = "0.1.0"
