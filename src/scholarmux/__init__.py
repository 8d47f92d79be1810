"""ScholarMux — multi-source academic article search aggregator."""

__version__ = "0.1.0"
