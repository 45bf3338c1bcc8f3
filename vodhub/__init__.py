"""VodHub: aggregated VOD listings with AI-assisted curation."""

__version__ = "0.1.0"
