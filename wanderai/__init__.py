"""WanderAI: AI-generated travel itineraries enriched with live weather."""

__version__ = "0.1.0"
