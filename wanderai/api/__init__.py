"""HTTP surface driving the itinerary pipeline."""
