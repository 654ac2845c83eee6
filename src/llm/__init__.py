"""Text generation: natural-language query to MongoDB shell command."""
