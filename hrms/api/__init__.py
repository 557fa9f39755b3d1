"""HTTP boundary: request context dependencies, middleware and error rendering."""
