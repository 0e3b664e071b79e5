"""Record model, field reflection and query results."""
