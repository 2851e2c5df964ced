"""Document store contracts and their MongoDB and in-memory backends."""
