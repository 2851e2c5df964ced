"""Business services operating on the document store."""
