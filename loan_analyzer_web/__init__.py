"""Flask JSON API in front of the loan analyzer engines."""
