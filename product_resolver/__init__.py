"""Product Fact Resolver: reconciles retail product facts from JSON-LD and hydration state."""
