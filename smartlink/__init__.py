"""Smart Link: curated website directory API and client state store."""
