"""mentormatch - preference-weighted mentor matching and ranking."""
