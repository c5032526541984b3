"""Factor matchers, weight allocation and scoring."""
