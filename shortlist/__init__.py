"""Product shortlist engine: match filter, scoring, badge ranking and guardrails."""
