"""Post-processing of analysis results: narrative clusters and trends."""
