"""Domain layer: submissions, votes, decisions and the ports adapters implement."""
