"""Session and authentication core of the meetings web client."""
