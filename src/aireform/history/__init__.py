"""Reading recent message history from whitelisted channels."""
