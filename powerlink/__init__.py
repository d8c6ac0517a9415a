"""PowerLink: account lifecycle and billing state engine for an electric cooperative."""
